import logging
import os

from flask import Flask, jsonify, request, send_from_directory, url_for
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from File_Compression import CompressionOptions, compress_file, decompress_file
from huffman import EmptyInputError, FormatError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------
# PATH CONFIGURATION
# -----------------------------------------------------------
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
COMPRESSED_EXTENSION = ".huff"

# -----------------------------------------------------------
# FLASK APP SETUP
# -----------------------------------------------------------
app = Flask(__name__)
app.config.update(
    DATA_DIR=os.path.join(BASE_DIR, "data"),
    # Uploads are decoded bit by bit inside the request
    MAX_CONTENT_LENGTH=4 * 1024 * 1024,
    FORCE_COMPRESSION=False,
)
# e.g. HUFFMAN_DATA_DIR=/srv/huffman, HUFFMAN_FORCE_COMPRESSION=true
app.config.from_prefixed_env("HUFFMAN")
CORS(app)

# -----------------------------------------------------------
# HELPER FUNCTIONS
# -----------------------------------------------------------
def data_dir():
    path = app.config["DATA_DIR"]
    os.makedirs(path, exist_ok=True)
    return path


def form_flag(name):
    return request.form.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def error_response(message, status):
    return jsonify({"success": False, "error": message}), status


def uploaded_filename():
    file = request.files.get("file")
    if not file or not file.filename:
        return file, None
    return file, secure_filename(file.filename)

# -----------------------------------------------------------
# ROUTES
# -----------------------------------------------------------
@app.route("/health")
def health():
    return jsonify({"status": "ok"})


@app.route("/compress_file", methods=["POST"])
def compress_file_route():
    try:
        file, filename = uploaded_filename()
        if not filename:
            return error_response("No file uploaded", 400)

        user_dir = data_dir()
        input_path = os.path.join(user_dir, filename)
        file.save(input_path)

        compressed_filename = f"{filename}{COMPRESSED_EXTENSION}"
        compressed_path = os.path.join(user_dir, compressed_filename)
        options = CompressionOptions(force=app.config["FORCE_COMPRESSION"] or form_flag("force"))

        try:
            result = compress_file(input_path, compressed_path, options)
        except EmptyInputError as e:
            return error_response(str(e), 400)

        response = {"success": True, "filename": filename, **result}
        # Never hand server paths back to the client
        response.pop("output_path")
        if result["compressed"]:
            response["compressed_filename"] = compressed_filename
            response["download_url"] = url_for("download_file", filename=compressed_filename)
        return jsonify(response)

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error in /compress_file")
        return error_response("Internal server error", 500)


@app.route("/decompress_file", methods=["POST"])
def decompress_file_route():
    try:
        file, filename = uploaded_filename()
        if not filename:
            return error_response("No file uploaded", 400)
        if not filename.endswith(COMPRESSED_EXTENSION) or filename == COMPRESSED_EXTENSION:
            return error_response("Invalid file type", 400)

        user_dir = data_dir()
        input_path = os.path.join(user_dir, filename)
        file.save(input_path)

        # keep original filename
        output_filename = filename[: -len(COMPRESSED_EXTENSION)]
        output_path = os.path.join(user_dir, output_filename)

        try:
            result = decompress_file(input_path, output_path)
        except FormatError as e:
            return error_response(str(e), 400)

        return jsonify({
            "success": True,
            "original_huff": filename,
            "decompressed_file": output_filename,
            "decompressed_size": result["decompressed_size"],
            "message": result["message"],
            "download_url": url_for("download_file", filename=output_filename),
        })

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error in /decompress_file")
        return error_response("Internal server error", 500)


@app.route("/download/<filename>")
def download_file(filename):
    return send_from_directory(
        data_dir(),
        secure_filename(filename),
        as_attachment=True,
        mimetype="application/octet-stream",
    )

# -----------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True)
