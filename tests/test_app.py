import io

DATA = b"the quick brown fox jumps over the lazy dog. " * 50


def upload(client, route, data, filename, **form):
    form["file"] = (io.BytesIO(data), filename)
    return client.post(route, data=form, content_type="multipart/form-data")


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_compress_download_decompress(client):
    response = upload(client, "/compress_file", DATA, "notes.txt")
    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] and body["compressed"]
    assert body["filename"] == "notes.txt"
    assert body["compressed_filename"] == "notes.txt.huff"
    assert body["compressed_size"] < body["original_size"] == len(DATA)
    assert "output_path" not in body

    compressed = client.get(body["download_url"])
    assert compressed.status_code == 200
    assert compressed.data[:2] == b"HF"

    response = upload(client, "/decompress_file", compressed.data, "copy.txt.huff")
    assert response.status_code == 200
    body = response.get_json()
    assert body["decompressed_file"] == "copy.txt"
    assert body["decompressed_size"] == len(DATA)

    restored = client.get(body["download_url"])
    assert restored.data == DATA


def test_compress_skipped_then_forced(client):
    body = upload(client, "/compress_file", b"abc", "tiny.txt").get_json()
    assert body["success"] and not body["compressed"]
    assert "download_url" not in body

    body = upload(client, "/compress_file", b"abc", "tiny.txt", force="true").get_json()
    assert body["compressed"]
    assert client.get(body["download_url"]).status_code == 200


def test_compress_rejects_missing_and_empty_files(client):
    response = client.post("/compress_file", data={}, content_type="multipart/form-data")
    assert response.status_code == 400
    assert response.get_json()["error"] == "No file uploaded"

    response = upload(client, "/compress_file", b"", "empty.txt")
    assert response.status_code == 400
    assert not response.get_json()["success"]


def test_decompress_rejects_bad_input(client):
    response = upload(client, "/decompress_file", b"HF", "notes.txt")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid file type"

    response = upload(client, "/decompress_file", b"PK\x03\x04", "archive.huff")
    assert response.status_code == 400
    assert "Not a Huffman file" in response.get_json()["error"]


def test_download_missing_file(client):
    assert client.get("/download/nothing-here.huff").status_code == 404


def test_upload_over_size_limit(client, monkeypatch):
    monkeypatch.setitem(client.application.config, "MAX_CONTENT_LENGTH", 64)
    response = upload(client, "/compress_file", DATA, "notes.txt")
    assert response.status_code == 413
