import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass

from bitio import BitReader, BitWriter, ByteReader, ByteWriter
from huffman import (
    FormatError,
    HuffmanError,
    InputTooLargeError,
    TruncatedStreamError,
    build_tree,
    count_frequencies,
    decode_stream,
    encode_stream,
    encoded_bit_length,
    format_tree,
    generate_codes,
    read_tree,
    write_tree,
)

logger = logging.getLogger(__name__)

# --- FILE FORMAT ---
MAGIC = b"HF"
MAGIC_BITS = 8 * len(MAGIC)
# Count of encoded symbols, written right after the magic unless legacy.
# Its top bit stays 0; a legacy file starts its tree with a 1 bit there.
HEADER_BITS = 32
MAX_SYMBOLS = (1 << (HEADER_BITS - 1)) - 1

NOT_COMPRESSED_MESSAGE = "Compression would not produce a smaller file. File not compressed."


@dataclass(frozen=True)
class CompressionOptions:
    """
    force: write the compressed file even when it is not smaller.
    verbose: add frequencies, codes and the tree to the returned result.
    legacy: write the layout without the symbol count header. Reading
    detects the layout on its own.
    """

    force: bool = False
    verbose: bool = False
    legacy: bool = False


def round_up_to_byte(bits):
    return (bits + 7) // 8 * 8


def projected_size(root, codes, frequencies, legacy=False):
    """Size in bits of the file compress_file() would write, whole bytes included."""
    bits = encoded_bit_length(codes, frequencies) + root.bit_size() + MAGIC_BITS
    if not legacy:
        bits += HEADER_BITS
    return round_up_to_byte(bits)


@contextmanager
def _open_output(factory, path):
    """Open an output file and remove what was written if the block fails."""
    output = factory(path)
    try:
        yield output
    except BaseException:
        output.close()
        logger.debug(f"Removing partial output {path}")
        os.remove(path)
        raise
    output.close()


def _check_distinct(input_path, output_path):
    # Opening the output truncates it before the input has been read
    if os.path.exists(output_path) and os.path.samefile(input_path, output_path):
        raise HuffmanError(f"Cannot overwrite the input file {os.path.basename(input_path)}")


### COMPRESSION ###
def compress_file(input_path, output_path, options=None):
    """
    Compress input_path into output_path with static Huffman coding.

    The output is written only when it is smaller than the input or
    options.force is set. Raises EmptyInputError for an empty input; no output
    file exists afterwards in either case.
    """
    options = options or CompressionOptions()
    logger.info(f"Compressing {input_path} -> {output_path}")

    _check_distinct(input_path, output_path)

    with ByteReader(input_path) as reader:
        # --- PASS 1: frequencies, tree, codes ---
        frequencies, input_bits = count_frequencies(reader)
        root = build_tree(frequencies)
        codes = generate_codes(root)
        symbols = input_bits // 8
        if not options.legacy and symbols > MAX_SYMBOLS:
            raise InputTooLargeError(
                f"{symbols} bytes exceed the {MAX_SYMBOLS} the symbol count header can hold"
            )

        compressed_bits = projected_size(root, codes, frequencies, options.legacy)
        logger.debug(
            f"{len(codes)} codes, tree {root.bit_size()} bits, "
            f"{input_bits} bits in, {compressed_bits} bits projected"
        )

        result = {
            "compressed": False,
            "original_bits": input_bits,
            "projected_bits": compressed_bits,
            "original_size": symbols,
            "compressed_size": None,
            "saved": 0,
            "saved_percent": 0,
            "output_path": None,
        }
        if options.verbose:
            result["frequencies"] = {byte: freq for byte, freq in enumerate(frequencies) if freq}
            result["codes"] = dict(sorted(codes.items()))
            result["tree"] = format_tree(root)

        if not options.force and compressed_bits >= input_bits:
            logger.warning(f"{input_path}: {NOT_COMPRESSED_MESSAGE}")
            result["message"] = NOT_COMPRESSED_MESSAGE
            return result

        # --- PASS 2: header, tree, encoded data ---
        reader.rewind()
        with _open_output(BitWriter, output_path) as writer:
            for byte in MAGIC:
                writer.write_byte(byte)
            if not options.legacy:
                writer.write_bits(symbols, HEADER_BITS)
            write_tree(writer, root)
            written = encode_stream(reader, codes, writer)
            if written != symbols:
                raise HuffmanError(
                    f"{os.path.basename(input_path)} changed while compressing: {written} bytes encoded, {symbols} counted"
                )

    compressed_size = os.path.getsize(output_path)
    saved = symbols - compressed_size
    result.update(
        compressed=True,
        compressed_size=compressed_size,
        saved=saved,
        saved_percent=round(saved / symbols * 100, 2),
        output_path=output_path,
        message=f"Successfully compressed {os.path.basename(input_path)} to {os.path.basename(output_path)}.",
    )
    logger.info(result["message"])
    return result


### DECOMPRESSION ###
def decompress_file(input_path, output_path, options=None):
    """
    Decompress a file written by compress_file() into output_path.

    Raises FormatError when the magic marker is missing and
    TruncatedStreamError when the header, tree or data is cut short. The bit
    after the magic tells the layouts apart: 0 starts a symbol count, 1 is
    the root of a legacy tree. The legacy layout is decoded up to the end of
    the file, so its zero padding may come out as extra trailing bytes.
    """
    options = options or CompressionOptions()
    logger.info(f"Decompressing {input_path} -> {output_path}")
    _check_distinct(input_path, output_path)

    with BitReader(input_path) as reader:
        try:
            magic = bytes(reader.read_byte() for _ in MAGIC)
        except EOFError:
            magic = b""
        if magic != MAGIC:
            raise FormatError(f"Not a Huffman file: {os.path.basename(input_path)}")

        try:
            legacy = reader.peek_bit()
            symbol_count = None if legacy else reader.read_bits(HEADER_BITS)
            root = read_tree(reader)
        except EOFError:
            raise TruncatedStreamError(f"Header of {os.path.basename(input_path)} is truncated") from None

        with _open_output(ByteWriter, output_path) as writer:
            symbols = decode_stream(reader, root, writer, symbol_count)

    result = {
        "output_path": output_path,
        "symbols": symbols,
        "legacy": legacy,
        "decompressed_size": os.path.getsize(output_path),
        "message": f"Successfully decompressed {os.path.basename(input_path)} to {os.path.basename(output_path)}.",
    }
    if options.verbose:
        result["tree"] = format_tree(root)
    logger.info(result["message"])
    return result
