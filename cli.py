import argparse
import logging
import os
import sys

from File_Compression import CompressionOptions, compress_file, decompress_file
from huffman import HuffmanError


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="huffman",
        description="Compress or decompress a single file with static Huffman coding.",
    )
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("-c", dest="decompress", action="store_false",
                      help="compress the input file (default)")
    mode.add_argument("-u", dest="decompress", action="store_true",
                      help="decompress the input file")
    p.set_defaults(decompress=False)
    p.add_argument("-f", "--force", action="store_true",
                   help="write the compressed file even if it is not smaller than the input")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="print frequencies, the Huffman tree and codes")
    p.add_argument("--legacy", action="store_true",
                   help="compress to the layout without the symbol count header (decompression detects it)")
    p.add_argument("input", help="file to read")
    p.add_argument("output", help="file to write")
    return p.parse_args(argv)


def print_compression_report(result):
    print("Frequency of each byte value in the input file:")
    for byte, freq in result["frequencies"].items():
        print(f"{byte} appears {freq} times.")
    print("\nHuffman Tree:")
    print("\n".join(result["tree"]))
    print("\nHuffman Codes:")
    for byte, code in result["codes"].items():
        print(f"{byte}: {code}")
    print(f"\nUncompressed File Size (in bits): {result['original_bits']}")
    print(f"Compressed File Size (in bits): {result['projected_bits']}")


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if os.path.abspath(args.input) == os.path.abspath(args.output):
        print("Cannot overwrite the input file, please use a different output filename.",
              file=sys.stderr)
        return 1

    options = CompressionOptions(force=args.force, verbose=args.verbose, legacy=args.legacy)
    try:
        if args.decompress:
            result = decompress_file(args.input, args.output, options)
            if args.verbose:
                print("Huffman Tree:")
                print("\n".join(result["tree"]))
        else:
            result = compress_file(args.input, args.output, options)
            if args.verbose:
                print_compression_report(result)
    except (HuffmanError, OSError, EOFError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result["message"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
