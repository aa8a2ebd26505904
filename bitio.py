import logging

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


### BYTE-ORIENTED FILES ###
class ByteReader:
    """Reads a file one byte value (0-255) at a time, with rewind support."""

    def __init__(self, path, chunk_size=CHUNK_SIZE):
        self.path = path
        self.chunk_size = chunk_size
        self._file = open(path, "rb")
        self._chunk = b""
        self._pos = 0

    def _fill(self):
        # Only refill once the current chunk is used up
        if self._pos >= len(self._chunk):
            self._chunk = self._file.read(self.chunk_size)
            self._pos = 0
        return self._pos < len(self._chunk)

    def at_end(self):
        return not self._fill()

    def read_byte(self):
        if not self._fill():
            raise EOFError(f"End of file reached in {self.path}")
        value = self._chunk[self._pos]
        self._pos += 1
        return value

    def chunks(self):
        """Yield the rest of the file as bytes objects."""
        while self._fill():
            chunk = self._chunk[self._pos:]
            self._pos = len(self._chunk)
            yield chunk

    def __iter__(self):
        for chunk in self.chunks():
            yield from chunk

    def rewind(self):
        self._file.seek(0)
        self._chunk = b""
        self._pos = 0

    def close(self):
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ByteWriter:
    """Writes byte values to a file."""

    def __init__(self, path):
        self.path = path
        self._file = open(path, "wb")
        self.bytes_written = 0

    def write_byte(self, value):
        self._file.write(bytes((value,)))
        self.bytes_written += 1

    def write(self, data):
        self._file.write(data)
        self.bytes_written += len(data)

    def close(self):
        if not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


### BIT-ORIENTED FILES ###
class BitReader:
    """
    Reads a file bit by bit, most significant bit of each byte first.

    at_end() becomes true once every bit of the last byte has been consumed,
    padding included: the reader knows nothing about where meaningful data
    stops.
    """

    def __init__(self, path, chunk_size=CHUNK_SIZE):
        self.path = path
        self._bytes = ByteReader(path, chunk_size)
        self._rack = 0
        # Bits of the current rack still unread
        self._remaining = 0
        self.bits_read = 0

    def at_end(self):
        return self._remaining == 0 and self._bytes.at_end()

    def read_bit(self):
        if self._remaining == 0:
            self._rack = self._bytes.read_byte()
            self._remaining = 8
        self._remaining -= 1
        self.bits_read += 1
        return bool((self._rack >> self._remaining) & 1)

    def peek_bit(self):
        """Return the next bit without consuming it."""
        if self._remaining == 0:
            self._rack = self._bytes.read_byte()
            self._remaining = 8
        return bool((self._rack >> (self._remaining - 1)) & 1)

    def read_bits(self, count):
        value = 0
        for _ in range(count):
            value = (value << 1) | self.read_bit()
        return value

    def read_byte(self):
        if self._remaining == 0:
            value = self._bytes.read_byte()
            self.bits_read += 8
            return value
        return self.read_bits(8)

    def close(self):
        self._bytes.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class BitWriter:
    """
    Writes a file bit by bit, most significant bit of each byte first.

    close() flushes a partial trailing byte padded with 0 bits.
    """

    def __init__(self, path):
        self.path = path
        self._file = open(path, "wb")
        self._buffer = bytearray()
        self._rack = 0
        self._used = 0
        self.bits_written = 0

    def write_bit(self, bit):
        self.write_bits(1 if bit else 0, 1)

    def write_bits(self, value, count):
        """Append the low `count` bits of value, emitting every completed byte."""
        self._rack = (self._rack << count) | (value & ((1 << count) - 1))
        self._used += count
        self.bits_written += count
        while self._used >= 8:
            self._used -= 8
            self._buffer.append((self._rack >> self._used) & 0xFF)
        self._rack &= (1 << self._used) - 1
        if len(self._buffer) >= CHUNK_SIZE:
            self._flush()

    def write_byte(self, value):
        self.write_bits(value & 0xFF, 8)

    def _flush(self):
        self._file.write(self._buffer)
        self._buffer.clear()

    @property
    def padding_bits(self):
        return (8 - self._used) % 8

    def close(self):
        if self._file.closed:
            return
        if self._used:
            padding = self.padding_bits
            logger.debug(f"Padding final byte of {self.path} with {padding} bits")
            self._buffer.append(self._rack << padding)
            self._rack = 0
            self._used = 0
        self._flush()
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
