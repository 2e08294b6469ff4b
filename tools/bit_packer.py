#!/usr/bin/env python3
"""
bit_packer.py - MSB-first bit writer/reader for S-code payloads

Every S-code field is written at exactly the width its range needs
(7 bits for 0-127 reps, 15 bits for a day count, ...), which is where
the compact code size comes from.

Usage:
    writer = BitWriter()
    writer.pack(2, 4)
    writer.pack(1111, 11)
    data = writer.finish()

    reader = BitReader(data)
    version = reader.unpack(4)
    seconds = reader.unpack(11)

Reading past the end of the buffer yields zero bits instead of raising.
Shorter payloads written by older encoders therefore read as "field
absent / zero", which the S-code decoder relies on.
"""

MAX_FIELD_BITS = 32


def _check_width(width: int) -> None:
    if not 1 <= width <= MAX_FIELD_BITS:
        raise ValueError(f"Bit width must be 1..{MAX_FIELD_BITS}, got {width}")


class BitWriter:
    """Accumulates values into a byte buffer, most significant bit first."""

    def __init__(self):
        self._buf = bytearray()
        self._cur = 0
        self._nbits = 0  # bits held in _cur (0..7)
        self.bit_length = 0

    def pack(self, value: int, width: int) -> None:
        """Append the low `width` bits of value."""
        _check_width(width)
        for i in range(width - 1, -1, -1):
            self._cur = (self._cur << 1) | ((value >> i) & 1)
            self._nbits += 1
            if self._nbits == 8:
                self._buf.append(self._cur)
                self._cur = 0
                self._nbits = 0
        self.bit_length += width

    def finish(self) -> bytes:
        """Return the packed bytes, zero-padding the final partial byte."""
        if self._nbits > 0:
            self._buf.append(self._cur << (8 - self._nbits))
            self._cur = 0
            self._nbits = 0
        return bytes(self._buf)


class BitReader:
    """Reads MSB-first fields from a byte buffer."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.position = 0  # absolute bit index

    def unpack(self, width: int) -> int:
        """Consume `width` bits. Bits beyond the buffer read as 0."""
        _check_width(width)
        total_bits = len(self.data) * 8
        value = 0
        for _ in range(width):
            if self.position < total_bits:
                byte = self.data[self.position >> 3]
                bit = (byte >> (7 - (self.position & 7))) & 1
            else:
                bit = 0
            value = (value << 1) | bit
            self.position += 1
        return value

    def has_more(self) -> bool:
        return self.position < len(self.data) * 8
