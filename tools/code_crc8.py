#!/usr/bin/env python3
"""
code_crc8.py - CRC-8 checksum for D-codes and S-codes

Polynomial x^8 + x^2 + x + 1 (0x07), initial value 0, no reflection,
no final XOR (CRC-8/SMBUS). The check value for b"123456789" is 0xF4.

The CRC catches accidental corruption of a copy-pasted code. It is not
an authentication mechanism.

Usage:
    from code_crc8 import crc8, verify_crc8, append_crc8

    framed = append_crc8(payload)
    assert verify_crc8(framed)
"""

CRC8_POLY = 0x07


def crc8(data: bytes) -> int:
    """Calculate CRC-8 over data, MSB first."""
    crc = 0
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x80:
                crc = (crc << 1) ^ CRC8_POLY
            else:
                crc <<= 1
        crc &= 0xFF
    return crc


def verify_crc8(data: bytes) -> bool:
    """Check that the last byte of data is the CRC-8 of the bytes before it."""
    if len(data) < 2:
        return False
    return crc8(data[:-1]) == data[-1]


def append_crc8(data: bytes) -> bytes:
    """Return data with its CRC-8 appended."""
    return bytes(data) + bytes([crc8(data)])
