#!/usr/bin/env python3
"""
code_base64.py - Base64url transcoding (RFC 4648 section 5, no padding)

Codes are pasted into URLs and chat messages, so the URL-safe alphabet
is used and '=' padding is dropped. Decoding is strict: anything that
encode_base64url() could not have produced is rejected with DecodeError,
including texts whose final character carries non-zero filler bits.
"""

import base64
import binascii
import re

from code_errors import DecodeError

_ALPHABET_RE = re.compile(r'[A-Za-z0-9_-]*')


def encode_base64url(data: bytes) -> str:
    """Encode bytes to unpadded base64url text."""
    return base64.urlsafe_b64encode(bytes(data)).decode('ascii').rstrip('=')


def decode_base64url(text: str) -> bytes:
    """Decode unpadded base64url text to bytes."""
    if not isinstance(text, str):
        raise DecodeError(f"Expected str, got {type(text).__name__}")
    if not _ALPHABET_RE.fullmatch(text):
        raise DecodeError("Invalid base64url character")
    if len(text) % 4 == 1:
        raise DecodeError(f"Invalid base64url length: {len(text)}")

    padded = text + '=' * (-len(text) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"base64url decode failed: {e}") from e

    # Filler bits in the last character must be zero
    if encode_base64url(data) != text:
        raise DecodeError("Non-canonical base64url encoding")
    return data
