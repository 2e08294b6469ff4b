#!/usr/bin/env python3
"""
code_envelope.py - Text envelope shared by every code format

Envelope Format:
    TAG-base64url(payload || crc8(payload))

    D1-  demographics, 3 data bytes
    S1-  legacy self-assessment, UTF-8 JSON (decode only)
    S2-  bit-packed self-assessment, 4..11 data bytes

unwrap() performs the validation common to all formats, in order:
prefix (FormatError), base64url (DecodeError), CRC-8 (IntegrityError).
Format-specific checks (length, schema version) are left to the codec.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable

from code_base64 import encode_base64url, decode_base64url
from code_crc8 import append_crc8, verify_crc8
from code_errors import CodeError, FormatError, IntegrityError

logger = logging.getLogger(__name__)

SEPARATOR = '-'
KNOWN_TAGS = ('D1', 'S1', 'S2')


@dataclass
class CodeEnvelope:
    """A validated code split into its parts."""
    format_tag: str
    payload: bytes
    crc: int

    @property
    def prefix(self) -> str:
        return self.format_tag + SEPARATOR


def wrap(tag: str, payload: bytes) -> str:
    """Frame payload with CRC-8, base64url-encode and prefix with tag."""
    return tag + SEPARATOR + encode_base64url(append_crc8(payload))


def split_tag(text: str) -> str:
    """Return the format tag of a code without validating the body."""
    if not isinstance(text, str):
        raise FormatError(f"Code must be a string, got {type(text).__name__}")
    tag, sep, _ = text.strip().partition(SEPARATOR)
    if not sep or not tag:
        raise FormatError("Invalid code: missing prefix")
    return tag


def unwrap(text: str, tags: Iterable[str]) -> CodeEnvelope:
    """Validate a code's envelope and return its payload."""
    accepted = tuple(tags)
    tag = split_tag(text)
    if tag not in accepted:
        raise FormatError(
            f"Invalid code: expected prefix {' or '.join(t + SEPARATOR for t in accepted)}"
        )

    body = text.strip()[len(tag) + len(SEPARATOR):]
    framed = decode_base64url(body)

    if not verify_crc8(framed):
        logger.debug("CRC mismatch for %s code (%d bytes)", tag, len(framed))
        raise IntegrityError(f"Invalid {tag} code: checksum mismatch")

    return CodeEnvelope(format_tag=tag, payload=framed[:-1], crc=framed[-1])


def inspect_code(text: str) -> Dict[str, Any]:
    """Report envelope statistics for a code without decoding the record."""
    info: Dict[str, Any] = {
        'length': len(text.strip()) if isinstance(text, str) else 0,
        'valid_envelope': False,
    }
    try:
        envelope = unwrap(text, KNOWN_TAGS)
    except CodeError as e:
        info['error'] = str(e)
        info['error_type'] = type(e).__name__
        return info

    info.update({
        'format': envelope.format_tag,
        'payload_bytes': len(envelope.payload),
        'total_bytes': len(envelope.payload) + 1,
        'crc': f"0x{envelope.crc:02X}",
        'payload_hex': envelope.payload.hex().upper(),
        'valid_envelope': True,
    })
    return info
