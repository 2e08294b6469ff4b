#!/usr/bin/env python3
"""
dcode.py - D-code (demographics code) encoder/decoder

Format: D1-base64url(3 data bytes + CRC-8)

    Byte 0: [schema_version:4][gender:1][dob_days bits 15..13]
    Byte 1: [dob_days bits 12..5]
    Byte 2: [dob_days bits 4..0][padding:3]

gender is 1 for FEMALE, 0 for MALE. dob_days counts days since
1950-01-01 and must fit in 16 bits (through mid-2129).

Usage:
    from dcode import encode_dcode, decode_dcode

    code = encode_dcode('1990-05-20', 'F')
    record = decode_dcode(code)
    record.dob, record.gender
"""

import logging
from datetime import date, timedelta
from typing import Optional, Union

from code_envelope import wrap, unwrap
from code_errors import (
    LengthError, MissingFieldError, RangeError, VersionError,
)
from code_types import (
    DateLike, DemographicsRecord, Gender, coerce_date, coerce_gender,
)

logger = logging.getLogger(__name__)

TAG = 'D1'
PREFIX = TAG + '-'
SCHEMA_VERSION = 1
EPOCH_DATE = date(1950, 1, 1)
DATA_LENGTH = 3
MAX_DOB_DAYS = 0xFFFF


def encode_dcode(dob: Optional[DateLike], gender: Optional[Union[Gender, str]]) -> str:
    """Encode date of birth and gender to a D-code string."""
    dob_date = coerce_date(dob)
    gender = coerce_gender(gender)
    if dob_date is None or gender is None:
        raise MissingFieldError("Missing required demographics: dob and gender")

    gender_bit = 1 if gender is Gender.FEMALE else 0
    dob_days = (dob_date - EPOCH_DATE).days
    if not 0 <= dob_days <= MAX_DOB_DAYS:
        raise RangeError(f"DOB out of valid range: {dob_date.isoformat()}")

    data = bytes([
        (SCHEMA_VERSION << 4) | (gender_bit << 3) | ((dob_days >> 13) & 0x07),
        (dob_days >> 5) & 0xFF,
        (dob_days << 3) & 0xFF,
    ])
    return wrap(TAG, data)


def encode_demographics(record: Union[DemographicsRecord, dict]) -> str:
    """Encode a DemographicsRecord (or its dict form) to a D-code."""
    if isinstance(record, dict):
        record = DemographicsRecord.from_dict(record)
    return encode_dcode(record.dob, record.gender)


def decode_dcode(text: str) -> DemographicsRecord:
    """Decode a D-code string to a DemographicsRecord."""
    data = unwrap(text, (TAG,)).payload

    if len(data) != DATA_LENGTH:
        raise LengthError(
            f"Invalid D-code: expected {DATA_LENGTH} data bytes, got {len(data)}"
        )

    schema_version = (data[0] >> 4) & 0x0F
    gender_bit = (data[0] >> 3) & 0x01
    dob_days = ((data[0] & 0x07) << 13) | (data[1] << 5) | (data[2] >> 3)

    if schema_version > SCHEMA_VERSION:
        raise VersionError('D-code', schema_version, SCHEMA_VERSION)

    return DemographicsRecord(
        dob=EPOCH_DATE + timedelta(days=dob_days),
        gender=Gender.FEMALE if gender_bit else Gender.MALE,
        schema_version=schema_version,
    )


def is_valid_dcode(text: str) -> bool:
    """True if text decodes as a D-code."""
    try:
        decode_dcode(text)
        return True
    except Exception as e:
        logger.debug("Rejected D-code: %s", e)
        return False
