"""
Tests for the D-code (demographics) codec.
"""

import pytest
import sys
from datetime import date, datetime
from pathlib import Path

# Add tools to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from code_base64 import encode_base64url
from code_crc8 import append_crc8
from code_envelope import unwrap, wrap
from code_errors import (
    DecodeError, FormatError, IntegrityError, LengthError,
    MissingFieldError, RangeError, VersionError,
)
from code_types import DemographicsRecord, Gender
from dcode import (
    EPOCH_DATE, PREFIX, SCHEMA_VERSION,
    decode_dcode, encode_dcode, encode_demographics, is_valid_dcode,
)


class TestEncodeDCode:
    """Tests for encode_dcode."""

    def test_prefix_and_length(self):
        code = encode_dcode('1990-05-20', 'F')
        assert code.startswith(PREFIX)
        assert len(code) == 3 + 6  # 4 bytes -> 6 base64url chars

    def test_bit_layout(self):
        """1990-05-20 is day 14749 (0x399D) since 1950-01-01."""
        code = encode_dcode(date(1990, 5, 20), Gender.FEMALE)
        payload = unwrap(code, ('D1',)).payload
        assert payload == bytes([0x19, 0xCC, 0xE8])

    def test_male_bit_clear(self):
        payload = unwrap(encode_dcode(date(1990, 5, 20), Gender.MALE), ('D1',)).payload
        assert payload[0] == 0x11
        assert payload[0] & 0x08 == 0

    def test_epoch_encodes_zero_days(self):
        payload = unwrap(encode_dcode(EPOCH_DATE, 'M'), ('D1',)).payload
        assert payload == bytes([SCHEMA_VERSION << 4, 0, 0])

    def test_no_padding_chars(self):
        code = encode_dcode('2001-02-03', 'M')
        assert '=' not in code
        assert '+' not in code
        assert '/' not in code

    @pytest.mark.parametrize("dob,gender", [
        (None, 'M'), ('', 'F'), ('1990-01-01', None), ('1990-01-01', ''),
    ])
    def test_missing_fields(self, dob, gender):
        with pytest.raises(MissingFieldError, match="dob and gender"):
            encode_dcode(dob, gender)

    def test_dob_before_epoch(self):
        with pytest.raises(RangeError, match="DOB out of valid range"):
            encode_dcode('1949-12-31', 'M')

    def test_dob_after_range(self):
        last = date.fromordinal(EPOCH_DATE.toordinal() + 0xFFFF)
        encode_dcode(last, 'M')
        with pytest.raises(RangeError):
            encode_dcode(date.fromordinal(last.toordinal() + 1), 'M')

    def test_invalid_gender(self):
        with pytest.raises(RangeError, match="gender"):
            encode_dcode('1990-01-01', 'X')

    def test_gender_aliases(self):
        assert encode_dcode('1990-01-01', 'female') == encode_dcode('1990-01-01', Gender.FEMALE)
        assert encode_dcode('1990-01-01', 'm') == encode_dcode('1990-01-01', 'M')

    def test_encode_demographics_record_and_dict(self):
        expected = encode_dcode('1985-07-04', 'F')
        assert encode_demographics(DemographicsRecord(dob='1985-07-04', gender='F')) == expected
        assert encode_demographics({'dob': '1985-07-04', 'gender': 'F'}) == expected


class TestDecodeDCode:
    """Tests for decode_dcode."""

    def test_roundtrip(self):
        record = decode_dcode(encode_dcode('1990-05-20', 'F'))
        assert record.dob == date(1990, 5, 20)
        assert record.gender is Gender.FEMALE
        assert record.schema_version == SCHEMA_VERSION

    def test_datetime_truncated_to_day(self):
        record = decode_dcode(encode_dcode(datetime(1979, 3, 9, 23, 59), 'M'))
        assert record.dob == date(1979, 3, 9)
        assert type(record.dob) is date

    def test_whitespace_tolerated(self):
        code = encode_dcode('1990-05-20', 'M')
        assert decode_dcode(f"  {code}\n").dob == date(1990, 5, 20)

    def test_to_dict(self):
        record = decode_dcode(encode_dcode('1990-05-20', 'F'))
        assert record.to_dict() == {'dob': '1990-05-20', 'gender': 'F', 'schemaVersion': 1}

    @pytest.mark.parametrize("code", ["", "D1", "X1-ABCDEF", "S2-ABCDEF", "d1-ABCDEF"])
    def test_bad_prefix(self, code):
        with pytest.raises(FormatError):
            decode_dcode(code)

    def test_non_string(self):
        with pytest.raises(FormatError):
            decode_dcode(None)

    def test_bad_base64(self):
        with pytest.raises(DecodeError):
            decode_dcode("D1-ab$cd")

    def test_crc_mismatch(self):
        framed = bytearray(append_crc8(bytes([0x19, 0xCC, 0xE8])))
        framed[-1] ^= 0xFF
        with pytest.raises(IntegrityError, match="checksum"):
            decode_dcode("D1-" + encode_base64url(bytes(framed)))

    def test_mutated_trailing_character(self):
        code = encode_dcode('1990-05-20', 'F')
        last = code[-1]
        mutated = code[:-1] + ('A' if last != 'A' else 'B')
        with pytest.raises((DecodeError, IntegrityError)):
            decode_dcode(mutated)

    @pytest.mark.parametrize("payload", [b"\x10\x00", b"\x10\x00\x00\x00", b"\x10"])
    def test_wrong_length(self, payload):
        with pytest.raises(LengthError):
            decode_dcode(wrap('D1', payload))

    def test_future_version(self):
        with pytest.raises(VersionError, match="newer version"):
            decode_dcode(wrap('D1', bytes([0x20, 0x00, 0x00])))

    def test_older_version_accepted(self):
        record = decode_dcode(wrap('D1', bytes([0x08, 0x00, 0x08])))
        assert record.schema_version == 0
        assert record.gender is Gender.FEMALE
        assert record.dob == date(1950, 1, 2)


class TestIsValidDCode:
    """Tests for is_valid_dcode."""

    def test_valid(self):
        assert is_valid_dcode(encode_dcode('1990-05-20', 'F'))

    @pytest.mark.parametrize("code", [
        "", "D1-", "D1-!!!!", "S2-AAAA", None, 42, "D1-AAAAAB",
    ])
    def test_invalid(self, code):
        assert is_valid_dcode(code) is False
