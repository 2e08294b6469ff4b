#!/usr/bin/env python3
"""
scode.py - S-code (self-check code) encoder/decoder

Two payload generations share the same text envelope (see code_envelope):

S2 (current): bit-packed, 4..11 data bytes + CRC-8, 10-19 characters in all.

    Header (28 bits):
        schema_version  4   (2)
        chart_version   4
        date_days      15   days since 2020-01-01 (through ~2109)
        diagnostic      1
        has_cardio      1
        has_strength    1
        has_core        1
        has_body_comp   1
    Cardio   (if present): exercise 2, exempt 1, [value 11]  seconds or shuttles
    Strength (if present): exercise 1, exempt 1, [value 7]   reps
    Core     (if present): exercise 2, exempt 1, [value 11]  reps or seconds
    Body     (if present): exempt 1, [height 11, waist 10]   tenths of an inch

    Values outside a field's range are clamped (with a logged warning),
    never wrapped.

S1 (legacy): UTF-8 JSON record + CRC-8. Decode only; new codes are always S2.

Usage:
    from scode import encode_scode, decode_scode

    code = encode_scode({
        'date': '2025-09-15',
        'cardio': {'exercise': '2mile_run', 'value': 1111, 'exempt': False},
    })
    record = decode_scode(code)
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from types import MappingProxyType
from typing import Callable, Optional, Union

from bit_packer import BitReader, BitWriter
from code_config import CodecConfig, get_config, is_diagnostic_period as _config_diagnostic
from code_envelope import wrap, unwrap
from code_errors import (
    DecodeError, LengthError, MissingFieldError, RangeError, VersionError,
)
from code_types import (
    AssessmentRecord, BodyCompResult, ComponentResult, coerce_date, coerce_flag,
)
from exercise_tables import (
    CARDIO_EXERCISES, CORE_EXERCISES, STRENGTH_EXERCISES, ExerciseTable,
)

logger = logging.getLogger(__name__)

TAG = 'S2'
LEGACY_TAG = 'S1'
PREFIX = TAG + '-'
SCHEMA_VERSION = 2
LEGACY_SCHEMA_VERSION = 1
LEGACY_MAX_PAYLOAD = 4096

EPOCH_DATE = date(2020, 1, 1)

VERSION_BITS = 4
CHART_BITS = 4
DATE_BITS = 15
HEIGHT_BITS = 11
WAIST_BITS = 10
HEADER_BITS = VERSION_BITS + CHART_BITS + DATE_BITS + 1 + 4


@dataclass(frozen=True)
class ComponentLayout:
    """Wire layout of one exercise component."""
    name: str
    table: ExerciseTable
    value_bits: int

    def bits(self, exempt: bool) -> int:
        return self.table.bits + 1 + (0 if exempt else self.value_bits)


CARDIO_LAYOUT = ComponentLayout('cardio', CARDIO_EXERCISES, 11)
STRENGTH_LAYOUT = ComponentLayout('strength', STRENGTH_EXERCISES, 7)
CORE_LAYOUT = ComponentLayout('core', CORE_EXERCISES, 11)
COMPONENT_LAYOUTS = (CARDIO_LAYOUT, STRENGTH_LAYOUT, CORE_LAYOUT)

BODY_COMP_BITS = 1 + HEIGHT_BITS + WAIST_BITS


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_field(value, bits: int, label: str, scale: int = 1) -> int:
    """Scale and round value, then clamp it to the range of a `bits`-wide field."""
    try:
        scaled = float(value) * scale
    except OverflowError:
        # int too large for a float
        scaled = math.inf if value > 0 else -math.inf
    except (TypeError, ValueError) as e:
        raise RangeError(f"{label} must be numeric, got {value!r}") from e
    if math.isnan(scaled):
        raise RangeError(f"{label} must be numeric, got {value!r}")

    max_value = (1 << bits) - 1
    if math.isinf(scaled):
        number = max_value + 1 if scaled > 0 else -1
    else:
        number = _round_half_up(scaled)
    if number > max_value or number < 0:
        clamped = min(max(number, 0), max_value)
        logger.warning("%s value %s outside %d-bit field, clamped to %d",
                       label, value, bits, clamped)
        return clamped
    return number


def _date_to_days(d: date) -> int:
    days = (d - EPOCH_DATE).days
    if not 0 <= days < (1 << DATE_BITS):
        raise RangeError(f"Assessment date out of encodable range: {d.isoformat()}")
    return days


def _pack_component(writer: BitWriter, layout: ComponentLayout,
                    result: ComponentResult) -> None:
    writer.pack(layout.table.code_for(result.exercise), layout.table.bits)
    writer.pack(1 if result.exempt else 0, 1)
    if not result.exempt:
        if result.value is None:
            raise MissingFieldError(f"{layout.name} value is required unless exempt")
        writer.pack(clamp_field(result.value, layout.value_bits, layout.name),
                    layout.value_bits)


def _pack_body_comp(writer: BitWriter, body: BodyCompResult) -> None:
    writer.pack(1 if body.exempt else 0, 1)
    if body.exempt:
        return
    if body.height_inches is None or body.waist_inches is None:
        raise MissingFieldError("bodyComp height and waist are required unless exempt")
    writer.pack(clamp_field(body.height_inches, HEIGHT_BITS, 'height', scale=10),
                HEIGHT_BITS)
    writer.pack(clamp_field(body.waist_inches, WAIST_BITS, 'waist', scale=10),
                WAIST_BITS)


def pack_assessment(record: AssessmentRecord, diagnostic: bool,
                    chart_version: int) -> bytes:
    """Bit-pack a record into the S2 data bytes (without CRC)."""
    day = coerce_date(record.date)
    if day is None:
        raise MissingFieldError("Assessment date is required")

    writer = BitWriter()
    writer.pack(SCHEMA_VERSION, VERSION_BITS)
    writer.pack(clamp_field(chart_version, CHART_BITS, 'chart_version'), CHART_BITS)
    writer.pack(_date_to_days(day), DATE_BITS)
    writer.pack(1 if diagnostic else 0, 1)

    components = (record.cardio, record.strength, record.core)
    for component in components:
        writer.pack(1 if component is not None else 0, 1)
    writer.pack(1 if record.body_comp is not None else 0, 1)

    for layout, component in zip(COMPONENT_LAYOUTS, components):
        if component is not None:
            _pack_component(writer, layout, component)
    if record.body_comp is not None:
        _pack_body_comp(writer, record.body_comp)

    return writer.finish()


def encode_scode(
    record: Union[AssessmentRecord, dict],
    is_diagnostic_period: Optional[Callable[[date], bool]] = None,
    config: Optional[CodecConfig] = None,
) -> str:
    """
    Encode an assessment to an S2 code.

    Args:
        record: AssessmentRecord or its dict form
        is_diagnostic_period: date -> bool classifier for the diagnostic
            flag (default: configured diagnostic windows)
        config: CodecConfig (default: process-wide config)

    Returns:
        S-code string ("S2-" followed by 7 to 16 base64url characters)
    """
    if isinstance(record, dict):
        record = AssessmentRecord.from_dict(record)
    cfg = config or get_config()

    day = coerce_date(record.date)
    if day is None:
        raise MissingFieldError("Assessment date is required")

    if is_diagnostic_period is not None:
        diagnostic = bool(is_diagnostic_period(day))
    else:
        diagnostic = _config_diagnostic(day, cfg)

    chart_version = (record.chart_version if record.chart_version is not None
                     else cfg.chart_version)
    return wrap(TAG, pack_assessment(record, diagnostic, chart_version))


def _unpack_component(reader: BitReader, layout: ComponentLayout) -> ComponentResult:
    exercise = layout.table.name_for(reader.unpack(layout.table.bits))
    exempt = reader.unpack(1) == 1
    value = None if exempt else reader.unpack(layout.value_bits)
    return ComponentResult(exercise=exercise, value=value, exempt=exempt)


def _unpack_body_comp(reader: BitReader) -> BodyCompResult:
    if reader.unpack(1) == 1:
        return BodyCompResult(exempt=True)
    return BodyCompResult(
        height_inches=reader.unpack(HEIGHT_BITS) / 10,
        waist_inches=reader.unpack(WAIST_BITS) / 10,
        exempt=False,
    )


def _decode_v2(payload: bytes) -> AssessmentRecord:
    reader = BitReader(payload)

    schema_version = reader.unpack(VERSION_BITS)
    chart_version = reader.unpack(CHART_BITS)
    date_days = reader.unpack(DATE_BITS)
    diagnostic = reader.unpack(1) == 1

    if schema_version > SCHEMA_VERSION:
        raise VersionError('S-code', schema_version, SCHEMA_VERSION)

    present = [reader.unpack(1) == 1 for _ in range(4)]

    components = [
        _unpack_component(reader, layout) if has else None
        for layout, has in zip(COMPONENT_LAYOUTS, present[:3])
    ]
    body_comp = _unpack_body_comp(reader) if present[3] else None

    return AssessmentRecord(
        date=EPOCH_DATE + timedelta(days=date_days),
        is_diagnostic=diagnostic,
        schema_version=schema_version,
        chart_version=chart_version,
        cardio=components[0],
        strength=components[1],
        core=components[2],
        body_comp=body_comp,
    )


def _legacy_component(raw, table: ExerciseTable) -> Optional[ComponentResult]:
    if raw is None:
        return None
    result = ComponentResult.from_dict(raw)
    result.exercise = table.name_for(table.code_for(result.exercise))
    if result.exempt:
        result.value = None
    elif result.value is not None:
        result.value = _round_half_up(float(result.value))
    return result


def _legacy_body_comp(raw) -> Optional[BodyCompResult]:
    if raw is None:
        return None
    body = BodyCompResult.from_dict(raw)
    if body.exempt:
        body.height_inches = body.waist_inches = None
        return body
    if body.height_inches is None or body.waist_inches is None:
        raise DecodeError("Invalid legacy S-code: bodyComp height and waist missing")
    body.height_inches = _legacy_measurement(body.height_inches, 'height')
    body.waist_inches = _legacy_measurement(body.waist_inches, 'waist')
    return body


def _legacy_measurement(value, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Invalid legacy S-code: {label} must be numeric, got {value!r}")
    number = float(value)
    if not math.isfinite(number) or number < 0:
        raise DecodeError(f"Invalid legacy S-code: {label} out of range: {value!r}")
    return number


def _legacy_chart_version(raw) -> int:
    if raw is None:
        return 0
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise DecodeError(f"Invalid legacy S-code chart version: {raw!r}")
    if not 0 <= raw < (1 << CHART_BITS):
        raise DecodeError(f"Invalid legacy S-code chart version: {raw}")
    return raw


def _decode_v1(payload: bytes) -> AssessmentRecord:
    if len(payload) > LEGACY_MAX_PAYLOAD:
        raise LengthError(
            f"Invalid legacy S-code: payload is {len(payload)} bytes "
            f"(max {LEGACY_MAX_PAYLOAD})"
        )
    try:
        data = json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise DecodeError(f"Invalid legacy S-code payload: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError("Invalid legacy S-code payload: expected an object")

    version = data.get('schemaVersion', data.get('v', LEGACY_SCHEMA_VERSION))
    if not isinstance(version, int) or isinstance(version, bool):
        raise DecodeError(f"Invalid legacy S-code version: {version!r}")
    if version > LEGACY_SCHEMA_VERSION:
        raise VersionError('S-code', version, LEGACY_SCHEMA_VERSION)

    try:
        day = coerce_date(data.get('date'))
        if day is None:
            raise DecodeError("Invalid legacy S-code: missing date")
        return AssessmentRecord(
            date=day,
            is_diagnostic=coerce_flag(data.get('isDiagnostic'), 'isDiagnostic'),
            schema_version=version,
            chart_version=_legacy_chart_version(data.get('chartVersion', 0)),
            cardio=_legacy_component(data.get('cardio'), CARDIO_EXERCISES),
            strength=_legacy_component(data.get('strength'), STRENGTH_EXERCISES),
            core=_legacy_component(data.get('core'), CORE_EXERCISES),
            body_comp=_legacy_body_comp(data.get('bodyComp')),
        )
    except DecodeError:
        raise
    except (AttributeError, TypeError, ValueError, OverflowError) as e:
        raise DecodeError(f"Invalid legacy S-code record: {e}") from e


PAYLOAD_DECODERS = MappingProxyType({
    TAG: _decode_v2,
    LEGACY_TAG: _decode_v1,
})


def decode_scode(text: str) -> AssessmentRecord:
    """Decode an S1 or S2 code to an AssessmentRecord."""
    envelope = unwrap(text, PAYLOAD_DECODERS.keys())
    return PAYLOAD_DECODERS[envelope.format_tag](envelope.payload)


def is_valid_scode(text: str) -> bool:
    """True if text decodes as an S-code."""
    try:
        decode_scode(text)
        return True
    except Exception as e:
        logger.debug("Rejected S-code: %s", e)
        return False
