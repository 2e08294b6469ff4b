#!/usr/bin/env python3
"""
code_types.py - Record types shared by the S-code and D-code codecs

Records are plain dataclasses. They convert to and from dicts using the
camelCase keys the scoring layer works with:

    {
        'date': '2025-09-15',
        'isDiagnostic': True,
        'cardio': {'exercise': '2mile_run', 'value': 1111, 'exempt': False},
        'strength': {'exercise': 'pushups', 'value': 45, 'exempt': False},
        'core': {'exercise': 'situps', 'value': 48, 'exempt': False},
        'bodyComp': {'heightInches': 72, 'waistInches': 36, 'exempt': False},
    }

snake_case keys (body_comp, height_inches, ...) are accepted on input.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from code_errors import RangeError

DateLike = Union[date, datetime, str]


class Gender(str, Enum):
    MALE = 'M'
    FEMALE = 'F'


_GENDER_ALIASES = {
    'M': Gender.MALE,
    'MALE': Gender.MALE,
    'F': Gender.FEMALE,
    'FEMALE': Gender.FEMALE,
}


def coerce_date(value: Optional[DateLike]) -> Optional[date]:
    """Normalize a date, datetime or ISO string to a date (day granularity)."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as e:
            raise RangeError(f"Invalid date: {value!r}") from e
    raise RangeError(f"Invalid date type: {type(value).__name__}")


def coerce_gender(value: Optional[Union[Gender, str]]) -> Optional[Gender]:
    if value is None or value == '':
        return None
    if isinstance(value, Gender):
        return value
    gender = _GENDER_ALIASES.get(str(value).strip().upper())
    if gender is None:
        raise RangeError(f"Invalid gender: {value!r}")
    return gender


_FLAG_STRINGS = {'true': True, 'false': False}


def coerce_flag(value: Any, label: str = 'flag') -> bool:
    """Accept a real bool (or 0/1, 'true'/'false'); None means False."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _FLAG_STRINGS:
        return _FLAG_STRINGS[value.strip().lower()]
    raise RangeError(f"Invalid {label} flag: {value!r}")


def _get(d: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in d:
            return d[key]
    return default


@dataclass
class ComponentResult:
    """Cardio, strength or core result. value is None iff exempt."""
    exercise: str
    value: Optional[int] = None
    exempt: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {'exercise': self.exercise, 'value': self.value, 'exempt': self.exempt}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ComponentResult':
        return cls(
            exercise=d.get('exercise', ''),
            value=d.get('value'),
            exempt=coerce_flag(d.get('exempt'), 'exempt'),
        )


@dataclass
class BodyCompResult:
    """Height and waist in inches; stored on the wire in tenths."""
    height_inches: Optional[float] = None
    waist_inches: Optional[float] = None
    exempt: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'heightInches': self.height_inches,
            'waistInches': self.waist_inches,
            'exempt': self.exempt,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'BodyCompResult':
        return cls(
            height_inches=_get(d, 'heightInches', 'height_inches'),
            waist_inches=_get(d, 'waistInches', 'waist_inches'),
            exempt=coerce_flag(d.get('exempt'), 'exempt'),
        )


def _component(value, cls):
    if value is None or isinstance(value, cls):
        return value
    return cls.from_dict(value)


@dataclass
class AssessmentRecord:
    """A self-assessment as carried by an S-code."""
    date: Optional[DateLike] = None
    is_diagnostic: bool = False
    schema_version: int = 2
    chart_version: Optional[int] = None
    cardio: Optional[ComponentResult] = None
    strength: Optional[ComponentResult] = None
    core: Optional[ComponentResult] = None
    body_comp: Optional[BodyCompResult] = None

    def __post_init__(self):
        self.cardio = _component(self.cardio, ComponentResult)
        self.strength = _component(self.strength, ComponentResult)
        self.core = _component(self.core, ComponentResult)
        self.body_comp = _component(self.body_comp, BodyCompResult)

    def to_dict(self) -> Dict[str, Any]:
        d = coerce_date(self.date)
        return {
            'date': d.isoformat() if d else None,
            'isDiagnostic': self.is_diagnostic,
            'schemaVersion': self.schema_version,
            'chartVersion': self.chart_version,
            'cardio': self.cardio.to_dict() if self.cardio else None,
            'strength': self.strength.to_dict() if self.strength else None,
            'core': self.core.to_dict() if self.core else None,
            'bodyComp': self.body_comp.to_dict() if self.body_comp else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'AssessmentRecord':
        return cls(
            date=d.get('date'),
            is_diagnostic=coerce_flag(_get(d, 'isDiagnostic', 'is_diagnostic'), 'isDiagnostic'),
            schema_version=_get(d, 'schemaVersion', 'schema_version', default=2),
            chart_version=_get(d, 'chartVersion', 'chart_version'),
            cardio=d.get('cardio'),
            strength=d.get('strength'),
            core=d.get('core'),
            body_comp=_get(d, 'bodyComp', 'body_comp'),
        )


@dataclass
class DemographicsRecord:
    """Date of birth and gender as carried by a D-code."""
    dob: Optional[DateLike] = None
    gender: Optional[Gender] = None
    schema_version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        d = coerce_date(self.dob)
        gender = coerce_gender(self.gender)
        return {
            'dob': d.isoformat() if d else None,
            'gender': gender.value if gender else None,
            'schemaVersion': self.schema_version,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'DemographicsRecord':
        return cls(
            dob=d.get('dob'),
            gender=d.get('gender'),
            schema_version=_get(d, 'schemaVersion', 'schema_version', default=1),
        )
