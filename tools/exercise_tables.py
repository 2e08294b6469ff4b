#!/usr/bin/env python3
"""
exercise_tables.py - Exercise name <-> code enumerations

Each component carries its exercise choice as a small integer. The
tables are fixed at import and must never be reordered: the codes are
part of the S2 wire format.

    Component   Bits  Codes
    cardio        2   2mile_run=0  hamr=1  2km_walk=2
    strength      1   pushups=0    hrpu=1
    core          2   situps=0     clrc=1  plank=2

Lookups never raise. An unknown name encodes as code 0 and an unknown
code decodes to the table's first (canonical) exercise.
"""

import logging
from types import MappingProxyType
from typing import Dict, Mapping

logger = logging.getLogger(__name__)


class ExerciseTable:
    """Immutable bidirectional mapping for one component type."""

    def __init__(self, component: str, bits: int, codes: Dict[str, int]):
        if max(codes.values()) >= (1 << bits):
            raise ValueError(f"{component}: codes do not fit in {bits} bits")
        self.component = component
        self.bits = bits
        self.codes: Mapping[str, int] = MappingProxyType(dict(codes))
        self.names: Mapping[int, str] = MappingProxyType(
            {v: k for k, v in codes.items()}
        )
        self.default_code = min(self.names)
        self.default_name = self.names[self.default_code]

    def code_for(self, name: str) -> int:
        code = self.codes.get(name)
        if code is None:
            logger.debug("Unknown %s exercise %r, using %r",
                         self.component, name, self.default_name)
            return self.default_code
        return code

    def name_for(self, code: int) -> str:
        name = self.names.get(code)
        if name is None:
            logger.debug("Unknown %s exercise code %d, using %r",
                         self.component, code, self.default_name)
            return self.default_name
        return name

    def __contains__(self, name: str) -> bool:
        return name in self.codes

    def __repr__(self) -> str:
        return f"ExerciseTable({self.component!r}, bits={self.bits}, {dict(self.codes)})"


CARDIO_EXERCISES = ExerciseTable('cardio', 2, {
    '2mile_run': 0,
    'hamr': 1,
    '2km_walk': 2,
})

STRENGTH_EXERCISES = ExerciseTable('strength', 1, {
    'pushups': 0,
    'hrpu': 1,
})

CORE_EXERCISES = ExerciseTable('core', 2, {
    'situps': 0,
    'clrc': 1,
    'plank': 2,
})

EXERCISE_TABLES = MappingProxyType({
    'cardio': CARDIO_EXERCISES,
    'strength': STRENGTH_EXERCISES,
    'core': CORE_EXERCISES,
})
