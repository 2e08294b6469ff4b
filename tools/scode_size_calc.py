#!/usr/bin/env python3
"""
scode_size_calc.py - S2 payload sizes for every component combination.

Each of the four components can be absent, present-exempt or
present-with-values, giving 3^4 = 81 layouts. For each one this reports
the bit count, data bytes, framed bytes (with CRC) and code length, and
compares it with the legacy S1 JSON form of the same record.

Usage:
    python tools/scode_size_calc.py
    python tools/scode_size_calc.py --json
"""

import argparse
import itertools
import json
import sys
from typing import Any, Dict, List

from code_crc8 import append_crc8
from code_base64 import encode_base64url
from scode import (
    BODY_COMP_BITS, COMPONENT_LAYOUTS, HEADER_BITS, LEGACY_TAG, PREFIX,
)

ABSENT, EXEMPT, SCORED = 'absent', 'exempt', 'scored'
STATES = (ABSENT, EXEMPT, SCORED)
COMPONENT_NAMES = [layout.name for layout in COMPONENT_LAYOUTS] + ['bodyComp']

# Worst-case legacy values, used only for the S1 comparison
_LEGACY_SAMPLE = {
    'cardio': {'exercise': '2mile_run', 'value': 1111},
    'strength': {'exercise': 'pushups', 'value': 45},
    'core': {'exercise': 'situps', 'value': 48},
    'bodyComp': {'heightInches': 72.5, 'waistInches': 36.5},
}


def code_length(data_bytes: int) -> int:
    """Characters in an S2 code carrying data_bytes of payload."""
    framed = data_bytes + 1
    return len(PREFIX) + (framed * 8 + 5) // 6


def layout_bits(states: Dict[str, str]) -> int:
    """Bit count of an S2 payload for the given component states."""
    bits = HEADER_BITS
    for layout in COMPONENT_LAYOUTS:
        state = states[layout.name]
        if state != ABSENT:
            bits += layout.bits(exempt=(state == EXEMPT))
    body = states['bodyComp']
    if body == EXEMPT:
        bits += 1
    elif body == SCORED:
        bits += BODY_COMP_BITS
    return bits


def legacy_length(states: Dict[str, str]) -> int:
    """Characters in the S1 (JSON) code of an equivalent record."""
    record: Dict[str, Any] = {
        'schemaVersion': 1, 'chartVersion': 0,
        'date': '2025-09-15', 'isDiagnostic': False,
    }
    for name in COMPONENT_NAMES:
        state = states[name]
        if state == EXEMPT:
            record[name] = {'exempt': True}
        elif state == SCORED:
            record[name] = dict(_LEGACY_SAMPLE[name], exempt=False)
    payload = json.dumps(record, separators=(',', ':')).encode('utf-8')
    return len(LEGACY_TAG) + 1 + len(encode_base64url(append_crc8(payload)))


def enumerate_layouts() -> List[Dict[str, Any]]:
    rows = []
    for combo in itertools.product(STATES, repeat=len(COMPONENT_NAMES)):
        states = dict(zip(COMPONENT_NAMES, combo))
        bits = layout_bits(states)
        data_bytes = (bits + 7) // 8
        s2_len = code_length(data_bytes)
        s1_len = legacy_length(states)
        rows.append({
            'states': states,
            'bits': bits,
            'data_bytes': data_bytes,
            'framed_bytes': data_bytes + 1,
            'code_length': s2_len,
            'legacy_length': s1_len,
            'reduction': 1 - s2_len / s1_len,
        })
    return rows


def print_table(rows: List[Dict[str, Any]]) -> None:
    print(f"┌{'─'*34}┬{'─'*6}┬{'─'*7}┬{'─'*6}┬{'─'*6}┬{'─'*8}┐")
    print(f"│ {'cardio/strength/core/body':^32} │ {'bits':^4} │ {'bytes':^5} │ "
          f"{'S2':^4} │ {'S1':^4} │ {'saved':^6} │")
    print(f"├{'─'*34}┼{'─'*6}┼{'─'*7}┼{'─'*6}┼{'─'*6}┼{'─'*8}┤")
    for row in rows:
        states = '/'.join(row['states'][n] for n in COMPONENT_NAMES)
        print(f"│ {states:<32} │ {row['bits']:>4} │ {row['framed_bytes']:>5} │ "
              f"{row['code_length']:>4} │ {row['legacy_length']:>4} │ "
              f"{row['reduction']:>6.0%} │")
    print(f"└{'─'*34}┴{'─'*6}┴{'─'*7}┴{'─'*6}┴{'─'*6}┴{'─'*8}┘")

    data_sizes = [r['data_bytes'] for r in rows]
    reductions = [r['reduction'] for r in rows]
    print()
    print(f"Data bytes: {min(data_sizes)}..{max(data_sizes)} (+1 CRC)")
    print(f"Code length: {min(r['code_length'] for r in rows)}.."
          f"{max(r['code_length'] for r in rows)} chars")
    print(f"Size reduction vs S1: {min(reductions):.0%}..{max(reductions):.0%}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Calculate S2 code sizes for all component combinations'
    )
    parser.add_argument('-j', '--json', action='store_true', help='Output as JSON')
    args = parser.parse_args(argv)

    rows = enumerate_layouts()
    if args.json:
        print(json.dumps(rows, indent=2))
    else:
        print_table(rows)
    return 0


if __name__ == '__main__':
    sys.exit(main())
