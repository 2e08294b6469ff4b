#!/usr/bin/env python3
"""
fitness_code.py - Encode/decode fitness S-codes and D-codes

Usage:
  # Encode an assessment (YAML or JSON) to an S-code
  python fitness_code.py encode-s assessment.yaml
  python fitness_code.py encode-s assessment.json -q

  # Encode demographics to a D-code
  python fitness_code.py encode-d --dob 1990-05-20 --gender F

  # Decode any code (prefix selects the format)
  python fitness_code.py decode S2-...
  python fitness_code.py decode D1-... --json

  # Check codes
  python fitness_code.py validate S2-... D1-...

  # Envelope details
  python fitness_code.py info S2-...

Assessment file example:
  date: 2025-09-15
  cardio: {exercise: 2mile_run, value: 1111}
  strength: {exercise: pushups, value: 45}
  core: {exercise: situps, value: 48}
  bodyComp: {heightInches: 72, waistInches: 36}
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from code_config import load_config, set_config
from code_envelope import inspect_code, split_tag
from code_errors import CodeError
from dcode import TAG as DCODE_TAG, decode_dcode, encode_dcode, is_valid_dcode
from scode import decode_scode, encode_scode, is_valid_scode

logger = logging.getLogger('fitness_code')


def load_record(path: Path) -> dict:
    """Read an assessment record from a YAML or JSON file."""
    content = path.read_text()
    if path.suffix == '.json':
        data = json.loads(content)
    else:
        data = yaml.safe_load(content)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data


def decode_any(code: str):
    """Decode a code of any known format."""
    if split_tag(code) == DCODE_TAG:
        return decode_dcode(code)
    return decode_scode(code)


def is_valid_code(code: str) -> bool:
    try:
        tag = split_tag(code)
    except CodeError:
        return False
    if tag == DCODE_TAG:
        return is_valid_dcode(code)
    return is_valid_scode(code)


def dump(data: dict, as_json: bool) -> str:
    if as_json:
        return json.dumps(data, indent=2)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Encode/decode fitness S-codes and D-codes'
    )
    parser.add_argument('-c', '--config', type=Path, help='Codec config (YAML)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    enc_s = subparsers.add_parser('encode-s', help='Encode assessment to S-code')
    enc_s.add_argument('input', type=Path, help='Assessment file (YAML/JSON)')
    enc_s.add_argument('-q', '--quiet', action='store_true', help='Only output the code')

    enc_d = subparsers.add_parser('encode-d', help='Encode demographics to D-code')
    enc_d.add_argument('--dob', required=True, help='Date of birth (YYYY-MM-DD)')
    enc_d.add_argument('--gender', required=True, help='M or F')

    dec = subparsers.add_parser('decode', help='Decode an S-code or D-code')
    dec.add_argument('code', help='Code string')
    dec.add_argument('-j', '--json', action='store_true', help='Output as JSON')

    val = subparsers.add_parser('validate', help='Check one or more codes')
    val.add_argument('codes', nargs='+', help='Code strings')

    inf = subparsers.add_parser('info', help='Show envelope details of a code')
    inf.add_argument('code', help='Code string')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    if args.config:
        set_config(load_config(args.config))

    try:
        if args.command == 'encode-s':
            if not args.input.exists():
                print(f"Error: {args.input} not found", file=sys.stderr)
                return 1
            code = encode_scode(load_record(args.input))
            if not args.quiet:
                print(f"# Length: {len(code)} chars", file=sys.stderr)
            print(code)

        elif args.command == 'encode-d':
            print(encode_dcode(args.dob, args.gender))

        elif args.command == 'decode':
            record = decode_any(args.code)
            print(dump(record.to_dict(), args.json))

        elif args.command == 'validate':
            invalid = 0
            for code in args.codes:
                ok = is_valid_code(code)
                invalid += not ok
                print(f"{'valid' if ok else 'invalid'}: {code}")
            return 1 if invalid else 0

        elif args.command == 'info':
            info = inspect_code(args.code)
            print(f"Format: {info.get('format', 'unknown')}")
            print(f"Valid envelope: {info['valid_envelope']}")
            print(f"Length: {info['length']} chars")
            if info['valid_envelope']:
                print(f"Payload: {info['payload_bytes']} bytes + CRC {info['crc']}")
                print(f"Payload hex: {info['payload_hex']}")
            else:
                print(f"Error: {info['error_type']}: {info['error']}")
            return 0 if info['valid_envelope'] else 1

    except (CodeError, ValueError) as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
