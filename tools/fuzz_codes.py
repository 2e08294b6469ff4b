#!/usr/bin/env python3
"""
fuzz_codes.py - Fuzz test the S-code and D-code decoders

Decoders must reject every malformed code with a CodeError subclass.
Any other exception is counted as a crash.

Usage:
    python tools/fuzz_codes.py                     # 10000 inputs
    python tools/fuzz_codes.py --iterations 50000
    python tools/fuzz_codes.py --seed 12345        # Reproducible
"""

import argparse
import random
import string
import sys
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from code_base64 import encode_base64url, decode_base64url
from code_errors import CodeError
from dcode import decode_dcode, encode_dcode
from scode import decode_scode, encode_scode

BASE64URL_CHARS = string.ascii_letters + string.digits + '-_'
PREFIXES = ('S2-', 'S1-', 'D1-', 'S3-', 'D2-', 's2-', '', '-')

SEED_RECORDS = [
    {'date': '2025-09-15',
     'cardio': {'exercise': '2mile_run', 'value': 1111, 'exempt': False},
     'strength': {'exercise': 'pushups', 'value': 45, 'exempt': False},
     'core': {'exercise': 'situps', 'value': 48, 'exempt': False},
     'bodyComp': {'heightInches': 72, 'waistInches': 36, 'exempt': False}},
    {'date': '2026-03-02',
     'cardio': {'exercise': 'hamr', 'value': 62, 'exempt': False},
     'core': {'exercise': 'plank', 'value': 95, 'exempt': False}},
    {'date': '2024-01-01',
     'strength': {'exercise': 'hrpu', 'exempt': True},
     'bodyComp': {'exempt': True}},
    {'date': '2020-01-01'},
]

SEED_DEMOGRAPHICS = [('1990-05-20', 'F'), ('1975-12-31', 'M'), ('1950-01-01', 'M')]


@dataclass
class FuzzStats:
    """Statistics from a fuzz run."""
    total_inputs: int = 0
    decode_success: int = 0
    decode_error: int = 0
    crashes: int = 0
    duration_sec: float = 0.0
    seed: int = 0
    crash_inputs: List[str] = field(default_factory=list)

    @property
    def inputs_per_sec(self) -> float:
        if self.duration_sec > 0:
            return self.total_inputs / self.duration_sec
        return 0.0


class CodeFuzzer:
    """Feeds random and mutated codes to both decoders."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed if seed is not None else random.randint(0, 2**32)
        self.rng = random.Random(self.seed)
        self.stats = FuzzStats(seed=self.seed)
        self.valid_codes = [encode_scode(r) for r in SEED_RECORDS]
        self.valid_codes += [encode_dcode(dob, g) for dob, g in SEED_DEMOGRAPHICS]

    def generate_random_text(self, max_len: int = 30) -> str:
        """Random base64url body behind a random prefix."""
        body = ''.join(self.rng.choice(BASE64URL_CHARS)
                       for _ in range(self.rng.randint(0, max_len)))
        return self.rng.choice(PREFIXES) + body

    def generate_garbage(self, max_len: int = 30) -> str:
        """Arbitrary printable text, including non-alphabet characters."""
        return ''.join(self.rng.choice(string.printable)
                       for _ in range(self.rng.randint(0, max_len)))

    def _split(self, code: str):
        tag, _, body = code.partition('-')
        return tag + '-', decode_base64url(body)

    def generate_bitflip(self, code: str) -> str:
        """Flip random bits in the framed bytes of a valid code."""
        prefix, data = self._split(code)
        data = bytearray(data)
        for _ in range(self.rng.randint(1, 3)):
            pos = self.rng.randint(0, len(data) - 1)
            data[pos] ^= 1 << self.rng.randint(0, 7)
        return prefix + encode_base64url(bytes(data))

    def generate_truncated(self, code: str) -> str:
        return code[:self.rng.randint(0, len(code) - 1)]

    def generate_extended(self, code: str) -> str:
        extra = ''.join(self.rng.choice(BASE64URL_CHARS)
                        for _ in range(self.rng.randint(1, 8)))
        return code + extra

    def generate_char_swap(self, code: str) -> str:
        """Replace one character of the base64url body."""
        pos = self.rng.randint(3, len(code) - 1)
        return code[:pos] + self.rng.choice(BASE64URL_CHARS) + code[pos + 1:]

    def generate_prefix_swap(self, code: str) -> str:
        return self.rng.choice(PREFIXES) + code.partition('-')[2]

    def fuzz_one(self, text: str) -> bool:
        """
        Run one input through both decoders.
        Returns True if both handled it safely, False on crash.
        """
        self.stats.total_inputs += 1
        safe = True
        for decoder in (decode_scode, decode_dcode):
            try:
                decoder(text)
                self.stats.decode_success += 1
            except CodeError:
                self.stats.decode_error += 1
            except Exception:
                safe = False
        if not safe:
            self.stats.crashes += 1
            self.stats.crash_inputs.append(text)
        return safe

    def generators(self) -> List[Callable[[], str]]:
        pick = lambda: self.rng.choice(self.valid_codes)
        return [
            self.generate_random_text,
            self.generate_garbage,
            lambda: self.generate_bitflip(pick()),
            lambda: self.generate_truncated(pick()),
            lambda: self.generate_extended(pick()),
            lambda: self.generate_char_swap(pick()),
            lambda: self.generate_prefix_swap(pick()),
            lambda: '',
            lambda: 'S2-',
            lambda: 'D1-',
        ]

    def run(self, iterations: int = 10000) -> FuzzStats:
        """Run a fixed number of fuzz inputs."""
        generators = self.generators()
        start_time = time.time()
        for _ in range(iterations):
            self.fuzz_one(self.rng.choice(generators)())
        self.stats.duration_sec = time.time() - start_time
        return self.stats


def print_stats(stats: FuzzStats):
    """Print fuzzing statistics."""
    print("\nCode Decoder Fuzzing Results")
    print("=" * 50)
    print(f"Seed: {stats.seed}")
    print(f"Duration: {stats.duration_sec:.1f}s")
    print(f"Total inputs: {stats.total_inputs}")
    print(f"Rate: {stats.inputs_per_sec:.0f} inputs/sec")
    print(f"Decode success: {stats.decode_success}")
    print(f"Decode errors: {stats.decode_error} (expected)")
    print(f"Crashes: {stats.crashes}")

    if stats.crashes > 0:
        print("\nCRASH INPUTS (reproducible with --seed):")
        for i, text in enumerate(stats.crash_inputs[:5]):
            print(f"  {i+1}: {text!r}")
        print("\nFAILED: Decoder raised an untyped error!")
    else:
        print("\nPASSED: No crashes detected")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Fuzz test S-code/D-code decoders')
    parser.add_argument('-n', '--iterations', type=int, default=10000,
                        help='Number of inputs (default: 10000)')
    parser.add_argument('-s', '--seed', type=int,
                        help='Random seed for reproducibility')
    args = parser.parse_args(argv)

    stats = CodeFuzzer(seed=args.seed).run(args.iterations)
    print_stats(stats)
    return 1 if stats.crashes else 0


if __name__ == '__main__':
    sys.exit(main())
