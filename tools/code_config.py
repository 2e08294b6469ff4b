#!/usr/bin/env python3
"""
code_config.py - Codec settings loaded from YAML

Example config file:

    chart_version: 0
    diagnostic_periods:
      - start: 2025-09-01
        end: 2026-02-28

chart_version identifies the scoring chart an S-code was taken against
(4 bits on the wire). diagnostic_periods lists inclusive date windows in
which assessments are diagnostic; S-codes carry that as one flag bit.

get_config() returns the default config, or the file named by the
FITNESS_CODE_CONFIG environment variable, loaded once per process.
"""

import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml

from code_types import coerce_date, DateLike

CONFIG_ENV_VAR = 'FITNESS_CODE_CONFIG'

# v2025_sep provisional chart
DEFAULT_CHART_VERSION = 0
DEFAULT_DIAGNOSTIC_PERIODS = [(date(2025, 9, 1), date(2026, 2, 28))]


@dataclass(frozen=True)
class CodecConfig:
    chart_version: int = DEFAULT_CHART_VERSION
    diagnostic_periods: Tuple[Tuple[date, date], ...] = field(
        default_factory=lambda: tuple(DEFAULT_DIAGNOSTIC_PERIODS)
    )

    def __post_init__(self):
        if not 0 <= self.chart_version <= 15:
            raise ValueError(f"chart_version must be 0..15, got {self.chart_version}")
        for start, end in self.diagnostic_periods:
            if start > end:
                raise ValueError(f"Diagnostic period starts after it ends: {start} > {end}")


def _parse_periods(raw: List[dict]) -> Tuple[Tuple[date, date], ...]:
    periods = []
    for i, entry in enumerate(raw or []):
        if not isinstance(entry, dict) or 'start' not in entry or 'end' not in entry:
            raise ValueError(f"diagnostic_periods[{i}] needs 'start' and 'end'")
        start, end = coerce_date(entry['start']), coerce_date(entry['end'])
        if start is None or end is None:
            raise ValueError(f"diagnostic_periods[{i}] 'start' and 'end' must be dates")
        periods.append((start, end))
    return tuple(periods)


def config_from_dict(data: dict) -> CodecConfig:
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping")
    kwargs = {}
    if 'chart_version' in data:
        kwargs['chart_version'] = int(data['chart_version'])
    if 'diagnostic_periods' in data:
        kwargs['diagnostic_periods'] = _parse_periods(data['diagnostic_periods'])
    return CodecConfig(**kwargs)


def load_config(path: Union[str, Path]) -> CodecConfig:
    """Load a CodecConfig from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return config_from_dict(data)


_config: Optional[CodecConfig] = None


def get_config() -> CodecConfig:
    global _config
    if _config is None:
        path = os.environ.get(CONFIG_ENV_VAR)
        _config = load_config(path) if path else CodecConfig()
    return _config


def set_config(config: Optional[CodecConfig]) -> None:
    """Replace the process-wide config (None reverts to lazy loading)."""
    global _config
    _config = config


def is_diagnostic_period(d: DateLike, config: Optional[CodecConfig] = None) -> bool:
    """True if d falls inside any configured diagnostic window."""
    day = coerce_date(d)
    if day is None:
        return False
    cfg = config or get_config()
    return any(start <= day <= end for start, end in cfg.diagnostic_periods)
