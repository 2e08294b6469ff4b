"""
pytest configuration and fixtures for the fitness code codec tests.

Provides reusable fixtures for:
- Sample assessment and demographics records
- Legacy S1 code construction (the codec itself never emits S1)
- Process-wide config isolation
- Hypothesis property-based testing configuration
"""

import json
import pytest
import sys
from pathlib import Path

# Add project paths
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from code_base64 import encode_base64url
from code_config import set_config
from code_crc8 import append_crc8

# Configure Hypothesis profiles
try:
    from hypothesis import settings, Verbosity, Phase

    # Default profile: balanced speed and coverage
    settings.register_profile(
        "default",
        max_examples=100,
        deadline=None,
    )

    # CI profile: more thorough testing
    settings.register_profile(
        "ci",
        max_examples=500,
        deadline=None,
        suppress_health_check=[],
        phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    )

    # Dev profile: fast iteration
    settings.register_profile(
        "dev",
        max_examples=10,
        deadline=None,
    )

    # Debug profile: verbose output
    settings.register_profile(
        "debug",
        max_examples=10,
        verbosity=Verbosity.verbose,
        deadline=None,
    )

    # Load profile from environment
    import os
    profile = os.environ.get("HYPOTHESIS_PROFILE", "default")
    settings.load_profile(profile)

except ImportError:
    pass  # Hypothesis not installed


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Every test starts from the built-in config, ignoring the environment."""
    monkeypatch.delenv("FITNESS_CODE_CONFIG", raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def full_assessment():
    """The reference assessment: every component scored."""
    return {
        'date': '2025-09-15',
        'cardio': {'exercise': '2mile_run', 'value': 1111, 'exempt': False},
        'strength': {'exercise': 'pushups', 'value': 45, 'exempt': False},
        'core': {'exercise': 'situps', 'value': 48, 'exempt': False},
        'bodyComp': {'heightInches': 72, 'waistInches': 36, 'exempt': False},
    }


@pytest.fixture
def make_legacy_code():
    """
    Build an S1 code from a record dict.

    Usage:
        def test_legacy(make_legacy_code):
            code = make_legacy_code({'date': '2024-03-01', ...})
    """
    def _make(record, tag='S1'):
        if isinstance(record, (dict, list)):
            payload = json.dumps(record).encode('utf-8')
        elif isinstance(record, str):
            payload = record.encode('utf-8')
        else:
            payload = bytes(record)
        return f"{tag}-{encode_base64url(append_crc8(payload))}"
    return _make


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
