"""
Tests for config loading, the code envelope, and the command-line tools.
"""

import json
import pytest
import sys
from datetime import date
from pathlib import Path

import yaml

# Add tools to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

import code_config
from code_config import (
    CodecConfig, config_from_dict, get_config, is_diagnostic_period, load_config,
)
from code_envelope import CodeEnvelope, inspect_code, split_tag, unwrap, wrap
from code_errors import FormatError, IntegrityError
from dcode import encode_dcode
from fitness_code import main as cli_main
from fuzz_codes import CodeFuzzer
from scode import encode_scode
from scode_size_calc import code_length, enumerate_layouts, layout_bits


class TestCodecConfig:
    """Tests for YAML-backed codec config."""

    def test_defaults(self):
        config = CodecConfig()
        assert config.chart_version == 0
        assert config.diagnostic_periods == ((date(2025, 9, 1), date(2026, 2, 28)),)

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "codec.yaml"
        path.write_text(
            "chart_version: 2\n"
            "diagnostic_periods:\n"
            "  - start: 2027-01-01\n"
            "    end: 2027-06-30\n"
            "  - {start: '2028-01-01', end: '2028-01-31'}\n"
        )
        config = load_config(path)
        assert config.chart_version == 2
        assert config.diagnostic_periods == (
            (date(2027, 1, 1), date(2027, 6, 30)),
            (date(2028, 1, 1), date(2028, 1, 31)),
        )
        assert is_diagnostic_period('2028-01-15', config)
        assert not is_diagnostic_period('2025-10-01', config)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == CodecConfig()

    @pytest.mark.parametrize("data", [
        {'chart_version': 16},
        {'chart_version': -1},
        {'diagnostic_periods': [{'start': '2025-01-01'}]},
        {'diagnostic_periods': [{'start': '2025-02-01', 'end': '2025-01-01'}]},
        {'diagnostic_periods': [{'start': '', 'end': '2025-01-01'}]},
        {'diagnostic_periods': [{'start': '2025-01-01', 'end': None}]},
        ['not', 'a', 'mapping'],
    ])
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            config_from_dict(data)

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text(yaml.safe_dump({'chart_version': 7}))
        monkeypatch.setenv(code_config.CONFIG_ENV_VAR, str(path))
        assert get_config().chart_version == 7

    def test_is_diagnostic_period_default(self):
        assert is_diagnostic_period(date(2025, 12, 25))
        assert not is_diagnostic_period(date(2026, 3, 1))
        assert not is_diagnostic_period(None)


class TestEnvelope:
    """Tests for the shared prefix/base64url/CRC envelope."""

    def test_wrap_unwrap(self):
        code = wrap('S2', b"\x01\x02\x03")
        envelope = unwrap(code, ('S2',))
        assert isinstance(envelope, CodeEnvelope)
        assert envelope.format_tag == 'S2'
        assert envelope.prefix == 'S2-'
        assert envelope.payload == b"\x01\x02\x03"

    def test_body_may_contain_separator(self):
        """'-' is part of the base64url alphabet; only the first one splits."""
        code = wrap('S2', b"\xfb\xff\xfe")
        assert code.count('-') > 1
        assert unwrap(code, ('S2',)).payload == b"\xfb\xff\xfe"

    def test_split_tag(self):
        assert split_tag("D1-AAAA") == 'D1'
        with pytest.raises(FormatError):
            split_tag("nodash")

    def test_unaccepted_tag(self):
        with pytest.raises(FormatError, match="S2-"):
            unwrap(wrap('D1', b"\x00\x00\x00"), ('S2',))

    def test_crc_checked(self):
        code = wrap('S2', b"\x10\x20")  # 3 framed bytes, no filler bits
        with pytest.raises(IntegrityError):
            unwrap(code[:-1] + ('A' if code[-1] != 'A' else 'B'), ('S2',))

    def test_inspect_valid(self, full_assessment):
        info = inspect_code(encode_scode(full_assessment))
        assert info['valid_envelope'] is True
        assert info['format'] == 'S2'
        assert info['payload_bytes'] == 11
        assert info['total_bytes'] == 12
        assert info['length'] == 19
        assert len(info['payload_hex']) == 22

    def test_inspect_invalid(self):
        info = inspect_code("S2-")
        assert info['valid_envelope'] is False
        assert info['error_type'] == 'IntegrityError'


class TestSizeCalc:
    """Tests for the S2 size table."""

    def test_all_layouts(self):
        rows = enumerate_layouts()
        assert len(rows) == 81
        sizes = [r['data_bytes'] for r in rows]
        assert min(sizes) == 4
        assert max(sizes) == 11

    def test_full_layout_bits(self):
        states = {'cardio': 'scored', 'strength': 'scored', 'core': 'scored',
                  'bodyComp': 'scored'}
        assert layout_bits(states) == 87

    def test_code_length_matches_encoder(self, full_assessment):
        assert code_length(11) == len(encode_scode(full_assessment))
        assert code_length(4) == len(encode_scode({'date': '2024-01-01'}))

    def test_reduction_vs_legacy(self):
        for row in enumerate_layouts():
            assert row['code_length'] < row['legacy_length']
            assert row['reduction'] > 0.5


class TestFuzzer:
    """The fuzz harness finds no untyped decoder errors."""

    @pytest.mark.slow
    def test_no_crashes(self):
        stats = CodeFuzzer(seed=1234).run(2000)
        assert stats.total_inputs == 2000
        assert stats.crashes == 0, stats.crash_inputs[:5]

    def test_reproducible(self):
        a = CodeFuzzer(seed=42).run(200)
        b = CodeFuzzer(seed=42).run(200)
        assert (a.decode_success, a.decode_error) == (b.decode_success, b.decode_error)


class TestCli:
    """Tests for the fitness_code command line."""

    def test_encode_s_yaml(self, tmp_path, capsys, full_assessment):
        path = tmp_path / "assessment.yaml"
        path.write_text(yaml.safe_dump(full_assessment))
        assert cli_main(['encode-s', str(path), '-q']) == 0
        assert capsys.readouterr().out.strip() == encode_scode(full_assessment)

    def test_encode_s_json(self, tmp_path, capsys, full_assessment):
        path = tmp_path / "assessment.json"
        path.write_text(json.dumps(full_assessment))
        assert cli_main(['encode-s', str(path)]) == 0
        captured = capsys.readouterr()
        assert captured.out.strip() == encode_scode(full_assessment)
        assert "Length: 19" in captured.err

    def test_encode_s_missing_file(self, tmp_path, capsys):
        assert cli_main(['encode-s', str(tmp_path / "nope.yaml")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_encode_d(self, capsys):
        assert cli_main(['encode-d', '--dob', '1990-05-20', '--gender', 'F']) == 0
        assert capsys.readouterr().out.strip() == encode_dcode('1990-05-20', 'F')

    def test_encode_d_out_of_range(self):
        assert cli_main(['encode-d', '--dob', '1900-01-01', '--gender', 'F']) == 1

    def test_decode_scode_json(self, capsys, full_assessment):
        assert cli_main(['decode', encode_scode(full_assessment), '--json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['date'] == '2025-09-15'
        assert data['strength'] == {'exercise': 'pushups', 'value': 45, 'exempt': False}

    def test_decode_dcode_yaml(self, capsys):
        assert cli_main(['decode', encode_dcode('1990-05-20', 'M')]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert data == {'dob': '1990-05-20', 'gender': 'M', 'schemaVersion': 1}

    def test_decode_invalid(self):
        assert cli_main(['decode', 'S2-%%%%']) == 1

    def test_validate(self, capsys, full_assessment):
        good = encode_scode(full_assessment)
        assert cli_main(['validate', good, encode_dcode('1990-05-20', 'F')]) == 0
        assert cli_main(['validate', good, 'S2-AAAB', 'junk']) == 1
        out = capsys.readouterr().out
        assert f"valid: {good}" in out
        assert "invalid: junk" in out

    def test_info(self, capsys, full_assessment):
        assert cli_main(['info', encode_scode(full_assessment)]) == 0
        out = capsys.readouterr().out
        assert "Format: S2" in out
        assert "Payload: 11 bytes" in out

    def test_config_option(self, tmp_path, capsys):
        cfg = tmp_path / "codec.yaml"
        cfg.write_text("chart_version: 4\n")
        record = tmp_path / "assessment.yaml"
        record.write_text("date: 2024-05-05\n")
        assert cli_main(['--config', str(cfg), 'encode-s', str(record), '-q']) == 0
        code = capsys.readouterr().out.strip()
        assert cli_main(['decode', code, '--json']) == 0
        assert json.loads(capsys.readouterr().out)['chartVersion'] == 4
