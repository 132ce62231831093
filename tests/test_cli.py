"""Tests for the audiotrim CLI."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np
import pytest

from audiotrim.buffer import AudioBuffer
from audiotrim._cli import (
    build_settings,
    coerce_value,
    format_settings,
    overrides_to_dict,
    parse_override,
)
from audiotrim.__main__ import build_parser, main
from audiotrim._helpers import format_time
from audiotrim.curves import CurveKind
from audiotrim.io import read_wav, write_wav
from audiotrim.settings import default_settings


# ---------------------------------------------------------------------------
# Override token parsing
# ---------------------------------------------------------------------------


class TestParseOverride:
    def test_flat_key(self):
        assert parse_override("volume=0.5") == (["volume"], "0.5")

    def test_dotted_key(self):
        assert parse_override("fadeIn.curve=sCurve") == (["fadeIn", "curve"], "sCurve")

    def test_whitespace_stripped(self):
        assert parse_override(" cropEnd = 3 ") == (["cropEnd"], "3")

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="expected KEY=VALUE"):
            parse_override("volume")

    def test_empty_key_part(self):
        with pytest.raises(ValueError, match="Invalid override key"):
            parse_override("fadeIn..curve=x")


class TestCoerceValue:
    def test_bool(self):
        assert coerce_value("true") is True
        assert coerce_value("off") is False

    def test_int(self):
        assert coerce_value("3") == 3
        assert isinstance(coerce_value("3"), int)

    def test_float(self):
        assert coerce_value("0.25") == 0.25

    def test_string(self):
        assert coerce_value("sCurve") == "sCurve"

    def test_explicit_type(self):
        assert coerce_value("2", float) == 2.0
        assert coerce_value("yes", bool) is True


class TestOverridesToDict:
    def test_nested(self):
        d = overrides_to_dict(["volume=1.5", "fadeIn.enabled=true", "fadeIn.duration=0.2"])
        assert d == {"volume": 1.5, "fadeIn": {"enabled": True, "duration": 0.2}}

    def test_conflict(self):
        with pytest.raises(ValueError, match="Conflicting"):
            overrides_to_dict(["fadeIn=1", "fadeIn.curve=linear"])


# ---------------------------------------------------------------------------
# Settings assembly
# ---------------------------------------------------------------------------


def _edit_args(*argv):
    return build_parser().parse_args(["edit", "in.wav", *argv])


class TestBuildSettings:
    def test_defaults(self):
        s = build_settings(_edit_args(), 4.0)
        assert s == default_settings(4.0)

    def test_flags(self):
        s = build_settings(
            _edit_args(
                "--start", "0.5", "--end", "2.5", "--volume", "0.8",
                "--fade-in", "0.3", "--fade-out-curve", "sCurve",
            ),
            4.0,
        )
        assert (s.crop_start, s.crop_end, s.volume) == (0.5, 2.5, 0.8)
        assert s.fade_in.active
        assert s.fade_in.duration == 0.3
        assert not s.fade_out.enabled
        assert s.fade_out.curve is CurveKind.S_CURVE

    def test_zero_fade_disables(self):
        s = build_settings(_edit_args("--set", "fadeOut.enabled=true", "--fade-out", "0"), 4.0)
        assert not s.fade_out.enabled

    def test_flags_override_settings_file(self, tmp_path):
        p = tmp_path / "edit.json"
        p.write_text(json.dumps({"volume": 0.2, "cropEnd": 3.0}))
        s = build_settings(_edit_args("-s", str(p), "--set", "volume=0.4", "--end", "3.5"), 4.0)
        assert s.volume == 0.4
        assert s.crop_end == 3.5

    def test_format_settings(self):
        s = default_settings(65.5).with_fade_in(enabled=True, curve="logarithmic")
        text = format_settings(s)
        assert "0:00.00 - 1:05.50" in text
        assert "fade in: 1.00s logarithmic" in text
        assert "fade out: off" in text


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_version(self):
        parser = build_parser()
        with pytest.raises(SystemExit) as exc:
            parser.parse_args(["--version"])
        assert exc.value.code == 0

    def test_edit_command(self):
        args = build_parser().parse_args(["edit", "in.wav", "-o", "out.wav", "-n"])
        assert args.command == "edit"
        assert args.output == "out.wav"
        assert args.dry_run

    def test_peaks_default_buckets(self):
        args = build_parser().parse_args(["peaks", "x.wav"])
        assert args.buckets == 64

    def test_bad_curve_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["edit", "x.wav", "--fade-in-curve", "cubic"])

    def test_verbose_quiet_mutually_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["-v", "-q", "info", "x.wav"])


# ---------------------------------------------------------------------------
# End-to-end CLI tests (using tmp files)
# ---------------------------------------------------------------------------


class TestCLIEndToEnd:
    @pytest.fixture
    def wav_file(self, tmp_path):
        """Create a 1 s stereo test WAV file at 8 kHz."""
        buf = AudioBuffer.sine(440.0, channels=2, frames=8000, sample_rate=8000, amplitude=0.5)
        path = tmp_path / "test.wav"
        write_wav(str(path), buf)
        return str(path)

    def test_info(self, wav_file, capsys):
        main(["info", wav_file])
        out = capsys.readouterr().out
        assert "sample_rate: 8000" in out
        assert "duration: 0:01.00" in out

    def test_info_json(self, wav_file, capsys):
        main(["info", wav_file, "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["sample_rate"] == 8000
        assert data["channels"] == 2
        assert data["frames"] == 8000

    def test_edit(self, wav_file, tmp_path, capsys):
        out = str(tmp_path / "out.wav")
        main(["edit", wav_file, "-o", out, "--start", "0.25", "--end", "0.75",
              "--fade-in", "0.1", "--volume", "0.5"])
        assert "Wrote" in capsys.readouterr().out
        buf = read_wav(out)
        assert buf.frames == 4000
        assert buf.channels == 2
        assert buf.data[0, 0] == 0.0
        assert np.max(np.abs(buf.data)) <= 0.26

    def test_edit_default_output_name(self, wav_file):
        main(["-q", "edit", wav_file, "--end", "0.5"])
        out = Path(wav_file).with_name("test-edited.wav")
        assert out.exists()
        assert read_wav(out).frames == 4000

    def test_edit_quiet(self, wav_file, tmp_path, capsys):
        main(["-q", "edit", wav_file, "-o", str(tmp_path / "o.wav")])
        assert capsys.readouterr().out == ""

    def test_dry_run_writes_nothing(self, wav_file, tmp_path, capsys):
        out = tmp_path / "never.wav"
        main(["edit", wav_file, "-o", str(out), "-n", "--fade-out", "0.2"])
        text = capsys.readouterr().out
        assert "fade out: 0.20s linear" in text
        assert not out.exists()

    def test_settings_file_and_save(self, wav_file, tmp_path):
        src = tmp_path / "in.json"
        src.write_text(json.dumps({"cropStart": 0.5, "fadeOut": {"enabled": True, "duration": 0.1}}))
        saved = tmp_path / "saved.json"
        out = tmp_path / "o.wav"
        main(["-q", "edit", wav_file, "-o", str(out), "-s", str(src),
              "--set", "fadeOut.curve=sCurve", "--save-settings", str(saved)])
        assert read_wav(out).frames == 4000
        data = json.loads(saved.read_text())
        assert data["cropStart"] == 0.5
        assert data["fadeOut"] == {"enabled": True, "duration": 0.1, "curve": "sCurve"}

    def test_invalid_settings_exit(self, wav_file, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["edit", wav_file, "-o", str(tmp_path / "o.wav"), "--start", "0.8", "--end", "0.2"])
        assert exc.value.code == 1
        assert "Invalid settings" in capsys.readouterr().err

    def test_end_past_source_exit(self, wav_file, tmp_path):
        with pytest.raises(SystemExit):
            main(["edit", wav_file, "-o", str(tmp_path / "o.wav"), "--end", "5"])

    def test_unknown_set_key_exit(self, wav_file, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["edit", wav_file, "--set", "pitch=2"])
        assert "Unknown settings key" in capsys.readouterr().err

    @pytest.mark.parametrize(
        "fade", [{"duration": [1]}, {"duration": "abc"}, {"enabled": "false"}]
    )
    def test_bad_fade_in_settings_file_exit(self, wav_file, tmp_path, capsys, fade):
        p = tmp_path / "bad.json"
        p.write_text(json.dumps({"fadeIn": fade}))
        with pytest.raises(SystemExit) as exc:
            main(["edit", wav_file, "-o", str(tmp_path / "o.wav"), "-s", str(p)])
        assert exc.value.code == 1
        assert "Invalid settings" in capsys.readouterr().err

    def test_unwritable_save_settings_exit(self, wav_file, tmp_path, capsys):
        target = tmp_path / "no_such_dir" / "saved.json"
        with pytest.raises(SystemExit) as exc:
            main(["edit", wav_file, "-o", str(tmp_path / "o.wav"),
                  "--save-settings", str(target)])
        assert exc.value.code == 1
        assert f"Error writing {target}" in capsys.readouterr().err
        assert not target.exists()

    def test_missing_input(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["info", str(tmp_path / "missing.wav")])
        assert "Error reading" in capsys.readouterr().err

    def test_peaks_json(self, wav_file, capsys):
        main(["peaks", wav_file, "-n", "8", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert len(data["positive"]) == 8
        assert len(data["negative"]) == 8
        assert all(p >= n for p, n in zip(data["positive"], data["negative"]))

    def test_peaks_text(self, wav_file, capsys):
        main(["peaks", wav_file, "-n", "4"])
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 4

    def test_no_command_shows_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0


def test_namespace_without_optional_layers():
    ns = argparse.Namespace(
        start=None, end=1.0, volume=None, fade_in=None, fade_in_curve=None,
        fade_out=None, fade_out_curve=None,
    )
    assert build_settings(ns, 2.0).crop_end == 1.0


class TestFormatTime:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(0.0, "0:00.00"), (5.5, "0:05.50"), (65.25, "1:05.25"), (600.0, "10:00.00")],
    )
    def test_format(self, seconds, expected):
        assert format_time(seconds) == expected
