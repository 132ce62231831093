"""audiotrim CLI -- inspect, edit (crop / volume / fades), and summarize WAV files."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import numpy as np

from audiotrim import __version__
from audiotrim.buffer import AudioBuffer
from audiotrim.curves import CURVE_NAMES
from audiotrim.errors import AudioTrimError


# ---------------------------------------------------------------------------
# Verbosity levels
# ---------------------------------------------------------------------------

QUIET = 0
NORMAL = 1
VERBOSE = 2


def _verbosity(args: argparse.Namespace) -> int:
    """Return verbosity level from parsed args."""
    if getattr(args, "quiet", False):
        return QUIET
    if getattr(args, "verbose", False):
        return VERBOSE
    return NORMAL


def _log(args: argparse.Namespace, msg: str, level: int = NORMAL) -> None:
    """Print *msg* if verbosity >= *level*."""
    if _verbosity(args) >= level:
        print(msg)


def _log_verbose(args: argparse.Namespace, msg: str) -> None:
    """Print only when --verbose."""
    _log(args, msg, level=VERBOSE)


def _fail(msg: str) -> None:
    print(msg, file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_input(path: str, args: argparse.Namespace | None = None) -> AudioBuffer:
    """Read an audio file, exit on error."""
    from audiotrim.io import read

    if args:
        _log_verbose(args, f"  Reading {path}")
    try:
        buf = read(path)
    except (OSError, EOFError, ValueError) as e:
        _fail(f"Error reading {path}: {e}")
    if args:
        _log_verbose(
            args,
            f"  Loaded: {buf.channels}ch, {buf.frames} frames, {buf.sample_rate} Hz",
        )
    return buf


def _write_output(
    path: str,
    buf: AudioBuffer,
    args: argparse.Namespace | None = None,
) -> None:
    """Write an audio file, exit on error."""
    from audiotrim.io import write

    if args:
        _log_verbose(args, f"  Writing {path}")
    try:
        write(path, buf)
    except (OSError, ValueError) as e:
        _fail(f"Error writing {path}: {e}")


def _default_output(input_path: str) -> str:
    from audiotrim.export import export_filename

    p = Path(input_path)
    return str(p.with_name(export_filename(p.name, "wav")))


# ---------------------------------------------------------------------------
# Subcommand: info
# ---------------------------------------------------------------------------


def cmd_info(args: argparse.Namespace) -> None:
    """Print audio file metadata."""
    from audiotrim._helpers import format_time

    buf = _read_input(args.file, args)
    peak = float(np.max(np.abs(buf.data))) if buf.frames else 0.0
    peak_db = 20.0 * np.log10(peak) if peak > 0 else float("-inf")

    info = {
        "path": str(args.file),
        "duration": format_time(buf.duration),
        "seconds": round(buf.duration, 3),
        "sample_rate": buf.sample_rate,
        "channels": buf.channels,
        "frames": buf.frames,
        "peak_db": f"{peak_db:.1f}" if not np.isinf(peak_db) else "-inf",
    }

    if args.json:
        print(json.dumps(info, indent=2))
    else:
        for k, v in info.items():
            print(f"  {k}: {v}")


# ---------------------------------------------------------------------------
# Subcommand: edit
# ---------------------------------------------------------------------------


def cmd_edit(args: argparse.Namespace) -> None:
    """Crop, scale and fade a file, writing a 16-bit WAV."""
    from audiotrim._cli import build_settings, format_settings
    from audiotrim.processing import render
    from audiotrim.settings import save_settings, validate

    buf = _read_input(args.input, args)
    try:
        settings = validate(build_settings(args, buf.duration), buf.duration)
    except (AudioTrimError, ValueError) as e:
        _fail(f"Invalid settings: {e}")
    except OSError as e:
        _fail(f"Error reading settings: {e}")

    output = args.output or _default_output(args.input)

    if args.dry_run:
        print("Edit:")
        print(format_settings(settings))
        print(f"Input: {args.input}")
        print(f"Output: {output}")
        return

    _log_verbose(args, format_settings(settings))
    try:
        edited = render(buf, settings)
    except AudioTrimError as e:
        _fail(f"Error rendering {args.input}: {e}")

    _write_output(output, edited, args=args)
    if args.save_settings:
        try:
            save_settings(args.save_settings, settings)
        except OSError as e:
            _fail(f"Error writing {args.save_settings}: {e}")
        _log_verbose(args, f"  Saved settings to {args.save_settings}")
    _log(args, f"Wrote {output} ({edited.duration:.3f}s)")


# ---------------------------------------------------------------------------
# Subcommand: peaks
# ---------------------------------------------------------------------------


def cmd_peaks(args: argparse.Namespace) -> None:
    """Print the display summary of the first channel."""
    from audiotrim.peaks import extract_peaks

    buf = _read_input(args.file, args)
    peaks = extract_peaks(buf, args.buckets)

    if args.json:
        print(
            json.dumps(
                {
                    "positive": [round(float(v), 5) for v in peaks.positive],
                    "negative": [round(float(v), 5) for v in peaks.negative],
                }
            )
        )
        return

    for i, (hi, lo) in enumerate(zip(peaks.positive, peaks.negative)):
        print(f"  {i:4d}  {lo:+.4f}  {hi:+.4f}")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audiotrim",
        description="Crop, scale and fade audio files.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Show detailed progress"
    )
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress non-error output"
    )

    sub = parser.add_subparsers(dest="command")

    # --- info ---
    p_info = sub.add_parser("info", help="Show file metadata")
    p_info.add_argument("file", help="Input WAV file")
    p_info.add_argument("--json", action="store_true", help="Output as JSON")

    # --- edit ---
    p_edit = sub.add_parser("edit", help="Crop, change volume and apply fades")
    p_edit.add_argument("input", help="Input WAV file")
    p_edit.add_argument(
        "-o",
        "--output",
        help="Output WAV file (default: <input>-edited.wav beside the input)",
    )
    p_edit.add_argument(
        "-s", "--settings", metavar="JSON", help="Edit settings file"
    )
    p_edit.add_argument(
        "--set",
        action="append",
        metavar="KEY=VALUE",
        help="Override a setting (repeatable), e.g. fadeIn.curve=sCurve",
    )
    p_edit.add_argument("--start", type=float, help="Crop start in seconds")
    p_edit.add_argument("--end", type=float, help="Crop end in seconds")
    p_edit.add_argument(
        "--volume", type=float, help="Volume multiplier (0-2, default: 1)"
    )
    p_edit.add_argument(
        "--fade-in", type=float, metavar="SECONDS", help="Fade-in length (0 disables)"
    )
    p_edit.add_argument(
        "--fade-in-curve", choices=CURVE_NAMES, help="Fade-in curve"
    )
    p_edit.add_argument(
        "--fade-out", type=float, metavar="SECONDS", help="Fade-out length (0 disables)"
    )
    p_edit.add_argument(
        "--fade-out-curve", choices=CURVE_NAMES, help="Fade-out curve"
    )
    p_edit.add_argument(
        "--save-settings", metavar="JSON", help="Also write the applied settings"
    )
    p_edit.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show the resolved edit without writing anything",
    )

    # --- peaks ---
    p_peaks = sub.add_parser("peaks", help="Summarize the waveform for display")
    p_peaks.add_argument("file", help="Input WAV file")
    p_peaks.add_argument(
        "-n",
        "--buckets",
        type=int,
        default=64,
        help="Number of buckets (default: 64)",
    )
    p_peaks.add_argument("--json", action="store_true", help="Output as JSON")

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    dispatch = {
        "info": cmd_info,
        "edit": cmd_edit,
        "peaks": cmd_peaks,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    handler(args)


if __name__ == "__main__":
    main()
