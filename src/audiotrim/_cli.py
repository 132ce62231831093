"""Settings assembly, override token parsing, and type coercion for the CLI."""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any

from audiotrim.settings import (
    EditSettings,
    default_settings,
    load_settings,
    settings_from_dict,
)


# ---------------------------------------------------------------------------
# Override token parsing
# ---------------------------------------------------------------------------


def parse_override(token: str) -> tuple[list[str], str]:
    """Parse a ``'key=value'`` or ``'fadeIn.curve=sCurve'`` token.

    Returns the dotted key split into parts and the raw string value; use
    coerce_value() to convert it.
    """
    if "=" not in token:
        raise ValueError(f"Invalid override (expected KEY=VALUE): {token!r}")
    key, value = token.split("=", 1)
    parts = [p.strip() for p in key.split(".")]
    if not all(parts):
        raise ValueError(f"Invalid override key: {key!r}")
    return parts, value.strip()


# ---------------------------------------------------------------------------
# Type coercion
# ---------------------------------------------------------------------------


def coerce_value(value: str, target_type: type | None = None) -> Any:
    """Coerce a string value to the target type.

    If target_type is None, tries bool -> int -> float -> str.
    """
    if target_type is bool:
        return value.lower() in ("true", "1", "yes", "on")
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    if target_type is str:
        return value
    if value.lower() in ("true", "false", "yes", "no", "on", "off"):
        return value.lower() in ("true", "yes", "on")
    try:
        f = float(value)
        if f == int(f) and "." not in value:
            return int(value)
        return f
    except ValueError:
        return value


def overrides_to_dict(tokens: list[str]) -> dict[str, Any]:
    """Fold override tokens into a nested settings dict."""
    out: dict[str, Any] = {}
    for token in tokens:
        parts, raw = parse_override(token)
        node = out
        for part in parts[:-1]:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                raise ValueError(f"Conflicting override for {'.'.join(parts)!r}")
        node[parts[-1]] = coerce_value(raw)
    return out


# ---------------------------------------------------------------------------
# Settings assembly
# ---------------------------------------------------------------------------


def build_settings(args: argparse.Namespace, duration: float) -> EditSettings:
    """Assemble edit settings for a source of *duration* seconds.

    Layers, lowest first: defaults for the source, ``--settings`` JSON file,
    ``--set KEY=VALUE`` overrides, then the dedicated flags.
    """
    if getattr(args, "settings", None):
        settings = load_settings(args.settings, duration)
    else:
        settings = default_settings(duration)

    if getattr(args, "set", None):
        settings = settings_from_dict(overrides_to_dict(args.set), settings)

    if args.start is not None:
        settings = replace(settings, crop_start=args.start)
    if args.end is not None:
        settings = replace(settings, crop_end=args.end)
    if args.volume is not None:
        settings = settings.with_volume(args.volume)
    if args.fade_in is not None:
        settings = settings.with_fade_in(enabled=args.fade_in > 0, duration=args.fade_in)
    if args.fade_in_curve is not None:
        settings = settings.with_fade_in(curve=args.fade_in_curve)
    if args.fade_out is not None:
        settings = settings.with_fade_out(enabled=args.fade_out > 0, duration=args.fade_out)
    if args.fade_out_curve is not None:
        settings = settings.with_fade_out(curve=args.fade_out_curve)
    return settings


def format_settings(settings: EditSettings) -> str:
    """Human-readable multi-line summary of an edit."""
    from audiotrim._helpers import format_time

    lines = [
        f"  crop: {format_time(settings.crop_start)} - {format_time(settings.crop_end)}"
        f" ({settings.region_duration:.3f}s)",
        f"  volume: {settings.volume:.2f}",
    ]
    for label, fade in (("fade in", settings.fade_in), ("fade out", settings.fade_out)):
        if fade.active:
            lines.append(f"  {label}: {fade.duration:.2f}s {fade.curve}")
        else:
            lines.append(f"  {label}: off")
    return "\n".join(lines)
