"""Edit settings: the declarative description of one crop/volume/fade edit.

Settings are plain frozen dataclasses.  They are built once per loaded
source with :func:`default_settings`, updated one field at a time through
the ``with_*`` helpers, and re-evaluated against whichever buffer is
current.  They can be loaded from and saved to JSON using the same key
layout the browser editor used (``cropStart``, ``fadeIn`` ...); snake_case
keys are accepted as well.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any

from audiotrim.curves import CurveKind, resolve_curve
from audiotrim.errors import SettingsError

DEFAULT_FADE_SECONDS = 1.0
DEFAULT_FADE_FRACTION = 0.1


@dataclass(frozen=True)
class FadeSettings:
    """One fade (in or out)."""

    enabled: bool = False
    duration: float = 0.0
    curve: CurveKind = CurveKind.LINEAR

    def __post_init__(self):
        try:
            curve = resolve_curve(self.curve)
        except ValueError as e:
            raise SettingsError(str(e)) from None
        object.__setattr__(self, "curve", curve)

    @property
    def active(self) -> bool:
        """True when the fade contributes an envelope."""
        return self.enabled and self.duration > 0


@dataclass(frozen=True)
class EditSettings:
    """Crop region, static volume and the two fades.

    Times are in seconds relative to the start of the source.
    """

    crop_start: float
    crop_end: float
    volume: float = 1.0
    fade_in: FadeSettings = field(default_factory=FadeSettings)
    fade_out: FadeSettings = field(default_factory=FadeSettings)

    @property
    def region_duration(self) -> float:
        return self.crop_end - self.crop_start

    # ------------------------------------------------------------------
    # Field-by-field updates
    # ------------------------------------------------------------------

    def with_crop_start(self, value: float) -> EditSettings:
        """Move the crop start; ignored unless it stays before the crop end."""
        if value < self.crop_end:
            return replace(self, crop_start=float(value))
        return self

    def with_crop_end(self, value: float) -> EditSettings:
        """Move the crop end; ignored unless it stays after the crop start."""
        if value > self.crop_start:
            return replace(self, crop_end=float(value))
        return self

    def with_volume(self, value: float) -> EditSettings:
        return replace(self, volume=float(value))

    def with_fade_in(self, **changes) -> EditSettings:
        return replace(self, fade_in=replace(self.fade_in, **changes))

    def with_fade_out(self, **changes) -> EditSettings:
        return replace(self, fade_out=replace(self.fade_out, **changes))


def default_fade_duration(duration: float) -> float:
    """Default fade length: one second or a tenth of the source, whichever is shorter."""
    return min(DEFAULT_FADE_SECONDS, duration * DEFAULT_FADE_FRACTION)


def default_settings(duration: float) -> EditSettings:
    """Settings for a freshly loaded source of *duration* seconds.

    Full-length crop, unity volume, both fades disabled with linear curves.
    """
    fade = FadeSettings(
        enabled=False,
        duration=default_fade_duration(duration),
        curve=CurveKind.LINEAR,
    )
    return EditSettings(
        crop_start=0.0,
        crop_end=float(duration),
        volume=1.0,
        fade_in=fade,
        fade_out=fade,
    )


def validate(settings: EditSettings, duration: float | None = None) -> EditSettings:
    """Check *settings* against a source of *duration* seconds.

    Returns the settings unchanged so the call can be chained.

    Raises
    ------
    SettingsError
        If the crop region is out of order or outside the source, the
        volume is negative, or a fade duration is negative.
    """
    for name in ("crop_start", "crop_end", "volume"):
        value = getattr(settings, name)
        if not math.isfinite(value):
            raise SettingsError(f"{name} must be finite, got {value!r}")
    if settings.crop_start < 0:
        raise SettingsError(f"crop_start must be >= 0, got {settings.crop_start}")
    if settings.crop_start >= settings.crop_end:
        raise SettingsError(
            f"crop_start ({settings.crop_start}) must be before "
            f"crop_end ({settings.crop_end})"
        )
    if duration is not None and settings.crop_end > duration:
        raise SettingsError(
            f"crop_end ({settings.crop_end}) exceeds source duration ({duration})"
        )
    if settings.volume < 0:
        raise SettingsError(f"volume must be >= 0, got {settings.volume}")
    for name in ("fade_in", "fade_out"):
        fade: FadeSettings = getattr(settings, name)
        if not math.isfinite(fade.duration) or fade.duration < 0:
            raise SettingsError(f"{name}.duration must be >= 0, got {fade.duration}")
    return settings


# ---------------------------------------------------------------------------
# Dict / JSON configuration
# ---------------------------------------------------------------------------

_KEY_ALIASES: dict[str, str] = {
    "cropStart": "crop_start",
    "cropEnd": "crop_end",
    "fadeIn": "fade_in",
    "fadeOut": "fade_out",
}

_FADE_KEYS = {"enabled", "duration", "curve"}


def _fade_from_dict(obj: dict[str, Any], base: FadeSettings) -> FadeSettings:
    unknown = set(obj) - _FADE_KEYS
    if unknown:
        raise SettingsError(f"Unknown fade keys: {sorted(unknown)}")
    changes: dict[str, Any] = {}
    if "enabled" in obj:
        if not isinstance(obj["enabled"], bool):
            raise SettingsError(f"enabled must be true or false, got {obj['enabled']!r}")
        changes["enabled"] = obj["enabled"]
    if "duration" in obj:
        try:
            changes["duration"] = float(obj["duration"])
        except (TypeError, ValueError):
            raise SettingsError(
                f"duration must be a number, got {obj['duration']!r}"
            ) from None
    if "curve" in obj:
        changes["curve"] = obj["curve"]
    return replace(base, **changes)


def settings_from_dict(obj: dict[str, Any], base: EditSettings) -> EditSettings:
    """Overlay the keys present in *obj* onto *base*.

    Accepts both the camelCase layout (``cropStart``, ``fadeIn``) and the
    snake_case field names.  Unknown keys raise SettingsError.
    """
    if not isinstance(obj, dict):
        raise SettingsError(f"Settings must be a JSON object, got {type(obj).__name__}")
    changes: dict[str, Any] = {}
    for raw_key, value in obj.items():
        key = _KEY_ALIASES.get(raw_key, raw_key)
        if key in ("crop_start", "crop_end", "volume"):
            try:
                changes[key] = float(value)
            except (TypeError, ValueError):
                raise SettingsError(f"{raw_key} must be a number, got {value!r}") from None
        elif key in ("fade_in", "fade_out"):
            if not isinstance(value, dict):
                raise SettingsError(f"{raw_key} must be an object")
            changes[key] = _fade_from_dict(value, getattr(base, key))
        else:
            raise SettingsError(f"Unknown settings key: {raw_key!r}")
    return replace(base, **changes)


def settings_to_dict(settings: EditSettings) -> dict[str, Any]:
    """Serialize to the camelCase layout used by settings files."""
    raw = asdict(settings)

    def _fade(d: dict[str, Any]) -> dict[str, Any]:
        return {
            "enabled": d["enabled"],
            "duration": d["duration"],
            "curve": str(d["curve"]),
        }

    return {
        "cropStart": raw["crop_start"],
        "cropEnd": raw["crop_end"],
        "volume": raw["volume"],
        "fadeIn": _fade(raw["fade_in"]),
        "fadeOut": _fade(raw["fade_out"]),
    }


def load_settings(path: str | Path, duration: float) -> EditSettings:
    """Read a JSON settings file layered over ``default_settings(duration)``."""
    path = Path(path)
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SettingsError(f"Invalid JSON in {path}: {e}") from None
    return settings_from_dict(obj, default_settings(duration))


def save_settings(path: str | Path, settings: EditSettings) -> None:
    """Write *settings* as JSON."""
    Path(path).write_text(
        json.dumps(settings_to_dict(settings), indent=2) + "\n", encoding="utf-8"
    )
