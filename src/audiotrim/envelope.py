"""Fade envelopes: gain-over-time curves applied on top of the static volume.

Linear and exponential fades are analytic ramps between two gains; the
logarithmic and S-curve fades are tables of :data:`CURVE_STEPS` gains spread
evenly across the fade window and interpolated linearly in between.  Both
forms evaluate to absolute gains (volume included) through
:meth:`Envelope.gains`.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from audiotrim.curves import RAMP_CURVES, CurveKind, sample_curve
from audiotrim.settings import FadeSettings

# Multiplicative ramps are undefined at zero; this stands in for silence at
# the quiet end of an exponential fade.
EXPONENTIAL_FLOOR = 0.001

CURVE_STEPS = 100


@dataclass(frozen=True, eq=False)
class Envelope:
    """Gain automation over one fade window.

    Attributes
    ----------
    start : float
        Window start in seconds, relative to the cropped region.
    duration : float
        Window length in seconds (> 0).
    volume : float
        Static gain the envelope is scaled to.
    law : str
        ``'linear'`` or ``'exponential'`` for ramps, ``'curve'`` for a
        sampled table.
    values : ndarray
        Ramp endpoints ``[v0, v1]`` or the sampled gain table.
    """

    start: float
    duration: float
    volume: float
    law: str
    values: np.ndarray

    @property
    def end(self) -> float:
        return self.start + self.duration

    @property
    def is_ramp(self) -> bool:
        return self.law != "curve"

    def contains(self, times) -> np.ndarray:
        """Boolean mask of *times* falling inside ``[start, end]``."""
        t = np.asarray(times, dtype=np.float64)
        return (t >= self.start) & (t <= self.end)

    def gains(self, times) -> np.ndarray:
        """Absolute gain at each of *times* (seconds).

        Before the window the first value holds; after it the last value
        holds.
        """
        t = np.asarray(times, dtype=np.float64)
        u = np.clip((t - self.start) / self.duration, 0.0, 1.0)
        v = self.values
        if self.law == "linear":
            return v[0] + (v[1] - v[0]) * u
        if self.law == "exponential":
            return v[0] * (v[1] / v[0]) ** u
        positions = np.linspace(0.0, 1.0, len(v))
        return np.interp(u, positions, v)

    def relative(self, times) -> np.ndarray:
        """Gain divided by the static volume: the shape of the fade.

        A zero-volume envelope has a zero shape.
        """
        if self.volume <= 0:
            return np.zeros(np.shape(times), dtype=np.float64)
        return self.gains(times) / self.volume

    def sampled(self, steps: int = CURVE_STEPS) -> Envelope:
        """Materialise this envelope as a sampled table of *steps* gains."""
        if not self.is_ramp and len(self.values) == steps:
            return self
        times = self.start + np.linspace(0.0, self.duration, steps)
        return Envelope(
            self.start, self.duration, self.volume, "curve", self.gains(times)
        )


def _window(fade: FadeSettings, region_duration: float) -> float | None:
    if not fade.active or region_duration <= 0:
        return None
    return min(fade.duration, region_duration)


def _ramp_or_curve(
    start: float,
    duration: float,
    volume: float,
    curve: CurveKind,
    rising: bool,
) -> Envelope:
    if curve in RAMP_CURVES:
        if curve is CurveKind.EXPONENTIAL:
            quiet = EXPONENTIAL_FLOOR
            loud = volume if volume > 0 else EXPONENTIAL_FLOOR
            law = "exponential"
        else:
            quiet, loud, law = 0.0, volume, "linear"
        endpoints = [quiet, loud] if rising else [loud, quiet]
        return Envelope(start, duration, volume, law, np.array(endpoints, dtype=np.float64))

    table = sample_curve(curve, CURVE_STEPS, descending=not rising) * volume
    return Envelope(start, duration, volume, "curve", table)


def build_fade_in(
    fade: FadeSettings, region_duration: float, volume: float
) -> Envelope | None:
    """Envelope rising from silence to *volume* over the start of the region.

    Returns ``None`` when the fade is disabled or has zero length.  The
    window is clipped to the region length.
    """
    length = _window(fade, region_duration)
    if length is None:
        return None
    return _ramp_or_curve(0.0, length, volume, fade.curve, rising=True)


def build_fade_out(
    fade: FadeSettings, region_duration: float, volume: float
) -> Envelope | None:
    """Envelope falling from *volume* to silence over the end of the region.

    Returns ``None`` when the fade is disabled or has zero length.
    """
    length = _window(fade, region_duration)
    if length is None:
        return None
    return _ramp_or_curve(
        region_duration - length, length, volume, fade.curve, rising=False
    )
