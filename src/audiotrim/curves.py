"""Easing curves that shape fade envelopes.

Each curve maps normalized progress ``t`` in ``[0, 1]`` onto a gain
multiplier in ``[0, 1]``.  All curves are monotonically non-decreasing and
pass through ``(0, 0)`` and ``(1, 1)``.
"""

from __future__ import annotations

from enum import Enum

import numpy as np


class CurveKind(str, Enum):
    """Fade curve shapes, keyed by the names used in settings files."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"
    S_CURVE = "sCurve"

    def __str__(self) -> str:
        return self.value


CURVE_NAMES: tuple[str, ...] = tuple(c.value for c in CurveKind)

# Curves that a gain automation timeline can express as a native ramp.
# The remaining curves are rendered from a sampled table.
RAMP_CURVES = frozenset({CurveKind.LINEAR, CurveKind.EXPONENTIAL})


def resolve_curve(curve: CurveKind | str) -> CurveKind:
    """Resolve a curve name (case-insensitive, ``s_curve`` accepted) to a CurveKind."""
    if isinstance(curve, CurveKind):
        return curve
    key = str(curve).strip().replace("_", "").replace("-", "").lower()
    for kind in CurveKind:
        if kind.value.lower() == key:
            return kind
    raise ValueError(f"Unknown curve {curve!r}, valid names: {list(CURVE_NAMES)}")


def evaluate(t, curve: CurveKind | str = CurveKind.LINEAR):
    """Evaluate an easing curve at progress *t*.

    Parameters
    ----------
    t : float or ndarray
        Progress in ``[0, 1]``.  Callers clamp before calling.
    curve : CurveKind or str
        ``linear`` (t), ``exponential`` (t**2, slow start),
        ``logarithmic`` (sqrt(t), fast start) or ``sCurve``
        (smoothstep, flat at both ends).

    Returns
    -------
    float or ndarray
        Same shape as *t*.
    """
    kind = resolve_curve(curve)
    scalar = np.isscalar(t)
    x = np.asarray(t, dtype=np.float64)

    if kind is CurveKind.EXPONENTIAL:
        y = x * x
    elif kind is CurveKind.LOGARITHMIC:
        y = np.sqrt(x)
    elif kind is CurveKind.S_CURVE:
        y = x * x * (3.0 - 2.0 * x)
    else:
        y = x

    if scalar:
        return float(y)
    return y


def sample_curve(curve: CurveKind | str, steps: int = 100, descending: bool = False) -> np.ndarray:
    """Tabulate *curve* at *steps* uniformly spaced points over ``[0, 1]``.

    With ``descending=True`` the table is the mirror image, running from 1
    down to 0 (``evaluate(1 - t)``).
    """
    if steps < 2:
        raise ValueError(f"steps must be >= 2, got {steps}")
    t = np.linspace(0.0, 1.0, steps)
    if descending:
        t = 1.0 - t
    return evaluate(t, curve)
