"""Waveform summaries for display: per-bucket peaks and edit overlays."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from audiotrim.buffer import AudioBuffer
from audiotrim.settings import EditSettings

# Reported for buckets that contain no samples.
EMPTY_MAX = -1.0
EMPTY_MIN = 1.0


class PeakBuckets(NamedTuple):
    """Per-bucket maximum (``positive``) and minimum (``negative``) sample."""

    positive: np.ndarray
    negative: np.ndarray


def extract_peaks(buf: AudioBuffer, bucket_count: int) -> PeakBuckets:
    """Reduce the first channel of *buf* to *bucket_count* (max, min) pairs.

    The channel is cut into ``bucket_count`` runs of
    ``frames // bucket_count`` samples; any trailing remainder is ignored.
    Other channels are not consulted.

    Never raises.  When there are more buckets than samples every bucket is
    empty and reports the sentinel ``positive=-1.0, negative=1.0``; a
    non-positive *bucket_count* gives empty arrays.
    """
    n = max(int(bucket_count), 0)
    positive = np.full(n, EMPTY_MAX, dtype=np.float32)
    negative = np.full(n, EMPTY_MIN, dtype=np.float32)
    if n == 0:
        return PeakBuckets(positive, negative)

    x = buf.channel(0)
    per_bucket = len(x) // n
    if per_bucket == 0:
        return PeakBuckets(positive, negative)

    windows = x[: per_bucket * n].reshape(n, per_bucket)
    positive[:] = windows.max(axis=1)
    negative[:] = windows.min(axis=1)
    return PeakBuckets(positive, negative)


# ---------------------------------------------------------------------------
# Overlay geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Overlay:
    """Pixel positions of the crop and fade markers over the full waveform.

    Fade spans are ``None`` when the fade is inactive.
    """

    width: float
    crop_start_px: float
    crop_end_px: float
    fade_in_span: tuple[float, float] | None
    fade_out_span: tuple[float, float] | None

    def in_crop(self, x: float) -> bool:
        return self.crop_start_px <= x <= self.crop_end_px


def overlay(settings: EditSettings, total_duration: float, width: float) -> Overlay:
    """Lay out the crop boundaries and fade regions across *width* pixels.

    *total_duration* is the length of the unedited source; positions are
    proportional to time.
    """
    if total_duration <= 0:
        return Overlay(width, 0.0, 0.0, None, None)
    px_per_sec = width / total_duration
    start_px = settings.crop_start * px_per_sec
    end_px = settings.crop_end * px_per_sec

    fade_in_span = None
    if settings.fade_in.active:
        fade_in_span = (start_px, start_px + settings.fade_in.duration * px_per_sec)
    fade_out_span = None
    if settings.fade_out.active:
        fade_out_span = (end_px - settings.fade_out.duration * px_per_sec, end_px)

    return Overlay(width, start_px, end_px, fade_in_span, fade_out_span)


def crop_mask(ov: Overlay, bucket_count: int) -> np.ndarray:
    """Boolean mask of buckets (one pixel each) inside the crop region."""
    x = np.arange(max(int(bucket_count), 0), dtype=np.float64)
    return (x >= ov.crop_start_px) & (x <= ov.crop_end_px)
