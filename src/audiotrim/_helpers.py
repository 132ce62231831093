"""Shared private utilities for audiotrim modules."""

from __future__ import annotations

import numpy as np

from audiotrim.buffer import AudioBuffer


def _process_per_channel(buf: AudioBuffer, process_fn, frames: int | None = None) -> AudioBuffer:
    """Apply process_fn(1d_array) -> 1d_array per channel, return new AudioBuffer.

    *frames* sets the output length when it differs from the input.
    """
    n = buf.frames if frames is None else frames
    out = np.zeros((buf.channels, n), dtype=np.float32)
    for ch in range(buf.channels):
        out[ch] = process_fn(buf.ensure_1d(ch))
    return AudioBuffer(out, sample_rate=buf.sample_rate, label=buf.label)


def format_time(seconds: float) -> str:
    """Format seconds as ``m:ss.ss`` (e.g. ``1:05.25``)."""
    mins = int(seconds // 60)
    secs = seconds - mins * 60
    return f"{mins}:{secs:05.2f}"
