"""Offline edit rendering: crop, static volume, fade-in and fade-out.

:func:`render` is a pure function of its inputs.  :class:`RenderSession`
runs it off the event loop and keeps at most one render in flight.
"""

from __future__ import annotations

import asyncio
import logging
import math

import numpy as np

from audiotrim.buffer import AudioBuffer
from audiotrim.envelope import Envelope, build_fade_in, build_fade_out
from audiotrim.errors import EmptyRegion, RenderSuperseded
from audiotrim.settings import EditSettings
from audiotrim._helpers import _process_per_channel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Region arithmetic
# ---------------------------------------------------------------------------


def crop_frames(settings: EditSettings, sample_rate: int) -> tuple[int, int]:
    """Return ``(start_frame, end_frame)`` for the crop region.

    Both edges are ``floor(time * sample_rate)``.
    """
    start = math.floor(settings.crop_start * sample_rate)
    end = math.floor(settings.crop_end * sample_rate)
    return start, end


def cropped_length(settings: EditSettings, sample_rate: int) -> int:
    """Number of frames the rendered buffer will have (may be <= 0)."""
    start, end = crop_frames(settings, sample_rate)
    return end - start


# ---------------------------------------------------------------------------
# Gain automation
# ---------------------------------------------------------------------------


def envelopes(settings: EditSettings, region_duration: float) -> list[Envelope]:
    """Active fade envelopes for a region, fade-in first."""
    built = [
        build_fade_in(settings.fade_in, region_duration, settings.volume),
        build_fade_out(settings.fade_out, region_duration, settings.volume),
    ]
    return [env for env in built if env is not None]


def gain_curve(settings: EditSettings, frames: int, sample_rate: int) -> np.ndarray:
    """Per-frame gain for a rendered region of *frames* frames.

    The static volume is the baseline; each fade multiplies it by its own
    shape inside its window.  Where the fade-in and fade-out windows
    overlap both shapes apply.
    """
    t = np.arange(frames, dtype=np.float64) / sample_rate
    gain = np.full(frames, float(settings.volume), dtype=np.float64)
    for env in envelopes(settings, frames / sample_rate):
        mask = env.contains(t)
        gain[mask] *= env.relative(t[mask])
    return gain


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------


def render(source: AudioBuffer, settings: EditSettings) -> AudioBuffer:
    """Render *settings* against *source* into a new buffer.

    The output keeps the source's channel count and sample rate and holds
    exactly ``floor(crop_end * sr) - floor(crop_start * sr)`` frames.
    Frames outside the source read as silence.

    Raises
    ------
    EmptyRegion
        If the crop region quantizes to zero or negative length.
    """
    sr = source.sample_rate
    start, end = crop_frames(settings, sr)
    length = end - start
    if length <= 0:
        raise EmptyRegion(start, end)

    logger.debug(
        "Rendering frames %d..%d of %r (volume=%.3f)", start, end, source, settings.volume
    )
    gain = gain_curve(settings, length, sr)
    lo = max(start, 0)

    def _process(x):
        hi = min(end, len(x))
        seg = np.zeros(length, dtype=np.float64)
        if hi > lo:
            seg[lo - start : hi - start] = x[lo:hi]
        return seg * gain

    return _process_per_channel(source, _process, frames=length)


class RenderSession:
    """Serialises renders for one edit session.

    Each :meth:`submit` runs :func:`render` in a worker thread.  Submitting
    again while a render is in flight cancels the older request; its caller
    gets :class:`RenderSuperseded` instead of a stale buffer.
    """

    def __init__(self):
        self._task: asyncio.Future | None = None
        self._generation = 0
        self.latest: AudioBuffer | None = None

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def generation(self) -> int:
        """Number of renders submitted so far."""
        return self._generation

    async def submit(self, source: AudioBuffer, settings: EditSettings) -> AudioBuffer:
        if self.busy:
            logger.debug("Render #%d superseded", self._generation)
            self._task.cancel()
        self._generation += 1
        task = asyncio.ensure_future(asyncio.to_thread(render, source, settings))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if self._task is not task:
                raise RenderSuperseded(
                    "Render replaced by a newer request"
                ) from None
            raise
        self.latest = result
        return result

    def cancel(self) -> None:
        """Cancel the in-flight render, if any."""
        if self.busy:
            self._task.cancel()
