"""Playback transport state for previewing an edit.

The transport is an explicit state object handed to whoever schedules
playback; nothing here touches an audio device.  Times come from the
caller's clock (seconds, monotonic).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from audiotrim.settings import EditSettings


class TransportState(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    STOPPED = "stopped"


@dataclass
class Transport:
    """Preview playback state.

    Attributes
    ----------
    state : TransportState
    start_time : float
        Clock time at which playback started.
    offset : float
        Source time (seconds) corresponding to ``start_time``; previews
        start at the crop start.
    """

    state: TransportState = TransportState.IDLE
    start_time: float = 0.0
    offset: float = 0.0

    @property
    def playing(self) -> bool:
        return self.state is TransportState.PLAYING

    def play(self, now: float, offset: float) -> None:
        self.state = TransportState.PLAYING
        self.start_time = now
        self.offset = offset

    def stop(self) -> None:
        self.state = TransportState.STOPPED

    def reset(self) -> None:
        self.state = TransportState.IDLE
        self.start_time = 0.0
        self.offset = 0.0

    def elapsed(self, now: float) -> float:
        if not self.playing:
            return 0.0
        return max(0.0, now - self.start_time)

    def position(self, now: float, total_duration: float, region_duration: float) -> float:
        """Playhead as a fraction of the full source.

        Returns 0 when not playing; once *region_duration* has elapsed the
        transport stops itself and the playhead returns to 0.
        """
        if not self.playing or total_duration <= 0:
            return 0.0
        elapsed = self.elapsed(now)
        if elapsed >= region_duration:
            self.stop()
            return 0.0
        return (self.offset + elapsed) / total_duration


def clamp_seek(time: float, settings: EditSettings) -> float:
    """Clamp a seek target to the crop region."""
    return max(settings.crop_start, min(settings.crop_end, time))
