"""Exception types raised by audiotrim."""

from __future__ import annotations


class AudioTrimError(Exception):
    """Base class for all audiotrim errors."""


class EmptyRegion(AudioTrimError, ValueError):
    """Crop region resolves to zero or negative length after quantization."""

    def __init__(self, start_frame: int, end_frame: int):
        self.start_frame = start_frame
        self.end_frame = end_frame
        super().__init__(
            f"Crop region is empty (frames {start_frame}..{end_frame})"
        )


class InvalidBufferState(AudioTrimError, ValueError):
    """Source buffer has no channels or an unusable sample rate."""


class SettingsError(AudioTrimError, ValueError):
    """Edit settings fall outside their valid range."""


class RenderSuperseded(AudioTrimError):
    """A newer render request replaced this one; its result was discarded."""


class EncodeTimeout(AudioTrimError, TimeoutError):
    """Live encoder never signalled end of stream before the safety timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Encoder did not finish within {timeout:.3f}s")


class UnsupportedContainer(AudioTrimError, RuntimeError):
    """No container/codec from the preference list is supported by the host."""
