"""AudioBuffer -- planar float32 sample matrix with sample-rate metadata.

This is the shape every stage of the edit pipeline consumes and produces.
Operations never write into a buffer they were handed; they allocate a new
one.
"""

from __future__ import annotations

import math

import numpy as np

from audiotrim.errors import InvalidBufferState


class AudioBuffer:
    """A 2D ``[channels, frames]`` float32 audio buffer.

    Parameters
    ----------
    data : array-like or AudioBuffer
        Audio samples.  1D input is normalised to ``[1, N]``.
    sample_rate : int
        Sample rate in Hz.  Must be a positive, finite number; fractional
        rates are truncated to an integer.
    label : str or None
        Free-form label carried as metadata (e.g. the source file name).

    Raises
    ------
    InvalidBufferState
        If the data has zero channels, more than two dimensions, or the
        sample rate is not usable.
    """

    __slots__ = ("_data", "_sample_rate", "_label")

    def __init__(
        self,
        data,
        sample_rate: int = 44100,
        label: str | None = None,
    ):
        if isinstance(data, AudioBuffer):
            arr = data._data.copy()
        else:
            arr = np.asarray(data, dtype=np.float32)

        if arr.ndim == 1:
            arr = arr.reshape(1, -1)
        elif arr.ndim != 2:
            raise InvalidBufferState(
                f"AudioBuffer requires 1D or 2D data, got {arr.ndim}D"
            )
        if arr.shape[0] == 0:
            raise InvalidBufferState("AudioBuffer requires at least one channel")

        try:
            rate = float(sample_rate)
        except (TypeError, ValueError):
            raise InvalidBufferState(
                f"Unreadable sample rate: {sample_rate!r}"
            ) from None
        if not math.isfinite(rate) or int(rate) <= 0:
            raise InvalidBufferState(f"Sample rate must be positive, got {sample_rate!r}")

        if arr.dtype != np.float32:
            arr = arr.astype(np.float32)
        if not arr.flags["C_CONTIGUOUS"]:
            arr = np.ascontiguousarray(arr)

        self._data: np.ndarray = arr
        self._sample_rate: int = int(rate)
        self._label: str | None = label

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """Raw 2D ``[channels, frames]`` float32 array."""
        return self._data

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._data.shape[0]

    @property
    def frames(self) -> int:
        return self._data.shape[1]

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self._data.shape[1] / self._sample_rate

    @property
    def label(self) -> str | None:
        return self._label

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    # ------------------------------------------------------------------
    # Channel access
    # ------------------------------------------------------------------

    def channel(self, i: int) -> np.ndarray:
        """Return a 1D numpy view of channel *i*."""
        if i < 0 or i >= self.channels:
            raise IndexError(
                f"Channel {i} out of range for {self.channels}-channel buffer"
            )
        return self._data[i]

    def __getitem__(self, key):
        if isinstance(key, int):
            return self.channel(key)
        if isinstance(key, tuple):
            ch, frame_slice = key
            return self._data[ch, frame_slice]
        raise TypeError(f"Invalid index type: {type(key)}")

    # ------------------------------------------------------------------
    # Numpy interop
    # ------------------------------------------------------------------

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._data
        return self._data.astype(dtype)

    def __len__(self) -> int:
        """Number of frames (not channels)."""
        return self.frames

    def __repr__(self) -> str:
        parts = [
            f"channels={self.channels}",
            f"frames={self.frames}",
            f"sr={self.sample_rate}",
        ]
        if self._label is not None:
            parts.append(f"label='{self._label}'")
        return f"AudioBuffer({', '.join(parts)})"

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def zeros(
        cls,
        channels: int,
        frames: int,
        sample_rate: int = 44100,
        **kw,
    ) -> AudioBuffer:
        return cls(
            np.zeros((channels, frames), dtype=np.float32),
            sample_rate=sample_rate,
            **kw,
        )

    @classmethod
    def ones(
        cls,
        channels: int,
        frames: int,
        sample_rate: int = 44100,
        **kw,
    ) -> AudioBuffer:
        return cls(
            np.ones((channels, frames), dtype=np.float32),
            sample_rate=sample_rate,
            **kw,
        )

    @classmethod
    def sine(
        cls,
        freq: float,
        channels: int = 1,
        frames: int = 4096,
        sample_rate: int = 44100,
        amplitude: float = 1.0,
        **kw,
    ) -> AudioBuffer:
        t = np.arange(frames, dtype=np.float64) / sample_rate
        row = (amplitude * np.sin(2.0 * np.pi * freq * t)).astype(np.float32)
        arr = np.tile(row, (channels, 1))
        return cls(arr, sample_rate=sample_rate, **kw)

    @classmethod
    def noise(
        cls,
        channels: int = 1,
        frames: int = 4096,
        sample_rate: int = 44100,
        seed: int | None = None,
        **kw,
    ) -> AudioBuffer:
        rng = np.random.default_rng(seed)
        arr = rng.uniform(-1.0, 1.0, (channels, frames)).astype(np.float32)
        return cls(arr, sample_rate=sample_rate, **kw)

    # ------------------------------------------------------------------
    # Time slicing
    # ------------------------------------------------------------------

    def slice(self, start_frame: int, end_frame: int) -> AudioBuffer:
        """Return a copy of frames ``[start_frame:end_frame]``."""
        return AudioBuffer(
            self._data[:, start_frame:end_frame].copy(),
            sample_rate=self._sample_rate,
            label=self._label,
        )

    # ------------------------------------------------------------------
    # Copy
    # ------------------------------------------------------------------

    def copy(self) -> AudioBuffer:
        """Deep copy with independent numpy storage."""
        return AudioBuffer(
            self._data.copy(),
            sample_rate=self._sample_rate,
            label=self._label,
        )

    def ensure_1d(self, channel: int = 0) -> np.ndarray:
        """Return a contiguous 1D float32 view of one channel."""
        return np.ascontiguousarray(self._data[channel])
