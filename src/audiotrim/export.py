"""Export of rendered buffers: lossless WAV or a host-provided compressed codec.

Compressed export hands the buffer to a live encoder supplied by the host
(:class:`EncoderHost`).  This module only chooses which container/codec to
ask for, feeds the audio, and makes sure the encode always terminates:
end-of-stream notifications from live encoders are not guaranteed, so a
safety timeout of ``duration + 1s`` forces a finalize and the bytes
collected so far are returned.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Callable, Protocol

import numpy as np

from audiotrim.buffer import AudioBuffer
from audiotrim.errors import EncodeTimeout, UnsupportedContainer
from audiotrim.io import encode_wav

logger = logging.getLogger(__name__)

TIMEOUT_MARGIN = 1.0
DEFAULT_BLOCK_FRAMES = 4096


@dataclass(frozen=True)
class ContainerChoice:
    """One container/codec combination the exporter can request."""

    mime_type: str
    tag: str
    extension: str


# Probed in order; the first one the host supports wins.
CONTAINER_PREFERENCES: tuple[ContainerChoice, ...] = (
    ContainerChoice("audio/mp4;codecs=opus", "mp4", "m4a"),
    ContainerChoice("audio/ogg;codecs=opus", "ogg", "ogg"),
    ContainerChoice("audio/webm;codecs=opus", "webm", "webm"),
    ContainerChoice("audio/webm", "webm", "webm"),
)

_EXTENSIONS = {choice.tag: choice.extension for choice in CONTAINER_PREFERENCES}


class LiveEncoder(Protocol):
    """A streaming encoder driven at playback rate."""

    def start(self, on_data: Callable[[bytes], None]) -> None:
        """Begin encoding; encoded chunks are delivered through *on_data*."""

    def feed(self, block: np.ndarray) -> None:
        """Push a planar ``[channels, frames]`` float32 block."""

    def stop(self) -> None:
        """Signal end of input; the encoder finishes asynchronously."""

    async def wait_finished(self) -> None:
        """Return once the encoder has emitted its end-of-stream signal."""

    def finalize(self) -> None:
        """Force the encoder to flush whatever it holds through *on_data*."""


class EncoderHost(Protocol):
    """Source of live encoders (the platform media layer)."""

    def is_type_supported(self, mime_type: str) -> bool:
        ...

    def create_encoder(
        self, mime_type: str, channels: int, sample_rate: int
    ) -> LiveEncoder:
        ...


def select_container(
    host: EncoderHost,
    preferences: tuple[ContainerChoice, ...] = CONTAINER_PREFERENCES,
) -> ContainerChoice:
    """Return the first preference *host* supports.

    Raises
    ------
    UnsupportedContainer
        If the host supports none of them.
    """
    for choice in preferences:
        if host.is_type_supported(choice.mime_type):
            return choice
    tried = ", ".join(c.mime_type for c in preferences)
    raise UnsupportedContainer(f"No supported container among: {tried}")


class CompressedExporter:
    """Drives one live encode of a rendered buffer.

    Parameters
    ----------
    host : EncoderHost
        Provides codec support probing and encoder instances.
    preferences : tuple of ContainerChoice
        Container negotiation order.
    block_frames : int
        Frames pushed to the encoder per block.
    realtime : bool
        Pace blocks at playback rate (the host encoder consumes live
        audio).  Disable to push blocks back to back.
    timeout_margin : float
        Seconds added to the buffer duration to form the safety timeout.
    """

    def __init__(
        self,
        host: EncoderHost,
        preferences: tuple[ContainerChoice, ...] = CONTAINER_PREFERENCES,
        block_frames: int = DEFAULT_BLOCK_FRAMES,
        realtime: bool = True,
        timeout_margin: float = TIMEOUT_MARGIN,
    ):
        if block_frames < 1:
            raise ValueError(f"block_frames must be >= 1, got {block_frames}")
        self._host = host
        self._preferences = preferences
        self._block_frames = block_frames
        self._realtime = realtime
        self._timeout_margin = timeout_margin
        self._cancel_event: asyncio.Event | None = None
        self.timed_out = False

    def select_container(self) -> ContainerChoice:
        return select_container(self._host, self._preferences)

    def timeout_for(self, buf: AudioBuffer) -> float:
        """Safety timeout for encoding *buf*, in seconds."""
        return buf.duration + self._timeout_margin

    def cancel(self) -> None:
        """Stop the running export early; it returns what was encoded so far."""
        if self._cancel_event is not None:
            self._cancel_event.set()

    async def _feed(self, encoder: LiveEncoder, buf: AudioBuffer) -> None:
        step = self._block_frames
        for start in range(0, buf.frames, step):
            block = buf.data[:, start : start + step]
            encoder.feed(block)
            if self._realtime:
                await asyncio.sleep(block.shape[1] / buf.sample_rate)
            else:
                await asyncio.sleep(0)
        encoder.stop()

    async def export(self, buf: AudioBuffer) -> tuple[bytes, str]:
        """Encode *buf* and return ``(encoded_bytes, container_tag)``.

        Raises
        ------
        UnsupportedContainer
            If no preferred container is available.
        """
        choice = self.select_container()
        logger.debug("Exporting %r as %s", buf, choice.mime_type)

        chunks: list[bytes] = []
        encoder = self._host.create_encoder(
            choice.mime_type, buf.channels, buf.sample_rate
        )
        encoder.start(chunks.append)

        self._cancel_event = asyncio.Event()
        self.timed_out = False
        timeout = self.timeout_for(buf)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        feeder = asyncio.ensure_future(self._feed(encoder, buf))
        finished = asyncio.ensure_future(encoder.wait_finished())
        cancelled = asyncio.ensure_future(self._cancel_event.wait())
        waiting = {feeder, finished, cancelled}
        force = False
        try:
            while True:
                remaining = deadline - loop.time()
                done: set = set()
                if remaining > 0:
                    done, _ = await asyncio.wait(
                        waiting, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                    )
                if not done:
                    self.timed_out = True
                    force = True
                    logger.warning(
                        "%s; finalizing with %d bytes buffered",
                        EncodeTimeout(timeout),
                        sum(len(c) for c in chunks),
                    )
                    break
                if feeder in done:
                    feeder.result()
                    waiting.discard(feeder)
                if finished in done:
                    finished.result()
                    break
                if cancelled in done:
                    logger.info("Export cancelled; finalizing early")
                    force = True
                    break
        finally:
            leftover = [t for t in (feeder, finished, cancelled) if not t.done()]
            for task in leftover:
                task.cancel()
            await asyncio.gather(*leftover, return_exceptions=True)
            self._cancel_event = None

        if force:
            encoder.finalize()
        return b"".join(chunks), choice.tag


def extension_for(tag: str) -> str:
    """File extension for a container tag (``'wav'`` passes through)."""
    return _EXTENSIONS.get(tag, tag)


async def export_audio(
    buf: AudioBuffer,
    fmt: str = "wav",
    host: EncoderHost | None = None,
) -> tuple[bytes, str]:
    """Export *buf* as ``'wav'`` or ``'opus'``; return ``(bytes, extension)``.

    ``'opus'`` requires a *host* that can create live encoders.
    """
    fmt = fmt.lower()
    if fmt == "wav":
        return encode_wav(buf), "wav"
    if fmt == "opus":
        if host is None:
            raise UnsupportedContainer("Compressed export needs an encoder host")
        data, tag = await CompressedExporter(host).export(buf)
        return data, extension_for(tag)
    raise ValueError(f"Unknown export format {fmt!r}, expected 'wav' or 'opus'")


def export_filename(source_name: str, extension: str) -> str:
    """Download name for an edited file: ``song.mp3`` -> ``song-edited.wav``."""
    stem = re.sub(r"\.[^.]+$", "", source_name)
    return f"{stem}-edited.{extension}"
