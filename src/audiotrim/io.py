"""WAV encoding and file I/O for AudioBuffer.

:func:`encode_wav` produces the canonical 44-byte-header, 16-bit PCM
container used for lossless export.  :func:`read_wav` decodes 8/16/24/32-bit
PCM files (stdlib ``wave``) so edits can be driven from the command line.
"""

from __future__ import annotations

import struct
import wave
from pathlib import Path

import numpy as np

from audiotrim.buffer import AudioBuffer

WAV_HEADER_SIZE = 44
BITS_PER_SAMPLE = 16

# RIFF header through the data chunk size, little-endian.
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def quantize_int16(data: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1] and convert to int16.

    Negative samples scale by 32768 and non-negative ones by 32767, then
    truncate toward zero, so -1.0 maps to -32768 and 1.0 to 32767.  NaN is
    written as silence.
    """
    x = np.nan_to_num(np.asarray(data, dtype=np.float64), nan=0.0)
    np.clip(x, -1.0, 1.0, out=x)
    scaled = np.where(x < 0, x * 32768.0, x * 32767.0)
    return np.trunc(scaled).astype("<i2")


def wav_header(channels: int, sample_rate: int, frames: int) -> bytes:
    """Build the 44-byte RIFF/WAVE header for 16-bit integer PCM."""
    block_align = channels * (BITS_PER_SAMPLE // 8)
    data_size = frames * block_align
    return _HEADER.pack(
        b"RIFF",
        WAV_HEADER_SIZE + data_size - 8,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def encode_wav(buf: AudioBuffer) -> bytes:
    """Serialize *buf* as a 16-bit PCM WAV byte string.

    Samples are interleaved frame by frame in channel order.  A zero-frame
    buffer yields a header-only file.
    """
    header = wav_header(buf.channels, buf.sample_rate, buf.frames)
    # [channels, frames] -> [frames, channels] -> flat interleaved
    samples = quantize_int16(buf.data).T
    return header + samples.tobytes()


def write_wav(path: str | Path, buf: AudioBuffer) -> None:
    """Write *buf* to *path* as a 16-bit PCM WAV file."""
    Path(path).write_bytes(encode_wav(buf))


def read_wav(path: str | Path) -> AudioBuffer:
    """Read a WAV file and return an AudioBuffer.

    Supports 8-bit unsigned, 16-bit signed, 24-bit signed, and 32-bit signed PCM.
    Output is float32 normalized to [-1, 1].
    """
    path = Path(path)
    try:
        with wave.open(str(path), "rb") as wf:
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            sample_rate = wf.getframerate()
            n_frames = wf.getnframes()
            raw_bytes = wf.readframes(n_frames)
    except wave.Error as e:
        raise ValueError(f"Not a readable PCM WAV file: {e}") from None

    total_samples = n_frames * n_channels

    if sampwidth == 1:
        # 8-bit unsigned
        samples = np.frombuffer(raw_bytes, dtype=np.uint8).astype(np.float32)
        samples = (samples - 128.0) / 128.0
    elif sampwidth == 2:
        samples = np.frombuffer(raw_bytes, dtype="<i2").astype(np.float32)
        samples = samples / 32768.0
    elif sampwidth == 3:
        raw = np.frombuffer(raw_bytes, dtype=np.uint8).reshape(-1, 3)
        padded = np.zeros((len(raw), 4), dtype=np.uint8)
        padded[:, 0:3] = raw
        # Sign extend from the high bit of the third byte
        padded[:, 3] = np.where(raw[:, 2] & 0x80, 0xFF, 0x00)
        samples = padded.view("<i4").flatten().astype(np.float32)
        samples = samples / 8388608.0
    elif sampwidth == 4:
        samples = np.frombuffer(raw_bytes, dtype="<i4").astype(np.float32)
        samples = samples / 2147483648.0
    else:
        raise ValueError(f"Unsupported sample width: {sampwidth} bytes")

    if len(samples) != total_samples:
        raise ValueError(f"Expected {total_samples} samples, got {len(samples)}")

    # Interleaved: [L0, R0, L1, R1, ...] -> [[L0, L1, ...], [R0, R1, ...]]
    data = samples.reshape(-1, n_channels).T
    data = np.ascontiguousarray(data, dtype=np.float32)
    return AudioBuffer(data, sample_rate=sample_rate, label=path.name)


_FORMAT_READERS = {
    ".wav": read_wav,
}

_FORMAT_WRITERS = {
    ".wav": write_wav,
}


def read(path: str | Path) -> AudioBuffer:
    """Read an audio file and return an AudioBuffer.

    Format is detected by file extension.
    """
    path = Path(path)
    ext = path.suffix.lower()
    reader = _FORMAT_READERS.get(ext)
    if reader is None:
        supported = ", ".join(sorted(_FORMAT_READERS))
        raise ValueError(f"Unsupported audio format '{ext}'. Supported: {supported}")
    return reader(path)


def write(path: str | Path, buf: AudioBuffer) -> None:
    """Write an AudioBuffer to an audio file.

    Format is detected by file extension.
    """
    path = Path(path)
    ext = path.suffix.lower()
    writer = _FORMAT_WRITERS.get(ext)
    if writer is None:
        supported = ", ".join(sorted(_FORMAT_WRITERS))
        raise ValueError(f"Unsupported audio format '{ext}'. Supported: {supported}")
    writer(path, buf)
