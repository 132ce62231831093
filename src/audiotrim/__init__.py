"""
audiotrim - in-memory audio editing: crop, volume, fades, WAV export.

Submodules:
    audiotrim.buffer     - AudioBuffer, the planar float32 sample matrix
    audiotrim.curves     - Easing curves for fades
    audiotrim.settings   - Edit settings, defaults, validation, JSON config
    audiotrim.envelope   - Fade envelope construction
    audiotrim.processing - Edit rendering and render sessions
    audiotrim.peaks      - Waveform peak summaries and overlay geometry
    audiotrim.io         - WAV encoding and file I/O
    audiotrim.export     - WAV / compressed export and file naming
    audiotrim.transport  - Preview playback state
    audiotrim.errors     - Exception types
"""

__version__ = "0.1.0"

from audiotrim.buffer import AudioBuffer
from audiotrim.curves import CurveKind, evaluate
from audiotrim.settings import EditSettings, FadeSettings, default_settings
from audiotrim.processing import render, RenderSession
from audiotrim.peaks import PeakBuckets, extract_peaks
from audiotrim.io import encode_wav
from audiotrim import errors

__all__ = [
    "AudioBuffer",
    "CurveKind",
    "evaluate",
    "EditSettings",
    "FadeSettings",
    "default_settings",
    "render",
    "RenderSession",
    "PeakBuckets",
    "extract_peaks",
    "encode_wav",
    "errors",
]
