"""Tests for audiotrim.peaks (waveform summaries and overlays)."""

import numpy as np
import numpy.testing as npt
import pytest

from audiotrim.buffer import AudioBuffer
from audiotrim.peaks import (
    EMPTY_MAX,
    EMPTY_MIN,
    PeakBuckets,
    crop_mask,
    extract_peaks,
    overlay,
)
from audiotrim.settings import default_settings


class TestExtractPeaks:
    def test_basic_buckets(self):
        buf = AudioBuffer([0.1, -0.2, 0.5, 0.3, -0.9, 0.0], sample_rate=8000)
        peaks = extract_peaks(buf, 3)
        assert isinstance(peaks, PeakBuckets)
        npt.assert_allclose(peaks.positive, [0.1, 0.5, 0.0])
        npt.assert_allclose(peaks.negative, [-0.2, 0.3, -0.9])

    def test_remainder_dropped(self):
        # 7 samples / 3 buckets = 2 per bucket; the last sample is ignored
        buf = AudioBuffer([0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 1.0])
        peaks = extract_peaks(buf, 3)
        assert peaks.positive.max() == pytest.approx(0.5)

    @pytest.mark.parametrize("n", [1, 7, 64, 1000, 5000])
    def test_shape_always_n(self, n):
        buf = AudioBuffer.noise(1, 1000, seed=0)
        peaks = extract_peaks(buf, n)
        assert peaks.positive.shape == (n,)
        assert peaks.negative.shape == (n,)

    def test_positive_ge_negative(self):
        buf = AudioBuffer.noise(1, 10000, seed=9)
        peaks = extract_peaks(buf, 300)
        assert np.all(peaks.positive >= peaks.negative)

    def test_more_buckets_than_samples_sentinel(self):
        buf = AudioBuffer([0.5, -0.5, 0.25])
        peaks = extract_peaks(buf, 10)
        npt.assert_array_equal(peaks.positive, EMPTY_MAX)
        npt.assert_array_equal(peaks.negative, EMPTY_MIN)
        assert EMPTY_MAX == -1.0 and EMPTY_MIN == 1.0

    def test_empty_buffer(self):
        buf = AudioBuffer.zeros(1, 0)
        peaks = extract_peaks(buf, 4)
        npt.assert_array_equal(peaks.positive, -1.0)
        npt.assert_array_equal(peaks.negative, 1.0)

    @pytest.mark.parametrize("n", [0, -3])
    def test_non_positive_bucket_count(self, n):
        peaks = extract_peaks(AudioBuffer.ones(1, 10), n)
        assert peaks.positive.shape == (0,)
        assert peaks.negative.shape == (0,)

    def test_first_channel_only(self):
        data = np.zeros((2, 8), dtype=np.float32)
        data[1] = 0.9
        peaks = extract_peaks(AudioBuffer(data), 2)
        npt.assert_array_equal(peaks.positive, 0.0)

    def test_unpacks(self):
        pos, neg = extract_peaks(AudioBuffer.ones(1, 4), 2)
        npt.assert_array_equal(pos, 1.0)
        npt.assert_array_equal(neg, 1.0)

    def test_source_untouched(self):
        buf = AudioBuffer.noise(1, 100, seed=1)
        before = buf.data.copy()
        extract_peaks(buf, 10)
        npt.assert_array_equal(buf.data, before)


class TestOverlay:
    def test_crop_positions(self):
        s = default_settings(10.0).with_crop_start(2.0).with_crop_end(8.0)
        ov = overlay(s, 10.0, 500)
        assert ov.crop_start_px == pytest.approx(100.0)
        assert ov.crop_end_px == pytest.approx(400.0)
        assert ov.fade_in_span is None
        assert ov.fade_out_span is None

    def test_fade_spans(self):
        s = (
            default_settings(10.0)
            .with_crop_start(2.0)
            .with_crop_end(8.0)
            .with_fade_in(enabled=True, duration=1.0)
            .with_fade_out(enabled=True, duration=0.5)
        )
        ov = overlay(s, 10.0, 1000)
        assert ov.fade_in_span == pytest.approx((200.0, 300.0))
        assert ov.fade_out_span == pytest.approx((750.0, 800.0))

    def test_in_crop(self):
        s = default_settings(4.0).with_crop_start(1.0)
        ov = overlay(s, 4.0, 400)
        assert not ov.in_crop(50)
        assert ov.in_crop(100)
        assert ov.in_crop(400)

    def test_crop_mask(self):
        s = default_settings(4.0).with_crop_start(1.0).with_crop_end(2.0)
        ov = overlay(s, 4.0, 8)
        npt.assert_array_equal(
            crop_mask(ov, 8), [False, False, True, True, True, False, False, False]
        )

    def test_zero_duration(self):
        ov = overlay(default_settings(0.0), 0.0, 100)
        assert ov.crop_start_px == ov.crop_end_px == 0.0
