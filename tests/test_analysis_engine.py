"""
Tests for the single-pass analysis engine.
"""

import json

import pytest
import numpy as np

from photoscope.analysis import (
    ImageAnalyzer, ArrayRaster, CancellationSignal, PixelSampler,
    AnalysisErrorKind, AnalysisFailed, AnalysisOutcome, analyze_image
)
from photoscope.config import AnalysisSettings


class CountdownSignal(CancellationSignal):
    """Cancels itself after a fixed number of checks."""

    def __init__(self, checks_before_cancel: int):
        super().__init__()
        self.remaining = checks_before_cancel

    @property
    def is_cancelled(self) -> bool:
        self.remaining -= 1
        if self.remaining < 0:
            self.cancel()
        return super().is_cancelled


class PixelOnlyImage:
    """RasterImage exposing only the per-pixel accessor."""

    def __init__(self, pixels: np.ndarray):
        self.pixels = pixels
        self.width = pixels.shape[1]
        self.height = pixels.shape[0]

    def get_pixel(self, x, y):
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)


def uniform(color, width=4, height=4):
    return ArrayRaster.filled(width, height, color)


@pytest.fixture
def analyzer():
    return ImageAnalyzer()


@pytest.fixture
def random_image():
    rng = np.random.default_rng(42)
    return ArrayRaster(rng.integers(0, 256, size=(23, 37, 3), dtype=np.uint8))


class TestScenarios:
    """Reference images with known analysis outcomes."""

    def test_uniform_mid_gray(self, analyzer):
        """Mid-gray is balanced, unclipped and close to D65."""
        result = analyzer.analyze(uniform((128, 128, 128))).unwrap()

        lum = result.luminance.statistics
        assert not lum.shadow_clipping
        assert not lum.highlight_clipping
        assert lum.mean == 55
        assert lum.dynamic_range == 0
        assert abs(result.white_balance.tint) <= 0.05
        assert 5500 <= result.white_balance.temperature <= 7000
        assert not result.exposure.is_underexposed
        assert not result.exposure.is_overexposed
        assert result.exposure.recommendation == ""
        assert result.contrast.global_contrast == 0
        assert result.contrast.michelson_contrast == 0

    def test_pure_black(self, analyzer):
        """Black is shadow clipped and underexposed."""
        result = analyzer.analyze(uniform((0, 0, 0))).unwrap()

        assert result.luminance.statistics.shadow_clipping
        assert result.luminance.statistics.mean == pytest.approx(0.0)
        assert result.exposure.is_underexposed
        assert result.exposure.shadow_detail == 1.0
        assert result.white_balance.temperature == 5500
        assert result.white_balance.tint == 0
        assert result.exposure.recommendation.startswith("Increase exposure")
        assert "lift shadows" in result.exposure.recommendation

    def test_pure_white(self, analyzer):
        """White is highlight clipped and overexposed."""
        result = analyzer.analyze(uniform((255, 255, 255))).unwrap()

        assert result.luminance.statistics.highlight_clipping
        assert result.luminance.statistics.mean == pytest.approx(255.0)
        assert result.exposure.is_overexposed
        assert result.exposure.histogram_balance == pytest.approx(1.0)
        assert result.exposure.highlight_detail == 1.0
        assert result.contrast.michelson_contrast == pytest.approx(0.0)
        assert "Decrease exposure" in result.exposure.recommendation

    def test_pure_red(self, analyzer):
        """Pure red puts all color weight in the red ratio."""
        result = analyzer.analyze(uniform((255, 0, 0))).unwrap()

        wb = result.white_balance
        assert wb.red_ratio == pytest.approx(1.0)
        assert wb.green_ratio == pytest.approx(0.0)
        assert wb.blue_ratio == pytest.approx(0.0)
        assert result.red.bins[255] == 1.0
        assert result.red.statistics.highlight_clipping
        assert result.green.bins[0] == 1.0
        assert result.green.statistics.shadow_clipping
        assert result.luminance.statistics.mode == 54

    def test_half_black_half_white(self, analyzer):
        """Split image clips both ends and spans the full range."""
        pixels = np.zeros((10, 10, 3), dtype=np.uint8)
        pixels[:, 5:] = 255

        result = analyzer.analyze(ArrayRaster(pixels)).unwrap()

        lum = result.luminance.statistics
        assert lum.shadow_clipping and lum.highlight_clipping
        assert lum.dynamic_range == 255
        assert result.exposure.is_underexposed and result.exposure.is_overexposed
        assert result.contrast.michelson_contrast == pytest.approx(1.0)
        assert result.contrast.global_contrast == pytest.approx(1.0)
        assert result.exposure.shadow_detail == pytest.approx(0.5)
        assert result.exposure.highlight_detail == pytest.approx(0.5)


class TestInvariants:
    """Properties that hold for any image."""

    def test_normalization(self, analyzer, random_image):
        result = analyzer.analyze(random_image).unwrap()

        for histogram in result.histograms.values():
            assert len(histogram.bins) == 256
            assert max(histogram.bins) == 1.0
            assert min(histogram.bins) >= 0.0

    def test_ranges(self, analyzer):
        rng = np.random.default_rng(9)
        for color in rng.integers(0, 256, size=(25, 3)):
            result = analyzer.analyze(uniform(tuple(int(c) for c in color), 3, 3)).unwrap()
            assert 2000 <= result.white_balance.temperature <= 25000
            assert -1 <= result.white_balance.tint <= 1
            assert 0 <= result.exposure.shadow_detail <= 1
            assert 0 <= result.exposure.highlight_detail <= 1

    def test_determinism(self, analyzer, random_image):
        """Two analyses of the same pixels are identical."""
        first = analyzer.analyze(random_image).unwrap()
        second = analyzer.analyze(random_image).unwrap()

        assert first == second

    @pytest.mark.parametrize("workers", [2, 3, 8, 100])
    def test_partitioned_pass_matches_single(self, random_image, workers):
        """Row bands analyzed in parallel give bit-identical results."""
        single = ImageAnalyzer().analyze(random_image).unwrap()
        banded = ImageAnalyzer(AnalysisSettings(workers=workers)).analyze(random_image).unwrap()

        assert banded == single

    def test_pixel_accessor_matches_row_accessor(self, analyzer, random_image):
        """Images without get_row are sampled pixel by pixel."""
        fast = analyzer.analyze(random_image).unwrap()
        slow = analyzer.analyze(PixelOnlyImage(random_image.pixels)).unwrap()

        assert slow == fast

    def test_result_is_immutable(self, analyzer):
        result = analyzer.analyze(uniform((10, 20, 30))).unwrap()
        with pytest.raises(Exception):
            result.width = 5

    def test_to_dict_is_json_serialisable(self, analyzer, random_image):
        result = analyzer.analyze(random_image).unwrap()

        data = json.loads(json.dumps(result.to_dict()))

        assert data['total_pixels'] == 23 * 37
        assert len(data['histograms']['luminance']['bins']) == 256
        assert 'bins' not in result.to_dict(include_bins=False)['histograms']['red']


class TestCancellation:
    """Cooperative cancellation at row granularity."""

    def test_cancel_before_start(self, analyzer):
        signal = CancellationSignal()
        signal.cancel()

        outcome = analyzer.analyze(uniform((50, 60, 70), 200, 200), signal)

        assert not outcome.ok
        assert outcome.cancelled
        assert outcome.result is None
        assert outcome.error.kind is AnalysisErrorKind.CANCELLED

    def test_cancel_mid_pass(self, analyzer):
        """Cancelling partway through returns no partial result."""
        outcome = analyzer.analyze(uniform((50, 60, 70), 300, 300), CountdownSignal(5))

        assert outcome.cancelled
        assert outcome.result is None
        with pytest.raises(AnalysisFailed) as excinfo:
            outcome.unwrap()
        assert excinfo.value.error.kind is AnalysisErrorKind.CANCELLED

    def test_cancel_with_workers(self):
        signal = CancellationSignal()
        signal.cancel()
        analyzer = ImageAnalyzer(AnalysisSettings(workers=4))

        assert analyzer.analyze(uniform((1, 2, 3), 50, 50), signal).cancelled

    def test_uncancelled_signal(self, analyzer):
        outcome = analyzer.analyze(uniform((1, 2, 3)), CancellationSignal())
        assert outcome.ok


class TestInvalidImages:
    """Invalid input is reported as an error value."""

    def test_zero_area_rejected_by_default(self, analyzer):
        outcome = analyzer.analyze(ArrayRaster(np.zeros((0, 4, 3), dtype=np.uint8)))

        assert outcome.error.kind is AnalysisErrorKind.INVALID_IMAGE
        assert outcome.result is None

    @pytest.mark.parametrize("shape", [(0, 4, 3), (4, 0, 3), (0, 0, 3)])
    def test_zero_area_allowed(self, shape):
        """Empty images give all-zero histograms and fallback values."""
        analyzer = ImageAnalyzer(AnalysisSettings(allow_empty_images=True))

        result = analyzer.analyze(ArrayRaster(np.zeros(shape, dtype=np.uint8))).unwrap()

        for histogram in result.histograms.values():
            assert not any(histogram.bins)
        assert result.white_balance.temperature == 5500
        assert result.white_balance.tint == 0
        assert result.contrast.rms_contrast == 0
        assert not result.exposure.is_underexposed
        assert result.exposure.recommendation == ""

    def test_missing_dimensions(self, analyzer):
        outcome = analyzer.analyze(object())
        assert outcome.error.kind is AnalysisErrorKind.INVALID_IMAGE

    def test_negative_dimensions(self, analyzer):
        class Broken:
            width = -1
            height = 4

            def get_pixel(self, x, y):
                return 0, 0, 0

        assert analyzer.analyze(Broken()).error.kind is AnalysisErrorKind.INVALID_IMAGE

    def test_failing_accessor(self, analyzer):
        class OutOfRange(PixelOnlyImage):
            def get_pixel(self, x, y):
                if y == 2:
                    raise IndexError("row out of range")
                return super().get_pixel(x, y)

        image = OutOfRange(np.zeros((4, 4, 3), dtype=np.uint8))
        outcome = analyzer.analyze(image)

        assert outcome.error.kind is AnalysisErrorKind.INVALID_IMAGE
        assert "row 2" in outcome.error.message

    @pytest.mark.parametrize("failure", [
        AttributeError("no pixel buffer"),
        KeyError("pixels"),
        OSError("truncated file"),
        RuntimeError("decoder failed"),
    ])
    def test_any_accessor_failure_is_invalid_image(self, analyzer, failure):
        """Whatever the accessor raises, analyze returns an error value."""
        class Unusable(PixelOnlyImage):
            def get_pixel(self, x, y):
                raise failure

        outcome = analyzer.analyze(Unusable(np.zeros((3, 3, 3), dtype=np.uint8)))

        assert outcome.error.kind is AnalysisErrorKind.INVALID_IMAGE
        assert "row 0" in outcome.error.message

    def test_malformed_pixels(self, analyzer):
        class TwoChannel(PixelOnlyImage):
            def get_pixel(self, x, y):
                return 1, 2

        class Overflow(PixelOnlyImage):
            def get_pixel(self, x, y):
                return 300, 0, 0

        pixels = np.zeros((2, 2, 3), dtype=np.uint8)
        assert analyzer.analyze(TwoChannel(pixels)).error.kind is AnalysisErrorKind.INVALID_IMAGE
        assert analyzer.analyze(Overflow(pixels)).error.kind is AnalysisErrorKind.INVALID_IMAGE


class TestPixelSampler:
    """Row iteration over a RasterImage."""

    def test_rows_in_order_once(self):
        pixels = np.arange(4 * 3 * 3, dtype=np.uint8).reshape(4, 3, 3)
        sampler = PixelSampler(ArrayRaster(pixels))

        rows = list(sampler.rows())

        assert [y for y, _ in rows] == [0, 1, 2, 3]
        for y, row in rows:
            assert np.array_equal(row, pixels[y])
        assert sampler.error is None

    def test_row_range(self):
        sampler = PixelSampler(uniform((0, 0, 0), 2, 6))
        assert [y for y, _ in sampler.rows(2, 4)] == [2, 3]


class TestOutcome:
    """AnalysisOutcome tagging and convenience wrapper."""

    def test_outcome_requires_exactly_one(self):
        with pytest.raises(ValueError):
            AnalysisOutcome()

    def test_analyze_image_uses_config(self):
        config = {'analysis': {'allow_empty_images': True}}
        empty = ArrayRaster(np.zeros((0, 0, 3), dtype=np.uint8))

        assert analyze_image(empty, config=config).ok
        assert not analyze_image(empty).ok

    def test_array_raster_channels(self):
        gray = ArrayRaster(np.full((2, 3), 7, dtype=np.uint8))
        rgba = ArrayRaster(np.full((2, 3, 4), 9, dtype=np.uint8))

        assert gray.get_pixel(2, 1) == (7, 7, 7)
        assert rgba.get_row(0).shape == (3, 3)
        with pytest.raises(TypeError):
            ArrayRaster(np.zeros((2, 2, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            ArrayRaster(np.zeros((2, 2, 2), dtype=np.uint8))
