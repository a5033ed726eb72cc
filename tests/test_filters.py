"""
Tests for the ImageFlow filters.

Tests verify actual pixel values to ensure filters work correctly.
"""

import numpy as np
import pytest

from imageflow import PixelBuffer
from imageflow.filters import (
    BoxBlur,
    BoxBlurGPU,
    Brightness,
    ExecutionPath,
    Grayscale,
    GrayscaleGPU,
    Invert,
    Sepia,
)


def solid(r: int, g: int, b: int, size: int = 3) -> PixelBuffer:
    """Create a solid RGB image."""
    pixels = np.zeros((size, size, 3), dtype=np.uint8)
    pixels[:, :] = (r, g, b)
    return PixelBuffer.from_array(pixels)


class TestFilterContract:
    """Behaviour shared by every filter."""

    @pytest.mark.parametrize("filter", [
        Grayscale(), Invert(), Brightness(factor=1.5), BoxBlur(radius=2), Sepia(),
    ], ids=lambda f: f.filter_id)
    def test_input_is_not_modified(self, filter, gradient_image):
        before = gradient_image.copy()
        output = PixelBuffer(1, 1, 1)
        filter.apply(gradient_image, output)
        assert gradient_image == before

    @pytest.mark.parametrize("filter", [
        Invert(), Brightness(factor=0.7), BoxBlur(radius=1), Sepia(),
    ], ids=lambda f: f.filter_id)
    def test_output_takes_input_shape(self, filter, gradient_image):
        output = PixelBuffer(1, 1, 1)
        filter.apply(gradient_image, output)
        assert output.shape == gradient_image.shape

    def test_timing_recorded(self, gradient_image):
        f = Invert()
        assert f.last_execution_duration_ms == 0.0
        assert f.last_execution_path is None
        f(gradient_image)
        assert f.last_execution_duration_ms >= 0.0
        assert f.last_execution_path is ExecutionPath.HOST

    def test_duplicate_has_same_params_and_no_history(self, gradient_image):
        f = BoxBlur(radius=4)
        f(gradient_image)
        dup = f.duplicate()
        assert dup is not f
        assert dup.radius == 4
        assert dup.name == f.name
        assert dup.last_execution_duration_ms == 0.0
        assert dup.last_execution_path is None

    def test_duplicate_is_independent(self):
        f = Brightness(factor=1.2)
        dup = f.duplicate()
        dup.factor = 0.5
        assert f.factor == 1.2

    def test_supports_accelerator(self):
        assert GrayscaleGPU().supports_accelerator()
        assert BoxBlurGPU().supports_accelerator()
        for f in (Grayscale(), BoxBlur(), Brightness(), Invert(), Sepia()):
            assert not f.supports_accelerator()

    def test_names(self):
        assert Grayscale().name == 'Grayscale'
        assert GrayscaleGPU().name == 'Grayscale (GPU)'
        assert BoxBlur(radius=3).name == 'Box Blur (radius=3)'
        assert BoxBlurGPU(radius=3).name == 'Box Blur GPU (radius=3)'
        assert Brightness(factor=1.2).name == 'Brightness (factor=1.2)'
        assert Brightness(factor=1.2345671).name != Brightness(factor=1.2345674).name
        assert Brightness(factor=np.float32(0.5)).name == 'Brightness (factor=0.5)'
        assert Invert().name == 'Invert'
        assert Sepia().name == 'Sepia Tone'

    def test_to_dict(self):
        assert BoxBlur(radius=3).to_dict() == {'radius': 3, 'type': 'boxblur'}
        assert GrayscaleGPU().to_dict() == {'type': 'grayscale', 'accelerator': True}

    def test_to_string_skips_defaults(self):
        assert BoxBlur().to_string() == 'boxblur'
        assert BoxBlur(radius=5).to_string() == 'boxblur radius=5'
        assert BoxBlurGPU(radius=5).to_string() == 'boxblur radius=5 gpu=true'
        assert Brightness(factor=1.2).to_string() == 'brightness factor=1.2'


class TestGrayscaleFilter:
    """Tests for Grayscale."""

    def test_output_single_channel(self, gradient_image):
        result = Grayscale()(gradient_image)
        assert result.shape == (gradient_image.width, gradient_image.height, 1)

    @pytest.mark.parametrize("rgb,expected", [
        ((255, 0, 0), 76),
        ((0, 255, 0), 149),
        ((0, 0, 255), 29),
        ((0, 0, 0), 0),
    ])
    def test_luminance_weights(self, rgb, expected):
        result = Grayscale()(solid(*rgb))
        assert result.at(1, 1, 0) == expected

    @pytest.mark.parametrize("value", [0, 1, 100, 128, 254, 255])
    def test_equal_channels_keep_value(self, value):
        result = Grayscale()(solid(value, value, value))
        assert abs(result.at(0, 0, 0) - value) <= 1

    def test_constant_image(self, constant_image):
        result = Grayscale()(constant_image)
        assert np.all(np.abs(result.data.astype(int) - 100) <= 1)

    def test_single_channel_copied(self):
        src = PixelBuffer.from_array(np.array([[10, 20], [30, 40]], dtype=np.uint8))
        assert Grayscale()(src) == src

    def test_gray_alpha_keeps_gray_channel(self):
        pixels = np.zeros((2, 2, 2), dtype=np.uint8)
        pixels[:, :, 0] = 60
        pixels[:, :, 1] = 255
        result = Grayscale()(PixelBuffer.from_array(pixels))
        assert result.channels == 1
        assert result.at(1, 1, 0) == 60

    def test_rgba_ignores_alpha(self):
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)
        pixels[:, :, 3] = 255
        result = Grayscale()(PixelBuffer.from_array(pixels))
        assert result.at(0, 0, 0) == 0


class TestBoxBlurFilter:
    """Tests for BoxBlur."""

    def test_radius_zero_is_identity(self, noise_image):
        assert BoxBlur(radius=0)(noise_image) == noise_image

    def test_constant_image_unchanged(self, constant_image):
        assert BoxBlur(radius=2)(constant_image) == constant_image

    def test_default_radius(self):
        assert BoxBlur().radius == 2

    def test_edges_average_in_bounds_samples(self):
        pixels = np.zeros((3, 3, 1), dtype=np.uint8)
        pixels[1, 1, 0] = 90
        result = BoxBlur(radius=1)(PixelBuffer.from_array(pixels))
        assert result.at(1, 1, 0) == 10  # 90 / 9
        assert result.at(0, 0, 0) == 22  # 90 / 4, truncated
        assert result.at(1, 0, 0) == 15  # 90 / 6

    def test_output_within_neighbourhood_bounds(self, noise_image):
        radius = 2
        result = BoxBlur(radius=radius)(noise_image)
        src = noise_image.pixels
        out = result.pixels
        for y in (0, 5, 22):
            for x in (0, 7, 36):
                window = src[max(0, y - radius):y + radius + 1, max(0, x - radius):x + radius + 1]
                for c in range(noise_image.channels):
                    assert window[:, :, c].min() <= out[y, x, c] <= window[:, :, c].max()

    def test_matches_direct_average(self, noise_image):
        radius = 3
        result = BoxBlur(radius=radius)(noise_image)
        src = noise_image.pixels.astype(np.int64)
        y, x = 10, 20
        window = src[y - radius:y + radius + 1, x - radius:x + radius + 1]
        expected = window.sum(axis=(0, 1)) // window.shape[0] // window.shape[1]
        np.testing.assert_array_equal(result.pixels[y, x], expected)

    def test_radius_larger_than_image(self):
        pixels = np.array([[0, 100], [200, 100]], dtype=np.uint8)
        result = BoxBlur(radius=10)(PixelBuffer.from_array(pixels))
        assert np.all(result.data == 100)

    @pytest.mark.parametrize("radius", [-1, 1.5, True, 'x'])
    def test_invalid_radius(self, radius):
        with pytest.raises(ValueError):
            BoxBlur(radius=radius)
        with pytest.raises(ValueError):
            BoxBlurGPU(radius=radius)


class TestBrightnessFilter:
    """Tests for Brightness."""

    def test_one_unchanged(self, noise_image):
        assert Brightness(factor=1.0)(noise_image) == noise_image

    def test_zero_is_black(self, noise_image):
        result = Brightness(factor=0.0)(noise_image)
        assert not result.data.any()

    def test_scales_and_clamps(self):
        result = Brightness(factor=1.5)(solid(100, 200, 0))
        assert result.at(0, 0, 0) == 150
        assert result.at(0, 0, 1) == 255
        assert result.at(0, 0, 2) == 0

    def test_truncates(self):
        result = Brightness(factor=0.5)(solid(101, 1, 255))
        assert result.at(0, 0, 0) == 50
        assert result.at(0, 0, 1) == 0
        assert result.at(0, 0, 2) == 127

    def test_negative_factor_clamps_to_zero(self, constant_image):
        result = Brightness(factor=-2.0)(constant_image)
        assert not result.data.any()

    @pytest.mark.parametrize("factor", [float('nan'), float('inf')])
    def test_non_finite_factor(self, factor):
        with pytest.raises(ValueError):
            Brightness(factor=factor)


class TestInvertFilter:
    """Tests for Invert."""

    def test_constant(self, constant_image):
        result = Invert()(constant_image)
        assert np.all(result.data == 155)

    def test_black_to_white(self):
        assert np.all(Invert()(solid(0, 0, 0)).data == 255)

    def test_involution(self, noise_image):
        assert Invert()(Invert()(noise_image)) == noise_image

    def test_inverts_alpha(self):
        pixels = np.zeros((1, 1, 4), dtype=np.uint8)
        pixels[0, 0, 3] = 255
        result = Invert()(PixelBuffer.from_array(pixels))
        assert result.at(0, 0, 3) == 0


class TestSepiaFilter:
    """Tests for Sepia."""

    def test_gray_input(self):
        result = Sepia()(solid(100, 100, 100))
        assert (result.at(0, 0, 0), result.at(0, 0, 1), result.at(0, 0, 2)) == (135, 120, 93)

    def test_white_clamps(self):
        result = Sepia()(solid(255, 255, 255))
        assert (result.at(0, 0, 0), result.at(0, 0, 1), result.at(0, 0, 2)) == (255, 255, 238)

    def test_preserves_alpha(self):
        pixels = np.full((2, 2, 4), 100, dtype=np.uint8)
        pixels[:, :, 3] = 42
        result = Sepia()(PixelBuffer.from_array(pixels))
        assert result.channels == 4
        assert result.at(1, 1, 3) == 42
        assert result.at(1, 1, 0) == 135

    def test_gray_input_passes_through(self):
        src = PixelBuffer.from_array(np.full((2, 2), 80, dtype=np.uint8))
        assert Sepia()(src) == src
