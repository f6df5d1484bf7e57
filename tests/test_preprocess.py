"""
Tests for the bitmap preprocessing chain.
"""

import numpy as np
import pytest
from PIL import Image

from pngtosvg.exceptions import ImageLoadError
from pngtosvg.preprocess import contrast, greyscale, load_image, normalize, preprocess, threshold

from conftest import to_png_bytes


def grey_image(values, alpha=255):
    arr = np.array(values, dtype=np.uint8)
    la = np.dstack([arr, np.full_like(arr, alpha)])
    return Image.fromarray(la)


def grey_values(image):
    return np.asarray(image)[:, :, 0]


class TestLoadImage:

    def test_load_from_bytes(self):
        image = load_image(to_png_bytes(Image.new("RGB", (3, 2), (10, 20, 30))))
        assert image.mode == "RGBA"
        assert image.size == (3, 2)

    def test_load_from_path(self, black_png):
        assert load_image(black_png).size == (10, 10)

    def test_garbage_raises(self, corrupt_bytes):
        with pytest.raises(ImageLoadError):
            load_image(corrupt_bytes)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ImageLoadError):
            load_image(tmp_path / "missing.png")


class TestOperations:

    def test_greyscale_uses_luminance(self):
        image = Image.new("RGBA", (1, 1), (255, 0, 0, 200))
        result = greyscale(image)
        assert result.mode == "LA"
        assert grey_values(result)[0, 0] == 54
        assert np.asarray(result)[0, 0, 1] == 200

    def test_contrast_keeps_extremes(self):
        result = grey_values(contrast(grey_image([[0, 255]]), 0.3))
        assert result.tolist() == [[0, 255]]

    def test_contrast_spreads_values(self):
        result = grey_values(contrast(grey_image([[100, 155]]), 0.3))
        assert result[0, 0] < 100
        assert result[0, 1] > 155

    def test_contrast_range_checked(self):
        with pytest.raises(ValueError):
            contrast(grey_image([[0]]), 1.5)

    def test_normalize_stretches(self):
        result = grey_values(normalize(grey_image([[50, 100, 150]])))
        assert result.tolist() == [[0, 128, 255]]

    def test_normalize_constant_image_unchanged(self):
        result = grey_values(normalize(grey_image([[90, 90]])))
        assert result.tolist() == [[90, 90]]

    def test_threshold_replaces_values_at_or_above_max(self):
        result = grey_values(threshold(grey_image([[0, 127, 128, 200]]), 128))
        assert result.tolist() == [[0, 127, 255, 255]]

    def test_alpha_survives_chain(self):
        image = Image.new("RGBA", (2, 2), (0, 0, 0, 0))
        result = preprocess(image, threshold_max=128)
        assert np.asarray(result)[:, :, 1].max() == 0


class TestPreprocess:

    def test_black_stays_black(self):
        result = preprocess(Image.new("RGB", (4, 4), (0, 0, 0)), threshold_max=128)
        assert grey_values(result).max() == 0

    def test_without_contrast_or_threshold(self):
        image = Image.fromarray(np.array([[0, 60, 120]], dtype=np.uint8)).convert("RGB")
        result = grey_values(preprocess(image, contrast_amount=None))
        assert result.tolist() == [[0, 128, 255]]


def wide_grey_png(tmp_path):
    """20x20 16-bit greyscale PNG: white background, dark grey square."""
    arr = np.full((20, 20), 65535, dtype=np.uint16)
    arr[5:15, 5:15] = 20000
    path = tmp_path / "wide.png"
    Image.fromarray(arr).save(path)
    return path


class TestWideGreyscale:

    def test_samples_are_rescaled(self, tmp_path):
        image = load_image(wide_grey_png(tmp_path))
        assert image.mode == "RGBA"
        rgba = np.asarray(image)
        assert tuple(rgba[10, 10]) == (78, 78, 78, 255)
        assert tuple(rgba[0, 0]) == (255, 255, 255, 255)

    def test_dark_square_survives_preprocessing(self, tmp_path):
        processed = preprocess(load_image(wide_grey_png(tmp_path)), threshold_max=128)
        grey = grey_values(processed)
        assert grey[10, 10] < 128
        assert grey[0, 0] == 255
