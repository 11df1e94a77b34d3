import numpy as np
import pytest

from errors import InvalidParameter
from image_processing.cropping import centered_crop_rect, crop_pixels, limit_size
from models import CropRect, PixelBuffer


@pytest.fixture
def gradient():
    array = np.zeros((6, 8, 3), dtype=np.uint8)
    array[..., 0] = np.arange(8)[np.newaxis, :]
    array[..., 1] = np.arange(6)[:, np.newaxis]
    return PixelBuffer(width=8, height=6, pixels=array)


def test_crop_selects_region(gradient):
    cropped = crop_pixels(gradient, CropRect(left=2, top=1, width=3, height=4))

    assert (cropped.width, cropped.height) == (3, 4)
    assert tuple(cropped.pixels[0, 0]) == (2, 1, 0)
    assert tuple(cropped.pixels[3, 2]) == (4, 4, 0)


@pytest.mark.parametrize(
    "rect",
    [
        CropRect(left=0, top=0, width=0, height=2),
        CropRect(left=-1, top=0, width=2, height=2),
        CropRect(left=6, top=0, width=3, height=2),
        CropRect(left=0, top=5, width=2, height=2),
    ],
)
def test_crop_rejects_bad_rect(gradient, rect):
    with pytest.raises(InvalidParameter):
        crop_pixels(gradient, rect)


def test_crop_box():
    assert CropRect(left=1, top=2, width=3, height=4).box == (1, 2, 4, 6)


def test_centered_crop_for_square_source():
    rect = centered_crop_rect(1000, 1000, 250, 122)

    assert rect == CropRect(left=0, top=256, width=1000, height=488)


def test_centered_crop_for_wide_source():
    rect = centered_crop_rect(1000, 100, 250, 122)

    assert (rect.width, rect.height) == (204, 100)
    assert rect.left == (1000 - 204) // 2


def test_limit_size_keeps_small_images(gradient):
    assert limit_size(gradient, 250, 122) is gradient


def test_limit_size_downscales_preserving_aspect():
    pixels = PixelBuffer(width=500, height=244, pixels=np.full((244, 500, 3), 200, dtype=np.uint8))

    limited = limit_size(pixels, 250, 122)

    assert (limited.width, limited.height) == (250, 122)
    assert np.all(np.abs(limited.pixels.astype(int) - 200) <= 1)
