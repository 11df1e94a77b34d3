"""Luminance thresholding of color buffers.

AIDEV-NOTE: Luma uses ITU-R BT.601 weights, rounded half up to an integer.
A pixel is white only when its luminance is strictly greater than the
threshold; equality counts as black. Threshold 255 therefore blackens
everything and threshold 0 blackens only pure black.
"""

import numbers

import numpy as np

from errors import InvalidParameter
from models import MAX_THRESHOLD, MIN_THRESHOLD, BinaryBuffer, PixelBuffer

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def validate_threshold(threshold) -> int:
    """Return threshold as int, raising InvalidParameter when out of range."""
    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Integral):
        raise InvalidParameter(f"Threshold must be an integer, got {threshold!r}")
    if not MIN_THRESHOLD <= threshold <= MAX_THRESHOLD:
        raise InvalidParameter(
            f"Threshold {threshold} outside [{MIN_THRESHOLD}, {MAX_THRESHOLD}]"
        )
    return int(threshold)


def luminance(src: PixelBuffer) -> np.ndarray:
    """Integer luminance plane (height, width), values 0-255."""
    weighted = src.pixels.astype(np.float64) @ LUMA_WEIGHTS
    return np.floor(weighted + 0.5).astype(np.int16)


def binarize(src: PixelBuffer, threshold: int) -> BinaryBuffer:
    """Convert a color buffer to black/white.

    Args:
        src: Decoded color image
        threshold: 0-255; luminance <= threshold becomes black

    Returns:
        BinaryBuffer with the same dimensions as src
    """
    threshold = validate_threshold(threshold)
    mask = luminance(src) <= threshold
    return BinaryBuffer(width=src.width, height=src.height, mask=mask)
