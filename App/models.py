"""Data models and constants for the monochrome bitmap encoder."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import numpy as np
from PIL import Image

if TYPE_CHECKING:
    from errors import PipelineError

# AIDEV-NOTE: Target panel is a 250x122 e-paper module - keep in sync with firmware
DISPLAY_WIDTH = 250  # px
DISPLAY_HEIGHT = 122  # px

DEFAULT_THRESHOLD = 128  # 0-255
DEFAULT_MAX_DIMENSION = 250  # px, decode bound
DEFAULT_BYTES_PER_LINE = 16

MIN_THRESHOLD = 0
MAX_THRESHOLD = 255

# Configuration file path
CONFIG_FILE = Path.home() / ".monobitmap_config.json"


class PipelineState(Enum):
    """Orchestrator states."""

    EMPTY = "Empty"  # No source image yet
    READY = "Ready"


@dataclass
class EncoderConfig:
    """User-adjustable encoder settings."""

    threshold: int = DEFAULT_THRESHOLD  # 0-255
    max_dimension: int = DEFAULT_MAX_DIMENSION  # px
    bytes_per_line: int = DEFAULT_BYTES_PER_LINE

    # Crop/resize target
    display_width: int = DISPLAY_WIDTH  # px
    display_height: int = DISPLAY_HEIGHT  # px
    fit_to_display: bool = True


# --- Image Buffers ---


def _frozen_array(array: np.ndarray, dtype) -> np.ndarray:
    array = np.array(array, dtype=dtype, order="C")
    array.flags.writeable = False
    return array


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Decoded color image.

    AIDEV-NOTE: pixels is a read-only uint8 array shaped (height, width, 3).
    Created once per source image and never mutated; re-thresholding
    reuses it.
    """

    width: int
    height: int
    pixels: np.ndarray = field(repr=False, compare=False)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid image size: {self.width}x{self.height}")
        if self.pixels.shape != (self.height, self.width, 3):
            raise ValueError(
                f"Pixel array shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height} RGB"
            )
        object.__setattr__(self, "pixels", _frozen_array(self.pixels, np.uint8))

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Build a buffer from a PIL image (converted to RGB)."""
        if image.mode != "RGB":
            image = image.convert("RGB")
        width, height = image.size
        return cls(width=width, height=height, pixels=np.asarray(image, dtype=np.uint8))

    @property
    def samples(self) -> "list[tuple[int, int, int]]":
        """Row-major (r, g, b) samples, width * height entries."""
        return [tuple(int(c) for c in rgb) for rgb in self.pixels.reshape(-1, 3)]

    def to_image(self) -> Image.Image:
        """Preview image (RGB)."""
        return Image.fromarray(np.array(self.pixels))


@dataclass(frozen=True)
class BinaryBuffer:
    """Black/white image; mask[y, x] is True for black."""

    width: int
    height: int
    mask: np.ndarray = field(repr=False, compare=False)

    def __post_init__(self):
        if self.mask.shape != (self.height, self.width):
            raise ValueError(
                f"Mask shape {self.mask.shape} does not match {self.width}x{self.height}"
            )
        object.__setattr__(self, "mask", _frozen_array(self.mask, bool))

    @property
    def black_count(self) -> int:
        return int(np.count_nonzero(self.mask))

    def to_image(self) -> Image.Image:
        """Preview image in L mode (black 0, white 255)."""
        out = np.where(self.mask, 0, 255).astype(np.uint8)
        return Image.fromarray(out)

    def __eq__(self, other):
        if not isinstance(other, BinaryBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.mask, other.mask)
        )


@dataclass(frozen=True)
class PackedBitmap:
    """Row-major, byte-aligned, MSB-first 1-bit-per-pixel bitmap."""

    width: int
    height: int
    data: bytes

    def __post_init__(self):
        expected = self.bytes_per_row * self.height
        if len(self.data) != expected:
            raise ValueError(
                f"Bitmap data is {len(self.data)} bytes, expected {expected}"
            )

    @property
    def bytes_per_row(self) -> int:
        return math.ceil(self.width / 8)

    def get_pixel(self, x: int, y: int) -> bool:
        """Return True when the pixel at (x, y) is black."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height}")
        byte = self.data[y * self.bytes_per_row + x // 8]
        return bool(byte & (0x80 >> (x % 8)))


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in pixel coordinates of the decoded image."""

    left: int
    top: int
    width: int
    height: int

    @property
    def box(self) -> "tuple[int, int, int, int]":
        """PIL-style (left, upper, right, lower) box."""
        return (self.left, self.top, self.left + self.width, self.top + self.height)


# --- Pipeline Models ---


@dataclass(frozen=True)
class ArtifactSet:
    """Mutually consistent output of one pipeline run.

    AIDEV-NOTE: Always replaced as a whole, never updated field by field,
    so bitmap and listing are derived from this exact original.
    """

    original: PixelBuffer
    binary: BinaryBuffer
    bitmap: PackedBitmap
    listing: str
    threshold: int


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a load or threshold change."""

    artifacts: Optional[ArtifactSet] = None
    error: Optional["PipelineError"] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> Optional[str]:
        """User-facing error message, None on success."""
        if self.error is None:
            return None
        return self.error.user_message
