import io
import struct
import zlib

import numpy as np
import pytest
from PIL import Image

from models import PixelBuffer

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def make_pixels(rows):
    """PixelBuffer from nested rows of (r, g, b) tuples."""
    array = np.array(rows, dtype=np.uint8)
    height, width = array.shape[:2]
    return PixelBuffer(width=width, height=height, pixels=array)


def encode_image(image: Image.Image, fmt: str = "PNG", **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def _png_chunk(cid: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + cid + data + struct.pack(">I", zlib.crc32(cid + data))


def header_only_png(width: int, height: int) -> bytes:
    """Valid PNG signature and IHDR followed by a corrupt IDAT chunk."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", ihdr)
        + _png_chunk(b"IDAT", b"\x00" * 16)
    )


@pytest.fixture
def checkerboard():
    """2x2 image: white, black / black, white."""
    return make_pixels([[WHITE, BLACK], [BLACK, WHITE]])


@pytest.fixture
def random_pixels():
    rng = np.random.default_rng(1234)
    array = rng.integers(0, 256, size=(13, 21, 3), dtype=np.uint8)
    return PixelBuffer(width=21, height=13, pixels=array)


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app
