import math

import numpy as np
import pytest

from image_processing import binarize, pack_bits, unpack_bits
from models import BinaryBuffer, PackedBitmap


def _binary(mask):
    mask = np.array(mask, dtype=bool)
    return BinaryBuffer(width=mask.shape[1], height=mask.shape[0], mask=mask)


def test_checkerboard_packs_msb_first(checkerboard):
    bitmap = pack_bits(binarize(checkerboard, 128))

    assert bitmap.bytes_per_row == 1
    assert bitmap.data == bytes([0b01000000, 0b10000000])


def test_bit_positions_within_row():
    mask = np.zeros((2, 16), dtype=bool)
    mask[0, 0] = True  # byte 0, bit 7
    mask[0, 9] = True  # byte 1, bit 6
    mask[1, 15] = True  # byte 3, bit 0

    bitmap = pack_bits(_binary(mask))

    assert bitmap.data == bytes([0x80, 0x40, 0x00, 0x01])


@pytest.mark.parametrize("width", range(1, 18))
def test_rows_are_byte_aligned_with_zero_padding(width):
    bitmap = pack_bits(_binary(np.ones((3, width), dtype=bool)))

    assert bitmap.bytes_per_row == math.ceil(width / 8)
    assert len(bitmap.data) == bitmap.bytes_per_row * 3

    used_bits = width % 8
    for row in range(3):
        last = bitmap.data[(row + 1) * bitmap.bytes_per_row - 1]
        if used_bits:
            assert last == (0xFF << (8 - used_bits)) & 0xFF
        else:
            assert last == 0xFF


def test_white_image_packs_to_zeros():
    bitmap = pack_bits(_binary(np.zeros((4, 10), dtype=bool)))

    assert bitmap.data == bytes(8)


def test_get_pixel_matches_mask(random_pixels):
    binary = binarize(random_pixels, 128)
    bitmap = pack_bits(binary)

    for y in range(binary.height):
        for x in range(binary.width):
            assert bitmap.get_pixel(x, y) == binary.mask[y, x]


def test_unpack_restores_buffer(random_pixels):
    binary = binarize(random_pixels, 90)

    assert unpack_bits(pack_bits(binary)) == binary


def test_get_pixel_rejects_out_of_range():
    bitmap = PackedBitmap(width=3, height=1, data=b"\x00")

    with pytest.raises(IndexError):
        bitmap.get_pixel(3, 0)


def test_bitmap_validates_data_length():
    with pytest.raises(ValueError):
        PackedBitmap(width=9, height=2, data=bytes(3))
