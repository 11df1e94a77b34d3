"""Packing of black/white buffers into 1-bit-per-pixel bitmaps."""

import numpy as np

from models import BinaryBuffer, PackedBitmap


def pack_bits(src: BinaryBuffer) -> PackedBitmap:
    """Pack a binary buffer MSB-first, one bit per pixel, rows byte-aligned.

    Black pixels set their bit; white pixels and row padding stay 0.
    """
    # packbits pads each row out to a whole byte with zero bits
    packed = np.packbits(src.mask, axis=1, bitorder="big")
    return PackedBitmap(width=src.width, height=src.height, data=packed.tobytes())


def unpack_bits(bitmap: PackedBitmap) -> BinaryBuffer:
    """Expand a packed bitmap back into a binary buffer (padding dropped)."""
    rows = np.frombuffer(bitmap.data, dtype=np.uint8).reshape(
        bitmap.height, bitmap.bytes_per_row
    )
    mask = np.unpackbits(rows, axis=1, count=bitmap.width, bitorder="big").astype(bool)
    return BinaryBuffer(width=bitmap.width, height=bitmap.height, mask=mask)
