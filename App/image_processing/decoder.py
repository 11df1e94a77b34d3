"""Sampled image decoding.

AIDEV-NOTE: Decoding happens in two passes over the same stream. The first
pass only parses the header to learn the native size; the second decodes at
a power-of-two reduced scale so memory stays bounded by max_dimension rather
than by the native resolution.

Only JPEG can scale inside the decoder (draft). Other formats are decoded
at native size by Pillow, then reduce() runs on the decoded mode before any
RGB conversion, so peak memory is one native-size plane plus the reduced
copy. Palette, bilevel and color-keyed images cannot be reduced directly and
are flattened to RGB first. 16-bit grayscale keeps its high byte.
"""

import io
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from errors import DecodeError, InvalidParameter, OutOfResources
from models import PixelBuffer

ImageSource = Union[bytes, bytearray, str, Path, BinaryIO]

# Modes Image.reduce() can average directly
_REDUCIBLE_MODES = ("L", "LA", "RGB", "RGBA", "CMYK")
_WIDE_GRAY_MODES = ("I", "I;16", "I;16L", "I;16B", "I;16N")


def calculate_sample_size(width: int, height: int, max_dimension: int) -> int:
    """Largest power-of-two divisor keeping both halved dimensions >= max_dimension.

    Args:
        width: Native image width in pixels
        height: Native image height in pixels
        max_dimension: Lower bound the decoded size should not drop below

    Returns:
        Sample size (1, 2, 4, ...)

    AIDEV-NOTE: Integer division throughout; 4000x3000 with a bound of 250
    gives 8 (decoded 500x375).
    """
    if max_dimension < 1:
        raise InvalidParameter(f"max_dimension must be positive, got {max_dimension}")

    sample_size = 1
    if height > max_dimension or width > max_dimension:
        half_height = height // 2
        half_width = width // 2
        while (
            half_height // sample_size >= max_dimension
            and half_width // sample_size >= max_dimension
        ):
            sample_size *= 2
    return sample_size


def read_image_size(stream: BinaryIO) -> "tuple[int, int]":
    """Parse only the image header and return (width, height)."""
    try:
        with Image.open(stream) as image:
            return image.size
    except Image.DecompressionBombError as e:
        raise OutOfResources(str(e)) from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Could not read image header: {e}") from e


def decode_image(source: ImageSource, max_dimension: int) -> PixelBuffer:
    """Decode an encoded image with a power-of-two downsampling factor.

    Args:
        source: Encoded bytes, a file path, or a binary stream
        max_dimension: Decode bound in pixels (see calculate_sample_size)

    Returns:
        PixelBuffer at 1/sample_size of the native resolution

    Raises:
        DecodeError: If the source cannot be opened or decoded
        OutOfResources: If decoding runs out of memory
        InvalidParameter: If max_dimension is not positive

    The stream is closed on every exit path.
    """
    if max_dimension < 1:
        raise InvalidParameter(f"max_dimension must be positive, got {max_dimension}")

    stream = _open_stream(source)
    try:
        width, height = read_image_size(stream)
        sample_size = calculate_sample_size(width, height, max_dimension)
        print(
            f"Native size {width}x{height}, decoding at 1/{sample_size} "
            f"(bound {max_dimension}px)."
        )

        stream.seek(0)
        image = _decode_sampled(stream, width, height, sample_size)
        return PixelBuffer.from_image(image)
    except MemoryError as e:
        if isinstance(e, OutOfResources):
            raise
        raise OutOfResources(f"Image too large to decode: {e}") from e
    finally:
        stream.close()


def _decode_sampled(
    stream: BinaryIO, width: int, height: int, sample_size: int
) -> Image.Image:
    try:
        with Image.open(stream) as image:
            if sample_size > 1 and image.format == "JPEG":
                # Let libjpeg scale during DCT; reduce() covers whatever is left
                image.draft("RGB", (width // sample_size, height // sample_size))

            drafted = max(1, round(width / image.width))
            remaining = max(1, sample_size // drafted)

            reducible = _to_reducible(image)
            if remaining > 1:
                reducible = reducible.reduce(remaining)
            rgb = _flatten_to_rgb(reducible)
    except Image.DecompressionBombError as e:
        raise OutOfResources(str(e)) from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e
    return rgb


def _to_reducible(image: Image.Image) -> Image.Image:
    """Bring image into a mode Image.reduce accepts, at native size."""
    if image.mode in _WIDE_GRAY_MODES:
        return _scale_to_8bit(image)
    if image.mode in _REDUCIBLE_MODES and "transparency" not in image.info:
        return image
    # Palette, bilevel and color-keyed images are flattened first
    return _flatten_to_rgb(image)


def _scale_to_8bit(image: Image.Image) -> Image.Image:
    """Map 16-bit grayscale samples onto 0-255 by keeping the high byte."""
    array = np.asarray(image)
    if image.mode == "I":
        array = np.clip(array, 0, 0xFFFF)
    return Image.fromarray((array >> 8).astype(np.uint8))


def _flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any transparency onto white."""
    if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return image.convert("RGB")


def _open_stream(source: ImageSource) -> BinaryIO:
    """Return a seekable binary stream for the source."""
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)

    if isinstance(source, (str, Path)):
        try:
            return open(source, "rb")
        except OSError as e:
            raise DecodeError(f"Could not open {source}: {e}") from e

    try:
        if source.seekable():
            return source
        data = source.read()
    except (OSError, ValueError) as e:
        source.close()
        raise DecodeError(f"Could not read image stream: {e}") from e

    source.close()
    return io.BytesIO(data)
