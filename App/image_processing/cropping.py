"""Crop and size limiting ahead of binarization.

AIDEV-NOTE: The crop UI hands over a rectangle in decoded-image pixels. The
panel wants a fixed aspect (250:122) and never more pixels than it has, so
centered_crop_rect + limit_size reproduce that when no rectangle is given.
"""

from PIL import Image

from errors import InvalidParameter
from models import CropRect, PixelBuffer


def crop_pixels(src: PixelBuffer, rect: CropRect) -> PixelBuffer:
    """Return the part of src inside rect.

    Raises:
        InvalidParameter: If rect is empty or extends past the image
    """
    if rect.width <= 0 or rect.height <= 0:
        raise InvalidParameter(f"Empty crop rectangle: {rect}")
    if (
        rect.left < 0
        or rect.top < 0
        or rect.left + rect.width > src.width
        or rect.top + rect.height > src.height
    ):
        raise InvalidParameter(
            f"Crop rectangle {rect} outside {src.width}x{src.height} image"
        )

    region = src.pixels[rect.top : rect.top + rect.height, rect.left : rect.left + rect.width]
    return PixelBuffer(width=rect.width, height=rect.height, pixels=region)


def centered_crop_rect(
    width: int, height: int, aspect_width: int, aspect_height: int
) -> CropRect:
    """Largest centered rectangle with the given aspect ratio."""
    if aspect_width <= 0 or aspect_height <= 0:
        raise InvalidParameter(f"Invalid aspect ratio {aspect_width}:{aspect_height}")

    # Compare width/height against aspect without floating point
    if width * aspect_height > height * aspect_width:
        crop_height = height
        crop_width = max(1, height * aspect_width // aspect_height)
    else:
        crop_width = width
        crop_height = max(1, width * aspect_height // aspect_width)

    return CropRect(
        left=(width - crop_width) // 2,
        top=(height - crop_height) // 2,
        width=crop_width,
        height=crop_height,
    )


def limit_size(src: PixelBuffer, max_width: int, max_height: int) -> PixelBuffer:
    """Downscale src to fit max_width x max_height, keeping aspect ratio.

    Images already within bounds are returned unchanged.
    """
    if max_width <= 0 or max_height <= 0:
        raise InvalidParameter(f"Invalid size limit {max_width}x{max_height}")
    if src.width <= max_width and src.height <= max_height:
        return src

    scale = min(max_width / src.width, max_height / src.height)
    new_size = (
        max(1, min(max_width, round(src.width * scale))),
        max(1, min(max_height, round(src.height * scale))),
    )
    resized = src.to_image().resize(new_size, Image.Resampling.LANCZOS)
    return PixelBuffer.from_image(resized)
