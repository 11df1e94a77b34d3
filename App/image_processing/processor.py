"""Image processor bundling the encoder stages.

AIDEV-NOTE: Stateless apart from its EncoderConfig. ThresholdPipeline owns
the mutable state; this class only turns inputs into fresh buffers.
"""

from typing import Optional

from models import ArtifactSet, BinaryBuffer, CropRect, EncoderConfig, PackedBitmap, PixelBuffer

from .binarize import binarize
from .cropping import centered_crop_rect, crop_pixels, limit_size
from .decoder import ImageSource, decode_image
from .hex_format import format_hex_listing
from .packing import pack_bits


class ImageProcessor:
    """Turns encoded images into packed bitmaps and hex listings."""

    def __init__(self, config: Optional[EncoderConfig] = None):
        self.config = config or EncoderConfig()

    def decode(self, source: ImageSource, max_dimension: Optional[int] = None) -> PixelBuffer:
        """Decode a source image with power-of-two downsampling.

        Args:
            source: Encoded bytes, path or binary stream
            max_dimension: Decode bound, uses config default if None

        Returns:
            Decoded PixelBuffer

        Raises:
            DecodeError: If the image cannot be read
            OutOfResources: If decoding runs out of memory
        """
        if max_dimension is None:
            max_dimension = self.config.max_dimension
        return decode_image(source, max_dimension)

    def prepare(self, pixels: PixelBuffer, crop: Optional[CropRect] = None) -> PixelBuffer:
        """Apply the crop rectangle and the display size limit.

        Without an explicit crop, fit_to_display crops to the panel aspect
        ratio around the center before limiting the size.
        """
        config = self.config
        if crop is not None:
            pixels = crop_pixels(pixels, crop)
        elif config.fit_to_display:
            pixels = crop_pixels(
                pixels,
                centered_crop_rect(
                    pixels.width,
                    pixels.height,
                    config.display_width,
                    config.display_height,
                ),
            )

        if config.fit_to_display:
            pixels = limit_size(pixels, config.display_width, config.display_height)
        return pixels

    def binarize(self, pixels: PixelBuffer, threshold: int) -> BinaryBuffer:
        return binarize(pixels, threshold)

    def pack(self, binary: BinaryBuffer) -> PackedBitmap:
        return pack_bits(binary)

    def format_listing(self, data: bytes) -> str:
        """Format packed bytes using the configured line width."""
        return format_hex_listing(data, self.config.bytes_per_line)

    def process(self, pixels: PixelBuffer, threshold: int) -> ArtifactSet:
        """Run binarize -> pack -> format against a decoded image.

        Args:
            pixels: Decoded (and prepared) color image
            threshold: Luminance threshold 0-255

        Returns:
            ArtifactSet derived entirely from pixels
        """
        binary = self.binarize(pixels, threshold)
        bitmap = self.pack(binary)
        listing = self.format_listing(bitmap.data)
        return ArtifactSet(
            original=pixels,
            binary=binary,
            bitmap=bitmap,
            listing=listing,
            threshold=threshold,
        )
