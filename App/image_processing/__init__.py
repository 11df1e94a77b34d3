"""Image encoding pipeline for monochrome displays.

AIDEV-NOTE: This package turns a color image into firmware-ready bytes.
Organized into modular components:
- decoder: Power-of-two sampled decoding
- cropping: Crop rectangle and display size limit
- binarize: Luminance threshold
- packing: MSB-first 1-bit packing
- hex_format: Hex listing and C array rendering
- processor: ImageProcessor bundling the stages
"""

from .binarize import binarize, luminance, validate_threshold
from .decoder import calculate_sample_size, decode_image
from .hex_format import format_c_array, format_hex_listing, parse_hex_listing
from .packing import pack_bits, unpack_bits
from .processor import ImageProcessor

__all__ = [
    "ImageProcessor",
    "binarize",
    "calculate_sample_size",
    "decode_image",
    "format_c_array",
    "format_hex_listing",
    "luminance",
    "pack_bits",
    "parse_hex_listing",
    "unpack_bits",
    "validate_threshold",
]
