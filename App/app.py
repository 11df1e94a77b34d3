"""Mono Bitmap Encoder - command-line entry point."""

import argparse
import sys
from contextlib import redirect_stdout

from config_manager import ConfigManager
from errors import InvalidParameter
from image_processing import ImageProcessor, format_c_array
from models import CropRect
from pipeline import ThresholdPipeline


def parse_crop(value: str) -> CropRect:
    """Parse 'left,top,width,height' into a CropRect."""
    try:
        left, top, width, height = (int(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected left,top,width,height but got {value!r}"
        ) from None
    return CropRect(left=left, top=top, width=width, height=height)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monobitmap",
        description="Convert an image into a 1-bit hex listing for monochrome displays.",
    )
    parser.add_argument("image", help="Path to the source image")
    parser.add_argument("--threshold", type=int, help="Luminance threshold 0-255")
    parser.add_argument("--max-dimension", type=int, help="Decode bound in pixels")
    parser.add_argument("--bytes-per-line", type=int, help="Bytes per listing line")
    parser.add_argument("--crop", type=parse_crop, help="Crop rectangle left,top,width,height")
    parser.add_argument(
        "--no-fit",
        action="store_true",
        help="Skip the display aspect crop and size limit",
    )
    parser.add_argument("--c-array", metavar="SYMBOL", help="Emit a C array declaration")
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Store the given options as the new defaults",
    )
    return parser


def main(argv=None) -> int:
    """Encode one image and print the listing."""
    args = build_parser().parse_args(argv)

    # Progress output goes to stderr so stdout carries only the listing
    with redirect_stdout(sys.stderr):
        config_manager = ConfigManager()
        config = config_manager.load()
    if args.threshold is not None:
        config.threshold = args.threshold
    if args.max_dimension is not None:
        config.max_dimension = args.max_dimension
    if args.bytes_per_line is not None:
        config.bytes_per_line = args.bytes_per_line
    if args.no_fit:
        config.fit_to_display = False

    try:
        pipeline = ThresholdPipeline(ImageProcessor(config), threshold=config.threshold)
    except InvalidParameter as e:
        print(e.user_message, file=sys.stderr)
        return 1

    with redirect_stdout(sys.stderr):
        result = pipeline.load_source(args.image, config.max_dimension, crop=args.crop)
    if not result.ok:
        return 1

    artifacts = result.artifacts
    if args.c_array:
        try:
            print(format_c_array(artifacts.bitmap, args.c_array, config.bytes_per_line), end="")
        except InvalidParameter as e:
            print(e.user_message, file=sys.stderr)
            return 1
    else:
        print(artifacts.listing.lstrip("\n"))

    if args.save_config:
        success, error = config_manager.save(config)
        if not success:
            print(f"Warning: Could not save config file: {error}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
