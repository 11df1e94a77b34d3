"""Hexadecimal listings of packed bitmap bytes for firmware source."""

import re
from typing import TYPE_CHECKING

from errors import InvalidParameter
from models import DEFAULT_BYTES_PER_LINE

if TYPE_CHECKING:
    from models import PackedBitmap

_HEX_TOKEN = re.compile(r"0[xX]([0-9A-Fa-f]{2})")
_SEPARATORS = re.compile(r"[,\s]+")
_SYMBOL = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def format_hex_listing(data: bytes, bytes_per_line: int = DEFAULT_BYTES_PER_LINE) -> str:
    """Render bytes as a comma-separated 0xHH listing.

    Every group of bytes_per_line bytes starts on a new line, including the
    first, and the trailing separator is dropped:

        >>> format_hex_listing(bytes([0x40, 0x80]))
        '\\n0x40, 0x80'

    Args:
        data: Bytes to render
        bytes_per_line: Bytes per output line (>= 1)

    Returns:
        Listing string, empty for empty input
    """
    if bytes_per_line < 1:
        raise InvalidParameter(f"bytes_per_line must be positive, got {bytes_per_line}")

    parts = []
    for index, value in enumerate(data):
        if index % bytes_per_line == 0:
            parts.append("\n")
        parts.append(f"0x{value:02X}, ")
    return "".join(parts).removesuffix(", ")


def parse_hex_listing(listing: str) -> bytes:
    """Parse a listing produced by format_hex_listing back into bytes.

    Raises:
        InvalidParameter: If a token is not of the form 0xHH
    """
    values = []
    for token in _SEPARATORS.split(listing.strip()):
        if not token:
            continue
        match = _HEX_TOKEN.fullmatch(token)
        if match is None:
            raise InvalidParameter(f"Not a hex byte: {token!r}")
        values.append(int(match.group(1), 16))
    return bytes(values)


def format_c_array(
    bitmap: "PackedBitmap",
    symbol: str,
    bytes_per_line: int = DEFAULT_BYTES_PER_LINE,
) -> str:
    """Wrap a bitmap listing in a C declaration with size defines.

    Args:
        bitmap: Packed bitmap to render
        symbol: C identifier for the array
        bytes_per_line: Bytes per listing line

    Returns:
        C source snippet ending in a newline
    """
    if _SYMBOL.fullmatch(symbol) is None:
        raise InvalidParameter(f"Not a valid C identifier: {symbol!r}")

    body = format_hex_listing(bitmap.data, bytes_per_line).replace("\n", "\n    ")
    name = symbol.upper()
    return (
        f"#define {name}_WIDTH {bitmap.width}\n"
        f"#define {name}_HEIGHT {bitmap.height}\n"
        f"\n"
        f"// {bitmap.bytes_per_row} bytes per row, MSB first, 1 = black\n"
        f"const unsigned char {symbol}[{len(bitmap.data)}] = {{{body}\n}};\n"
    )
