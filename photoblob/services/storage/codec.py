"""Lossless byte <-> PNG codec.

Arbitrary payloads are packed three bytes per pixel into an 8-bit truecolor
PNG. The raster is close to square and never smaller than 17x17, since the
photo host rejects or mangles smaller images. Unused trailing samples are
zero-filled and the real payload length travels in a ``tEXt`` chunk.

Only ``zlib`` and ``struct`` are used; no imaging library is involved.
"""

from __future__ import annotations

import math
import struct
import zlib
from collections.abc import Iterator

from .exceptions import DecodeError, EncodeError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PAYLOAD_LENGTH_KEYWORD = b"payload-length"

BYTES_PER_PIXEL = 3
BIT_DEPTH = 8
COLOR_TYPE_RGB = 2
MIN_DIMENSION = 17  # Host drops images below 17x17
MAX_PIXELS = 64 * 1024 * 1024
MAX_PAYLOAD_SIZE = MAX_PIXELS * BYTES_PER_PIXEL

# Leading zero bytes added before encoding so that even a tiny payload
# yields an image of at least MIN_DIMENSION x MIN_DIMENSION.
PADDING_SIZE = MIN_DIMENSION * MIN_DIMENSION * BYTES_PER_PIXEL

_CHUNK_HEADER = struct.Struct(">I4s")
_CRC = struct.Struct(">I")
_IHDR = struct.Struct(">IIBBBBB")


def pad(data: bytes) -> bytes:
    """Prefix data with the fixed zero-filled padding header."""
    return bytes(PADDING_SIZE) + data


def unpad(data: bytes) -> bytes:
    """Strip the padding header added by :func:`pad`.

    Raises:
        DecodeError: If data is shorter than the padding header.
    """
    if len(data) < PADDING_SIZE:
        raise DecodeError(
            f"Payload of {len(data)} bytes is shorter than the {PADDING_SIZE} byte padding"
        )
    return data[PADDING_SIZE:]


def image_dimensions(payload_size: int) -> tuple[int, int]:
    """Compute the raster size used for a payload of the given length.

    Args:
        payload_size: Number of payload bytes.

    Returns:
        ``(width, height)``, both at least ``MIN_DIMENSION``.
    """
    pixels = max(1, math.ceil(payload_size / BYTES_PER_PIXEL))
    width = max(MIN_DIMENSION, math.isqrt(pixels - 1) + 1)
    height = max(MIN_DIMENSION, math.ceil(pixels / width))
    return width, height


def encode(data: bytes) -> bytes:
    """Encode a payload as a PNG image.

    Args:
        data: Non-empty payload.

    Returns:
        PNG file contents.

    Raises:
        EncodeError: If data is empty or needs more than ``MAX_PIXELS`` pixels.
    """
    if not data:
        raise EncodeError("Cannot encode an empty payload")
    if len(data) > MAX_PAYLOAD_SIZE:
        raise EncodeError(
            f"Payload of {len(data)} bytes exceeds maximum {MAX_PAYLOAD_SIZE} bytes"
        )

    width, height = image_dimensions(len(data))
    if width * height > MAX_PIXELS:
        raise EncodeError(f"Image of {width}x{height} pixels exceeds maximum {MAX_PIXELS}")

    stride = width * BYTES_PER_PIXEL
    samples = data.ljust(stride * height, b"\x00")

    # Filter type 0 (None) on every scanline
    scanlines = b"".join(
        b"\x00" + samples[offset : offset + stride] for offset in range(0, len(samples), stride)
    )

    header = _IHDR.pack(width, height, BIT_DEPTH, COLOR_TYPE_RGB, 0, 0, 0)
    length_text = PAYLOAD_LENGTH_KEYWORD + b"\x00" + str(len(data)).encode("ascii")

    return b"".join(
        [
            PNG_SIGNATURE,
            _chunk(b"IHDR", header),
            _chunk(b"tEXt", length_text),
            _chunk(b"IDAT", zlib.compress(scanlines)),
            _chunk(b"IEND", b""),
        ]
    )


def decode(image: bytes) -> bytes:
    """Decode a PNG produced by :func:`encode` back into its payload.

    Args:
        image: PNG file contents.

    Returns:
        The original payload.

    Raises:
        DecodeError: If the image is malformed, not an 8-bit RGB PNG, or
            carries no payload length.
    """
    if not image.startswith(PNG_SIGNATURE):
        raise DecodeError("Not a PNG image: bad signature")

    dimensions: tuple[int, int] | None = None
    payload_length: int | None = None
    compressed: list[bytes] = []
    complete = False

    for chunk_type, body in _iter_chunks(image):
        if chunk_type == b"IHDR":
            dimensions = _parse_header(body)
        elif chunk_type == b"IDAT":
            compressed.append(body)
        elif chunk_type == b"tEXt":
            keyword, _, value = body.partition(b"\x00")
            if keyword == PAYLOAD_LENGTH_KEYWORD:
                payload_length = _parse_length(value)
        elif chunk_type == b"IEND":
            complete = True
            break

    if dimensions is None:
        raise DecodeError("Missing IHDR chunk")
    if not compressed:
        raise DecodeError("Missing IDAT chunk")
    if not complete:
        raise DecodeError("Missing IEND chunk")
    if payload_length is None:
        raise DecodeError("Missing payload-length chunk")

    width, height = dimensions
    expected = height * (width * BYTES_PER_PIXEL + 1)
    try:
        # Bounded so a small IDAT cannot inflate past the declared raster
        scanlines = zlib.decompressobj().decompress(b"".join(compressed), expected + 1)
    except zlib.error as e:
        raise DecodeError(f"Corrupt image data: {e}", cause=e) from e
    if len(scanlines) > expected:
        raise DecodeError(f"Image data exceeds the {expected} bytes of a {width}x{height} raster")

    samples = _unfilter(scanlines, width, height)

    if payload_length > len(samples):
        raise DecodeError(
            f"Payload length {payload_length} exceeds pixel data of {len(samples)} bytes"
        )
    return samples[:payload_length]


def _chunk(chunk_type: bytes, body: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + body)
    return _CHUNK_HEADER.pack(len(body), chunk_type) + body + _CRC.pack(crc)


def _iter_chunks(image: bytes) -> Iterator[tuple[bytes, bytes]]:
    offset = len(PNG_SIGNATURE)
    while offset < len(image):
        if offset + _CHUNK_HEADER.size > len(image):
            raise DecodeError("Truncated chunk header")
        length, chunk_type = _CHUNK_HEADER.unpack_from(image, offset)
        body_start = offset + _CHUNK_HEADER.size
        body_end = body_start + length
        if body_end + _CRC.size > len(image):
            raise DecodeError(f"Truncated {chunk_type!r} chunk")

        body = image[body_start:body_end]
        (crc,) = _CRC.unpack_from(image, body_end)
        if crc != zlib.crc32(chunk_type + body):
            raise DecodeError(f"CRC mismatch in {chunk_type!r} chunk")

        yield chunk_type, body
        offset = body_end + _CRC.size


def _parse_header(body: bytes) -> tuple[int, int]:
    if len(body) != _IHDR.size:
        raise DecodeError("Malformed IHDR chunk")
    width, height, bit_depth, color_type, compression, filter_method, interlace = _IHDR.unpack(
        body
    )
    if bit_depth != BIT_DEPTH or color_type != COLOR_TYPE_RGB:
        raise DecodeError(
            f"Unsupported pixel format: bit depth {bit_depth}, color type {color_type}"
        )
    if compression != 0 or filter_method != 0:
        raise DecodeError("Unsupported compression or filter method")
    if interlace != 0:
        raise DecodeError("Interlaced images are not supported")
    if width == 0 or height == 0 or width * height > MAX_PIXELS:
        raise DecodeError(f"Invalid image dimensions {width}x{height}")
    return width, height


def _parse_length(value: bytes) -> int:
    try:
        length = int(value.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Invalid payload length {value!r}", cause=e) from e
    if length < 0:
        raise DecodeError(f"Invalid payload length {length}")
    return length


def _unfilter(scanlines: bytes, width: int, height: int) -> bytes:
    """Reverse PNG scanline filtering (types 0-4)."""
    stride = width * BYTES_PER_PIXEL
    if len(scanlines) != height * (stride + 1):
        raise DecodeError(
            f"Pixel data is {len(scanlines)} bytes, expected {height * (stride + 1)}"
        )

    bpp = BYTES_PER_PIXEL
    output = bytearray()
    previous = bytearray(stride)

    for row in range(height):
        start = row * (stride + 1)
        filter_type = scanlines[start]
        line = bytearray(scanlines[start + 1 : start + 1 + stride])

        if filter_type == 0:
            pass
        elif filter_type == 1:  # Sub
            for i in range(bpp, stride):
                line[i] = (line[i] + line[i - bpp]) & 0xFF
        elif filter_type == 2:  # Up
            for i in range(stride):
                line[i] = (line[i] + previous[i]) & 0xFF
        elif filter_type == 3:  # Average
            for i in range(stride):
                left = line[i - bpp] if i >= bpp else 0
                line[i] = (line[i] + ((left + previous[i]) >> 1)) & 0xFF
        elif filter_type == 4:  # Paeth
            for i in range(stride):
                left = line[i - bpp] if i >= bpp else 0
                upper_left = previous[i - bpp] if i >= bpp else 0
                line[i] = (line[i] + _paeth(left, previous[i], upper_left)) & 0xFF
        else:
            raise DecodeError(f"Unknown filter type {filter_type} on row {row}")

        output += line
        previous = line

    return bytes(output)


def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c
