"""
Reader for the packed bitmaps embedded in DWQ files.

A packed bitmap starts with a 0x36-byte BMP-style header, followed (at
8bpp) by a palette, and pixel data at the offset the header declares.
Each row of pixel data is run-length encoded, where a zero byte is an
escape followed by a count of zero bytes, and then XORed with the
previous decoded row.
"""

from dataclasses import dataclass
from io import IOBase
from struct import unpack_from
from typing import List, Tuple, Union

import numpy as np

from .config import Config
from .const import BPP_FORMATS, PixelFormat
from .errors import InvalidFormatError, TruncatedDataError, UnsupportedFormatError
from .header import DwqMetaData
from .image import Color, DecodedImage


BytesLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class SubBitmapHeader:
    data_offset: int
    width: int
    height: int
    bpp: int
    colors: int

    @classmethod
    def parse(cls, data: BytesLike) -> 'SubBitmapHeader':
        if len(data) < Config.SUB_HEADER_SIZE:
            raise TruncatedDataError(
                f"Bitmap header is {len(data)} bytes, expected {Config.SUB_HEADER_SIZE}"
            )
        data_offset = unpack_from('<I', data, 0x0A)[0]
        width, height = unpack_from('<ii', data, 0x12)
        bpp = unpack_from('<H', data, 0x1C)[0]
        colors = unpack_from('<i', data, 0x2E)[0]
        return cls(data_offset, width, height, bpp, colors)


def read_palette(data: BytesLike, offset: int, colors: int) -> List[Color]:
    """
    Read `colors` palette entries (R, G, B, unused) starting at `offset`.

    The count is clamped to 0..256.
    """
    colors = max(0, min(colors, Config.MAX_PALETTE_COLORS))
    size = colors * Config.PALETTE_ENTRY_SIZE
    chunk = bytes(data[offset:offset + size])
    if len(chunk) != size:
        raise TruncatedDataError(f"Palette is {len(chunk)} bytes, expected {size}")
    return [(chunk[i], chunk[i + 1], chunk[i + 2]) for i in range(0, size, Config.PALETTE_ENTRY_SIZE)]


def expand_row(data: BytesLike, pos: int, stride: int) -> Tuple[bytearray, int]:
    """
    Run-length expand one row.

    Args:
        data: Packed bitmap bytes
        pos: Offset of the row's first token in data
        stride: Row length in bytes

    Returns:
        (expanded row of exactly `stride` bytes, offset of the next token)
    """
    row = bytearray(stride)
    end = len(data)
    x = 0
    while x < stride:
        if pos >= end:
            raise TruncatedDataError("Unexpected end of bitmap data")
        b = data[pos]
        pos += 1
        if b != 0:
            row[x] = b
            x += 1
            continue
        if pos >= end:
            raise TruncatedDataError("Unexpected end of bitmap data in zero run")
        count = data[pos]
        pos += 1
        if x + count > stride:
            raise InvalidFormatError(
                f"Zero run of {count} at column {x} overflows row of {stride} bytes"
            )
        # row is zero-filled already
        x += count
    return row, pos


def _as_u8(buf) -> np.ndarray:
    if isinstance(buf, np.ndarray):
        return buf.astype(np.uint8, copy=False)
    return np.frombuffer(buf, dtype=np.uint8)


def xor_row(expanded, previous) -> np.ndarray:
    """XOR an expanded row against the previous decoded row."""
    return np.bitwise_xor(_as_u8(expanded), _as_u8(previous))


class DwqBmpReader(object):
    """
    Decoder for one packed bitmap (colour layer or alpha mask).

    The bitmap's declared size must match the DWQ header; the header and
    palette are validated on construction, pixels are decoded by unpack().
    """

    def __init__(self, source: BytesLike, info: DwqMetaData):
        self._source = source
        self._info = info
        self._width = info.width
        self._height = info.height
        self._pixels = None

        header = SubBitmapHeader.parse(source[:Config.SUB_HEADER_SIZE])
        if header.width != self._width or header.height != self._height:
            raise InvalidFormatError(
                f"Bitmap is {header.width}x{header.height}, header says "
                f"{self._width}x{self._height}"
            )
        if header.bpp not in BPP_FORMATS:
            raise UnsupportedFormatError(f"Unsupported bitmap depth: {header.bpp}bpp")

        self._header = header
        self._format = BPP_FORMATS[header.bpp]
        self._stride = self._width * self._format.bytes_per_pixel
        self._palette = None
        if self._format == PixelFormat.INDEXED8:
            self._palette = read_palette(source, Config.SUB_HEADER_SIZE, header.colors)

    @classmethod
    def from_stream(cls, fp: IOBase, info: DwqMetaData) -> 'DwqBmpReader':
        """Read the rest of fp and parse it as a packed bitmap."""
        return cls(fp.read(), info)

    @property
    def header(self) -> SubBitmapHeader:
        return self._header

    @property
    def format(self) -> PixelFormat:
        return self._format

    @property
    def stride(self) -> int:
        return self._stride

    @property
    def palette(self):
        return self._palette

    @property
    def data(self) -> bytes:
        """Decoded pixels; unpacks on first access."""
        if self._pixels is None:
            self.unpack()
        return self._pixels

    def unpack(self) -> bytes:
        pixels = np.zeros((self._height, self._stride), dtype=np.uint8)
        prev_line = np.zeros(self._stride, dtype=np.uint8)
        pos = self._header.data_offset
        for y in range(self._height):
            expanded, pos = expand_row(self._source, pos, self._stride)
            prev_line = xor_row(expanded, prev_line)
            pixels[y] = prev_line
        if self._format == PixelFormat.INDEXED8 and pixels.size:
            top = int(pixels.max())
            if top >= len(self._palette):
                raise InvalidFormatError(
                    f"Pixel index {top} outside palette of {len(self._palette)} colors"
                )
        self._pixels = pixels.tobytes()
        return self._pixels

    def to_image(self) -> DecodedImage:
        return DecodedImage(
            self.data,
            self._format,
            self._width,
            self._height,
            palette=self._palette,
            metadata=self._info,
        )
