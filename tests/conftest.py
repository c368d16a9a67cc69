"""
Builders for synthetic DWQ files.
"""

import io
from struct import pack_into
from typing import List, Optional, Sequence, Tuple

import pytest
from PIL import Image

from dwq.config import Config


def make_header(
    pack_text: str,
    width: int,
    height: int,
    packed_size: int = 0,
    base_type: bytes = b'PACKBMP',
) -> bytes:
    header = bytearray(Config.HEADER_SIZE)
    base = base_type.ljust(0x10, b' ')
    header[0:0x10] = base[:0x10]
    pack_into('<iII', header, 0x20, packed_size, width, height)
    header[0x30:0x40] = pack_text.encode('ascii').ljust(0x10, b' ')
    return bytes(header)


def rle_encode(row: bytes) -> bytes:
    """Encode a row: non-zero bytes as literals, zero runs as (0, count)."""
    out = bytearray()
    i = 0
    while i < len(row):
        if row[i]:
            out.append(row[i])
            i += 1
            continue
        run = 0
        while i < len(row) and row[i] == 0 and run < 255:
            run += 1
            i += 1
        out += bytes((0, run))
    return bytes(out)


def make_packed_bitmap(
    width: int,
    height: int,
    bpp: int,
    rows: Sequence[bytes],
    palette: Optional[List[Tuple[int, int, int]]] = None,
    declared_colors: Optional[int] = None,
) -> bytes:
    """
    Build a packed bitmap whose decoded rows are `rows`.

    Rows are XORed against their predecessor and RLE encoded.
    """
    palette = palette or []
    if declared_colors is None:
        declared_colors = len(palette)
    header = bytearray(Config.SUB_HEADER_SIZE)
    header[0:2] = b'BM'
    data_offset = Config.SUB_HEADER_SIZE + len(palette) * 4
    pack_into('<I', header, 0x0A, data_offset)
    pack_into('<I', header, 0x0E, 40)
    pack_into('<ii', header, 0x12, width, height)
    pack_into('<HH', header, 0x1A, 1, bpp)
    pack_into('<i', header, 0x2E, declared_colors)

    palette_data = b''.join(bytes((r, g, b, 0)) for r, g, b in palette)

    body = bytearray()
    prev = bytes(len(rows[0])) if rows else b''
    for row in rows:
        raw = bytes(a ^ b for a, b in zip(row, prev))
        body += rle_encode(raw)
        prev = row
    return bytes(header) + palette_data + bytes(body)


def make_dwq(pack_text: str, width: int, height: int, payload: bytes, mask: bytes = b'',
             base_type: bytes = b'PACKBMP') -> bytes:
    header = make_header(pack_text, width, height, packed_size=len(payload), base_type=base_type)
    return header + payload + mask


def encode_with_pillow(img: Image.Image, format_name: str, **kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=format_name, **kwargs)
    return buf.getvalue()


GRAY_PALETTE = [(0, 0, 0), (255, 255, 255), (30, 60, 90), (10, 20, 31)]


@pytest.fixture
def gray_palette():
    return list(GRAY_PALETTE)


@pytest.fixture
def debug_mode():
    old = Config.DEBUG_MODE
    Config.DEBUG_MODE = True
    yield
    Config.DEBUG_MODE = old
