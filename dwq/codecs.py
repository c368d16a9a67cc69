"""
Standard image codecs used for the BMP/JPEG/PNG pack types.

Each codec takes a readable binary stream positioned at the start of the
embedded image plus the DWQ metadata, and returns a DecodedImage.
"""

from io import IOBase
from typing import Callable, Dict

from PIL import Image, UnidentifiedImageError

from .errors import InvalidFormatError
from .header import DwqMetaData
from .image import DecodedImage


Codec = Callable[[IOBase, DwqMetaData], DecodedImage]


def _decode_with_pillow(fp: IOBase, info: DwqMetaData, format_name: str) -> DecodedImage:
    try:
        with Image.open(fp, formats=[format_name]) as img:
            img.load()
            return DecodedImage.from_pil_image(img, metadata=info)
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidFormatError(f"Failed to decode embedded {format_name}: {e}") from e


def decode_bmp(fp: IOBase, info: DwqMetaData) -> DecodedImage:
    return _decode_with_pillow(fp, info, 'BMP')


def decode_jpeg(fp: IOBase, info: DwqMetaData) -> DecodedImage:
    return _decode_with_pillow(fp, info, 'JPEG')


def decode_png(fp: IOBase, info: DwqMetaData) -> DecodedImage:
    return _decode_with_pillow(fp, info, 'PNG')


def default_codecs() -> Dict[str, Codec]:
    """Codec table backed by Pillow."""
    return {
        'BMP': decode_bmp,
        'JPEG': decode_jpeg,
        'PNG': decode_png,
    }
