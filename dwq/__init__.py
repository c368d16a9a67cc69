"""dwq package entrypoints."""

from .const import PackType, PixelFormat, ProbeStatus
from .decoder import DwqDecoder, decode_file, decode_stream
from .errors import (
    DwqError,
    InvalidFormatError,
    NotSupportedError,
    TruncatedDataError,
    UnsupportedFormatError,
)
from .header import DwqMetaData, ProbeResult
from .image import DecodedImage

__all__ = [
    'DwqDecoder', 'DecodedImage', 'DwqMetaData', 'ProbeResult',
    'PackType', 'PixelFormat', 'ProbeStatus',
    'DwqError', 'InvalidFormatError', 'UnsupportedFormatError',
    'TruncatedDataError', 'NotSupportedError',
    'decode_file', 'decode_stream',
]
