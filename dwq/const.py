from enum import Enum


class PackType(Enum):
    BMP = 0
    PACKBMP_MASK = 3  # RLE+XOR bitmap, optional mask
    JPEG = 5
    JPEG_MASK = 7  # JPEG of packed_size bytes, optional mask
    PNG = 8


class PixelFormat(Enum):
    """Pixel layout of a decoded buffer."""
    INDEXED8 = 'Indexed8'
    BGR565 = 'Bgr565'
    BGR24 = 'Bgr24'
    BGR32 = 'Bgr32'
    BGRA32 = 'Bgra32'

    @property
    def bytes_per_pixel(self) -> int:
        return _BYTES_PER_PIXEL[self]


_BYTES_PER_PIXEL = {
    PixelFormat.INDEXED8: 1,
    PixelFormat.BGR565: 2,
    PixelFormat.BGR24: 3,
    PixelFormat.BGR32: 4,
    PixelFormat.BGRA32: 4,
}

# Sub-bitmap bits per pixel -> pixel format
BPP_FORMATS = {
    8: PixelFormat.INDEXED8,
    16: PixelFormat.BGR565,
    24: PixelFormat.BGR24,
    32: PixelFormat.BGR32,
}


class ProbeStatus(Enum):
    """Outcome of probing a stream for a DWQ header."""
    NOT_RECOGNIZED = "not_recognized"  # Not this format, try another decoder
    ERROR = "error"  # Stream could not be read
    OK = "ok"  # Header parsed
