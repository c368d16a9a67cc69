from typing import List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from .const import PixelFormat
from .errors import InvalidFormatError
from .header import DwqMetaData


Color = Tuple[int, int, int]


class DecodedImage(object):
    """
    A fully decoded DWQ image.

    Pixels are kept in the byte layout the decoder produced (see
    PixelFormat); use to_array() or to_pil_image() to get something
    easier to work with.
    """

    @property
    def data(self) -> bytes:
        """Raw pixel bytes, row-major, `stride` bytes per row."""
        return self._data

    @property
    def format(self) -> PixelFormat:
        return self._format

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def stride(self) -> int:
        return self._width * self._format.bytes_per_pixel

    @property
    def palette(self) -> Optional[List[Color]]:
        """RGB palette for INDEXED8 images, None otherwise."""
        if self._palette is None:
            return None
        return list(self._palette)

    @property
    def metadata(self) -> Optional[DwqMetaData]:
        return self._metadata

    def __init__(
        self,
        data: Union[bytes, bytearray],
        pixel_format: PixelFormat,
        width: int,
        height: int,
        palette: Optional[List[Color]] = None,
        metadata: Optional[DwqMetaData] = None,
    ):
        """
        Initialize DecodedImage.

        Args:
            data: Pixel bytes, exactly width * height * bytes_per_pixel long
            pixel_format: Layout of the pixel bytes
            width: Image width in pixels
            height: Image height in pixels
            palette: RGB triples (INDEXED8 only)
            metadata: Header metadata of the DWQ file the image came from
        """
        expected = width * pixel_format.bytes_per_pixel * height
        if len(data) != expected:
            raise ValueError(
                f"Pixel buffer is {len(data)} bytes, expected {expected} for "
                f"{width}x{height} {pixel_format.value}"
            )
        if pixel_format == PixelFormat.INDEXED8 and palette is None:
            raise ValueError("Indexed image requires a palette")

        self._data = bytes(data)
        self._format = pixel_format
        self._width = width
        self._height = height
        self._palette = tuple(palette) if palette is not None else None
        self._metadata = metadata

    def __repr__(self):
        return f'DecodedImage({self._width}x{self._height}, {self._format.value})'

    def to_array(self) -> np.ndarray:
        """
        Get pixels as a read-only numpy array.

        Shape is (height, width) for INDEXED8 and BGR565 (uint16),
        (height, width, channels) otherwise, channels in B, G, R[, A] order.
        """
        if self._format == PixelFormat.INDEXED8:
            return np.frombuffer(self._data, dtype=np.uint8).reshape(self._height, self._width)
        if self._format == PixelFormat.BGR565:
            return np.frombuffer(self._data, dtype='<u2').reshape(self._height, self._width)
        channels = self._format.bytes_per_pixel
        return np.frombuffer(self._data, dtype=np.uint8).reshape(self._height, self._width, channels)

    def to_bgr32_array(self) -> np.ndarray:
        """
        Get pixels converted to 4 bytes per pixel (B, G, R, X).

        The fourth byte is 0xFF unless the image already carries alpha.
        """
        if self._format in (PixelFormat.BGR32, PixelFormat.BGRA32):
            return self.to_array().copy()

        out = np.full((self._height, self._width, 4), 0xFF, dtype=np.uint8)
        if self._format == PixelFormat.INDEXED8:
            indices = self.to_array()
            lut = np.array(self._palette, dtype=np.uint8).reshape(-1, 3)
            if indices.size and int(indices.max()) >= len(lut):
                raise InvalidFormatError(
                    f"Pixel index {int(indices.max())} outside palette of {len(lut)} colors"
                )
            out[..., :3] = lut[indices][..., ::-1]
        elif self._format == PixelFormat.BGR565:
            v = self.to_array()
            b = (v & 0x1F).astype(np.uint8)
            g = ((v >> 5) & 0x3F).astype(np.uint8)
            r = (v >> 11).astype(np.uint8)
            # Replicate high bits into the low bits
            out[..., 0] = (b << 3) | (b >> 2)
            out[..., 1] = (g << 2) | (g >> 4)
            out[..., 2] = (r << 3) | (r >> 2)
        else:
            out[..., :3] = self.to_array()
        return out

    def flipped_vertically(self) -> 'DecodedImage':
        """Return a copy with the row order reversed."""
        rows = np.frombuffer(self._data, dtype=np.uint8).reshape(self._height, self.stride)
        return DecodedImage(
            rows[::-1].tobytes(),
            self._format,
            self._width,
            self._height,
            palette=self.palette,
            metadata=self._metadata,
        )

    def to_pil_image(self) -> Image.Image:
        """
        Get Pillow Image of the decoded pixels.

        Returns:
            'P' image for INDEXED8, 'RGBA' for BGRA32, 'RGB' otherwise
        """
        if self._format == PixelFormat.INDEXED8:
            img = Image.frombytes('P', (self._width, self._height), self._data)
            img.putpalette([channel for color in self._palette for channel in color])
            return img
        if self._format == PixelFormat.BGRA32:
            rgba = self.to_array()[..., [2, 1, 0, 3]]
            return Image.fromarray(np.ascontiguousarray(rgba))
        rgb = self.to_bgr32_array()[..., 2::-1]
        return Image.fromarray(np.ascontiguousarray(rgb))

    def save_to_png(self, output_path: str) -> None:
        """
        Save image as PNG file.

        Args:
            output_path: Path to save PNG file
        """
        self.to_pil_image().save(output_path, format='PNG')

    @classmethod
    def from_pil_image(cls, img: Image.Image, metadata: Optional[DwqMetaData] = None) -> 'DecodedImage':
        """
        Convert a Pillow image into the decoder's pixel layout.

        Paletted images without transparency stay indexed; anything with
        alpha becomes BGRA32; everything else becomes BGR24.
        """
        width, height = img.size
        has_transparency = 'transparency' in img.info or img.mode in ('RGBA', 'LA', 'PA', 'La', 'RGBa')

        if img.mode == 'P' and not has_transparency:
            flat = img.getpalette() or []
            palette = [tuple(flat[i:i + 3]) for i in range(0, len(flat) - 2, 3)]
            return cls(img.tobytes(), PixelFormat.INDEXED8, width, height, palette=palette, metadata=metadata)

        if has_transparency:
            rgba = np.asarray(img.convert('RGBA'), dtype=np.uint8)
            bgra = rgba[..., [2, 1, 0, 3]]
            return cls(np.ascontiguousarray(bgra).tobytes(), PixelFormat.BGRA32, width, height, metadata=metadata)

        rgb = np.asarray(img.convert('RGB'), dtype=np.uint8)
        bgr = rgb[..., ::-1]
        return cls(np.ascontiguousarray(bgr).tobytes(), PixelFormat.BGR24, width, height, metadata=metadata)
