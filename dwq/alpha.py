from typing import List, Optional

import numpy as np

from .bmp_reader import BytesLike, DwqBmpReader
from .config import Config
from .const import PixelFormat
from .errors import InvalidFormatError
from .header import DwqMetaData
from .image import Color, DecodedImage


def palette_alpha_levels(palette: List[Color]) -> np.ndarray:
    """Alpha for each palette entry: the integer mean of R, G and B."""
    colors = np.array(palette, dtype=np.uint16).reshape(-1, 3)
    return (colors.sum(axis=1) // 3).astype(np.uint8)


def mask_alpha(mask: DwqBmpReader) -> Optional[np.ndarray]:
    """
    Decode a mask bitmap into per-pixel alpha values.

    Returns:
        uint8 array of width * height alpha values in row-major order, or
        None when the mask is not an 8bpp indexed bitmap
    """
    if mask.format != PixelFormat.INDEXED8:
        return None
    # Reader guarantees every index is inside the palette
    indices = np.frombuffer(mask.data, dtype=np.uint8)
    return palette_alpha_levels(mask.palette)[indices]


def apply_alpha_channel(image: DecodedImage, alpha: np.ndarray) -> DecodedImage:
    """Return image as BGRA32 with its alpha bytes replaced by `alpha`."""
    pixels = image.to_bgr32_array().reshape(-1, 4)
    if len(alpha) != len(pixels):
        raise InvalidFormatError(
            f"Mask has {len(alpha)} pixels, image has {len(pixels)}"
        )
    pixels[:, 3] = alpha
    return DecodedImage(
        pixels.tobytes(),
        PixelFormat.BGRA32,
        image.width,
        image.height,
        metadata=image.metadata,
    )


def composite_mask(image: DecodedImage, mask_source: BytesLike, info: DwqMetaData) -> DecodedImage:
    """
    Merge the packed mask bitmap in `mask_source` into image's alpha channel.

    A mask that is not 8bpp indexed is ignored and image is returned as-is.
    """
    reader = DwqBmpReader(mask_source, info)
    alpha = mask_alpha(reader)
    if alpha is None:
        if Config.DEBUG_MODE:
            print(f"[DEBUG] Ignoring {reader.format.value} mask, expected Indexed8")
        return image
    return apply_alpha_channel(image, alpha)
