from io import BytesIO, IOBase
from typing import Mapping, Optional

from .alpha import composite_mask
from .bmp_reader import DwqBmpReader
from .codecs import Codec, default_codecs
from .config import Config
from .const import PackType
from .errors import InvalidFormatError, NotSupportedError, UnsupportedFormatError
from .header import DwqMetaData, ProbeResult, probe, read_metadata
from .image import DecodedImage
from .stream_region import StreamRegion, stream_length


class DwqDecoder(object):
    """
    Decoder for Black Cyc DWQ images.

    Standard codecs (BMP, JPEG, PNG) come from the `codecs` table, which
    defaults to the Pillow-backed one in dwq.codecs.
    """

    def __init__(self, codecs: Optional[Mapping[str, Codec]] = None):
        if codecs is None:
            codecs = default_codecs()
        self._codecs = dict(codecs)

    @property
    def tag(self) -> str:
        return Config.FORMAT_TAG

    @property
    def description(self) -> str:
        return Config.FORMAT_DESCRIPTION

    @staticmethod
    def matches_signature(data: bytes) -> bool:
        """Quick check of the first four bytes of a file."""
        return bytes(data[:4]) in Config.SIGNATURES

    def probe(self, fp: IOBase) -> ProbeResult:
        return probe(fp)

    def read_metadata(self, fp: IOBase) -> Optional[DwqMetaData]:
        return read_metadata(fp)

    def decode_file(self, file_path: str) -> DecodedImage:
        with open(file_path, 'rb') as fp:
            return self.decode(fp)

    def decode_bytes(self, data: bytes) -> DecodedImage:
        return self.decode(BytesIO(data))

    def decode(self, fp: IOBase) -> DecodedImage:
        """
        Decode a whole DWQ image from a seekable binary stream.

        Raises:
            InvalidFormatError: If fp is not a DWQ image or is malformed
            TruncatedDataError: If the data ends early
        """
        fp.seek(0)
        info = read_metadata(fp)
        if info is None:
            raise InvalidFormatError("Not a DWQ image: PACKTYPE header not found")
        return self.read(fp, info)

    def read(self, fp: IOBase, info: DwqMetaData) -> DecodedImage:
        """
        Decode the payload of fp according to already parsed metadata.

        Offsets are absolute within fp; the current position is irrelevant.
        """
        try:
            pack_type = PackType(info.pack_type)
        except ValueError as e:
            raise UnsupportedFormatError(f"Unsupported DWQ pack type: {info.pack_type}") from e

        if Config.DEBUG_MODE:
            print(
                f"[DEBUG] DWQ {info.base_type!r}: pack type {info.pack_type}"
                f"{'A' if info.has_alpha else ''}, {info.width}x{info.height}"
            )

        total_size = stream_length(fp)
        header_size = Config.HEADER_SIZE

        if pack_type == PackType.JPEG:
            return self._delegate('JPEG', StreamRegion(fp, header_size, total_size - header_size), info)

        if pack_type == PackType.PNG:
            return self._delegate('PNG', StreamRegion(fp, header_size, total_size - header_size), info)

        if pack_type == PackType.BMP:
            image = self._delegate('BMP', StreamRegion(fp, header_size, total_size - header_size), info)
            # Stored upside down relative to what a BMP decoder produces
            return image.flipped_vertically()

        self._check_packed_size(info, total_size)
        if pack_type == PackType.JPEG_MASK:
            image = self._delegate('JPEG', StreamRegion(fp, header_size, info.packed_size), info)
        else:
            with StreamRegion(fp, header_size, info.packed_size) as bmp:
                image = DwqBmpReader.from_stream(bmp, info).to_image()

        if info.has_alpha:
            mask_offset = header_size + info.packed_size
            with StreamRegion(fp, mask_offset, total_size - mask_offset) as mask:
                image = composite_mask(image, mask.read(), info)
        return image

    def write(self, fp: IOBase, image: DecodedImage) -> None:
        raise NotSupportedError("DWQ images cannot be written")

    def _delegate(self, tag: str, region: StreamRegion, info: DwqMetaData) -> DecodedImage:
        codec = self._codecs.get(tag)
        if codec is None:
            raise UnsupportedFormatError(f"No {tag} codec available")
        with region:
            return codec(region, info)

    @staticmethod
    def _check_packed_size(info: DwqMetaData, total_size: int) -> None:
        if info.packed_size < 0:
            raise InvalidFormatError(f"Negative packed size: {info.packed_size}")
        available = total_size - Config.HEADER_SIZE
        if info.packed_size > available:
            raise InvalidFormatError(
                f"Packed size {info.packed_size} exceeds the {available} bytes after the header"
            )


def decode_file(file_path: str) -> DecodedImage:
    """Decode a DWQ file with the default codecs."""
    return DwqDecoder().decode_file(file_path)


def decode_stream(fp: IOBase) -> DecodedImage:
    """Decode a DWQ stream with the default codecs."""
    return DwqDecoder().decode(fp)
