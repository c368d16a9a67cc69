import re
from dataclasses import dataclass
from io import IOBase
from struct import unpack_from
from typing import Optional

from .config import Config
from .const import ProbeStatus


PACK_TYPE_RE = re.compile(r'^PACKTYPE=(\d+)(A?) +$')


@dataclass(frozen=True)
class ResourceHeader:
    """The fixed 64-byte block at the start of every DWQ file."""
    data: bytes
    pack_type: int
    has_alpha: bool


@dataclass(frozen=True)
class DwqMetaData:
    """
    Image properties extracted from a ResourceHeader.

    Fields:
        width: Image width, px.
        height: Image height, px.
        base_type: ASCII tag from the start of the header, e.g. "PACKBMP".
        packed_size: Length of the colour payload (pack types 3 and 7).
        pack_type: Payload encoding selector.
        has_alpha: Whether a mask bitmap follows the colour payload.
        bpp: Always 32, the depth of the image handed to callers.
    """
    width: int
    height: int
    base_type: str
    packed_size: int
    pack_type: int
    has_alpha: bool
    bpp: int = 32


@dataclass(frozen=True)
class ProbeResult:
    """Tagged result of looking for a DWQ header."""
    status: ProbeStatus
    metadata: Optional[DwqMetaData] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == ProbeStatus.OK


def parse_header(data: bytes) -> Optional[ResourceHeader]:
    """
    Parse a header block.

    Returns None when the block is short or the PACKTYPE text at 0x30
    does not match; that is "not this format", not an error.
    """
    if len(data) < Config.HEADER_SIZE:
        return None
    data = bytes(data[:Config.HEADER_SIZE])
    try:
        header_string = data[0x30:0x40].decode('ascii')
    except UnicodeDecodeError:
        return None
    match = PACK_TYPE_RE.match(header_string)
    if not match:
        return None
    return ResourceHeader(
        data=data,
        pack_type=int(match.group(1)),
        has_alpha=len(match.group(2)) > 0,
    )


def metadata_from_header(header: ResourceHeader) -> DwqMetaData:
    data = header.data
    packed_size, width, height = unpack_from('<iII', data, 0x20)
    base_type = data[0:0x10].decode('ascii', errors='replace').rstrip(' \x00')
    return DwqMetaData(
        width=width,
        height=height,
        base_type=base_type,
        packed_size=packed_size,
        pack_type=header.pack_type,
        has_alpha=header.has_alpha,
    )


def read_header(fp: IOBase) -> Optional[ResourceHeader]:
    """Read and parse the header from the current position of fp."""
    return parse_header(fp.read(Config.HEADER_SIZE))


def read_metadata(fp: IOBase) -> Optional[DwqMetaData]:
    """Read DWQ metadata from fp, or None if fp does not hold a DWQ image."""
    header = read_header(fp)
    if header is None:
        return None
    return metadata_from_header(header)


def probe(fp: IOBase) -> ProbeResult:
    """
    Check whether fp starts with a DWQ header.

    Never raises: a mismatch is NOT_RECOGNIZED, a failing stream is ERROR.
    """
    try:
        metadata = read_metadata(fp)
    except OSError as e:
        return ProbeResult(ProbeStatus.ERROR, error=e)
    if metadata is None:
        return ProbeResult(ProbeStatus.NOT_RECOGNIZED)
    return ProbeResult(ProbeStatus.OK, metadata=metadata)
