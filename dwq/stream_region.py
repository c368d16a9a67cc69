import io
from io import IOBase


class StreamRegion(io.RawIOBase):
    """
    Read-only view over [offset, offset + length) of a seekable stream.

    Reads past the end of the region behave as end of stream. The region
    keeps its own position and seeks the base stream before every read,
    so several regions over one stream do not disturb each other. Closing
    the region leaves the base stream open.
    """

    def __init__(self, base: IOBase, offset: int, length: int):
        if offset < 0 or length < 0:
            raise ValueError(f'Invalid region: offset={offset}, length={length}')
        super().__init__()
        self._base = base
        self._offset = offset
        self._length = length
        self._pos = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._pos

    def seek(self, pos: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            new_pos = pos
        elif whence == io.SEEK_CUR:
            new_pos = self._pos + pos
        elif whence == io.SEEK_END:
            new_pos = self._length + pos
        else:
            raise ValueError(f'Invalid whence: {whence}')
        if new_pos < 0:
            raise ValueError(f'Negative seek position: {new_pos}')
        self._pos = new_pos
        return self._pos

    def readinto(self, buffer) -> int:
        remaining = self._length - self._pos
        if remaining <= 0:
            return 0
        view = memoryview(buffer).cast('B')
        count = min(len(view), remaining)
        self._base.seek(self._offset + self._pos)
        data = self._base.read(count)
        n = len(data)
        view[:n] = data
        self._pos += n
        return n


def stream_length(fp: IOBase) -> int:
    """Total length of a seekable stream, restoring its position."""
    pos = fp.tell()
    end = fp.seek(0, io.SEEK_END)
    fp.seek(pos)
    return end
