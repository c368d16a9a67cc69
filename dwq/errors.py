"""
Exceptions raised while decoding DWQ images.
"""


class DwqError(Exception):
    """Base class for all DWQ decoding errors."""


class InvalidFormatError(DwqError, ValueError):
    """The data claims to be DWQ but is malformed."""


class UnsupportedFormatError(InvalidFormatError):
    """Pack type, bit depth or codec this decoder cannot handle."""


class TruncatedDataError(DwqError, EOFError):
    """A required read came up short."""


class NotSupportedError(DwqError, NotImplementedError):
    """Operation not available for this read-only format."""
