"""
Configuration constants for the DWQ decoder.
"""


class Config:
    """Configuration constants for the DWQ decoder."""

    # Format identification
    FORMAT_TAG = 'DWQ'
    FORMAT_DESCRIPTION = 'Black Cyc image format'
    FILE_EXTENSION = '.dwq'

    # First four bytes of the base type tag: JPEG, BMP, PNG, PACK
    SIGNATURES = (b'JPEG', b'BMP ', b'PNG ', b'PACK')

    # Container layout
    HEADER_SIZE = 0x40
    SUB_HEADER_SIZE = 0x36
    MAX_PALETTE_COLORS = 0x100
    PALETTE_ENTRY_SIZE = 4

    # Output directory
    OUTPUT_DIR = 'out'

    # Debug mode: print [DEBUG] lines while decoding
    DEBUG_MODE = False
