"""
QRSeg Types & Constants — QR Data Segment Encoders
===================================================

Foundational type definitions, constants, lookup tables, and error
classes shared by the segment encoders.

Specification Authority:
  - ISO/IEC 18004 data segment bit packing (numeric, alphanumeric,
    8-bit byte, Kanji)
  - Mode indicator table as published by the ``qrcode`` package

The mode identifiers and the bit-stream sink come from ``qrcode.util``.
Nothing in here writes bits on its own.
"""

from enum import IntEnum
from types import MappingProxyType
from typing import Optional

from qrcode import util as qr_util

# ═══════════════════════════════════════════════════════════════
# MODE IDENTIFIERS (external mode table)
# ═══════════════════════════════════════════════════════════════

class SegmentMode(IntEnum):
    """Four data segment modes. Values are the 4-bit mode indicators."""
    NUMBER    = qr_util.MODE_NUMBER     # 0b0001
    ALPHA_NUM = qr_util.MODE_ALPHA_NUM  # 0b0010
    BYTE      = qr_util.MODE_8BIT_BYTE  # 0b0100
    KANJI     = qr_util.MODE_KANJI      # 0b1000


# Width of the mode indicator written ahead of every segment
MODE_INDICATOR_BITS = 4


# ═══════════════════════════════════════════════════════════════
# GROUP WIDTHS
# ═══════════════════════════════════════════════════════════════

# Numeric: 3 digits -> 10 bits, remainders of 1 and 2 digits
NUMERIC_GROUP_BITS = {3: 10, 2: 7, 1: 4}

# Alphanumeric: pair -> 11 bits, odd trailing character -> 6 bits
ALPHA_NUM_PAIR_BITS = 11
ALPHA_NUM_SINGLE_BITS = 6

BYTE_BITS = 8
KANJI_BITS = 13


# ═══════════════════════════════════════════════════════════════
# ALPHANUMERIC TABLE (45 symbols, index == code)
# ═══════════════════════════════════════════════════════════════

ALPHA_NUM_CHARS = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ $%*+-./:'

# Read-only char -> code map, built once at import
ALPHA_NUM_TABLE = MappingProxyType(
    {char: code for code, char in enumerate(ALPHA_NUM_CHARS)})


# ═══════════════════════════════════════════════════════════════
# DOUBLE-BYTE (SHIFT JIS) RANGES
# ═══════════════════════════════════════════════════════════════

KANJI_RANGE_LOW = (0x8140, 0x9FFC)
KANJI_RANGE_HIGH = (0xE040, 0xEBBF)
KANJI_OFFSET_LOW = 0x8140
KANJI_OFFSET_HIGH = 0xC140
# Index at which the low range starts skipping one code
KANJI_GAP_INDEX = 0x40


# ═══════════════════════════════════════════════════════════════
# ERROR CLASSES
# ═══════════════════════════════════════════════════════════════

class QRSegError(Exception):
    """Base error for all QRSeg operations."""
    pass

class QRSegInputError(QRSegError):
    """Input violates a character-set or structural constraint (InvalidInput)."""
    pass

class QRSegCharacterError(QRSegError):
    """Character cannot be represented in the target encoding (UnsupportedCharacter)."""
    pass

class QRSegRenderError(QRSegError):
    """Symbol could not be built or rendered."""
    pass


# ═══════════════════════════════════════════════════════════════
# SEGMENT CONTRACT
# ═══════════════════════════════════════════════════════════════

class Segment(qr_util.QRData):
    """
    Common contract of the four data segment encoders.

    Subclasses validate eagerly in ``__init__`` and hold an immutable
    payload. ``QRData.__init__`` is not called (it rejects Kanji).
    Being a ``QRData`` lets ``qrcode.QRCode.add_data`` take a segment
    as is.

    Contract:
        mode       : SegmentMode
        length     : logical character count (never a bit count)
        bit_length : number of data bits ``write`` appends
        write(buffer) : append packed bits via ``buffer.put(value, width)``
    """

    mode: SegmentMode

    @property
    def length(self) -> int:
        raise NotImplementedError

    @property
    def bit_length(self) -> int:
        raise NotImplementedError

    def write(self, buffer) -> None:
        raise NotImplementedError

    def __len__(self) -> int:
        # qrcode reads len() for the character count indicator
        return self.length

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data!r})"

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.data == other.data

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.data))


# ═══════════════════════════════════════════════════════════════
# UTILITY FUNCTIONS
# ═══════════════════════════════════════════════════════════════

def numeric_bit_length(n: int) -> int:
    """Data bits for ``n`` digits: 10 per triple plus 0/4/7."""
    return 10 * (n // 3) + (0, 4, 7)[n % 3]

def alpha_num_bit_length(n: int) -> int:
    """Data bits for ``n`` alphanumeric characters: 11 per pair plus 0/6."""
    return 11 * (n // 2) + (0, 6)[n % 2]

def byte_bit_length(k: int) -> int:
    return BYTE_BITS * k

def kanji_bit_length(p: int) -> int:
    return KANJI_BITS * p


def alpha_num_code(char: str) -> int:
    """Code 0-44 of an alphanumeric character. Raises QRSegInputError."""
    try:
        return ALPHA_NUM_TABLE[char]
    except KeyError:
        raise QRSegInputError(
            f"Character {char!r} is not in the alphanumeric set") from None


def first_invalid(text: str, allowed) -> Optional[int]:
    """Index of the first character of ``text`` not in ``allowed``, or None."""
    for index, char in enumerate(text):
        if char not in allowed:
            return index
    return None


def bit_string(buffer) -> str:
    """
    Render a ``qrcode.util.BitBuffer`` as a '0'/'1' string, MSB first.
    Intended for inspection and tests.
    """
    return ''.join('1' if buffer.get(i) else '0' for i in range(len(buffer)))
