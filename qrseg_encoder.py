"""
QRSeg Encoder — QR Data Segment Encoders
=========================================

Packs application input into QR data segment bits:

  - NumericSegment      : digits 0-9, 10 bits per 3 digits
  - AlphanumericSegment : 45-symbol set, 11 bits per pair
  - ByteSegment         : raw bytes (or UTF-8 text), 8 bits per byte
  - KanjiSegment        : Shift JIS double-byte text, 13 bits per character

Every segment validates (and transcodes) when constructed and is
immutable afterwards. ``write(buffer)`` appends the packed bits to any
sink exposing ``put(value, width)``, normally ``qrcode.util.BitBuffer``.

Mode selection, version fitting and error correction are left to the
caller and to ``qrcode``.
"""

import codecs
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from qrcode import util as qr_util

from qrseg_types import (
    SegmentMode, Segment, MODE_INDICATOR_BITS,
    NUMERIC_GROUP_BITS, ALPHA_NUM_PAIR_BITS, ALPHA_NUM_SINGLE_BITS,
    BYTE_BITS, KANJI_BITS, ALPHA_NUM_TABLE,
    KANJI_RANGE_LOW, KANJI_RANGE_HIGH, KANJI_OFFSET_LOW, KANJI_OFFSET_HIGH,
    KANJI_GAP_INDEX,
    QRSegInputError, QRSegCharacterError,
    numeric_bit_length, alpha_num_bit_length, byte_bit_length,
    kanji_bit_length, alpha_num_code, first_invalid, bit_string,
)
from qrseg_symbol import (
    DEFAULT_ERROR_CORRECTION, DEFAULT_BOX_SIZE, DEFAULT_BORDER,
    build_symbol, render_png, resolve_error_correction, check_version,
    check_layout,
)

DEFAULT_TEXT_ENCODING = 'utf-8'
DEFAULT_KANJI_ENCODING = 'shift_jis'

NUMERIC_CHARS = frozenset('0123456789')

BytesLike = Union[bytes, bytearray, memoryview]


# ═══════════════════════════════════════════════════════════════
# TRANSCODER
# ═══════════════════════════════════════════════════════════════

class Transcoder:
    """
    Narrow text -> bytes collaborator backed by a Python codec.

    Usage:
        sjis = Transcoder('shift_jis')
        sjis.encode('点')   # b'\\x93_'
    """

    def __init__(self, encoding: str):
        try:
            self.encoding = codecs.lookup(encoding).name
        except LookupError as exc:
            raise QRSegInputError(f"Unknown text encoding: {encoding!r}") from exc

    def encode(self, text: str) -> bytes:
        """Encode ``text``. Raises QRSegCharacterError on unmappable characters."""
        try:
            return text.encode(self.encoding)
        except UnicodeEncodeError as exc:
            bad = text[exc.start:exc.end]
            raise QRSegCharacterError(
                f"Character {bad!r} at index {exc.start} cannot be "
                f"encoded as {self.encoding}") from exc

    def __repr__(self) -> str:
        return f"Transcoder({self.encoding!r})"


UTF8 = Transcoder(DEFAULT_TEXT_ENCODING)
SHIFT_JIS = Transcoder(DEFAULT_KANJI_ENCODING)


def _require_text(value, kind: str) -> str:
    if not isinstance(value, str):
        raise QRSegInputError(
            f"{kind} segment takes str input, not {type(value).__name__}")
    return value


# ═══════════════════════════════════════════════════════════════
# NUMERIC
# ═══════════════════════════════════════════════════════════════

class NumericSegment(Segment):
    """Encodes digits 0-9, 10 bits per 3 digits."""

    mode = SegmentMode.NUMBER

    def __init__(self, text: str):
        text = _require_text(text, "Numeric")
        bad = first_invalid(text, NUMERIC_CHARS)
        if bad is not None:
            raise QRSegInputError(
                f"Numeric segment accepts digits 0-9 only, "
                f"got {text[bad]!r} at index {bad}")
        self._digits = tuple(ord(char) - 0x30 for char in text)

    @property
    def data(self) -> Tuple[int, ...]:
        return self._digits

    @property
    def text(self) -> str:
        return ''.join(str(d) for d in self._digits)

    # Number of digits, not encoded length.
    @property
    def length(self) -> int:
        return len(self._digits)

    @property
    def bit_length(self) -> int:
        return numeric_bit_length(len(self._digits))

    def write(self, buffer) -> None:
        digits = self._digits
        left_over = len(digits) % 3
        whole = len(digits) - left_over

        for i in range(0, whole, 3):
            value = digits[i] * 100 + digits[i + 1] * 10 + digits[i + 2]
            buffer.put(value, NUMERIC_GROUP_BITS[3])

        if left_over == 2:
            buffer.put(digits[-2] * 10 + digits[-1], NUMERIC_GROUP_BITS[2])
        elif left_over == 1:
            buffer.put(digits[-1], NUMERIC_GROUP_BITS[1])

    def __repr__(self) -> str:
        return f"NumericSegment({self.text!r})"


# ═══════════════════════════════════════════════════════════════
# ALPHANUMERIC
# ═══════════════════════════════════════════════════════════════

class AlphanumericSegment(Segment):
    """
    Encodes the 45-symbol set ``0-9 A-Z space $ % * + - . / :``.
    Pairs pack as ``code(a) * 45 + code(b)`` in 11 bits; an odd trailing
    character takes 6 bits.
    """

    mode = SegmentMode.ALPHA_NUM

    def __init__(self, text: str):
        text = _require_text(text, "Alphanumeric")
        bad = first_invalid(text, ALPHA_NUM_TABLE)
        if bad is not None:
            raise QRSegInputError(
                f"Character {text[bad]!r} at index {bad} is not in the "
                f"alphanumeric set: {text!r}")
        self._text = text

    @property
    def data(self) -> str:
        return self._text

    @property
    def length(self) -> int:
        return len(self._text)

    @property
    def bit_length(self) -> int:
        return alpha_num_bit_length(len(self._text))

    def write(self, buffer) -> None:
        text = self._text
        left_over = len(text) % 2
        whole = len(text) - left_over

        for i in range(0, whole, 2):
            value = alpha_num_code(text[i]) * 45 + alpha_num_code(text[i + 1])
            buffer.put(value, ALPHA_NUM_PAIR_BITS)

        if left_over:
            buffer.put(alpha_num_code(text[-1]), ALPHA_NUM_SINGLE_BITS)


# ═══════════════════════════════════════════════════════════════
# BYTE
# ═══════════════════════════════════════════════════════════════

class ByteSegment(Segment):
    """
    Raw bytes, 8 bits each, in order. ``str`` input is transcoded first
    (UTF-8 unless another transcoder is given).
    """

    mode = SegmentMode.BYTE

    def __init__(self, data: Union[str, BytesLike], transcoder: Transcoder = UTF8):
        if isinstance(data, str):
            self._data = transcoder.encode(data)
        elif isinstance(data, (bytes, bytearray, memoryview)):
            self._data = bytes(data)
        else:
            raise QRSegInputError(
                f"Byte segment takes str or bytes-like input, "
                f"not {type(data).__name__}")

    @classmethod
    def from_text(cls, text: str, encoding: str = DEFAULT_TEXT_ENCODING) -> 'ByteSegment':
        """Build from text using any Python codec name."""
        return cls(_require_text(text, "Byte"), transcoder=Transcoder(encoding))

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def length(self) -> int:
        return len(self._data)

    @property
    def bit_length(self) -> int:
        return byte_bit_length(len(self._data))

    def write(self, buffer) -> None:
        for value in self._data:
            buffer.put(value, BYTE_BITS)


# ═══════════════════════════════════════════════════════════════
# KANJI (SHIFT JIS DOUBLE-BYTE)
# ═══════════════════════════════════════════════════════════════

def kanji_value(hi: int, lo: int) -> int:
    """
    Map one Shift JIS byte pair to its packed Kanji value.

    0x8140-0x9FFC : code - 0x8140, minus one from index 0x40 on
    0xE040-0xEBBF : code - 0xC140
    Anything else raises QRSegCharacterError.
    """
    code = (hi << 8) | lo

    if KANJI_RANGE_LOW[0] <= code <= KANJI_RANGE_LOW[1]:
        value = code - KANJI_OFFSET_LOW
        if value >= KANJI_GAP_INDEX:
            value -= 1
        return value
    if KANJI_RANGE_HIGH[0] <= code <= KANJI_RANGE_HIGH[1]:
        return code - KANJI_OFFSET_HIGH

    raise QRSegCharacterError(f"Unsupported Kanji character: 0x{code:04X}")


class KanjiSegment(Segment):
    """
    Double-byte text, 13 bits per character.

    ``str`` input is transcoded to Shift JIS; bytes-like input is taken as
    already transcoded. Either way the byte count must be even. The range
    check on each pair happens in ``write``.
    """

    mode = SegmentMode.KANJI

    def __init__(self, data: Union[str, BytesLike], transcoder: Transcoder = SHIFT_JIS):
        if isinstance(data, str):
            raw = transcoder.encode(data)
        elif isinstance(data, (bytes, bytearray, memoryview)):
            raw = bytes(data)
        else:
            raise QRSegInputError(
                f"Kanji segment takes str or bytes-like input, "
                f"not {type(data).__name__}")

        if len(raw) % 2 != 0:
            raise QRSegInputError(
                f"Kanji segment needs an even number of bytes, "
                f"got {len(raw)} from {data!r}")
        self._data = raw

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def pairs(self) -> List[Tuple[int, int]]:
        raw = self._data
        return [(raw[i], raw[i + 1]) for i in range(0, len(raw), 2)]

    # Character count, half the byte count.
    @property
    def length(self) -> int:
        return len(self._data) // 2

    @property
    def bit_length(self) -> int:
        return kanji_bit_length(len(self._data) // 2)

    def write(self, buffer) -> None:
        for hi, lo in self.pairs:
            buffer.put(kanji_value(hi, lo), KANJI_BITS)


# ═══════════════════════════════════════════════════════════════
# PAYLOAD ASSEMBLY
# ═══════════════════════════════════════════════════════════════

def write_segments(segments: Iterable[Segment], buffer=None, version: int = 1):
    """
    Append each segment with its header: 4-bit mode indicator,
    character count indicator sized for ``version``, then the data bits.
    Returns the buffer (a new ``qrcode.util.BitBuffer`` if none given).
    """
    check_version(version)
    if buffer is None:
        buffer = qr_util.BitBuffer()

    for segment in segments:
        buffer.put(int(segment.mode), MODE_INDICATOR_BITS)
        buffer.put(segment.length, qr_util.length_in_bits(segment.mode, version))
        segment.write(buffer)
    return buffer


class QRSegEncoder:
    """
    Assembles segments into a QR symbol.

    Usage:
        encoder = QRSegEncoder(error_correction='Q')
        result = encoder.encode(
            [AlphanumericSegment('HELLO '), NumericSegment('2024')],
            output_path='hello.png',
        )
    """

    def __init__(self,
                 error_correction: str = DEFAULT_ERROR_CORRECTION,
                 version: Optional[int] = None,
                 box_size: int = DEFAULT_BOX_SIZE,
                 border: int = DEFAULT_BORDER):
        resolve_error_correction(error_correction)
        if version is not None:
            check_version(version)
        check_layout(box_size, border)

        self.error_correction = error_correction.upper()
        self.version = version
        self.box_size = box_size
        self.border = border

    def encode(self,
               segments: Iterable[Segment],
               output_path: Optional[str] = None) -> dict:
        """
        Fit the segments into a symbol and optionally write it as PNG.

        Returns:
            dict with version, error correction, assembled bits and
            per-segment summaries.
        """
        segments = list(segments)
        if not segments:
            raise QRSegInputError("At least one segment is required")
        for segment in segments:
            if not isinstance(segment, Segment):
                raise QRSegInputError(
                    f"Expected a Segment, got {type(segment).__name__}")

        qr = build_symbol(segments,
                          error_correction=self.error_correction,
                          version=self.version,
                          box_size=self.box_size,
                          border=self.border)

        buffer = write_segments(segments, version=qr.version)

        result = {
            'version': qr.version,
            'error_correction': self.error_correction,
            'size': qr.modules_count,
            'bit_length': len(buffer),
            'bits': bit_string(buffer),
            'segments': [
                {
                    'mode': segment.mode.name,
                    'length': segment.length,
                    'bit_length': segment.bit_length,
                }
                for segment in segments
            ],
        }

        if output_path:
            png = render_png(qr)
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'wb') as f:
                f.write(png)
            result['path'] = output_path

        return result
