"""
QRSeg — QR Data Segment Encoders
=================================

Packs digits, the 45-symbol alphanumeric set, raw bytes and Shift JIS
double-byte text into QR data segment bits, and hands finished segments
to ``qrcode`` for symbol construction.
"""

from qrseg_types import (
    SegmentMode, Segment,
    QRSegError, QRSegInputError, QRSegCharacterError, QRSegRenderError,
    bit_string,
)
from qrseg_encoder import (
    NumericSegment, AlphanumericSegment, ByteSegment, KanjiSegment,
    Transcoder, QRSegEncoder, write_segments,
)
from qrseg_symbol import build_symbol, render_png

__version__ = "1.0.0"
__all__ = [
    'NumericSegment', 'AlphanumericSegment', 'ByteSegment', 'KanjiSegment',
    'Segment', 'SegmentMode', 'Transcoder', 'QRSegEncoder',
    'write_segments', 'build_symbol', 'render_png', 'bit_string',
    'QRSegError', 'QRSegInputError', 'QRSegCharacterError', 'QRSegRenderError',
]
