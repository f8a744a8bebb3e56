"""
QRSeg Symbol — hand segments to ``qrcode`` and render them.

Version fitting, Reed-Solomon coding, module placement and masking are
all done by ``qrcode.QRCode``; this module only feeds it ready-made
segments and turns the result into PNG bytes with Pillow.
"""

import io
from typing import Iterable, Optional

import qrcode
from qrcode import constants as qr_constants
from qrcode import exceptions as qr_exceptions

from qrseg_types import QRSegInputError, QRSegRenderError

# Optional: PNG rendering
try:
    from PIL import Image  # noqa: F401
    HAS_PIL = True
except ImportError:
    HAS_PIL = False


DEFAULT_ERROR_CORRECTION = 'M'
DEFAULT_BOX_SIZE = 10
DEFAULT_BORDER = 4

ERROR_CORRECTION = {
    'L': qr_constants.ERROR_CORRECT_L,  # ~7%
    'M': qr_constants.ERROR_CORRECT_M,  # ~15%
    'Q': qr_constants.ERROR_CORRECT_Q,  # ~25%
    'H': qr_constants.ERROR_CORRECT_H,  # ~30%
}


def resolve_error_correction(level: str) -> int:
    """Map 'L'/'M'/'Q'/'H' (any case) to the qrcode constant."""
    try:
        return ERROR_CORRECTION[level.upper()]
    except (KeyError, AttributeError):
        raise QRSegInputError(
            f"Error correction must be one of L, M, Q, H, got {level!r}") from None


def check_version(version: int) -> None:
    if not isinstance(version, int) or not 1 <= version <= 40:
        raise QRSegInputError(f"Version must be 1-40, got {version!r}")


def check_layout(box_size: int, border: int) -> None:
    if box_size < 1:
        raise QRSegInputError(f"box_size must be at least 1, got {box_size}")
    if border < 0:
        raise QRSegInputError(f"border must not be negative, got {border}")


def build_symbol(segments: Iterable,
                 error_correction: str = DEFAULT_ERROR_CORRECTION,
                 version: Optional[int] = None,
                 box_size: int = DEFAULT_BOX_SIZE,
                 border: int = DEFAULT_BORDER) -> qrcode.QRCode:
    """
    Build a ``qrcode.QRCode`` holding ``segments`` in order.
    ``version=None`` picks the smallest version that fits.
    """
    if version is not None:
        check_version(version)
    check_layout(box_size, border)

    qr = qrcode.QRCode(
        version=version,
        error_correction=resolve_error_correction(error_correction),
        box_size=box_size,
        border=border,
    )
    for segment in segments:
        qr.add_data(segment)

    try:
        qr.make(fit=version is None)
    except qr_exceptions.DataOverflowError as exc:
        where = f"version {version}" if version else "any version"
        raise QRSegRenderError(
            f"Segments do not fit in {where} at level {error_correction}") from exc
    return qr


def render_png(qr: qrcode.QRCode,
               fill_color: str = "black",
               back_color: str = "white") -> bytes:
    """Render a built symbol as PNG bytes."""
    if not HAS_PIL:
        raise QRSegRenderError("Pillow is required to render PNG images")

    from qrcode.image.pil import PilImage

    img = qr.make_image(image_factory=PilImage,
                        fill_color=fill_color, back_color=back_color)
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()
