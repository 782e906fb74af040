"""QR code rendering for payload text."""

from __future__ import annotations

import logging
from typing import Optional

import qrcode
from qrcode.exceptions import DataOverflowError
from PIL import Image

from qrcation.errors import EncodeRejectedError

logger = logging.getLogger(__name__)

# Key in ``Image.info`` holding the code side in modules, quiet zone included.
MODULES_INFO = "qr_modules"


def code_pixel_size(width: int, height: int, scale: float) -> int:
    """Side of the square code image in device pixels."""
    return int(min(width, height) * scale)


def code_modules(image: Image.Image) -> int:
    """Return how many modules span one side of a code image."""
    return int(image.info.get(MODULES_INFO, image.width))


def build_code_image(text: str, pixel_size: int) -> Image.Image:
    """Render ``text`` as a square QR image, raising when it cannot.

    Every module keeps at least one pixel, so ``pixel_size`` below the
    module count is rejected rather than resampled away.
    """
    if pixel_size < 1:
        raise EncodeRejectedError(f"invalid code size: {pixel_size}")
    qr = qrcode.QRCode(box_size=1)
    qr.add_data(text)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        # Newer qrcode releases report an exhausted version range as ValueError.
        raise EncodeRejectedError(
            f"payload too long for a QR code ({len(text)} chars)"
        ) from exc
    source = qr.make_image(fill_color="black", back_color="white").get_image()
    modules = source.width
    if pixel_size < modules:
        raise EncodeRejectedError(
            f"code needs {modules} pixels, only {pixel_size} available"
        )
    image = source.convert("L").resize(
        (pixel_size, pixel_size), Image.Resampling.NEAREST
    )
    image.info[MODULES_INFO] = modules
    return image


def encode_code(text: str, pixel_size: int) -> Optional[Image.Image]:
    """Return the QR image for ``text`` or None when it is rejected."""
    try:
        return build_code_image(text, pixel_size)
    except EncodeRejectedError as exc:
        logger.warning("QR encode rejected: %s", exc)
        return None
