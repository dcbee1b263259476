"""
QR code generation for item AR links
"""
import base64
import io

import qrcode
import qrcode.image.svg
from PIL import Image

from core.config import FRONTEND_URL

DEFAULT_SIZE = 300
DEFAULT_ERROR_CORRECTION = "M"
QR_MARGIN = 2

_ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}


def get_ar_url(slug: str) -> str:
    return f"{FRONTEND_URL}/ar/{slug}"


def _build(data: str, error_correction: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION.get(error_correction or DEFAULT_ERROR_CORRECTION),
        box_size=10,
        border=QR_MARGIN,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def generate_png(slug: str, size: int = DEFAULT_SIZE, error_correction: str = DEFAULT_ERROR_CORRECTION) -> bytes:
    qr = _build(get_ar_url(slug), error_correction)
    img = qr.make_image(fill_color="black", back_color="white").get_image()
    img = img.convert("RGB").resize((size, size), Image.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_svg(slug: str, error_correction: str = DEFAULT_ERROR_CORRECTION) -> str:
    qr = _build(get_ar_url(slug), error_correction)
    img = qr.make_image(image_factory=qrcode.image.svg.SvgPathFillImage)
    return img.to_string(encoding="unicode")


def generate_data_url(slug: str, size: int = DEFAULT_SIZE, error_correction: str = DEFAULT_ERROR_CORRECTION) -> str:
    png = generate_png(slug, size=size, error_correction=error_correction)
    return f"data:image/png;base64,{base64.b64encode(png).decode('utf-8')}"
