"""QR codes that send a phone to a machine's connect page."""

from __future__ import annotations

import base64
import io
from urllib.parse import urlencode

import qrcode


def connect_url(client_url: str, machine_id: str) -> str:
    return f"{client_url.rstrip('/')}/connect?{urlencode({'machineId': machine_id})}"


def make_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def make_qr_data_url(data: str) -> str:
    """PNG QR code as a ``data:`` URL, ready for an <img src>."""
    encoded = base64.b64encode(make_qr_png(data)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
