"""Render WhatsApp login tokens as scannable QR images.

Wraps the `qrcode` package (Pillow image factory) and returns a
`data:image/png;base64,...` URL the frontend can drop straight into an
``<img>`` tag.
"""
from __future__ import annotations

import base64
import io

import qrcode
from qrcode.image.pil import PilImage


class LoginTokenRenderer:
    """Turn a raw login token into a base64 PNG data URL.

    Args:
        box_size: Pixel size of one QR module.
        border: Quiet-zone width, in modules.
    """

    def __init__(self, box_size: int = 8, border: int = 2) -> None:
        self.box_size = box_size
        self.border = border

    def render(self, token: str | bytes) -> str:
        """Render ``token`` to a PNG data URL.

        Raises:
            ValueError: If the token is empty.
        """
        if isinstance(token, bytes):
            token = token.decode("utf-8")
        if not token:
            raise ValueError("Login token is empty")

        qr = qrcode.QRCode(box_size=self.box_size, border=self.border, image_factory=PilImage)
        qr.add_data(token)
        qr.make(fit=True)
        image = qr.make_image()

        out_io = io.BytesIO()
        image.save(out_io, format="PNG")
        encoded = base64.b64encode(out_io.getvalue()).decode("utf-8")
        return f"data:image/png;base64,{encoded}"
