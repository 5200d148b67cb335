"""QR rendering backed by the ``qrcode`` package."""

from __future__ import annotations

import io
from pathlib import Path

import qrcode


class QrCodeRenderer:
    def __init__(self, *, border: int = 2, box_size: int = 10) -> None:
        self.border = border
        self.box_size = box_size

    def _build(self, data: str) -> qrcode.QRCode:
        qr = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(data)
        qr.make(fit=True)
        return qr

    def render_text(self, data: str) -> str:
        out = io.StringIO()
        self._build(data).print_ascii(out=out, invert=True)
        return out.getvalue()

    def render_file(self, data: str, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        image = self._build(data).make_image(fill_color="black", back_color="white")
        with path.open("wb") as handle:
            image.save(handle)
        return path
