"""Port for rendering enrollment URIs as QR images."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class QrRenderer(Protocol):
    def render_text(self, data: str) -> str:
        """Return a terminal-printable rendering of ``data``."""

    def render_file(self, data: str, path: Path) -> Path:
        """Write an image of ``data`` to ``path`` and return it."""


__all__ = ["QrRenderer"]
