from .qrcode_renderer import QrCodeRenderer

__all__ = ["QrCodeRenderer"]
