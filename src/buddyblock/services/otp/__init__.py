from .codes import (
    decode_secret,
    enrollment_uri,
    generate,
    generate_for_step,
    generate_secret,
    normalize_code,
    time_step,
    verify,
)

__all__ = [
    "decode_secret",
    "enrollment_uri",
    "generate",
    "generate_for_step",
    "generate_secret",
    "normalize_code",
    "time_step",
    "verify",
]
