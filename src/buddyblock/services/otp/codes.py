"""Time-based one-time codes (RFC 6238) over a shared base32 secret.

Every function here is pure: the current time is passed in explicitly or
read once through ``time.time``. A secret that does not decode is reported
as :class:`ConfigurationError`, never as a mismatched code.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import re
import secrets
import time
from typing import Iterator
from urllib.parse import quote, urlencode

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.twofactor.hotp import HOTP

from buddyblock.config.const import (
    DEFAULT_ISSUER,
    DEFAULT_LABEL,
    SECRET_BYTES,
    TOTP_ALGORITHM,
    TOTP_DIGITS,
    TOTP_PERIOD_SECONDS,
    TOTP_WINDOW_STEPS,
)
from buddyblock.services.errors import ConfigurationError, InputValidationError

_CODE_PATTERN = re.compile(r"^[0-9]{%d}$" % TOTP_DIGITS)
_WHITESPACE = re.compile(r"\s+")


def decode_secret(secret: str | None) -> bytes:
    if not secret or not isinstance(secret, str):
        raise ConfigurationError("One-time code secret is not configured.")
    compact = _WHITESPACE.sub("", secret).upper().rstrip("=")
    padded = compact + "=" * (-len(compact) % 8)
    try:
        key = base64.b32decode(padded, casefold=False)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError("One-time code secret is not valid base32.") from exc
    if not key:
        raise ConfigurationError("One-time code secret is empty.")
    return key


def generate_secret(size: int = SECRET_BYTES) -> str:
    """Return a fresh random secret as unpadded base32."""

    return base64.b32encode(secrets.token_bytes(size)).decode("ascii").rstrip("=")


def time_step(at: float | None = None) -> int:
    moment = time.time() if at is None else at
    return int(moment // TOTP_PERIOD_SECONDS)


def _hotp(key: bytes) -> HOTP:
    return HOTP(key, TOTP_DIGITS, hashes.SHA1(), enforce_key_length=False)


def generate_for_step(secret: str, step: int) -> str:
    if step < 0:
        raise ValueError("time step must be non-negative")
    return _hotp(decode_secret(secret)).generate(step).decode("ascii")


def generate(secret: str, at: float | None = None) -> str:
    """Return the code valid at epoch seconds ``at`` (defaults to now)."""

    return generate_for_step(secret, time_step(at))


def normalize_code(raw: str | None) -> str:
    code = _WHITESPACE.sub("", raw or "")
    if not code:
        raise InputValidationError(f"Please enter the {TOTP_DIGITS}-digit code.")
    if not _CODE_PATTERN.match(code):
        raise InputValidationError(f"Please enter a valid {TOTP_DIGITS}-digit code (numbers only).")
    return code


def _offsets(window_steps: int) -> Iterator[int]:
    yield 0
    for distance in range(1, window_steps + 1):
        yield -distance
        yield distance


def verify(
    secret: str,
    candidate: str,
    window_steps: int = TOTP_WINDOW_STEPS,
    at: float | None = None,
) -> int | None:
    """Return the step offset that produced ``candidate``, or ``None``.

    Offsets are tried in order of increasing distance from the current step
    (0, -1, +1, ...) and the first match wins.
    """

    key = decode_secret(secret)
    code = normalize_code(candidate)
    hotp = _hotp(key)
    current = time_step(at)
    for offset in _offsets(max(0, window_steps)):
        step = current + offset
        if step < 0:
            continue
        if hmac.compare_digest(hotp.generate(step), code.encode("ascii")):
            return offset
    return None


def enrollment_uri(secret: str, *, issuer: str = DEFAULT_ISSUER, label: str = DEFAULT_LABEL) -> str:
    decode_secret(secret)
    query = urlencode(
        {
            "secret": secret,
            "issuer": issuer,
            "algorithm": TOTP_ALGORITHM,
            "digits": TOTP_DIGITS,
            "period": TOTP_PERIOD_SECONDS,
        },
        quote_via=quote,
    )
    return f"otpauth://totp/{quote(label, safe='')}?{query}"
