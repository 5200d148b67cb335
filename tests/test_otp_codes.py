from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from buddyblock.services import otp
from buddyblock.services.errors import ConfigurationError, InputValidationError

from conftest import RFC_SECRET


@pytest.mark.parametrize(
    "at, expected",
    [
        (59, "287082"),
        (1111111109, "081804"),
        (1234567890, "005924"),
    ],
)
def test_generate_matches_rfc6238_vectors(at, expected):
    assert otp.generate(RFC_SECRET, at=at) == expected


def test_generate_ignores_case_spaces_and_padding():
    spaced = "gezd gnbv gy3t qojq gezd gnbv gy3t qojq"
    assert otp.generate(spaced, at=59) == "287082"
    assert otp.generate(RFC_SECRET + "====", at=59) == "287082"


def test_verify_accepts_adjacent_steps_only():
    at = 1234567890
    assert otp.verify(RFC_SECRET, otp.generate(RFC_SECRET, at=at), at=at) == 0
    assert otp.verify(RFC_SECRET, otp.generate(RFC_SECRET, at=at - 30), at=at) == -1
    assert otp.verify(RFC_SECRET, otp.generate(RFC_SECRET, at=at + 30), at=at) == 1

    two_back = otp.generate(RFC_SECRET, at=at - 60)
    two_ahead = otp.generate(RFC_SECRET, at=at + 60)
    window = {otp.generate(RFC_SECRET, at=at + shift) for shift in (-30, 0, 30)}
    if two_back not in window:
        assert otp.verify(RFC_SECRET, two_back, at=at) is None
    if two_ahead not in window:
        assert otp.verify(RFC_SECRET, two_ahead, at=at) is None


def test_verify_zero_window_is_exact():
    at = 1234567890
    previous = otp.generate(RFC_SECRET, at=at - 30)
    assert previous != otp.generate(RFC_SECRET, at=at)
    assert otp.verify(RFC_SECRET, previous, window_steps=0, at=at) is None


def test_offsets_are_tried_nearest_first():
    assert list(otp.codes._offsets(2)) == [0, -1, 1, -2, 2]


def test_malformed_secret_is_configuration_error():
    with pytest.raises(ConfigurationError):
        otp.verify("not base32 at all!", "123456", at=59)
    with pytest.raises(ConfigurationError):
        otp.verify("", "123456", at=59)


def test_malformed_secret_wins_over_bad_code():
    with pytest.raises(ConfigurationError):
        otp.verify("1111", "abc", at=59)


@pytest.mark.parametrize("raw", ["", "   ", "12345", "1234567", "12a456", None])
def test_normalize_code_rejects_bad_input(raw):
    with pytest.raises(InputValidationError):
        otp.normalize_code(raw)


def test_normalize_code_strips_whitespace():
    assert otp.normalize_code(" 123 456 ") == "123456"


def test_generate_secret_is_usable_base32():
    secret = otp.generate_secret()
    assert "=" not in secret
    assert len(otp.decode_secret(secret)) == 20
    code = otp.generate(secret, at=1000)
    assert otp.verify(secret, code, at=1000) == 0


def test_enrollment_uri_carries_parameters():
    uri = otp.enrollment_uri(RFC_SECRET, issuer="BuddyBlock", label="AccountabilityPartner")
    parts = urlsplit(uri)
    assert parts.scheme == "otpauth"
    assert parts.netloc == "totp"
    assert parts.path == "/AccountabilityPartner"
    query = parse_qs(parts.query)
    assert query == {
        "secret": [RFC_SECRET],
        "issuer": ["BuddyBlock"],
        "algorithm": ["SHA1"],
        "digits": ["6"],
        "period": ["30"],
    }


def test_enrollment_uri_rejects_bad_secret():
    with pytest.raises(ConfigurationError):
        otp.enrollment_uri("!!!")
