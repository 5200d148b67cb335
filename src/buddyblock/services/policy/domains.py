"""Hostname normalisation and blocklist matching."""

from __future__ import annotations

import re
from typing import Iterable

_SCHEME = re.compile(r"^[a-z][a-z0-9+.\-]*://")
_WWW = "www."


def _canonical_host(value: str) -> str:
    text = (value or "").strip().lower()
    text = _SCHEME.sub("", text)
    for sep in ("/", "?", "#"):
        text = text.split(sep, 1)[0]
    if "@" in text:
        text = text.rsplit("@", 1)[1]
    if text.startswith("["):
        # bracketed IPv6 literal keeps its colons
        text = text.split("]", 1)[0] + "]"
    else:
        text = text.split(":", 1)[0]
    text = text.rstrip(".")
    if text.isascii():
        return text
    # browsers report internationalised hosts in their punycode form
    try:
        return text.encode("idna").decode("ascii")
    except UnicodeError:
        return ""


def normalize_hostname(hostname: str) -> str:
    """Canonical form of a requested hostname, used for matching and grant keys."""

    return _canonical_host(hostname)


def normalize_domain(raw: str) -> str:
    """Canonical form of a configured blocklist entry.

    Same rules as :func:`normalize_hostname` plus a leading ``www.`` is
    dropped so one entry covers the bare domain and all of its subdomains.
    """

    host = _canonical_host(raw)
    if host.startswith(_WWW):
        host = host[len(_WWW):]
    return host


def is_governed(hostname: str, blocked_domains: Iterable[str]) -> bool:
    host = normalize_hostname(hostname)
    if not host:
        return False
    for entry in blocked_domains:
        domain = normalize_domain(entry)
        if not domain:
            continue
        if host == domain or host.endswith("." + domain):
            return True
    return False


__all__ = ["normalize_domain", "normalize_hostname", "is_governed"]
