"""Validation helpers."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse

from ..constants import SUPPORTED_URL_DOMAINS


def is_valid_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)
    except ValueError:
        return False


def normalize_hostname(hostname: str) -> str:
    host = (hostname or "").strip().lower().rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    return host


def is_supported_domain(url: str, domains: Iterable[str] = SUPPORTED_URL_DOMAINS) -> bool:
    """True if the URL's host is an allow-listed domain or one of its subdomains."""
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    return any(host == d or host.endswith(f".{d}") for d in domains)
