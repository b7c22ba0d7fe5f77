"""General helpers: IP masking, address splitting and random strings."""

from __future__ import annotations

import os
import re
import secrets
import string

DNS_SERVERS: tuple[tuple[str, int], ...] = (
    ("1.1.1.1", 53),
    ("223.5.5.5", 53),
    ("2606:4700:4700::1111", 53),
    ("2400:3200::1", 53),
)

_LETTERS = string.digits + string.ascii_uppercase + string.ascii_lowercase
_UINT64_MASK = (1 << 64) - 1

_IPV4_RE = re.compile(r"(\d*\.).*(\.\d*)", re.ASCII)
_IPV6_RE = re.compile(r"(\w*:\w*:).*(:\w*:\w*)", re.ASCII)


def is_windows() -> bool:
    """Return True when running on a Windows-style filesystem."""
    return os.sep == "\\" and os.pathsep == ";"


def ip_desensitize(ip_addr: str) -> str:
    """Mask the middle part of every IPv4 and IPv6 address in the text."""
    ip_addr = _IPV4_RE.sub(r"\g<1>****\g<2>", ip_addr)
    return _IPV6_RE.sub(r"\g<1>****\g<2>", ip_addr)


def split_ip_addr(v4v6_bundle: str) -> tuple[str, str, str]:
    """Split a "v4/v6" bundle into (ipv4, ipv6, valid_ip)."""
    parts = v4v6_bundle.split("/")
    if len(parts) > 1:
        ipv4, ipv6 = parts[0], parts[1]
        return ipv4, ipv6, ipv4
    single = parts[0]
    if ":" in single:
        return "", single, single
    return single, "", single


def is_file_exists(path: str | os.PathLike[str]) -> bool:
    """Return True if the path can be stat'ed."""
    try:
        os.stat(path)
    except OSError:
        return False
    return True


def generate_random_string(n: int) -> str:
    """Return a cryptographically random alphanumeric string of length n."""
    if n < 0:
        raise ValueError("length must not be negative")
    return "".join(secrets.choice(_LETTERS) for _ in range(n))


def uint64_sub_int64(a: int, b: int) -> int:
    """Subtract a signed value from an unsigned 64-bit one, clamping at zero."""
    if b < 0:
        return (a + -b) & _UINT64_MASK
    if a < b:
        return 0
    return a - b