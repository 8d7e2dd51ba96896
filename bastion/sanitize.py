"""Output sanitization for text lifted from command output into findings."""
from __future__ import annotations

import re
import unicodedata

TRUNCATION_SUFFIX = "...(truncated)"

_IPV4_RE = re.compile(r"(\d{1,3}\.\d{1,3}\.)\d{1,3}\.\d{1,3}")
_KEPT_CONTROLS = {"\n", "\t", "\r"}


def strip_control_characters(text: str) -> str:
    """Drop control characters (escape, bell, NUL...) except newline, tab, CR."""
    return "".join(
        ch for ch in text
        if ch in _KEPT_CONTROLS or unicodedata.category(ch) != "Cc"
    )


def redact_ipv4(text: str) -> str:
    """Mask the last two octets of every IPv4 address: 10.0.0.1 -> 10.0.x.x."""
    return _IPV4_RE.sub(r"\1x.x", text)


def sanitize_output(text: str, max_length: int = 4096) -> str:
    """Strip control characters and cap the length of process output."""
    cleaned = strip_control_characters(text)
    if len(cleaned) > max_length:
        return cleaned[:max_length] + TRUNCATION_SUFFIX
    return cleaned
