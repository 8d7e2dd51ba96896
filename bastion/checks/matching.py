"""Status-string classification for on/off style command output.

Negative phrases are always tested before positive ones and matched as whole
tokens: "disabled" contains "enabled" as a substring, and reading a disabled
protection as enabled is the worst mistake this tool can make.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Iterable


class Toggle(str, Enum):
    ON = "on"
    OFF = "off"
    UNKNOWN = "unknown"


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    words = [re.escape(w) for w in phrase.split()]
    return re.compile(r"(?<![\w-])" + r"\s+".join(words) + r"(?![\w-])", re.IGNORECASE)


def contains_token(text: str, token: str) -> bool:
    """Case-insensitive whole-word (or whole-phrase) match."""
    return bool(_phrase_pattern(token).search(text))


def classify_toggle(
    text: str,
    negative: Iterable[str] = ("disabled", "off"),
    positive: Iterable[str] = ("enabled", "on"),
) -> Toggle:
    """Classify ``text`` as OFF, ON or UNKNOWN, negatives first."""
    if any(contains_token(text, phrase) for phrase in negative):
        return Toggle.OFF
    if any(contains_token(text, phrase) for phrase in positive):
        return Toggle.ON
    return Toggle.UNKNOWN
