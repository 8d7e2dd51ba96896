"""Tests for on/off status classification and sanitization helpers."""
import pytest

from bastion.checks.matching import Toggle, classify_toggle, contains_token
from bastion.sanitize import (
    TRUNCATION_SUFFIX,
    redact_ipv4,
    sanitize_output,
    strip_control_characters,
)


# ── Toggle classification ───────────────────────────────────────────


@pytest.mark.parametrize("text", [
    "disabled",
    "System Integrity Protection status: disabled.",
    "Stealth mode DISABLED",
    "Firewall is disabled. (State = 0)",
    "assessments disabled",
    "Both enabled-looking and disabled",
    "enabled? no: disabled",
])
def test_disabled_never_enabled(text):
    """Any text containing "disabled" is classified OFF, never ON."""
    assert classify_toggle(text) is Toggle.OFF


@pytest.mark.parametrize("text", [
    "enabled",
    "System Integrity Protection status: enabled.",
    "Stealth mode enabled",
    "FileVault is On.",
])
def test_enabled(text):
    assert classify_toggle(text) is Toggle.ON


@pytest.mark.parametrize("text", ["", "unknown", "reenabled", "buttons", "onboarding"])
def test_unknown(text):
    """Substrings inside other words do not count."""
    assert classify_toggle(text) is Toggle.UNKNOWN


def test_contains_token_whole_word():
    assert contains_token("status: enabled.", "enabled")
    assert not contains_token("status: disabled.", "enabled")
    assert contains_token("Assessments   Enabled", "assessments enabled")


def test_custom_phrases():
    assert classify_toggle("FileVault is Off.", negative=("off",), positive=("on",)) is Toggle.OFF
    assert classify_toggle("Remote Login: On", negative=("off",), positive=("on",)) is Toggle.ON


# ── Sanitization ────────────────────────────────────────────────────


def test_strip_control_characters_keeps_whitespace():
    text = "a\x1b[31mred\x07\x00b\n\tc\r"
    assert strip_control_characters(text) == "a[31mredb\n\tc\r"


def test_redact_ipv4():
    assert redact_ipv4("10.0.0.1") == "10.0.x.x"
    assert redact_ipv4("from 192.168.1.20:443 to 8.8.8.8") == "from 192.168.x.x:443 to 8.8.x.x"
    assert redact_ipv4("no address here") == "no address here"


def test_sanitize_truncates():
    out = sanitize_output("x" * 50, max_length=10)
    assert out == "x" * 10 + TRUNCATION_SUFFIX


def test_sanitize_short_text_untouched():
    assert sanitize_output("fine") == "fine"
