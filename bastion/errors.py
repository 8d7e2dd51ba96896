"""Exception types raised outside the audit core."""
from __future__ import annotations


class BastionError(Exception):
    """Base class for errors surfaced to the CLI."""


class ConfigError(BastionError):
    """Invalid configuration key or value."""
