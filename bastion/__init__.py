"""Bastion - read-only host security posture audit."""

__version__ = "1.0.0"
