"""Queries of the macOS privacy (TCC) permission databases.

Both databases are opened read-only and queried with bound parameters.
"""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable

from bastion.capabilities import SYSTEM_TCC_DB, user_tcc_db

logger = logging.getLogger(__name__)

# auth_value 2 == allowed (macOS 14+)
GRANTED_QUERY = "SELECT client FROM access WHERE service = ? AND auth_value = 2"

TCC_SERVICES: list[tuple[str, str]] = [
    ("kTCCServiceScreenCapture", "Screen Recording"),
    ("kTCCServiceAccessibility", "Accessibility"),
    ("kTCCServiceMicrophone", "Microphone"),
    ("kTCCServiceCamera", "Camera"),
    ("kTCCServiceSystemPolicyAllFiles", "Full Disk Access"),
    ("kTCCServiceAppleEvents", "Automation (Apple Events)"),
]


def query_database(path: Path, service: str) -> list[str] | None:
    """Clients granted ``service`` in one database, or None if unreadable."""
    try:
        conn = sqlite3.connect(f"{path.as_uri()}?mode=ro", uri=True)
    except (sqlite3.Error, ValueError) as e:
        logger.debug("cannot open %s: %s", path, e)
        return None
    try:
        rows = conn.execute(GRANTED_QUERY, (service,)).fetchall()
    except sqlite3.Error as e:
        logger.debug("query failed on %s: %s", path, e)
        return None
    finally:
        conn.close()
    return [row[0] for row in rows if row[0] is not None]


def query_granted_apps(
    service: str, databases: Iterable[Path] | None = None,
) -> list[str] | None:
    """Combined grants across the user and system databases.

    Returns None when no database could be read (no elevated access) and an
    empty list when the databases were read but nothing holds the grant.
    """
    paths = list(databases) if databases is not None else [user_tcc_db(), SYSTEM_TCC_DB]
    apps: list[str] = []
    any_read = False
    for path in paths:
        granted = query_database(path, service)
        if granted is None:
            continue
        any_read = True
        apps.extend(granted)
    return apps if any_read else None
