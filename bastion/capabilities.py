"""Host capability detection and hostname lookup."""
from __future__ import annotations

import logging
import os
import platform
import socket
from pathlib import Path

from bastion.models import Capabilities
from bastion.process import ProcessRunner

logger = logging.getLogger(__name__)

USER_TCC_DB = Path("Library/Application Support/com.apple.TCC/TCC.db")
SYSTEM_TCC_DB = Path("/Library/Application Support/com.apple.TCC/TCC.db")

SYSCTL = "/usr/sbin/sysctl"
SCUTIL = "/usr/sbin/scutil"


def user_tcc_db() -> Path:
    return Path.home() / USER_TCC_DB


def _os_version() -> str:
    mac_version = platform.mac_ver()[0]
    if mac_version:
        return mac_version
    return platform.release() or "unknown"


def _is_emulated(runner: ProcessRunner) -> bool:
    """Rosetta sets sysctl.proc_translated to 1 for translated processes."""
    result = runner.run(SYSCTL, ["-in", "sysctl.proc_translated"], timeout=2.0)
    return result.succeeded and result.stdout.strip() == "1"


def detect_capabilities(runner: ProcessRunner) -> Capabilities:
    """Probe the host. Called once per engine run; never cached."""
    caps = Capabilities(
        has_full_access=os.access(user_tcc_db(), os.R_OK),
        architecture=platform.machine() or "unknown",
        os_version=_os_version(),
        is_emulated=_is_emulated(runner),
    )
    logger.debug("detect_capabilities: %s", caps)
    return caps


def get_hostname(runner: ProcessRunner) -> str:
    """ComputerName from scutil, falling back to the network hostname."""
    result = runner.run(SCUTIL, ["--get", "ComputerName"], timeout=5.0)
    if result.succeeded and result.stdout:
        return result.stdout
    return socket.gethostname() or "unknown"
