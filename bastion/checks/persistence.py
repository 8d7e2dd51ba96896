"""Persistence mechanisms: launchd jobs, login items, cron, kernel extensions."""
from __future__ import annotations

import grp
import logging
import os
import pwd
from abc import abstractmethod
from pathlib import Path

from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner
from bastion.readers.plist import PlistError, launch_program, read_plist
from bastion.readers.signing import validate_path
from bastion.sanitize import sanitize_output

logger = logging.getLogger(__name__)

SYSTEM_LAUNCH_AGENTS = Path("/Library/LaunchAgents")
SYSTEM_LAUNCH_DAEMONS = Path("/Library/LaunchDaemons")

UNREADABLE_PROGRAM = "(could not read)"


def file_owner(path: Path) -> str | None:
    """``user:group`` of ``path``, numeric ids when the names are unknown."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    try:
        user = pwd.getpwuid(st.st_uid).pw_name
    except KeyError:
        user = str(st.st_uid)
    try:
        group = grp.getgrgid(st.st_gid).gr_name
    except KeyError:
        group = str(st.st_gid)
    return f"{user}:{group}"


class _LaunchdDirectoryCheck(SecurityCheck):
    """One finding per third-party job definition in a launchd directory.

    Apple's own ``com.apple.*`` jobs are skipped. A job is flagged when its
    program exists but carries no valid signature, or (for daemons) when the
    plist is not owned by root:wheel.
    """
    category = Category.PERSISTENCE
    kind: str
    validate_ownership = False

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory if self._directory is not None else self.default_directory()

    @abstractmethod
    def default_directory(self) -> Path:
        """Directory scanned when none was injected."""

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        directory = self.directory
        if not directory.is_dir():
            return []
        try:
            plists = sorted(p for p in directory.iterdir() if p.suffix == ".plist")
        except OSError as e:
            return [self.inconclusive(
                Severity.MEDIUM, f"Could not list {directory}: {e.strerror or e}",
            )]

        findings: list[Finding] = []
        for path in plists:
            name = path.stem
            if name.startswith("com.apple."):
                continue
            findings.append(self._inspect(runner, path, name))
        return findings

    def _inspect(self, runner: ProcessRunner, path: Path, name: str) -> Finding:
        try:
            program = launch_program(read_plist(path)) or UNREADABLE_PROGRAM
        except PlistError as e:
            logger.debug("unreadable launchd plist %s: %s", path, e)
            program = UNREADABLE_PROGRAM

        issues: list[str] = []
        if program != UNREADABLE_PROGRAM and os.path.exists(program):
            if not validate_path(runner, program).is_signed:
                issues.append("[UNSIGNED]")

        if self.validate_ownership:
            owner = file_owner(path)
            if owner is not None and owner != "root:wheel":
                issues.append(f"[OWNER: {owner}, expected root:wheel]")

        detail = " ".join([sanitize_output(program, max_length=300), *issues])
        if issues:
            return self.finding(
                CheckStatus.WARN, Severity.MEDIUM, detail,
                "Investigate this persistence item",
                id=f"persist_{name}", check=f"{self.kind}: {name}",
            )
        return self.finding(
            CheckStatus.INFO, Severity.INFO, detail,
            id=f"persist_{name}", check=f"{self.kind}: {name}",
        )


class UserLaunchAgentsCheck(_LaunchdDirectoryCheck):
    id = "user_launch_agents"
    label = "User LaunchAgents"
    kind = "User LaunchAgent"

    def default_directory(self) -> Path:
        return Path.home() / "Library" / "LaunchAgents"


class SystemLaunchAgentsCheck(_LaunchdDirectoryCheck):
    id = "system_launch_agents"
    label = "System LaunchAgents"
    kind = "System LaunchAgent"

    def default_directory(self) -> Path:
        return SYSTEM_LAUNCH_AGENTS


class SystemLaunchDaemonsCheck(_LaunchdDirectoryCheck):
    id = "system_launch_daemons"
    label = "System LaunchDaemons"
    kind = "System LaunchDaemon"
    validate_ownership = True

    def default_directory(self) -> Path:
        return SYSTEM_LAUNCH_DAEMONS


class LoginItemsCheck(SecurityCheck):
    id = "login_items"
    label = "Login Items"
    category = Category.PERSISTENCE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(
            "/usr/bin/osascript",
            ["-e", 'tell application "System Events" to get the name of every login item'],
            timeout=10.0,
        )
        if result.succeeded and result.stdout:
            return [self.info(sanitize_output(result.stdout, max_length=500))]
        return [self.info("none or could not read")]


class CronJobsCheck(SecurityCheck):
    id = "cron_jobs"
    label = "Cron Jobs"
    category = Category.PERSISTENCE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run("/usr/bin/crontab", ["-l"], timeout=5.0)
        if not (result.succeeded and result.stdout):
            return [self.info("none")]

        active = [
            line for line in result.stdout.splitlines()
            if line.strip() and not line.lstrip().startswith("#")
        ]
        if not active:
            return [self.info("0 active cron job(s)")]
        return [self.finding(
            CheckStatus.WARN, Severity.LOW,
            f"{len(active)} active cron job(s)",
            "Review with 'crontab -l'",
        )]


class KernelExtensionsCheck(SecurityCheck):
    id = "kernel_extensions"
    label = "Kernel Extensions"
    category = Category.PERSISTENCE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run("/usr/sbin/kextstat", timeout=10.0)
        if not result.succeeded:
            return [self.inconclusive(Severity.MEDIUM, "Could not query kextstat")]

        # Index Refs Address Size Wired Name (Version) UUID <Linked>
        third_party: list[str] = []
        for line in result.stdout.splitlines():
            if "com.apple" in line:
                continue
            parts = line.split()
            if len(parts) >= 6 and parts[0].isdigit():
                third_party.append(parts[5])

        if not third_party:
            return [self.passed("no non-Apple kexts loaded")]
        return [self.finding(
            CheckStatus.WARN, Severity.MEDIUM,
            f"{len(third_party)} non-Apple kext(s): {', '.join(third_party)}",
            "Review each kernel extension for legitimacy",
        )]
