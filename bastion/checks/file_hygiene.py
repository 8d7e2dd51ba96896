"""Credential and key files in the user's home directory."""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner

logger = logging.getLogger(__name__)

OWNER_ONLY_MODES = (0o600, 0o400)

# Searched one level deep for stray .env files
PROJECT_DIRS = ("Projects", "Developer", "code", "src", "dev", "repos", "work", "Documents")


def file_mode(path: Path, follow_symlinks: bool = False) -> int | None:
    """Permission bits of ``path``, or None when it cannot be stat'ed."""
    try:
        return stat.S_IMODE(os.stat(path, follow_symlinks=follow_symlinks).st_mode)
    except OSError:
        return None


def _octal(mode: int) -> str:
    return format(mode, "o")


class SSHDirectoryCheck(SecurityCheck):
    id = "ssh_directory"
    label = "SSH Directory"
    category = Category.FILE_HYGIENE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        ssh_dir = Path.home() / ".ssh"
        if not ssh_dir.is_dir():
            return [self.info("~/.ssh not present")]

        # A symlinked ~/.ssh is judged by the directory it points at
        mode = file_mode(ssh_dir, follow_symlinks=True)
        if mode is None:
            return [self.inconclusive(Severity.MEDIUM, "Could not read ~/.ssh permissions")]
        if mode == 0o700:
            return [self.passed("~/.ssh is 700")]
        return [self.finding(
            CheckStatus.WARN, Severity.MEDIUM,
            f"~/.ssh is {_octal(mode)} (should be 700)",
            "chmod 700 ~/.ssh",
        )]


class SSHKeyPermissionsCheck(SecurityCheck):
    id = "ssh_key_permissions"
    label = "SSH Key Permissions"
    category = Category.FILE_HYGIENE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        ssh_dir = Path.home() / ".ssh"
        try:
            keys = sorted(
                p for p in ssh_dir.glob("id_*")
                if p.is_file() and p.suffix != ".pub"
            )
        except OSError:
            return [self.inconclusive(Severity.HIGH, "Could not list ~/.ssh")]
        if not keys:
            return []

        loose: list[str] = []
        for key in keys:
            mode = file_mode(key)
            if mode is None or mode not in OWNER_ONLY_MODES:
                loose.append(f"{key.name} ({_octal(mode) if mode is not None else '?'})")

        if not loose:
            return [self.passed(f"{len(keys)} private key(s), owner-only permissions")]
        return [self.finding(
            CheckStatus.FAIL, Severity.HIGH,
            f"Private keys readable beyond owner: {', '.join(loose)}",
            "chmod 600 ~/.ssh/id_*",
        )]


class EnvFilesCheck(SecurityCheck):
    id = "env_files"
    label = ".env Files"
    category = Category.FILE_HYGIENE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        home = Path.home()
        found: list[Path] = []
        if (home / ".env").is_file():
            found.append(home / ".env")

        for name in PROJECT_DIRS:
            root = home / name
            if not root.is_dir():
                continue
            try:
                children = sorted(root.iterdir())
            except OSError as e:
                logger.debug("skipping %s: %s", root, e)
                continue
            for child in children:
                candidate = child / ".env"
                try:
                    if child.is_dir() and candidate.is_file():
                        found.append(candidate)
                except OSError as e:
                    logger.debug("skipping %s: %s", child, e)

        if not found:
            return []
        shown = ", ".join(f"~/{p.relative_to(home)}" for p in found[:5])
        more = f" (+{len(found) - 5} more)" if len(found) > 5 else ""
        return [self.finding(
            CheckStatus.WARN, Severity.MEDIUM,
            f"{len(found)} .env file(s) found: {shown}{more}",
            "Move secrets to the Keychain or a secrets manager; never commit .env files",
        )]


class GitCredentialsCheck(SecurityCheck):
    id = "git_credentials"
    label = "Git Credentials"
    category = Category.FILE_HYGIENE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        if not (Path.home() / ".git-credentials").exists():
            return [self.passed("no plaintext credential store")]
        return [self.finding(
            CheckStatus.WARN, Severity.MEDIUM,
            "~/.git-credentials stores tokens in plaintext",
            "git config --global credential.helper osxkeychain && rm ~/.git-credentials",
        )]


class NetrcCheck(SecurityCheck):
    id = "netrc"
    label = ".netrc"
    category = Category.FILE_HYGIENE

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        netrc = Path.home() / ".netrc"
        if not netrc.exists():
            return []
        mode = file_mode(netrc)
        if mode in OWNER_ONLY_MODES:
            return [self.info(f"present with mode {_octal(mode)}")]
        shown = _octal(mode) if mode is not None else "unknown"
        return [self.finding(
            CheckStatus.WARN, Severity.MEDIUM,
            f"present with mode {shown} (plaintext credentials readable by others)",
            "chmod 600 ~/.netrc",
        )]
