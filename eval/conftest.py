"""Shared fakes for the bastion test suite."""
from __future__ import annotations

from typing import Sequence

import pytest

from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import DEFAULT_TIMEOUT, SYNTHETIC_EXIT_CODE, ProcessResult


class FakeRunner:
    """Canned responses keyed by executable plus arguments.

    Unregistered commands return an empty successful result so checks see
    "no output" rather than an error.
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[str, ...], ProcessResult] = {}
        self.calls: list[tuple[str, ...]] = []

    def register(self, executable: str, arguments: Sequence[str], result: ProcessResult) -> None:
        self.responses[(executable, *arguments)] = result

    def register_success(self, executable: str, arguments: Sequence[str] = (),
                         stdout: str = "", stderr: str = "") -> None:
        self.register(executable, arguments, ProcessResult(0, stdout, stderr))

    def register_failure(self, executable: str, arguments: Sequence[str] = (),
                         exit_code: int = 1, stderr: str = "") -> None:
        self.register(executable, arguments, ProcessResult(exit_code, "", stderr))

    def register_timeout(self, executable: str, arguments: Sequence[str] = (),
                         stdout: str = "") -> None:
        self.register(
            executable, arguments,
            ProcessResult(SYNTHETIC_EXIT_CODE, stdout, "", timed_out=True),
        )

    def run(self, executable: str, arguments: Sequence[str] = (),
            timeout: float = DEFAULT_TIMEOUT) -> ProcessResult:
        key = (executable, *arguments)
        self.calls.append(key)
        return self.responses.get(key, ProcessResult(0, "", ""))

    def called(self, executable: str) -> bool:
        return any(call[0] == executable for call in self.calls)


def make_finding(
    category: Category = Category.SYSTEM_PROTECTION,
    status: CheckStatus = CheckStatus.PASS,
    severity: Severity = Severity.INFO,
    id: str = "test",
    detail: str = "detail",
    remediation: str | None = None,
) -> Finding:
    return Finding(
        id=id,
        check=f"Check {id}",
        category=category,
        status=status,
        severity=severity,
        detail=detail,
        remediation=remediation,
    )


class StaticCheck(SecurityCheck):
    category = Category.SYSTEM_PROTECTION

    def __init__(self, id, statuses=(CheckStatus.PASS,), category=None):
        self.id = id
        self.label = f"Static {id}"
        if category is not None:
            self.category = category
        self.statuses = statuses
        self.seen = []

    def run(self, runner, capabilities):
        self.seen.append(capabilities)
        return [
            self.finding(s, Severity.HIGH, f"{self.id}-{i}", id=f"{self.id}_{i}")
            for i, s in enumerate(self.statuses)
        ]


class ExplodingCheck(SecurityCheck):
    id = "boom"
    label = "Exploding"
    category = Category.FIREWALL_NETWORK

    def run(self, runner, capabilities):
        raise RuntimeError("kaboom")


def fixed_hostname(runner):
    return "test-host"


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def caps() -> Capabilities:
    return Capabilities(
        has_full_access=True,
        architecture="arm64",
        os_version="14.5",
        is_emulated=False,
    )


@pytest.fixture
def limited_caps() -> Capabilities:
    return Capabilities(
        has_full_access=False,
        architecture="arm64",
        os_version="14.5",
        is_emulated=False,
    )


@pytest.fixture
def home(tmp_path, monkeypatch):
    """An empty home directory for file-based checks."""
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path
