"""Orchestration: run a fixed registry of checks and assemble a Report.

Checks run sequentially so findings keep registry order. One check raising
or reporting trouble never stops the ones after it; an unexpected exception
is logged and recorded as a single inconclusive finding for that check.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from bastion import __version__
from bastion.capabilities import detect_capabilities, get_hostname
from bastion.checks import (
    audit_checks,
    connection_checks,
    permission_checks,
    persistence_checks,
    port_checks,
)
from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, CheckStatus, Finding, Report, Severity
from bastion.process import ProcessRunner, SystemProcessRunner
from bastion.sanitize import sanitize_output
from bastion.scoring import compute_risk_score

logger = logging.getLogger(__name__)

HostnameProvider = Callable[[ProcessRunner], str]


class Engine:
    """Base engine. Subclasses name their registry via ``default_checks``."""

    name = "engine"

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        capabilities: Capabilities | None = None,
        checks: Sequence[SecurityCheck] | None = None,
        hostname_provider: HostnameProvider | None = None,
    ) -> None:
        self.runner = runner if runner is not None else SystemProcessRunner()
        self._capabilities = capabilities
        self.checks = list(checks) if checks is not None else self.default_checks()
        self.hostname_provider = hostname_provider or get_hostname

    def default_checks(self) -> list[SecurityCheck]:
        return []

    def run(self) -> Report:
        """Execute every check once and return the scored report."""
        start = time.monotonic()
        # Fresh snapshot per run unless one was injected
        capabilities = self._capabilities
        if capabilities is None:
            capabilities = detect_capabilities(self.runner)

        findings: list[Finding] = []
        for check in self.checks:
            findings.extend(self._run_check(check, capabilities))

        score = compute_risk_score(findings)
        hostname = self.hostname_provider(self.runner)
        logger.debug(
            "%s: %d checks, %d findings in %.2fs",
            self.name, len(self.checks), len(findings), time.monotonic() - start,
        )
        return Report(
            version=__version__,
            hostname=hostname,
            findings=tuple(findings),
            risk_score=score,
            capabilities=capabilities,
        )

    def _run_check(self, check: SecurityCheck, capabilities: Capabilities) -> list[Finding]:
        try:
            results = check.run(self.runner, capabilities)
        except Exception as e:
            logger.exception("check %s raised", check.id)
            return [Finding(
                id=check.id,
                check=check.label,
                category=check.category,
                status=CheckStatus.INCONCLUSIVE,
                severity=Severity.MEDIUM,
                detail=sanitize_output(f"Check raised {type(e).__name__}: {e}", max_length=300),
            )]
        logger.debug("check %s: %d finding(s)", check.id, len(results))
        return list(results)


class AuditEngine(Engine):
    name = "audit"

    def default_checks(self) -> list[SecurityCheck]:
        return audit_checks()


class PortScanEngine(Engine):
    name = "scan"

    def default_checks(self) -> list[SecurityCheck]:
        return port_checks()


class ConnectionEngine(Engine):
    name = "connections"

    def default_checks(self) -> list[SecurityCheck]:
        return connection_checks()


class PersistenceEngine(Engine):
    name = "persistence"

    def default_checks(self) -> list[SecurityCheck]:
        return persistence_checks()


class PermissionsEngine(Engine):
    name = "permissions"

    def default_checks(self) -> list[SecurityCheck]:
        return permission_checks()


ENGINES: dict[str, type[Engine]] = {
    "audit": AuditEngine,
    "scan": PortScanEngine,
    "connections": ConnectionEngine,
    "persistence": PersistenceEngine,
    "permissions": PermissionsEngine,
}
