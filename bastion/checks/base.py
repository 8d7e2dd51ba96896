"""Check interface shared by every registry."""
from __future__ import annotations

from abc import ABC, abstractmethod

from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner


class SecurityCheck(ABC):
    """A single read-only probe.

    ``run`` returns zero or more findings and must not raise; any state it
    cannot determine is reported as ``CheckStatus.INCONCLUSIVE``.
    """
    id: str
    label: str
    category: Category

    @abstractmethod
    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        ...

    def finding(
        self,
        status: CheckStatus,
        severity: Severity,
        detail: str,
        remediation: str | None = None,
        *,
        id: str | None = None,
        check: str | None = None,
    ) -> Finding:
        return Finding(
            id=id or self.id,
            check=check or self.label,
            category=self.category,
            status=status,
            severity=severity,
            detail=detail,
            remediation=remediation,
        )

    def passed(self, detail: str) -> Finding:
        return self.finding(CheckStatus.PASS, Severity.INFO, detail)

    def info(self, detail: str, severity: Severity = Severity.INFO,
             remediation: str | None = None) -> Finding:
        return self.finding(CheckStatus.INFO, severity, detail, remediation)

    def inconclusive(self, severity: Severity, detail: str,
                     remediation: str | None = None) -> Finding:
        return self.finding(CheckStatus.INCONCLUSIVE, severity, detail, remediation)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
