"""Applications holding sensitive privacy grants."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from bastion.checks.base import SecurityCheck
from bastion.checks.privacy import FULL_ACCESS_REMEDIATION
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner
from bastion.readers.tcc import TCC_SERVICES, query_granted_apps


class TCCPermissionsCheck(SecurityCheck):
    id = "tcc_permissions"
    label = "Privacy Permissions"
    category = Category.PRIVACY_PERMISSIONS

    def __init__(self, databases: Sequence[Path] | None = None) -> None:
        self.databases = databases

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        if not capabilities.has_full_access:
            return [self.inconclusive(
                Severity.MEDIUM,
                "Full Disk Access not granted; cannot read the permission database",
                FULL_ACCESS_REMEDIATION,
            )]

        findings: list[Finding] = []
        for service, label in TCC_SERVICES:
            apps = query_granted_apps(service, self.databases)
            if apps is None:
                findings.append(self.finding(
                    CheckStatus.INCONCLUSIVE, Severity.LOW,
                    f"Could not query permission database for {label}",
                    id=f"tcc_{service}", check=f"{label} Permissions",
                ))
            elif apps:
                findings.append(self.finding(
                    CheckStatus.INFO, Severity.INFO,
                    f"{len(apps)} app(s): {', '.join(apps)}",
                    id=f"tcc_{service}", check=f"{label} Permissions",
                ))
        return findings
