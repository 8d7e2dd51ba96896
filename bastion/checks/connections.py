"""Established network connections and their owning processes."""
from __future__ import annotations

from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner
from bastion.sanitize import redact_ipv4

LSOF = "/usr/bin/lsof"


class ActiveConnectionsCheck(SecurityCheck):
    id = "active_connections"
    label = "Active Connections"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(LSOF, ["-i", "-nP"], timeout=10.0)
        if not result.succeeded:
            return [self.inconclusive(Severity.MEDIUM, "lsof failed")]

        findings: list[Finding] = []
        seen: set[tuple[str, str]] = set()
        for line in result.stdout.splitlines():
            if "ESTABLISHED" not in line:
                continue
            parts = line.split()
            if len(parts) < 9:
                continue
            command, pid, name = parts[0], parts[1], parts[8]

            remote, local_port = name, ""
            if "->" in name:
                local, remote = name.split("->", 1)
                local_port = local.rsplit(":", 1)[-1]

            if (command, remote) in seen:
                continue
            seen.add((command, remote))

            findings.append(self.finding(
                CheckStatus.INFO, Severity.INFO,
                f"PID {pid} -> {redact_ipv4(remote)} (local port: {local_port})",
                id=f"conn_{command}_{pid}", check=f"Connection: {command}",
            ))
        return findings
