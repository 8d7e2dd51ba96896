"""Application firewall state and stealth mode."""
from __future__ import annotations

import re

from bastion.checks.base import SecurityCheck
from bastion.checks.matching import Toggle, classify_toggle
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner

SOCKETFILTERFW = "/usr/libexec/ApplicationFirewall/socketfilterfw"

_STATE_RE = re.compile(r"state\s*=\s*(\d)", re.IGNORECASE)


class FirewallEnabledCheck(SecurityCheck):
    id = "firewall"
    label = "Application Firewall"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(SOCKETFILTERFW, ["--getglobalstate"], timeout=5.0)
        output = result.stdout

        # Numeric state is authoritative: 0 off, 1 on, 2 block-all
        match = _STATE_RE.search(output)
        if match is not None:
            state = Toggle.OFF if match.group(1) == "0" else Toggle.ON
        else:
            state = classify_toggle(output, negative=("disabled",), positive=("enabled",))

        if state is Toggle.OFF:
            return [self.finding(
                CheckStatus.WARN, Severity.MEDIUM, "disabled",
                "Enable in System Settings > Network > Firewall",
            )]
        if state is Toggle.ON:
            return [self.passed("enabled")]
        return [self.inconclusive(Severity.MEDIUM, "Could not determine firewall status")]


class StealthModeCheck(SecurityCheck):
    id = "stealth_mode"
    label = "Stealth Mode"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(SOCKETFILTERFW, ["--getstealthmode"], timeout=5.0)
        # "Stealth mode enabled" / "Stealth mode disabled" (newer: "... is on/off")
        state = classify_toggle(result.stdout)
        if state is Toggle.OFF:
            return [self.info(
                "disabled", Severity.LOW,
                f"sudo {SOCKETFILTERFW} --setstealthmode on",
            )]
        if state is Toggle.ON:
            return [self.passed("enabled")]
        return [self.inconclusive(Severity.LOW, "Could not determine stealth mode status")]
