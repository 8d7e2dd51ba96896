"""System protection: SIP, FileVault, Gatekeeper, AMFI, boot policy, XProtect."""
from __future__ import annotations

import re
from pathlib import Path

from bastion.checks.base import SecurityCheck
from bastion.checks.matching import Toggle, classify_toggle
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner
from bastion.readers.plist import PlistError, read_plist_string
from bastion.sanitize import sanitize_output

XPROTECT_BUNDLE = Path("/Library/Apple/System/Library/CoreServices/XProtect.bundle")


def _sip_status_line(output: str) -> str:
    """The overall status only; custom configurations list per-feature states below it."""
    for line in output.splitlines():
        if "status:" in line.lower():
            return line.lower().split("status:", 1)[1]
    lines = output.strip().splitlines()
    return lines[0] if lines else ""


class SIPCheck(SecurityCheck):
    id = "sip"
    label = "System Integrity Protection (SIP)"
    category = Category.SYSTEM_PROTECTION

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run("/usr/bin/csrutil", ["status"], timeout=5.0)
        if result.timed_out:
            return [self.inconclusive(
                Severity.CRITICAL, "csrutil timed out",
                "Run 'csrutil status' manually",
            )]

        output = result.stdout
        state = classify_toggle(_sip_status_line(output), negative=("disabled",), positive=("enabled",))
        if state is Toggle.OFF:
            return [self.finding(
                CheckStatus.FAIL, Severity.CRITICAL, "disabled",
                "Boot to Recovery Mode and run 'csrutil enable'",
            )]
        if state is Toggle.ON:
            # "enabled (Custom Configuration)" leaves individual protections off
            if "custom configuration" in output.lower():
                return [self.finding(
                    CheckStatus.WARN, Severity.HIGH,
                    "enabled (custom configuration, partial protection)",
                    "Boot to Recovery Mode and run 'csrutil enable' for full protection",
                )]
            return [self.passed("enabled")]

        return [self.inconclusive(
            Severity.CRITICAL,
            f"Could not determine SIP status: {sanitize_output(output, max_length=200)}",
        )]


class FileVaultCheck(SecurityCheck):
    id = "filevault"
    label = "FileVault Disk Encryption"
    category = Category.SYSTEM_PROTECTION

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run("/usr/bin/fdesetup", ["status"], timeout=5.0)
        state = classify_toggle(result.stdout, negative=("off",), positive=("on",))
        if state is Toggle.OFF:
            return [self.finding(
                CheckStatus.WARN, Severity.HIGH, "not enabled",
                "Enable in System Settings > Privacy & Security > FileVault",
            )]
        if state is Toggle.ON:
            return [self.passed("enabled")]
        return [self.inconclusive(Severity.HIGH, "Could not determine FileVault status")]


class GatekeeperCheck(SecurityCheck):
    id = "gatekeeper"
    label = "Gatekeeper"
    category = Category.SYSTEM_PROTECTION

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run("/usr/sbin/spctl", ["--status"], timeout=5.0)
        # spctl reports on stderr on some releases
        combined = f"{result.stdout}\n{result.stderr}"
        state = classify_toggle(
            combined,
            negative=("assessments disabled", "not enabled"),
            positive=("assessments enabled",),
        )
        if state is Toggle.OFF:
            return [self.finding(
                CheckStatus.FAIL, Severity.HIGH, "disabled",
                "Run 'sudo spctl --master-enable'",
            )]
        if state is Toggle.ON:
            return [self.passed("enabled")]
        return [self.inconclusive(Severity.HIGH, "Could not determine Gatekeeper status")]


_AMFI_RE = re.compile(r"amfi_get_out_of_my_way\s*=?\s*(\S*)")


class AMFICheck(SecurityCheck):
    id = "amfi"
    label = "Apple Mobile File Integrity (AMFI)"
    category = Category.SYSTEM_PROTECTION

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run("/usr/sbin/nvram", ["-p"], timeout=5.0)
        if not result.succeeded:
            return [self.inconclusive(Severity.CRITICAL, "Could not read NVRAM")]

        match = _AMFI_RE.search(result.stdout)
        if match is None:
            return [self.passed("enabled (default)")]

        value = match.group(1).strip().strip("%").lower()
        if value in ("0", "00", "false", "no"):
            return [self.finding(
                CheckStatus.WARN, Severity.MEDIUM,
                "amfi_get_out_of_my_way present in NVRAM but set to 0",
                "Boot to Recovery and run 'nvram -d amfi_get_out_of_my_way'",
            )]
        return [self.finding(
            CheckStatus.FAIL, Severity.CRITICAL,
            "AMFI is disabled (amfi_get_out_of_my_way set in NVRAM)",
            "Boot to Recovery and run 'nvram -d amfi_get_out_of_my_way'",
        )]


class SecureBootCheck(SecurityCheck):
    id = "secure_boot"
    label = "Secure Boot"
    category = Category.SYSTEM_PROTECTION

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        # system_profiler can hang; keep the timeout short
        result = runner.run("/usr/sbin/system_profiler", ["SPiBridgeDataType"], timeout=5.0)
        if result.succeeded:
            for line in result.stdout.splitlines():
                if "Secure Boot" not in line:
                    continue
                value = line.rsplit(":", 1)[-1].strip()
                if "Full" in value:
                    return [self.passed(value)]
                return [self.finding(
                    CheckStatus.WARN, Severity.HIGH, value or "unknown",
                    "Set Full Security in Recovery Mode startup options",
                )]

        # Apple Silicon
        bp = runner.run("/usr/bin/bputil", ["-d"], timeout=5.0)
        if bp.succeeded:
            for line in bp.stdout.splitlines():
                if "Security Mode" in line and "Full" in line:
                    return [self.passed("Full Security")]

        # Unsupported hardware is not a failure
        return [self.info("Could not determine Secure Boot status")]


class LockdownModeCheck(SecurityCheck):
    id = "lockdown_mode"
    label = "Lockdown Mode"
    category = Category.SYSTEM_PROTECTION

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(
            "/usr/bin/defaults", ["read", ".GlobalPreferences", "LDMGlobalEnabled"],
            timeout=5.0,
        )
        if result.stdout.strip() == "1":
            return [self.passed("enabled")]
        return [self.info("not enabled (extreme protection, breaks many features)")]


class XProtectVersionCheck(SecurityCheck):
    id = "xprotect_version"
    label = "XProtect"
    category = Category.SYSTEM_PROTECTION

    def __init__(self, bundle: Path = XPROTECT_BUNDLE) -> None:
        self.bundle = bundle

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        try:
            version = read_plist_string(
                self.bundle / "Contents" / "Info.plist", "CFBundleShortVersionString",
            )
        except PlistError:
            if self.bundle.exists():
                return [self.info("present (version unavailable)")]
            return [self.inconclusive(Severity.MEDIUM, "Could not determine XProtect version")]
        return [self.info(f"version {version}")]
