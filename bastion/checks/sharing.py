"""Sharing services: remote login, screen/file sharing, ARD, Bluetooth, AirDrop."""
from __future__ import annotations

from bastion.checks.base import SecurityCheck
from bastion.checks.matching import Toggle, classify_toggle
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner

SYSTEMSETUP = "/usr/sbin/systemsetup"
LAUNCHCTL = "/bin/launchctl"
DEFAULTS = "/usr/bin/defaults"

SHARING_REMEDIATION = "Disable via System Settings > General > Sharing"


class _SystemSetupToggleCheck(SecurityCheck):
    """``systemsetup -get...`` prints "<Service>: On" / "<Service>: Off"."""
    category = Category.SHARING_SERVICES
    flag: str
    enabled_detail = "enabled"
    remediation = SHARING_REMEDIATION

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(SYSTEMSETUP, [self.flag], timeout=5.0)
        # Only the value after the colon; the label itself may contain "on"
        value = result.stdout.rsplit(":", 1)[-1]
        state = classify_toggle(value, negative=("off",), positive=("on",))
        if state is Toggle.OFF:
            return [self.passed("disabled")]
        if state is Toggle.ON:
            return [self.finding(
                CheckStatus.WARN, Severity.MEDIUM, self.enabled_detail, self.remediation,
            )]
        return [self.inconclusive(Severity.MEDIUM, f"Could not determine {self.label} status")]


class SSHCheck(_SystemSetupToggleCheck):
    id = "ssh"
    label = "Remote Login (SSH)"
    flag = "-getremotelogin"
    enabled_detail = "enabled (port 22 open to network)"
    remediation = "Disable via System Settings > General > Sharing > Remote Login"


class RemoteAppleEventsCheck(_SystemSetupToggleCheck):
    id = "remote_apple_events"
    label = "Remote Apple Events"
    flag = "-getremoteappleevents"


class _LaunchdServiceCheck(SecurityCheck):
    """A sharing service is on when its launchd label is loaded."""
    category = Category.SHARING_SERVICES
    service_label: str
    enabled_detail = "enabled"

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(LAUNCHCTL, ["list"], timeout=5.0)
        if not result.succeeded:
            return [self.inconclusive(Severity.MEDIUM, "Could not list launchd services")]
        if self.service_label in result.stdout:
            return [self.finding(
                CheckStatus.WARN, Severity.MEDIUM, self.enabled_detail, SHARING_REMEDIATION,
            )]
        return [self.passed("disabled")]


class ScreenSharingCheck(_LaunchdServiceCheck):
    id = "screen_sharing"
    label = "Screen Sharing"
    service_label = "com.apple.screensharing"
    enabled_detail = "enabled (remote desktop access open)"


class SMBCheck(_LaunchdServiceCheck):
    id = "smb"
    label = "File Sharing (SMB)"
    service_label = "com.apple.smbd"
    enabled_detail = "enabled (network file shares open)"


class ARDCheck(_LaunchdServiceCheck):
    id = "ard"
    label = "Remote Management (ARD)"
    service_label = "com.apple.RemoteDesktop"


class BluetoothCheck(SecurityCheck):
    id = "bluetooth"
    label = "Bluetooth"
    category = Category.SHARING_SERVICES

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(
            DEFAULTS,
            ["read", "/Library/Preferences/com.apple.Bluetooth", "ControllerPowerState"],
            timeout=5.0,
        )
        if result.stdout.strip() == "0":
            return [self.passed("disabled")]
        return [self.info("enabled (disable on untrusted networks if not needed)")]


class AirDropCheck(SecurityCheck):
    id = "airdrop"
    label = "AirDrop"
    category = Category.SHARING_SERVICES

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(
            DEFAULTS, ["read", "com.apple.sharingd", "DiscoverableMode"], timeout=5.0,
        )
        value = result.stdout.strip()
        if value == "Off":
            return [self.passed("receiving disabled")]
        if value in ("Contacts Only", "ContactsOnly"):
            return [self.passed("contacts only")]
        if value == "Everyone":
            return [self.finding(
                CheckStatus.WARN, Severity.MEDIUM,
                "set to Everyone (anyone nearby can send you files)",
                "Set to Contacts Only in AirDrop settings",
            )]
        return [self.info("could not determine setting")]
