"""Tests for system protection, firewall and sharing checks."""
import plistlib

import pytest

from bastion.checks.firewall import SOCKETFILTERFW, FirewallEnabledCheck, StealthModeCheck
from bastion.checks.sharing import (
    LAUNCHCTL,
    SYSTEMSETUP,
    AirDropCheck,
    ScreenSharingCheck,
    SSHCheck,
)
from bastion.checks.system_protection import (
    AMFICheck,
    FileVaultCheck,
    GatekeeperCheck,
    SecureBootCheck,
    SIPCheck,
    XProtectVersionCheck,
)
from bastion.models import Category, CheckStatus, Severity
from bastion.process import ProcessResult


# ── Helpers ─────────────────────────────────────────────────────────


def only(findings):
    assert len(findings) == 1
    return findings[0]


# ── SIP ─────────────────────────────────────────────────────────────


def test_sip_enabled(runner, caps):
    runner.register_success("/usr/bin/csrutil", ["status"],
                            "System Integrity Protection status: enabled.")
    f = only(SIPCheck().run(runner, caps))
    assert f.status == CheckStatus.PASS
    assert f.category == Category.SYSTEM_PROTECTION


def test_sip_disabled_is_critical_fail(runner, caps):
    """A disabled status line is never read as enabled."""
    runner.register_success("/usr/bin/csrutil", ["status"],
                            "System Integrity Protection status: disabled.")
    f = only(SIPCheck().run(runner, caps))
    assert f.status == CheckStatus.FAIL
    assert f.severity == Severity.CRITICAL


def test_sip_custom_configuration(runner, caps):
    """Per-feature "disabled" lines do not override an enabled status line."""
    runner.register_success("/usr/bin/csrutil", ["status"], (
        "System Integrity Protection status: enabled (Custom Configuration).\n"
        "Configuration:\n"
        "\tKext Signing: disabled\n"
        "\tFilesystem Protections: enabled\n"
    ))
    f = only(SIPCheck().run(runner, caps))
    assert f.status == CheckStatus.WARN
    assert f.severity == Severity.HIGH


def test_sip_timeout_is_inconclusive(runner, caps):
    runner.register_timeout("/usr/bin/csrutil", ["status"])
    f = only(SIPCheck().run(runner, caps))
    assert f.status == CheckStatus.INCONCLUSIVE


def test_sip_garbage_is_inconclusive(runner, caps):
    runner.register_success("/usr/bin/csrutil", ["status"], "\x1b[31mweird\x07")
    f = only(SIPCheck().run(runner, caps))
    assert f.status == CheckStatus.INCONCLUSIVE
    assert "\x1b" not in f.detail


# ── FileVault / Gatekeeper / AMFI ───────────────────────────────────


@pytest.mark.parametrize("output,status", [
    ("FileVault is On.", CheckStatus.PASS),
    ("FileVault is Off.", CheckStatus.WARN),
    ("", CheckStatus.INCONCLUSIVE),
])
def test_filevault(runner, caps, output, status):
    runner.register_success("/usr/bin/fdesetup", ["status"], output)
    assert only(FileVaultCheck().run(runner, caps)).status == status


def test_gatekeeper_reads_stderr(runner, caps):
    runner.register("/usr/sbin/spctl", ["--status"], ProcessResult(0, "", "assessments disabled"))
    f = only(GatekeeperCheck().run(runner, caps))
    assert f.status == CheckStatus.FAIL


def test_gatekeeper_enabled(runner, caps):
    runner.register_success("/usr/sbin/spctl", ["--status"], "assessments enabled")
    assert only(GatekeeperCheck().run(runner, caps)).status == CheckStatus.PASS


@pytest.mark.parametrize("output,status,severity", [
    ("boot-args\t-v", CheckStatus.PASS, Severity.INFO),
    ("boot-args\tamfi_get_out_of_my_way=1", CheckStatus.FAIL, Severity.CRITICAL),
    ("amfi_get_out_of_my_way\t0", CheckStatus.WARN, Severity.MEDIUM),
])
def test_amfi(runner, caps, output, status, severity):
    runner.register_success("/usr/sbin/nvram", ["-p"], output)
    f = only(AMFICheck().run(runner, caps))
    assert (f.status, f.severity) == (status, severity)


def test_amfi_nvram_failure(runner, caps):
    runner.register_failure("/usr/sbin/nvram", ["-p"])
    assert only(AMFICheck().run(runner, caps)).status == CheckStatus.INCONCLUSIVE


def test_secure_boot_undeterminable_is_info(runner, caps):
    runner.register_failure("/usr/sbin/system_profiler", ["SPiBridgeDataType"])
    runner.register_failure("/usr/bin/bputil", ["-d"])
    assert only(SecureBootCheck().run(runner, caps)).status == CheckStatus.INFO


def test_secure_boot_full(runner, caps):
    runner.register_success("/usr/sbin/system_profiler", ["SPiBridgeDataType"],
                            "Controller Information:\n  Secure Boot: Full Security")
    assert only(SecureBootCheck().run(runner, caps)).status == CheckStatus.PASS


def test_xprotect_version(tmp_path, runner, caps):
    contents = tmp_path / "XProtect.bundle" / "Contents"
    contents.mkdir(parents=True)
    with open(contents / "Info.plist", "wb") as f:
        plistlib.dump({"CFBundleShortVersionString": "2193"}, f)
    f = only(XProtectVersionCheck(bundle=tmp_path / "XProtect.bundle").run(runner, caps))
    assert f.status == CheckStatus.INFO
    assert "2193" in f.detail


def test_xprotect_missing(tmp_path, runner, caps):
    f = only(XProtectVersionCheck(bundle=tmp_path / "nope").run(runner, caps))
    assert f.status == CheckStatus.INCONCLUSIVE


# ── Firewall ────────────────────────────────────────────────────────


@pytest.mark.parametrize("output,status", [
    ("Firewall is enabled. (State = 1)", CheckStatus.PASS),
    ("Firewall is blocking all non-essential incoming connections. (State = 2)", CheckStatus.PASS),
    ("Firewall is disabled. (State = 0)", CheckStatus.WARN),
    ("Firewall is disabled.", CheckStatus.WARN),
    ("", CheckStatus.INCONCLUSIVE),
])
def test_firewall(runner, caps, output, status):
    runner.register_success(SOCKETFILTERFW, ["--getglobalstate"], output)
    f = only(FirewallEnabledCheck().run(runner, caps))
    assert f.status == status
    assert f.category == Category.FIREWALL_NETWORK


def test_stealth_mode_disabled_is_info_with_fix(runner, caps):
    runner.register_success(SOCKETFILTERFW, ["--getstealthmode"], "Stealth mode disabled")
    f = only(StealthModeCheck().run(runner, caps))
    assert f.status == CheckStatus.INFO
    assert f.remediation


# ── Sharing ─────────────────────────────────────────────────────────


@pytest.mark.parametrize("output,status", [
    ("Remote Login: Off", CheckStatus.PASS),
    ("Remote Login: On", CheckStatus.WARN),
    ("You need administrator access to run this tool... exiting!", CheckStatus.INCONCLUSIVE),
])
def test_ssh(runner, caps, output, status):
    runner.register_success(SYSTEMSETUP, ["-getremotelogin"], output)
    assert only(SSHCheck().run(runner, caps)).status == status


def test_screen_sharing_loaded(runner, caps):
    runner.register_success(LAUNCHCTL, ["list"], "-\t0\tcom.apple.screensharing")
    f = only(ScreenSharingCheck().run(runner, caps))
    assert f.status == CheckStatus.WARN
    assert f.category == Category.SHARING_SERVICES


def test_screen_sharing_launchctl_failure(runner, caps):
    runner.register_failure(LAUNCHCTL, ["list"])
    assert only(ScreenSharingCheck().run(runner, caps)).status == CheckStatus.INCONCLUSIVE


@pytest.mark.parametrize("output,status", [
    ("Off", CheckStatus.PASS),
    ("Contacts Only", CheckStatus.PASS),
    ("Everyone", CheckStatus.WARN),
    ("", CheckStatus.INFO),
])
def test_airdrop(runner, caps, output, status):
    runner.register_success("/usr/bin/defaults", ["read", "com.apple.sharingd", "DiscoverableMode"], output)
    assert only(AirDropCheck().run(runner, caps)).status == status
