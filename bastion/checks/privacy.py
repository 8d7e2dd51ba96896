"""Privacy preferences and access to the protected permission store."""
from __future__ import annotations

from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner

DEFAULTS = "/usr/bin/defaults"

FULL_ACCESS_REMEDIATION = (
    "Grant Full Disk Access to your terminal in "
    "System Settings > Privacy & Security > Full Disk Access"
)


def read_default(runner: ProcessRunner, domain: str, key: str) -> str:
    """Value of ``defaults read <domain> <key>``, or "" when unset/unreadable."""
    result = runner.run(DEFAULTS, ["read", domain, key], timeout=5.0)
    return result.stdout.strip() if result.succeeded else ""


class AnalyticsCheck(SecurityCheck):
    id = "analytics"
    label = "Share Mac Analytics"
    category = Category.PRIVACY_PERMISSIONS

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        value = read_default(
            runner,
            "/Library/Application Support/CrashReporter/DiagnosticMessagesHistory.plist",
            "AutoSubmit",
        )
        if value == "0":
            return [self.passed("disabled")]
        if value == "1":
            return [self.finding(
                CheckStatus.WARN, Severity.LOW,
                "enabled (sends usage data to Apple)",
                "Disable in System Settings > Privacy & Security > Analytics & Improvements",
            )]
        return [self.info("could not determine")]


class SiriCheck(SecurityCheck):
    id = "siri"
    label = "Siri"
    category = Category.PRIVACY_PERMISSIONS

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        value = read_default(runner, "com.apple.assistant.support", "Assistant Enabled")
        if value == "0":
            return [self.passed("disabled")]
        if value == "1":
            return [self.info("enabled (sends voice data to Apple for processing)")]
        return [self.info("could not determine")]


class SpotlightSuggestionsCheck(SecurityCheck):
    id = "spotlight_suggestions"
    label = "Spotlight Suggestions"
    category = Category.PRIVACY_PERMISSIONS

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        value = read_default(runner, "com.apple.lookup.shared", "LookupSuggestionsDisabled")
        if value == "1":
            return [self.passed("disabled (queries stay local)")]
        return [self.info("enabled (sends search queries to Apple)")]


class PersonalizedAdsCheck(SecurityCheck):
    id = "personalized_ads"
    label = "Personalized Ads"
    category = Category.PRIVACY_PERMISSIONS

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        value = read_default(runner, "com.apple.AdLib", "allowApplePersonalizedAdvertising")
        if value == "0":
            return [self.passed("disabled")]
        return [self.info("enabled or could not determine")]


class FullAccessCheck(SecurityCheck):
    """Surfaces missing elevated access so it lowers privacy confidence."""
    id = "tcc_full_access"
    label = "Privacy Database Access"
    category = Category.PRIVACY_PERMISSIONS

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        if capabilities.has_full_access:
            return [self.passed("permission database readable")]
        return [self.inconclusive(
            Severity.MEDIUM,
            "Full Disk Access not granted; permission grants cannot be audited",
            FULL_ACCESS_REMEDIATION,
        )]
