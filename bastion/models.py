from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    INFO = "info"
    INCONCLUSIVE = "inconclusive"

    @property
    def symbol(self) -> str:
        return _STATUS_SYMBOLS[self]

    @property
    def deducts(self) -> bool:
        """Only fail and warn findings cost points."""
        return self in (CheckStatus.FAIL, CheckStatus.WARN)


_STATUS_SYMBOLS = {
    CheckStatus.PASS: "PASS",
    CheckStatus.FAIL: "FAIL",
    CheckStatus.WARN: "WARN",
    CheckStatus.INFO: "INFO",
    CheckStatus.INCONCLUSIVE: "UNKN",
}


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def points_deducted(self) -> float:
        return SEVERITY_DEDUCTIONS[self]


# Points removed from a category's 100 for each fail/warn finding
SEVERITY_DEDUCTIONS: dict[Severity, float] = {
    Severity.CRITICAL: 15.0,
    Severity.HIGH: 10.0,
    Severity.MEDIUM: 5.0,
    Severity.LOW: 2.0,
    Severity.INFO: 0.0,
}


class Category(str, Enum):
    SYSTEM_PROTECTION = "systemProtection"
    FIREWALL_NETWORK = "firewallNetwork"
    SHARING_SERVICES = "sharingServices"
    PERSISTENCE = "persistence"
    PRIVACY_PERMISSIONS = "privacyPermissions"
    FILE_HYGIENE = "fileHygiene"

    @property
    def weight(self) -> float:
        return CATEGORY_WEIGHTS[self]

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self]


# Must sum to 1.0
CATEGORY_WEIGHTS: dict[Category, float] = {
    Category.SYSTEM_PROTECTION: 0.30,
    Category.FIREWALL_NETWORK: 0.20,
    Category.SHARING_SERVICES: 0.15,
    Category.PERSISTENCE: 0.15,
    Category.PRIVACY_PERMISSIONS: 0.10,
    Category.FILE_HYGIENE: 0.10,
}

CATEGORY_DISPLAY_NAMES: dict[Category, str] = {
    Category.SYSTEM_PROTECTION: "System Protection",
    Category.FIREWALL_NETWORK: "Firewall & Network",
    Category.SHARING_SERVICES: "Sharing Services",
    Category.PERSISTENCE: "Persistence Integrity",
    Category.PRIVACY_PERMISSIONS: "Privacy & Permissions",
    Category.FILE_HYGIENE: "File Hygiene",
}


@dataclass(frozen=True)
class Finding:
    """One normalized result produced by a single check."""
    id: str
    check: str
    category: Category
    status: CheckStatus
    severity: Severity
    detail: str
    remediation: str | None = None


@dataclass(frozen=True)
class Capabilities:
    """Read-only facts about the host, gathered once per engine run."""
    has_full_access: bool
    architecture: str
    os_version: str
    is_emulated: bool


@dataclass(frozen=True)
class RiskScore:
    """Weighted composite score (0-100, higher is more secure) plus confidence.

    confidence is the weighted share of conclusive findings; a low value means
    the composite may not reflect the actual posture.
    """
    composite: float
    category_scores: dict[Category, float] = field(default_factory=dict)
    confidence: float = 0.0
    inconclusive_counts: dict[Category, int] = field(default_factory=dict)

    @property
    def grade(self) -> str:
        if self.composite >= 90:
            return "A"
        if self.composite >= 80:
            return "B"
        if self.composite >= 70:
            return "C"
        if self.composite >= 60:
            return "D"
        return "F"

    @property
    def confidence_label(self) -> str:
        if self.confidence >= 0.9:
            return "High"
        if self.confidence >= 0.7:
            return "Medium"
        if self.confidence >= 0.5:
            return "Low"
        return "Very Low"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Report:
    version: str
    hostname: str
    findings: tuple[Finding, ...]
    risk_score: RiskScore
    capabilities: Capabilities
    timestamp: str = field(default_factory=utc_timestamp)

    def _count(self, status: CheckStatus) -> int:
        return sum(1 for f in self.findings if f.status == status)

    @property
    def pass_count(self) -> int:
        return self._count(CheckStatus.PASS)

    @property
    def fail_count(self) -> int:
        return self._count(CheckStatus.FAIL)

    @property
    def warn_count(self) -> int:
        return self._count(CheckStatus.WARN)

    @property
    def info_count(self) -> int:
        return self._count(CheckStatus.INFO)

    @property
    def inconclusive_count(self) -> int:
        return self._count(CheckStatus.INCONCLUSIVE)
