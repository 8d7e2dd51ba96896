"""JSON encoding of a Report (camelCase keys) and the matching decoder."""
from __future__ import annotations

import json
from typing import Any

from bastion.models import (
    Capabilities,
    Category,
    CheckStatus,
    Finding,
    Report,
    RiskScore,
    Severity,
)


def finding_to_dict(finding: Finding) -> dict[str, Any]:
    return {
        "id": finding.id,
        "check": finding.check,
        "category": finding.category.value,
        "status": finding.status.value,
        "severity": finding.severity.value,
        "detail": finding.detail,
        "remediation": finding.remediation,
    }


def report_to_dict(report: Report) -> dict[str, Any]:
    score = report.risk_score
    caps = report.capabilities
    return {
        "version": report.version,
        "timestamp": report.timestamp,
        "hostname": report.hostname,
        "findings": [finding_to_dict(f) for f in report.findings],
        "riskScore": {
            "composite": score.composite,
            "categoryScores": {c.value: v for c, v in score.category_scores.items()},
            "confidence": score.confidence,
            "inconclusiveCounts": {c.value: n for c, n in score.inconclusive_counts.items()},
        },
        "capabilities": {
            "hasFullAccess": caps.has_full_access,
            "architecture": caps.architecture,
            "osVersion": caps.os_version,
            "isEmulated": caps.is_emulated,
        },
    }


def report_to_json(report: Report) -> str:
    return json.dumps(report_to_dict(report), indent=2, sort_keys=True)


# ── Decoding ────────────────────────────────────────────────────────────

def finding_from_dict(data: dict[str, Any]) -> Finding:
    return Finding(
        id=data["id"],
        check=data["check"],
        category=Category(data["category"]),
        status=CheckStatus(data["status"]),
        severity=Severity(data["severity"]),
        detail=data["detail"],
        remediation=data.get("remediation"),
    )


def report_from_dict(data: dict[str, Any]) -> Report:
    """Inverse of report_to_dict. Raises KeyError/ValueError on malformed input."""
    score = data["riskScore"]
    caps = data["capabilities"]
    return Report(
        version=data["version"],
        timestamp=data["timestamp"],
        hostname=data["hostname"],
        findings=tuple(finding_from_dict(f) for f in data["findings"]),
        risk_score=RiskScore(
            composite=float(score["composite"]),
            category_scores={
                Category(k): float(v) for k, v in score.get("categoryScores", {}).items()
            },
            confidence=float(score["confidence"]),
            inconclusive_counts={
                Category(k): int(v) for k, v in score.get("inconclusiveCounts", {}).items()
            },
        ),
        capabilities=Capabilities(
            has_full_access=bool(caps["hasFullAccess"]),
            architecture=caps["architecture"],
            os_version=caps["osVersion"],
            is_emulated=bool(caps["isEmulated"]),
        ),
    )


def report_from_json(text: str) -> Report:
    return report_from_dict(json.loads(text))
