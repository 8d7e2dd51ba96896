"""Weighted composite risk scoring with confidence degradation.

Each category starts at 100 and loses ``severity.points_deducted`` for every
fail/warn finding in it. The composite is the weight-sum of category scores,
so one broken category can never cost more than its weight.

Confidence reuses the same weights: an inconclusive finding in System
Protection (30%) erodes trust in the composite three times as much as one in
File Hygiene (10%). Categories without any finding are left out of the
confidence average rather than counted against it.
"""
from __future__ import annotations

import logging
from typing import Iterable

from bastion.models import Category, CheckStatus, Finding, RiskScore

logger = logging.getLogger(__name__)

MAX_SCORE = 100.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def compute_risk_score(findings: Iterable[Finding]) -> RiskScore:
    """Score an ordered finding set. Pure; safe to call on any input."""
    deductions = {cat: 0.0 for cat in Category}
    totals = {cat: 0 for cat in Category}
    inconclusive = {cat: 0 for cat in Category}

    for finding in findings:
        cat = finding.category
        totals[cat] += 1
        if finding.status == CheckStatus.INCONCLUSIVE:
            inconclusive[cat] += 1
        elif finding.status.deducts:
            deductions[cat] += finding.severity.points_deducted

    scores: dict[Category, float] = {}
    composite = 0.0
    for cat in Category:
        score = _clamp(MAX_SCORE - deductions[cat], 0.0, MAX_SCORE)
        scores[cat] = score
        composite += score * cat.weight

    weighted_confidence = 0.0
    active_weight = 0.0
    for cat in Category:
        total = totals[cat]
        if total == 0:
            continue
        weighted_confidence += (total - inconclusive[cat]) / total * cat.weight
        active_weight += cat.weight

    confidence = weighted_confidence / active_weight if active_weight > 0 else 0.0

    risk = RiskScore(
        composite=_clamp(composite, 0.0, MAX_SCORE),
        category_scores=scores,
        confidence=_clamp(confidence, 0.0, 1.0),
        inconclusive_counts=inconclusive,
    )
    logger.debug(
        "compute_risk_score: composite=%.1f confidence=%.2f",
        risk.composite, risk.confidence,
    )
    return risk
