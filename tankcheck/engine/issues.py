# tankcheck/engine/issues.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from ..schemas import InspectionRecord, IssueCategory, IssueId, QualityTier
from . import constants as C
from .metrics import DegradationMetrics

MIN_TIER_FOR_CATEGORY = {
    IssueCategory.VIOLATION: QualityTier.BUILDER,
    IssueCategory.INFRASTRUCTURE: QualityTier.STANDARD,
    IssueCategory.RECOMMENDATION: QualityTier.PROFESSIONAL,
}

HARDNESS_SOFTENER_SERVICE = 10.0
HARDNESS_SOFTENER_FAILED = 15.0


@dataclass(frozen=True)
class InfrastructureIssue:
    id: IssueId
    category: IssueCategory
    name: str
    remediation: str
    cost_min: int
    cost_max: int
    description: str

    @property
    def min_tier(self) -> QualityTier:
        return MIN_TIER_FOR_CATEGORY[self.category]


def _issue(
    issue_id: IssueId,
    category: IssueCategory,
    name: str,
    remediation: str,
    cost: Tuple[int, int],
    description: str,
) -> InfrastructureIssue:
    return InfrastructureIssue(
        id=issue_id,
        category=category,
        name=name,
        remediation=remediation,
        cost_min=cost[0],
        cost_max=cost[1],
        description=description,
    )


def detect_issues(record: InspectionRecord, metrics: DegradationMetrics) -> List[InfrastructureIssue]:
    """
    Evaluate every infrastructure predicate independently and return the
    matches in a fixed order (violations first, recommendations last).
    """
    psi = record.house_psi
    hardness = record.hardness_gpg
    # a circulation loop traps expansion just like a check valve does
    closed = record.is_closed_system or record.has_circ_pump

    issues: List[InfrastructureIssue] = []

    # ---------- violations ----------
    if closed and not record.has_exp_tank:
        issues.append(_issue(
            IssueId.EXP_TANK_REQUIRED,
            IssueCategory.VIOLATION,
            "Thermal Expansion Tank",
            "Install expansion tank",
            (250, 400),
            "Closed plumbing with no room for thermal expansion. Required by code.",
        ))

    if record.has_prv and psi > C.PSI_SAFE_LIMIT:
        issues.append(_issue(
            IssueId.PRV_FAILED,
            IssueCategory.VIOLATION,
            "Pressure Regulator (Failed)",
            "Replace PRV",
            (350, 550),
            f"Existing regulator is not holding pressure ({psi:.0f} PSI).",
        ))

    if not record.has_prv and psi > C.PSI_SAFE_LIMIT:
        issues.append(_issue(
            IssueId.PRV_CRITICAL,
            IssueCategory.VIOLATION,
            "Pressure Regulator (Critical)",
            "Install PRV",
            (350, 550),
            f"House pressure of {psi:.0f} PSI exceeds the {C.PSI_SAFE_LIMIT} PSI code limit.",
        ))

    # ---------- infrastructure ----------
    if not record.has_prv and C.PSI_PRV_OFFER <= psi <= C.PSI_SAFE_LIMIT:
        issues.append(_issue(
            IssueId.PRV_RECOMMENDED,
            IssueCategory.INFRASTRUCTURE,
            "Pressure Regulator",
            "Install PRV",
            (350, 550),
            f"House pressure of {psi:.0f} PSI is within code but ages the unit quickly.",
        ))

    if record.has_softener and HARDNESS_SOFTENER_SERVICE < hardness <= HARDNESS_SOFTENER_FAILED:
        issues.append(_issue(
            IssueId.SOFTENER_SERVICE,
            IssueCategory.INFRASTRUCTURE,
            "Softener Service",
            "Service water softener",
            (200, 350),
            f"Softener is installed but water still tests at {hardness:.0f} GPG.",
        ))

    if record.is_closed_system and record.has_exp_tank and record.exp_tank_waterlogged:
        issues.append(_issue(
            IssueId.EXP_TANK_REPLACE,
            IssueCategory.INFRASTRUCTURE,
            "Expansion Tank Replacement",
            "Replace expansion tank",
            (250, 400),
            "Expansion tank bladder has failed; the system is effectively unprotected.",
        ))

    # ---------- recommendations ----------
    if record.has_softener and hardness > HARDNESS_SOFTENER_FAILED:
        issues.append(_issue(
            IssueId.SOFTENER_REPLACE,
            IssueCategory.RECOMMENDATION,
            "Softener Replacement",
            "Replace water softener",
            (2200, 3000),
            f"Softener has failed; water tests at {hardness:.0f} GPG.",
        ))

    if not record.has_prv and C.PSI_LONGEVITY <= psi < C.PSI_PRV_OFFER:
        issues.append(_issue(
            IssueId.PRV_LONGEVITY,
            IssueCategory.RECOMMENDATION,
            "Pressure Regulator (Longevity)",
            "Install PRV",
            (350, 550),
            "Lowering house pressure extends the life of every fixture.",
        ))

    if not record.has_softener and hardness > HARDNESS_SOFTENER_SERVICE:
        issues.append(_issue(
            IssueId.SOFTENER_NEW,
            IssueCategory.RECOMMENDATION,
            "Water Softener",
            "Install water softener",
            (2400, 3200),
            f"Hard water ({hardness:.0f} GPG) accelerates sediment and scale.",
        ))

    return issues


def issues_for_tier(issues: Iterable[InfrastructureIssue], tier: QualityTier) -> List[InfrastructureIssue]:
    """Issues bundled into a quote at `tier`: everything whose minimum tier is at or below it."""
    rank = C.tier_rank(tier)
    return [i for i in issues if C.tier_rank(i.min_tier) <= rank]


def issue_costs(issues: Iterable[InfrastructureIssue]) -> Tuple[int, int]:
    low = 0
    high = 0
    for i in issues:
        low += i.cost_min
        high += i.cost_max
    return low, high


def violations(issues: Iterable[InfrastructureIssue]) -> List[InfrastructureIssue]:
    return [i for i in issues if i.category == IssueCategory.VIOLATION]
