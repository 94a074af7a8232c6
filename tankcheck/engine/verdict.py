# tankcheck/engine/verdict.py
from __future__ import annotations

from dataclasses import dataclass

from ..schemas import (
    ActionType,
    Badge,
    DescaleStatus,
    FilterStatus,
    FuelType,
    InspectionRecord,
    IssueId,
    UnitCategory,
    VentStatus,
)
from . import constants as C
from .issues import detect_issues, violations
from .metrics import DegradationMetrics


@dataclass(frozen=True)
class Verdict:
    action: ActionType
    badge: Badge
    urgent: bool
    title: str
    reason: str


def _replace(title: str, reason: str, urgent: bool) -> Verdict:
    return Verdict(
        ActionType.REPLACE,
        Badge.CRITICAL if urgent else Badge.REPLACE,
        urgent,
        title,
        reason,
    )


def _is_fragile(record: InspectionRecord, metrics: DegradationMetrics) -> bool:
    return metrics.fail_prob > C.LIMIT_FAILPROB_FRAGILE or record.calendar_age > C.LIMIT_AGE_FRAGILE


def compute_verdict(record: InspectionRecord, metrics: DegradationMetrics) -> Verdict:
    """
    Single recommendation for the unit. Tiers are evaluated top-down and the
    first matching rule wins:

    1. observed containment breach
    2. replacement triggers
    3. service zone (code violations, active faults)
    4. maintenance / pass
    """
    category = record.category
    fp = metrics.fail_prob
    age = record.calendar_age
    sediment = metrics.sediment_lbs

    # ---------- tier 1: active failure ----------
    if record.is_leaking:
        return _replace("Active Leak", "Water is escaping the unit. The vessel is breached.", True)
    if record.visual_rust:
        return _replace(
            "Visible Corrosion",
            "Rust on the vessel means the steel wall is failing from the inside.",
            True,
        )
    if record.fuel_type == FuelType.TANKLESS_GAS and record.vent_status == VentStatus.BLOCKED:
        return Verdict(
            ActionType.URGENT,
            Badge.CRITICAL,
            True,
            "Exhaust Blocked",
            "Flue is blocked. Combustion gases cannot vent safely; shut the unit down until cleared.",
        )

    # ---------- tier 2: replacement triggers ----------
    # error codes pin tankless risk at a fixed floor, so they are judged by count
    if category == UnitCategory.TANKLESS and record.error_code_count > 0:
        if record.error_code_count > C.TANKLESS_CHRONIC_ERRORS:
            return _replace(
                "Chronic Faults",
                f"{record.error_code_count} logged error codes. The control system is failing.",
                True,
            )
        return Verdict(
            ActionType.REPAIR,
            Badge.SERVICE,
            True,
            "Error Codes Logged",
            f"{record.error_code_count} error codes need diagnosis.",
        )

    if fp > C.LIMIT_FAILPROB_REPLACE or metrics.bio_age >= C.LIMIT_AGE_MAX:
        urgent = fp >= C.LIMIT_FAILPROB_URGENT
        return _replace(
            "End of Service Life",
            f"Failure risk is {fp:.0f}% at a biological age of {metrics.bio_age:.1f} years.",
            urgent,
        )

    if category != UnitCategory.TANKLESS and sediment > C.LIMIT_SEDIMENT_LOCKOUT:
        return _replace(
            "Sediment Lockout",
            f"{sediment:.1f} lbs of hardened sediment. Flushing now risks opening the tank bottom.",
            False,
        )

    if record.house_psi > C.PSI_CRITICAL and age > C.AGE_VESSEL_FATIGUE:
        return _replace(
            "Vessel Fatigue",
            f"{age:.0f} years at {record.house_psi:.0f} PSI has fatigued the tank welds.",
            True,
        )

    if metrics.risk_level >= C.RISK_HIGH and fp > C.LIMIT_FAILPROB_LIABILITY:
        return _replace(
            "Liability Hazard",
            f"A {fp:.0f}% failure risk above finished living space is not worth carrying.",
            False,
        )

    if category == UnitCategory.TANKLESS:
        if age > C.TANKLESS_SERVICE_LIFE:
            return _replace(
                "End of Service Life",
                f"Heat exchanger is {age:.0f} years old, past its {C.TANKLESS_SERVICE_LIFE}-year service life.",
                False,
            )
        if metrics.descale_status == DescaleStatus.LOCKOUT:
            return _replace(
                "Scale Lockout",
                "Heat exchanger is too scaled to descale safely.",
                False,
            )

    # ---------- tier 3: service zone ----------
    if category == UnitCategory.HYBRID:
        if record.air_filter_status == FilterStatus.CLOGGED:
            return Verdict(
                ActionType.REPAIR,
                Badge.SERVICE,
                True,
                "Air Filter Clogged",
                "The heat pump is starved of air and falling back to resistance heat.",
            )
        if not record.is_condensate_clear:
            return Verdict(
                ActionType.REPAIR,
                Badge.SERVICE,
                True,
                "Condensate Blocked",
                "Condensate line is blocked. Water damage risk.",
            )

    found = violations(detect_issues(record, metrics))
    if found:
        ids = {i.id for i in found}
        if IssueId.PRV_FAILED in ids:
            title = "Pressure Regulator Failed"
        elif IssueId.PRV_CRITICAL in ids:
            title = "Critical Pressure"
        else:
            title = "Missing Expansion Protection"
        return Verdict(
            ActionType.REPAIR,
            Badge.SERVICE,
            True,
            title,
            "Code violation: " + ", ".join(i.name for i in found) + ".",
        )

    if (
        not record.has_prv
        and C.PSI_OPTIMIZE <= record.house_psi <= C.PSI_SAFE_LIMIT
        and age < C.AGE_PRESSURE_OPTIMIZE
    ):
        return Verdict(
            ActionType.UPGRADE,
            Badge.SERVICE,
            False,
            "Pressure Optimization",
            f"{record.house_psi:.0f} PSI is legal but high. A regulator extends unit life.",
        )

    # ---------- tier 4: maintenance ----------
    if category != UnitCategory.TANKLESS:
        serviceable = C.LIMIT_SEDIMENT_FLUSH <= sediment <= C.LIMIT_SEDIMENT_LOCKOUT
        if serviceable and _is_fragile(record, metrics):
            return Verdict(
                ActionType.PASS,
                Badge.MONITOR,
                False,
                "Monitor Only",
                "Sediment is present but the tank is too fragile to flush safely.",
            )
        if serviceable:
            return Verdict(
                ActionType.MAINTAIN,
                Badge.SERVICE,
                False,
                "Flush Recommended",
                f"{sediment:.1f} lbs of sediment. A flush restores efficiency.",
            )
        if metrics.shield_life < 1 and age < C.AGE_ANODE_LIMIT:
            return Verdict(
                ActionType.MAINTAIN,
                Badge.SERVICE,
                False,
                "Anode Depleted",
                "The anode is spent. Replacing it now protects the tank lining.",
            )
    else:
        if metrics.descale_status == DescaleStatus.RUN_TO_FAILURE:
            return Verdict(
                ActionType.PASS,
                Badge.MONITOR,
                False,
                "Run to Failure",
                "Years of untreated hard water. Descaling now could expose pinholes.",
            )
        if metrics.descale_status == DescaleStatus.CRITICAL:
            return Verdict(
                ActionType.MAINTAIN,
                Badge.SERVICE,
                True,
                "Descale Critical",
                f"Scale buildup at {metrics.scale_buildup_score:.0f}%. Descale before lockout.",
            )
        if metrics.descale_status == DescaleStatus.DUE:
            return Verdict(
                ActionType.MAINTAIN,
                Badge.SERVICE,
                False,
                "Descale Due",
                "Routine descale is due for the heat exchanger.",
            )
        if not record.has_isolation_valves and age > 1:
            return Verdict(
                ActionType.UPGRADE,
                Badge.SERVICE,
                False,
                "Isolation Valves",
                "Service valves are required before the unit can be descaled.",
            )

    if category == UnitCategory.HYBRID and record.air_filter_status == FilterStatus.DIRTY:
        return Verdict(
            ActionType.MAINTAIN,
            Badge.SERVICE,
            False,
            "Air Filter Service",
            "Dirty air filter is costing efficiency.",
        )

    return Verdict(
        ActionType.PASS,
        Badge.OPTIMAL,
        False,
        "System Healthy",
        "No action needed. Re-inspect at the next annual visit.",
    )
