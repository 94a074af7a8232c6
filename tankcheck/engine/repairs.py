# tankcheck/engine/repairs.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..schemas import (
    ActionType,
    DescaleStatus,
    FilterStatus,
    FlameRodStatus,
    FuelType,
    InspectionRecord,
    RepairId,
    UnitCategory,
    VentStatus,
)
from . import constants as C
from .metrics import DegradationMetrics
from .verdict import Verdict

TANK = UnitCategory.TANK
TANKLESS = UnitCategory.TANKLESS
HYBRID = UnitCategory.HYBRID
# regulators and expansion tanks belong to the plumbing, not the appliance
HOUSE = (TANK, TANKLESS, HYBRID)


@dataclass(frozen=True)
class RepairImpact:
    health_score_boost: float
    aging_factor_reduction: float  # percent
    failure_prob_reduction: float  # percent


@dataclass(frozen=True)
class RepairOption:
    id: RepairId
    name: str
    description: str
    unit_types: Tuple[UnitCategory, ...]
    cost_min: int
    cost_max: int
    impact: RepairImpact
    is_full_replacement: bool = False


def _opt(
    repair_id: RepairId,
    name: str,
    description: str,
    unit_types: Tuple[UnitCategory, ...],
    cost: Tuple[int, int],
    impact: Tuple[float, float, float],
    full: bool = False,
) -> RepairOption:
    return RepairOption(
        id=repair_id,
        name=name,
        description=description,
        unit_types=unit_types,
        cost_min=cost[0],
        cost_max=cost[1],
        impact=RepairImpact(*impact),
        is_full_replacement=full,
    )


CATALOG: Dict[RepairId, RepairOption] = {
    o.id: o
    for o in [
        # ---------- tank ----------
        _opt(RepairId.REPLACE_TANK, "Replace Water Heater",
             "Full tank system replacement with code-compliant installation",
             (TANK,), (2800, 4500), (100, 100, 100), full=True),
        _opt(RepairId.PRV, "Install PRV",
             "Pressure reducing valve to control inlet pressure",
             HOUSE, (350, 550), (20, 25, 30)),
        _opt(RepairId.PRV_EXP_PACKAGE, "Install PRV + Expansion Tank",
             "Installed together: the PRV closes the loop and the expansion tank absorbs thermal spikes",
             HOUSE, (600, 950), (35, 45, 55)),
        _opt(RepairId.REPLACE_PRV_EXP_PACKAGE, "Replace PRV + Install Expansion Tank",
             "Replace the failed regulator and add the expansion tank the closed loop requires",
             HOUSE, (600, 950), (35, 45, 55)),
        _opt(RepairId.EXP_TANK, "Install Expansion Tank",
             "Absorbs thermal expansion in closed loop system",
             HOUSE, (250, 400), (15, 20, 25)),
        _opt(RepairId.REPLACE_PRV, "Replace Failed PRV",
             "Replace malfunctioning pressure reducing valve",
             HOUSE, (350, 550), (22, 28, 35)),
        _opt(RepairId.REPLACE_EXP, "Replace Expansion Tank",
             "Replace failed or waterlogged expansion tank",
             HOUSE, (250, 400), (18, 22, 28)),
        _opt(RepairId.FLUSH, "Flush Sediment",
             "Professional tank flush & drain",
             (TANK, HYBRID), (150, 250), (15, 25, 20)),
        _opt(RepairId.ANODE, "Replace Anode Rod",
             "New sacrificial anode installation",
             (TANK, HYBRID), (200, 350), (18, 35, 25)),
        # ---------- tankless ----------
        _opt(RepairId.REPLACE_TANKLESS, "Replace Tankless Unit",
             "Full tankless system replacement with code-compliant installation",
             (TANKLESS,), (3500, 5500), (100, 100, 100), full=True),
        _opt(RepairId.DESCALE, "Descale Heat Exchanger",
             "Professional vinegar flush to remove mineral scale buildup",
             (TANKLESS,), (200, 350), (20, 30, 25)),
        _opt(RepairId.ISOLATION_VALVES, "Install Isolation Valves",
             "Service valves to enable future descaling maintenance",
             (TANKLESS,), (400, 650), (10, 15, 20)),
        _opt(RepairId.INLET_FILTER, "Clean/Replace Inlet Filter",
             "Remove debris from water inlet screen to restore flow",
             (TANKLESS,), (75, 150), (8, 10, 12)),
        _opt(RepairId.IGNITER_SERVICE, "Service Igniter/Flame Rod",
             "Clean or replace ignition components (gas units)",
             (TANKLESS,), (150, 300), (12, 15, 18)),
        _opt(RepairId.FLOW_SENSOR, "Replace Flow Sensor",
             "Restore accurate flow detection and proper firing",
             (TANKLESS,), (200, 400), (15, 20, 22)),
        _opt(RepairId.VENT_CLEANING, "Vent System Cleaning",
             "Clear blocked or restricted exhaust venting",
             (TANKLESS,), (150, 300), (10, 12, 15)),
        _opt(RepairId.RECIRCULATION_SERVICE, "Recirculation System Service",
             "Optimize recirc timing to reduce excessive cycling",
             (TANKLESS,), (200, 400), (8, 20, 15)),
        _opt(RepairId.ERROR_DIAGNOSTICS, "Error Code Diagnostics",
             "Read the fault history and repair the component behind the logged codes",
             (TANKLESS,), (150, 350), (10, 10, 15)),
        # ---------- hybrid ----------
        _opt(RepairId.REPLACE_HYBRID, "Replace Hybrid Unit",
             "Full heat pump water heater replacement",
             (HYBRID,), (3800, 5800), (100, 100, 100), full=True),
        _opt(RepairId.AIR_FILTER_SERVICE, "Clean/Replace Air Filter",
             "Restore heat pump efficiency with clean airflow",
             (HYBRID,), (50, 100), (10, 15, 10)),
        _opt(RepairId.CONDENSATE_CLEAR, "Clear Condensate Drain",
             "Restore proper condensate drainage",
             (HYBRID,), (100, 200), (8, 10, 12)),
        _opt(RepairId.COMPRESSOR_SERVICE, "Compressor Service",
             "Diagnose and service heat pump compressor",
             (HYBRID,), (300, 600), (20, 25, 30)),
        _opt(RepairId.REFRIGERANT_CHECK, "Refrigerant Check & Recharge",
             "Verify refrigerant levels and recharge if needed",
             (HYBRID,), (200, 400), (15, 20, 18)),
    ]
}

REPLACEMENT_FOR = {
    TANK: RepairId.REPLACE_TANK,
    TANKLESS: RepairId.REPLACE_TANKLESS,
    HYBRID: RepairId.REPLACE_HYBRID,
}

COMPRESSOR_SERVICE_BELOW = 70
REFRIGERANT_CHECK_BELOW = 90


def get_repair(repair_id: RepairId | str) -> RepairOption:
    return CATALOG[RepairId(repair_id)]


def repairs_for_category(category: UnitCategory) -> List[RepairOption]:
    return [o for o in CATALOG.values() if category in o.unit_types]


# -------------------------
# PRESSURE REMEDIES
# -------------------------
def _new_regulator(record: InspectionRecord) -> RepairOption:
    """
    The only way to obtain a regulator for a house without one. A bare PRV
    comes back only when a working expansion tank already absorbs the
    closed-loop expansion and pressure is inside code; otherwise the
    regulator ships with its expansion tank.
    """
    if record.has_functional_exp_tank and record.house_psi <= C.PSI_SAFE_LIMIT:
        return CATALOG[RepairId.PRV]
    return CATALOG[RepairId.PRV_EXP_PACKAGE]


def _failed_regulator(record: InspectionRecord) -> RepairOption:
    if record.has_functional_exp_tank:
        return CATALOG[RepairId.REPLACE_PRV]
    return CATALOG[RepairId.REPLACE_PRV_EXP_PACKAGE]


def _pressure_remedies(record: InspectionRecord) -> List[RepairOption]:
    options: List[RepairOption] = []
    psi = record.house_psi

    if not record.has_prv and psi >= C.PSI_PRV_OFFER:
        options.append(_new_regulator(record))
    if record.has_prv and psi > C.PSI_FAILED_PRV:
        options.append(_failed_regulator(record))

    # a bundled expansion tank already covers these
    covered = any(
        o.id in (RepairId.PRV_EXP_PACKAGE, RepairId.REPLACE_PRV_EXP_PACKAGE) for o in options
    )
    if not covered:
        closed = record.is_closed_system or record.has_circ_pump
        if closed and not record.has_exp_tank:
            options.append(CATALOG[RepairId.EXP_TANK])
        elif record.has_exp_tank and record.exp_tank_waterlogged:
            options.append(CATALOG[RepairId.REPLACE_EXP])
    return options


# -------------------------
# TANK MAINTENANCE GATES
# -------------------------
def _tank_maintenance(record: InspectionRecord, metrics: DegradationMetrics) -> List[RepairOption]:
    options: List[RepairOption] = []

    # ghost-flush / killer-flush gates
    fragile = (
        metrics.fail_prob > C.LIMIT_FAILPROB_FRAGILE
        or record.calendar_age > C.LIMIT_AGE_FRAGILE
    )
    serviceable = C.LIMIT_SEDIMENT_FLUSH <= metrics.sediment_lbs <= C.LIMIT_SEDIMENT_LOCKOUT
    if serviceable and not fragile:
        options.append(CATALOG[RepairId.FLUSH])

    if metrics.shield_life < 1 and record.calendar_age < C.AGE_ANODE_LIMIT:
        options.append(CATALOG[RepairId.ANODE])
    return options


# -------------------------
# PER CATEGORY
# -------------------------
def _tank_repairs(record: InspectionRecord, metrics: DegradationMetrics) -> List[RepairOption]:
    return _pressure_remedies(record) + _tank_maintenance(record, metrics)


def _tankless_repairs(record: InspectionRecord, metrics: DegradationMetrics) -> List[RepairOption]:
    options: List[RepairOption] = []
    score = metrics.scale_buildup_score
    flow = record.flow_degradation

    if record.error_code_count > 0:
        options.append(CATALOG[RepairId.ERROR_DIAGNOSTICS])

    # valves before any water-side service
    if not record.has_isolation_valves:
        options.append(CATALOG[RepairId.ISOLATION_VALVES])
    else:
        descale_safe = metrics.descale_status not in (
            DescaleStatus.LOCKOUT,
            DescaleStatus.RUN_TO_FAILURE,
        )
        needs_descale = (
            metrics.descale_status in (DescaleStatus.DUE, DescaleStatus.CRITICAL)
            or score > C.SCALE_DUE
        )
        if descale_safe and needs_descale:
            options.append(CATALOG[RepairId.DESCALE])

    if record.inlet_filter_status in (FilterStatus.DIRTY, FilterStatus.CLOGGED) or flow > 15:
        options.append(CATALOG[RepairId.INLET_FILTER])

    is_gas = record.fuel_type == FuelType.TANKLESS_GAS
    if is_gas and (
        record.igniter_health < 70
        or record.flame_rod_status in (FlameRodStatus.WORN, FlameRodStatus.FAILING)
    ):
        options.append(CATALOG[RepairId.IGNITER_SERVICE])

    if is_gas and record.vent_status in (VentStatus.RESTRICTED, VentStatus.BLOCKED):
        options.append(CATALOG[RepairId.VENT_CLEANING])

    # degradation not explained by the filter or by scale
    if flow > 25 and record.inlet_filter_status == FilterStatus.CLEAN and score < 20:
        options.append(CATALOG[RepairId.FLOW_SENSOR])

    if record.has_circ_pump and record.calendar_age > 3:
        options.append(CATALOG[RepairId.RECIRCULATION_SERVICE])

    return options + _pressure_remedies(record)


def _hybrid_repairs(record: InspectionRecord, metrics: DegradationMetrics) -> List[RepairOption]:
    options: List[RepairOption] = []

    if record.air_filter_status in (FilterStatus.DIRTY, FilterStatus.CLOGGED):
        options.append(CATALOG[RepairId.AIR_FILTER_SERVICE])
    if not record.is_condensate_clear:
        options.append(CATALOG[RepairId.CONDENSATE_CLEAR])

    if record.compressor_health < COMPRESSOR_SERVICE_BELOW:
        options.append(CATALOG[RepairId.COMPRESSOR_SERVICE])
    elif record.compressor_health < REFRIGERANT_CHECK_BELOW:
        options.append(CATALOG[RepairId.REFRIGERANT_CHECK])

    return options + _tank_repairs(record, metrics)


def eligible_repairs(
    record: InspectionRecord,
    metrics: DegradationMetrics,
    verdict: Verdict,
) -> List[RepairOption]:
    """
    Safe, ordered remediation options for the unit.

    A REPLACE verdict yields the single full-replacement option; an URGENT
    verdict yields only the service that clears the hazard.
    """
    category = record.category

    if verdict.action == ActionType.REPLACE:
        return [CATALOG[REPLACEMENT_FOR[category]]]
    if verdict.action == ActionType.URGENT:
        return [CATALOG[RepairId.VENT_CLEANING]]

    if category == TANKLESS:
        return _tankless_repairs(record, metrics)
    if category == HYBRID:
        return _hybrid_repairs(record, metrics)
    return _tank_repairs(record, metrics)
