# tankcheck/engine/metrics.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..schemas import (
    DescaleStatus,
    FilterStatus,
    FlushStatus,
    InspectionRecord,
    LocationType,
    ServiceEventType,
    TempSetting,
    UnitCategory,
    VentStatus,
)
from . import constants as C
from .history import event_ages, flush_credit_weight, years_since_last


@dataclass(frozen=True)
class StressFactors:
    pressure: float
    thermal: float
    circulation: float
    loop: float
    total: float

    @property
    def mechanical(self) -> float:
        return self.pressure * self.loop

    @property
    def chemical(self) -> float:
        return self.thermal * self.circulation


@dataclass(frozen=True)
class DegradationMetrics:
    bio_age: float
    fail_prob: float
    sediment_lbs: float
    shield_life: Optional[float]  # None: no anode (tankless)
    stress: StressFactors
    risk_level: int
    health_score: int

    # sediment projection
    sediment_rate: float
    flush_status: FlushStatus
    months_to_lockout: Optional[int]

    # aging speedometer
    aging_rate: float
    optimized_rate: float
    years_left_current: float
    years_left_optimized: float
    life_extension: float
    primary_stressor: str

    # unit specific
    scale_buildup_score: float = 0.0
    descale_status: DescaleStatus = DescaleStatus.OPTIMAL
    hybrid_efficiency: Optional[float] = None


# -------------------------
# STRESS FACTORS
# -------------------------
def pressure_stress(psi: float) -> float:
    """Buffer Zone Model: no penalty up to the safe limit, quadratic above it."""
    if psi <= C.PSI_SAFE_LIMIT:
        return 1.0
    return 1.0 + ((psi - C.PSI_SAFE_LIMIT) / C.PSI_SCALAR) ** C.PSI_QUADRATIC_EXP


def thermal_stress(setting: TempSetting) -> float:
    return C.THERMAL_STRESS[setting]


def circulation_stress(record: InspectionRecord) -> float:
    if record.has_circ_pump and not record.has_demand_control:
        return C.CIRC_STRESS
    return 1.0


def loop_stress(record: InspectionRecord) -> float:
    if record.category == UnitCategory.TANKLESS:
        return 1.0
    if record.is_closed_system and not record.has_functional_exp_tank:
        return C.LOOP_STRESS
    return 1.0


def stress_factors(record: InspectionRecord) -> StressFactors:
    pressure = pressure_stress(record.house_psi)
    thermal = thermal_stress(record.temp_setting)
    circ = circulation_stress(record)
    loop = loop_stress(record)
    return StressFactors(
        pressure=pressure,
        thermal=thermal,
        circulation=circ,
        loop=loop,
        total=pressure * thermal * circ * loop,
    )


# -------------------------
# RELIABILITY
# -------------------------
def weibull_fail_prob(bio_age: float, eta: float, beta: float) -> float:
    """Cumulative Weibull failure probability (%) at the given biological age."""
    t = max(0.0, bio_age)
    prob = (1.0 - math.exp(-((t / eta) ** beta))) * 100.0
    return min(prob, C.STATISTICAL_CAP)


def fail_prob_to_health(fail_prob: float) -> float:
    return 100.0 * math.exp(-C.HEALTH_DECAY_K * fail_prob)


def location_risk(location: LocationType, is_finished: bool) -> int:
    unfinished, finished = C.LOCATION_RISK[location]
    return finished if is_finished else unfinished


# -------------------------
# SEDIMENT
# -------------------------
def sediment_rate(record: InspectionRecord) -> float:
    return record.hardness_gpg * C.SEDIMENT_FACTOR[record.fuel_type]


def sediment_load(record: InspectionRecord) -> float:
    """
    Accumulate sediment chronologically since install. Each recorded flush
    removes a recency-weighted share of what had built up by then; deposits
    that had already hardened past lockout barely move.
    """
    rate = sediment_rate(record)
    if rate <= 0:
        return 0.0

    age = record.calendar_age
    flushes = event_ages(
        record.service_history, ServiceEventType.FLUSH, record.inspected_on, max_years=age
    )

    lbs = 0.0
    t_prev = 0.0
    for years_ago in flushes:
        t_flush = age - years_ago
        lbs += (t_flush - t_prev) * rate
        efficiency = (
            C.FLUSH_EFFICIENCY_HARDITE if lbs > C.LIMIT_SEDIMENT_LOCKOUT else C.FLUSH_EFFICIENCY
        )
        lbs -= lbs * efficiency * flush_credit_weight(years_ago)
        t_prev = t_flush
    lbs += (age - t_prev) * rate
    return lbs


def _flush_status(record: InspectionRecord, lbs: float) -> FlushStatus:
    if lbs > C.LIMIT_SEDIMENT_LOCKOUT:
        return FlushStatus.LOCKOUT
    if lbs >= C.LIMIT_SEDIMENT_FLUSH:
        return FlushStatus.DUE
    last = years_since_last(
        record.service_history, ServiceEventType.FLUSH, record.inspected_on, record.calendar_age
    )
    overdue = last >= 1.0 if last is not None else record.calendar_age >= 1.0
    if overdue and lbs > 0:
        return FlushStatus.DUE
    return FlushStatus.OPTIMAL


def _months_to(limit: float, current: float, rate_per_year: float) -> Optional[int]:
    if rate_per_year <= 0 or current >= limit:
        return None
    return math.ceil((limit - current) / rate_per_year * 12)


# -------------------------
# ANODE (SHIELD)
# -------------------------
def anode_burn_rate(record: InspectionRecord) -> float:
    rate = 1.0
    if record.has_softener:
        rate += C.ANODE_BURN_SOFTENER
    if record.has_circ_pump and not record.has_demand_control:
        rate += C.ANODE_BURN_CIRC
    return rate


def anode_duration(record: InspectionRecord) -> float:
    base = record.warranty_years if record.warranty_years > 0 else C.DEFAULT_ANODE_YEARS
    return base / anode_burn_rate(record)


def anode_segments(record: InspectionRecord) -> List[float]:
    """Lengths (years) of each anode's service period, oldest first."""
    age = record.calendar_age
    replacements = event_ages(
        record.service_history,
        ServiceEventType.ANODE_REPLACEMENT,
        record.inspected_on,
        max_years=age,
    )
    segments = []
    t_prev = 0.0
    for years_ago in replacements:
        t_swap = age - years_ago
        segments.append(t_swap - t_prev)
        t_prev = t_swap
    segments.append(age - t_prev)
    return segments


def _tank_bio_age(record: InspectionRecord, stress: StressFactors, duration: float) -> float:
    protected_rate = min(
        C.MAX_STRESS_CAP,
        stress.mechanical * (1.0 + C.SHIELDED_CORROSION_SHARE * (stress.chemical - 1.0)),
    )
    naked_rate = min(C.MAX_STRESS_CAP, stress.total)

    bio = 0.0
    for length in anode_segments(record):
        protected = min(length, duration)
        naked = max(0.0, length - duration)
        bio += protected * protected_rate + naked * naked_rate
    return min(bio, C.LIMIT_AGE_MAX)


# -------------------------
# TANKLESS SCALE
# -------------------------
def _descale_state(record: InspectionRecord) -> Tuple[float, DescaleStatus]:
    last = years_since_last(
        record.service_history, ServiceEventType.DESCALE, record.inspected_on, record.calendar_age
    )
    never_descaled = last is None
    years_since = record.calendar_age if last is None else last

    if record.scale_buildup is not None:
        score = record.scale_buildup
    else:
        score = min(100.0, record.hardness_gpg * years_since * C.SCALE_RATE)

    is_hard = record.hardness_gpg > C.HARD_WATER_GPG
    if is_hard and never_descaled and record.calendar_age > C.TANKLESS_RUN_TO_FAILURE_AGE:
        # structural scale is holding pinholes shut; flushing now exposes them
        status = DescaleStatus.RUN_TO_FAILURE
    elif is_hard and never_descaled and record.calendar_age > C.TANKLESS_DESCALE_DUE_AGE:
        status = DescaleStatus.DUE
    elif score > C.SCALE_LOCKOUT:
        status = DescaleStatus.LOCKOUT
    elif score > C.SCALE_CRITICAL:
        status = DescaleStatus.CRITICAL
    elif score > C.SCALE_DUE:
        status = DescaleStatus.DUE
    else:
        status = DescaleStatus.OPTIMAL
    return score, status


_DESCALE_FLOOR = {
    DescaleStatus.LOCKOUT: C.TANKLESS_FAILPROB_FLOOR["lockout"],
    DescaleStatus.RUN_TO_FAILURE: C.TANKLESS_FAILPROB_FLOOR["run_to_failure"],
    DescaleStatus.CRITICAL: C.TANKLESS_FAILPROB_FLOOR["critical"],
    DescaleStatus.DUE: C.TANKLESS_FAILPROB_FLOOR["due"],
    DescaleStatus.OPTIMAL: 0.0,
}

_DESCALE_TO_FLUSH = {
    DescaleStatus.OPTIMAL: FlushStatus.OPTIMAL,
    DescaleStatus.DUE: FlushStatus.DUE,
    DescaleStatus.CRITICAL: FlushStatus.DUE,
    DescaleStatus.LOCKOUT: FlushStatus.LOCKOUT,
    DescaleStatus.RUN_TO_FAILURE: FlushStatus.LOCKOUT,
}


# -------------------------
# HYBRID
# -------------------------
def hybrid_efficiency(record: InspectionRecord) -> float:
    efficiency = 100.0
    if record.air_filter_status == FilterStatus.DIRTY:
        efficiency -= 15
    elif record.air_filter_status == FilterStatus.CLOGGED:
        efficiency -= 40
    efficiency *= record.compressor_health / 100.0
    if not record.is_condensate_clear:
        efficiency -= 5
    return max(0.0, min(100.0, efficiency))


# -------------------------
# AGING SPEEDOMETER
# -------------------------
def _primary_stressor(stress: StressFactors) -> str:
    candidates = [
        ("High Pressure", stress.pressure),
        ("High Temperature", stress.thermal / C.THERMAL_STRESS[TempSetting.NORMAL]),
        ("Circulation Pump", stress.circulation),
        ("Thermal Expansion", stress.loop),
    ]
    name, value = max(candidates, key=lambda c: c[1])
    return name if value > 1.0 else "Normal Wear"


# -------------------------
# ENTRY POINT
# -------------------------
def compute_metrics(record: InspectionRecord) -> DegradationMetrics:
    stress = stress_factors(record)
    category = record.category
    age = record.calendar_age

    scale_score = 0.0
    descale = DescaleStatus.OPTIMAL
    efficiency: Optional[float] = None

    if category == UnitCategory.TANKLESS:
        bio_age = min(C.LIMIT_AGE_MAX, age * min(C.MAX_STRESS_CAP, stress.total))
        params = C.WEIBULL["tankless"]
        fail_prob = weibull_fail_prob(bio_age, params["eta"], params["beta"])

        scale_score, descale = _descale_state(record)
        fail_prob = max(fail_prob, _DESCALE_FLOOR[descale])
        if record.error_code_count > 0:
            fail_prob = max(fail_prob, C.TANKLESS_FAILPROB_FLOOR["errors"])
        if record.vent_status == VentStatus.BLOCKED:
            fail_prob = C.VISUAL_CAP

        lbs = 0.0
        rate = 0.0
        shield: Optional[float] = None
        flush_status = _DESCALE_TO_FLUSH[descale]
        months_to_lockout = _months_to(
            C.SCALE_LOCKOUT, scale_score, record.hardness_gpg * C.SCALE_RATE
        )
    else:
        duration = anode_duration(record)
        bio_age = _tank_bio_age(record, stress, duration)
        params = C.WEIBULL["tank"]
        fail_prob = weibull_fail_prob(bio_age, params["eta"], params["beta"])

        rate = sediment_rate(record)
        lbs = sediment_load(record)
        shield = duration - anode_segments(record)[-1]
        flush_status = _flush_status(record, lbs)
        months_to_lockout = _months_to(C.LIMIT_SEDIMENT_LOCKOUT, lbs, rate)
        if category == UnitCategory.HYBRID:
            efficiency = hybrid_efficiency(record)

    if record.visual_rust or record.is_leaking:
        fail_prob = C.VISUAL_CAP

    # ---------- health score ----------
    health = fail_prob_to_health(fail_prob)
    if lbs > C.LIMIT_SEDIMENT_LOCKOUT:
        health -= C.PENALTY_SEDIMENT_LOCKOUT
    if category != UnitCategory.TANKLESS and shield < 0:
        health -= C.PENALTY_ANODE_DEPLETED
    if efficiency is not None:
        health -= (100.0 - efficiency) * C.PENALTY_EFFICIENCY_SHARE
    health_score = int(round(max(0.0, min(100.0, health))))

    # ---------- aging speedometer ----------
    aging_rate = min(C.MAX_STRESS_CAP, stress.total)
    optimized_rate = min(C.MAX_STRESS_CAP, stress.chemical)
    remaining = max(0.0, C.LIMIT_AGE_MAX - bio_age)
    years_left_current = remaining / aging_rate
    years_left_optimized = remaining / optimized_rate

    return DegradationMetrics(
        bio_age=round(bio_age, 1),
        fail_prob=round(fail_prob, 1),
        sediment_lbs=round(lbs, 1),
        shield_life=None if shield is None else round(shield, 1),
        stress=stress,
        risk_level=location_risk(record.location, record.is_finished_area),
        health_score=health_score,
        sediment_rate=round(rate, 2),
        flush_status=flush_status,
        months_to_lockout=months_to_lockout,
        aging_rate=round(aging_rate, 2),
        optimized_rate=round(optimized_rate, 2),
        years_left_current=round(years_left_current, 1),
        years_left_optimized=round(years_left_optimized, 1),
        life_extension=round(max(0.0, years_left_optimized - years_left_current), 1),
        primary_stressor=_primary_stressor(stress),
        scale_buildup_score=round(scale_score, 1),
        descale_status=descale,
        hybrid_efficiency=None if efficiency is None else round(efficiency, 1),
    )
