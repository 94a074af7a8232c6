# tests/test_repairs.py
import itertools

import pytest

from tankcheck.engine.metrics import compute_metrics
from tankcheck.engine.repairs import CATALOG, eligible_repairs, get_repair, repairs_for_category
from tankcheck.engine.verdict import Verdict, compute_verdict
from tankcheck.schemas import (
    ActionType,
    Badge,
    FilterStatus,
    FlameRodStatus,
    FuelType,
    InspectionRecord,
    RepairId,
    TempSetting,
    UnitCategory,
    VentStatus,
)


def make_record(**overrides):
    base = {
        "calendar_age": 2,
        "house_psi": 55,
        "fuel_type": FuelType.GAS,
        "hardness_gpg": 5,
    }
    base.update(overrides)
    return InspectionRecord(**base)


def repairs_for(record):
    metrics = compute_metrics(record)
    verdict = compute_verdict(record, metrics)
    return [o.id for o in eligible_repairs(record, metrics, verdict)]


MAINTAIN = Verdict(ActionType.MAINTAIN, Badge.SERVICE, False, "test", "test")


# --- CATALOG ---
def test_catalog_has_one_replacement_per_category():
    for category in UnitCategory:
        full = [o for o in repairs_for_category(category) if o.is_full_replacement]
        assert len(full) == 1


def test_get_repair_accepts_string_ids():
    assert get_repair("flush") is CATALOG[RepairId.FLUSH]
    with pytest.raises(ValueError):
        get_repair("not_a_repair")


# --- EXCLUSIVITY ---
@pytest.mark.parametrize("fuel_type", list(FuelType))
def test_replace_verdict_yields_single_full_replacement(fuel_type):
    rec = make_record(fuel_type=fuel_type, is_leaking=True, house_psi=95, hardness_gpg=20)
    metrics = compute_metrics(rec)
    verdict = compute_verdict(rec, metrics)
    assert verdict.action == ActionType.REPLACE
    options = eligible_repairs(rec, metrics, verdict)
    assert len(options) == 1
    assert options[0].is_full_replacement
    assert rec.category in options[0].unit_types


def test_urgent_vent_offers_only_vent_cleaning():
    assert repairs_for(make_record(fuel_type=FuelType.TANKLESS_GAS, vent_status=VentStatus.BLOCKED)) == [
        RepairId.VENT_CLEANING
    ]


# --- PRESSURE REMEDIES ---
def test_prv_alone_only_with_working_expansion_tank():
    assert repairs_for(make_record(house_psi=75, has_exp_tank=True)) == [RepairId.PRV]
    assert repairs_for(make_record(house_psi=75)) == [RepairId.PRV_EXP_PACKAGE]


def test_prv_over_code_limit_ships_as_package():
    assert repairs_for(make_record(house_psi=90, has_exp_tank=True)) == [RepairId.PRV_EXP_PACKAGE]


def test_waterlogged_tank_does_not_count_as_protection():
    assert repairs_for(make_record(house_psi=75, has_exp_tank=True, exp_tank_waterlogged=True)) == [
        RepairId.PRV_EXP_PACKAGE
    ]


def test_failed_prv_without_expansion_gets_bundle():
    assert repairs_for(make_record(has_prv=True, house_psi=85)) == [RepairId.REPLACE_PRV_EXP_PACKAGE]


def test_failed_prv_with_expansion_is_replaced_alone():
    assert repairs_for(make_record(has_prv=True, has_exp_tank=True, house_psi=85)) == [RepairId.REPLACE_PRV]


def test_closed_loop_without_expansion_gets_tank():
    assert repairs_for(make_record(has_prv=True, house_psi=60)) == [RepairId.EXP_TANK]


def test_waterlogged_tank_on_working_prv_is_replaced():
    rec = make_record(has_prv=True, has_exp_tank=True, exp_tank_waterlogged=True, house_psi=60)
    assert repairs_for(rec) == [RepairId.REPLACE_EXP]


@pytest.mark.parametrize(
    "has_prv,has_exp_tank,waterlogged,closed,psi",
    list(itertools.product(
        [False, True], [False, True], [False, True], [False, True], [55, 68, 72, 78, 80, 85, 95],
    )),
)
def test_regulator_never_offered_without_expansion_protection(has_prv, has_exp_tank, waterlogged, closed, psi):
    rec = make_record(
        has_prv=has_prv,
        has_exp_tank=has_exp_tank,
        exp_tank_waterlogged=waterlogged,
        is_closed_loop=closed,
        house_psi=psi,
    )
    ids = repairs_for(rec)
    if RepairId.PRV in ids or RepairId.REPLACE_PRV in ids:
        assert rec.has_functional_exp_tank
    if RepairId.PRV in ids:
        assert psi <= 80


# --- FLUSH / ANODE GATES ---
def test_flush_offered_in_serviceable_band():
    assert repairs_for(make_record(calendar_age=8, hardness_gpg=10, fuel_type=FuelType.ELECTRIC)) == [
        RepairId.FLUSH
    ]


def test_flush_offered_below_fragility_threshold():
    # elevated risk alone does not make the tank too fragile to flush
    rec = make_record(calendar_age=11.5, hardness_gpg=6, fuel_type=FuelType.ELECTRIC, temp_setting=TempSetting.LOW)
    metrics = compute_metrics(rec)
    assert 45 < metrics.fail_prob <= 60
    assert 5 <= metrics.sediment_lbs <= 15
    assert repairs_for(rec) == [RepairId.FLUSH]


def test_flush_withheld_on_fragile_tank():
    rec = make_record(calendar_age=12.5, hardness_gpg=6, fuel_type=FuelType.ELECTRIC, temp_setting=TempSetting.LOW)
    metrics = compute_metrics(rec)
    assert metrics.fail_prob <= 60
    assert 5 <= metrics.sediment_lbs <= 15
    assert RepairId.FLUSH not in repairs_for(rec)


def test_flush_never_offered_past_lockout():
    rec = make_record(calendar_age=9, hardness_gpg=25, fuel_type=FuelType.ELECTRIC)
    metrics = compute_metrics(rec)
    assert metrics.sediment_lbs > 15
    # even a hand-built non-replacement verdict cannot surface it
    ids = [o.id for o in eligible_repairs(rec, metrics, MAINTAIN)]
    assert RepairId.FLUSH not in ids


def test_anode_offered_on_young_depleted_tank():
    rec = make_record(calendar_age=5, has_softener=True, has_circ_pump=True)
    metrics = compute_metrics(rec)
    assert metrics.shield_life < 1
    ids = repairs_for(rec)
    assert RepairId.ANODE in ids
    assert RepairId.EXP_TANK in ids


@pytest.mark.parametrize("age", [8, 9, 11])
def test_anode_never_offered_past_age_gate(age):
    rec = make_record(calendar_age=age, has_softener=True, has_circ_pump=True)
    metrics = compute_metrics(rec)
    ids = [o.id for o in eligible_repairs(rec, metrics, MAINTAIN)]
    assert RepairId.ANODE not in ids


def test_hybrid_offers_anode_too():
    rec = make_record(fuel_type=FuelType.HYBRID, calendar_age=4, has_softener=True)
    assert RepairId.ANODE in repairs_for(rec)


# --- TANKLESS ---
def test_isolation_valves_come_first_and_block_descale():
    rec = make_record(
        fuel_type=FuelType.TANKLESS_GAS,
        hardness_gpg=8,
        calendar_age=3,
        inlet_filter_status=FilterStatus.DIRTY,
    )
    ids = repairs_for(rec)
    assert ids[0] == RepairId.ISOLATION_VALVES
    assert RepairId.DESCALE not in ids
    assert RepairId.INLET_FILTER in ids


def test_descale_with_valves():
    rec = make_record(fuel_type=FuelType.TANKLESS_GAS, hardness_gpg=8, calendar_age=3, has_isolation_valves=True)
    assert repairs_for(rec) == [RepairId.DESCALE]


def test_no_descale_when_run_to_failure():
    rec = make_record(fuel_type=FuelType.TANKLESS_GAS, hardness_gpg=15, calendar_age=7, has_isolation_valves=True)
    assert RepairId.DESCALE not in repairs_for(rec)


def test_tankless_gas_telemetry_repairs():
    rec = make_record(
        fuel_type=FuelType.TANKLESS_GAS,
        has_isolation_valves=True,
        igniter_health=50,
        flame_rod_status=FlameRodStatus.WORN,
        vent_status=VentStatus.RESTRICTED,
        flow_degradation=30,
        has_circ_pump=True,
        has_demand_control=True,
        calendar_age=2,
        hardness_gpg=0,
    )
    assert repairs_for(rec) == [
        RepairId.INLET_FILTER,
        RepairId.IGNITER_SERVICE,
        RepairId.VENT_CLEANING,
        RepairId.FLOW_SENSOR,
        RepairId.EXP_TANK,  # the recirculation loop is closed
    ]


def test_electric_tankless_skips_gas_services():
    rec = make_record(
        fuel_type=FuelType.TANKLESS_ELECTRIC,
        has_isolation_valves=True,
        igniter_health=10,
        vent_status=VentStatus.RESTRICTED,
        hardness_gpg=0,
    )
    assert repairs_for(rec) == []


# --- HYBRID ---
def test_hybrid_order():
    rec = make_record(
        fuel_type=FuelType.HYBRID,
        air_filter_status=FilterStatus.DIRTY,
        is_condensate_clear=False,
        compressor_health=80,
        house_psi=75,
        has_exp_tank=True,
    )
    assert repairs_for(rec) == [
        RepairId.AIR_FILTER_SERVICE,
        RepairId.CONDENSATE_CLEAR,
        RepairId.REFRIGERANT_CHECK,
        RepairId.PRV,
    ]


def test_hybrid_weak_compressor():
    rec = make_record(fuel_type=FuelType.HYBRID, compressor_health=50)
    assert repairs_for(rec) == [RepairId.COMPRESSOR_SERVICE]


# --- EVERY REPAIR VERDICT IS ACTIONABLE ---
PRESSURE_REMEDIES = {
    RepairId.PRV,
    RepairId.PRV_EXP_PACKAGE,
    RepairId.REPLACE_PRV_EXP_PACKAGE,
    RepairId.EXP_TANK,
    RepairId.REPLACE_PRV,
    RepairId.REPLACE_EXP,
}
VIOLATION_TITLES = ("Pressure Regulator Failed", "Critical Pressure", "Missing Expansion Protection")


def test_tankless_over_code_pressure_gets_regulator():
    rec = make_record(calendar_age=1, house_psi=95, fuel_type=FuelType.TANKLESS_GAS, has_isolation_valves=True)
    metrics = compute_metrics(rec)
    verdict = compute_verdict(rec, metrics)
    assert verdict.action == ActionType.REPAIR
    assert verdict.title == "Critical Pressure"
    assert repairs_for(rec) == [RepairId.PRV_EXP_PACKAGE]


def test_tankless_error_codes_get_diagnostics():
    rec = make_record(fuel_type=FuelType.TANKLESS_ELECTRIC, error_code_count=3, has_isolation_valves=True)
    assert repairs_for(rec) == [RepairId.ERROR_DIAGNOSTICS]


@pytest.mark.parametrize(
    "fuel_type,psi,has_prv,has_exp_tank,closed",
    list(itertools.product(list(FuelType), [55, 72, 78, 95], [False, True], [False, True], [False, True])),
)
def test_repair_verdict_offers_a_remedy(fuel_type, psi, has_prv, has_exp_tank, closed):
    rec = make_record(
        fuel_type=fuel_type,
        house_psi=psi,
        has_prv=has_prv,
        has_exp_tank=has_exp_tank,
        is_closed_loop=closed,
        has_isolation_valves=True,
    )
    metrics = compute_metrics(rec)
    verdict = compute_verdict(rec, metrics)
    if verdict.action != ActionType.REPAIR:
        return
    ids = [o.id for o in eligible_repairs(rec, metrics, verdict)]
    assert ids
    if verdict.title in VIOLATION_TITLES:
        assert PRESSURE_REMEDIES & set(ids)


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ({"fuel_type": FuelType.HYBRID, "air_filter_status": FilterStatus.CLOGGED}, RepairId.AIR_FILTER_SERVICE),
        ({"fuel_type": FuelType.HYBRID, "is_condensate_clear": False}, RepairId.CONDENSATE_CLEAR),
        ({"fuel_type": FuelType.TANKLESS_GAS, "error_code_count": 4}, RepairId.ERROR_DIAGNOSTICS),
    ],
)
def test_service_faults_offer_their_fix(overrides, expected):
    rec = make_record(**overrides)
    metrics = compute_metrics(rec)
    verdict = compute_verdict(rec, metrics)
    assert verdict.action == ActionType.REPAIR
    assert expected in [o.id for o in eligible_repairs(rec, metrics, verdict)]
