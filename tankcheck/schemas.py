# tankcheck/schemas.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict, model_validator


class FuelType(str, Enum):
    GAS = "GAS"
    ELECTRIC = "ELECTRIC"
    TANKLESS_GAS = "TANKLESS_GAS"
    TANKLESS_ELECTRIC = "TANKLESS_ELECTRIC"
    HYBRID = "HYBRID"


class UnitCategory(str, Enum):
    TANK = "TANK"
    TANKLESS = "TANKLESS"
    HYBRID = "HYBRID"


class LocationType(str, Enum):
    ATTIC = "ATTIC"
    UPPER_FLOOR = "UPPER_FLOOR"
    MAIN_LIVING = "MAIN_LIVING"
    BASEMENT = "BASEMENT"
    GARAGE = "GARAGE"
    EXTERIOR = "EXTERIOR"
    CRAWLSPACE = "CRAWLSPACE"


class TempSetting(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HOT = "HOT"


class VentType(str, Enum):
    ATMOSPHERIC = "ATMOSPHERIC"
    POWER_VENT = "POWER_VENT"
    DIRECT_VENT = "DIRECT_VENT"


class FilterStatus(str, Enum):
    CLEAN = "CLEAN"
    DIRTY = "DIRTY"
    CLOGGED = "CLOGGED"


class FlameRodStatus(str, Enum):
    GOOD = "GOOD"
    WORN = "WORN"
    FAILING = "FAILING"


class VentStatus(str, Enum):
    CLEAR = "CLEAR"
    RESTRICTED = "RESTRICTED"
    BLOCKED = "BLOCKED"


class ServiceEventType(str, Enum):
    FLUSH = "FLUSH"
    ANODE_REPLACEMENT = "ANODE_REPLACEMENT"
    DESCALE = "DESCALE"
    FILTER_CLEAN = "FILTER_CLEAN"
    INSPECTION = "INSPECTION"
    REPAIR = "REPAIR"


class QualityTier(str, Enum):
    BUILDER = "BUILDER"
    STANDARD = "STANDARD"
    PROFESSIONAL = "PROFESSIONAL"
    PREMIUM = "PREMIUM"


class InstallComplexity(str, Enum):
    STANDARD = "STANDARD"
    CODE_UPGRADE = "CODE_UPGRADE"
    DIFFICULT_ACCESS = "DIFFICULT_ACCESS"
    NEW_INSTALL = "NEW_INSTALL"


def unit_category(fuel_type: FuelType) -> UnitCategory:
    if fuel_type in (FuelType.TANKLESS_GAS, FuelType.TANKLESS_ELECTRIC):
        return UnitCategory.TANKLESS
    if fuel_type == FuelType.HYBRID:
        return UnitCategory.HYBRID
    return UnitCategory.TANK


class ServiceEvent(BaseModel):
    kind: ServiceEventType
    performed_on: date

    model_config = ConfigDict(frozen=True)


class InspectionRecord(BaseModel):
    """
    One field inspection of a water heater.

    Telemetry that the technician did not report falls back to the
    optimistic defaults below ("clean", "clear", "good", 100%).
    """

    calendar_age: float = Field(..., ge=0, le=60)
    house_psi: float = Field(..., ge=0, le=250)
    warranty_years: int = Field(6, ge=0, le=25)
    fuel_type: FuelType
    hardness_gpg: float = Field(0.0, ge=0, le=100)

    # ---------- equipment flags ----------
    has_softener: bool = False
    has_circ_pump: bool = False
    has_demand_control: bool = False
    is_closed_loop: bool = False
    has_exp_tank: bool = False
    exp_tank_waterlogged: bool = False
    has_prv: bool = False
    has_isolation_valves: bool = False

    # ---------- installation ----------
    location: LocationType = LocationType.GARAGE
    is_finished_area: bool = False
    temp_setting: TempSetting = TempSetting.NORMAL
    tank_capacity: int = Field(50, ge=0, le=200)
    vent_type: VentType = VentType.ATMOSPHERIC

    # ---------- visual inspection ----------
    visual_rust: bool = False
    is_leaking: bool = False

    # ---------- unit telemetry ----------
    inlet_filter_status: FilterStatus = FilterStatus.CLEAN
    flame_rod_status: FlameRodStatus = FlameRodStatus.GOOD
    vent_status: VentStatus = VentStatus.CLEAR
    igniter_health: int = Field(100, ge=0, le=100)
    scale_buildup: Optional[float] = Field(None, ge=0, le=100)
    flow_degradation: float = Field(0.0, ge=0, le=100)
    air_filter_status: FilterStatus = FilterStatus.CLEAN
    is_condensate_clear: bool = True
    compressor_health: int = Field(100, ge=0, le=100)
    error_code_count: int = Field(0, ge=0)

    # ---------- service history ----------
    service_history: List[ServiceEvent] = Field(default_factory=list)
    inspected_on: Optional[date] = None

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @model_validator(mode="after")
    def _history_needs_reference_date(self) -> "InspectionRecord":
        if self.service_history and self.inspected_on is None:
            raise ValueError("inspected_on is required when service_history is supplied")
        return self

    @property
    def category(self) -> UnitCategory:
        return unit_category(self.fuel_type)

    @property
    def is_closed_system(self) -> bool:
        # A PRV acts as a check valve, so it closes the loop on its own.
        return self.is_closed_loop or self.has_prv

    @property
    def has_functional_exp_tank(self) -> bool:
        return self.has_exp_tank and not self.exp_tank_waterlogged


# -------------------------
# ENGINE OUTCOMES
# -------------------------
class FlushStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    DUE = "DUE"
    LOCKOUT = "LOCKOUT"


class DescaleStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    DUE = "DUE"
    CRITICAL = "CRITICAL"
    LOCKOUT = "LOCKOUT"
    RUN_TO_FAILURE = "RUN_TO_FAILURE"


class ActionType(str, Enum):
    REPLACE = "REPLACE"
    REPAIR = "REPAIR"
    UPGRADE = "UPGRADE"
    MAINTAIN = "MAINTAIN"
    PASS = "PASS"
    URGENT = "URGENT"


class Badge(str, Enum):
    CRITICAL = "CRITICAL"
    REPLACE = "REPLACE"
    SERVICE = "SERVICE"
    MONITOR = "MONITOR"
    OPTIMAL = "OPTIMAL"


class IssueCategory(str, Enum):
    VIOLATION = "VIOLATION"  # code violation, required at every tier
    INFRASTRUCTURE = "INFRASTRUCTURE"  # needed for longevity
    RECOMMENDATION = "RECOMMENDATION"  # nice to have


class IssueId(str, Enum):
    EXP_TANK_REQUIRED = "EXP_TANK_REQUIRED"
    PRV_FAILED = "PRV_FAILED"
    PRV_CRITICAL = "PRV_CRITICAL"
    PRV_RECOMMENDED = "PRV_RECOMMENDED"
    SOFTENER_SERVICE = "SOFTENER_SERVICE"
    EXP_TANK_REPLACE = "EXP_TANK_REPLACE"
    SOFTENER_REPLACE = "SOFTENER_REPLACE"
    PRV_LONGEVITY = "PRV_LONGEVITY"
    SOFTENER_NEW = "SOFTENER_NEW"


class RepairId(str, Enum):
    # tank / hybrid
    REPLACE_TANK = "replace_tank"
    PRV = "prv"
    PRV_EXP_PACKAGE = "prv_exp_package"
    REPLACE_PRV_EXP_PACKAGE = "replace_prv_exp_package"
    EXP_TANK = "exp_tank"
    REPLACE_PRV = "replace_prv"
    REPLACE_EXP = "replace_exp"
    FLUSH = "flush"
    ANODE = "anode"
    # tankless
    REPLACE_TANKLESS = "replace_tankless"
    DESCALE = "descale"
    ISOLATION_VALVES = "isolation_valves"
    INLET_FILTER = "inlet_filter"
    IGNITER_SERVICE = "igniter_service"
    FLOW_SENSOR = "flow_sensor"
    VENT_CLEANING = "vent_cleaning"
    RECIRCULATION_SERVICE = "recirculation_service"
    ERROR_DIAGNOSTICS = "error_diagnostics"
    # hybrid
    REPLACE_HYBRID = "replace_hybrid"
    AIR_FILTER_SERVICE = "air_filter_service"
    CONDENSATE_CLEAR = "condensate_clear"
    COMPRESSOR_SERVICE = "compressor_service"
    REFRIGERANT_CHECK = "refrigerant_check"


class SimStatus(str, Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    OPTIMAL = "OPTIMAL"


# -------------------------
# API: ASSESSMENT
# -------------------------
class StressOut(BaseModel):
    pressure: float
    thermal: float
    circulation: float
    loop: float
    total: float

    model_config = ConfigDict(from_attributes=True)


class MetricsOut(BaseModel):
    bio_age: float
    fail_prob: float
    sediment_lbs: float
    shield_life: Optional[float] = None
    stress: StressOut
    risk_level: int
    health_score: int

    sediment_rate: float
    flush_status: FlushStatus
    months_to_lockout: Optional[int] = None

    aging_rate: float
    optimized_rate: float
    years_left_current: float
    years_left_optimized: float
    life_extension: float
    primary_stressor: str

    scale_buildup_score: float
    descale_status: DescaleStatus
    hybrid_efficiency: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class VerdictOut(BaseModel):
    action: ActionType
    badge: Badge
    urgent: bool
    title: str
    reason: str

    model_config = ConfigDict(from_attributes=True)


class IssueOut(BaseModel):
    id: IssueId
    category: IssueCategory
    name: str
    remediation: str
    cost_min: int
    cost_max: int
    description: str
    min_tier: QualityTier

    model_config = ConfigDict(from_attributes=True)


class RepairImpactOut(BaseModel):
    health_score_boost: float
    aging_factor_reduction: float
    failure_prob_reduction: float

    model_config = ConfigDict(from_attributes=True)


class RepairOut(BaseModel):
    id: RepairId
    name: str
    description: str
    unit_types: List[UnitCategory]
    cost_min: int
    cost_max: int
    impact: RepairImpactOut
    is_full_replacement: bool

    model_config = ConfigDict(from_attributes=True)


class ProjectionOut(BaseModel):
    months: int
    bio_age: float
    fail_prob: float
    health_score: int

    model_config = ConfigDict(from_attributes=True)


class AssessmentOut(BaseModel):
    metrics: MetricsOut
    verdict: VerdictOut
    issues: List[IssueOut]
    repairs: List[RepairOut]
    projection: List[ProjectionOut]
    ruleset_version: str

    model_config = ConfigDict(from_attributes=True)


# -------------------------
# API: SIMULATOR
# -------------------------
class SimulateIn(BaseModel):
    score: float = Field(..., ge=0, le=100)
    aging_factor: float = Field(..., gt=0)
    failure_prob: float = Field(..., ge=0, le=100)
    selected: List[RepairId] = Field(default_factory=list)


class SimulateOut(BaseModel):
    new_score: float
    new_status: SimStatus
    new_aging_factor: float
    new_failure_prob: float
    total_cost_min: int
    total_cost_max: int

    model_config = ConfigDict(from_attributes=True)


# -------------------------
# API: QUOTES
# -------------------------
class QuoteIn(BaseModel):
    record: InspectionRecord
    complexity: InstallComplexity = InstallComplexity.STANDARD
    contractor_id: Optional[str] = None
    tiers: Optional[List[QualityTier]] = None


class PriceRangeOut(BaseModel):
    low: int
    high: int
    median: int

    model_config = ConfigDict(from_attributes=True)


class CostRangeOut(BaseModel):
    low: int
    high: int

    model_config = ConfigDict(from_attributes=True)


class TotalQuoteOut(BaseModel):
    grand_total: int
    unit_price: int
    install_cost: int
    grand_total_range: Optional[PriceRangeOut] = None

    model_config = ConfigDict(from_attributes=True)


class TierQuoteOut(BaseModel):
    tier: QualityTier
    label: str
    quote: Optional[TotalQuoteOut] = None
    included_issues: List[IssueOut]
    issues_cost: CostRangeOut
    bundle_total: Optional[PriceRangeOut] = None
    loading: bool
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class QuotesOut(BaseModel):
    tiers: List[TierQuoteOut]
