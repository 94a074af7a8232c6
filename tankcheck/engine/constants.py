# tankcheck/engine/constants.py

from ..schemas import FuelType, LocationType, QualityTier, TempSetting

# ---------- pressure (Buffer Zone Model) ----------
PSI_SAFE_LIMIT = 80
PSI_SCALAR = 20
PSI_QUADRATIC_EXP = 2.0
PSI_CRITICAL = 100
PSI_FAILED_PRV = 75
PSI_OPTIMIZE = 65
PSI_PRV_OFFER = 70
PSI_LONGEVITY = 60

# ---------- stress multipliers ----------
THERMAL_STRESS = {
    TempSetting.LOW: 1.0,
    TempSetting.NORMAL: 1.15,
    TempSetting.HOT: 1.6,
}
CIRC_STRESS = 1.4
LOOP_STRESS = 1.5
MAX_STRESS_CAP = 12.0
SHIELDED_CORROSION_SHARE = 0.1  # corrosion that leaks past an active anode

# ---------- reliability (Weibull) ----------
WEIBULL = {
    "tank": {"eta": 13.0, "beta": 3.2},
    "tankless": {"eta": 18.0, "beta": 3.0},
}
STATISTICAL_CAP = 99.0
VISUAL_CAP = 99.9
HEALTH_DECAY_K = 0.04

# ---------- age limits ----------
LIMIT_AGE_MAX = 20.0
LIMIT_AGE_FRAGILE = 12
AGE_ANODE_LIMIT = 8
AGE_VESSEL_FATIGUE = 10
AGE_PRESSURE_OPTIMIZE = 8
TANKLESS_SERVICE_LIFE = 15

# ---------- failure probability gates ----------
LIMIT_FAILPROB_REPLACE = 60.0
LIMIT_FAILPROB_URGENT = 80.0
LIMIT_FAILPROB_FRAGILE = 60.0
LIMIT_FAILPROB_LIABILITY = 30.0

# ---------- sediment ----------
SEDIMENT_FACTOR = {
    FuelType.GAS: 0.044,
    FuelType.ELECTRIC: 0.08,
    FuelType.HYBRID: 0.06,
    FuelType.TANKLESS_GAS: 0.0,
    FuelType.TANKLESS_ELECTRIC: 0.0,
}
FLUSH_EFFICIENCY = 0.5
FLUSH_EFFICIENCY_HARDITE = 0.05
LIMIT_SEDIMENT_FLUSH = 5.0
LIMIT_SEDIMENT_LOCKOUT = 15.0

# time weighting of past flushes (years ago -> credit weight)
FLUSH_FULL_CREDIT_YEARS = 1.0
FLUSH_DECAY_END_YEARS = 4.0
FLUSH_FLOOR_WEIGHT = 0.25

# ---------- anode ----------
DEFAULT_ANODE_YEARS = 6
ANODE_BURN_SOFTENER = 1.4
ANODE_BURN_CIRC = 0.5

# ---------- tankless scale ----------
HARD_WATER_GPG = 10.0
SCALE_RATE = 0.8
SCALE_LOCKOUT = 60.0
SCALE_CRITICAL = 25.0
SCALE_DUE = 10.0
TANKLESS_RUN_TO_FAILURE_AGE = 6
TANKLESS_DESCALE_DUE_AGE = 2
TANKLESS_CHRONIC_ERRORS = 10
TANKLESS_FAILPROB_FLOOR = {
    "errors": 75.0,
    "lockout": 50.0,
    "run_to_failure": 40.0,
    "critical": 25.0,
    "due": 15.0,
}

# ---------- health score penalties ----------
PENALTY_SEDIMENT_LOCKOUT = 10
PENALTY_ANODE_DEPLETED = 5
PENALTY_EFFICIENCY_SHARE = 0.2

# ---------- location risk (0..4) ----------
# (unfinished, finished)
LOCATION_RISK = {
    LocationType.EXTERIOR: (0, 0),
    LocationType.GARAGE: (1, 2),
    LocationType.CRAWLSPACE: (1, 2),
    LocationType.BASEMENT: (2, 3),
    LocationType.MAIN_LIVING: (3, 3),
    LocationType.UPPER_FLOOR: (4, 4),
    LocationType.ATTIC: (4, 4),
}
RISK_HIGH = 3

# ---------- quality tiers ----------
TIER_ORDER = [
    QualityTier.BUILDER,
    QualityTier.STANDARD,
    QualityTier.PROFESSIONAL,
    QualityTier.PREMIUM,
]

TIER_PROFILES = {
    QualityTier.BUILDER: {
        "label": "Good",
        "warranty_years": 6,
        "base_cost": {"tank_gas": 1400, "tank_electric": 1200, "hybrid": 2800, "tankless": 2400},
    },
    QualityTier.STANDARD: {
        "label": "Better",
        "warranty_years": 9,
        "base_cost": {"tank_gas": 1900, "tank_electric": 1600, "hybrid": 3400, "tankless": 3200},
    },
    QualityTier.PROFESSIONAL: {
        "label": "Best",
        "warranty_years": 12,
        "base_cost": {"tank_gas": 2600, "tank_electric": 2200, "hybrid": 4200, "tankless": 4200},
    },
    QualityTier.PREMIUM: {
        "label": "Premium",
        "warranty_years": 15,
        "base_cost": {"tank_gas": 3500, "tank_electric": 3000, "hybrid": 5200, "tankless": 5500},
    },
}


def tier_rank(tier: QualityTier) -> int:
    return TIER_ORDER.index(tier)


def tier_for_warranty(warranty_years: int) -> QualityTier:
    """Highest tier whose nameplate warranty the given warranty reaches."""
    chosen = QualityTier.BUILDER
    for tier in TIER_ORDER:
        if warranty_years >= TIER_PROFILES[tier]["warranty_years"]:
            chosen = tier
    return chosen
