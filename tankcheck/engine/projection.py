# tankcheck/engine/projection.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..schemas import InspectionRecord, UnitCategory
from . import constants as C
from .metrics import DegradationMetrics

DEFAULT_HORIZONS = (12, 24, 36)


@dataclass(frozen=True)
class HealthProjection:
    months: int
    bio_age: float
    fail_prob: float
    health_score: int


def project_health(
    record: InspectionRecord,
    metrics: DegradationMetrics,
    months: Sequence[int] = DEFAULT_HORIZONS,
) -> List[HealthProjection]:
    """
    Project bio-age, failure probability and health score forward assuming
    nothing about the installation changes.

    Tank units keep aging at the shielded rate until the current anode runs
    out, then at full stress. Projected risk never drops below today's.
    """
    horizon = np.asarray(months, dtype=float) / 12.0
    stress = metrics.stress

    naked_rate = min(C.MAX_STRESS_CAP, stress.total)
    if record.category == UnitCategory.TANKLESS:
        params = C.WEIBULL["tankless"]
        added = horizon * naked_rate
    else:
        params = C.WEIBULL["tank"]
        protected_rate = min(
            C.MAX_STRESS_CAP,
            stress.mechanical * (1.0 + C.SHIELDED_CORROSION_SHARE * (stress.chemical - 1.0)),
        )
        shielded = np.minimum(horizon, max(0.0, metrics.shield_life))
        added = shielded * protected_rate + (horizon - shielded) * naked_rate

    bio = np.minimum(metrics.bio_age + added, C.LIMIT_AGE_MAX)
    fail = (1.0 - np.exp(-((bio / params["eta"]) ** params["beta"]))) * 100.0
    fail = np.maximum(np.minimum(fail, C.STATISTICAL_CAP), metrics.fail_prob)
    health = np.clip(np.round(100.0 * np.exp(-C.HEALTH_DECAY_K * fail)), 0, 100)

    return [
        HealthProjection(
            months=int(m),
            bio_age=round(float(b), 1),
            fail_prob=round(float(f), 1),
            health_score=min(int(h), metrics.health_score),
        )
        for m, b, f, h in zip(months, bio, fail, health)
    ]
