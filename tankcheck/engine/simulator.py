# tankcheck/engine/simulator.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..schemas import SimStatus
from .repairs import RepairOption

SCORE_CEILING = 85  # only a replacement restores an as-new unit
AGING_FLOOR = 1.0
FAILPROB_FLOOR = 2.0
DIMINISHING_STEP = 0.2

REPLACED_AGING = 1.0
REPLACED_FAILPROB = 0.5


@dataclass(frozen=True)
class SimulationState:
    score: float
    aging_factor: float
    failure_prob: float


@dataclass(frozen=True)
class SimulatedResult:
    new_score: float
    new_status: SimStatus
    new_aging_factor: float
    new_failure_prob: float
    total_cost_min: int
    total_cost_max: int


def status_for_score(score: float) -> SimStatus:
    if score >= 70:
        return SimStatus.OPTIMAL
    if score >= 40:
        return SimStatus.WARNING
    return SimStatus.CRITICAL


def simulate(state: SimulationState, selected: Sequence[RepairOption]) -> SimulatedResult:
    """
    What-if projection for an ordered selection of repairs.

    Effects stack with diminishing returns by position: the i-th item
    (0-indexed) contributes `impact / (1 + 0.2 * i)`. Costs are summed
    unscaled. Selecting a full replacement overrides everything else.
    """
    if not selected:
        return SimulatedResult(
            new_score=state.score,
            new_status=status_for_score(state.score),
            new_aging_factor=state.aging_factor,
            new_failure_prob=state.failure_prob,
            total_cost_min=0,
            total_cost_max=0,
        )

    replacement = next((o for o in selected if o.is_full_replacement), None)
    if replacement is not None:
        return SimulatedResult(
            new_score=100,
            new_status=SimStatus.OPTIMAL,
            new_aging_factor=REPLACED_AGING,
            new_failure_prob=REPLACED_FAILPROB,
            total_cost_min=replacement.cost_min,
            total_cost_max=replacement.cost_max,
        )

    boost = 0.0
    aging_cut = 0.0
    fail_cut = 0.0
    cost_min = 0
    cost_max = 0
    for i, option in enumerate(selected):
        factor = 1.0 / (1.0 + DIMINISHING_STEP * i)
        boost += option.impact.health_score_boost * factor
        aging_cut += option.impact.aging_factor_reduction * factor
        fail_cut += option.impact.failure_prob_reduction * factor
        cost_min += option.cost_min
        cost_max += option.cost_max

    # repairs never make the unit worse than it already is
    score = max(state.score, round(min(SCORE_CEILING, state.score + boost), 1))
    aging = min(state.aging_factor, max(AGING_FLOOR, state.aging_factor * (1 - aging_cut / 100)))
    fail_prob = min(state.failure_prob, max(FAILPROB_FLOOR, state.failure_prob * (1 - fail_cut / 100)))

    return SimulatedResult(
        new_score=score,
        new_status=status_for_score(score),
        new_aging_factor=round(aging, 1),
        new_failure_prob=round(fail_prob, 1),
        total_cost_min=cost_min,
        total_cost_max=cost_max,
    )
