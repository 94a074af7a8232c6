# tankcheck/routes/repairs.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter

from .. import schemas
from ..engine import SimulationState, get_repair, simulate
from ..engine.repairs import CATALOG, repairs_for_category

router = APIRouter(prefix="/repairs", tags=["repairs"])


@router.get("", response_model=List[schemas.RepairOut])
def list_repairs(category: Optional[schemas.UnitCategory] = None):
    options = repairs_for_category(category) if category else list(CATALOG.values())
    return [schemas.RepairOut.model_validate(o) for o in options]


@router.post("/simulate", response_model=schemas.SimulateOut)
def simulate_repairs(inp: schemas.SimulateIn):
    state = SimulationState(
        score=inp.score,
        aging_factor=inp.aging_factor,
        failure_prob=inp.failure_prob,
    )
    selected = [get_repair(rid) for rid in inp.selected]
    return schemas.SimulateOut.model_validate(simulate(state, selected))
