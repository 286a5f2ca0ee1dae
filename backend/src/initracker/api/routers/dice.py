from __future__ import annotations

from random import Random

from fastapi import APIRouter, Depends, HTTPException

from initracker.api.deps import get_rng
from initracker.api.schemas import DiceRollRequest, DiceRollResponse
from initracker.core.engine.dice import format_roll_summary, roll_expression

router = APIRouter(tags=["dice"])


@router.post("/dice:roll", response_model=DiceRollResponse)
def roll(req: DiceRollRequest, rng: Random = Depends(get_rng)):
    result = roll_expression(req.expression, rng)
    if result is None:
        raise HTTPException(status_code=422, detail="Invalid dice expression")

    return DiceRollResponse(
        total=result.total,
        detail=result.detail,
        rolls=result.rolls,
        summary=format_roll_summary(req.label, req.expression.strip(), result),
    )
