"""
Dice expressions such as ``2d6+3-1d4``.

Each ``NdS`` term rolls N dice with S sides (N defaults to 1) and its sign
applies to the term's subtotal; bare integers are flat modifiers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from random import Random
from typing import List, Optional

from initracker.core.engine.state import format_signed

_TERM_RE = re.compile(r"([+-]?)(?:(\d*)[dD](\d+)|(\d+))")

# limits for one expression; anything larger is treated as unparseable
MAX_DICE = 100
MAX_EXPRESSION_LENGTH = 200


@dataclass
class RollResult:
    total: int
    detail: str
    rolls: List[int] = field(default_factory=list)  # per die, sign applied


def roll_expression(expression: str, rng: Optional[Random] = None) -> Optional[RollResult]:
    """Roll ``expression``; returns None when it cannot be parsed."""
    normalized = re.sub(r"\s+", "", expression or "")
    if not normalized or len(normalized) > MAX_EXPRESSION_LENGTH:
        return None

    terms = []
    dice_count = 0
    pos = 0
    while pos < len(normalized):
        m = _TERM_RE.match(normalized, pos)
        # every term after the first needs an explicit sign
        if not m or m.end() == pos or (pos > 0 and not m.group(1)):
            return None
        sign = -1 if m.group(1) == "-" else 1
        if m.group(3) is not None:
            count = int(m.group(2)) if m.group(2) else 1
            sides = int(m.group(3))
            dice_count += count
            if count <= 0 or sides <= 0 or dice_count > MAX_DICE:
                return None
            terms.append((sign, count, sides))
        else:
            terms.append((sign, 0, int(m.group(4))))
        pos = m.end()

    rng = rng or Random()
    total = 0
    parts: List[str] = []
    rolls: List[int] = []
    for sign, count, value in terms:
        if count == 0:
            flat = sign * value
            total += flat
            parts.append(format_signed(flat))
            continue
        dice = [rng.randint(1, value) for _ in range(count)]
        total += sign * sum(dice)
        rolls.extend(sign * d for d in dice)
        prefix = "-" if sign < 0 else ""
        parts.append(f"{prefix}{count}d{value}[{','.join(str(d) for d in dice)}]")

    return RollResult(total=total, detail=" ".join(parts), rolls=rolls)


def format_roll_summary(label: str, expression: str, result: RollResult) -> str:
    return f"{label} {expression} = {result.total} ({result.detail.strip()})"
