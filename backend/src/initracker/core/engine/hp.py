from __future__ import annotations

import math
import re
from typing import Optional

from initracker.core.engine.state import HitPoints

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _parse_number(text: str) -> Optional[float]:
    text = text.strip()
    if not _NUMBER_RE.match(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


def clamp_hp(value: float, max_hp: int) -> int:
    # half rounds up, so "-0.5" on 10 hp leaves 10
    return max(0, min(max_hp, math.floor(value + 0.5)))


def apply_hp_input(hp: HitPoints, raw: str) -> HitPoints:
    """Apply a typed hit point edit.

    ``"=N"`` sets current hp to N, anything else is read as a signed delta
    (``"-7"``, ``"+4"``, ``"3"``). The result is clamped to ``[0, max]``.
    Input that is not a number leaves ``hp`` untouched.
    """
    text = (raw or "").strip()
    if not text:
        return hp

    if text.startswith("="):
        value = _parse_number(text[1:])
        if value is None:
            return hp
        return hp.model_copy(update={"current": clamp_hp(value, hp.max)})

    delta = _parse_number(text)
    if delta is None:
        return hp
    return hp.model_copy(update={"current": clamp_hp(hp.current + delta, hp.max)})
