from __future__ import annotations

import logging
from collections import deque
from random import Random
from typing import Deque, List, Optional

from initracker.core.engine.commands import Command
from initracker.core.engine.rules.apply import apply_command
from initracker.core.engine.state import CombatState, check_invariants

logger = logging.getLogger(__name__)

DEFAULT_UNDO_LIMIT = 30


class UndoHistory:
    """Bounded stack of deep-copied CombatState snapshots; oldest falls off first."""

    def __init__(self, limit: int = DEFAULT_UNDO_LIMIT) -> None:
        if limit < 1:
            raise ValueError("undo limit must be at least 1")
        self._items: Deque[CombatState] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def limit(self) -> int:
        return self._items.maxlen or 0

    def push(self, state: CombatState) -> None:
        self._items.append(state.model_copy(deep=True))

    def pop(self) -> Optional[CombatState]:
        if not self._items:
            return None
        return self._items.pop()

    def clear(self) -> None:
        self._items.clear()


class CombatTracker:
    """Holds the current combat and its undo history.

    Each accepted command snapshots the previous state, runs the pure
    transition and swaps the result in with a single assignment.
    """

    def __init__(
        self,
        state: CombatState,
        *,
        undo_limit: int = DEFAULT_UNDO_LIMIT,
        rng: Optional[Random] = None,
    ) -> None:
        self.state = state
        self.history = UndoHistory(undo_limit)
        self.rng = rng or Random()

    def apply(self, cmd: Command) -> List[dict]:
        new_state, events = apply_command(self.state, cmd, self.rng)
        if new_state is self.state:
            return events
        check_invariants(new_state)
        self.history.push(self.state)
        self.state = new_state
        return events

    def undo(self) -> bool:
        previous = self.history.pop()
        if previous is None:
            return False
        self.state = previous
        logger.debug("combat %s: undo (%d left)", previous.id, len(self.history))
        return True

    def load(self, state: CombatState) -> None:
        """Switch to another combat; history belongs to the old one and is dropped."""
        self.state = state
        self.history.clear()
