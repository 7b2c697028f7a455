from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .cards import Card
from .moves import FoundationLoc, FreeCellLoc, Locator, TableauLoc, apply_move
from .rules import foundation_index_for, is_foundation_ready
from .state import BoardState

logger = logging.getLogger(__name__)

# One retirement per card is the most a game can ever need.
ITERATION_CAP = 52


@dataclass(frozen=True)
class AutoMove:
    """A frontier card that can go to a foundation right now."""
    card: Card
    source: Locator
    foundation_index: int

    @property
    def dest(self) -> FoundationLoc:
        return FoundationLoc(self.foundation_index)


def _frontier(state: BoardState) -> Iterator[Tuple[Card, Locator]]:
    """Exposed cards in scan order: free cells first, then column tops, by index."""
    for i, card in enumerate(state.free_cells):
        if card is not None:
            yield card, FreeCellLoc(i)
    for col, column in enumerate(state.tableau):
        if column:
            yield column[-1], TableauLoc(col, len(column) - 1)


def next_auto_complete_move(state: BoardState) -> Optional[AutoMove]:
    """First frontier card that is safe to retire on the current state, if any."""
    for card, source in _frontier(state):
        if is_foundation_ready(card, state.foundations):
            idx = foundation_index_for(card, state.foundations)
            assert idx is not None
            return AutoMove(card=card, source=source, foundation_index=idx)
    return None


def _simulate(state: BoardState) -> Tuple[List[AutoMove], BoardState]:
    """
    Greedy simulation of auto-completion.

    Retires the first safe frontier card, rescans, and stops when nothing is
    safe or the iteration cap is hit. Every simulated step is a fresh
    BoardState, so the caller's state is never touched.
    """
    plan: List[AutoMove] = []
    sim = state
    for _ in range(ITERATION_CAP):
        step = next_auto_complete_move(sim)
        if step is None:
            break
        nxt = apply_move(sim, step.source, step.dest)
        if nxt is None:
            logger.error('auto-complete step %s rejected by move executor', step)
            break
        plan.append(step)
        sim = nxt
    return plan, sim


def auto_complete_plan(state: BoardState) -> List[AutoMove]:
    """The steps the simulation plays, in order. Partial if it stalls before the end."""
    plan, _ = _simulate(state)
    return plan


def can_auto_complete(state: BoardState) -> bool:
    """True iff repeated safe foundation moves alone retire every remaining card."""
    if state.is_won:
        return False
    _, final = _simulate(state)
    return final.remaining() == 0
