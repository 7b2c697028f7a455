from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from .cards import Card
from .rules import (
    can_move_sequence,
    is_valid_foundation_move,
    is_valid_tableau_move,
    max_movable_sequence_length,
)
from .state import BoardState, COLUMN_COUNT, FOUNDATION_COUNT, FREE_CELL_COUNT


@dataclass(frozen=True)
class FreeCellLoc:
    index: int


@dataclass(frozen=True)
class TableauLoc:
    column: int
    start_index: Optional[int] = None  # source only; None means the exposed card


@dataclass(frozen=True)
class FoundationLoc:
    index: int


Locator = Union[FreeCellLoc, TableauLoc, FoundationLoc]


def _in_range(i: int, n: int) -> bool:
    return isinstance(i, int) and 0 <= i < n


def _take(state: BoardState, source: Locator) -> Optional[Tuple[Tuple[Card, ...], BoardState]]:
    """Lifts the moving card(s) off the source. Returns (cards, state without them) or None."""
    if isinstance(source, FreeCellLoc):
        if not _in_range(source.index, FREE_CELL_COUNT):
            return None
        card = state.free_cells[source.index]
        if card is None:
            return None
        cells = list(state.free_cells)
        cells[source.index] = None
        return (card,), replace(state, free_cells=tuple(cells))
    if isinstance(source, TableauLoc):
        if not _in_range(source.column, COLUMN_COUNT):
            return None
        column = state.tableau[source.column]
        if not column:
            return None
        start = len(column) - 1 if source.start_index is None else source.start_index
        if not _in_range(start, len(column)):
            return None
        cols = list(state.tableau)
        cols[source.column] = column[:start]
        return column[start:], replace(state, tableau=tuple(cols))
    if isinstance(source, FoundationLoc):
        if not _in_range(source.index, FOUNDATION_COUNT):
            return None
        pile = state.foundations[source.index]
        if not pile:
            return None
        founds = list(state.foundations)
        founds[source.index] = pile[:-1]
        return (pile[-1],), replace(state, foundations=tuple(founds))
    return None


def _place(before: BoardState, lifted: BoardState, cards: Tuple[Card, ...], dest: Locator) -> Optional[BoardState]:
    """Drops the lifted cards on the destination if the rules allow it."""
    if isinstance(dest, FreeCellLoc):
        if len(cards) != 1 or not _in_range(dest.index, FREE_CELL_COUNT):
            return None
        if lifted.free_cells[dest.index] is not None:
            return None
        cells = list(lifted.free_cells)
        cells[dest.index] = cards[0]
        return replace(lifted, free_cells=tuple(cells))
    if isinstance(dest, FoundationLoc):
        if len(cards) != 1 or not _in_range(dest.index, FOUNDATION_COUNT):
            return None
        pile = lifted.foundations[dest.index]
        if not is_valid_foundation_move(cards[0], pile):
            return None
        founds = list(lifted.foundations)
        founds[dest.index] = pile + cards
        return replace(lifted, foundations=tuple(founds))
    if isinstance(dest, TableauLoc):
        if not _in_range(dest.column, COLUMN_COUNT):
            return None
        target = lifted.tableau[dest.column]
        if len(cards) > 1:
            if not can_move_sequence(cards, 0):
                return None
            # Capacity is measured on the board as it stood before the lift.
            if len(cards) > max_movable_sequence_length(before, to_empty_column=not target):
                return None
        if not is_valid_tableau_move(cards[0], target[-1] if target else None):
            return None
        cols = list(lifted.tableau)
        cols[dest.column] = target + cards
        return replace(lifted, tableau=tuple(cols))
    return None


def _same_slot(a: Locator, b: Locator) -> bool:
    if isinstance(a, TableauLoc) and isinstance(b, TableauLoc):
        return a.column == b.column
    return type(a) is type(b) and a == b


def apply_move(state: BoardState, source: Locator, dest: Locator) -> Optional[BoardState]:
    """
    Applies a single-card or column-sequence move.

    Returns the new state with the move counter advanced by one, or None if
    the move is illegal or a locator is out of range. The input state is
    never modified. A won board accepts no further moves.
    """
    if state.is_won or _same_slot(source, dest):
        return None
    picked = _take(state, source)
    if picked is None:
        return None
    cards, lifted = picked
    placed = _place(state, lifted, cards, dest)
    if placed is None:
        return None
    return replace(placed, moves=state.moves + 1)


def all_destinations() -> List[Locator]:
    dests: List[Locator] = []
    dests.extend(FoundationLoc(i) for i in range(FOUNDATION_COUNT))
    dests.extend(FreeCellLoc(i) for i in range(FREE_CELL_COUNT))
    dests.extend(TableauLoc(i) for i in range(COLUMN_COUNT))
    return dests


def legal_destinations(state: BoardState, source: Locator) -> List[Locator]:
    """Every destination that apply_move would accept for this source."""
    return [d for d in all_destinations() if apply_move(state, source, d) is not None]


_TYPES = ('freecell', 'tableau', 'foundation')


def locator_to_json(loc: Locator) -> Dict[str, Any]:
    if isinstance(loc, FreeCellLoc):
        return {'type': 'freecell', 'index': loc.index}
    if isinstance(loc, FoundationLoc):
        return {'type': 'foundation', 'index': loc.index}
    if isinstance(loc, TableauLoc):
        out: Dict[str, Any] = {'type': 'tableau', 'index': loc.column}
        if loc.start_index is not None:
            out['cardIndex'] = loc.start_index
        return out
    raise ValueError(f'unknown locator: {loc!r}')


def _as_index(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f'{name} must be an integer')
    return value


def locator_from_json(obj: Any) -> Locator:
    """Parses {'type': ..., 'index': n, 'cardIndex'?: n}. Range checks are left to apply_move."""
    if not isinstance(obj, dict):
        raise ValueError('locator must be an object')
    kind = obj.get('type')
    if kind not in _TYPES:
        raise ValueError(f'locator type must be one of {", ".join(_TYPES)}')
    index = _as_index(obj.get('index'), 'index')
    if kind == 'freecell':
        return FreeCellLoc(index)
    if kind == 'foundation':
        return FoundationLoc(index)
    card_index = obj.get('cardIndex')
    if card_index is None:
        return TableauLoc(index)
    return TableauLoc(index, _as_index(card_index, 'cardIndex'))
