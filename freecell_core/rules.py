from __future__ import annotations

from typing import Optional, Sequence

from .cards import Card, SUITS
from .state import BoardState


def is_valid_tableau_move(card: Card, target: Optional[Card]) -> bool:
    """A card may go onto an empty column, or onto a card one rank higher of the opposite colour."""
    if target is None:
        return True
    return card.value == target.value - 1 and card.color != target.color


def is_valid_foundation_move(card: Card, foundation: Sequence[Card]) -> bool:
    if not foundation:
        return card.rank == 'A'
    top = foundation[-1]
    return card.suit == top.suit and card.value == top.value + 1


def can_move_sequence(column: Sequence[Card], start_index: int) -> bool:
    """True iff column[start_index:] is a descending, alternating-colour run."""
    if start_index < 0 or start_index >= len(column):
        return False
    for i in range(start_index, len(column) - 1):
        if not is_valid_tableau_move(column[i + 1], column[i]):
            return False
    return True


def max_movable_sequence_length(state: BoardState, to_empty_column: bool = False) -> int:
    """
    Largest run that can be relocated as a unit using only single-card moves
    through free cells and empty columns. A destination that is itself an
    empty column cannot double as temporary storage.
    """
    empty_cols = state.empty_columns()
    if to_empty_column and empty_cols > 0:
        empty_cols -= 1
    return (2 ** state.empty_free_cells()) * (empty_cols + 1)


def foundation_index_for(card: Card, foundations: Sequence[Sequence[Card]]) -> Optional[int]:
    """Picks the foundation a card belongs on, or None if none can take it right now."""
    for i, f in enumerate(foundations):
        if f and f[0].suit == card.suit:
            return i
    if card.rank != 'A':
        return None
    home = SUITS.index(card.suit)
    if home < len(foundations) and not foundations[home]:
        return home
    for i, f in enumerate(foundations):
        if not f:
            return i
    return None


def is_foundation_ready(card: Card, foundations: Sequence[Sequence[Card]]) -> bool:
    """The single 'safe move' test shared by auto-complete detection and stepping."""
    idx = foundation_index_for(card, foundations)
    return idx is not None and is_valid_foundation_move(card, foundations[idx])


def check_win_condition(foundations: Sequence[Sequence[Card]]) -> bool:
    return all(len(f) == 13 for f in foundations)
