from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .cards import Card, card_from_id, full_deck

FREE_CELL_COUNT = 4
FOUNDATION_COUNT = 4
COLUMN_COUNT = 8

Column = Tuple[Card, ...]


@dataclass(frozen=True)
class BoardState:
    """Snapshot of a Freecell game. Every move produces a new value."""
    free_cells: Tuple[Optional[Card], ...]  # length FREE_CELL_COUNT
    foundations: Tuple[Column, ...]  # length FOUNDATION_COUNT, bottom (Ace) first
    tableau: Tuple[Column, ...]  # length COLUMN_COUNT, index -1 is the exposed card
    moves: int = 0
    start_time: float = 0.0

    @property
    def is_won(self) -> bool:
        return all(len(f) == 13 for f in self.foundations)

    def top_of_column(self, col: int) -> Optional[Card]:
        column = self.tableau[col]
        return column[-1] if column else None

    def empty_free_cells(self) -> int:
        return sum(1 for c in self.free_cells if c is None)

    def empty_columns(self) -> int:
        return sum(1 for col in self.tableau if not col)

    def cards(self) -> Iterator[Card]:
        """Iterates over every card on the board regardless of where it sits."""
        for c in self.free_cells:
            if c is not None:
                yield c
        for f in self.foundations:
            yield from f
        for col in self.tableau:
            yield from col

    def remaining(self) -> int:
        """Number of cards still in the free cells or the tableau."""
        return sum(1 for c in self.free_cells if c is not None) + sum(len(col) for col in self.tableau)

    def pretty(self) -> str:
        """Generates a human-readable string representation of the board."""
        cells = ' '.join(c.short().rjust(3) if c else ' ..' for c in self.free_cells)
        founds = ' '.join(f[-1].short().rjust(3) if f else ' ..' for f in self.foundations)
        lines: List[str] = [f'cells: {cells}   foundations: {founds}   moves: {self.moves}']
        lines.append('  '.join(f't{i}'.rjust(3) for i in range(COLUMN_COUNT)))
        depth = max((len(col) for col in self.tableau), default=0)
        for row in range(depth):
            parts = []
            for col in self.tableau:
                parts.append(col[row].short().rjust(3) if row < len(col) else '   ')
            lines.append('  '.join(parts).rstrip())
        return '\n'.join(lines)


def check_invariants(state: BoardState) -> None:
    """Raises ValueError if the board breaks card conservation, slot counts or foundation order."""
    if len(state.free_cells) != FREE_CELL_COUNT:
        raise ValueError('expected 4 free cells')
    if len(state.foundations) != FOUNDATION_COUNT:
        raise ValueError('expected 4 foundations')
    if len(state.tableau) != COLUMN_COUNT:
        raise ValueError('expected 8 tableau columns')
    if state.moves < 0:
        raise ValueError('move counter must be non-negative')
    seen = list(state.cards())
    if len(seen) != 52 or set(seen) != set(full_deck()):
        raise ValueError('board must hold each of the 52 cards exactly once')
    for f in state.foundations:
        for i, card in enumerate(f):
            if card.value != i + 1 or card.suit != f[0].suit:
                raise ValueError('foundation out of order')


def card_to_json(card: Card) -> Dict[str, Any]:
    return {'id': card.id, 'suit': card.suit, 'rank': card.rank, 'color': card.color}


def card_from_json(obj: Any) -> Card:
    if isinstance(obj, str):
        return card_from_id(obj)
    if isinstance(obj, dict):
        if 'suit' in obj and 'rank' in obj:
            return Card(suit=str(obj['suit']), rank=str(obj['rank']))
        if 'id' in obj:
            return card_from_id(obj['id'])
    raise ValueError(f'bad card: {obj!r}')


def state_to_json(s: BoardState) -> Dict[str, Any]:
    return {
        'freeCells': [card_to_json(c) if c else None for c in s.free_cells],
        'foundations': [[card_to_json(c) for c in f] for f in s.foundations],
        'tableau': [[card_to_json(c) for c in col] for col in s.tableau],
        'moves': int(s.moves),
        'isWon': s.is_won,
        'startTime': float(s.start_time),
    }


def state_from_json(obj: Dict[str, Any]) -> BoardState:
    """Builds a BoardState from its JSON form, rejecting boards that break the invariants."""
    try:
        cells = tuple(card_from_json(c) if c else None for c in obj['freeCells'])
        foundations = tuple(tuple(card_from_json(c) for c in f) for f in obj['foundations'])
        tableau = tuple(tuple(card_from_json(c) for c in col) for col in obj['tableau'])
        moves = int(obj.get('moves', 0))
        start_time = float(obj.get('startTime', 0.0))
    except (KeyError, TypeError) as e:
        raise ValueError(f'bad state: {e}')
    state = BoardState(free_cells=cells, foundations=foundations, tableau=tableau,
                       moves=moves, start_time=start_time)
    check_invariants(state)
    return state
