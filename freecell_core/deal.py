from __future__ import annotations

import random
import time
from typing import List, Optional, Tuple

from .cards import Card, RANKS, full_deck
from .state import BoardState, COLUMN_COUNT, FOUNDATION_COUNT, FREE_CELL_COUNT


def create_deck(seed: Optional[int] = None) -> List[Card]:
    """Returns the 52-card deck in uniformly shuffled order."""
    rng = random.Random(seed)
    deck: List[Card] = list(full_deck())
    rng.shuffle(deck)  # Fisher-Yates
    return deck


def initialize_game(seed: Optional[int] = None, now: Optional[float] = None) -> BoardState:
    """Deals a shuffled deck into the 8 tableau columns, 7/7/7/7/6/6/6/6."""
    deck = create_deck(seed)
    columns: List[Tuple[Card, ...]] = []
    pos = 0
    for col in range(COLUMN_COUNT):
        count = 7 if col < 4 else 6
        columns.append(tuple(deck[pos:pos + count]))
        pos += count
    if pos != len(deck):
        raise ValueError('Invalid deal: not every card was placed')
    return BoardState(
        free_cells=(None,) * FREE_CELL_COUNT,
        foundations=((),) * FOUNDATION_COUNT,
        tableau=tuple(columns),
        moves=0,
        start_time=time.time() if now is None else now,
    )


def _run(suit: str, through: str) -> Tuple[Card, ...]:
    return tuple(Card(suit, r) for r in RANKS[:RANKS.index(through) + 1])


def create_auto_complete_fixture(now: Optional[float] = None) -> BoardState:
    """
    Near-won layout for exercising auto-completion.

    The ten of spades is buried under the King of hearts, and the Jack of
    spades in the free cells waits on that ten, so completion only works if
    the frontier is rescanned after every retired card. The last three
    black cards sit in columns 3 and 4 so the board holds the full deck.
    """
    foundations = (
        _run('hearts', 'Q'),
        _run('diamonds', 'J'),
        _run('clubs', '10'),
        _run('spades', '9'),
    )
    tableau = (
        (Card('spades', '10'), Card('hearts', 'K')),
        (Card('diamonds', 'Q'),),
        (Card('clubs', 'J'),),
        (Card('spades', 'K'), Card('spades', 'Q')),
        (Card('clubs', 'K'),),
    ) + ((),) * 3
    free_cells = (None, Card('diamonds', 'K'), Card('clubs', 'Q'), Card('spades', 'J'))
    return BoardState(
        free_cells=free_cells,
        foundations=foundations,
        tableau=tableau,
        moves=0,
        start_time=time.time() if now is None else now,
    )
