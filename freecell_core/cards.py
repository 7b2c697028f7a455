from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

Suit = str  # 'hearts', 'diamonds', 'clubs', 'spades'
Rank = str  # 'A', '2', ..., '10', 'J', 'Q', 'K'

SUITS: Tuple[Suit, ...] = ('hearts', 'diamonds', 'clubs', 'spades')
RANKS: Tuple[Rank, ...] = ('A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K')

RED_SUITS = frozenset(('hearts', 'diamonds'))

SUIT_SYMBOLS: Dict[Suit, str] = {
    'hearts': '♥',
    'diamonds': '♦',
    'clubs': '♣',
    'spades': '♠',
}

_RANK_VALUES: Dict[Rank, int] = {rank: i + 1 for i, rank in enumerate(RANKS)}


def rank_value(rank: Rank) -> int:
    """Maps a rank to its numeric value (A=1 ... K=13)."""
    try:
        return _RANK_VALUES[rank]
    except KeyError:
        raise ValueError(f'unknown rank: {rank!r}')


@dataclass(frozen=True)
class Card:
    """A single playing card. Moving a card relocates the value, it is never mutated."""
    suit: Suit
    rank: Rank

    def __post_init__(self) -> None:
        if self.suit not in SUITS:
            raise ValueError(f'unknown suit: {self.suit!r}')
        if self.rank not in _RANK_VALUES:
            raise ValueError(f'unknown rank: {self.rank!r}')

    @property
    def id(self) -> str:
        return f'{self.suit}-{self.rank}'

    @property
    def value(self) -> int:
        return _RANK_VALUES[self.rank]

    @property
    def color(self) -> str:
        return 'red' if self.suit in RED_SUITS else 'black'

    def short(self) -> str:
        """Two or three character label, e.g. '10♠'."""
        return f'{self.rank}{SUIT_SYMBOLS[self.suit]}'


def card_from_id(card_id: str) -> Card:
    """Parses a card id of the form 'hearts-Q'."""
    suit, sep, rank = str(card_id).partition('-')
    if not sep:
        raise ValueError(f'bad card id: {card_id!r}')
    return Card(suit=suit, rank=rank)


def full_deck() -> Tuple[Card, ...]:
    """All 52 cards in suit-then-rank order."""
    return tuple(Card(suit, rank) for suit in SUITS for rank in RANKS)
