# cards.py - card model and deck factory
from __future__ import annotations

import random
from enum import Enum, IntEnum
from typing import List, Optional


class Color(Enum):
    RED = "red"
    BLACK = "black"


class Suit(IntEnum):
    HEARTS = 0
    DIAMONDS = 1
    CLUBS = 2
    SPADES = 3

    @property
    def symbol(self) -> str:
        return "♥♦♣♠"[self.value]

    @property
    def color(self) -> Color:
        return Color.RED if self in (Suit.HEARTS, Suit.DIAMONDS) else Color.BLACK


RANKS = range(1, 14)
RANK_TO_TEXT = {1: "A", 11: "J", 12: "Q", 13: "K"}
for _r in range(2, 11):
    RANK_TO_TEXT[_r] = str(_r)


def is_rank(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in RANKS


class Card:
    """A playing card. Rank and suit are fixed; only ``face_up`` changes."""

    __slots__ = ("_rank", "_suit", "face_up")

    def __init__(self, rank: int, suit: Suit, face_up: bool = False):
        if not is_rank(rank):
            raise ValueError(f"rank must be within 1..13, got {rank!r}")
        self._rank = rank
        self._suit = Suit(suit)
        self.face_up = face_up

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def suit(self) -> Suit:
        return self._suit

    @property
    def color(self) -> Color:
        return self._suit.color

    def __repr__(self):
        return f"{RANK_TO_TEXT[self._rank]}{self._suit.symbol}{'↑' if self.face_up else '↓'}"


def make_deck(decks: int = 1) -> List[Card]:
    return [Card(rank, suit, False) for _ in range(decks) for suit in Suit for rank in RANKS]


def shuffle(deck: List[Card], rng: Optional[random.Random] = None) -> None:
    # random.shuffle is Fisher-Yates, so every permutation is equally likely
    (rng or random).shuffle(deck)
