"""Deal patterns for the tableau.

Each pattern takes the shuffled deck and the number of tableau piles and
returns ``(columns, remainder)``. Face states of the dealt cards are set by
the pattern; the remainder goes to the stock.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

from patience.cards import Card

Columns = List[List[Card]]
DealPattern = Callable[[Sequence[Card], int], Tuple[Columns, List[Card]]]


def _take(deck: Sequence[Card], needed: int, pattern: str) -> None:
    if needed > len(deck):
        raise ValueError(f"'{pattern}' deal needs {needed} cards, deck has {len(deck)}")


def deal_klondike(deck: Sequence[Card], count: int) -> Tuple[Columns, List[Card]]:
    """Pile i gets i+1 cards, only the top one face-up."""
    _take(deck, count * (count + 1) // 2, "klondike")
    columns: Columns = []
    pos = 0
    for col in range(count):
        run = list(deck[pos:pos + col + 1])
        pos += col + 1
        for i, c in enumerate(run):
            c.face_up = i == col
        columns.append(run)
    return columns, list(deck[pos:])


def deal_yukon(deck: Sequence[Card], count: int) -> Tuple[Columns, List[Card]]:
    """Pile 0 gets a single face-up card; pile i gets i face-down cards and five face-up."""
    _take(deck, 1 + sum(i + 5 for i in range(1, count)), "yukon")
    columns: Columns = []
    pos = 0
    for col in range(count):
        down = col
        up = 1 if col == 0 else 5
        run = list(deck[pos:pos + down + up])
        pos += down + up
        for i, c in enumerate(run):
            c.face_up = i >= down
        columns.append(run)
    return columns, list(deck[pos:])


def deal_freecell(deck: Sequence[Card], count: int) -> Tuple[Columns, List[Card]]:
    columns: Columns = [[] for _ in range(count)]
    for i, c in enumerate(deck):
        c.face_up = True
        columns[i % count].append(c)
    return columns, []


DEAL_PATTERNS: Dict[str, DealPattern] = {
    "klondike": deal_klondike,
    "yukon": deal_yukon,
    "freecell": deal_freecell,
}
