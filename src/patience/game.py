"""Authoritative game state for one solitaire session.

``Game`` owns every pile and is the only thing that moves cards between
them. Rule violations are reported as ``False`` and leave the board
untouched; only caller bugs (bad indices, foreign piles) raise.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from patience.cards import Card, make_deck, shuffle
from patience.deals import DEAL_PATTERNS
from patience.piles import Pile
from patience.rules import RuleSet

logger = logging.getLogger(__name__)


class Zone(Enum):
    STOCK = "stock"
    WASTE = "waste"
    FOUNDATION = "foundations"
    TABLEAU = "tableau"
    CELL = "cells"

    @property
    def rules_key(self) -> str:
        return self.value


@dataclass(frozen=True)
class MoveTarget:
    """A run to lift: zone kind, pile index within the zone, lift-start index."""

    zone: Zone
    pile: int = 0
    card: int = -1


class Game:
    def __init__(self, rules: RuleSet, deck: Sequence[Card]):
        if len(deck) != rules.deck.size:
            raise ValueError(f"Rule set '{rules.name}' expects {rules.deck.size} cards, got {len(deck)}")
        self.rules = rules
        self.deck_size = len(deck)
        self.recycles = 0

        columns, rest = DEAL_PATTERNS[rules.tableau.deal](deck, rules.tableau.count)
        self.tableau: Tuple[Pile, ...] = tuple(
            Pile(rules.tableau, col, reveal_top=rules.tableau.flip_top) for col in columns
        )
        for c in rest:
            c.face_up = False
        self.stock = Pile(rules.stock, rest)
        self.waste = Pile(rules.waste)
        self.foundations: Tuple[Pile, ...] = self._empty_zone(Zone.FOUNDATION)
        self.cells: Tuple[Pile, ...] = self._empty_zone(Zone.CELL)
        logger.debug(
            "Dealt %s: tableau %s, stock %d",
            rules.name, [len(p) for p in self.tableau], len(self.stock),
        )

    def _empty_zone(self, zone: Zone) -> Tuple[Pile, ...]:
        fragment = self.rules.zone(zone)
        if fragment is None:
            return ()
        return tuple(Pile(fragment) for _ in range(fragment.count))

    # ----- Read access -----
    def piles(self) -> Iterator[Pile]:
        yield self.stock
        yield self.waste
        yield from self.foundations
        yield from self.tableau
        yield from self.cells

    def card_count(self) -> int:
        return sum(len(p) for p in self.piles())

    def pile(self, zone: Zone, index: int = 0) -> Pile:
        if zone is Zone.STOCK or zone is Zone.WASTE:
            if index != 0:
                raise IndexError(f"{zone.value} has a single pile, got index {index}")
            return self.stock if zone is Zone.STOCK else self.waste
        if zone is Zone.FOUNDATION:
            group = self.foundations
        elif zone is Zone.TABLEAU:
            group = self.tableau
        elif zone is Zone.CELL:
            group = self.cells
        else:
            raise TypeError(f"expected a Zone, got {zone!r}")
        if not 0 <= index < len(group):
            raise IndexError(f"{zone.value} has {len(group)} piles, got index {index}")
        return group[index]

    # ----- Operations -----
    def draw(self) -> bool:
        """Deal from stock to waste, or recycle the waste when the stock is empty."""
        if not len(self.stock):
            return self._recycle()
        moved = 0
        for _ in range(self.rules.stock.draw):
            if not len(self.stock):
                break
            c = self.stock.truncate_from(-1)[0]
            c.face_up = True
            self.waste.append([c])
            moved += 1
        logger.debug("Drew %d card(s), %d left in stock", moved, len(self.stock))
        return moved > 0

    def _recycle(self) -> bool:
        if not len(self.waste):
            return False
        cards = self.waste.truncate_from(0)
        cards.reverse()
        for c in cards:
            c.face_up = False
        self.stock.append(cards)
        self.recycles += 1
        logger.debug("Recycled %d card(s) into stock (recycle %d)", len(cards), self.recycles)
        return True

    def is_moveable(self, target: MoveTarget) -> bool:
        return self.pile(target.zone, target.pile).is_liftable(target.card)

    def _owns(self, pile: Pile) -> bool:
        return any(p is pile for p in self.piles())

    def move(self, target: MoveTarget, dest: Pile) -> bool:
        src = self.pile(target.zone, target.pile)
        if not self._owns(dest):
            raise ValueError("destination pile does not belong to this game")
        if dest is src or not src.is_liftable(target.card):
            return False
        start = src.index(target.card)
        run: List[Card] = list(src.cards[start:])
        if not dest.accepts(run):
            logger.debug("Rejected %r from %s onto %r", run, target, dest.top)
            return False
        dest.append(src.truncate_from(start))
        logger.debug("Moved %r from %s", run, target)
        return True

    def automove(self, target: MoveTarget) -> bool:
        """Send the run to the first foundation that takes it, else the first tableau pile."""
        if not self.is_moveable(target):
            return False
        for pile in self.foundations + self.tableau:
            if self.move(target, pile):
                return True
        return False


def deal(rules: RuleSet, rng: Optional[random.Random] = None) -> Game:
    deck = make_deck(rules.deck.number)
    shuffle(deck, rng)
    return Game(rules, deck)
