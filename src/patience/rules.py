"""Declarative rule sets for solitaire variants.

A rule set is plain data: one fragment per zone kind describing how cards
stack, what may be lifted and what may be placed. Rule sets ship as JSON
files under ``assets/rules`` and are validated once when loaded.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from enum import Enum
from functools import lru_cache
from typing import Any, Mapping, Optional, Tuple

from patience.cards import Card, is_rank
from patience.deals import DEAL_PATTERNS

logger = logging.getLogger(__name__)

_RULES_DIR = os.path.join(os.path.dirname(__file__), "assets", "rules")


class SuitRelation(Enum):
    SAME = "same"
    DIFFERENT = "different"
    COLOR_SAME = "color-same"
    COLOR_ALT = "color-alt"

    def holds(self, lower: Card, upper: Card) -> bool:
        if self is SuitRelation.SAME:
            return lower.suit == upper.suit
        if self is SuitRelation.DIFFERENT:
            return lower.suit != upper.suit
        if self is SuitRelation.COLOR_SAME:
            return lower.color == upper.color
        return lower.color != upper.color


class RankRelation(Enum):
    SAME = "same"
    ASCENDING = "asc"
    DESCENDING = "desc"

    def holds(self, lower: Card, upper: Card) -> bool:
        if self is RankRelation.SAME:
            return lower.rank == upper.rank
        if self is RankRelation.ASCENDING:
            return upper.rank - lower.rank == 1
        return lower.rank - upper.rank == 1


@dataclass(frozen=True)
class StackRule:
    suit: SuitRelation
    rank: RankRelation

    def allows(self, lower: Card, upper: Card) -> bool:
        """True if ``upper`` may sit directly on ``lower``."""
        return self.suit.holds(lower, upper) and self.rank.holds(lower, upper)


@dataclass(frozen=True)
class RemoveRule:
    limit: Optional[int] = None
    stacked: bool = True


@dataclass(frozen=True)
class AddRule:
    limit: Optional[int] = None
    empty: Optional[int] = None
    stacked: bool = True


@dataclass(frozen=True)
class ZoneRules:
    """Rules for every pile of one zone kind."""

    stack: Optional[StackRule] = None
    remove: Optional[RemoveRule] = None
    add: Optional[AddRule] = None
    count: int = 1
    # tableau only
    deal: Optional[str] = None
    flip_top: bool = False
    # stock only
    draw: int = 1
    refill: Optional[int] = None


@dataclass(frozen=True)
class DeckSpec:
    cards: int = 52
    number: int = 1

    @property
    def size(self) -> int:
        return self.cards * self.number


DEFAULT_STOCK = ZoneRules()
DEFAULT_WASTE = ZoneRules(remove=RemoveRule(limit=1))

_ZONE_KEYS = ("stock", "waste", "foundations", "tableau", "cells")
_TOP_KEYS = frozenset(("goal", "deck") + _ZONE_KEYS)
_FRAGMENT_KEYS = frozenset(("stack", "remove", "add", "count", "deal", "flip_top", "draw", "refill"))


@dataclass(frozen=True)
class RuleSet:
    name: str
    goal: Optional[str]
    deck: DeckSpec
    stock: ZoneRules
    waste: ZoneRules
    foundations: Optional[ZoneRules]
    tableau: ZoneRules
    cells: Optional[ZoneRules]

    def zone(self, zone) -> Optional[ZoneRules]:
        """Return the fragment for a :class:`patience.game.Zone`, or None if the zone is absent."""

        return getattr(self, zone.rules_key)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "RuleSet":
        if not isinstance(data, Mapping):
            raise TypeError(f"Rule set '{name}' must be a mapping")
        unknown = set(data) - _TOP_KEYS
        if unknown:
            raise ValueError(f"Rule set '{name}' has unknown keys: {sorted(unknown)}")
        if data.get("tableau") is None:
            raise ValueError(f"Rule set '{name}' must define a tableau")

        goal = data.get("goal")
        if goal is not None and not isinstance(goal, str):
            raise TypeError(f"Rule set '{name}' has a non-string goal")

        stock = _parse_zone(name, "stock", data.get("stock")) if data.get("stock") is not None else DEFAULT_STOCK
        waste = _parse_zone(name, "waste", data.get("waste")) if data.get("waste") is not None else DEFAULT_WASTE
        foundations = _parse_zone(name, "foundations", data.get("foundations"))
        tableau = _parse_zone(name, "tableau", data["tableau"])
        cells = _parse_zone(name, "cells", data.get("cells"))

        deal = tableau.deal or "klondike"
        if deal not in DEAL_PATTERNS:
            raise ValueError(f"Rule set '{name}' uses unknown deal pattern '{deal}'")
        if tableau.deal is None:
            tableau = replace(tableau, deal=deal)
        if stock.count != 1 or waste.count != 1:
            raise ValueError(f"Rule set '{name}' must have exactly one stock and one waste pile")

        return cls(
            name=name,
            goal=goal,
            deck=_parse_deck(name, data.get("deck")),
            stock=stock,
            waste=waste,
            foundations=foundations,
            tableau=tableau,
            cells=cells,
        )


def _positive(name: str, key: str, value, *, optional: bool = True) -> Optional[int]:
    if value is None and optional:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Rule set '{name}': '{key}' must be an integer, got {value!r}")
    if value <= 0:
        raise ValueError(f"Rule set '{name}': '{key}' must be positive, got {value}")
    return value


def _flag(name: str, key: str, value, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise TypeError(f"Rule set '{name}': '{key}' must be true or false")
    return value


def _parse_deck(name: str, raw) -> DeckSpec:
    if raw is None:
        return DeckSpec()
    if not isinstance(raw, Mapping):
        raise TypeError(f"Rule set '{name}': 'deck' must be a mapping")
    cards = _positive(name, "deck.cards", raw.get("cards", 52), optional=False)
    if cards != 52:
        raise ValueError(f"Rule set '{name}': only 52-card decks are supported, got {cards}")
    number = _positive(name, "deck.number", raw.get("number", 1), optional=False)
    return DeckSpec(cards=cards, number=number)


def _parse_stack(name: str, key: str, raw) -> Optional[StackRule]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise TypeError(f"Rule set '{name}': '{key}.stack' must be a mapping")
    try:
        suit = SuitRelation(raw.get("suit"))
    except ValueError as exc:
        raise ValueError(f"Rule set '{name}': unknown suit relation {raw.get('suit')!r} in '{key}'") from exc
    try:
        rank = RankRelation(raw.get("rank"))
    except ValueError as exc:
        raise ValueError(f"Rule set '{name}': unknown rank relation {raw.get('rank')!r} in '{key}'") from exc
    return StackRule(suit=suit, rank=rank)


def _parse_remove(name: str, key: str, raw) -> Optional[RemoveRule]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise TypeError(f"Rule set '{name}': '{key}.remove' must be a mapping")
    return RemoveRule(
        limit=_positive(name, f"{key}.remove.limit", raw.get("limit")),
        stacked=_flag(name, f"{key}.remove.stacked", raw.get("stacked"), True),
    )


def _parse_add(name: str, key: str, raw) -> Optional[AddRule]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise TypeError(f"Rule set '{name}': '{key}.add' must be a mapping")
    empty = raw.get("empty")
    if empty is not None and not is_rank(empty):
        raise ValueError(f"Rule set '{name}': '{key}.add.empty' must be a rank 1..13, got {empty!r}")
    return AddRule(
        limit=_positive(name, f"{key}.add.limit", raw.get("limit")),
        empty=empty,
        stacked=_flag(name, f"{key}.add.stacked", raw.get("stacked"), True),
    )


def _parse_zone(name: str, key: str, raw) -> Optional[ZoneRules]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise TypeError(f"Rule set '{name}': '{key}' must be a mapping or null")
    unknown = set(raw) - _FRAGMENT_KEYS
    if unknown:
        raise ValueError(f"Rule set '{name}': '{key}' has unknown keys: {sorted(unknown)}")
    defaults = {"foundations": 4, "tableau": 7, "cells": 4}
    deal = raw.get("deal")
    if deal is not None and not isinstance(deal, str):
        raise TypeError(f"Rule set '{name}': '{key}.deal' must be a string")
    return ZoneRules(
        stack=_parse_stack(name, key, raw.get("stack")),
        remove=_parse_remove(name, key, raw.get("remove")),
        add=_parse_add(name, key, raw.get("add")),
        count=_positive(name, f"{key}.count", raw.get("count", defaults.get(key, 1)), optional=False),
        deal=deal,
        flip_top=_flag(name, f"{key}.flip_top", raw.get("flip_top"), key == "tableau"),
        draw=_positive(name, f"{key}.draw", raw.get("draw", 1), optional=False),
        refill=_positive(name, f"{key}.refill", raw.get("refill")),
    )


def _rules_file_path(variant: str) -> str:
    return os.path.join(_RULES_DIR, f"{variant}.json")


@lru_cache()
def load_rule_set(variant: str) -> RuleSet:
    path = _rules_file_path(variant)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError as exc:
        raise KeyError(f"No rule set defined for variant '{variant}'") from exc
    logger.debug("Loaded rule set %s from %s", variant, path)
    return RuleSet.from_mapping(variant, raw)


def available_variants() -> Tuple[str, ...]:
    names = [f[:-len(".json")] for f in os.listdir(_RULES_DIR) if f.endswith(".json")]
    return tuple(sorted(names))
