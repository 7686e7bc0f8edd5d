# piles.py - a run of cards bound to one zone's rules
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from patience.cards import Card
from patience.rules import ZoneRules


class Pile:
    """
    Ordered cards, bottom (index 0) to top (last). Legality checks consult the
    pile's rule fragment; mutation primitives do not check anything, the Game
    calls ``accepts`` before ``append``.
    With ``reveal_top`` set, the top card is kept face-up whenever cards are
    removed (tableau piles).
    """

    def __init__(self, rules: ZoneRules, cards: Iterable[Card] = (), reveal_top: bool = False):
        self.rules = rules
        self.reveal_top = reveal_top
        self._cards: List[Card] = list(cards)
        if self.reveal_top and self._cards:
            self._cards[-1].face_up = True

    @property
    def cards(self) -> Tuple[Card, ...]:
        return tuple(self._cards)

    @property
    def top(self) -> Optional[Card]:
        return self._cards[-1] if self._cards else None

    def __len__(self):
        return len(self._cards)

    def __repr__(self):
        return f"Pile({self._cards!r})"

    def index(self, start: int) -> int:
        """Normalise a lift-start index; negative values count from the top."""
        n = len(self._cards)
        if not -n <= start < n:
            raise IndexError(f"card index {start} out of range for a pile of {n}")
        return start + n if start < 0 else start

    def valid_stack(self, run: Sequence[Card]) -> bool:
        # The top card's own face is not checked here, matching lift semantics.
        for lower, upper in zip(run, run[1:]):
            if self.rules.stack is None or not self.rules.stack.allows(lower, upper):
                return False
            if not lower.face_up:
                return False
        return True

    def _all_face_up_below_top(self, run: Sequence[Card]) -> bool:
        return all(c.face_up for c in run[:-1])

    def is_liftable(self, start: int) -> bool:
        remove = self.rules.remove
        if remove is None:
            return False
        run = self._cards[self.index(start):]
        if remove.limit is not None and len(run) > remove.limit:
            return False
        if remove.stacked:
            return self.valid_stack(run)
        return self._all_face_up_below_top(run)

    def accepts(self, run: Sequence[Card]) -> bool:
        add = self.rules.add
        if add is None or not run:
            return False
        if add.limit is not None and len(run) > add.limit:
            return False
        if self._cards:
            top = self._cards[-1]
            if not add.stacked:
                return self.valid_stack([top, run[0]])
            return self.valid_stack([top, *run])
        if add.stacked and not self.valid_stack(run):
            return False
        if add.empty is not None and run[0].rank != add.empty:
            return False
        return True

    def append(self, run: Sequence[Card]) -> None:
        self._cards.extend(run)

    def truncate_from(self, start: int) -> List[Card]:
        start = self.index(start)
        lifted = self._cards[start:]
        del self._cards[start:]
        if self.reveal_top and self._cards:
            self._cards[-1].face_up = True
        return lifted
