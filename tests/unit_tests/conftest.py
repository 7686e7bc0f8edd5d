import importlib
from typing import Dict, List, Sequence, Tuple

import pytest

from patience.cards import Suit
from patience.game import Game, Zone

CardSpec = Tuple[int, Suit, bool]


def arrange(game: Game, layout: Dict[Tuple[Zone, int], Sequence[CardSpec]]) -> Game:
    """Lay out specific cards on a dealt game; every other card goes to the stock face-down."""
    pool: Dict[Tuple[int, Suit], List] = {}
    for pile in list(game.piles()):
        if len(pile):
            for c in pile.truncate_from(0):
                pool.setdefault((c.rank, c.suit), []).append(c)
    for (zone, index), specs in layout.items():
        pile = game.pile(zone, index)
        for rank, suit, up in specs:
            c = pool[(rank, suit)].pop()
            c.face_up = up
            pile.append([c])
    rest = [c for cards in pool.values() for c in cards]
    for c in rest:
        c.face_up = False
    game.stock.append(rest)
    return game


def snapshot(game: Game):
    return [[(id(c), c.rank, c.suit, c.face_up) for c in p.cards] for p in game.piles()]


class DummyFont:
    def __init__(self, size):
        self._size = max(1, int(size) if size else 1)

    def render(self, text, *_, **__):
        pygame = importlib.import_module("pygame")
        width = max(1, len(str(text)) * max(self._size // 2, 1))
        return pygame.Surface((width, self._size), pygame.SRCALPHA)

    def size(self, text):
        return max(1, len(str(text)) * max(self._size // 2, 1)), self._size

    def get_height(self):
        return self._size


@pytest.fixture
def dummy_pygame(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    pygame = importlib.import_module("pygame")
    monkeypatch.setattr(pygame.font, "SysFont", lambda name, size, bold=False, italic=False: DummyFont(size), raising=False)
    monkeypatch.setattr(pygame.font, "get_default_font", lambda: "dummy", raising=False)

    from patience import common as C

    C.setup_fonts()
    C.invalidate_card_caches()
    return pygame
