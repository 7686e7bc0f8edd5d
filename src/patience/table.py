# table.py - pygame table: renders the game's piles and turns pointer input into engine calls
import logging
import random
from typing import List, Optional, Tuple

import pygame

from patience import common as C
from patience.game import Game, MoveTarget, Zone, deal
from patience.piles import Pile
from patience.rules import load_rule_set

logger = logging.getLogger(__name__)


class PileView:
    """Screen placement of one pile. Holds no game state of its own."""

    def __init__(self, pile: Pile, zone: Zone, index: int, x: int, y: int,
                 fan_x: int = 0, fan_y: int = 0, peek: Optional[int] = None):
        self.pile = pile
        self.zone = zone
        self.index = index
        self.x, self.y = x, y
        self.fan_x = fan_x
        self.fan_y = fan_y
        self.peek = peek

    def first_visible(self) -> int:
        if self.peek:
            return max(0, len(self.pile) - self.peek)
        return 0

    def rect_for_index(self, idx: int) -> pygame.Rect:
        step = idx - self.first_visible()
        return pygame.Rect(self.x + step * self.fan_x, self.y + step * self.fan_y, C.CARD_W, C.CARD_H)

    def hit(self, pos) -> Optional[int]:
        """Index of the card under ``pos``, -1 for an empty pile's outline, else None."""
        if not len(self.pile):
            if pygame.Rect(self.x, self.y, C.CARD_W, C.CARD_H).collidepoint(pos):
                return -1
            return None
        for i in reversed(range(self.first_visible(), len(self.pile))):
            if self.rect_for_index(i).collidepoint(pos):
                return i
        return None

    def draw(self, screen, until: Optional[int] = None):
        cards = self.pile.cards
        end = len(cards) if until is None else until
        if end <= 0:
            C.draw_empty_slot(screen, self.x, self.y)
        for i in range(self.first_visible(), end):
            r = self.rect_for_index(i)
            screen.blit(C.get_card_surface(cards[i]), r.topleft)


class TableScene(C.Scene):
    def __init__(self, app, variant: Optional[str] = None, rng: Optional[random.Random] = None):
        super().__init__(app)
        self.variant = variant or C.get_current_settings()["variant"]
        self.rng = rng
        self.game: Game = None
        self.views: List[PileView] = []
        self.stock_view: Optional[PileView] = None
        # Drag state: (target, grab offset, current mouse pos)
        self.drag: Optional[Tuple[MoveTarget, Tuple[int, int], Tuple[int, int]]] = None
        self._last_click_time = None
        self._last_click_pos = (0, 0)
        self.deal_new()

    def deal_new(self):
        self.game = deal(load_rule_set(self.variant), self.rng)
        self.drag = None
        self.compute_layout()
        logger.debug("New %s deal", self.variant)

    # ----- Layout -----
    def compute_layout(self):
        g = self.game
        gap = C.CARD_GAP_X
        top_y = 20
        x = gap
        self.stock_view = PileView(g.stock, Zone.STOCK, 0, x, top_y)
        x += C.CARD_W + gap
        waste_view = PileView(g.waste, Zone.WASTE, 0, x, top_y, fan_x=20, peek=C.WASTE_PEEK)
        x += C.CARD_W + 20 * (C.WASTE_PEEK - 1) + gap * 2
        views = [self.stock_view, waste_view]
        for zone, piles in ((Zone.CELL, g.cells), (Zone.FOUNDATION, g.foundations)):
            for i, p in enumerate(piles):
                views.append(PileView(p, zone, i, x, top_y))
                x += C.CARD_W + gap
            if piles:
                x += gap
        tab_y = top_y + C.CARD_H + 40
        for i, p in enumerate(g.tableau):
            views.append(PileView(p, Zone.TABLEAU, i, gap + i * (C.CARD_W + gap), tab_y, fan_y=C.FAN_Y))
        self.views = views

    def _view(self, target: MoveTarget) -> PileView:
        for v in self.views:
            if v.zone is target.zone and v.index == target.pile:
                return v
        raise KeyError(target)

    # Hit-testing order: tableau, cells, foundations, waste
    def _source_views(self) -> List[PileView]:
        order = (Zone.TABLEAU, Zone.CELL, Zone.FOUNDATION, Zone.WASTE)
        return [v for z in order for v in self.views if v.zone is z]

    def find_target(self, pos) -> Optional[MoveTarget]:
        for v in self._source_views():
            hi = v.hit(pos)
            if hi is not None and hi >= 0:
                return MoveTarget(v.zone, v.index, hi)
        return None

    def find_drop(self, pos) -> Optional[PileView]:
        for v in self._source_views():
            if v.hit(pos) is not None:
                return v
        return None

    # ----- Event handling -----
    def handle_event(self, e):
        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            self._on_mouse_down(e.pos)
        elif e.type == pygame.MOUSEMOTION:
            if self.drag:
                target, offset, _ = self.drag
                self.drag = (target, offset, e.pos)
        elif e.type == pygame.MOUSEBUTTONUP and e.button == 1:
            self._on_mouse_up(e.pos)
        elif e.type == pygame.KEYDOWN:
            if e.key == pygame.K_n:
                self.deal_new()
            elif e.key == pygame.K_ESCAPE:
                self.quit_requested = True

    def _on_mouse_down(self, pos):
        if self.stock_view.hit(pos) is not None:
            self.game.draw()
            return
        now = pygame.time.get_ticks()
        lx, ly = self._last_click_pos
        double = (self._last_click_time is not None
                  and now - self._last_click_time <= C.DOUBLE_CLICK_MS
                  and abs(pos[0] - lx) <= 6 and abs(pos[1] - ly) <= 6)
        self._last_click_time = now
        self._last_click_pos = pos

        target = self.find_target(pos)
        if target is None:
            return
        if double:
            self.drag = None
            self._last_click_time = None
            self.game.automove(target)
            return
        if self.game.is_moveable(target):
            r = self._view(target).rect_for_index(target.card)
            self.drag = (target, (pos[0] - r.x, pos[1] - r.y), pos)

    def _on_mouse_up(self, pos):
        if not self.drag:
            return
        target, _, _ = self.drag
        self.drag = None
        dest = self.find_drop(pos)
        if dest is None:
            return
        self.game.move(target, dest.pile)

    # ----- Drawing -----
    def draw(self, screen):
        screen.fill(C.TABLE_BG)
        dragged = self.drag[0] if self.drag else None
        for v in self.views:
            until = None
            if dragged and v.zone is dragged.zone and v.index == dragged.pile:
                until = dragged.card
            v.draw(screen, until)
        if dragged:
            _, (ox, oy), (mx, my) = self.drag
            cards = self._view(dragged).pile.cards[dragged.card:]
            for i, c in enumerate(cards):
                screen.blit(C.get_card_surface(c), (mx - ox, my - oy + i * C.FAN_Y))
