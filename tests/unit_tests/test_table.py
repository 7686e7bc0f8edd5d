import importlib
import random
import types

import pytest

from patience.cards import Suit
from patience.game import MoveTarget, Zone

from conftest import arrange, snapshot

H, C, S = Suit.HEARTS, Suit.CLUBS, Suit.SPADES
T, F = Zone.TABLEAU, Zone.FOUNDATION


@pytest.fixture
def scene(dummy_pygame):
    from patience.table import TableScene

    return TableScene(app=None, variant="klondike", rng=random.Random(8))


def _views(scene, zone):
    return [v for v in scene.views if v.zone is zone]


def _top_center(view):
    return view.rect_for_index(max(0, len(view.pile) - 1)).center


def _mouse(pygame, kind, pos):
    return pygame.event.Event(kind, {"pos": pos, "button": 1})


def test_layout_has_a_view_per_pile(scene):
    assert len(scene.views) == 2 + 4 + 7
    assert scene.stock_view.pile is scene.game.stock
    assert [v.pile for v in _views(scene, T)] == list(scene.game.tableau)


def test_click_on_stock_draws(scene, dummy_pygame):
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, scene.stock_view.rect_for_index(0).center))
    assert len(scene.game.stock) == 21
    assert len(scene.game.waste) == 3


def test_find_target_reports_lift_index(scene):
    tab = _views(scene, T)[3]
    assert scene.find_target(_top_center(tab)) == MoveTarget(T, 3, 3)
    assert scene.find_target((5000, 5000)) is None


def test_waste_hit_only_sees_peeked_cards(scene):
    for _ in range(3):
        scene.game.draw()
    waste = _views(scene, Zone.WASTE)[0]
    assert waste.first_visible() == 6
    assert waste.hit(_top_center(waste)) == 8


def test_drag_and_drop_moves_run(scene, dummy_pygame):
    arrange(scene.game, {(T, 0): [(7, H, True)], (T, 1): [(8, S, True)]})
    src, dst = _views(scene, T)[0], _views(scene, T)[1]
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, _top_center(src)))
    assert scene.drag is not None
    move = dummy_pygame.event.Event(dummy_pygame.MOUSEMOTION, {"pos": _top_center(dst), "rel": (0, 0), "buttons": (1, 0, 0)})
    scene.handle_event(move)
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONUP, _top_center(dst)))
    assert scene.drag is None
    assert len(scene.game.tableau[0]) == 0
    assert [c.rank for c in scene.game.tableau[1].cards] == [8, 7]


def test_drag_not_started_for_unliftable_card(scene, dummy_pygame):
    arrange(scene.game, {(T, 0): [(9, S, False), (8, H, True)]})
    src = _views(scene, T)[0]
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, src.rect_for_index(0).topleft))
    assert scene.drag is None


def test_abandoned_drag_changes_nothing(scene, dummy_pygame):
    arrange(scene.game, {(T, 0): [(7, H, True)], (T, 1): [(8, S, True)]})
    before = snapshot(scene.game)
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, _top_center(_views(scene, T)[0])))
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONUP, (5000, 5000)))
    assert scene.drag is None
    assert snapshot(scene.game) == before


def test_double_click_automoves_to_foundation(scene, dummy_pygame, monkeypatch):
    ticks = iter([1000, 1200])
    monkeypatch.setattr(dummy_pygame.time, "get_ticks", lambda: next(ticks))
    arrange(scene.game, {(T, 0): [(1, C, True)]})
    pos = _top_center(_views(scene, T)[0])
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, pos))
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONUP, pos))
    assert len(scene.game.tableau[0]) == 1
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, pos))
    assert scene.game.foundations[0].top.rank == 1
    assert len(scene.game.tableau[0]) == 0


def test_slow_second_click_is_not_a_double_click(scene, dummy_pygame, monkeypatch):
    ticks = iter([1000, 5000])
    monkeypatch.setattr(dummy_pygame.time, "get_ticks", lambda: next(ticks))
    arrange(scene.game, {(T, 0): [(1, C, True)]})
    pos = _top_center(_views(scene, T)[0])
    for kind in (dummy_pygame.MOUSEBUTTONDOWN, dummy_pygame.MOUSEBUTTONUP, dummy_pygame.MOUSEBUTTONDOWN):
        scene.handle_event(_mouse(dummy_pygame, kind, pos))
    assert len(scene.game.foundations[0]) == 0


def test_keys(scene, dummy_pygame):
    old = scene.game
    scene.handle_event(dummy_pygame.event.Event(dummy_pygame.KEYDOWN, {"key": dummy_pygame.K_n, "mod": 0}))
    assert scene.game is not old
    assert scene.game.card_count() == 52
    scene.handle_event(dummy_pygame.event.Event(dummy_pygame.KEYDOWN, {"key": dummy_pygame.K_ESCAPE, "mod": 0}))
    assert scene.quit_requested


@pytest.mark.parametrize("variant", ["klondike", "yukon", "freecell"])
def test_draw_renders_every_variant(dummy_pygame, variant):
    from patience.table import TableScene

    scene = TableScene(app=None, variant=variant, rng=random.Random(1))
    screen = dummy_pygame.Surface((1280, 800))
    scene.draw(screen)
    assert len(_views(scene, Zone.CELL)) == len(scene.game.cells)


def test_draw_while_dragging(scene, dummy_pygame):
    arrange(scene.game, {(T, 0): [(7, H, True)]})
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, _top_center(_views(scene, T)[0])))
    scene.draw(dummy_pygame.Surface((1280, 800)))
    assert scene.drag is not None


def test_settings_round_trip(tmp_path, dummy_pygame):
    from patience import common as C

    path = str(tmp_path / "settings.json")
    C.save_settings({"variant": "yukon", "card_size": "Large"}, path=path)
    C._CURRENT_SETTINGS.update(C._DEFAULT_SETTINGS)
    C.load_settings(path)
    assert C.get_current_settings() == {"variant": "yukon", "card_size": "Large"}
    C._CURRENT_SETTINGS.update(C._DEFAULT_SETTINGS)


def test_unreadable_settings_fall_back(tmp_path, dummy_pygame):
    from patience import common as C

    path = tmp_path / "settings.json"
    C._CURRENT_SETTINGS.update(C._DEFAULT_SETTINGS)
    path.write_text("{not json", encoding="utf-8")
    C.load_settings(str(path))
    assert C.get_current_settings() == C._DEFAULT_SETTINGS


def test_main_loop(monkeypatch, dummy_pygame):
    pygame = dummy_pygame
    entry = importlib.import_module("patience.__main__")
    from patience import common as C

    monkeypatch.setenv("PATIENCE_VARIANT", "freecell")
    monkeypatch.setattr(C, "SCREEN_W", C.SCREEN_W)
    monkeypatch.setattr(C, "SCREEN_H", C.SCREEN_H)
    monkeypatch.setattr(C, "load_settings", lambda path=None: None)

    class DummyClock:
        def tick(self, _fps):
            return 16

    monkeypatch.setattr(pygame.time, "Clock", lambda: DummyClock())
    monkeypatch.setattr(pygame.display, "Info", lambda: types.SimpleNamespace(current_w=1600, current_h=900))
    monkeypatch.setattr(pygame.display, "set_mode", lambda size, flags=0: pygame.Surface(size))
    monkeypatch.setattr(pygame.display, "flip", lambda: None)
    monkeypatch.setattr(pygame.display, "set_caption", lambda _title: None)

    steps = [
        [pygame.event.Event(pygame.VIDEORESIZE, {"size": (1024, 768), "w": 1024, "h": 768})],
        [pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_n, "mod": 0})],
        [pygame.event.Event(pygame.QUIT, {})],
    ]
    monkeypatch.setattr(pygame.event, "get", lambda: steps.pop(0) if steps else [])

    quit_calls = []
    real_quit = pygame.quit
    monkeypatch.setattr(pygame, "quit", lambda: (quit_calls.append(True), real_quit()))

    entry.main()

    assert quit_calls
    assert not steps
    assert (C.SCREEN_W, C.SCREEN_H) == (1024, 768)


def test_third_quick_click_is_not_another_double_click(scene, dummy_pygame, monkeypatch):
    ticks = iter([1000, 1100, 1200])
    monkeypatch.setattr(dummy_pygame.time, "get_ticks", lambda: next(ticks))
    arrange(scene.game, {(T, 0): [(1, H, True), (1, C, True)]})
    pos = _top_center(_views(scene, T)[0])
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, pos))
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONUP, pos))
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, pos))
    assert len(scene.game.tableau[0]) == 1
    scene.handle_event(_mouse(dummy_pygame, dummy_pygame.MOUSEBUTTONDOWN, pos))
    assert len(scene.game.tableau[0]) == 1
    assert sum(len(f) for f in scene.game.foundations) == 1
    assert scene.drag is not None


def test_unknown_saved_variant_falls_back(tmp_path, dummy_pygame):
    from patience import common as C
    from patience.table import TableScene

    path = tmp_path / "settings.json"
    C._CURRENT_SETTINGS.update(C._DEFAULT_SETTINGS)
    path.write_text('{"variant": "spider", "card_size": "Small"}', encoding="utf-8")
    C.load_settings(str(path))
    assert C.get_current_settings() == {"variant": "klondike", "card_size": "Small"}
    assert TableScene(app=None).game.rules.name == "klondike"
    C._CURRENT_SETTINGS.update(C._DEFAULT_SETTINGS)


def test_known_variant_normalises_names(dummy_pygame):
    from patience import common as C

    assert C.known_variant(" FreeCell ", "klondike") == "freecell"
    assert C.known_variant(None, "yukon") == "yukon"
    assert C.known_variant("spider", "klondike") == "klondike"


def test_unknown_variant_override_falls_back(monkeypatch, dummy_pygame):
    pygame = dummy_pygame
    entry = importlib.import_module("patience.__main__")
    from patience import common as C

    monkeypatch.setenv("PATIENCE_VARIANT", "spider")
    monkeypatch.setattr(C, "SCREEN_W", C.SCREEN_W)
    monkeypatch.setattr(C, "SCREEN_H", C.SCREEN_H)
    monkeypatch.setattr(C, "load_settings", lambda path=None: None)
    monkeypatch.setattr(pygame.display, "Info", lambda: types.SimpleNamespace(current_w=1600, current_h=900))
    monkeypatch.setattr(pygame.display, "set_mode", lambda size, flags=0: pygame.Surface(size))
    monkeypatch.setattr(pygame.display, "flip", lambda: None)
    monkeypatch.setattr(pygame.display, "set_caption", lambda _title: None)
    monkeypatch.setattr(pygame.event, "get", lambda: [pygame.event.Event(pygame.QUIT, {})])

    built = []
    real_scene = entry.TableScene

    def recording_scene(app, variant=None):
        scene = real_scene(app, variant=variant)
        built.append(scene)
        return scene

    monkeypatch.setattr(entry, "TableScene", recording_scene)
    entry.main()

    assert [s.variant for s in built] == ["klondike"]
