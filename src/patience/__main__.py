# __main__.py - entry point: python -m patience
import logging
import os

import pygame

from patience import common as C
from patience.table import TableScene


def _initial_window_size():
    info = pygame.display.Info()
    # Keep a safety margin so the window never hides under taskbar
    margin_w, margin_h = 120, 140
    w = min(C.SCREEN_W, max(640, info.current_w - margin_w))
    h = min(C.SCREEN_H, max(480, info.current_h - margin_h))
    return w, h


def main():
    level = os.environ.get("PATIENCE_LOG", "WARNING").strip().upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    os.environ.setdefault("SDL_VIDEO_CENTERED", "1")
    pygame.init()

    C.load_settings()
    settings = C.get_current_settings()
    C.apply_card_settings(size_name=settings["card_size"])
    variant = C.known_variant(os.environ.get("PATIENCE_VARIANT") or None, settings["variant"])

    w, h = _initial_window_size()
    C.SCREEN_W, C.SCREEN_H = w, h
    screen = pygame.display.set_mode((w, h), pygame.RESIZABLE)
    pygame.display.set_caption(f"Patience - {variant.capitalize()}")
    C.setup_fonts()
    clock = pygame.time.Clock()

    scene = TableScene(app=None, variant=variant)
    running = True
    while running:
        dt = clock.tick(60) / 1000.0
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                running = False
            elif e.type == pygame.VIDEORESIZE:
                C.SCREEN_W, C.SCREEN_H = e.size
                screen = pygame.display.set_mode((C.SCREEN_W, C.SCREEN_H), pygame.RESIZABLE)
                scene.compute_layout()
            else:
                scene.handle_event(e)
        if scene.quit_requested:
            running = False
        if scene.next_scene is not None:
            scene = scene.next_scene
        scene.update(dt)
        scene.draw(screen)
        pygame.display.flip()
    pygame.quit()


if __name__ == "__main__":
    main()
