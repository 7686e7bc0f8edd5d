# common.py - shared presentation settings, colours, fonts and card surfaces
import os
import json
import logging
import pygame
from typing import Optional

from patience.cards import RANK_TO_TEXT, Card, Color, Suit
from patience.rules import available_variants

logger = logging.getLogger(__name__)

# --- Settings ---
_DEFAULT_SETTINGS = {
    "variant": "klondike",
    "card_size": "Medium",   # Small | Medium | Large
}

_CURRENT_SETTINGS = dict(_DEFAULT_SETTINGS)

def _settings_dir() -> str:
    # Prefer %APPDATA% on Windows, else ~/.patience
    base = os.environ.get("APPDATA")
    if base:
        return os.path.join(base, "Patience")
    return os.path.join(os.path.expanduser("~"), ".patience")

def _settings_path() -> str:
    return os.path.join(_settings_dir(), "settings.json")

def get_current_settings():
    return dict(_CURRENT_SETTINGS)

def known_variant(name, fallback: str) -> str:
    """Return ``name`` if a rule set ships for it, else ``fallback``."""
    if name is None:
        return fallback
    name = str(name).strip().lower()
    if name in available_variants():
        return name
    logger.warning("Unknown variant %r, using %s", name, fallback)
    return fallback

def load_settings(path: Optional[str] = None):
    path = path or _settings_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return
    if isinstance(data, dict):
        _CURRENT_SETTINGS.update({
            "variant": known_variant(data.get("variant"), _CURRENT_SETTINGS["variant"]),
            "card_size": str(data.get("card_size", _CURRENT_SETTINGS["card_size"])),
        })

def save_settings(new_values: dict, path: Optional[str] = None):
    # Merge and write to disk
    _CURRENT_SETTINGS.update({
        k: new_values[k] for k in ("variant", "card_size") if k in new_values
    })
    path = path or _settings_path()
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(_CURRENT_SETTINGS, f, indent=2)
    except OSError as exc:
        logger.warning("Could not save settings to %s: %s", path, exc)

def _size_to_dims(size_name: str):
    size_name = (size_name or "Medium").capitalize()
    if size_name == "Small":
        return 75, 105
    if size_name == "Large":
        return 150, 210
    return 100, 140

def invalidate_card_caches():
    global _card_face_cache, _card_back_cache
    _card_face_cache = {}
    _card_back_cache = None

def apply_card_settings(size_name: str = None):
    global CARD_W, CARD_H
    if size_name is not None:
        CARD_W, CARD_H = _size_to_dims(size_name)
    invalidate_card_caches()


# ---------- Configuration ----------
SCREEN_W, SCREEN_H = 1280, 800
TABLE_BG = (2, 100, 40)

CARD_W, CARD_H = _size_to_dims(_CURRENT_SETTINGS["card_size"])
CARD_RADIUS = 10
CARD_GAP_X = 18
FAN_Y = 26
WASTE_PEEK = 3
DOUBLE_CLICK_MS = 350

# Fonts are initialized via setup_fonts() AFTER pygame.init()
FONT_UI = None
FONT_CORNER_RANK = None
FONT_CORNER_SUIT = None

def setup_fonts():
    global FONT_UI, FONT_CORNER_RANK, FONT_CORNER_SUIT
    name = pygame.font.get_default_font()
    FONT_UI = pygame.font.SysFont(name, 26, bold=True)
    FONT_CORNER_RANK = pygame.font.SysFont(name, 28, bold=True)
    # Suit glyphs need a Unicode-capable font
    FONT_CORNER_SUIT = pygame.font.SysFont("DejaVu Sans,Segoe UI Symbol", 26, bold=True)

# Colors
BLACK = (20, 20, 20)
WHITE = (245, 245, 245)
RED = (200, 20, 20)
BLUE = (34, 96, 200)
LIGHT = (220, 220, 220)
OUTLINE = (0, 61, 0)

def ink(card: Card):
    return RED if card.color is Color.RED else BLACK

# ---------- Card surfaces ----------
_card_face_cache = {}
_card_back_cache = None

def get_card_surface(card: Card):
    if not card.face_up:
        return get_back_surface()
    key = (card.suit, card.rank)
    if key in _card_face_cache:
        return _card_face_cache[key]
    surf = pygame.Surface((CARD_W, CARD_H), pygame.SRCALPHA)
    pygame.draw.rect(surf, WHITE, (0, 0, CARD_W, CARD_H), border_radius=CARD_RADIUS)
    pygame.draw.rect(surf, BLACK, (0, 0, CARD_W, CARD_H), width=3, border_radius=CARD_RADIUS)
    color = ink(card)
    margin = 8
    rtxt = FONT_CORNER_RANK.render(RANK_TO_TEXT[card.rank], True, color)
    stxt = FONT_CORNER_SUIT.render(Suit(card.suit).symbol, True, color)
    surf.blit(rtxt, (margin, margin))
    surf.blit(stxt, (margin, margin + rtxt.get_height() - 2))
    r180 = pygame.transform.rotate(rtxt, 180)
    s180 = pygame.transform.rotate(stxt, 180)
    surf.blit(r180, (CARD_W - margin - r180.get_width(), CARD_H - margin - r180.get_height() - s180.get_height() + 2))
    surf.blit(s180, (CARD_W - margin - s180.get_width(), CARD_H - margin - s180.get_height()))
    _card_face_cache[key] = surf
    return surf

def get_back_surface():
    global _card_back_cache
    if _card_back_cache is not None:
        return _card_back_cache
    surf = pygame.Surface((CARD_W, CARD_H), pygame.SRCALPHA)
    pygame.draw.rect(surf, WHITE, (0, 0, CARD_W, CARD_H), border_radius=CARD_RADIUS)
    pygame.draw.rect(surf, BLACK, (0, 0, CARD_W, CARD_H), width=3, border_radius=CARD_RADIUS)
    inset = 8
    inner_rect = pygame.Rect(inset, inset, CARD_W - 2 * inset, CARD_H - 2 * inset)
    pygame.draw.rect(surf, BLUE, inner_rect, border_radius=8)
    for i in range(-CARD_H, CARD_W, 12):
        pygame.draw.line(surf, LIGHT, (i, 8), (i + CARD_H, CARD_H - 8), 1)
    _card_back_cache = surf
    return surf

def draw_empty_slot(screen, x, y):
    pygame.draw.rect(screen, OUTLINE, (x, y, CARD_W, CARD_H), width=2, border_radius=CARD_RADIUS)

# ---------- Base Scene ----------
class Scene:
    def __init__(self, app):
        self.app = app
        self.next_scene = None
        self.quit_requested = False
    def handle_event(self, e): pass
    def update(self, dt): pass
    def draw(self, screen): pass
