# common.py - shared settings, cards and piles for the Klondike table
import os
import json
from enum import Enum
from typing import Iterable, List, Optional

import pygame

# Defaults (may be overridden by persisted settings)
_DEFAULT_SETTINGS = {
    "card_size": "Medium",   # Small | Medium | Large
    "draw_count": 3,          # 1 | 3
}

_CURRENT_SETTINGS = dict(_DEFAULT_SETTINGS)

def _settings_dir() -> str:
    # Prefer %APPDATA% on Windows, else ~/.klondike_table
    base = os.environ.get("APPDATA")
    if base:
        return os.path.join(base, "KlondikeTable")
    return os.path.join(os.path.expanduser("~"), ".klondike_table")

def _settings_path() -> str:
    return os.path.join(_settings_dir(), "settings.json")

def _clean_draw_count(value) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return _DEFAULT_SETTINGS["draw_count"]
    return n if n in (1, 3) else _DEFAULT_SETTINGS["draw_count"]

def get_current_settings():
    return dict(_CURRENT_SETTINGS)

def load_settings():
    global _CURRENT_SETTINGS
    try:
        with open(_settings_path(), "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return
    if isinstance(data, dict):
        _CURRENT_SETTINGS.update({
            "card_size": data.get("card_size", _CURRENT_SETTINGS["card_size"]),
            "draw_count": _clean_draw_count(data.get("draw_count", _CURRENT_SETTINGS["draw_count"])),
        })

def save_settings(new_values: dict):
    # Merge and write to disk
    global _CURRENT_SETTINGS
    if "draw_count" in new_values:
        new_values = dict(new_values, draw_count=_clean_draw_count(new_values["draw_count"]))
    _CURRENT_SETTINGS.update({
        k: new_values[k] for k in ("card_size", "draw_count") if k in new_values
    })
    try:
        os.makedirs(_settings_dir(), exist_ok=True)
        with open(_settings_path(), "w", encoding="utf-8") as f:
            json.dump(_CURRENT_SETTINGS, f, indent=2)
    except OSError:
        pass

def _size_to_dims(size_name: str):
    size_name = (size_name or "Medium").capitalize()
    if size_name == "Small":
        return 75, 105
    if size_name == "Large":
        return 150, 210
    return 100, 140

def apply_card_settings(size_name: str = None):
    global CARD_W, CARD_H, FAN_Y_UP, FAN_Y_DOWN
    if size_name is not None:
        CARD_W, CARD_H = _size_to_dims(size_name)
        FAN_Y_UP = max(18, int(CARD_H * 0.22))
        FAN_Y_DOWN = max(8, int(CARD_H * 0.09))

# Load any persisted settings and apply now
load_settings()


# ---------- Configuration ----------
SCREEN_W, SCREEN_H = 1280, 800
TABLE_BG = (2, 100, 40)

CARD_W, CARD_H = _size_to_dims(_CURRENT_SETTINGS.get("card_size", "Medium"))
CARD_RADIUS = 10
CARD_GAP_X = 18
CARD_GAP_Y = 26
# Tableau fanning: face-down cards sit tighter than face-up ones
FAN_Y_UP = max(18, int(CARD_H * 0.22))
FAN_Y_DOWN = max(8, int(CARD_H * 0.09))

TOP_BAR_H = 60

# Colors
BLACK = (20, 20, 20)
WHITE = (245, 245, 245)
RED = (200, 20, 20)
GOLD = (230, 190, 80)
LIGHT = (220, 220, 220)

SPADES, HEARTS, DIAMONDS, CLUBS = range(4)
SUITS = ["♠", "♥", "♦", "♣"]  # 0..3
SUIT_NAMES = ["Spades", "Hearts", "Diamonds", "Clubs"]
ACE, JACK, QUEEN, KING = 1, 11, 12, 13
RANK_TO_TEXT = {1:"A", 11:"J", 12:"Q", 13:"K"}
for _r in range(2,11):
    RANK_TO_TEXT[_r] = str(_r)
RANK_NAMES = {1: "Ace", 11: "Jack", 12: "Queen", 13: "King"}

def is_red(suit):
    return suit in (HEARTS, DIAMONDS)

# ---------- Cards ----------
class Card:
    """A playing card. Identity (suit, rank) never changes; only ``face_up`` does.

    ``pile`` is a back-reference to the owning :class:`Pile`, kept up to date by
    :meth:`Pile.append_all`.
    """

    __slots__ = ("suit", "rank", "face_up", "pile")

    def __init__(self, suit, rank, face_up=False):
        self.suit = suit   # 0..3
        self.rank = rank   # 1..13
        self.face_up = face_up
        self.pile: Optional["Pile"] = None

    def color(self):
        return "red" if is_red(self.suit) else "black"

    def flip(self):
        self.face_up = not self.face_up

    def can_stack_on(self, other: Optional["Card"]) -> bool:
        """Opposite color and exactly one rank lower (tableau building)."""
        if other is None:
            return False
        return self.color() != other.color() and self.rank == other.rank - 1

    def can_place_on_foundation(self, top: Optional["Card"]) -> bool:
        """Ace on an empty foundation, otherwise same suit and one rank higher."""
        if top is None:
            return self.rank == ACE
        return self.suit == top.suit and self.rank == top.rank + 1

    def name(self) -> str:
        return f"{RANK_NAMES.get(self.rank, str(self.rank))} of {SUIT_NAMES[self.suit]}"

    def __repr__(self):
        return f"{RANK_TO_TEXT[self.rank]}{SUITS[self.suit]}{'↑' if self.face_up else '↓'}"

# ---------- Piles ----------
class PileRole(str, Enum):
    STOCK = "stock"
    WASTE = "waste"
    TABLEAU = "tableau"
    FOUNDATION = "foundation"


class Pile:
    """Ordered cards (index 0 = bottom) with a fixed role.

    Besides the rules, a pile knows where it sits on the table so hosts and the
    drop resolver can ask for card rectangles. Only tableau piles fan.
    """

    def __init__(self, role: PileRole, index: int = 0, x: int = 0, y: int = 0):
        self.role = PileRole(role)
        self.index = index
        self.x, self.y = x, y
        self.cards: List[Card] = []

    # ----- Queries -----
    def top_card(self) -> Optional[Card]:
        return self.cards[-1] if self.cards else None

    def is_empty(self) -> bool:
        return not self.cards

    def __len__(self):
        return len(self.cards)

    def can_accept(self, card: Card, relaxed: bool = False) -> bool:
        """Whether ``card`` (bottom of a run) may be placed here.

        ``relaxed`` lets an empty tableau take any card instead of only a King.
        It is a debugging aid and not part of the standard rules.
        """
        if card is None:
            return False
        if self.role in (PileRole.STOCK, PileRole.WASTE):
            return False
        top = self.top_card()
        if self.role is PileRole.FOUNDATION:
            return card.can_place_on_foundation(top)
        if top is None:
            return relaxed or card.rank == KING
        if not top.face_up:
            return False
        return card.can_stack_on(top)

    def movable_run(self, start_card: Card) -> List[Card]:
        """Face-up cards from ``start_card`` through the top, or [] if the run is broken."""
        try:
            start = self.cards.index(start_card)
        except ValueError:
            return []
        run = self.cards[start:]
        if not all(c.face_up for c in run):
            return []
        return run

    # ----- Mutators -----
    def append_all(self, cards: Iterable[Card]):
        for c in cards:
            self.cards.append(c)
            c.pile = self

    def remove_from(self, start_card: Card) -> List[Card]:
        """Remove ``start_card`` and everything above it, keeping their order.

        On a tableau pile the newly exposed top is turned face-up.
        """
        try:
            start = self.cards.index(start_card)
        except ValueError:
            return []
        removed = self.cards[start:]
        del self.cards[start:]
        if self.role is PileRole.TABLEAU and self.cards and not self.cards[-1].face_up:
            self.cards[-1].face_up = True
        return removed

    def pop_top(self) -> Optional[Card]:
        if not self.cards:
            return None
        return self.cards.pop()

    def clear(self):
        for c in self.cards:
            c.pile = None
        self.cards = []

    # ----- Geometry -----
    def _offset_for_index(self, idx):
        if self.role is not PileRole.TABLEAU:
            return 0
        off = 0
        for c in self.cards[:idx]:
            off += FAN_Y_UP if c.face_up else FAN_Y_DOWN
        return off

    def anchor_rect(self):
        return pygame.Rect(self.x, self.y, CARD_W, CARD_H)

    def rect_for_index(self, idx):
        return pygame.Rect(self.x, self.y + self._offset_for_index(idx), CARD_W, CARD_H)

    def top_rect(self):
        if not self.cards:
            return self.anchor_rect()
        return self.rect_for_index(len(self.cards)-1)

    def footprint(self):
        """Anchor rect unioned with every visible card rect."""
        rect = self.anchor_rect()
        if self.cards:
            rect.union_ip(self.top_rect())
        return rect

    def hit(self, pos):
        if not self.cards:
            if self.anchor_rect().collidepoint(pos):
                return -1
            return None
        for i in reversed(range(len(self.cards))):
            if self.rect_for_index(i).collidepoint(pos):
                return i
        return None

    def __repr__(self):
        return f"<Pile {self.role.value}[{self.index}] {len(self.cards)} cards>"

# ---------- Base Scene ----------
class Scene:
    def __init__(self, app):
        self.app = app
        self.next_scene = None
        self.quit_requested = False
    def handle_event(self, e): pass
    def update(self, dt): pass
    def draw(self, screen): pass
