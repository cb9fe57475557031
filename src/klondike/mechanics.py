import math
from typing import Iterable, List, Optional, Sequence, Tuple

import pygame

from klondike import common as C
from klondike.common import Card, Pile


def pile_footprint(pile: Pile) -> pygame.Rect:
    """Area a pile occupies on the table: its anchor plus all of its fanned cards."""
    return pile.footprint()


def run_rect(cards: Sequence[Card], top_left: Tuple[int, int], fan_y: int) -> pygame.Rect:
    """Bounding rect of a dragged run drawn from ``top_left`` with ``fan_y`` spacing."""
    x, y = top_left
    if not cards:
        return pygame.Rect(x, y, 0, 0)
    return pygame.Rect(x, y, C.CARD_W, C.CARD_H + fan_y * (len(cards) - 1))


def _distance(a: Tuple[int, int], b: Tuple[int, int]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def drop_candidates(
    game,
    cards: Sequence[Card],
    source: Pile,
    drag_rect: pygame.Rect,
    piles: Optional[Iterable[Pile]] = None,
) -> List[Pile]:
    """Piles (not ``source``) that overlap ``drag_rect`` and would accept ``cards``."""
    piles = game.piles() if piles is None else piles
    out = []
    for pile in piles:
        if pile is source:
            continue
        if not pile_footprint(pile).colliderect(drag_rect):
            continue
        if game.can_move(cards, source, pile):
            out.append(pile)
    return out


def resolve_drop_target(
    game,
    cards: Sequence[Card],
    source: Pile,
    drag_rect: pygame.Rect,
    release_pos: Tuple[int, int],
    piles: Optional[Iterable[Pile]] = None,
) -> Optional[Pile]:
    """
    Pick the destination for a released drag.

    1. Among legal piles overlapping ``drag_rect``, the one whose footprint
       center is nearest the dragged rect's center wins, however small its
       overlap.
    2. Otherwise, any other pile whose footprint contains ``release_pos``.
       This pile is not checked for legality; the caller still goes through
       ``try_move`` and snaps the cards back if it refuses.
    3. Otherwise ``None``: nothing moved and the caller restores the cards.
    """
    piles = list(game.piles() if piles is None else piles)
    candidates = drop_candidates(game, cards, source, drag_rect, piles)
    if candidates:
        center = drag_rect.center
        return min(candidates, key=lambda p: _distance(pile_footprint(p).center, center))
    for pile in piles:
        if pile is source:
            continue
        if pile_footprint(pile).collidepoint(release_pos):
            return pile
    return None
