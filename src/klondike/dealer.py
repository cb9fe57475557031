"""Deck construction, shuffling and the Klondike deal."""

from __future__ import annotations

import random
from typing import List, MutableSequence, Optional, Sequence, TypeVar

from klondike.common import Card, Pile

T = TypeVar("T")

TABLEAU_PILES = 7


def build_deck() -> List[Card]:
    """Return the 52 (suit, rank) combinations, face-down, in suit-major order."""

    return [Card(suit, rank, False) for suit in range(4) for rank in range(1, 14)]


def fisher_yates(items: MutableSequence[T], rng: Optional[random.Random] = None) -> None:
    """Shuffle ``items`` in place with a uniform Fisher–Yates pass."""

    rng = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def deal(order: Sequence[Card], tableau: Sequence[Pile], stock: Pile) -> None:
    """Deal ``order`` onto empty piles, one tableau pile at a time.

    Pile ``i`` receives ``i + 1`` cards with only the last one face-up; the rest
    of the order goes face-down to the stock, so ``order[-1]`` ends up on top.
    """

    if len(order) < sum(range(1, len(tableau) + 1)):
        raise ValueError(f"Cannot deal {len(order)} cards onto {len(tableau)} tableau piles")
    pos = 0
    for pile_index, pile in enumerate(tableau):
        for card_num in range(pile_index + 1):
            card = order[pos]
            pos += 1
            card.face_up = card_num == pile_index
            pile.append_all([card])
    rest = list(order[pos:])
    for card in rest:
        card.face_up = False
    stock.append_all(rest)
