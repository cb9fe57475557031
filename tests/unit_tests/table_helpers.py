from typing import List

from klondike.common import Card, Pile

_SUIT_LETTERS = {"S": 0, "H": 1, "D": 2, "C": 3}
_RANK_LETTERS = {"A": 1, "J": 11, "Q": 12, "K": 13}


def card(code: str, up: bool = True) -> Card:
    """``card("10H")`` -> ten of hearts, face-up."""
    rank_txt, suit_txt = code[:-1], code[-1].upper()
    rank = _RANK_LETTERS.get(rank_txt.upper()) or int(rank_txt)
    return Card(_SUIT_LETTERS[suit_txt], rank, up)


def put(pile: Pile, *codes: str, down: int = 0) -> List[Card]:
    """Append cards to ``pile``; the first ``down`` of them face-down."""
    cards = [card(code, up=i >= down) for i, code in enumerate(codes)]
    pile.append_all(cards)
    return cards


def all_cards(game) -> List[Card]:
    return [c for p in game.piles() for c in p.cards]
