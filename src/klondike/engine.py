"""Klondike rules engine.

:class:`KlondikeGame` owns the thirteen piles, the score, the move counter and
the undo history. Every state-changing call either commits completely and
returns ``True`` or is rejected before anything is touched and returns
``False``. Hosts observe the game through listeners that receive
:class:`~klondike.events.StateChanged` and :class:`~klondike.events.GameEnded`.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from klondike.common import Card, Pile, PileRole
from klondike import dealer
from klondike.events import GameEnded, StateChanged
from klondike.undo import UNDO_CAPACITY, MoveRecord, UndoHistory

LOGGER = logging.getLogger("klondike.engine")

DEFAULT_DRAW_COUNT = 3
FOUNDATION_SIZE = 13

SCORE_TO_FOUNDATION = 10
SCORE_FROM_TABLEAU = 5
SCORE_FROM_FOUNDATION = -15
SCORE_WIN_BONUS = 100

CardState = Tuple[int, int, bool]
Listener = Callable[[object], None]


def score_delta(source: PileRole, target: PileRole) -> int:
    """Points for one committed move. The source and target tests are independent."""

    delta = 0
    if target is PileRole.FOUNDATION:
        delta += SCORE_TO_FOUNDATION
    if source is PileRole.TABLEAU:
        delta += SCORE_FROM_TABLEAU
    if source is PileRole.FOUNDATION:
        delta += SCORE_FROM_FOUNDATION
    return delta


def _pile_state(pile: Pile) -> Tuple[CardState, ...]:
    return tuple((c.suit, c.rank, c.face_up) for c in pile.cards)


@dataclass(frozen=True)
class GameSnapshot:
    score: int
    moves: int
    elapsed_seconds: int
    won: bool
    stock: Tuple[CardState, ...]
    waste: Tuple[CardState, ...]
    tableau: Tuple[Tuple[CardState, ...], ...]
    foundations: Tuple[Tuple[CardState, ...], ...]

    def layout(self):
        """Pile contents only, for comparing two positions."""
        return (self.stock, self.waste, self.tableau, self.foundations)


class KlondikeGame:
    def __init__(
        self,
        draw_count: int = DEFAULT_DRAW_COUNT,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        relaxed_empty_tableau: bool = False,
        undo_capacity: int = UNDO_CAPACITY,
        deal_on_init: bool = True,
    ) -> None:
        if draw_count < 1:
            raise ValueError(f"draw_count must be positive, got {draw_count}")
        self.draw_count = draw_count
        self.rng = rng or random.Random()
        self._clock = clock
        # Debug only: an empty tableau accepts any card.
        self.relaxed_empty_tableau = relaxed_empty_tableau

        self.stock = Pile(PileRole.STOCK)
        self.waste = Pile(PileRole.WASTE)
        self.tableau: List[Pile] = [Pile(PileRole.TABLEAU, i) for i in range(dealer.TABLEAU_PILES)]
        # Foundation i collects suit i.
        self.foundations: List[Pile] = [Pile(PileRole.FOUNDATION, i) for i in range(4)]

        self.score = 0
        self.moves = 0
        self.won = False
        self._end_announced = False
        self.initial_deck_order: List[Card] = []
        self.history = UndoHistory(undo_capacity)
        self._listeners: List[Listener] = []
        self._started_at = self._clock()

        if deal_on_init:
            self.new_game()

    # ----- Listeners -----
    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def remove_listener(self, fn: Listener) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def _notify(self, event) -> None:
        for fn in list(self._listeners):
            fn(event)

    def state_event(self) -> StateChanged:
        return StateChanged(score=self.score, move_count=self.moves, elapsed_time=self.elapsed_seconds())

    # ----- Queries -----
    def piles(self) -> List[Pile]:
        return [self.stock, self.waste, *self.tableau, *self.foundations]

    def pile_by_ref(self, role, index: int = 0) -> Optional[Pile]:
        role = PileRole(role)
        if role is PileRole.STOCK:
            return self.stock
        if role is PileRole.WASTE:
            return self.waste
        group = self.tableau if role is PileRole.TABLEAU else self.foundations
        if 0 <= index < len(group):
            return group[index]
        return None

    def find_card(self, suit: int, rank: int) -> Optional[Card]:
        for pile in self.piles():
            for card in pile.cards:
                if card.suit == suit and card.rank == rank:
                    return card
        return None

    def elapsed_seconds(self) -> int:
        return max(0, int(self._clock() - self._started_at))

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def run_from(self, card: Card) -> List[Card]:
        """Cards that travel with ``card`` when it is picked up.

        Any face-up tableau card takes the run above it; waste and foundation
        piles only give up their top card; the stock gives nothing.
        """
        pile = card.pile
        if pile is None:
            return []
        if pile.role is PileRole.TABLEAU:
            return pile.movable_run(card)
        if pile.role in (PileRole.WASTE, PileRole.FOUNDATION) and card is pile.top_card() and card.face_up:
            return [card]
        return []

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            score=self.score,
            moves=self.moves,
            elapsed_seconds=self.elapsed_seconds(),
            won=self.won,
            stock=_pile_state(self.stock),
            waste=_pile_state(self.waste),
            tableau=tuple(_pile_state(p) for p in self.tableau),
            foundations=tuple(_pile_state(p) for p in self.foundations),
        )

    # ----- Game lifecycle -----
    def _clear_all_piles(self) -> None:
        for p in self.piles():
            p.clear()

    def _reset_counters(self) -> None:
        self.score = 0
        self.moves = 0
        self.won = False
        self._end_announced = False
        self.history.clear()
        self._started_at = self._clock()

    def new_game(self) -> None:
        """Fresh shuffle and deal; the shuffled order is kept for :meth:`restart`."""
        self._clear_all_piles()
        self._reset_counters()
        deck = dealer.build_deck()
        dealer.fisher_yates(deck, self.rng)
        self.initial_deck_order = list(deck)
        dealer.deal(self.initial_deck_order, self.tableau, self.stock)
        LOGGER.debug("Dealt new game: %s", self.initial_deck_order)
        self._notify(self.state_event())

    def restart(self) -> None:
        """Deal the current game again from its captured order."""
        if not self.initial_deck_order:
            LOGGER.warning("No initial deck order captured, starting a new game instead")
            self.new_game()
            return
        self._clear_all_piles()
        self._reset_counters()
        dealer.deal(self.initial_deck_order, self.tableau, self.stock)
        LOGGER.debug("Restarted game with the same deck order")
        self._notify(self.state_event())

    def set_relaxed_empty_tableau(self, enabled: bool) -> None:
        self.relaxed_empty_tableau = bool(enabled)
        LOGGER.info("Relaxed empty-tableau placement %s", "ENABLED" if enabled else "DISABLED")

    # ----- Stock -----
    def draw(self) -> bool:
        """Turn up to ``draw_count`` cards onto the waste, or recycle an exhausted stock."""
        if self.stock.is_empty():
            return self._recycle_waste()
        n = min(self.draw_count, len(self.stock))
        for _ in range(n):
            card = self.stock.pop_top()
            card.face_up = True
            self.waste.append_all([card])
        self.moves += 1
        self._notify(self.state_event())
        return True

    def _recycle_waste(self) -> bool:
        if self.waste.is_empty():
            return False
        cards = list(reversed(self.waste.cards))
        self.waste.cards = []
        for card in cards:
            card.face_up = False
        dealer.fisher_yates(cards, self.rng)
        self.stock.append_all(cards)
        LOGGER.debug("Recycled and shuffled %d cards back to stock", len(cards))
        self._notify(self.state_event())
        return True

    # ----- Moves -----
    def can_move(self, cards: Sequence[Card], source: Optional[Pile], target: Optional[Pile]) -> bool:
        """Validate a transfer without committing it."""
        if not cards or source is None or target is None:
            return False
        if source is target:
            return False
        if target.role is PileRole.FOUNDATION and len(cards) > 1:
            return False
        if source.role is not PileRole.TABLEAU and len(cards) > 1:
            return False
        # The cards must be the face-up top of the source, in order.
        if source.movable_run(cards[0]) != list(cards):
            return False
        return target.can_accept(cards[0], relaxed=self.relaxed_empty_tableau)

    def try_move(self, cards: Sequence[Card], source: Optional[Pile], target: Optional[Pile]) -> bool:
        cards = list(cards or ())
        if not self.can_move(cards, source, target):
            LOGGER.debug("Rejected move of %s from %r to %r", cards, source, target)
            return False

        start = source.cards.index(cards[0])
        caused_reveal = (
            source.role is PileRole.TABLEAU and start > 0 and not source.cards[start - 1].face_up
        )
        self.history.push(MoveRecord(
            cards=tuple(cards),
            source=source,
            target=target,
            caused_reveal=caused_reveal,
            score_before=self.score,
            moves_before=self.moves,
        ))
        LOGGER.debug("Recorded move: %d card(s) from %r to %r", len(cards), source, target)

        source.remove_from(cards[0])
        target.append_all(cards)

        self.score += score_delta(source.role, target.role)
        self.moves += 1
        won_now = self._check_win()

        self._notify(self.state_event())
        if won_now:
            self._notify(GameEnded(final_score=self.score, elapsed_time=self.elapsed_seconds()))
        return True

    def try_auto_move_to_foundation(self, card: Optional[Card]) -> bool:
        """Send ``card`` to its suit's foundation if that is legal; otherwise do nothing."""
        if card is None or card.pile is None:
            return False
        if not 0 <= card.suit < len(self.foundations):
            return False
        target = self.foundations[card.suit]
        if not target.can_accept(card):
            return False
        return self.try_move([card], card.pile, target)

    def _foundations_full(self) -> bool:
        return all(len(f) == FOUNDATION_SIZE for f in self.foundations)

    def _check_win(self) -> bool:
        """Mark the game won and add the bonus. Returns True only the first time per deal.

        Undoing the winning move takes the bonus back with the score snapshot,
        so finishing again adds it again but is not announced twice.
        """
        if self.won or not self._foundations_full():
            return False
        self.won = True
        self.score += SCORE_WIN_BONUS
        LOGGER.info("Game won with score %d", self.score)
        if self._end_announced:
            return False
        self._end_announced = True
        return True

    # ----- Undo -----
    def undo(self) -> bool:
        record = self.history.pop()
        if record is None:
            LOGGER.debug("No moves to undo")
            return False

        moved = list(record.cards)
        if record.target.cards[-len(moved):] != moved:
            LOGGER.warning("Undo record no longer matches %r, discarding it", record.target)
            return False

        record.target.remove_from(moved[0])
        record.source.append_all(moved)
        if record.caused_reveal:
            beneath = len(record.source.cards) - len(moved) - 1
            if beneath >= 0:
                record.source.cards[beneath].face_up = False

        self.score = record.score_before
        self.moves = record.moves_before
        if self.won and not self._foundations_full():
            self.won = False
        LOGGER.debug("Undid move: %d card(s) from %r back to %r", len(moved), record.target, record.source)
        self._notify(self.state_event())
        return True
