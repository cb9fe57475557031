# klondike.py - Klondike table scene: drag & drop, double-click to foundation, win message
from typing import List, Optional, Tuple

import pygame

from klondike import common as C
from klondike import mechanics as M
from klondike import ui as U
from klondike.common import Card, Pile, PileRole
from klondike.engine import KlondikeGame
from klondike.events import GameEnded, format_time

DOUBLE_CLICK_MS = 300


class KlondikeGameScene(C.Scene):
    """
    Host shell for a :class:`KlondikeGame`.

    The scene never changes piles itself; it turns gestures into engine calls
    and draws whatever the engine holds. Dragged cards stay in their pile until
    ``try_move`` succeeds, so a rejected drop needs no bookkeeping.
    """

    def __init__(self, app, game: Optional[KlondikeGame] = None, draw_count: Optional[int] = None,
                 relaxed: bool = False):
        super().__init__(app)
        if game is None:
            if draw_count is None:
                draw_count = C.get_current_settings()["draw_count"]
            game = KlondikeGame(draw_count=draw_count, relaxed_empty_tableau=relaxed)
        self.game = game
        self.game.add_listener(self._on_game_event)
        self.message = ""

        # Drag state: (cards, source pile, grab offset from first card's top-left)
        self.drag_stack: Optional[Tuple[List[Card], Pile, Tuple[int, int]]] = None
        self.drag_pos = (0, 0)

        # Double-click tracking
        self._last_click_ms = -DOUBLE_CLICK_MS
        self._last_click_card: Optional[Card] = None

        self.b_new = U.Button("New", 0, 0, w=110)
        self.b_restart = U.Button("Restart", 0, 0, w=110)
        self.b_undo = U.Button("Undo", 0, 0, w=110)
        self.compute_layout()

    # ----- Layout -----
    def compute_layout(self):
        gap_x = C.CARD_GAP_X
        block_w = 7 * C.CARD_W + 6 * gap_x
        left = max(10, (C.SCREEN_W - block_w) // 2)
        top_y = C.TOP_BAR_H + 30

        self.game.stock.x, self.game.stock.y = left, top_y
        self.game.waste.x, self.game.waste.y = left + C.CARD_W + gap_x, top_y
        for i, f in enumerate(self.game.foundations):
            f.x = left + (3 + i) * (C.CARD_W + gap_x)
            f.y = top_y
        tab_y = top_y + C.CARD_H + C.CARD_GAP_Y
        for i, t in enumerate(self.game.tableau):
            t.x = left + i * (C.CARD_W + gap_x)
            t.y = tab_y

        bx = C.SCREEN_W - 3 * 120 - 10
        for b in (self.b_new, self.b_restart, self.b_undo):
            b.rect.topleft = (bx, 12)
            bx += 120

    # ----- Engine events -----
    def _on_game_event(self, event):
        if isinstance(event, GameEnded):
            self.message = f"Congratulations! You won with {event.final_score} points in {format_time(event.elapsed_time)}."
        elif not self.game.won:
            self.message = ""

    # ----- Input -----
    def _card_at(self, pos) -> Optional[Card]:
        g = self.game
        for pile in [g.waste, *g.foundations, *g.tableau]:
            hi = pile.hit(pos)
            if hi is not None and hi >= 0:
                return pile.cards[hi]
        return None

    def _is_double_click(self, card: Card) -> bool:
        now = pygame.time.get_ticks()
        double = card is self._last_click_card and now - self._last_click_ms <= DOUBLE_CLICK_MS
        self._last_click_ms = now
        self._last_click_card = None if double else card
        return double

    def start_drag(self, card: Card, pos) -> bool:
        cards = self.game.run_from(card)
        if not cards:
            return False
        r = card.pile.rect_for_index(card.pile.cards.index(card))
        self.drag_stack = (cards, card.pile, (pos[0] - r.x, pos[1] - r.y))
        self.drag_pos = pos
        return True

    def drop(self, pos) -> bool:
        if not self.drag_stack:
            return False
        cards, source, (ox, oy) = self.drag_stack
        self.drag_stack = None
        rect = M.run_rect(cards, (pos[0] - ox, pos[1] - oy), C.FAN_Y_UP)
        target = M.resolve_drop_target(self.game, cards, source, rect, pos)
        if target is None:
            return False
        return self.game.try_move(cards, source, target)

    def toggle_relaxed(self):
        self.game.set_relaxed_empty_tableau(not self.game.relaxed_empty_tableau)

    def handle_event(self, e):
        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            pos = e.pos
            if self.b_new.hovered(pos):
                self.game.new_game(); return
            if self.b_restart.hovered(pos):
                self.game.restart(); return
            if self.b_undo.hovered(pos):
                self.game.undo(); return

            if self.game.stock.anchor_rect().collidepoint(pos):
                self.game.draw(); return

            card = self._card_at(pos)
            if card is None or not card.face_up:
                return
            if self._is_double_click(card):
                self.drag_stack = None
                self.game.try_auto_move_to_foundation(card)
                return
            self.start_drag(card, pos)

        elif e.type == pygame.MOUSEMOTION:
            if self.drag_stack:
                self.drag_pos = e.pos

        elif e.type == pygame.MOUSEBUTTONUP and e.button == 1:
            self.drop(e.pos)

        elif e.type == pygame.KEYDOWN:
            if e.key == pygame.K_n:
                self.game.new_game()
            elif e.key == pygame.K_r:
                self.game.restart()
            elif e.key == pygame.K_u:
                self.game.undo()
            elif e.key == pygame.K_SPACE:
                self.game.draw()
            elif e.key == pygame.K_c:
                self.toggle_relaxed()
            elif e.key == pygame.K_ESCAPE:
                self.quit_requested = True

    # ----- Drawing -----
    def draw(self, screen):
        screen.fill(C.TABLE_BG)
        g = self.game

        hud = f"Score: {g.score}   Moves: {g.moves}   Time: {format_time(g.elapsed_seconds())}"
        if g.relaxed_empty_tableau:
            hud += "   [RELAXED PLACEMENT]"
        screen.blit(U.FONT_UI.render(hud, True, C.WHITE), (20, 16))
        mp = pygame.mouse.get_pos()
        for b in (self.b_new, self.b_restart, self.b_undo):
            b.draw(screen, hover=b.hovered(mp))

        dragged = self.drag_stack[0] if self.drag_stack else []
        for pile in g.piles():
            U.draw_pile(screen, pile, skip=dragged)
            if pile.role is PileRole.FOUNDATION and not pile.cards:
                label = U.FONT_SMALL.render(C.SUITS[pile.index], True, C.WHITE)
                r = pile.anchor_rect()
                screen.blit(label, (r.centerx - label.get_width() // 2, r.centery - label.get_height() // 2))

        if self.drag_stack:
            cards, _src, (ox, oy) = self.drag_stack
            mx, my = self.drag_pos
            for i, c in enumerate(cards):
                screen.blit(U.get_card_surface(c), (mx - ox, my - oy + i * C.FAN_Y_UP))

        if self.message:
            msg = U.FONT_UI.render(self.message, True, (255, 255, 180))
            screen.blit(msg, (C.SCREEN_W//2 - msg.get_width()//2, C.SCREEN_H - 40))
