import pygame

from klondike import common as C
from klondike import mechanics

from table_helpers import put


def _place(pile, x, y):
    pile.x, pile.y = x, y
    return pile


def test_legal_pile_wins_over_a_bigger_illegal_overlap(empty_game):
    g = empty_game
    src = _place(g.tableau[0], 0, 400)
    legal = _place(g.tableau[1], 200, 100)
    illegal = _place(g.tableau[2], 300, 100)
    run = put(src, "8S", "7H", "6C")
    put(legal, "9D")
    put(illegal, "9C")

    drag = mechanics.run_rect(run, (270, 100), C.FAN_Y_UP)
    piles = [src, legal, illegal]

    # 30px over the 9D, 70px over the 9C
    assert mechanics.drop_candidates(g, run, src, drag, piles) == [legal]
    assert mechanics.resolve_drop_target(g, run, src, drag, drag.center, piles) is legal


def test_nearest_legal_pile_is_chosen(empty_game):
    g = empty_game
    src = _place(g.waste, 600, 600)
    near = _place(g.tableau[4], 150, 0)
    far = _place(g.tableau[3], 0, 0)
    king = put(src, "KS")

    drag = pygame.Rect(90, 0, C.CARD_W, C.CARD_H)
    piles = [src, far, near]
    assert set(map(id, mechanics.drop_candidates(g, king, src, drag, piles))) == {id(far), id(near)}
    assert mechanics.resolve_drop_target(g, king, src, drag, drag.center, piles) is near


def test_point_fallback_ignores_legality(empty_game):
    g = empty_game
    src = _place(g.waste, 600, 600)
    target = _place(g.tableau[1], 200, 100)
    two = put(src, "2H")
    put(target, "9D")

    drag = pygame.Rect(210, 110, C.CARD_W, C.CARD_H)
    picked = mechanics.resolve_drop_target(g, two, src, drag, (220, 120), [src, target])
    assert picked is target
    # the engine still has the last word
    assert not g.try_move(two, src, picked)
    assert src.cards == two


def test_nothing_under_the_drop(empty_game):
    g = empty_game
    src = _place(g.waste, 600, 600)
    other = _place(g.tableau[0], 0, 0)
    king = put(src, "KS")

    drag = pygame.Rect(300, 300, C.CARD_W, C.CARD_H)
    assert mechanics.resolve_drop_target(g, king, src, drag, drag.center, [src, other]) is None


def test_source_pile_is_never_a_target(empty_game):
    g = empty_game
    src = _place(g.tableau[0], 0, 0)
    run = put(src, "KS")
    drag = pygame.Rect(5, 5, C.CARD_W, C.CARD_H)
    assert mechanics.resolve_drop_target(g, run, src, drag, (10, 10), [src]) is None


def test_footprint_grows_with_the_pile(empty_game):
    pile = _place(empty_game.tableau[2], 40, 60)
    assert mechanics.pile_footprint(pile) == pygame.Rect(40, 60, C.CARD_W, C.CARD_H)
    put(pile, "QS", "JH", "10C", down=1)
    fp = mechanics.pile_footprint(pile)
    assert fp.topleft == (40, 60)
    assert fp.bottom == pile.top_rect().bottom


def test_run_rect_height():
    assert mechanics.run_rect([], (3, 4), 20).size == (0, 0)
    rect = mechanics.run_rect([object()] * 3, (3, 4), 20)
    assert rect.topleft == (3, 4)
    assert rect.size == (C.CARD_W, C.CARD_H + 40)
