# ui.py - drawn card faces, fonts and the HUD button
import pygame

from klondike import common as C

# Fonts are initialized via setup_fonts() AFTER pygame.init() in __main__.py
FONT_SMALL = None
FONT_UI = None
FONT_CORNER_RANK = None
FONT_CORNER_SUIT = None

def setup_fonts():
    global FONT_SMALL, FONT_UI, FONT_CORNER_RANK, FONT_CORNER_SUIT
    name = pygame.font.get_default_font()
    FONT_SMALL = pygame.font.SysFont(name, 20, bold=True)
    FONT_UI = pygame.font.SysFont(name, 26, bold=True)
    FONT_CORNER_RANK = pygame.font.SysFont(name, 28, bold=True)
    # Suit glyphs need a Unicode-capable font
    try:
        FONT_CORNER_SUIT = pygame.font.SysFont("Segoe UI Symbol", 26, bold=True)
    except (pygame.error, OSError):
        FONT_CORNER_SUIT = pygame.font.SysFont(name, 26, bold=True)

_card_face_cache = {}
_card_back_cache = None

def invalidate_card_caches():
    global _card_face_cache, _card_back_cache
    _card_face_cache = {}
    _card_back_cache = None

def draw_suit_shape(surface, center, suit_index, color, size=42):
    x, y = center
    if suit_index == C.DIAMONDS:
        half = size//2
        points = [(x, y - half), (x + half, y), (x, y + half), (x - half, y)]
        pygame.draw.polygon(surface, color, points)
    elif suit_index == C.HEARTS:
        r = size//3
        pygame.draw.circle(surface, color, (x - r, y - r), r)
        pygame.draw.circle(surface, color, (x + r, y - r), r)
        tri = [(x - 2*r, y - r), (x + 2*r, y - r), (x, y + 2*r)]
        pygame.draw.polygon(surface, color, tri)
    elif suit_index == C.SPADES:
        r = size//3
        pygame.draw.circle(surface, color, (x - r, y), r)
        pygame.draw.circle(surface, color, (x + r, y), r)
        tri = [(x - 2*r, y), (x + 2*r, y), (x, y - 2*r)]
        pygame.draw.polygon(surface, color, tri)
        stem_w = max(6, size//6)
        pygame.draw.rect(surface, color, (x - stem_w//2, y + r, stem_w, size//2))
    else:  # clubs
        r = size//3
        pygame.draw.circle(surface, color, (x, y - r), r)
        pygame.draw.circle(surface, color, (x - r, y + r//3), r)
        pygame.draw.circle(surface, color, (x + r, y + r//3), r)
        stem_w = max(6, size//6)
        pygame.draw.rect(surface, color, (x - stem_w//2, y + r, stem_w, size//2))

def get_card_surface(card):
    if not card.face_up:
        return get_back_surface()
    key = (card.suit, card.rank, C.CARD_W)
    if key in _card_face_cache:
        return _card_face_cache[key]
    surf = pygame.Surface((C.CARD_W, C.CARD_H), pygame.SRCALPHA)
    pygame.draw.rect(surf, C.WHITE, (0,0,C.CARD_W,C.CARD_H), border_radius=C.CARD_RADIUS)
    pygame.draw.rect(surf, C.BLACK, (0,0,C.CARD_W,C.CARD_H), width=3, border_radius=C.CARD_RADIUS)
    color = C.RED if C.is_red(card.suit) else C.BLACK
    margin = 10
    rtxt = FONT_CORNER_RANK.render(C.RANK_TO_TEXT[card.rank], True, color)
    stxt = FONT_CORNER_SUIT.render(C.SUITS[card.suit], True, color)
    surf.blit(rtxt, (margin, margin))
    surf.blit(stxt, (margin, margin + rtxt.get_height() - 2))
    draw_suit_shape(surf, (C.CARD_W//2, C.CARD_H//2), card.suit, color, size=max(24, C.CARD_W // 2))
    _card_face_cache[key] = surf
    return surf

def get_back_surface():
    global _card_back_cache
    if _card_back_cache is not None and _card_back_cache.get_width() == C.CARD_W:
        return _card_back_cache
    surf = pygame.Surface((C.CARD_W, C.CARD_H), pygame.SRCALPHA)
    pygame.draw.rect(surf, C.WHITE, (0,0,C.CARD_W,C.CARD_H), border_radius=C.CARD_RADIUS)
    pygame.draw.rect(surf, C.BLACK, (0,0,C.CARD_W,C.CARD_H), width=3, border_radius=C.CARD_RADIUS)
    inset = 8
    inner_rect = pygame.Rect(inset, inset, C.CARD_W-2*inset, C.CARD_H-2*inset)
    pygame.draw.rect(surf, (34,96,200), inner_rect, border_radius=8)
    for i in range(-C.CARD_H, C.CARD_W, 12):
        pygame.draw.line(surf, C.LIGHT, (i, 8), (i+C.CARD_H, C.CARD_H-8), 1)
    _card_back_cache = surf
    return surf

def draw_pile(screen, pile, skip=()):
    if not pile.cards:
        pygame.draw.rect(screen, (255, 255, 255), pile.anchor_rect(), border_radius=C.CARD_RADIUS, width=2)
    for i, c in enumerate(pile.cards):
        if c in skip:
            continue
        r = pile.rect_for_index(i)
        screen.blit(get_card_surface(c), r.topleft)

class Button:
    def __init__(self, text, x, y, w=170, h=36):
        self.text = text
        self.rect = pygame.Rect(x, y, w, h)

    def draw(self, screen, hover=False):
        col = C.GOLD if hover else (200, 200, 200)
        pygame.draw.rect(screen, col, self.rect, border_radius=12)
        pygame.draw.rect(screen, C.BLACK, self.rect, 2, border_radius=12)
        t = FONT_SMALL.render(self.text, True, C.BLACK)
        screen.blit(t, (self.rect.centerx - t.get_width() // 2,
                        self.rect.centery - t.get_height() // 2))

    def hovered(self, mouse_pos):
        return self.rect.collidepoint(mouse_pos)
