# __main__.py - entry point
import logging
import os

import pygame

from klondike import common as C
from klondike import ui as U
from klondike.bridge import MessageBridge
from klondike.modes.klondike import KlondikeGameScene

LOGGER = logging.getLogger("klondike")


def _initial_window_size():
    info = pygame.display.Info()
    # Keep a safety margin so the window never hides under taskbar
    margin_w, margin_h = 120, 140
    w = min(C.SCREEN_W, max(640, info.current_w - margin_w))
    h = min(C.SCREEN_H, max(480, info.current_h - margin_h))
    return w, h


def _env_flag(name):
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def _configure_logging():
    level = os.environ.get("SOLI_LOG_LEVEL", "WARNING").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    _configure_logging()
    # Center window and init
    os.environ.setdefault("SDL_VIDEO_CENTERED", "1")
    pygame.init()

    # Developer debug switches via environment
    debug_card_size = os.environ.get("SOLI_CARD_SIZE", "").strip().capitalize()
    if debug_card_size in ("Small", "Medium", "Large"):
        C.apply_card_settings(size_name=debug_card_size)
    relaxed = _env_flag("SOLI_DEBUG_RELAXED")
    echo = _env_flag("SOLI_BRIDGE_ECHO")

    w, h = _initial_window_size()
    C.SCREEN_W, C.SCREEN_H = w, h
    screen = pygame.display.set_mode((w, h), pygame.RESIZABLE)
    pygame.display.set_caption("Klondike")
    U.setup_fonts()
    clock = pygame.time.Clock()

    scene = KlondikeGameScene(app=None, relaxed=relaxed)
    if relaxed:
        LOGGER.warning("Relaxed empty-tableau placement is on; scores are not standard")

    def send(message):
        if echo:
            print(message, flush=True)
        else:
            LOGGER.debug("-> host %s", message)

    bridge = MessageBridge(scene.game, send)
    bridge.start()

    tick_ms = 0
    running = True
    while running:
        tick_ms += clock.tick(60)
        # Host-side cadence: push the clock to the bridge once per second
        while tick_ms >= 1000:
            tick_ms -= 1000
            bridge.tick()
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
        scene.draw(screen)
        pygame.display.flip()
    bridge.close()
    pygame.quit()


if __name__ == "__main__":
    main()
