"""JSON message boundary between a :class:`KlondikeGame` and its host shell.

Inbound messages look like ``{"action": "move", "data": {...}}`` where
``data`` may also arrive as a JSON-encoded string (or ``""`` when unused).
Outbound messages look like ``{"type": "stateChanged", "payload": {...}}``.
How the strings travel is up to the host; the bridge only needs a ``send``
callable.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from klondike.common import Card, Pile, PileRole
from klondike.engine import KlondikeGame
from klondike.events import GameReady, to_message

LOGGER = logging.getLogger("klondike.bridge")


class BridgeError(ValueError):
    """An inbound message could not be turned into an engine call."""


def encode(event) -> str:
    return json.dumps(to_message(event), separators=(",", ":"))


class MessageBridge:
    def __init__(self, game: KlondikeGame, send: Callable[[str], None]) -> None:
        self.game = game
        self.send = send
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], bool]] = {
            "newGame": self._on_new_game,
            "restart": self._on_restart,
            "undo": self._on_undo,
            "draw": self._on_draw,
            "move": self._on_move,
            "autoMoveToFoundation": self._on_auto_move,
        }
        game.add_listener(self._forward)

    def close(self) -> None:
        self.game.remove_listener(self._forward)

    # ----- Outbound -----
    def _forward(self, event) -> None:
        self.send(encode(event))

    def start(self) -> None:
        """Announce readiness and the current state."""
        self.send(encode(GameReady()))
        self.send(encode(self.game.state_event()))

    def tick(self) -> None:
        """Called by the host once per elapsed second."""
        if not self.game.won:
            self.send(encode(self.game.state_event()))

    # ----- Inbound -----
    def receive(self, raw: str) -> bool:
        """Apply one inbound message. Returns ``False`` if it was rejected or ignored."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Failed to parse host message %r: %s", raw, exc)
            return False
        if not isinstance(message, dict):
            LOGGER.warning("Host message must be an object, got %r", message)
            return False

        action = message.get("action")
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            LOGGER.warning("Unknown action: %r", action)
            return False

        LOGGER.debug("Received action: %s", action)
        try:
            data = self._parse_data(message.get("data"))
            return handler(data)
        except BridgeError as exc:
            LOGGER.warning("Rejected %s message: %s", action, exc)
            return False

    @staticmethod
    def _parse_data(data) -> Mapping[str, Any]:
        if data is None or data == "":
            return {}
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError as exc:
                raise BridgeError(f"data is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise BridgeError("data must be an object")
        return data

    def _pile_ref(self, ref) -> Pile:
        if not isinstance(ref, dict):
            raise BridgeError(f"bad pile reference {ref!r}")
        try:
            role = PileRole(ref.get("role"))
            index = int(ref.get("index", 0))
        except (TypeError, ValueError) as exc:
            raise BridgeError(f"bad pile reference {ref!r}") from exc
        pile = self.game.pile_by_ref(role, index)
        if pile is None:
            raise BridgeError(f"no such pile {ref!r}")
        return pile

    def _card_ref(self, ref) -> Card:
        if not isinstance(ref, dict):
            raise BridgeError(f"bad card reference {ref!r}")
        try:
            suit = int(ref["suit"])
            rank = int(ref["rank"])
        except (KeyError, TypeError, ValueError) as exc:
            raise BridgeError(f"bad card reference {ref!r}") from exc
        card = self.game.find_card(suit, rank)
        if card is None:
            raise BridgeError(f"no such card {ref!r}")
        return card

    # ----- Handlers -----
    def _on_new_game(self, _data) -> bool:
        self.game.new_game()
        return True

    def _on_restart(self, _data) -> bool:
        self.game.restart()
        return True

    def _on_undo(self, _data) -> bool:
        return self.game.undo()

    def _on_draw(self, _data) -> bool:
        return self.game.draw()

    def _on_move(self, data) -> bool:
        if "cards" in data:
            refs = data["cards"]
            if not isinstance(refs, list) or not refs:
                raise BridgeError("cards must be a non-empty list")
            named = [self._card_ref(ref) for ref in refs]
            card = named[0]
        else:
            card = self._card_ref(data.get("card"))
            named = None
        target = self._pile_ref(data.get("target"))
        source: Optional[Pile] = card.pile
        if "source" in data and self._pile_ref(data["source"]) is not source:
            raise BridgeError("card is not in the given source pile")
        cards = self.game.run_from(card)
        if named is not None and [id(c) for c in named] != [id(c) for c in cards]:
            raise BridgeError("cards are not the run picked up from the first card")
        return self.game.try_move(cards, source, target)

    def _on_auto_move(self, data) -> bool:
        card = self._card_ref(data.get("card"))
        return self.game.try_auto_move_to_foundation(card)
