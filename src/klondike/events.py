"""Outbound events published by the game to its host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


def format_time(total_seconds: int) -> str:
    """Format whole seconds as ``MM:SS``."""

    total_seconds = max(0, int(total_seconds))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


@dataclass(frozen=True)
class GameReady:
    """The game is loaded and accepts actions."""

    event_type = "gameReady"

    def payload(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class StateChanged:
    """Score, move count or the clock changed."""

    score: int
    move_count: int
    elapsed_time: int

    event_type = "stateChanged"

    def payload(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "moveCount": self.move_count,
            "elapsedTime": self.elapsed_time,
            "time": format_time(self.elapsed_time),
        }


@dataclass(frozen=True)
class GameEnded:
    """All four foundations are complete."""

    final_score: int
    elapsed_time: int
    won: bool = True

    event_type = "gameEnded"

    def payload(self) -> Dict[str, Any]:
        return {
            "won": self.won,
            "finalScore": self.final_score,
            "elapsedTime": self.elapsed_time,
            "finalTime": format_time(self.elapsed_time),
        }


def to_message(event) -> Dict[str, Any]:
    """Wrap an event in the ``{"type", "payload"}`` envelope."""

    return {"type": event.event_type, "payload": event.payload()}
