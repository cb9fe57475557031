import random

import pytest

from klondike.engine import KlondikeGame


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def game(clock):
    return KlondikeGame(rng=random.Random(1234), clock=clock)


@pytest.fixture
def empty_game(clock):
    """A game with no cards dealt, for hand-built positions."""
    return KlondikeGame(rng=random.Random(1234), clock=clock, deal_on_init=False)


@pytest.fixture
def events(game):
    seen = []
    game.add_listener(seen.append)
    return seen
