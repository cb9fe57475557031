import json
import logging

import pytest

from klondike.bridge import MessageBridge, encode
from klondike.events import GameEnded, StateChanged

from table_helpers import put


@pytest.fixture
def sent():
    return []


@pytest.fixture
def bridge(game, sent):
    return MessageBridge(game, sent.append)


def _decoded(sent):
    return [json.loads(m) for m in sent]


def _msg(action, data=""):
    return json.dumps({"action": action, "data": data})


def test_encode_uses_the_type_payload_envelope():
    msg = json.loads(encode(StateChanged(score=15, move_count=3, elapsed_time=65)))
    assert msg == {
        "type": "stateChanged",
        "payload": {"score": 15, "moveCount": 3, "elapsedTime": 65, "time": "01:05"},
    }
    ended = json.loads(encode(GameEnded(final_score=900, elapsed_time=3600)))
    assert ended["payload"] == {"won": True, "finalScore": 900, "elapsedTime": 3600, "finalTime": "60:00"}


def test_start_announces_ready_then_state(bridge, sent):
    bridge.start()
    types = [m["type"] for m in _decoded(sent)]
    assert types == ["gameReady", "stateChanged"]
    assert _decoded(sent)[0]["payload"] == {}


def test_new_game_action(bridge, game, sent):
    old = game.initial_deck_order
    assert bridge.receive(_msg("newGame"))
    assert game.initial_deck_order is not old
    assert _decoded(sent)[-1]["type"] == "stateChanged"
    assert _decoded(sent)[-1]["payload"]["moveCount"] == 0


def test_draw_and_restart_actions(bridge, game, sent):
    assert bridge.receive(_msg("draw"))
    assert game.moves == 1
    assert _decoded(sent)[-1]["payload"]["moveCount"] == 1
    assert bridge.receive(_msg("restart"))
    assert game.moves == 0
    assert game.waste.is_empty()


def test_undo_action_with_empty_history(bridge, sent):
    assert bridge.receive(_msg("undo")) is False
    assert sent == []


def test_malformed_json_is_logged_and_ignored(bridge, game, sent, caplog):
    before = game.snapshot()
    with caplog.at_level(logging.WARNING, logger="klondike.bridge"):
        assert bridge.receive("{not json") is False
        assert bridge.receive("[1, 2]") is False
    assert "Failed to parse" in caplog.text
    assert game.snapshot() == before
    assert sent == []


def test_unknown_action_is_ignored(bridge, game, caplog):
    before = game.snapshot()
    with caplog.at_level(logging.WARNING, logger="klondike.bridge"):
        assert bridge.receive(_msg("shuffleEverything")) is False
        assert bridge.receive(json.dumps({"data": {}})) is False
    assert "Unknown action" in caplog.text
    assert game.snapshot() == before


def test_move_with_object_data(empty_game, sent):
    g = empty_game
    bridge = MessageBridge(g, sent.append)
    (ace,) = put(g.waste, "AH")
    data = {
        "card": {"suit": 1, "rank": 1},
        "source": {"role": "waste", "index": 0},
        "target": {"role": "foundation", "index": 1},
    }
    assert bridge.receive(_msg("move", data))
    assert g.foundations[1].cards == [ace]
    assert _decoded(sent)[-1]["payload"]["score"] == 10


def test_move_with_string_encoded_data_takes_the_run(empty_game):
    g = empty_game
    bridge = MessageBridge(g, lambda _m: None)
    eight, seven = put(g.tableau[0], "8S", "7H")
    (nine,) = put(g.tableau[1], "9D")
    data = json.dumps({"card": {"suit": 0, "rank": 8}, "target": {"role": "tableau", "index": 1}})
    assert bridge.receive(_msg("move", data))
    assert g.tableau[1].cards == [nine, eight, seven]


def test_move_with_a_cards_list(empty_game):
    g = empty_game
    bridge = MessageBridge(g, lambda _m: None)
    eight, seven = put(g.tableau[0], "8S", "7H")
    (nine,) = put(g.tableau[1], "9D")
    data = {
        "cards": [{"suit": 0, "rank": 8}, {"suit": 1, "rank": 7}],
        "source": {"role": "tableau", "index": 0},
        "target": {"role": "tableau", "index": 1},
    }
    assert bridge.receive(_msg("move", data))
    assert g.tableau[1].cards == [nine, eight, seven]


@pytest.mark.parametrize(
    "refs",
    [
        [{"suit": 0, "rank": 8}],
        [{"suit": 1, "rank": 7}, {"suit": 0, "rank": 8}],
        [],
        {"suit": 0, "rank": 8},
    ],
)
def test_move_with_a_cards_list_that_is_not_the_run(empty_game, refs, caplog):
    g = empty_game
    bridge = MessageBridge(g, lambda _m: None)
    run = put(g.tableau[0], "8S", "7H")
    put(g.tableau[1], "9D")
    data = {"cards": refs, "target": {"role": "tableau", "index": 1}}
    with caplog.at_level(logging.WARNING, logger="klondike.bridge"):
        assert bridge.receive(_msg("move", data)) is False
    assert "Rejected move" in caplog.text
    assert g.tableau[0].cards == run


def test_move_from_the_wrong_source_is_rejected(empty_game, caplog):
    g = empty_game
    bridge = MessageBridge(g, lambda _m: None)
    put(g.waste, "AH")
    data = {
        "card": {"suit": 1, "rank": 1},
        "source": {"role": "tableau", "index": 2},
        "target": {"role": "foundation", "index": 1},
    }
    with caplog.at_level(logging.WARNING, logger="klondike.bridge"):
        assert bridge.receive(_msg("move", data)) is False
    assert "not in the given source" in caplog.text
    assert g.foundations[1].is_empty()


@pytest.mark.parametrize(
    "data",
    [
        {"card": {"suit": 1}, "target": {"role": "foundation", "index": 1}},
        {"card": {"suit": 1, "rank": 1}, "target": {"role": "attic"}},
        {"card": {"suit": 1, "rank": 1}, "target": {"role": "tableau", "index": 9}},
        "{broken",
        [1, 2],
    ],
)
def test_bad_move_data_is_rejected(empty_game, data):
    g = empty_game
    bridge = MessageBridge(g, lambda _m: None)
    put(g.waste, "AH")
    assert bridge.receive(_msg("move", data)) is False
    assert len(g.waste) == 1


def test_auto_move_action(empty_game):
    g = empty_game
    bridge = MessageBridge(g, lambda _m: None)
    put(g.tableau[3], "AC")
    assert bridge.receive(_msg("autoMoveToFoundation", {"card": {"suit": 3, "rank": 1}}))
    assert len(g.foundations[3]) == 1
    assert bridge.receive(_msg("autoMoveToFoundation", {"card": {"suit": 3, "rank": 1}})) is False


def test_tick_reports_time_until_won(bridge, game, sent, clock):
    clock.now += 5
    bridge.tick()
    msg = _decoded(sent)[-1]
    assert msg["type"] == "stateChanged"
    assert msg["payload"]["elapsedTime"] == 5
    assert msg["payload"]["time"] == "00:05"

    game.won = True
    sent.clear()
    bridge.tick()
    assert sent == []


def test_game_end_is_forwarded(empty_game, sent):
    g = empty_game
    bridge = MessageBridge(g, sent.append)
    for suit, letter in enumerate("SHDC"):
        put(g.foundations[suit], *[f"{r}{letter}" for r in ["A", 2, 3, 4, 5, 6, 7, 8, 9, 10, "J", "Q"]])
        put(g.waste, f"K{letter}")
    for rank_suit in range(3, -1, -1):
        assert bridge.receive(_msg("autoMoveToFoundation", {"card": {"suit": rank_suit, "rank": 13}}))
    ended = [m for m in _decoded(sent) if m["type"] == "gameEnded"]
    assert len(ended) == 1
    assert ended[0]["payload"]["won"] is True
    assert ended[0]["payload"]["finalScore"] == 4 * 10 + 100


def test_tick_resumes_after_the_winning_move_is_undone(empty_game, sent):
    g = empty_game
    bridge = MessageBridge(g, sent.append)
    for suit, letter in enumerate("SHDC"):
        put(g.foundations[suit], *[f"{r}{letter}" for r in ["A", 2, 3, 4, 5, 6, 7, 8, 9, 10, "J", "Q"]])
        put(g.tableau[suit], f"K{letter}")
    for suit in range(4):
        g.try_auto_move_to_foundation(g.tableau[suit].top_card())
    won_score = g.score

    sent.clear()
    bridge.tick()
    assert sent == []

    assert bridge.receive(_msg("undo"))
    sent.clear()
    bridge.tick()
    assert [m["type"] for m in _decoded(sent)] == ["stateChanged"]

    assert bridge.receive(_msg("autoMoveToFoundation", {"card": {"suit": 3, "rank": 13}}))
    assert g.score == won_score
    assert [m["type"] for m in _decoded(sent)].count("gameEnded") == 0


def test_close_stops_forwarding(bridge, game, sent):
    bridge.close()
    game.draw()
    assert sent == []
