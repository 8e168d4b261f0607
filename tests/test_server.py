"""
Tests for the websocket session bridge (no network involved).
"""

import pytest

from server import GameSession, SessionError


@pytest.fixture
def session(data_path, monkeypatch):
    monkeypatch.delenv("TANKWAR_SEED", raising=False)
    monkeypatch.delenv("TANKWAR_FIRING_ARC", raising=False)
    session = GameSession(data_path)
    session.handle({"type": "start_game", "seed": 5})
    return session


def test_start_game_replies_with_state(session):
    reply = session.handle({"type": "start_turn"})
    assert reply["type"] == "state"
    assert reply["result"]["success"]
    assert reply["state"]["turn_state"]["phase"] == "commander_decision"
    assert reply["state"]["scenario"]["name"] == "Mission 1: The village"
    assert any(e["kind"] == "turn_started" for e in reply["events"])


def test_events_are_only_sent_once(session):
    first = session.handle({"type": "start_turn"})
    second = session.handle({"type": "choose_posture", "posture": "popped hatch"})
    assert first["events"]
    assert not any(e["kind"] == "turn_started" for e in second["events"])
    assert second["state"]["turn_state"]["phase"] == "sherman_operations"
    # road hex: 2 terrain + driver + assistant driver + open hatch
    assert second["state"]["pool_sizes"]["maneuver"] == 5


def test_roll_and_select(session):
    session.handle({"type": "start_turn"})
    session.handle({"type": "choose_posture", "posture": "buttoned up"})
    rolled = session.handle({"type": "roll_pool", "pool": "maneuver"})
    assert len(rolled["result"]["data"]["dice"]) == 4
    selected = session.handle({"type": "select_die", "index": 0})
    assert selected["result"]["success"]
    assert selected["result"]["action"] in ("reverse", "turn", "move")


def test_rule_violations_are_results(session):
    reply = session.handle({"type": "roll_pool", "pool": "attack"})
    assert reply["type"] == "state"
    assert not reply["result"]["success"]


def test_malformed_messages_raise(session):
    with pytest.raises(SessionError):
        session.handle({"type": "teleport"})
    with pytest.raises(SessionError):
        session.handle({"type": "roll_pool", "pool": "artillery"})
    with pytest.raises(SessionError):
        session.handle({"type": "select_doubles", "indices": [0]})


def test_intents_need_a_game(data_path):
    with pytest.raises(SessionError):
        GameSession(data_path).handle({"type": "start_turn"})
