"""
WebSocket game server for the Sherman tank-combat simulation.

One game session per connection. Clients send JSON intents and get back
a `state` message with the full snapshot plus the events the intent
produced. Rendering is left to the client.
"""

import os
import json
import asyncio
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

import websockets

from tankwar import (
    Action, ActionResult, CrewStatus, Dice, Pool, RulesConfig, TurnManager,
    load_scenario,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DATA_PATH = Path(os.environ.get("TANKWAR_DATA", "data"))


class SessionError(Exception):
    """Malformed or out-of-order client message."""
    pass


class GameSession:
    """Wraps the engine for a single human vs AI game."""

    def __init__(self, data_path: Path = DATA_PATH):
        self.data_path = Path(data_path)
        self.turn_manager: Optional[TurnManager] = None
        self._sent_events = 0

    def initialize(self, scenario: str = "village", seed: Optional[int] = None):
        """Load rules and scenario and create a fresh turn manager."""
        config = RulesConfig.load(self.data_path)
        if seed is not None:
            config.seed = seed
        dice = Dice(config.seed)
        board = load_scenario(
            self.data_path / "scenarios" / f"{scenario}.yaml",
            rng=dice.rng,
            player_id=config.player_vehicle_id,
        )
        self.turn_manager = TurnManager(board, config, dice=dice)
        self._sent_events = 0
        logger.info(f"Game initialized: scenario={board.name}, seed={config.seed}")

    def handle(self, msg: dict) -> dict:
        """Apply one client intent and build the reply."""
        msg_type = msg.get("type", "")

        if msg_type == "start_game":
            self.initialize(msg.get("scenario", "village"), msg.get("seed"))
            return self.state_message(ActionResult(success=True))

        if self.turn_manager is None:
            raise SessionError("No game in progress")

        tm = self.turn_manager
        if msg_type == "start_turn":
            result = tm.start_turn()
        elif msg_type == "choose_posture":
            result = tm.choose_posture(self._enum(CrewStatus, msg.get("posture")))
        elif msg_type == "roll_pool":
            result = tm.roll_pool(self._enum(Pool, msg.get("pool")))
        elif msg_type == "select_die":
            result = tm.select_die(self._int(msg.get("index")))
        elif msg_type == "select_doubles":
            indices = msg.get("indices") or []
            if len(indices) != 2:
                raise SessionError("select_doubles needs two die indices")
            result = tm.select_doubles(self._int(indices[0]), self._int(indices[1]))
        elif msg_type == "action":
            result = tm.perform_action(
                self._enum(Action, msg.get("action")),
                target_id=msg.get("target_id"),
                direction=self._int(msg.get("direction", 60)),
            )
        elif msg_type == "end_phase":
            result = tm.end_phase()
        else:
            raise SessionError(f"Unknown message type: {msg_type}")

        return self.state_message(result)

    def state_message(self, result: ActionResult) -> dict:
        tm = self.turn_manager
        events = tm.events[self._sent_events:]
        self._sent_events = len(tm.events)
        return {
            "type": "state",
            "result": {
                "success": result.success,
                "reason": result.reason,
                "action": result.action.value if result.action else None,
                "expended": result.expended,
                "data": result.data,
            },
            "state": tm.snapshot(),
            "events": [event.to_dict() for event in events],
        }

    @staticmethod
    def _enum(enum_cls, value):
        try:
            return enum_cls(value)
        except ValueError:
            raise SessionError(f"Invalid {enum_cls.__name__}: {value!r}")

    @staticmethod
    def _int(value) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise SessionError(f"Expected an integer, got {value!r}")


# ── WebSocket Game Server ──


async def handle_websocket(websocket):
    """Handle a single WebSocket connection (one game session)."""
    session = GameSession()

    async def send_json(msg_type: str, data: dict):
        await websocket.send(json.dumps({"type": msg_type, **data}, default=str))

    try:
        async for raw in websocket:
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await send_json("error", {"message": "Invalid JSON"})
                continue

            try:
                reply = session.handle(msg)
            except SessionError as e:
                await send_json("error", {"message": str(e)})
                continue
            except FileNotFoundError as e:
                logger.warning(f"Scenario load failed: {e}")
                await send_json("error", {"message": str(e)})
                continue

            await websocket.send(json.dumps(reply, default=str))

    except websockets.exceptions.ConnectionClosed:
        logger.info("Client disconnected")


async def main():
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8080"))

    logger.info(f"Starting server on ws://{host}:{port}")

    async with websockets.serve(
        handle_websocket,
        host,
        port,
        max_size=1024 * 1024,
    ):
        await asyncio.Future()  # run forever


if __name__ == "__main__":
    asyncio.run(main())
