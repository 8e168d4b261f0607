"""
Headless game runner for the Sherman tank-combat simulation.

Plays the Sherman with the autopilot against the German tank agent and
writes a JSON game log.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

from tankwar import Dice, GameEvent, RulesConfig, TurnManager, load_scenario
from agents import ShermanAutopilot

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TankGame:
    """Main simulation orchestrator."""

    def __init__(
        self,
        data_path: str = "data",
        scenario: str = "village",
        log_dir: str = "logs",
        seed: Optional[int] = None,
    ):
        self.data_path = Path(data_path)
        self.scenario_name = scenario
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(exist_ok=True)

        logger.info("Loading rules...")
        self.config = RulesConfig.load(self.data_path)
        if seed is not None:
            self.config.seed = seed
        self.dice = Dice(self.config.seed)

        scenario_path = self.data_path / "scenarios" / f"{scenario}.yaml"
        logger.info(f"Loading scenario: {scenario_path}")
        self.scenario = load_scenario(
            scenario_path,
            rng=self.dice.rng,
            player_id=self.config.player_vehicle_id,
        )

        self.turn_manager = TurnManager(self.scenario, self.config, dice=self.dice)
        self.turn_manager.on_event = self._on_event
        self.autopilot = ShermanAutopilot(self.turn_manager)

        # Game log
        self.game_log: list[dict] = []
        self.start_time: Optional[datetime] = None

    def _on_event(self, event: GameEvent):
        logger.info(f"[turn {event.turn}] {event.message}")
        self._log_event(event.kind.value, event.to_dict())

    def run_game(self, max_turns: int = 20) -> dict:
        """Play until the game ends or max_turns turns have been played."""
        self.start_time = datetime.now()
        self._log_event("game_start", {
            "scenario": self.scenario.name,
            "objective": self.scenario.objective,
            "seed": self.config.seed,
            "state": self.turn_manager.snapshot(),
        })

        tm = self.turn_manager
        while not tm.is_over and tm.turn_state.turn_number <= max_turns:
            turn = tm.turn_state.turn_number
            logger.info(f"\n{'='*60}")
            logger.info(f"TURN {turn}")
            logger.info(f"{'='*60}")
            actions = self.autopilot.play_turn()
            logger.info(f"Turn {turn} complete: {actions} Sherman actions")

        results = self._compile_results()
        self._log_event("game_end", results)
        self._save_game_log()
        return results

    def _compile_results(self) -> dict:
        """Compile final game results."""
        tm = self.turn_manager
        sherman = tm.sherman
        return {
            "turns_played": len(tm.game_state.turn_history),
            "winner": tm.game_state.winner,
            "sherman": sherman.to_dict(),
            "enemies_remaining": len(self.scenario.active_enemies()),
            "enemies_destroyed": len([v for v in self.scenario.enemies() if v.destroyed]),
            "map": self.scenario.hex_map.get_stats(),
            "duration": str(datetime.now() - self.start_time) if self.start_time else None,
        }

    def _log_event(self, event_type: str, data: dict):
        """Log a game event."""
        self.game_log.append({
            "timestamp": datetime.now().isoformat(),
            "event": event_type,
            "data": data,
        })

    def _save_game_log(self) -> Path:
        """Save game log to file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = self.log_dir / f"game_{timestamp}.json"

        with open(log_path, "w") as f:
            json.dump(self.game_log, f, indent=2, default=str)

        logger.info(f"Game log saved to: {log_path}")
        return log_path


def main():
    """Run a headless tank battle."""
    import argparse

    parser = argparse.ArgumentParser(description="Sherman Tank Combat Simulation")
    parser.add_argument("--scenario", default="village", help="Scenario name")
    parser.add_argument("--seed", type=int, default=None, help="Dice seed (default: rules/env)")
    parser.add_argument("--turns", type=int, default=20, help="Max turns")
    parser.add_argument("--data", default="data", help="Data directory path")
    parser.add_argument("--logs", default="logs", help="Log directory path")

    args = parser.parse_args()

    game = TankGame(
        data_path=args.data,
        scenario=args.scenario,
        log_dir=args.logs,
        seed=args.seed,
    )

    results = game.run_game(max_turns=args.turns)

    print("\n" + "="*60)
    print("FINAL RESULTS")
    print("="*60)
    print(f"Turns played: {results['turns_played']}")
    print(f"Winner: {results['winner'] or 'none (turn limit)'}")
    print(f"Enemies destroyed: {results['enemies_destroyed']}, remaining: {results['enemies_remaining']}")
    print(f"Duration: {results['duration']}")


if __name__ == "__main__":
    main()
