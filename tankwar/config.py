"""
Rules configuration loaded from data/rules.yaml.

Falls back to built-in defaults when the file is missing. A few values can
be overridden from the environment (entry points load .env first).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .map import FiringArcPolicy
from .scenario import DEFAULT_PLAYER_ID

logger = logging.getLogger(__name__)

ENV_SEED = "TANKWAR_SEED"
ENV_FIRING_ARC = "TANKWAR_FIRING_ARC"


@dataclass
class RulesConfig:
    """Tunable rule policies and presentation pacing hints."""
    firing_arc_policy: FiringArcPolicy = FiringArcPolicy.ALL_RAYS
    mg_penetration: int = 0  # hull MG only harms armor at or below this value
    player_vehicle_id: str = DEFAULT_PLAYER_ID
    settle_delay_ms: int = 600  # pause after a dice pool empties
    ai_step_delay_ms: int = 800  # pause between enemy action steps
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RulesConfig":
        data = data or {}
        defaults = cls()
        seed = data.get("seed", defaults.seed)
        return cls(
            firing_arc_policy=FiringArcPolicy(
                data.get("firing_arc_policy", defaults.firing_arc_policy.value)
            ),
            mg_penetration=int(data.get("mg_penetration", defaults.mg_penetration)),
            player_vehicle_id=data.get("player_vehicle_id", defaults.player_vehicle_id),
            settle_delay_ms=int(data.get("settle_delay_ms", defaults.settle_delay_ms)),
            ai_step_delay_ms=int(data.get("ai_step_delay_ms", defaults.ai_step_delay_ms)),
            seed=int(seed) if seed is not None else None,
        )

    @classmethod
    def load(cls, data_path: Path | str = "data") -> "RulesConfig":
        """Load rules.yaml from the data directory, then apply env overrides."""
        rules_path = Path(data_path) / "rules.yaml"
        data = {}
        if rules_path.exists():
            with open(rules_path) as f:
                data = yaml.safe_load(f) or {}
            logger.info(f"Loaded rules from {rules_path}")
        else:
            logger.info(f"No rules file at {rules_path}, using defaults")

        config = cls.from_dict(data.get("rules", data))
        config.apply_env()
        return config

    def apply_env(self):
        """Override seed and firing-arc policy from environment variables."""
        seed = os.getenv(ENV_SEED)
        if seed:
            self.seed = int(seed)
        arc = os.getenv(ENV_FIRING_ARC)
        if arc:
            self.firing_arc_policy = FiringArcPolicy(arc)
