"""
Outcome records emitted by the rules engine for a presentation layer.

The engine never plays sounds or waits; each event may carry a delay_ms
hint so a renderer can pace animations.
"""

from dataclasses import dataclass, field
from enum import Enum


class EventKind(Enum):
    TURN_STARTED = "turn_started"
    PHASE_CHANGED = "phase_changed"
    POSTURE = "posture"
    POOL_ROLLED = "pool_rolled"
    POOL_SKIPPED = "pool_skipped"
    DIE_SELECTED = "die_selected"
    ACTION = "action"
    ILLEGAL_ACTION = "illegal_action"
    WARNING = "warning"
    FIRE = "fire"
    DAMAGE = "damage"
    KIA = "kia"
    FIRE_CHECK = "fire_check"
    AI_ACTION = "ai_action"
    VICTORY = "victory"
    DEFEAT = "defeat"


@dataclass
class GameEvent:
    """A single narratable outcome."""
    kind: EventKind
    message: str
    turn: int
    phase: str
    data: dict = field(default_factory=dict)
    delay_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "turn": self.turn,
            "phase": self.phase,
            "data": self.data,
            "delay_ms": self.delay_ms,
        }
