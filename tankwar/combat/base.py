"""
Base combat resolution system with common dice mechanics.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class DiceRoll:
    """Result of rolling one or more six-sided dice."""
    rolls: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.rolls)

    @property
    def lowest(self) -> Optional[int]:
        return min(self.rolls) if self.rolls else None

    def sorted(self) -> list[int]:
        return sorted(self.rolls)


class Dice:
    """Six-sided dice backed by a seedable random generator."""

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def d6(self) -> int:
        return self.rng.randint(1, 6)

    def roll(self, count: int, reason: str = "") -> DiceRoll:
        """Roll `count` six-sided dice."""
        result = DiceRoll([self.d6() for _ in range(max(0, count))])
        logger.debug(f"Rolled {count}D6 {result.rolls}" + (f" for {reason}" if reason else ""))
        return result

    def roll_2d6(self, reason: str = "") -> DiceRoll:
        return self.roll(2, reason)


class CombatResolver:
    """Base class for combat resolution."""

    def __init__(self, dice: Optional[Dice] = None):
        self.dice = dice or Dice()

    def roll_d6(self, reason: str = "") -> int:
        return self.dice.roll(1, reason).rolls[0]
