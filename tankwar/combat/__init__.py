"""
Combat resolution: dice, gunnery and damage tables.

Fire sequence: to-hit (2D6) -> penetration (1D6) -> damage table.
"""

from .base import CombatResolver, Dice, DiceRoll
from .damage import (
    DamageOutcome, DamageResolver, DamageResult, FireCheckResult,
    KiaResult, PenetrationResult,
)
from .gunnery import (
    FireResult, GunneryCombat, ToHit, Weapon,
    armor_facing_for_bearing, calculate_to_hit, in_southern_arc, struck_facing,
)

__all__ = [
    "CombatResolver",
    "Dice",
    "DiceRoll",
    "DamageOutcome",
    "DamageResolver",
    "DamageResult",
    "FireCheckResult",
    "KiaResult",
    "PenetrationResult",
    "FireResult",
    "GunneryCombat",
    "ToHit",
    "Weapon",
    "armor_facing_for_bearing",
    "calculate_to_hit",
    "in_southern_arc",
    "struck_facing",
]
