"""
Damage resolution after a penetrating hit.

Handles:
- Penetration checks against facing armor
- Enemy damage escalation (damaged -> destroyed)
- The Sherman's six-entry damage table
- Crew casualty (KIA) checks
- The once-per-turn fire check
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..units import CrewStation, CrewStatus, Vehicle
from .base import CombatResolver, DiceRoll

logger = logging.getLogger(__name__)


class DamageOutcome(Enum):
    DAMAGED = "damaged"
    DESTROYED = "destroyed"
    KIA_CHECK = "kia_check"
    FIRE = "fire"
    TURRET_DAMAGED = "turret_damaged"
    IMMOBILIZED = "immobilized"


@dataclass
class PenetrationResult:
    """A single 1D6 roll against armor minus penetration."""
    armor_value: int
    armor_pen: int
    needed: int
    roll: int
    penetrated: bool


@dataclass
class KiaResult:
    """Outcome of a crew casualty check."""
    roll: int
    station: Optional[CrewStation] = None
    killed: bool = False
    note: str = ""


@dataclass
class DamageResult:
    """Outcome of one roll on a damage table."""
    vehicle_id: str
    roll: int
    outcome: DamageOutcome
    kia: Optional[KiaResult] = None
    fire_level: int = 0

    @property
    def destroyed(self) -> bool:
        return self.outcome == DamageOutcome.DESTROYED


@dataclass
class FireCheckResult:
    """Once-per-turn fire check: lowest of fire_level dice on the damage table."""
    dice: DiceRoll
    lowest: int
    damage: DamageResult


class DamageResolver(CombatResolver):
    """Resolves penetration, damage tables, crew casualties and fire."""

    # Sherman damage table, shared by penetrating hits and the fire check
    PLAYER_DAMAGE_TABLE = {
        1: DamageOutcome.DESTROYED,
        2: DamageOutcome.KIA_CHECK,
        3: DamageOutcome.FIRE,
        4: DamageOutcome.FIRE,
        5: DamageOutcome.TURRET_DAMAGED,
        6: DamageOutcome.IMMOBILIZED,
    }

    KIA_TABLE = {
        1: CrewStation.COMMANDER,
        2: CrewStation.GUNNER,
        3: CrewStation.LOADER,
        4: CrewStation.DRIVER,
        5: CrewStation.ASSISTANT_DRIVER,
    }

    # Enemy damage: 1-4 escalate, 5-6 destroy outright
    ENEMY_ESCALATE_MAX = 4

    @staticmethod
    def penetration_needed(armor_value: int, armor_pen: int) -> int:
        return armor_value - armor_pen

    def check_penetration(self, armor_value: int, armor_pen: int) -> PenetrationResult:
        """Roll 1D6; a roll equal to the needed score penetrates."""
        needed = self.penetration_needed(armor_value, armor_pen)
        roll = self.roll_d6("penetration")
        return PenetrationResult(
            armor_value=armor_value,
            armor_pen=armor_pen,
            needed=needed,
            roll=roll,
            penetrated=roll >= needed,
        )

    def apply_enemy_damage(self, vehicle: Vehicle) -> DamageResult:
        """Damage an enemy vehicle after penetration."""
        roll = self.roll_d6("enemy damage")
        if roll <= self.ENEMY_ESCALATE_MAX and not vehicle.damaged:
            vehicle.damaged = True
            outcome = DamageOutcome.DAMAGED
        else:
            vehicle.destroyed = True
            outcome = DamageOutcome.DESTROYED

        logger.info(f"{vehicle.id} {outcome.value} (roll {roll})")
        return DamageResult(vehicle_id=vehicle.id, roll=roll, outcome=outcome)

    def apply_player_damage(self, vehicle: Vehicle, roll: Optional[int] = None) -> DamageResult:
        """Apply one entry of the Sherman damage table.

        A KIA check result is resolved immediately and attached.
        """
        if roll is None:
            roll = self.roll_d6("sherman damage")
        outcome = self.PLAYER_DAMAGE_TABLE[roll]
        result = DamageResult(vehicle_id=vehicle.id, roll=roll, outcome=outcome)

        if outcome == DamageOutcome.DESTROYED:
            vehicle.destroyed = True
        elif outcome == DamageOutcome.KIA_CHECK:
            result.kia = self.kia_check(vehicle)
        elif outcome == DamageOutcome.FIRE:
            vehicle.fire_level += 1
        elif outcome == DamageOutcome.TURRET_DAMAGED:
            vehicle.turret_damaged = True
        elif outcome == DamageOutcome.IMMOBILIZED:
            vehicle.immobilized = True

        result.fire_level = vehicle.fire_level
        logger.info(f"{vehicle.id} damage roll {roll}: {outcome.value}")
        return result

    def kia_check(self, vehicle: Vehicle) -> KiaResult:
        """Roll 1D6 on the crew casualty table."""
        roll = self.roll_d6("kia check")
        crew = vehicle.crew

        if roll == 6:
            if crew.commander_popped_hatch:
                crew.set_status(CrewStation.COMMANDER, CrewStatus.KIA)
                return KiaResult(roll, CrewStation.COMMANDER, True, "commander hit in open hatch")
            return KiaResult(roll, None, False, "commander buttoned up, no effect")

        station = self.KIA_TABLE[roll]
        if not crew.is_alive(station):
            return KiaResult(roll, station, False, f"{station.value} already KIA")

        crew.set_status(station, CrewStatus.KIA)
        logger.info(f"{vehicle.id} {station.value} KIA")
        return KiaResult(roll, station, True, f"{station.value} KIA")

    def fire_check(self, vehicle: Vehicle) -> Optional[FireCheckResult]:
        """Roll fire_level dice and apply the lowest to the damage table."""
        if vehicle.fire_level <= 0:
            return None
        dice = self.dice.roll(vehicle.fire_level, "fire check")
        lowest = dice.lowest
        damage = self.apply_player_damage(vehicle, roll=lowest)
        return FireCheckResult(dice=dice, lowest=lowest, damage=damage)
