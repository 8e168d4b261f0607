"""
Direct-fire gunnery between vehicles.

To-hit numbers, struck armor facing and the full fire sequence:
2D6 to hit, 1D6 to penetrate, then the damage table for the target.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..map import FiringArcPolicy, HexMap, TerrainType, angle_of_attack, hex_distance
from ..units import ArmorFacing, Vehicle
from .base import CombatResolver, Dice, DiceRoll
from .damage import DamageResolver, DamageResult, PenetrationResult

logger = logging.getLogger(__name__)

UNREACHABLE_TO_HIT = 99


class Weapon(Enum):
    MAIN_GUN = "main_gun"
    MG = "mg"


@dataclass
class ToHit:
    """To-hit number with the breakdown of each addend."""
    to_hit: int
    distance: int = 0
    size: int = 0
    building: int = 0
    smoke: int = 0
    hull_down: int = 0
    southern_arc: int = 0
    error: Optional[str] = None

    @property
    def breakdown(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "distance": self.distance,
            "size": self.size,
            "building": self.building,
            "smoke": self.smoke,
            "hullDown": self.hull_down,
            "southernArc": self.southern_arc,
        }


@dataclass
class FireResult:
    """Everything that happened during one shot."""
    attacker_id: str
    target_id: str
    weapon: Weapon
    to_hit: ToHit
    roll: DiceRoll
    hit: bool
    facing: Optional[ArmorFacing] = None
    penetration: Optional[PenetrationResult] = None
    damage: Optional[DamageResult] = None
    notes: list[str] = field(default_factory=list)

    @property
    def penetrated(self) -> bool:
        return bool(self.penetration and self.penetration.penetrated)

    @property
    def bounced(self) -> bool:
        return self.hit and not self.penetrated

    def to_dict(self) -> dict:
        data = {
            "attacker_id": self.attacker_id,
            "target_id": self.target_id,
            "weapon": self.weapon.value,
            "to_hit": self.to_hit.to_hit,
            "breakdown": self.to_hit.breakdown,
            "rolls": list(self.roll.rolls),
            "roll_total": self.roll.total,
            "hit": self.hit,
            "facing": self.facing.value if self.facing else None,
            "penetrated": self.penetrated,
            "notes": list(self.notes),
        }
        if self.penetration:
            data["penetration"] = {
                "armor": self.penetration.armor_value,
                "armor_pen": self.penetration.armor_pen,
                "needed": self.penetration.needed,
                "roll": self.penetration.roll,
            }
        if self.damage:
            data["damage"] = {
                "roll": self.damage.roll,
                "outcome": self.damage.outcome.value,
                "fire_level": self.damage.fire_level,
            }
            if self.damage.kia:
                data["damage"]["kia"] = {
                    "roll": self.damage.kia.roll,
                    "station": self.damage.kia.station.value if self.damage.kia.station else None,
                    "killed": self.damage.kia.killed,
                }
        return data


def in_southern_arc(attacker_hex: tuple[int, int], target_hex: tuple[int, int]) -> bool:
    """Target lies in the attacker-relative southern half (SW, S or SE)."""
    dq = target_hex[0] - attacker_hex[0]
    dr = target_hex[1] - attacker_hex[1]
    return dr < 0 or (dr == 0 and dq < 0)


def calculate_to_hit(attacker: Vehicle, target: Vehicle, hex_map: HexMap) -> ToHit:
    """Minimum 2D6 total needed for attacker to hit target."""
    target_cell = hex_map.get_cell(*target.hex)
    if not target_cell:
        logger.warning(f"Target hex {target.hex} for {target.id} not found on map")
        return ToHit(to_hit=UNREACHABLE_TO_HIT, error="Target hex not found")

    distance = hex_distance(*attacker.hex, *target.hex)
    building = 1 if target_cell.has_terrain(TerrainType.BUILDINGS) else 0
    smoke = 1 if target_cell.has_smoke else 0
    hull_down = 2 if target.hull_down else 0
    southern = 1 if in_southern_arc(attacker.hex, target.hex) else 0

    return ToHit(
        to_hit=distance + target.size + building + smoke + hull_down + southern,
        distance=distance,
        size=target.size,
        building=building,
        smoke=smoke,
        hull_down=hull_down,
        southern_arc=southern,
    )


def armor_facing_for_bearing(relative: int) -> ArmorFacing:
    """Bucket a relative bearing (0 = dead ahead of the target) into an armor arc."""
    relative %= 360
    if relative >= 330 or relative < 30:
        return ArmorFacing.FRONT
    if relative < 90 or relative >= 270:
        return ArmorFacing.FRONT_SIDE
    if relative < 150 or relative >= 210:
        return ArmorFacing.REAR_SIDE
    return ArmorFacing.REAR


def struck_facing(attacker: Vehicle, target: Vehicle) -> ArmorFacing:
    """Armor facing of target that a shot from attacker strikes."""
    incoming = angle_of_attack(attacker.hex, target.hex)
    arrived_from = (incoming + 180) % 360
    relative = (arrived_from - target.facing) % 360
    return armor_facing_for_bearing(relative)


class GunneryCombat(CombatResolver):
    """Resolves direct fire between two vehicles."""

    def __init__(
        self,
        dice: Optional[Dice] = None,
        arc_policy: FiringArcPolicy = FiringArcPolicy.ALL_RAYS,
        mg_penetration: int = 0,
    ):
        super().__init__(dice)
        self.arc_policy = arc_policy
        self.mg_penetration = mg_penetration
        self.damage = DamageResolver(self.dice)

    def check_target(self, attacker: Vehicle, target: Optional[Vehicle], hex_map: HexMap) -> Optional[str]:
        """Reason the target cannot be engaged, or None if the shot is legal."""
        if target is None:
            return "no such target"
        if not target.is_active:
            return "target already destroyed"
        if target is attacker or target.faction == attacker.faction:
            return "cannot target a friendly vehicle"
        if target.hex not in hex_map:
            logger.warning(f"Target {target.id} stands on {target.hex}, which is not on the map")
            return "target hex not found"

        arc = hex_map.firing_arc_hexes(*attacker.hex, attacker.facing, self.arc_policy)
        if target.hex not in arc:
            return "target not in firing arc"

        path = hex_map.has_clear_path(attacker.hex, target.hex)
        if path.blocked:
            return f"line of sight {path.reason}"
        return None

    def resolve_fire(
        self,
        attacker: Vehicle,
        target: Vehicle,
        hex_map: HexMap,
        weapon: Weapon = Weapon.MAIN_GUN,
    ) -> FireResult:
        """Roll to hit, then penetration and damage. Target must already be legal."""
        to_hit = calculate_to_hit(attacker, target, hex_map)
        roll = self.dice.roll_2d6("to hit")
        hit = roll.total >= to_hit.to_hit
        result = FireResult(
            attacker_id=attacker.id,
            target_id=target.id,
            weapon=weapon,
            to_hit=to_hit,
            roll=roll,
            hit=hit,
        )

        if not hit:
            result.notes.append(f"Missed: rolled {roll.total}, needed {to_hit.to_hit}")
            return result

        result.facing = struck_facing(attacker, target)
        armor = target.armor_value(result.facing)

        if weapon == Weapon.MG:
            if armor > self.mg_penetration:
                result.notes.append(f"MG hit on {result.facing.value} armor, no effect")
                return result
            result.penetration = PenetrationResult(armor, self.mg_penetration, 0, 0, True)
        else:
            result.penetration = self.damage.check_penetration(armor, attacker.armor_pen)
            if not result.penetrated:
                result.notes.append(
                    f"Bounced off {result.facing.value} armor: rolled "
                    f"{result.penetration.roll}, needed {result.penetration.needed}"
                )
                return result

        if target.is_player:
            result.damage = self.damage.apply_player_damage(target)
        else:
            result.damage = self.damage.apply_enemy_damage(target)
        result.notes.append(f"Penetrated {result.facing.value} armor: {result.damage.outcome.value}")
        return result
