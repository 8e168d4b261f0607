"""
Vehicle state for the Sherman tank-combat simulation.

Handles the player's Sherman and enemy armor: position, facing, armor,
gun state, damage flags and crew.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .map import Coords, normalize_facing


class Faction(Enum):
    PLAYER = "player"
    ENEMY = "enemy"


class CrewStation(Enum):
    COMMANDER = "commander"
    GUNNER = "gunner"
    LOADER = "loader"
    DRIVER = "driver"
    ASSISTANT_DRIVER = "assistantDriver"


class CrewStatus(Enum):
    OK = "ok"
    KIA = "kia"
    BUTTONED_UP = "buttoned up"  # commander only
    POPPED_HATCH = "popped hatch"  # commander only


class GunStatus(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


class ArmorFacing(Enum):
    FRONT = "front"
    FRONT_SIDE = "front_side"
    REAR_SIDE = "rear_side"
    REAR = "rear"


def _parse_crew_status(value) -> CrewStatus:
    if isinstance(value, CrewStatus):
        return value
    return CrewStatus(str(value).strip().lower())


@dataclass
class Crew:
    """Five crew stations; the commander also carries a hatch posture."""
    commander: CrewStatus = CrewStatus.BUTTONED_UP
    gunner: CrewStatus = CrewStatus.OK
    loader: CrewStatus = CrewStatus.OK
    driver: CrewStatus = CrewStatus.OK
    assistant_driver: CrewStatus = CrewStatus.OK

    _ATTRS = {
        CrewStation.COMMANDER: "commander",
        CrewStation.GUNNER: "gunner",
        CrewStation.LOADER: "loader",
        CrewStation.DRIVER: "driver",
        CrewStation.ASSISTANT_DRIVER: "assistant_driver",
    }

    def status(self, station: CrewStation) -> CrewStatus:
        return getattr(self, self._ATTRS[station])

    def set_status(self, station: CrewStation, status: CrewStatus):
        setattr(self, self._ATTRS[station], status)

    def is_alive(self, station: CrewStation) -> bool:
        return self.status(station) != CrewStatus.KIA

    @property
    def commander_popped_hatch(self) -> bool:
        return self.commander == CrewStatus.POPPED_HATCH

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Crew":
        data = data or {}
        return cls(
            commander=_parse_crew_status(data.get("commander", CrewStatus.BUTTONED_UP)),
            gunner=_parse_crew_status(data.get("gunner", CrewStatus.OK)),
            loader=_parse_crew_status(data.get("loader", CrewStatus.OK)),
            driver=_parse_crew_status(data.get("driver", CrewStatus.OK)),
            assistant_driver=_parse_crew_status(
                data.get("assistantDriver", data.get("assistant_driver", CrewStatus.OK))
            ),
        )

    def to_dict(self) -> dict:
        return {station.value: self.status(station).value for station in CrewStation}


def _parse_armor(data: Optional[dict]) -> dict[ArmorFacing, int]:
    data = data or {}
    armor = {}
    for facing in ArmorFacing:
        # camelCase variants appear in older scenario files
        camel = facing.value.replace("_s", "S")
        armor[facing] = int(data.get(facing.value, data.get(camel, 0)))
    return armor


@dataclass
class Vehicle:
    """A tank on the board, either the player's Sherman or an enemy."""
    id: str
    faction: Faction
    q: int
    r: int
    facing: int = 0
    name: str = ""
    size: int = 0
    armor: dict[ArmorFacing, int] = field(default_factory=dict)
    armor_pen: int = 0
    main_gun: GunStatus = GunStatus.UNLOADED
    destroyed: bool = False
    damaged: bool = False
    hull_down: bool = False
    turret_damaged: bool = False
    immobilized: bool = False
    fire_level: int = 0
    crew: Crew = field(default_factory=Crew)
    sprite: Optional[str] = None
    template_id: Optional[str] = None

    def __post_init__(self):
        self.facing = normalize_facing(self.facing)

    @property
    def hex(self) -> Coords:
        return (self.q, self.r)

    @property
    def is_player(self) -> bool:
        return self.faction == Faction.PLAYER

    @property
    def is_active(self) -> bool:
        """Destroyed vehicles take no further part in the game."""
        return not self.destroyed

    @property
    def is_loaded(self) -> bool:
        return self.main_gun == GunStatus.LOADED

    def armor_value(self, facing: ArmorFacing) -> int:
        return self.armor.get(facing, 0)

    def place(self, q: int, r: int):
        self.q, self.r = q, r

    @classmethod
    def from_dict(cls, data: dict, faction: Optional[Faction] = None) -> "Vehicle":
        """Create a vehicle from a scenario unit or template entry."""
        current = data.get("currentHex") or {}
        faction_value = data.get("faction")
        if faction is None:
            faction = Faction(faction_value) if faction_value else Faction.ENEMY

        return cls(
            id=str(data["id"]),
            faction=faction,
            q=int(current.get("q", data.get("q", 0))),
            r=int(current.get("r", data.get("r", 0))),
            facing=int(data.get("rotation", data.get("facing", 0)) or 0),
            name=data.get("name", data["id"]),
            size=int(data.get("size", 0)),
            armor=_parse_armor(data.get("armor")),
            armor_pen=int(data.get("armor_pen", data.get("armorPen", 0))),
            main_gun=GunStatus(str(data.get("mainGunStatus", data.get("main_gun", "unloaded"))).lower()),
            destroyed=bool(data.get("destroyed", False)),
            damaged=bool(data.get("damaged", False)),
            hull_down=bool(data.get("hull_down", data.get("hullDown", False))),
            turret_damaged=_flag(data.get("turretDamaged", data.get("turret_damaged", False))),
            immobilized=_flag(data.get("immobilized", False)),
            fire_level=int(data.get("fireLevel", data.get("fire_level", 0))),
            crew=Crew.from_dict(data.get("crew")),
            sprite=data.get("sprite"),
            template_id=data.get("templateId"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "faction": self.faction.value,
            "currentHex": {"q": self.q, "r": self.r},
            "rotation": self.facing,
            "size": self.size,
            "armor": {facing.value: value for facing, value in self.armor.items()},
            "armor_pen": self.armor_pen,
            "mainGunStatus": self.main_gun.value,
            "destroyed": self.destroyed,
            "damaged": self.damaged,
            "hull_down": self.hull_down,
            "turretDamaged": self.turret_damaged,
            "immobilized": self.immobilized,
            "fireLevel": self.fire_level,
            "crew": self.crew.to_dict(),
            "sprite": self.sprite,
        }


def _flag(value) -> bool:
    """Accept booleans and the "yes"/"no" strings used by the status display."""
    if isinstance(value, str):
        return value.strip().lower() in ("yes", "true", "1")
    return bool(value)
