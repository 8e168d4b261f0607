"""
Scenario state: the board plus every vehicle on it.

A scenario is built once from a static definition. Dynamic spawn
instructions are resolved at that point into concrete vehicles with
generated ids; afterwards only vehicle and overlay state changes.
"""

import copy
import logging
import random
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .map import Coords, HexMap, neighbor_coords, normalize_facing
from .units import Faction, Vehicle

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_ID = "unit-sherman-1"
ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class SpawnInstruction:
    """Place `count` copies of a template on randomly chosen candidate hexes."""
    template_id: str
    possible_hexes: list[dict] = field(default_factory=list)
    count: int = 1
    facing: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "SpawnInstruction":
        return cls(
            template_id=data.get("templateId", data.get("template_id", "")),
            possible_hexes=list(data.get("possibleHexes", data.get("possible_hexes", []))),
            count=int(data.get("count", 1)),
            facing=data.get("facing", data.get("rotation")),
        )


class Scenario:
    """The full board: hex map, vehicles and scenario metadata."""

    def __init__(
        self,
        hex_map: HexMap,
        vehicles: list[Vehicle],
        name: str = "",
        objective: str = "",
        player_id: str = DEFAULT_PLAYER_ID,
    ):
        self.hex_map = hex_map
        self.name = name
        self.objective = objective
        self.vehicles: dict[str, Vehicle] = {}
        for vehicle in vehicles:
            self.vehicles[vehicle.id] = vehicle
        self.player_id = self._resolve_player_id(player_id)

    def _resolve_player_id(self, player_id: str) -> str:
        if player_id in self.vehicles:
            return player_id
        for vehicle in self.vehicles.values():
            if vehicle.faction == Faction.PLAYER:
                return vehicle.id
        if self.vehicles:
            fallback = next(iter(self.vehicles.values()))
            logger.warning(f"No player vehicle '{player_id}', using '{fallback.id}'")
            fallback.faction = Faction.PLAYER
            return fallback.id
        raise ValueError("Scenario has no vehicles")

    # Construction

    @classmethod
    def from_definition(
        cls,
        data: dict,
        rng: Optional[random.Random] = None,
        player_id: str = DEFAULT_PLAYER_ID,
    ) -> "Scenario":
        """Build a scenario from its static definition, resolving spawns."""
        data = copy.deepcopy(data)
        rng = rng or random.Random()

        hex_map = HexMap.from_definition(data.get("map", {}).get("hexes", []))

        vehicles = []
        for unit in data.get("units", []):
            faction = Faction.PLAYER if unit.get("id") == player_id else None
            vehicles.append(Vehicle.from_dict(unit, faction=faction))

        scenario = cls(
            hex_map,
            vehicles,
            name=data.get("name", ""),
            objective=data.get("objective", ""),
            player_id=player_id,
        )

        templates = {t.get("id"): t for t in data.get("unitTemplates", [])}
        for raw in data.get("dynamicSpawns", []):
            scenario.resolve_spawn(SpawnInstruction.from_dict(raw), templates, rng)

        logger.info(
            f"Scenario '{scenario.name}' ready: {len(hex_map)} hexes, "
            f"{len(scenario.vehicles)} vehicles"
        )
        return scenario

    def resolve_spawn(
        self,
        instruction: SpawnInstruction,
        templates: dict[str, dict],
        rng: random.Random,
    ) -> list[Vehicle]:
        """Create vehicles for one spawn instruction; bad entries are skipped."""
        template = templates.get(instruction.template_id)
        if not template:
            logger.warning(
                f"Template with ID '{instruction.template_id}' not found for dynamic spawn"
            )
            return []

        candidates = []
        seen = set()
        for hex_data in instruction.possible_hexes:
            coords = (int(hex_data["q"]), int(hex_data["r"]))
            if coords not in self.hex_map:
                logger.warning(f"Spawn hex {coords} is not on the map, skipping")
                continue
            if self.vehicle_at(*coords):
                logger.warning(f"Spawn hex {coords} is occupied, skipping")
                continue
            if coords in seen:
                logger.warning(f"Spawn hex {coords} is listed twice, skipping")
                continue
            seen.add(coords)
            candidates.append(hex_data)

        if len(candidates) < instruction.count:
            logger.warning(
                f"Only {len(candidates)} spawn hexes for {instruction.count} "
                f"'{instruction.template_id}' units"
            )
            chosen = candidates
        else:
            chosen = rng.sample(candidates, instruction.count)

        spawned = []
        for hex_data in chosen:
            unit = dict(template)
            unit["id"] = self._generate_id(instruction.template_id, rng)
            unit["templateId"] = instruction.template_id
            unit["currentHex"] = {"q": hex_data["q"], "r": hex_data["r"]}
            facing = hex_data.get("rotation", instruction.facing)
            unit["rotation"] = facing or 0
            vehicle = Vehicle.from_dict(unit)
            self.vehicles[vehicle.id] = vehicle
            spawned.append(vehicle)
        return spawned

    def _generate_id(self, template_id: str, rng: random.Random) -> str:
        while True:
            suffix = "".join(rng.choices(ID_ALPHABET, k=9))
            vehicle_id = f"{template_id}-{suffix}"
            if vehicle_id not in self.vehicles:
                return vehicle_id

    # Queries

    @property
    def player(self) -> Vehicle:
        return self.vehicles[self.player_id]

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return self.vehicles.get(vehicle_id)

    def enemies(self) -> list[Vehicle]:
        return [v for v in self.vehicles.values() if v.id != self.player_id]

    def active_enemies(self) -> list[Vehicle]:
        return [v for v in self.enemies() if v.is_active]

    def vehicle_at(self, q: int, r: int) -> Optional[Vehicle]:
        """Non-destroyed vehicle on a hex, if any."""
        for vehicle in self.vehicles.values():
            if vehicle.is_active and vehicle.hex == (q, r):
                return vehicle
        return None

    def is_occupied(self, coords: Coords, ignore: Optional[Vehicle] = None) -> bool:
        occupant = self.vehicle_at(*coords)
        return occupant is not None and occupant is not ignore

    # Movement

    def move_vehicle(self, vehicle: Vehicle, reverse: bool = False) -> Optional[str]:
        """Step one hex along (or against) the vehicle's facing.

        Returns the reason the move is illegal, or None once it is applied.
        """
        if vehicle.immobilized:
            return "immobilized"
        facing = (vehicle.facing + 180) % 360 if reverse else vehicle.facing
        destination = neighbor_coords(*vehicle.hex, facing)
        if destination not in self.hex_map:
            return "off map"
        if self.is_occupied(destination, ignore=vehicle):
            return "occupied"
        vehicle.place(*destination)
        vehicle.hull_down = False
        return None

    def turn_vehicle(self, vehicle: Vehicle, step: int) -> Optional[str]:
        """Rotate the vehicle one 60 degree step (+60 clockwise, -60 counter)."""
        if vehicle.immobilized:
            return "immobilized"
        step = normalize_facing(step)
        if step not in (60, 300):
            return "turns are one 60 degree step"
        vehicle.facing = normalize_facing(vehicle.facing + step)
        vehicle.hull_down = False
        return None

    def snapshot(self) -> dict:
        """Deep, JSON-ready copy of the board for rendering."""
        return {
            "name": self.name,
            "objective": self.objective,
            "player_id": self.player_id,
            "map": {"hexes": self.hex_map.to_dict()},
            "units": [v.to_dict() for v in self.vehicles.values()],
        }


def load_scenario(
    path: Path | str,
    rng: Optional[random.Random] = None,
    player_id: str = DEFAULT_PLAYER_ID,
) -> Scenario:
    """Load a scenario definition file (YAML or JSON)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    return Scenario.from_definition(data, rng=rng, player_id=player_id)
