"""
Rules engine for a hex-grid Sherman tank-combat simulation.

Core modules:
- map: Axial hex geometry, terrain, line of sight and firing arcs
- units: Vehicles, crew and armor
- combat/: Dice, gunnery and damage resolution
- scenario: Board definition loading and dynamic spawns
- turn: Phase and dice-pool state machine, AI phase sequencing
- events: Outcome records for a presentation layer
- config: Rule policies loaded from YAML
"""

from .map import (
    HexMap, HexCell, TerrainType, FiringArcPolicy, ClearPath,
    angle_of_attack, axial_to_pixel, hex_distance, neighbor_coords,
)
from .units import (
    Vehicle, Crew, Faction, CrewStation, CrewStatus, GunStatus, ArmorFacing,
)
from .combat import Dice, DiceRoll, GunneryCombat, DamageResolver, FireResult, Weapon
from .scenario import Scenario, SpawnInstruction, load_scenario
from .config import RulesConfig
from .events import EventKind, GameEvent
from .turn import (
    TurnManager, TurnState, GameState, ActionResult, Phase, Pool, Action,
    action_for_die,
)

__all__ = [
    # Map
    "HexMap", "HexCell", "TerrainType", "FiringArcPolicy", "ClearPath",
    "angle_of_attack", "axial_to_pixel", "hex_distance", "neighbor_coords",
    # Units
    "Vehicle", "Crew", "Faction", "CrewStation", "CrewStatus", "GunStatus", "ArmorFacing",
    # Combat
    "Dice", "DiceRoll", "GunneryCombat", "DamageResolver", "FireResult", "Weapon",
    # Scenario
    "Scenario", "SpawnInstruction", "load_scenario",
    # Config and events
    "RulesConfig", "EventKind", "GameEvent",
    # Turn Management
    "TurnManager", "TurnState", "GameState", "ActionResult", "Phase", "Pool", "Action",
    "action_for_die",
]
