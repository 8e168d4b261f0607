"""
Pytest fixtures for the tank-combat engine test suite.

Provides scripted dice, small open boards, stock vehicles and a turn
manager with a recording enemy agent.
"""

from pathlib import Path

import pytest

from agents.base import AgentTurnReport
from tankwar.combat import Dice
from tankwar.config import RulesConfig
from tankwar.map import HexCell, HexMap
from tankwar.scenario import Scenario
from tankwar.turn import TurnManager
from tankwar.units import ArmorFacing, Faction, GunStatus, Vehicle

DATA_PATH = Path(__file__).parent.parent / "data"


class ScriptedDice(Dice):
    """Dice that return a fixed sequence of faces."""

    def __init__(self, *values: int):
        super().__init__(seed=0)
        self.values = list(values)

    def push(self, *values: int):
        self.values.extend(values)

    def d6(self) -> int:
        if not self.values:
            raise AssertionError("scripted dice exhausted")
        return self.values.pop(0)


class RecordingAgent:
    """Enemy agent that does nothing but remember who acted."""

    def __init__(self):
        self.calls: list[str] = []

    def take_turn(self, vehicle, scenario) -> AgentTurnReport:
        self.calls.append(vehicle.id)
        return AgentTurnReport(vehicle_id=vehicle.id, table="idle")


# =============================================================================
# Builders
# =============================================================================


def build_map(width: int = 5, height: int = 5, terrain: dict = None, default: str = "open") -> HexMap:
    """Axial parallelogram board, q in [0, width), r in [0, height)."""
    terrain = terrain or {}
    return HexMap(
        HexCell(q=q, r=r, terrain=terrain.get((q, r), default))
        for q in range(width)
        for r in range(height)
    )


def build_vehicle(vehicle_id: str, faction: Faction, q: int, r: int, facing: int = 0, **kwargs) -> Vehicle:
    kwargs.setdefault("armor", {
        ArmorFacing.FRONT: 4,
        ArmorFacing.FRONT_SIDE: 3,
        ArmorFacing.REAR_SIDE: 2,
        ArmorFacing.REAR: 1,
    })
    kwargs.setdefault("armor_pen", 2)
    return Vehicle(id=vehicle_id, faction=faction, q=q, r=r, facing=facing, **kwargs)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def make_map():
    return build_map


@pytest.fixture
def make_vehicle():
    return build_vehicle


@pytest.fixture
def dice():
    return ScriptedDice()


@pytest.fixture
def sherman():
    return build_vehicle("unit-sherman-1", Faction.PLAYER, 2, 0, 0, name="M4 Sherman", main_gun=GunStatus.LOADED)


@pytest.fixture
def panzer():
    return build_vehicle("panzer-1", Faction.ENEMY, 2, 4, 180, name="Panzer IV", main_gun=GunStatus.LOADED)


@pytest.fixture
def board(sherman, panzer):
    """5x5 open board: Sherman at (2,0) facing north, Panzer at (2,4) facing it."""
    return Scenario(build_map(), [sherman, panzer], name="Test board")


@pytest.fixture
def agent():
    return RecordingAgent()


@pytest.fixture
def manager(board, dice, agent):
    return TurnManager(board, RulesConfig(), dice=dice, enemy_agent=agent)


@pytest.fixture
def operations(manager):
    """Turn manager already in the Sherman operations phase, Maneuver active."""
    from tankwar.units import CrewStatus

    manager.start_turn()
    manager.choose_posture(CrewStatus.BUTTONED_UP)
    return manager


@pytest.fixture
def data_path():
    return DATA_PATH
