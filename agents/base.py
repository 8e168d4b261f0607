"""
Base table-driven vehicle agent.

An agent rolls a set of dice once per turn, sorts them ascending and
resolves each roll as one discrete action step, falling back to a
secondary action when the primary one is illegal.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from tankwar.combat import FireResult, GunneryCombat, Weapon
from tankwar.map import angle_of_attack
from tankwar.scenario import Scenario
from tankwar.units import Vehicle

logger = logging.getLogger(__name__)


class AgentAction(Enum):
    MOVE = "move"
    REVERSE = "reverse"
    TURN_TOWARD = "turn_toward"
    FIRE = "fire"
    SMOKE = "smoke"
    REPAIR = "repair"
    HULL_DOWN = "hull_down"


# Roll value -> (primary intent, fallback intent or None)
ActionTable = dict[int, tuple[AgentAction, Optional[AgentAction]]]


@dataclass
class AgentTable:
    """An action table and the number of dice rolled against it."""
    name: str
    dice: int
    actions: ActionTable


@dataclass
class AgentStep:
    """One resolved roll of an agent's sequence."""
    roll: int
    intent: AgentAction
    performed: Optional[AgentAction] = None
    reason: Optional[str] = None
    fire: Optional[FireResult] = None

    @property
    def skipped(self) -> bool:
        return self.performed is None

    def describe(self) -> str:
        if self.skipped:
            return f"{self.intent.value} skipped ({self.reason})"
        if self.performed != self.intent:
            return f"{self.intent.value} not possible ({self.reason}), {self.performed.value} instead"
        return self.performed.value

    def to_dict(self) -> dict:
        return {
            "roll": self.roll,
            "intent": self.intent.value,
            "performed": self.performed.value if self.performed else None,
            "reason": self.reason,
        }


@dataclass
class AgentTurnReport:
    """Everything one vehicle did during the AI phase."""
    vehicle_id: str
    table: str
    rolls: list[int] = field(default_factory=list)
    steps: list[AgentStep] = field(default_factory=list)
    interrupted: Optional[str] = None


class VehicleAgent(ABC):
    """Base class for dice-table vehicle agents."""

    def __init__(self, gunnery: GunneryCombat):
        self.gunnery = gunnery
        self.dice = gunnery.dice

    @abstractmethod
    def choose_table(self, vehicle: Vehicle, scenario: Scenario) -> AgentTable:
        """Pick the action table for this vehicle's situation."""
        pass

    def take_turn(self, vehicle: Vehicle, scenario: Scenario) -> AgentTurnReport:
        """Roll, sort and resolve this vehicle's whole action sequence."""
        table = self.choose_table(vehicle, scenario)
        rolls = self.dice.roll(table.dice, f"{vehicle.id} {table.name} table").sorted()
        report = AgentTurnReport(vehicle_id=vehicle.id, table=table.name, rolls=rolls)
        logger.info(f"{vehicle.id} uses the {table.name} table: {rolls}")

        for roll in rolls:
            stop = self._interruption(vehicle, scenario)
            if stop:
                report.interrupted = stop
                logger.info(f"{vehicle.id} stops: {stop}")
                break
            primary, fallback = table.actions[roll]
            report.steps.append(self.resolve_step(vehicle, scenario, roll, primary, fallback))
        return report

    def _interruption(self, vehicle: Vehicle, scenario: Scenario) -> Optional[str]:
        if vehicle.destroyed:
            return "destroyed"
        if vehicle.immobilized:
            return "immobilized"
        if not scenario.player.is_active:
            return "player destroyed"
        return None

    def resolve_step(
        self,
        vehicle: Vehicle,
        scenario: Scenario,
        roll: int,
        primary: AgentAction,
        fallback: Optional[AgentAction],
    ) -> AgentStep:
        step = AgentStep(roll=roll, intent=primary)
        reason = self._perform(primary, vehicle, scenario, step)
        if reason is None:
            step.performed = primary
            return step

        step.reason = reason
        if fallback is not None:
            fallback_reason = self._perform(fallback, vehicle, scenario, step)
            if fallback_reason is None:
                step.performed = fallback
                return step
            step.reason = f"{reason}; {fallback.value}: {fallback_reason}"
        logger.debug(f"{vehicle.id} roll {roll}: {step.describe()}")
        return step

    def _perform(
        self,
        action: AgentAction,
        vehicle: Vehicle,
        scenario: Scenario,
        step: AgentStep,
    ) -> Optional[str]:
        """Apply one action; returns why it was illegal, or None."""
        if action == AgentAction.MOVE:
            return scenario.move_vehicle(vehicle)
        if action == AgentAction.REVERSE:
            return scenario.move_vehicle(vehicle, reverse=True)
        if action == AgentAction.TURN_TOWARD:
            return self.turn_toward(vehicle, scenario.player, scenario)
        if action == AgentAction.FIRE:
            return self.fire(vehicle, scenario, step)
        if action == AgentAction.SMOKE:
            cell = scenario.hex_map.get_cell(*vehicle.hex)
            if cell is None:
                logger.warning(f"{vehicle.id} hex {vehicle.hex} not found, no smoke placed")
                return "hex not found"
            cell.german_smoke = True
            return None
        if action == AgentAction.REPAIR:
            vehicle.damaged = False
            return None
        if action == AgentAction.HULL_DOWN:
            vehicle.hull_down = True
            return None
        raise ValueError(f"Unknown agent action: {action}")

    def turn_toward(self, vehicle: Vehicle, target: Vehicle, scenario: Scenario) -> Optional[str]:
        """One 60 degree step toward the target, the shorter way round."""
        bearing = angle_of_attack(vehicle.hex, target.hex)
        difference = (bearing - vehicle.facing) % 360
        if difference == 0:
            return "already facing the target"
        step = 60 if difference <= 180 else -60
        return scenario.turn_vehicle(vehicle, step)

    def fire(self, vehicle: Vehicle, scenario: Scenario, step: AgentStep) -> Optional[str]:
        target = scenario.player
        reason = self.gunnery.check_target(vehicle, target, scenario.hex_map)
        if reason:
            return reason
        step.fire = self.gunnery.resolve_fire(vehicle, target, scenario.hex_map, Weapon.MAIN_GUN)
        return None
