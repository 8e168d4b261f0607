"""
Sherman autopilot - plays the player vehicle through the turn manager.

Used by the headless runner. It only issues the same intents a human
would: posture, pool rolls, die selections and actions.
"""

import logging
from typing import Optional

from tankwar.map import angle_of_attack, hex_distance
from tankwar.turn import Action, Phase, TurnManager
from tankwar.units import CrewStatus, Vehicle

logger = logging.getLogger(__name__)


class ShermanAutopilot:
    """Simple greedy policy: face the nearest enemy, fire whenever possible."""

    def __init__(self, manager: TurnManager):
        self.manager = manager

    @property
    def sherman(self) -> Vehicle:
        return self.manager.sherman

    def nearest_enemy(self) -> Optional[Vehicle]:
        enemies = self.manager.scenario.active_enemies()
        if not enemies:
            return None
        return min(enemies, key=lambda v: hex_distance(*v.hex, *self.sherman.hex))

    def fire_target(self) -> Optional[Vehicle]:
        """First enemy the Sherman can legally engage, nearest first."""
        hex_map = self.manager.scenario.hex_map
        enemies = sorted(
            self.manager.scenario.active_enemies(),
            key=lambda v: hex_distance(*v.hex, *self.sherman.hex),
        )
        for enemy in enemies:
            if self.manager.gunnery.check_target(self.sherman, enemy, hex_map) is None:
                return enemy
        return None

    def under_fire(self) -> bool:
        """Any enemy has a legal shot at the Sherman."""
        hex_map = self.manager.scenario.hex_map
        return any(
            self.manager.gunnery.check_target(enemy, self.sherman, hex_map) is None
            for enemy in self.manager.scenario.active_enemies()
        )

    def play_turn(self) -> int:
        """Play the Sherman's part of one turn; returns actions performed."""
        manager = self.manager
        if manager.phase == Phase.INITIAL:
            manager.start_turn()
        if manager.phase == Phase.COMMANDER_DECISION:
            posture = CrewStatus.BUTTONED_UP if self.under_fire() else CrewStatus.POPPED_HATCH
            manager.choose_posture(posture)

        turn = manager.turn_state.turn_number
        performed = 0
        while manager.phase == Phase.SHERMAN_OPERATIONS and manager.turn_state.turn_number == turn:
            pool = manager.turn_state.active_pool
            state = manager.turn_state.pools[pool]
            if not state.rolled:
                manager.roll_pool(pool)
                continue
            if self._use_one_die(state.available()):
                performed += 1
            else:
                manager.end_phase()
        return performed

    def _use_one_die(self, indices: list[int]) -> bool:
        for index in indices:
            result = self.manager.select_die(index)
            if not result.success:
                continue
            if self._attempt(result.action):
                return True
        return False

    def _attempt(self, action: Action) -> bool:
        manager = self.manager
        sherman = self.sherman
        if action in (Action.FIRE_MAIN_GUN, Action.FIRE_MG):
            if action == Action.FIRE_MAIN_GUN and not sherman.is_loaded:
                return False
            target = self.fire_target()
            if target is None:
                return False
            return manager.perform_action(action, target_id=target.id).success

        if action == Action.TURN:
            enemy = self.nearest_enemy()
            if enemy is None:
                return False
            bearing = angle_of_attack(sherman.hex, enemy.hex)
            difference = (bearing - sherman.facing) % 360
            if difference == 0:
                return False
            direction = 60 if difference <= 180 else -60
            return manager.perform_action(action, direction=direction).success

        if action == Action.LOAD and sherman.is_loaded:
            return False
        if action == Action.REVERSE:
            return False

        result = manager.perform_action(action)
        return result.expended
