"""
Turn sequencing for the Sherman tank-combat simulation.

Phases: initial -> commander decision -> Sherman operations
(Maneuver, Attack, Misc dice pools) -> end-of-turn checks -> AI phase
-> next turn, until the Sherman or every enemy is destroyed.

The TurnManager is the only writer of scenario state. Every intent is
applied completely before it returns; readers take snapshots.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .combat import Dice, FireResult, GunneryCombat, Weapon
from .config import RulesConfig
from .events import EventKind, GameEvent
from .map import TerrainType, hex_distance
from .scenario import Scenario
from .units import CrewStation, CrewStatus, GunStatus, Vehicle

logger = logging.getLogger(__name__)


class Phase(Enum):
    INITIAL = "initial"
    COMMANDER_DECISION = "commander_decision"
    SHERMAN_OPERATIONS = "sherman_operations"
    END_OF_TURN = "end_of_turn"
    AI = "ai_phase"
    VICTORY = "victory"
    DEFEAT = "defeat"


TERMINAL_PHASES = (Phase.VICTORY, Phase.DEFEAT)


class Pool(Enum):
    """Per-turn dice pools, rolled in this order."""
    MANEUVER = "maneuver"
    ATTACK = "attack"
    MISC = "misc"


POOL_ORDER = [Pool.MANEUVER, Pool.ATTACK, Pool.MISC]


class Action(Enum):
    REVERSE = "reverse"
    TURN = "turn"
    MOVE = "move"
    LOAD = "load"
    FIRE_MG = "fire_mg"
    FIRE_MAIN_GUN = "fire_main_gun"
    EXTINGUISH = "extinguish"
    REPAIR = "repair"
    SMOKE = "smoke"
    HULL_DOWN = "hull_down"


# Die face -> action category for each pool
DIE_ACTIONS = {
    Pool.MANEUVER: {
        1: Action.REVERSE,
        2: Action.TURN, 3: Action.TURN, 4: Action.TURN,
        5: Action.MOVE, 6: Action.MOVE,
    },
    Pool.ATTACK: {
        1: Action.LOAD, 2: Action.LOAD,
        3: Action.FIRE_MG, 4: Action.FIRE_MG,
        5: Action.FIRE_MAIN_GUN, 6: Action.FIRE_MAIN_GUN,
    },
    Pool.MISC: {
        1: Action.EXTINGUISH,
        2: Action.REPAIR,
        3: Action.SMOKE, 4: Action.SMOKE,
        5: Action.HULL_DOWN, 6: Action.HULL_DOWN,
    },
}

# Terrain bonus dice per pool; first matching terrain wins
TERRAIN_POOL_BONUS = {
    TerrainType.ROAD: {Pool.MANEUVER: 2, Pool.ATTACK: 2, Pool.MISC: 1},
    TerrainType.FIELD: {Pool.MANEUVER: 1, Pool.ATTACK: 2, Pool.MISC: 2},
    TerrainType.MUD: {Pool.MANEUVER: 0, Pool.ATTACK: 1, Pool.MISC: 1},
}

# Crew whose loss (both of them) rules out doubles in a pool
DOUBLES_CREW = {
    Pool.MANEUVER: (CrewStation.DRIVER, CrewStation.ASSISTANT_DRIVER),
    Pool.ATTACK: (CrewStation.GUNNER, CrewStation.LOADER),
}

POSTURES = (CrewStatus.BUTTONED_UP, CrewStatus.POPPED_HATCH)


def action_for_die(pool: Pool, face: int) -> Action:
    """Action category unlocked by a single die."""
    return DIE_ACTIONS[pool][face]


def pool_actions(pool: Pool) -> set[Action]:
    return set(DIE_ACTIONS[pool].values())


@dataclass
class PoolState:
    """Dice rolled for one pool this turn and which have been used."""
    pool: Pool
    dice: list[int] = field(default_factory=list)
    expended: set[int] = field(default_factory=set)
    rolled: bool = False
    skipped: bool = False

    def available(self) -> list[int]:
        return [i for i in range(len(self.dice)) if i not in self.expended]

    @property
    def exhausted(self) -> bool:
        return (self.rolled or self.skipped) and not self.available()

    def to_dict(self) -> dict:
        return {
            "pool": self.pool.value,
            "dice": list(self.dice),
            "expended": sorted(self.expended),
            "rolled": self.rolled,
            "skipped": self.skipped,
        }


@dataclass
class DoublesSelection:
    """Two matching dice spent together for two sequential actions."""
    indices: tuple[int, int]
    actions_taken: list[Action] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return 2 - len(self.actions_taken)


def _fresh_pools() -> dict[Pool, PoolState]:
    return {pool: PoolState(pool) for pool in POOL_ORDER}


@dataclass
class TurnState:
    """State of the current turn."""
    turn_number: int = 1
    phase: Phase = Phase.INITIAL
    pools: dict[Pool, PoolState] = field(default_factory=_fresh_pools)
    active_pool: Optional[Pool] = None
    selected_die: Optional[int] = None
    doubles: Optional[DoublesSelection] = None

    def reset_pools(self):
        self.pools = _fresh_pools()
        self.active_pool = None
        self.selected_die = None
        self.doubles = None

    def to_dict(self) -> dict:
        return {
            "turn": self.turn_number,
            "phase": self.phase.value,
            "pools": {pool.value: state.to_dict() for pool, state in self.pools.items()},
            "active_pool": self.active_pool.value if self.active_pool else None,
            "selected_die": self.selected_die,
            "doubles": list(self.doubles.indices) if self.doubles else None,
        }


@dataclass
class GameState:
    """Session-level outcome."""
    game_over: bool = False
    winner: Optional[str] = None  # "player" or "enemy"
    turn_history: list[dict] = field(default_factory=list)


@dataclass
class ActionResult:
    """Outcome of a user intent. Illegal intents are results, not exceptions."""
    success: bool
    reason: Optional[str] = None
    action: Optional[Action] = None
    expended: bool = False
    data: dict = field(default_factory=dict)


class TurnManager:
    """Drives the phase/dice state machine and the enemy AI phase."""

    def __init__(
        self,
        scenario: Scenario,
        config: Optional[RulesConfig] = None,
        dice: Optional[Dice] = None,
        enemy_agent=None,
    ):
        self.scenario = scenario
        self.config = config or RulesConfig()
        self.dice = dice or Dice(self.config.seed)
        self.gunnery = GunneryCombat(
            self.dice,
            arc_policy=self.config.firing_arc_policy,
            mg_penetration=self.config.mg_penetration,
        )
        self.damage = self.gunnery.damage

        if enemy_agent is None:
            from agents import GermanTankAgent
            enemy_agent = GermanTankAgent(self.gunnery)
        self.enemy_agent = enemy_agent

        self.turn_state = TurnState()
        self.game_state = GameState()
        self.events: list[GameEvent] = []

        # Callbacks for presentation integration
        self.on_event: Optional[Callable[[GameEvent], Any]] = None
        self.on_turn_start: Optional[Callable] = None
        self.on_phase_start: Optional[Callable] = None
        self.on_turn_end: Optional[Callable] = None

    # State queries

    @property
    def sherman(self) -> Vehicle:
        return self.scenario.player

    @property
    def phase(self) -> Phase:
        return self.turn_state.phase

    @property
    def is_over(self) -> bool:
        return self.turn_state.phase in TERMINAL_PHASES

    def pool_size(self, pool: Pool) -> int:
        """Dice available to a pool from terrain and living crew."""
        sherman = self.sherman
        crew = sherman.crew
        cell = self.scenario.hex_map.get_cell(*sherman.hex)

        size = 0
        if cell:
            for terrain, bonus in TERRAIN_POOL_BONUS.items():
                if cell.has_terrain(terrain):
                    size += bonus[pool]
                    break

        if pool == Pool.MANEUVER:
            size += crew.is_alive(CrewStation.DRIVER)
            size += crew.is_alive(CrewStation.ASSISTANT_DRIVER)
            size += crew.commander_popped_hatch
        elif pool == Pool.ATTACK:
            size += crew.is_alive(CrewStation.GUNNER)
            size += crew.is_alive(CrewStation.LOADER)
            size += crew.commander_popped_hatch
        else:
            size += crew.is_alive(CrewStation.COMMANDER)
        return int(size)

    def available_actions(self) -> set[Action]:
        """Actions the current die selection unlocks."""
        ts = self.turn_state
        if ts.phase != Phase.SHERMAN_OPERATIONS or ts.active_pool is None:
            return set()
        if ts.doubles:
            return pool_actions(ts.active_pool)
        if ts.selected_die is not None:
            face = ts.pools[ts.active_pool].dice[ts.selected_die]
            return {action_for_die(ts.active_pool, face)}
        return set()

    def snapshot(self) -> dict:
        """Deep, JSON-ready copy of scenario and turn state."""
        return {
            "turn_state": self.turn_state.to_dict(),
            "scenario": self.scenario.snapshot(),
            "pool_sizes": {pool.value: self.pool_size(pool) for pool in POOL_ORDER},
            "game_over": self.game_state.game_over,
            "winner": self.game_state.winner,
        }

    # Events

    def emit(self, kind: EventKind, message: str, delay_ms: int = 0, **data) -> GameEvent:
        event = GameEvent(
            kind=kind,
            message=message,
            turn=self.turn_state.turn_number,
            phase=self.turn_state.phase.value,
            data=data,
            delay_ms=delay_ms,
        )
        self.events.append(event)
        if self.on_event:
            self.on_event(event)
        return event

    def _reject(self, reason: str, action: Optional[Action] = None) -> ActionResult:
        self.emit(EventKind.ILLEGAL_ACTION, reason, action=action.value if action else None)
        return ActionResult(success=False, reason=reason, action=action)

    def _guard(self, *phases: Phase) -> Optional[ActionResult]:
        if self.is_over:
            return ActionResult(success=False, reason="game is over")
        if self.turn_state.phase not in phases:
            return self._reject(f"not allowed during {self.turn_state.phase.value}")
        return None

    def _set_phase(self, phase: Phase, delay_ms: int = 0):
        self.turn_state.phase = phase
        logger.info(f"Turn {self.turn_state.turn_number}: {phase.value}")
        self.emit(EventKind.PHASE_CHANGED, f"Phase: {phase.value}", delay_ms=delay_ms)
        if self.on_phase_start:
            self.on_phase_start(phase)

    # Turn start and commander decision

    def start_turn(self) -> ActionResult:
        """initial -> commander_decision."""
        blocked = self._guard(Phase.INITIAL)
        if blocked:
            return blocked
        self._begin_turn()
        return ActionResult(success=True)

    def _begin_turn(self):
        self.scenario.hex_map.clear_smoke(sherman=True)
        self.turn_state.reset_pools()
        self.emit(EventKind.TURN_STARTED, f"Turn {self.turn_state.turn_number} begins")
        if self.on_turn_start:
            self.on_turn_start(self.turn_state)
        self._set_phase(Phase.COMMANDER_DECISION)

    def choose_posture(self, posture: CrewStatus) -> ActionResult:
        """Commander buttons up or pops the hatch, then operations begin."""
        blocked = self._guard(Phase.COMMANDER_DECISION)
        if blocked:
            return blocked
        if posture not in POSTURES:
            return self._reject(f"invalid commander posture: {posture.value}")

        crew = self.sherman.crew
        if crew.is_alive(CrewStation.COMMANDER):
            crew.set_status(CrewStation.COMMANDER, posture)
            self.emit(EventKind.POSTURE, f"Commander {posture.value}", posture=posture.value)
        else:
            logger.warning("Commander is KIA, posture unchanged")
            self.emit(EventKind.WARNING, "Commander is KIA, posture unchanged")

        self.turn_state.active_pool = POOL_ORDER[0]
        self._set_phase(Phase.SHERMAN_OPERATIONS)
        self._settle_pools()
        return ActionResult(success=True)

    # Dice pools

    def roll_pool(self, pool: Pool) -> ActionResult:
        """Roll the active pool's dice; each pool rolls once per turn."""
        blocked = self._guard(Phase.SHERMAN_OPERATIONS)
        if blocked:
            return blocked
        ts = self.turn_state
        if pool != ts.active_pool:
            return self._reject(f"{pool.value} pool is not available, current pool is {ts.active_pool.value}")
        state = ts.pools[pool]
        if state.rolled or state.skipped:
            return self._reject(f"{pool.value} pool already used this turn")

        roll = self.dice.roll(self.pool_size(pool), f"{pool.value} pool")
        state.dice = roll.rolls
        state.rolled = True
        self.emit(EventKind.POOL_ROLLED, f"{pool.value.title()} pool: {roll.rolls}",
                  pool=pool.value, dice=list(roll.rolls))
        self._settle_pools()
        return ActionResult(success=True, data={"dice": list(roll.rolls)})

    def _active_pool_state(self) -> Optional[PoolState]:
        ts = self.turn_state
        if ts.active_pool is None:
            return None
        return ts.pools[ts.active_pool]

    def _check_index(self, state: PoolState, index: int) -> Optional[str]:
        if not state.rolled:
            return f"{state.pool.value} pool has not been rolled"
        if index < 0 or index >= len(state.dice):
            return f"no die at index {index}"
        if index in state.expended:
            return f"die {index} already expended"
        return None

    def select_die(self, index: int) -> ActionResult:
        """Select a single die; its face value fixes the action category."""
        blocked = self._guard(Phase.SHERMAN_OPERATIONS)
        if blocked:
            return blocked
        ts = self.turn_state
        state = self._active_pool_state()
        if ts.doubles and ts.doubles.actions_taken:
            return self._reject("finish the doubles selection first")
        reason = self._check_index(state, index)
        if reason:
            return self._reject(reason)

        ts.selected_die = index
        ts.doubles = None
        action = action_for_die(state.pool, state.dice[index])
        self.emit(EventKind.DIE_SELECTED, f"Die {state.dice[index]} selected: {action.value}",
                  index=index, action=action.value)
        return ActionResult(success=True, action=action)

    def select_doubles(self, first: int, second: int) -> ActionResult:
        """Pair two matching dice for two actions from the pool's category set."""
        blocked = self._guard(Phase.SHERMAN_OPERATIONS)
        if blocked:
            return blocked
        ts = self.turn_state
        state = self._active_pool_state()
        if ts.doubles and ts.doubles.actions_taken:
            return self._reject("finish the doubles selection first")
        for index in (first, second):
            reason = self._check_index(state, index)
            if reason:
                return self._reject(reason)
        if first == second:
            return self._reject("doubles need two different dice")
        if state.dice[first] != state.dice[second]:
            return self._reject("dice do not match")

        stations = DOUBLES_CREW.get(state.pool)
        if stations and not any(self.sherman.crew.is_alive(s) for s in stations):
            names = " and ".join(s.value for s in stations)
            return self._reject(f"doubles unavailable: {names} are KIA")

        ts.doubles = DoublesSelection((first, second))
        ts.selected_die = None
        self.emit(EventKind.DIE_SELECTED, f"Doubles selected: {state.dice[first]}s",
                  indices=[first, second], doubles=True)
        return ActionResult(success=True)

    def end_phase(self) -> ActionResult:
        """Force-expend whatever is left of the active pool."""
        blocked = self._guard(Phase.SHERMAN_OPERATIONS)
        if blocked:
            return blocked
        ts = self.turn_state
        state = self._active_pool_state()
        if not state.rolled:
            state.skipped = True
        state.expended.update(state.available())
        ts.selected_die = None
        ts.doubles = None
        self.emit(EventKind.ACTION, f"{state.pool.value.title()} pool ended", pool=state.pool.value)
        self._settle_pools()
        return ActionResult(success=True)

    def _settle_pools(self):
        """Advance past exhausted or empty pools; end the turn after Misc."""
        ts = self.turn_state
        while ts.phase == Phase.SHERMAN_OPERATIONS:
            state = ts.pools[ts.active_pool]
            if not state.rolled and not state.skipped and self.pool_size(state.pool) == 0:
                state.skipped = True
                self.emit(EventKind.POOL_SKIPPED, f"{state.pool.value.title()} pool has no dice",
                          pool=state.pool.value)
            if not state.exhausted:
                return

            ts.selected_die = None
            ts.doubles = None
            position = POOL_ORDER.index(state.pool)
            if position + 1 >= len(POOL_ORDER):
                self._end_of_turn()
                return
            ts.active_pool = POOL_ORDER[position + 1]
            self.emit(EventKind.PHASE_CHANGED, f"{ts.active_pool.value.title()} pool ready",
                      delay_ms=self.config.settle_delay_ms, pool=ts.active_pool.value)

    # Actions

    def perform_action(
        self,
        action: Action,
        target_id: Optional[str] = None,
        direction: int = 60,
    ) -> ActionResult:
        """Carry out an action unlocked by the current die or doubles selection."""
        blocked = self._guard(Phase.SHERMAN_OPERATIONS)
        if blocked:
            return blocked
        ts = self.turn_state
        if ts.selected_die is None and ts.doubles is None:
            return self._reject("select a die first", action)
        if action not in self.available_actions():
            return self._reject(f"{action.value} is not available for the selected dice", action)

        handlers = {
            Action.MOVE: lambda: self._move(reverse=False),
            Action.REVERSE: lambda: self._move(reverse=True),
            Action.TURN: lambda: self._turn(direction),
            Action.LOAD: self._load,
            Action.FIRE_MAIN_GUN: lambda: self._fire(target_id, Weapon.MAIN_GUN),
            Action.FIRE_MG: lambda: self._fire(target_id, Weapon.MG),
            Action.EXTINGUISH: self._extinguish,
            Action.REPAIR: self._repair,
            Action.SMOKE: self._smoke,
            Action.HULL_DOWN: self._hull_down,
        }
        result = handlers[action]()
        result.action = action

        if not result.expended:
            self.emit(EventKind.ILLEGAL_ACTION, result.reason or "illegal action", action=action.value)
            return result

        self._consume(action)
        self._settle_pools()
        return result

    def _consume(self, action: Action):
        ts = self.turn_state
        state = self._active_pool_state()
        if ts.doubles:
            ts.doubles.actions_taken.append(action)
            if ts.doubles.remaining <= 0:
                state.expended.update(ts.doubles.indices)
                ts.doubles = None
        else:
            state.expended.add(ts.selected_die)
            ts.selected_die = None

    def _move(self, reverse: bool) -> ActionResult:
        sherman = self.sherman
        origin = sherman.hex
        reason = self.scenario.move_vehicle(sherman, reverse=reverse)
        if reason:
            return ActionResult(success=False, reason=reason)
        verb = "reversed" if reverse else "moved"
        self.emit(EventKind.ACTION, f"Sherman {verb} to {sherman.hex}",
                  origin=list(origin), destination=list(sherman.hex))
        return ActionResult(success=True, expended=True,
                            data={"from": list(origin), "to": list(sherman.hex)})

    def _turn(self, direction: int) -> ActionResult:
        if direction not in (60, -60, 300):
            return ActionResult(success=False, reason="turns are one 60 degree step")
        sherman = self.sherman
        reason = self.scenario.turn_vehicle(sherman, direction)
        if reason:
            return ActionResult(success=False, reason=reason)
        self.emit(EventKind.ACTION, f"Sherman turned to {sherman.facing}", facing=sherman.facing)
        return ActionResult(success=True, expended=True, data={"facing": sherman.facing})

    def _load(self) -> ActionResult:
        sherman = self.sherman
        if sherman.is_loaded:
            logger.warning("Main gun already loaded")
            self.emit(EventKind.WARNING, "Main gun already loaded")
            return ActionResult(success=False, reason="main gun already loaded", expended=True)
        sherman.main_gun = GunStatus.LOADED
        self.emit(EventKind.ACTION, "Main gun loaded")
        return ActionResult(success=True, expended=True)

    def _fire(self, target_id: Optional[str], weapon: Weapon) -> ActionResult:
        sherman = self.sherman
        if weapon == Weapon.MAIN_GUN:
            if sherman.turret_damaged:
                return ActionResult(success=False, reason="turret damaged")
            if not sherman.is_loaded:
                return ActionResult(success=False, reason="main gun not loaded")

        target = self.scenario.get_vehicle(target_id) if target_id else None
        reason = self.gunnery.check_target(sherman, target, self.scenario.hex_map)
        if reason:
            return ActionResult(success=False, reason=reason)

        fire = self.gunnery.resolve_fire(sherman, target, self.scenario.hex_map, weapon)
        if weapon == Weapon.MAIN_GUN:
            sherman.main_gun = GunStatus.UNLOADED
        self.report_fire(fire)
        return ActionResult(success=True, expended=True, data=fire.to_dict())

    def _extinguish(self) -> ActionResult:
        sherman = self.sherman
        if sherman.fire_level <= 0:
            self.emit(EventKind.WARNING, "No fire to fight")
            return ActionResult(success=False, reason="no fire to fight", expended=True)
        sherman.fire_level -= 1
        self.emit(EventKind.ACTION, f"Fire reduced to level {sherman.fire_level}",
                  fire_level=sherman.fire_level)
        return ActionResult(success=True, expended=True)

    def _repair(self) -> ActionResult:
        sherman = self.sherman
        if sherman.immobilized:
            sherman.immobilized = False
            fixed = "tracks"
        elif sherman.turret_damaged:
            sherman.turret_damaged = False
            fixed = "turret"
        else:
            self.emit(EventKind.WARNING, "Nothing to repair")
            return ActionResult(success=False, reason="nothing to repair", expended=True)
        self.emit(EventKind.ACTION, f"Crew repaired the {fixed}", repaired=fixed)
        return ActionResult(success=True, expended=True, data={"repaired": fixed})

    def _smoke(self) -> ActionResult:
        cell = self.scenario.hex_map.get_cell(*self.sherman.hex)
        if cell is None:
            logger.warning(f"Sherman hex {self.sherman.hex} not found, no smoke placed")
            self.emit(EventKind.WARNING, "No hex to place smoke on")
            return ActionResult(success=False, reason="hex not found", expended=True)
        cell.sherman_smoke = True
        self.emit(EventKind.ACTION, "Smoke deployed", hex=list(cell.coords))
        return ActionResult(success=True, expended=True)

    def _hull_down(self) -> ActionResult:
        sherman = self.sherman
        if sherman.hull_down:
            self.emit(EventKind.WARNING, "Already hull down")
            return ActionResult(success=False, reason="already hull down", expended=True)
        sherman.hull_down = True
        self.emit(EventKind.ACTION, "Sherman is hull down")
        return ActionResult(success=True, expended=True)

    def report_fire(self, fire: FireResult, delay_ms: int = 0):
        """Narrate a shot: to-hit breakdown, penetration and damage."""
        breakdown = ", ".join(f"{k} {v}" for k, v in fire.to_hit.breakdown.items())
        verdict = "HIT" if fire.hit else "miss"
        self.emit(
            EventKind.FIRE,
            f"{fire.attacker_id} fires {fire.weapon.value} at {fire.target_id}: "
            f"needs {fire.to_hit.to_hit} ({breakdown}), rolled {fire.roll.total}, {verdict}",
            delay_ms=delay_ms,
            **fire.to_dict(),
        )
        for note in fire.notes:
            self.emit(EventKind.ACTION, note)
        if fire.damage:
            self.emit(EventKind.DAMAGE, f"{fire.target_id}: {fire.damage.outcome.value}",
                      vehicle_id=fire.target_id, outcome=fire.damage.outcome.value)
            if fire.damage.kia:
                self.emit(EventKind.KIA, f"KIA check: {fire.damage.kia.note}",
                          roll=fire.damage.kia.roll, killed=fire.damage.kia.killed)

    # End of turn

    def _end_of_turn(self):
        self._set_phase(Phase.END_OF_TURN)
        sherman = self.sherman
        check = self.damage.fire_check(sherman)
        if check:
            self.emit(
                EventKind.FIRE_CHECK,
                f"Fire check {check.dice.rolls}: lowest {check.lowest}, {check.damage.outcome.value}",
                rolls=list(check.dice.rolls),
                lowest=check.lowest,
                outcome=check.damage.outcome.value,
            )
            if check.damage.kia:
                self.emit(EventKind.KIA, f"KIA check: {check.damage.kia.note}",
                          roll=check.damage.kia.roll, killed=check.damage.kia.killed)

        self._run_ai_phase()
        self._finish_turn()

    def _run_ai_phase(self):
        """Every surviving enemy acts, nearest to the Sherman first."""
        self._set_phase(Phase.AI)
        self.scenario.hex_map.clear_smoke(german=True)
        sherman = self.sherman
        if not sherman.is_active:
            return

        order = sorted(
            self.scenario.active_enemies(),
            key=lambda v: hex_distance(*v.hex, *sherman.hex),
        )
        for vehicle in order:
            if not sherman.is_active:
                break
            if not vehicle.is_active:
                continue
            report = self.enemy_agent.take_turn(vehicle, self.scenario)
            for step in report.steps:
                self.emit(
                    EventKind.AI_ACTION,
                    f"{vehicle.id} rolled {step.roll}: {step.describe()}",
                    delay_ms=self.config.ai_step_delay_ms,
                    vehicle_id=vehicle.id,
                    **step.to_dict(),
                )
                if step.fire:
                    self.report_fire(step.fire)

    def _finish_turn(self):
        ts = self.turn_state
        self.game_state.turn_history.append({
            "turn": ts.turn_number,
            "sherman": self.sherman.to_dict(),
            "enemies_remaining": len(self.scenario.active_enemies()),
        })
        if self.on_turn_end:
            self.on_turn_end(ts)

        if not self.sherman.is_active:
            self._end_game(Phase.DEFEAT, "enemy", "The Sherman has been destroyed")
        elif not self.scenario.active_enemies():
            self._end_game(Phase.VICTORY, "player", "All enemy vehicles destroyed")
        else:
            ts.turn_number += 1
            self._begin_turn()

    def _end_game(self, phase: Phase, winner: str, message: str):
        self.game_state.game_over = True
        self.game_state.winner = winner
        self._set_phase(phase)
        kind = EventKind.VICTORY if phase == Phase.VICTORY else EventKind.DEFEAT
        self.emit(kind, message, winner=winner)
        logger.info(f"Game over after turn {self.turn_state.turn_number}: {message}")
