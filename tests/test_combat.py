"""
Tests for to-hit, armor facing, penetration, damage and fire checks.
"""

import pytest

from tankwar.combat import (
    DamageOutcome, DamageResolver, GunneryCombat, Weapon,
    armor_facing_for_bearing, calculate_to_hit, in_southern_arc, struck_facing,
)
from tankwar.map import FiringArcPolicy
from tankwar.units import ArmorFacing, CrewStation, CrewStatus, Faction

from conftest import ScriptedDice


class TestToHit:

    def test_every_modifier_adds_up(self, make_map, make_vehicle):
        board = make_map(terrain={(2, 0): "buildings"})
        board.get_cell(2, 0).german_smoke = True
        attacker = make_vehicle("a", Faction.PLAYER, 2, 3, 180)
        target = make_vehicle("t", Faction.ENEMY, 2, 0, 0, size=1, hull_down=True)

        to_hit = calculate_to_hit(attacker, target, board)

        assert to_hit.to_hit == 9
        assert to_hit.breakdown == {
            "distance": 3,
            "size": 1,
            "building": 1,
            "smoke": 1,
            "hullDown": 2,
            "southernArc": 1,
        }

    def test_target_straight_ahead_to_the_north(self, board, sherman, panzer):
        panzer.place(2, 2)
        to_hit = calculate_to_hit(sherman, panzer, board.hex_map)
        assert to_hit.to_hit == 2 + panzer.size
        assert to_hit.southern_arc == 0

    def test_missing_target_hex_is_unreachable(self, board, sherman, panzer):
        panzer.place(9, 9)
        to_hit = calculate_to_hit(sherman, panzer, board.hex_map)
        assert to_hit.to_hit == 99
        assert to_hit.breakdown == {"error": "Target hex not found"}

    def test_southern_arc_tie_break(self):
        assert in_southern_arc((0, 0), (0, -2))
        assert in_southern_arc((0, 0), (-2, 0))
        assert not in_southern_arc((0, 0), (2, 0))
        assert not in_southern_arc((0, 0), (0, 2))


class TestArmorFacing:

    @pytest.mark.parametrize("bearing,expected", [
        (0, ArmorFacing.FRONT),
        (29, ArmorFacing.FRONT),
        (330, ArmorFacing.FRONT),
        (30, ArmorFacing.FRONT_SIDE),
        (300, ArmorFacing.FRONT_SIDE),
        (90, ArmorFacing.REAR_SIDE),
        (240, ArmorFacing.REAR_SIDE),
        (150, ArmorFacing.REAR),
        (180, ArmorFacing.REAR),
        (209, ArmorFacing.REAR),
    ])
    def test_bearing_buckets(self, bearing, expected):
        assert armor_facing_for_bearing(bearing) == expected

    def test_head_on_shot_strikes_front(self, sherman, panzer):
        assert struck_facing(sherman, panzer) == ArmorFacing.FRONT

    def test_shot_from_behind_strikes_rear(self, sherman, panzer):
        panzer.facing = 0
        assert struck_facing(sherman, panzer) == ArmorFacing.REAR

    def test_shot_from_the_flank(self, make_vehicle):
        attacker = make_vehicle("a", Faction.PLAYER, 4, 2, 240)
        target = make_vehicle("t", Faction.ENEMY, 2, 2, 0)
        assert struck_facing(attacker, target) == ArmorFacing.FRONT_SIDE


class TestDamageResolver:

    def test_roll_equal_to_needed_penetrates(self):
        resolver = DamageResolver(ScriptedDice(2, 1))
        first = resolver.check_penetration(armor_value=4, armor_pen=2)
        assert first.needed == 2
        assert first.penetrated
        assert not resolver.check_penetration(armor_value=4, armor_pen=2).penetrated

    def test_enemy_damage_escalates(self, panzer):
        resolver = DamageResolver(ScriptedDice(3, 2))
        assert resolver.apply_enemy_damage(panzer).outcome == DamageOutcome.DAMAGED
        assert panzer.damaged and not panzer.destroyed
        assert resolver.apply_enemy_damage(panzer).outcome == DamageOutcome.DESTROYED
        assert panzer.destroyed

    def test_enemy_high_roll_destroys_outright(self, panzer):
        result = DamageResolver(ScriptedDice(5)).apply_enemy_damage(panzer)
        assert result.destroyed
        assert not panzer.is_active

    @pytest.mark.parametrize("roll,flag", [
        (1, "destroyed"),
        (5, "turret_damaged"),
        (6, "immobilized"),
    ])
    def test_player_damage_table_flags(self, sherman, roll, flag):
        DamageResolver(ScriptedDice()).apply_player_damage(sherman, roll=roll)
        assert getattr(sherman, flag) is True

    def test_player_fire_result_raises_fire_level(self, sherman):
        result = DamageResolver(ScriptedDice()).apply_player_damage(sherman, roll=4)
        assert result.outcome == DamageOutcome.FIRE
        assert sherman.fire_level == 1
        assert result.fire_level == 1

    def test_kia_check_kills_station(self, sherman):
        result = DamageResolver(ScriptedDice(2, 3)).apply_player_damage(sherman)
        assert result.outcome == DamageOutcome.KIA_CHECK
        assert result.kia.station == CrewStation.LOADER
        assert result.kia.killed
        assert not sherman.crew.is_alive(CrewStation.LOADER)

    def test_kia_on_dead_station_has_no_further_effect(self, sherman):
        sherman.crew.set_status(CrewStation.GUNNER, CrewStatus.KIA)
        result = DamageResolver(ScriptedDice(2)).kia_check(sherman)
        assert result.station == CrewStation.GUNNER
        assert not result.killed

    def test_six_spares_buttoned_up_commander(self, sherman):
        result = DamageResolver(ScriptedDice(6)).kia_check(sherman)
        assert not result.killed
        assert sherman.crew.is_alive(CrewStation.COMMANDER)

    def test_six_kills_commander_in_open_hatch(self, sherman):
        sherman.crew.set_status(CrewStation.COMMANDER, CrewStatus.POPPED_HATCH)
        result = DamageResolver(ScriptedDice(6)).kia_check(sherman)
        assert result.killed
        assert sherman.crew.commander == CrewStatus.KIA

    def test_fire_check_uses_lowest_die(self, sherman):
        sherman.fire_level = 3
        check = DamageResolver(ScriptedDice(5, 2, 6, 1)).fire_check(sherman)

        assert check.dice.rolls == [5, 2, 6]
        assert check.lowest == 2
        assert check.damage.outcome == DamageOutcome.KIA_CHECK
        assert check.damage.kia.station == CrewStation.COMMANDER
        # a KIA check is not "fire spreads"
        assert sherman.fire_level == 3

    def test_no_fire_check_without_fire(self, sherman):
        assert DamageResolver(ScriptedDice()).fire_check(sherman) is None


class TestGunnery:

    def test_hit_penetrate_and_damage(self, board, sherman, panzer):
        panzer.place(2, 2)
        gunnery = GunneryCombat(ScriptedDice(1, 1, 2, 3))

        fire = gunnery.resolve_fire(sherman, panzer, board.hex_map)

        assert fire.to_hit.to_hit == 2
        assert fire.hit
        assert fire.facing == ArmorFacing.FRONT
        assert fire.penetration.needed == 2
        assert fire.penetrated
        assert fire.damage.outcome == DamageOutcome.DAMAGED
        assert panzer.damaged

    def test_miss_stops_the_sequence(self, board, sherman, panzer):
        fire = GunneryCombat(ScriptedDice(1, 2)).resolve_fire(sherman, panzer, board.hex_map)
        assert not fire.hit
        assert fire.penetration is None
        assert fire.damage is None
        assert fire.to_dict()["roll_total"] == 3

    def test_bounce(self, board, sherman, panzer):
        fire = GunneryCombat(ScriptedDice(6, 6, 1)).resolve_fire(sherman, panzer, board.hex_map)
        assert fire.hit and fire.bounced
        assert not panzer.damaged

    def test_mg_has_no_effect_on_armor(self, board, sherman, panzer):
        fire = GunneryCombat(ScriptedDice(6, 6)).resolve_fire(
            sherman, panzer, board.hex_map, Weapon.MG
        )
        assert fire.hit
        assert not fire.penetrated
        assert "no effect" in fire.notes[-1]

    def test_mg_damages_soft_target(self, board, sherman, panzer):
        panzer.armor = {facing: 0 for facing in ArmorFacing}
        fire = GunneryCombat(ScriptedDice(6, 6, 6)).resolve_fire(
            sherman, panzer, board.hex_map, Weapon.MG
        )
        assert fire.penetrated
        assert panzer.destroyed

    def test_player_hit_uses_player_table(self, board, sherman, panzer):
        GunneryCombat(ScriptedDice(6, 6, 6, 6)).resolve_fire(panzer, sherman, board.hex_map)
        assert sherman.immobilized
        assert not sherman.damaged


class TestTargetLegality:

    def test_legal_target(self, board, sherman, panzer):
        assert GunneryCombat(ScriptedDice()).check_target(sherman, panzer, board.hex_map) is None

    def test_destroyed_target(self, board, sherman, panzer):
        panzer.destroyed = True
        reason = GunneryCombat(ScriptedDice()).check_target(sherman, panzer, board.hex_map)
        assert reason == "target already destroyed"

    def test_friendly_target(self, board, sherman):
        reason = GunneryCombat(ScriptedDice()).check_target(sherman, sherman, board.hex_map)
        assert reason == "cannot target a friendly vehicle"

    def test_blocked_line_of_sight(self, board, sherman, panzer):
        board.hex_map.get_cell(2, 2).terrain = "forest"
        reason = GunneryCombat(ScriptedDice()).check_target(sherman, panzer, board.hex_map)
        assert reason == "line of sight blocked by forest"

    def test_facing_policy_restricts_arc(self, board, sherman, panzer):
        sherman.facing = 180
        assert GunneryCombat(ScriptedDice()).check_target(sherman, panzer, board.hex_map) is None
        gunnery = GunneryCombat(ScriptedDice(), arc_policy=FiringArcPolicy.FACING)
        assert gunnery.check_target(sherman, panzer, board.hex_map) == "target not in firing arc"

    def test_target_off_any_ray(self, board, sherman, panzer):
        panzer.place(3, 2)
        reason = GunneryCombat(ScriptedDice()).check_target(sherman, panzer, board.hex_map)
        assert reason == "target not in firing arc"
