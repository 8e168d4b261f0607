"""
Tests for hex geometry, line of sight and firing arcs.
"""

import random

import pytest

from tankwar.map import (
    AXIAL_DIRECTIONS, FACINGS, FiringArcPolicy, HexCell, HexMap, TerrainType,
    angle_of_attack, axial_to_pixel, direction_between, hex_distance,
    neighbor_coords, normalize_facing,
)


class TestCoordinates:

    def test_distance_to_self_is_zero(self):
        assert hex_distance(3, -2, 3, -2) == 0

    def test_distance_is_symmetric_and_obeys_triangle_inequality(self):
        rng = random.Random(7)
        points = [(rng.randint(-6, 6), rng.randint(-6, 6)) for _ in range(25)]
        for a in points:
            for b in points:
                assert hex_distance(*a, *b) == hex_distance(*b, *a)
                for c in points[:5]:
                    assert hex_distance(*a, *c) <= hex_distance(*a, *b) + hex_distance(*b, *c)

    def test_adjacent_hexes_are_distance_one(self):
        for facing in FACINGS:
            assert hex_distance(0, 0, *neighbor_coords(0, 0, facing)) == 1

    @pytest.mark.parametrize("facing", FACINGS)
    def test_neighbor_round_trip(self, facing):
        start = (2, -1)
        there = neighbor_coords(*start, facing)
        assert neighbor_coords(*there, (facing + 180) % 360) == start

    def test_normalize_facing(self):
        assert normalize_facing(-60) == 300
        assert normalize_facing(420) == 60
        with pytest.raises(ValueError):
            normalize_facing(45)

    @pytest.mark.parametrize("facing,offset", sorted(AXIAL_DIRECTIONS.items()))
    def test_angle_of_attack_matches_facings(self, facing, offset):
        assert angle_of_attack((0, 0), offset) == facing
        far = (offset[0] * 3, offset[1] * 3)
        assert angle_of_attack((0, 0), far) == facing

    def test_angle_of_attack_ties_round_clockwise(self):
        # bearings of exactly 90 and 270 sit halfway between two facings
        assert angle_of_attack((0, 0), (2, -1)) == 120
        assert angle_of_attack((0, 0), (-2, 1)) == 300

    def test_direction_between_off_ray(self):
        assert direction_between((0, 0), (0, 3)) == 0
        assert direction_between((0, 0), (1, 2)) is None
        assert direction_between((1, 1), (1, 1)) is None

    def test_axial_to_pixel(self):
        assert axial_to_pixel(0, 0) == (0, 0)
        x, y = axial_to_pixel(1, 0, size=50)
        assert x == pytest.approx(75.0)
        assert y == pytest.approx(-43.3013, rel=1e-4)
        # positive r is drawn higher up the screen
        assert axial_to_pixel(0, 1)[1] < 0


class TestHexCell:

    def test_combined_terrain_tokens(self):
        cell = HexCell(0, 0, terrain="road, buildings")
        assert cell.has_terrain(TerrainType.ROAD)
        assert cell.has_terrain(TerrainType.BUILDINGS)
        assert not cell.has_terrain(TerrainType.FOREST)

    def test_unknown_terrain_tokens_are_ignored(self):
        assert HexCell(0, 0, terrain="crater").terrain_types() == set()

    def test_from_dict_reads_smoke_flags(self):
        cell = HexCell.from_dict({"q": 1, "r": 2, "terrain": "field", "germanSmoke": True})
        assert cell.german_smoke and not cell.sherman_smoke
        assert cell.has_smoke
        assert cell.to_dict()["germanSmoke"] is True


class TestHexMap:

    def test_empty_definition_is_rejected(self):
        with pytest.raises(ValueError):
            HexMap.from_definition([])

    def test_stats_count_terrain(self, make_map):
        stats = make_map(3, 3, terrain={(0, 0): "forest", (1, 1): "forest"}).get_stats()
        assert stats["total_cells"] == 9
        assert stats["terrain_distribution"] == {"forest": 2, "open": 7}

    def test_neighbor_off_map_is_none(self, make_map):
        board = make_map()
        assert board.neighbor(0, 0, 180) is None
        assert board.neighbor(0, 0, 0).coords == (0, 1)
        assert len(board.get_neighbors(0, 0)) == 2

    def test_trace_line_stops_at_edge(self, make_map):
        board = make_map()
        assert [c.coords for c in board.trace_line(2, 1, 0)] == [(2, 2), (2, 3), (2, 4)]

    def test_forest_blocks_line_of_sight(self, make_map):
        board = make_map(terrain={(2, 2): "forest"})
        path = board.has_clear_path((2, 0), (2, 4))
        assert path.blocked
        assert path.blocking_hex == (2, 2)
        assert path.reason == "blocked by forest"

    def test_endpoints_do_not_block(self, make_map):
        board = make_map(terrain={(2, 0): "buildings", (2, 4): "forest"})
        assert not board.has_clear_path((2, 0), (2, 4)).blocked

    def test_non_axial_line_is_blocked(self, make_map):
        path = make_map().has_clear_path((0, 0), (1, 2))
        assert path.blocked
        assert path.reason == "not a straight axial line"

    def test_clear_path_agrees_with_manual_trace(self, make_map):
        rng = random.Random(3)
        terrain = {
            (q, r): rng.choice(["open", "field", "forest", "buildings", "road"])
            for q in range(7) for r in range(7)
        }
        board = make_map(7, 7, terrain)
        for origin in board.cells:
            for facing in FACINGS:
                dq, dr = AXIAL_DIRECTIONS[facing]
                blocked = False
                step = 1
                while (origin[0] + dq * step, origin[1] + dr * step) in board:
                    target = (origin[0] + dq * step, origin[1] + dr * step)
                    assert board.has_clear_path(origin, target).blocked == blocked
                    if terrain[target] in ("forest", "buildings"):
                        blocked = True
                    step += 1

    def test_facing_arc_covers_three_rays(self, make_map):
        board = make_map()
        arc = board.firing_arc_hexes(2, 2, 0, FiringArcPolicy.FACING)
        assert (2, 4) in arc          # straight ahead
        assert (3, 2) in arc          # 60
        assert (1, 3) in arc          # 300
        assert (2, 0) not in arc      # behind
        assert (3, 1) not in arc      # 120

    def test_all_rays_arc_ignores_facing(self, make_map):
        board = make_map()
        arc = board.firing_arc_hexes(2, 2, 0, FiringArcPolicy.ALL_RAYS)
        assert {(2, 0), (3, 1), (1, 2), (2, 4)} <= arc
        assert (3, 4) not in arc  # off every ray

    def test_clear_smoke_by_owner(self, make_map):
        board = make_map()
        board.get_cell(1, 1).sherman_smoke = True
        board.get_cell(2, 2).german_smoke = True
        board.clear_smoke(sherman=True)
        assert not board.get_cell(1, 1).sherman_smoke
        assert board.get_cell(2, 2).german_smoke

    def test_pixel_bounds_cover_board(self, make_map):
        bounds = make_map(2, 1).pixel_bounds(size=50)
        assert bounds["width"] == pytest.approx(175.0)
        assert bounds["height"] > 0
