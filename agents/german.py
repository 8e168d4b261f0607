"""
German tank agent - terrain-conditioned action tables.
"""

from tankwar.map import TerrainType
from tankwar.scenario import Scenario
from tankwar.units import Vehicle

from .base import AgentAction, AgentTable, VehicleAgent

A = AgentAction

ROAD_TABLE = AgentTable("road", 4, {
    1: (A.HULL_DOWN, None),
    2: (A.TURN_TOWARD, None),
    3: (A.MOVE, A.REVERSE),
    4: (A.MOVE, A.REVERSE),
    5: (A.FIRE, A.TURN_TOWARD),
    6: (A.FIRE, A.TURN_TOWARD),
})

FIELD_TABLE = AgentTable("field", 3, {
    1: (A.SMOKE, None),
    2: (A.HULL_DOWN, None),
    3: (A.TURN_TOWARD, None),
    4: (A.MOVE, A.REVERSE),
    5: (A.FIRE, A.TURN_TOWARD),
    6: (A.FIRE, A.TURN_TOWARD),
})

MUD_TABLE = AgentTable("mud", 2, {
    1: (A.SMOKE, None),
    2: (A.TURN_TOWARD, None),
    3: (A.TURN_TOWARD, None),
    4: (A.MOVE, A.REVERSE),
    5: (A.FIRE, A.TURN_TOWARD),
    6: (A.FIRE, A.TURN_TOWARD),
})

# Damaged vehicles see to repairs before fighting
DAMAGED_TABLE = AgentTable("damaged", 2, {
    1: (A.REPAIR, None),
    2: (A.REPAIR, None),
    3: (A.REPAIR, None),
    4: (A.TURN_TOWARD, None),
    5: (A.FIRE, A.TURN_TOWARD),
    6: (A.SMOKE, None),
})


class GermanTankAgent(VehicleAgent):
    """
    Drives enemy vehicles during the AI phase.

    Table choice: damaged overrides terrain; otherwise road, field, then
    mud is checked on the vehicle's hex. Any other terrain uses the field
    table.
    """

    TERRAIN_TABLES = [
        (TerrainType.ROAD, ROAD_TABLE),
        (TerrainType.FIELD, FIELD_TABLE),
        (TerrainType.MUD, MUD_TABLE),
    ]

    def choose_table(self, vehicle: Vehicle, scenario: Scenario) -> AgentTable:
        if vehicle.damaged:
            return DAMAGED_TABLE
        cell = scenario.hex_map.get_cell(*vehicle.hex)
        if cell:
            for terrain, table in self.TERRAIN_TABLES:
                if cell.has_terrain(terrain):
                    return table
        return FIELD_TABLE
