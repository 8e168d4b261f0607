"""
Hex grid map for the Sherman tank-combat simulation.

Uses axial coordinates (q, r) on a flat-top hex grid.
Facing 0 points north (+r), angles grow clockwise in 60 degree steps.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

HEX_SIZE = 50  # center to vertex, pixels
HEX_WIDTH = HEX_SIZE * 2
HEX_HEIGHT = HEX_SIZE * math.sqrt(3)

ROTATION_N = 0
ROTATION_NE = 60
ROTATION_SE = 120
ROTATION_S = 180
ROTATION_SW = 240
ROTATION_NW = 300

FACINGS = (ROTATION_N, ROTATION_NE, ROTATION_SE, ROTATION_S, ROTATION_SW, ROTATION_NW)

# Axial direction vectors indexed by facing
AXIAL_DIRECTIONS = {
    ROTATION_N: (0, 1),
    ROTATION_NE: (1, 0),
    ROTATION_SE: (1, -1),
    ROTATION_S: (0, -1),
    ROTATION_SW: (-1, 0),
    ROTATION_NW: (-1, 1),
}

Coords = tuple[int, int]


class TerrainType(Enum):
    OPEN = "open"
    ROAD = "road"
    MUD = "mud"
    FIELD = "field"
    FOREST = "forest"
    BUILDINGS = "buildings"


LOS_BLOCKING = (TerrainType.FOREST, TerrainType.BUILDINGS)


class FiringArcPolicy(Enum):
    """Which axial rays a vehicle may shoot along."""
    ALL_RAYS = "all_rays"  # all six rays regardless of facing
    FACING = "facing"      # facing and one 60 degree step either side


@dataclass
class HexCell:
    """Individual hex cell in the grid."""
    q: int
    r: int
    terrain: str = TerrainType.OPEN.value
    id: Optional[str] = None
    rotation: Optional[int] = None  # texture rotation, display only
    sherman_smoke: bool = False
    german_smoke: bool = False

    @property
    def coords(self) -> Coords:
        return (self.q, self.r)

    def terrain_types(self) -> set[TerrainType]:
        """Terrain categories present on this hex (terrain may be combined)."""
        found = set()
        for token in re.split(r"[^a-z]+", self.terrain.lower()):
            try:
                found.add(TerrainType(token))
            except ValueError:
                continue
        return found

    def has_terrain(self, terrain: TerrainType) -> bool:
        return terrain in self.terrain_types()

    @property
    def has_smoke(self) -> bool:
        return self.sherman_smoke or self.german_smoke

    @classmethod
    def from_dict(cls, data: dict) -> "HexCell":
        return cls(
            q=int(data["q"]),
            r=int(data["r"]),
            terrain=str(data.get("terrain", TerrainType.OPEN.value)),
            id=data.get("id"),
            rotation=data.get("rotation"),
            sherman_smoke=bool(data.get("shermanSmoke", data.get("sherman_smoke", False))),
            german_smoke=bool(data.get("germanSmoke", data.get("german_smoke", False))),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "q": self.q,
            "r": self.r,
            "terrain": self.terrain,
            "shermanSmoke": self.sherman_smoke,
            "germanSmoke": self.german_smoke,
        }
        if self.rotation is not None:
            data["rotation"] = self.rotation
        return data


@dataclass
class ClearPath:
    """Result of a line-of-sight check between two hexes."""
    blocked: bool
    blocking_terrain: Optional[str] = None
    blocking_hex: Optional[Coords] = None
    reason: Optional[str] = None


# Hex coordinate math

def normalize_facing(degrees: int) -> int:
    """Normalize a facing into [0, 360); it must lie on the 60 degree lattice."""
    normalized = ((int(degrees) % 360) + 360) % 360
    if normalized % 60 != 0:
        raise ValueError(f"Facing must be a multiple of 60 degrees, got {degrees}")
    return normalized


def neighbor_coords(q: int, r: int, facing: int) -> Coords:
    """Coordinates of the adjacent hex in the given facing direction."""
    dq, dr = AXIAL_DIRECTIONS[normalize_facing(facing)]
    return (q + dq, r + dr)


def hex_distance(q1: int, r1: int, q2: int, r2: int) -> int:
    """Calculate distance in hexes between two cells."""
    return (abs(q1 - q2) + abs(q1 + r1 - q2 - r2) + abs(r1 - r2)) // 2


def axial_to_pixel(q: int, r: int, size: float = HEX_SIZE) -> tuple[float, float]:
    """Convert axial coordinates to the pixel center of a flat-top hex.

    Screen y is negated so that positive r moves a hex up on the screen.
    """
    width = size * 2
    height = size * math.sqrt(3)
    x = q * (width * 0.75)
    y = -(r * height + q * (height / 2))
    return (x, y)


def angle_of_attack(from_hex: Coords, to_hex: Coords) -> int:
    """Bearing from one hex to another, snapped to the nearest 60 degrees.

    Measured clockwise from north (+r) in a y-up frame, so the result lines
    up with vehicle facings.
    """
    dq = to_hex[0] - from_hex[0]
    dr = to_hex[1] - from_hex[1]
    if dq == 0 and dr == 0:
        return 0
    dx = 1.5 * dq
    dy = math.sqrt(3) * (dr + dq / 2)
    bearing = math.degrees(math.atan2(dx, dy)) % 360
    return int(math.floor(bearing / 60.0 + 0.5)) * 60 % 360


def direction_between(from_hex: Coords, to_hex: Coords) -> Optional[int]:
    """Facing whose axial ray from from_hex passes through to_hex, if any."""
    dq = to_hex[0] - from_hex[0]
    dr = to_hex[1] - from_hex[1]
    if dq == 0 and dr == 0:
        return None
    steps = hex_distance(0, 0, dq, dr)
    for facing, (uq, ur) in AXIAL_DIRECTIONS.items():
        if uq * steps == dq and ur * steps == dr:
            return facing
    return None


class HexMap:
    """
    Board made of hex cells keyed by axial coordinates.

    Geometry helpers return None for hexes that are not on the board;
    running off the map edge is an ordinary outcome.
    """

    def __init__(self, cells: Iterable[HexCell] = ()):
        self.cells: dict[Coords, HexCell] = {}
        for cell in cells:
            self.cells[cell.coords] = cell

    @classmethod
    def from_definition(cls, hexes: list[dict]) -> "HexMap":
        """Build a map from a scenario hex list."""
        if not hexes:
            raise ValueError("Map definition contains no hexes")
        return cls(HexCell.from_dict(h) for h in hexes)

    def __contains__(self, coords: Coords) -> bool:
        return tuple(coords) in self.cells

    def __len__(self) -> int:
        return len(self.cells)

    def get_cell(self, q: int, r: int) -> Optional[HexCell]:
        """Get cell at coordinates."""
        return self.cells.get((q, r))

    def neighbor(self, q: int, r: int, facing: int) -> Optional[HexCell]:
        """Adjacent cell in the facing direction, or None off the map."""
        return self.get_cell(*neighbor_coords(q, r, facing))

    def get_neighbors(self, q: int, r: int) -> list[HexCell]:
        """Get all adjacent hex cells."""
        neighbors = []
        for facing in FACINGS:
            cell = self.neighbor(q, r, facing)
            if cell:
                neighbors.append(cell)
        return neighbors

    def trace_line(self, q: int, r: int, facing: int) -> Iterator[HexCell]:
        """Walk the neighbor chain from (q, r) until the map edge.

        The start hex is not included.
        """
        dq, dr = AXIAL_DIRECTIONS[normalize_facing(facing)]
        cq, cr = q + dq, r + dr
        while (cq, cr) in self.cells:
            yield self.cells[(cq, cr)]
            cq, cr = cq + dq, cr + dr

    def has_clear_path(self, from_hex: Coords, to_hex: Coords) -> ClearPath:
        """Check line of sight along an axial ray, endpoints excluded."""
        facing = direction_between(from_hex, to_hex)
        if facing is None:
            return ClearPath(blocked=True, reason="not a straight axial line")

        dq, dr = AXIAL_DIRECTIONS[facing]
        steps = hex_distance(*from_hex, *to_hex)
        for i in range(1, steps):
            coords = (from_hex[0] + dq * i, from_hex[1] + dr * i)
            cell = self.cells.get(coords)
            if not cell:
                continue
            for terrain in LOS_BLOCKING:
                if cell.has_terrain(terrain):
                    return ClearPath(
                        blocked=True,
                        blocking_terrain=terrain.value,
                        blocking_hex=coords,
                        reason=f"blocked by {terrain.value}",
                    )
        return ClearPath(blocked=False)

    def firing_arc_hexes(
        self,
        q: int,
        r: int,
        facing: int = 0,
        policy: FiringArcPolicy = FiringArcPolicy.ALL_RAYS,
    ) -> set[Coords]:
        """All board hexes reachable along the rays allowed by the arc policy."""
        if policy == FiringArcPolicy.FACING:
            base = normalize_facing(facing)
            rays = [base, (base + 60) % 360, (base - 60) % 360]
        else:
            rays = list(FACINGS)

        hexes = set()
        for ray in rays:
            for cell in self.trace_line(q, r, ray):
                hexes.add(cell.coords)
        return hexes

    def clear_smoke(self, sherman: bool = False, german: bool = False):
        """Remove smoke overlays of the given owners from every hex."""
        for cell in self.cells.values():
            if sherman:
                cell.sherman_smoke = False
            if german:
                cell.german_smoke = False

    def pixel_bounds(self, size: float = HEX_SIZE) -> dict:
        """Pixel extent of the board, for renderers laying out the grid."""
        width = size * 2
        height = size * math.sqrt(3)
        xs, ys = [], []
        for cell in self.cells.values():
            x, y = axial_to_pixel(cell.q, cell.r, size)
            xs.append(x)
            ys.append(y)
        if not xs:
            return {"min_x": 0, "min_y": 0, "width": 0, "height": 0}
        min_x = min(xs) - width / 2
        min_y = min(ys) - height / 2
        return {
            "min_x": min_x,
            "min_y": min_y,
            "width": max(xs) + width / 2 - min_x,
            "height": max(ys) + height / 2 - min_y,
        }

    def to_dict(self) -> list[dict]:
        return [cell.to_dict() for cell in self.cells.values()]

    def get_stats(self) -> dict:
        """Get map statistics."""
        terrain_counts = {}
        for cell in self.cells.values():
            terrain_counts[cell.terrain] = terrain_counts.get(cell.terrain, 0) + 1
        return {
            "total_cells": len(self.cells),
            "terrain_distribution": terrain_counts,
        }
