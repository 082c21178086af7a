"""
Dungeon Grid
=============
Tile grid model and the default maze generator.

The grid is addressed as ``tiles[x][y]`` (x = column, y = row). Apart from
the one floor -> finish change made when a level is cleared, the grid is
read-only once generated.

The generator carves rooms first, fills the remaining space with maze
corridors, joins every region through doors and finally prunes dead ends:

    rooms -> maze -> connectors -> dead-end removal
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple
import logging
import random


logger = logging.getLogger(__name__)

MIN_WIDTH = 15
MIN_HEIGHT = 11

# Extra connectors kept after regions are joined, so the map has loops
EXTRA_CONNECTOR_CHANCE = 0.04

NEIGHBORS_4 = ((1, 0), (-1, 0), (0, 1), (0, -1))


class TileKind(Enum):
    WALL = 'wall'
    FLOOR = 'floor'
    DOOR = 'door'
    FINISH = 'finish'


WALKABLE = (TileKind.FLOOR, TileKind.DOOR, TileKind.FINISH)

# ASCII map legend, used by dungeon_from_rows and the renderer
TILE_CHARS: Dict[TileKind, str] = {
    TileKind.WALL: '#',
    TileKind.FLOOR: '.',
    TileKind.DOOR: '+',
    TileKind.FINISH: '>',
}


@dataclass
class Tile:
    """A single grid cell."""
    x: int
    y: int
    kind: TileKind = TileKind.WALL

    @property
    def type(self) -> str:
        """Kind name as the generator boundary exposes it."""
        return self.kind.value


class Dungeon:
    """A width x height grid of tiles, stored column-major."""

    def __init__(self, width: int, height: int, tiles: List[List[Tile]]):
        self.width = width
        self.height = height
        self.tiles = tiles

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def kind_at(self, x: int, y: int) -> TileKind:
        return self.tiles[x][y].kind

    def is_walkable(self, x: int, y: int) -> bool:
        """True for in-bounds floor, door and finish cells."""
        return self.in_bounds(x, y) and self.tiles[x][y].kind in WALKABLE

    def neighbors4(self, x: int, y: int) -> Iterator[Tuple[int, int]]:
        for dx, dy in NEIGHBORS_4:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield nx, ny

    def cells(self, *kinds: TileKind) -> Iterator[Tuple[int, int]]:
        """
        Yield cell coordinates in row-major order (y outer, x inner).

        With kinds given, only cells of those kinds are yielded.
        """
        for y in range(self.height):
            for x in range(self.width):
                if not kinds or self.tiles[x][y].kind in kinds:
                    yield x, y

    def place_finish(self, x: int, y: int) -> None:
        """Turn a floor cell into the level exit."""
        tile = self.tiles[x][y]
        if tile.kind != TileKind.FLOOR:
            raise ValueError(f'finish must be placed on floor, got {tile.type} at ({x}, {y})')
        tile.kind = TileKind.FINISH

    @property
    def finish(self) -> Optional[Tuple[int, int]]:
        """Location of the finish tile, if one has been placed."""
        for cell in self.cells(TileKind.FINISH):
            return cell
        return None

    def to_rows(self) -> List[str]:
        """ASCII rendering of the grid, one string per row."""
        return [
            ''.join(TILE_CHARS[self.tiles[x][y].kind] for x in range(self.width))
            for y in range(self.height)
        ]


# Anything with this shape can stand in for the default generator
MazeGenerator = Callable[[int, int, random.Random], Dungeon]


def dungeon_from_rows(rows: List[str]) -> Dungeon:
    """Build a dungeon from an ASCII map (see TILE_CHARS)."""
    char_kinds = {char: kind for kind, char in TILE_CHARS.items()}
    height = len(rows)
    width = len(rows[0]) if rows else 0
    tiles = [
        [Tile(x, y, char_kinds[rows[y][x]]) for y in range(height)]
        for x in range(width)
    ]
    return Dungeon(width, height, tiles)


def odd_dimension(size: int, minimum: int) -> int:
    """Clamp a size to the minimum and round down to the nearest odd value."""
    size = max(size, minimum)
    return size if size % 2 == 1 else size - 1


# =============================================================================
# GENERATOR
# =============================================================================

class _Carver:
    """Scratch state for one generation run."""

    def __init__(self, width: int, height: int, rng: random.Random):
        self.width = width
        self.height = height
        self.rng = rng
        self.kinds = [[TileKind.WALL] * height for _ in range(width)]
        self.regions: Dict[Tuple[int, int], int] = {}
        self.room_regions: Set[int] = set()
        self.rooms: List[Tuple[int, int, int, int]] = []
        self.region = -1

    def carve(self, x: int, y: int, kind: TileKind = TileKind.FLOOR):
        self.kinds[x][y] = kind
        self.regions[(x, y)] = self.region

    def inside(self, x: int, y: int) -> bool:
        """True for cells that are not on the outer wall ring."""
        return 0 < x < self.width - 1 and 0 < y < self.height - 1

    def add_rooms(self, attempts: int):
        for _ in range(attempts):
            room_w = self.rng.randrange(1, 4) * 2 + 1
            room_h = self.rng.randrange(1, 3) * 2 + 1
            if room_w > self.width - 2 or room_h > self.height - 2:
                continue
            room_x = self.rng.randrange((self.width - room_w) // 2) * 2 + 1
            room_y = self.rng.randrange((self.height - room_h) // 2) * 2 + 1

            overlaps = any(
                room_x <= ox + ow and ox <= room_x + room_w and
                room_y <= oy + oh and oy <= room_y + room_h
                for ox, oy, ow, oh in self.rooms
            )
            if overlaps:
                continue

            self.rooms.append((room_x, room_y, room_w, room_h))
            self.region += 1
            self.room_regions.add(self.region)
            for x in range(room_x, room_x + room_w):
                for y in range(room_y, room_y + room_h):
                    self.carve(x, y)

    def grow_maze(self, start_x: int, start_y: int):
        """Recursive-backtracker corridor fill from an odd cell."""
        self.region += 1
        self.carve(start_x, start_y)
        stack = [(start_x, start_y)]

        while stack:
            cx, cy = stack[-1]
            options = [
                (dx, dy) for dx, dy in NEIGHBORS_4
                if self.inside(cx + dx * 2, cy + dy * 2)
                and self.kinds[cx + dx * 2][cy + dy * 2] == TileKind.WALL
            ]
            if not options:
                stack.pop()
                continue

            dx, dy = self.rng.choice(options)
            self.carve(cx + dx, cy + dy)
            self.carve(cx + dx * 2, cy + dy * 2)
            stack.append((cx + dx * 2, cy + dy * 2))

    def connect_regions(self):
        """Open connectors until every region is joined into one."""
        connector_regions: Dict[Tuple[int, int], Set[int]] = {}
        for x in range(1, self.width - 1):
            for y in range(1, self.height - 1):
                if self.kinds[x][y] != TileKind.WALL:
                    continue
                touching = {
                    self.regions[(x + dx, y + dy)]
                    for dx, dy in NEIGHBORS_4
                    if (x + dx, y + dy) in self.regions
                }
                if len(touching) >= 2:
                    connector_regions[(x, y)] = touching

        merged = {region: region for region in range(self.region + 1)}
        open_regions = set(range(self.region + 1))
        connectors = list(connector_regions)

        while len(open_regions) > 1 and connectors:
            cx, cy = self.rng.choice(connectors)
            self._open_connector(cx, cy, connector_regions[(cx, cy)])

            joined = [merged[region] for region in connector_regions[(cx, cy)]]
            dest = joined[0]
            sources = set(joined[1:])
            for region in merged:
                if merged[region] in sources:
                    merged[region] = dest
            open_regions -= sources

            remaining = []
            for x, y in connectors:
                if abs(x - cx) + abs(y - cy) < 2:
                    continue
                if len({merged[region] for region in connector_regions[(x, y)]}) > 1:
                    remaining.append((x, y))
                elif self.rng.random() < EXTRA_CONNECTOR_CHANCE:
                    self._open_connector(x, y, connector_regions[(x, y)])
            connectors = remaining

    def _open_connector(self, x: int, y: int, touching: Set[int]):
        kind = TileKind.DOOR if touching & self.room_regions else TileKind.FLOOR
        self.kinds[x][y] = kind

    def remove_dead_ends(self):
        """Fill corridor cells that lead nowhere. Room cells are kept."""
        changed = True
        while changed:
            changed = False
            for x in range(1, self.width - 1):
                for y in range(1, self.height - 1):
                    if self.kinds[x][y] == TileKind.WALL:
                        continue
                    if self.regions.get((x, y)) in self.room_regions:
                        continue
                    exits = sum(
                        1 for dx, dy in NEIGHBORS_4
                        if self.kinds[x + dx][y + dy] != TileKind.WALL
                    )
                    if exits <= 1:
                        self.kinds[x][y] = TileKind.WALL
                        changed = True

    def build(self) -> Dungeon:
        tiles = [
            [Tile(x, y, self.kinds[x][y]) for y in range(self.height)]
            for x in range(self.width)
        ]
        return Dungeon(self.width, self.height, tiles)


def generate_dungeon(width: int, height: int,
                     rng: Optional[random.Random] = None,
                     room_attempts: int = 60) -> Dungeon:
    """
    Generate a rooms-and-corridors dungeon.

    Dimensions are clamped to MIN_WIDTH x MIN_HEIGHT and rounded down to odd
    values. Every walkable cell is reachable from every other.
    """
    rng = rng or random.Random()
    width = odd_dimension(width, MIN_WIDTH)
    height = odd_dimension(height, MIN_HEIGHT)

    carver = _Carver(width, height, rng)
    carver.add_rooms(room_attempts)

    for y in range(1, height, 2):
        for x in range(1, width, 2):
            if carver.kinds[x][y] == TileKind.WALL:
                carver.grow_maze(x, y)

    carver.connect_regions()
    if carver.rooms:
        carver.remove_dead_ends()

    logger.debug('Generated %dx%d dungeon with %d rooms', width, height, len(carver.rooms))
    return carver.build()
