"""
Pathfinding
============
Grid geometry helpers and A* search over the dungeon.

Movement is 4-directional with unit step cost. The Manhattan heuristic is
admissible and consistent for that graph, so the first time the goal is
popped its path is optimal. Closed cells are never reopened.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
import heapq
import itertools
import logging

from .dungeon import Dungeon, TileKind


logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


class Direction(Enum):
    """Grid step directions. Value is (dx, dy); y grows downward."""
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


def manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def chebyshev(a: Cell, b: Cell) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def step(cell: Cell, direction: Direction) -> Cell:
    return cell[0] + direction.dx, cell[1] + direction.dy


def direction_between(from_cell: Cell, to_cell: Cell) -> Optional[Direction]:
    """
    Direction of the dominant axis from one cell to another.

    Horizontal wins only when strictly larger; equal displacement goes
    vertical. Returns None for identical cells.
    """
    dx = to_cell[0] - from_cell[0]
    dy = to_cell[1] - from_cell[1]
    if dx == 0 and dy == 0:
        return None
    if abs(dx) > abs(dy):
        return Direction.RIGHT if dx > 0 else Direction.LEFT
    return Direction.DOWN if dy > 0 else Direction.UP


def find_path(start: Cell, goal: Cell, dungeon: Dungeon,
              occupied: Iterable[Cell] = (),
              allow_occupant_at_goal: bool = False) -> List[Cell]:
    """
    Shortest walkable route from start to goal.

    Returns the cells after start up to and including goal, or an empty
    list when the goal is unreachable (or equal to start).

    A cell is traversable when it is not a wall and nobody in `occupied`
    stands on it. With allow_occupant_at_goal the goal itself may be
    occupied, which lets callers path onto an enemy to attack it while
    other enemies still block the way.
    """
    if start == goal or not dungeon.in_bounds(*goal):
        return []

    blocked = set(occupied)
    blocked.discard(start)

    def traversable(cell: Cell) -> bool:
        if dungeon.kind_at(*cell) == TileKind.WALL:
            return False
        if cell in blocked:
            return cell == goal and allow_occupant_at_goal
        return True

    if not traversable(goal):
        return []

    # Heap entries: (f, insertion order, cell). Ties pop in insertion order.
    counter = itertools.count()
    open_heap = [(manhattan(start, goal), next(counter), start)]
    g_score: Dict[Cell, int] = {start: 0}
    came_from: Dict[Cell, Cell] = {}
    closed = set()

    while open_heap:
        _, _, current = heapq.heappop(open_heap)
        if current in closed:
            continue

        if current == goal:
            path = [current]
            while path[-1] in came_from:
                path.append(came_from[path[-1]])
            path.pop()  # drop start
            path.reverse()
            logger.debug('Path %s -> %s: %d steps', start, goal, len(path))
            return path

        closed.add(current)

        for neighbor in dungeon.neighbors4(*current):
            if neighbor in closed or not traversable(neighbor):
                continue
            tentative = g_score[current] + 1
            if tentative < g_score.get(neighbor, tentative + 1):
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                heapq.heappush(
                    open_heap,
                    (tentative + manhattan(neighbor, goal), next(counter), neighbor)
                )

    logger.debug('No path %s -> %s', start, goal)
    return []
