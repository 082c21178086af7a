"""
Movement
=========
Single-step resolution for the player and the coordinator that turns
held keys and followed paths into steps at a fixed cadence.

Coordinator modes:
    idle -> hold  (direction pressed)      -> idle (released)
    idle -> path  (route to a target cell) -> idle (route exhausted)
A press cancels path-follow; following a path cancels the hold.
"""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, List, Optional, Tuple, Union
import logging
import random

from .ecs import World
from .components import GridPosition, Combatant, EnemyTag, Pickup
from .combat import CombatResolver, CombatOutcome, Victory
from .dungeon import Dungeon, TileKind
from .enemies import enemy_count
from .items import collect, drop_loot
from .pathfinding import Cell, Direction, direction_between, manhattan
from .spawner import place_finish_tile


logger = logging.getLogger(__name__)


# =============================================================================
# STEP RESULTS
# =============================================================================

BLOCKED_BOUNDS = 'bounds'
BLOCKED_WALL = 'wall'


@dataclass(frozen=True)
class Blocked:
    """Nothing happened: off the grid or into a wall."""
    reason: str


@dataclass(frozen=True)
class Moved:
    """The player moved; collected is (kind, amount) for a pickup on the cell."""
    cell: Cell
    collected: Optional[Tuple[str, int]] = None


@dataclass(frozen=True)
class ReachedFinish:
    """The player stepped onto the finish tile."""
    cell: Cell
    collected: Optional[Tuple[str, int]] = None


@dataclass(frozen=True)
class Attacked:
    """
    The player struck an enemy instead of moving.

    outcome is None when the resolver dropped the request. finish is the
    finish tile placed because this kill cleared the level.
    """
    enemy_id: int
    outcome: Optional[CombatOutcome]
    finish: Optional[Cell] = None


StepResult = Union[Blocked, Moved, ReachedFinish, Attacked]
StepFn = Callable[[Direction], StepResult]


# =============================================================================
# SINGLE STEP
# =============================================================================

def living_enemy_at(world: World, x: int, y: int) -> Optional[int]:
    for entity_id in world.entities_at(x, y, Combatant, EnemyTag):
        if world.get_component(entity_id, Combatant).is_alive:
            return entity_id
    return None


def strike(world: World, dungeon: Dungeon, player_id: int, enemy_id: int,
           resolver: CombatResolver, rng: random.Random,
           finish_min_distance: int = 5) -> Attacked:
    """
    Resolve one exchange against an enemy.

    A kill removes the enemy, drops its loot beside its cell and, if it was
    the last one, opens the finish tile.
    """
    outcome = resolver.resolve(world, player_id, enemy_id)
    finish = None

    if isinstance(outcome, Victory):
        enemy_pos = world.get_component(enemy_id, GridPosition)
        ex, ey = enemy_pos.x, enemy_pos.y
        world.destroy_entity(enemy_id)
        drop_loot(world, dungeon, ex, ey, outcome.loot, rng)

        if enemy_count(world) == 0 and dungeon.finish is None:
            player_pos = world.get_component(player_id, GridPosition)
            finish = place_finish_tile(world, dungeon, player_pos.cell, rng, finish_min_distance)
            logger.info('Level cleared, finish at %s', finish)

    return Attacked(enemy_id, outcome, finish)


def step_player(world: World, dungeon: Dungeon, player_id: int,
                direction: Direction, resolver: CombatResolver,
                rng: random.Random, finish_min_distance: int = 5) -> StepResult:
    """
    Resolve one step of the player in a direction.

    An enemy on the target cell is attacked and the player stays put, even
    when the enemy dies. A pickup is collected and the player moves on.
    """
    pos = world.get_component(player_id, GridPosition)
    tx, ty = pos.x + direction.dx, pos.y + direction.dy

    if not dungeon.in_bounds(tx, ty):
        return Blocked(BLOCKED_BOUNDS)

    enemy_id = living_enemy_at(world, tx, ty)
    if enemy_id is not None:
        return strike(world, dungeon, player_id, enemy_id, resolver, rng, finish_min_distance)

    if not dungeon.is_walkable(tx, ty):
        return Blocked(BLOCKED_WALL)

    collected = None
    item_id = world.first_at(tx, ty, Pickup)
    if item_id is not None:
        collected = collect(world, item_id, player_id)

    pos.x, pos.y = tx, ty
    if dungeon.kind_at(tx, ty) == TileKind.FINISH:
        return ReachedFinish((tx, ty), collected)
    return Moved((tx, ty), collected)


ATTACK_ORDER = (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN)


def attack_adjacent(world: World, dungeon: Dungeon, player_id: int,
                    resolver: CombatResolver, rng: random.Random,
                    finish_min_distance: int = 5) -> List[Attacked]:
    """Sword swing: one exchange with every enemy beside the player."""
    results = []
    pos = world.get_component(player_id, GridPosition)
    player = world.get_component(player_id, Combatant)

    for direction in ATTACK_ORDER:
        if not player.is_alive:
            break
        enemy_id = living_enemy_at(world, pos.x + direction.dx, pos.y + direction.dy)
        if enemy_id is not None:
            results.append(strike(world, dungeon, player_id, enemy_id,
                                  resolver, rng, finish_min_distance))
    return results


# =============================================================================
# COORDINATOR
# =============================================================================

MODE_IDLE = 'idle'
MODE_HOLD = 'hold'
MODE_PATH = 'path'


class MovementCoordinator:
    """
    Cadence-gated movement from held directions or a followed route.

    Times are seconds from any monotonic clock; the caller passes `now`.
    Steps are executed through a step callback so the coordinator does not
    need to know what a step does.
    """

    def __init__(self, step_interval: float = 0.15, path_interval: float = 0.05):
        self.step_interval = step_interval
        self.path_interval = path_interval
        self.mode = MODE_IDLE
        self.direction: Optional[Direction] = None
        self.path: Deque[Cell] = deque()
        self.last_step_at = 0.0
        # Gap before the next route step; a strike waits a full step_interval
        self.path_gap = path_interval

    @property
    def is_moving(self) -> bool:
        return self.mode != MODE_IDLE

    def press(self, direction: Direction, now: float, step: StepFn) -> Optional[StepResult]:
        """
        Directional intent. Takes one immediate step and keeps holding.

        Pressing the direction already held does nothing; the cadence gate
        decides when it steps again.
        """
        if self.mode == MODE_HOLD and self.direction == direction:
            return None
        self.path.clear()
        self.mode = MODE_HOLD
        self.direction = direction
        self.last_step_at = now
        return step(direction)

    def release(self, direction: Direction) -> None:
        if self.mode == MODE_HOLD and self.direction == direction:
            self.mode = MODE_IDLE
            self.direction = None

    def follow(self, path: Iterable[Cell], now: float) -> bool:
        """Start following a route. Returns False (and changes nothing) for an empty one."""
        path = deque(path)
        if not path:
            return False
        self.mode = MODE_PATH
        self.direction = None
        self.path = path
        self.last_step_at = now
        self.path_gap = self.path_interval
        return True

    def drop_route(self) -> None:
        """Abandon path-follow but keep a held direction held."""
        if self.mode == MODE_PATH:
            self.stop()

    def stop(self) -> None:
        self.mode = MODE_IDLE
        self.direction = None
        self.path.clear()

    def tick(self, now: float, position: Cell, step: StepFn) -> Optional[StepResult]:
        """Take at most one step if the cadence gate allows it."""
        if self.mode == MODE_HOLD:
            if now - self.last_step_at < self.step_interval:
                return None
            self.last_step_at = now
            return step(self.direction)

        if self.mode == MODE_PATH:
            if now - self.last_step_at < self.path_gap:
                return None
            self.last_step_at = now
            return self._follow_step(position, step)

        return None

    def _follow_step(self, position: Cell, step: StepFn) -> Optional[StepResult]:
        head = self.path[0]
        if manhattan(position, head) != 1:
            logger.debug('Route head %s no longer adjacent to %s; stopping', head, position)
            self.stop()
            return None

        result = step(direction_between(position, head))

        # The step may have ended the level or the run and stopped us
        if self.mode != MODE_PATH:
            return result

        self.path_gap = self.path_interval
        if isinstance(result, (Moved, ReachedFinish)):
            self.path.popleft()
        elif isinstance(result, Blocked):
            self.stop()
        else:
            # Keep the head so the next strike lands at the bump-attack pace
            self.path_gap = self.step_interval

        if not self.path:
            self.stop()
        return result
