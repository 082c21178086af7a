from endless_dungeon.combat import Ongoing, Victory
from endless_dungeon.components import Combatant, GridPosition, Pickup, Purse
from endless_dungeon.dungeon import TileKind, dungeon_from_rows
from endless_dungeon.enemies import create_enemy, enemy_count
from endless_dungeon.items import create_gold, create_potion
from endless_dungeon.movement import (
    BLOCKED_BOUNDS, BLOCKED_WALL, MODE_HOLD, MODE_IDLE, MODE_PATH,
    Attacked, Blocked, Moved, MovementCoordinator, ReachedFinish,
    attack_adjacent, step_player
)
from endless_dungeon.pathfinding import Direction, manhattan, step
from endless_dungeon.player import create_player


# =============================================================================
# SINGLE STEP
# =============================================================================

def test_stepping_into_a_wall_stays_put(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows([".#."])
    player_id = create_player(world, 0, 0)

    result = step_player(world, dungeon, player_id, Direction.RIGHT, resolver, rng)
    assert result == Blocked(BLOCKED_WALL)
    assert world.get_component(player_id, GridPosition).cell == (0, 0)


def test_stepping_off_the_grid_stays_put(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows(["..."])
    player_id = create_player(world, 0, 0)

    assert step_player(world, dungeon, player_id, Direction.LEFT, resolver, rng) == Blocked(BLOCKED_BOUNDS)
    assert step_player(world, dungeon, player_id, Direction.UP, resolver, rng) == Blocked(BLOCKED_BOUNDS)
    assert world.get_component(player_id, GridPosition).cell == (0, 0)


def test_bumping_an_enemy_attacks_without_moving(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows(["........"])
    player_id = create_player(world, 0, 0)
    goblin_id = create_enemy(world, 'goblin', 1, 0)
    position = world.get_component(player_id, GridPosition)

    first = step_player(world, dungeon, player_id, Direction.RIGHT, resolver, rng)
    assert isinstance(first, Attacked)
    assert isinstance(first.outcome, Ongoing)
    assert position.cell == (0, 0)

    second = step_player(world, dungeon, player_id, Direction.RIGHT, resolver, rng)
    assert isinstance(second.outcome, Victory)
    assert position.cell == (0, 0)
    assert world.get_component(goblin_id, Combatant) is None
    assert enemy_count(world) == 0

    # Loot lands on the only free neighbour of the fallen goblin
    gold = world.first_at(2, 0)
    assert gold is not None

    # Last kill opens the way down, far from the player
    assert second.finish is not None
    assert manhattan(second.finish, (0, 0)) > 5
    assert dungeon.kind_at(*second.finish) == TileKind.FINISH

    third = step_player(world, dungeon, player_id, Direction.RIGHT, resolver, rng)
    assert third == Moved((1, 0))
    assert position.cell == (1, 0)


def test_walking_onto_gold_collects_it(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows(["..."])
    player_id = create_player(world, 0, 0)
    gold_id = create_gold(world, 1, 0, 50)

    result = step_player(world, dungeon, player_id, Direction.RIGHT, resolver, rng)
    assert result == Moved((1, 0), ('gold', 50))
    assert world.get_component(player_id, Purse).gold_collected == 50
    assert world.get_component(gold_id, Pickup) is None


def test_walking_onto_potion_heals(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows(["..."])
    player_id = create_player(world, 0, 0)
    world.get_component(player_id, Combatant).health = 50
    create_potion(world, 1, 0, 30)

    result = step_player(world, dungeon, player_id, Direction.RIGHT, resolver, rng)
    assert result == Moved((1, 0), ('potion', 30))
    assert world.get_component(player_id, Combatant).health == 80


def test_walking_onto_finish_reports_it(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows([".>."])
    player_id = create_player(world, 0, 0)

    result = step_player(world, dungeon, player_id, Direction.RIGHT, resolver, rng)
    assert result == ReachedFinish((1, 0))


def test_sword_swing_hits_the_four_neighbours_only(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows(["...", "...", "..."])
    player_id = create_player(world, 1, 1)
    left = create_enemy(world, 'troll', 0, 1)
    above = create_enemy(world, 'troll', 1, 0)
    diagonal = create_enemy(world, 'troll', 2, 2)

    results = attack_adjacent(world, dungeon, player_id, resolver, rng)
    assert [result.enemy_id for result in results] == [left, above]
    assert world.get_component(diagonal, Combatant).health == 80
    assert world.get_component(left, Combatant).health == 80 - 14


def test_sword_swing_with_nobody_around(world, resolver, rng) -> None:
    dungeon = dungeon_from_rows(["..."])
    player_id = create_player(world, 1, 0)
    assert attack_adjacent(world, dungeon, player_id, resolver, rng) == []


# =============================================================================
# COORDINATOR
# =============================================================================

class FakeWalker:
    """Step callback over an open floor that records what it was asked."""

    def __init__(self, start=(0, 0)):
        self.position = start
        self.steps = []
        self.result = None

    def __call__(self, direction):
        self.steps.append(direction)
        if self.result is not None:
            return self.result
        self.position = step(self.position, direction)
        return Moved(self.position)


def test_press_steps_immediately_then_waits_for_cadence() -> None:
    coordinator = MovementCoordinator(step_interval=0.15, path_interval=0.05)
    walker = FakeWalker()

    coordinator.press(Direction.RIGHT, 0.0, walker)
    assert walker.steps == [Direction.RIGHT]
    assert coordinator.mode == MODE_HOLD

    assert coordinator.tick(0.1, walker.position, walker) is None
    assert len(walker.steps) == 1

    coordinator.tick(0.15, walker.position, walker)
    coordinator.tick(0.2, walker.position, walker)
    coordinator.tick(0.31, walker.position, walker)
    assert len(walker.steps) == 3
    assert walker.position == (3, 0)


def test_pressing_the_held_direction_again_does_not_step() -> None:
    coordinator = MovementCoordinator()
    walker = FakeWalker()

    coordinator.press(Direction.DOWN, 0.0, walker)
    assert coordinator.press(Direction.DOWN, 0.05, walker) is None
    assert walker.steps == [Direction.DOWN]

    coordinator.press(Direction.LEFT, 0.06, walker)
    assert walker.steps == [Direction.DOWN, Direction.LEFT]


def test_release_stops_holding() -> None:
    coordinator = MovementCoordinator()
    walker = FakeWalker()

    coordinator.press(Direction.RIGHT, 0.0, walker)
    coordinator.release(Direction.LEFT)
    assert coordinator.is_moving

    coordinator.release(Direction.RIGHT)
    assert coordinator.mode == MODE_IDLE
    assert coordinator.tick(1.0, walker.position, walker) is None
    assert len(walker.steps) == 1


def test_follow_walks_the_route_at_path_cadence() -> None:
    coordinator = MovementCoordinator(step_interval=0.15, path_interval=0.05)
    walker = FakeWalker()

    assert coordinator.follow([(1, 0), (1, 1), (2, 1)], 0.0)
    assert coordinator.mode == MODE_PATH
    assert coordinator.tick(0.01, walker.position, walker) is None

    for now in (0.05, 0.11, 0.17):
        coordinator.tick(now, walker.position, walker)

    assert walker.steps == [Direction.RIGHT, Direction.DOWN, Direction.RIGHT]
    assert walker.position == (2, 1)
    assert coordinator.mode == MODE_IDLE


def test_follow_rejects_empty_route() -> None:
    coordinator = MovementCoordinator()
    walker = FakeWalker()
    coordinator.press(Direction.UP, 0.0, walker)

    assert not coordinator.follow([], 0.1)
    assert coordinator.mode == MODE_HOLD


def test_press_cancels_route_and_route_cancels_hold() -> None:
    coordinator = MovementCoordinator()
    walker = FakeWalker()

    coordinator.follow([(1, 0), (2, 0)], 0.0)
    coordinator.press(Direction.DOWN, 0.01, walker)
    assert coordinator.mode == MODE_HOLD
    assert not coordinator.path

    coordinator.follow([(0, 2)], 0.02)
    assert coordinator.mode == MODE_PATH
    assert coordinator.direction is None


def test_attack_keeps_route_head_and_strikes_at_step_pace() -> None:
    coordinator = MovementCoordinator(step_interval=0.15, path_interval=0.05)
    walker = FakeWalker()
    walker.result = Attacked(enemy_id=7, outcome=Ongoing(dealt=19, taken=3))

    coordinator.follow([(1, 0), (2, 0)], 0.0)
    coordinator.tick(0.05, walker.position, walker)
    assert coordinator.tick(0.11, walker.position, walker) is None
    assert len(walker.steps) == 1

    coordinator.tick(0.21, walker.position, walker)
    assert walker.steps == [Direction.RIGHT, Direction.RIGHT]
    assert list(coordinator.path) == [(1, 0), (2, 0)]
    assert coordinator.mode == MODE_PATH

    # Once the way is clear the route resumes its own pace
    walker.result = None
    coordinator.tick(0.37, walker.position, walker)
    coordinator.tick(0.43, walker.position, walker)
    assert walker.position == (2, 0)
    assert coordinator.mode == MODE_IDLE


def test_drop_route_keeps_a_held_direction() -> None:
    coordinator = MovementCoordinator()
    walker = FakeWalker()

    coordinator.press(Direction.RIGHT, 0.0, walker)
    coordinator.drop_route()
    assert coordinator.mode == MODE_HOLD
    assert coordinator.direction == Direction.RIGHT

    coordinator.follow([(2, 0)], 0.1)
    coordinator.drop_route()
    assert coordinator.mode == MODE_IDLE
    assert not coordinator.path


def test_blocked_step_ends_route() -> None:
    coordinator = MovementCoordinator(path_interval=0.05)
    walker = FakeWalker()
    walker.result = Blocked(BLOCKED_WALL)

    coordinator.follow([(1, 0), (2, 0)], 0.0)
    coordinator.tick(0.05, walker.position, walker)
    assert coordinator.mode == MODE_IDLE
    assert not coordinator.path


def test_route_no_longer_adjacent_is_abandoned() -> None:
    coordinator = MovementCoordinator(path_interval=0.05)
    walker = FakeWalker(start=(5, 5))

    coordinator.follow([(1, 0)], 0.0)
    assert coordinator.tick(0.05, walker.position, walker) is None
    assert walker.steps == []
    assert coordinator.mode == MODE_IDLE


def test_step_that_stops_the_coordinator_is_respected() -> None:
    coordinator = MovementCoordinator(path_interval=0.05)

    def finishing_step(direction):
        coordinator.stop()
        return ReachedFinish((1, 0))

    coordinator.follow([(1, 0), (2, 0)], 0.0)
    result = coordinator.tick(0.05, (0, 0), finishing_step)
    assert result == ReachedFinish((1, 0))
    assert coordinator.mode == MODE_IDLE
    assert not coordinator.path
