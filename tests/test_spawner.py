from dataclasses import replace
import random

import pytest

from endless_dungeon.components import (
    AIBehavior, Combatant, EnemyTag, GridPosition, Pickup, Purse
)
from endless_dungeon.config import DEFAULT_CONFIG
from endless_dungeon.dungeon import TileKind, dungeon_from_rows, generate_dungeon
from endless_dungeon.enemies import enemy_count
from endless_dungeon.items import create_gold
from endless_dungeon.pathfinding import manhattan
from endless_dungeon.player import create_player
from endless_dungeon.spawner import find_start_cell, place_finish_tile, populate_level


@pytest.mark.parametrize("seed", range(5))
def test_population_counts_and_distinct_cells(world, seed) -> None:
    rng = random.Random(seed)
    dungeon = generate_dungeon(33, 21, rng)
    player_id, spawned = populate_level(world, dungeon, rng)

    assert 3 <= spawned['enemies'] <= 5
    assert 2 <= spawned['potions'] <= 3
    assert 3 <= spawned['gold'] <= 5
    assert enemy_count(world) == spawned['enemies']

    player_cell = world.get_component(player_id, GridPosition).cell
    assert player_cell == find_start_cell(dungeon)

    cells = [pos.cell for _, pos in world.query(GridPosition)]
    assert len(cells) == len(set(cells))
    assert len(cells) == 1 + sum(spawned.values())
    assert all(dungeon.kind_at(*cell) == TileKind.FLOOR for cell in cells)


def test_population_shrinks_on_a_cramped_map(world, rng) -> None:
    dungeon = dungeon_from_rows([
        "#####",
        "#...#",
        "#####",
    ])
    _, spawned = populate_level(world, dungeon, rng)
    assert spawned == {'enemies': 2, 'potions': 0, 'gold': 0}
    assert len(list(world.query(Pickup))) == 0


def test_population_carries_player_stats(world, rng) -> None:
    dungeon = dungeon_from_rows(["......"])
    combatant = Combatant(max_health=100, health=42, damage=20, shield=5)
    purse = Purse(gold_collected=310)
    player_id, _ = populate_level(world, dungeon, rng, DEFAULT_CONFIG, combatant, purse)

    assert world.get_component(player_id, Combatant).health == 42
    assert world.get_component(player_id, Purse).gold_collected == 310


def test_start_cell_is_first_floor_in_row_major_order() -> None:
    dungeon = dungeon_from_rows([
        "####",
        "##.#",
        "#..#",
    ])
    assert find_start_cell(dungeon) == (2, 1)


def test_start_cell_requires_floor() -> None:
    with pytest.raises(ValueError):
        find_start_cell(dungeon_from_rows(["###"]))


def test_finish_lands_beyond_minimum_distance(world, rng) -> None:
    dungeon = dungeon_from_rows(["........."] * 6)
    create_player(world, 0, 0)

    finish = place_finish_tile(world, dungeon, (0, 0), rng, min_distance=5)
    assert manhattan(finish, (0, 0)) > 5
    assert dungeon.kind_at(*finish) == TileKind.FINISH
    assert dungeon.finish == finish


def test_finish_skips_occupied_cells(world, rng) -> None:
    dungeon = dungeon_from_rows(["........"])
    create_player(world, 0, 0)
    create_gold(world, 6, 0, 10)

    finish = place_finish_tile(world, dungeon, (0, 0), rng, min_distance=5)
    assert finish == (7, 0)


def test_finish_falls_back_to_farthest_cell(world, rng) -> None:
    dungeon = dungeon_from_rows(["#.....#"])
    create_player(world, 1, 0)

    assert place_finish_tile(world, dungeon, (1, 0), rng, min_distance=5) == (5, 0)


def test_finish_needs_empty_floor(world, rng) -> None:
    dungeon = dungeon_from_rows(["#.#"])
    create_player(world, 1, 0)

    assert place_finish_tile(world, dungeon, (1, 0), rng) is None
    assert dungeon.finish is None


def test_spawned_enemies_use_configured_detection_radius(world, rng) -> None:
    config = replace(DEFAULT_CONFIG, detection_radius=3)
    dungeon = generate_dungeon(21, 15, rng)
    populate_level(world, dungeon, rng, config)

    for _, ai, _ in world.query(AIBehavior, EnemyTag):
        assert ai.detection_radius == 3
