"""
Level Population
=================
Places the player, enemies and items on a freshly generated dungeon,
and places the finish tile once a level is cleared.
"""

from typing import List, Optional, Tuple
import logging
import random

from .ecs import World
from .components import Combatant, Purse
from .config import GameConfig, DEFAULT_CONFIG
from .dungeon import Dungeon, TileKind
from .enemies import create_enemy, random_enemy_type
from .items import create_gold, create_potion, random_gold_amount
from .pathfinding import Cell, manhattan
from .player import create_player


logger = logging.getLogger(__name__)


def find_start_cell(dungeon: Dungeon) -> Cell:
    """First floor cell in row-major order. Raises ValueError on a floorless grid."""
    for cell in dungeon.cells(TileKind.FLOOR):
        return cell
    raise ValueError('dungeon has no floor to start on')


def populate_level(world: World, dungeon: Dungeon, rng: random.Random,
                   config: GameConfig = DEFAULT_CONFIG,
                   combatant: Optional[Combatant] = None,
                   purse: Optional[Purse] = None) -> Tuple[int, dict]:
    """
    Spawn the player and the level's enemies, potions and gold piles.

    No two spawns share a cell and none shares the player's. Returns the
    player entity and the counts actually spawned; counts shrink (enemies
    first to survive) when the dungeon has too few free floor cells.
    """
    start = find_start_cell(dungeon)
    player_id = create_player(world, start[0], start[1], config, combatant, purse)

    free: List[Cell] = [cell for cell in dungeon.cells(TileKind.FLOOR) if cell != start]
    rng.shuffle(free)

    wanted = {
        'enemies': rng.randint(*config.enemy_count),
        'potions': rng.randint(*config.potion_count),
        'gold': rng.randint(*config.gold_count),
    }
    if sum(wanted.values()) > len(free):
        logger.warning('Only %d free cells for %d spawns', len(free), sum(wanted.values()))

    spawned = {}
    for kind in ('enemies', 'potions', 'gold'):
        count = min(wanted[kind], len(free))
        for _ in range(count):
            x, y = free.pop()
            if kind == 'enemies':
                create_enemy(world, random_enemy_type(rng), x, y, config.detection_radius)
            elif kind == 'potions':
                create_potion(world, x, y, config.potion_heal)
            else:
                create_gold(world, x, y, random_gold_amount(rng))
        spawned[kind] = count

    return player_id, spawned


def place_finish_tile(world: World, dungeon: Dungeon, player_cell: Cell,
                      rng: random.Random,
                      min_distance: int = 5) -> Optional[Cell]:
    """
    Turn a random empty floor cell further than min_distance (Manhattan)
    from the player into the finish tile.

    When no cell is far enough the farthest empty floor cell is used.
    Returns the finish cell, or None if the level has no empty floor.
    """
    empty = [
        cell for cell in dungeon.cells(TileKind.FLOOR)
        if cell != player_cell and world.first_at(*cell) is None
    ]
    if not empty:
        logger.warning('No empty floor left for the finish tile')
        return None

    far = [cell for cell in empty if manhattan(cell, player_cell) > min_distance]
    if far:
        chosen = rng.choice(far)
    else:
        chosen = max(empty, key=lambda cell: manhattan(cell, player_cell))
        logger.warning('No floor beyond %d tiles; finish placed at %s', min_distance, chosen)

    dungeon.place_finish(*chosen)
    return chosen
