"""
Items
======
Gold piles and health potions lying on the dungeon floor.
"""

from typing import Optional, Tuple
import random

from .ecs import World
from .components import (
    GridPosition, Renderable, Pickup, Purse, Combatant,
    PICKUP_GOLD, PICKUP_POTION
)
from .colors import GOLD, NEON_RED
from .combat import heal
from .dungeon import Dungeon


# Bonus gold piles draw from this fixed distribution
GOLD_AMOUNTS = (10, 20, 50, 100, 200, 500, 1000)


def random_gold_amount(rng: Optional[random.Random] = None) -> int:
    return (rng or random).choice(GOLD_AMOUNTS)


def create_gold(world: World, x: int, y: int, amount: int) -> int:
    return world.create_entity(
        GridPosition(x, y),
        Renderable(char='$', color=GOLD, layer=2),
        Pickup(PICKUP_GOLD, amount),
    )


def create_potion(world: World, x: int, y: int, heal_amount: int) -> int:
    return world.create_entity(
        GridPosition(x, y),
        Renderable(char='!', color=NEON_RED, layer=2),
        Pickup(PICKUP_POTION, heal_amount),
    )


def collect(world: World, item_id: int, player_id: int) -> Tuple[str, int]:
    """
    Apply a pickup to the player and remove it from the world.

    Returns (kind, amount applied): gold added, or health actually restored.
    """
    pickup = world.get_component(item_id, Pickup)
    world.destroy_entity(item_id)

    if pickup.kind == PICKUP_POTION:
        combatant = world.get_component(player_id, Combatant)
        return PICKUP_POTION, heal(combatant, pickup.amount)

    purse = world.get_component(player_id, Purse)
    purse.gold_collected += pickup.amount
    return PICKUP_GOLD, pickup.amount


def is_free(world: World, dungeon: Dungeon, x: int, y: int) -> bool:
    """Walkable and nothing (entity or item) standing on it."""
    return dungeon.is_walkable(x, y) and world.first_at(x, y) is None


def drop_loot(world: World, dungeon: Dungeon, x: int, y: int, amount: int,
              rng: Optional[random.Random] = None) -> Optional[int]:
    """
    Drop a gold pile next to (x, y), never on it unless no neighbour is free.

    Returns the new item entity, or None for zero loot.
    """
    if amount <= 0:
        return None
    free = [cell for cell in dungeon.neighbors4(x, y) if is_free(world, dungeon, *cell)]
    drop_x, drop_y = (rng or random).choice(free) if free else (x, y)
    return create_gold(world, drop_x, drop_y, amount)
