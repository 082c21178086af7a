"""
Enemy Species
==============
Fixed base stats and loot tables per species, and the enemy factory.

Every enemy runs the same greedy chase in the agent loop:
    idle -> chase (player within detection radius) -> attack (adjacent)
"""

from typing import Dict, Optional
import random

from .ecs import World
from .components import (
    GridPosition, Renderable, Combatant, LootTable,
    EnemyTag, AIBehavior, HitFlash, HealthBar
)
from .colors import NEON_GREEN, NEON_ORANGE, BONE, MOSS, NEON_RED, NEON_MAGENTA


# =============================================================================
# SPECIES TABLE
# =============================================================================

ENEMY_TYPES: Dict[str, dict] = {
    'goblin': {
        'name': 'Goblin',
        'health': 30, 'damage': 8, 'shield': 1,
        'loot': (10, 20, 30),
        'char': 'g', 'color': NEON_GREEN,
    },
    'orc': {
        'name': 'Orc',
        'health': 50, 'damage': 12, 'shield': 3,
        'loot': (20, 40, 60),
        'char': 'o', 'color': NEON_ORANGE,
    },
    'skeleton': {
        'name': 'Skeleton',
        'health': 40, 'damage': 10, 'shield': 2,
        'loot': (15, 30, 45),
        'char': 's', 'color': BONE,
    },
    'troll': {
        'name': 'Troll',
        'health': 80, 'damage': 18, 'shield': 6,
        'loot': (50, 100, 150),
        'char': 'T', 'color': MOSS,
    },
    'demon': {
        'name': 'Demon',
        'health': 60, 'damage': 15, 'shield': 4,
        'loot': (30, 60, 90),
        'char': '&', 'color': NEON_MAGENTA,
    },
    'dragon': {
        'name': 'Dragon',
        'health': 120, 'damage': 25, 'shield': 8,
        'loot': (100, 200, 300),
        'char': 'D', 'color': NEON_RED,
    },
}


def random_enemy_type(rng: Optional[random.Random] = None) -> str:
    """Pick a species uniformly."""
    return (rng or random).choice(list(ENEMY_TYPES))


def create_enemy(world: World, enemy_type: str, x: int, y: int,
                 detection_radius: int = 8) -> int:
    """
    Create an enemy of the given species at a grid cell.

    Raises KeyError for an unknown species.
    """
    data = ENEMY_TYPES[enemy_type]
    return world.create_entity(
        GridPosition(x, y),
        Renderable(char=data['char'], color=data['color'], layer=5),
        Combatant(
            max_health=data['health'],
            health=data['health'],
            damage=data['damage'],
            shield=data['shield'],
        ),
        LootTable(tuple(data['loot'])),
        EnemyTag(enemy_type, data['name']),
        AIBehavior(detection_radius=detection_radius),
        HitFlash(),
        HealthBar(),
    )


def living_enemies(world: World):
    """Yield (entity_id, position, combatant) for every living enemy."""
    for entity_id, pos, combatant, _ in world.query(GridPosition, Combatant, EnemyTag):
        if combatant.is_alive:
            yield entity_id, pos, combatant


def enemy_count(world: World) -> int:
    return sum(1 for _ in living_enemies(world))
