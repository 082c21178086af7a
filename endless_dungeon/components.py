"""
Component Definitions
======================
Components are plain dataclasses. Rules that change them (damage,
healing, movement) live in the systems and resolvers, not here.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Tuple


# =============================================================================
# SPATIAL / RENDERING
# =============================================================================

@dataclass
class GridPosition:
    """Tile coordinates on the dungeon grid."""
    x: int = 0
    y: int = 0

    @property
    def cell(self) -> Tuple[int, int]:
        return self.x, self.y


@dataclass
class Renderable:
    """Visual handle of an entity. Only the render system reads it."""
    char: str = '?'
    color: int = 7  # ANSI 256 color
    layer: int = 0  # Higher layers render on top
    visible: bool = True


# =============================================================================
# COMBAT
# =============================================================================

@dataclass
class Combatant:
    """
    Shared stat block of the player and every enemy.

    health stays within [0, max_health]; use combat.apply_damage and
    combat.heal rather than assigning it directly.
    """
    max_health: int = 100
    health: int = 100
    damage: int = 0
    shield: int = 0

    @property
    def is_alive(self) -> bool:
        return self.health > 0


@dataclass
class LootTable:
    """Gold amounts a defeated enemy may drop, drawn uniformly."""
    amounts: Tuple[int, ...] = ()


@dataclass
class HitFlash:
    """Cosmetic flash after taking or dealing a hit."""
    until: float = 0.0
    flash_color: int = 255


@dataclass
class HealthBar:
    """Cosmetic health indicator, shown for a while after damage."""
    visible_until: float = 0.0


# =============================================================================
# PLAYER
# =============================================================================

@dataclass
class PlayerTag:
    """Marks the player entity."""
    pass


@dataclass
class Purse:
    """Gold collected during the current run."""
    gold_collected: int = 0


# =============================================================================
# ENEMIES
# =============================================================================

class AIState(Enum):
    IDLE = auto()
    CHASE = auto()
    ATTACK = auto()


@dataclass
class EnemyTag:
    """Marks an entity as an enemy of the given species."""
    enemy_type: str = 'goblin'
    name: str = 'Goblin'


@dataclass
class AIBehavior:
    """Greedy chase behaviour driven by the enemy agent loop."""
    state: AIState = AIState.IDLE
    detection_radius: int = 8


# =============================================================================
# ITEMS
# =============================================================================

PICKUP_GOLD = 'gold'
PICKUP_POTION = 'potion'


@dataclass
class Pickup:
    """
    Collectible lying on the floor.

    kind is PICKUP_GOLD (amount = gold) or PICKUP_POTION (amount = health).
    """
    kind: str = PICKUP_GOLD
    amount: int = 0
