"""
Systems
========
Enemy agent loop, cosmetic hit markers and rendering of the level.
"""

from typing import TYPE_CHECKING, List, Optional, Tuple
import logging

from .ecs import World
from .components import (
    GridPosition, Renderable, Combatant, EnemyTag,
    AIBehavior, AIState, HitFlash, HealthBar
)
from .colors import GRAY_DARK, GRAY_MED, GRAY_LIGHT, NEON_YELLOW, NEON_GREEN, NEON_RED, WHITE
from .combat import apply_damage
from .dungeon import Dungeon, TileKind, TILE_CHARS
from .enemies import living_enemies
from .pathfinding import chebyshev, direction_between, manhattan, step
from .player import get_player_entity

if TYPE_CHECKING:
    from .engine import GameRenderer


logger = logging.getLogger(__name__)


# =============================================================================
# ENEMY AGENT LOOP
# =============================================================================

def enemy_can_enter(world: World, dungeon: Dungeon, x: int, y: int,
                    player_cell: Tuple[int, int]) -> bool:
    """In bounds, not a wall, not the player and no living enemy there."""
    if not dungeon.is_walkable(x, y) or (x, y) == player_cell:
        return False
    for entity_id in world.entities_at(x, y, Combatant, EnemyTag):
        if world.get_component(entity_id, Combatant).is_alive:
            return False
    return True


def enemy_ai_system(world: World, dungeon: Dungeon) -> List[Tuple[int, int]]:
    """
    Advance every living enemy by one agent tick.

    Enemies within their detection radius (Manhattan) chase the player one
    tile along the axis of greater displacement, or hit the player once
    when adjacent (Chebyshev distance 1, diagonals included). The hit is a
    single one-sided strike, not a full exchange.

    Returns (enemy_id, damage) for each hit landed.
    """
    player_id = get_player_entity(world)
    if player_id is None:
        return []
    player_pos = world.get_component(player_id, GridPosition)
    player = world.get_component(player_id, Combatant)

    hits = []
    for enemy_id, pos, enemy in list(living_enemies(world)):
        if not player.is_alive:
            break

        ai = world.get_component(enemy_id, AIBehavior)
        if ai is None:
            continue

        if manhattan(pos.cell, player_pos.cell) > ai.detection_radius:
            ai.state = AIState.IDLE
            continue

        if chebyshev(pos.cell, player_pos.cell) <= 1:
            ai.state = AIState.ATTACK
            hits.append((enemy_id, apply_damage(player, enemy.damage)))
            continue

        ai.state = AIState.CHASE
        tx, ty = step(pos.cell, direction_between(pos.cell, player_pos.cell))
        if enemy_can_enter(world, dungeon, tx, ty, player_pos.cell):
            logger.debug('Enemy %d steps %s -> %s', enemy_id, pos.cell, (tx, ty))
            pos.x, pos.y = tx, ty

    return hits


class EnemyAgentLoop:
    """Runs enemy_ai_system once per interval of the caller's clock."""

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self.last_tick_at = 0.0

    def reset(self, now: float) -> None:
        self.last_tick_at = now

    def tick(self, world: World, dungeon: Dungeon,
             now: float) -> Optional[List[Tuple[int, int]]]:
        """Returns the hits of this agent tick, or None when it is not due yet."""
        if now - self.last_tick_at < self.interval:
            return None
        self.last_tick_at = now
        return enemy_ai_system(world, dungeon)


# =============================================================================
# COSMETIC MARKERS
# =============================================================================

def mark_hit(world: World, entity_id: int, now: float,
             flash: float = 0.3, health_bar: float = 3.0) -> None:
    """Flash an entity and show its health bar for a while."""
    hit_flash = world.get_component(entity_id, HitFlash)
    if hit_flash is not None:
        hit_flash.until = now + flash
    bar = world.get_component(entity_id, HealthBar)
    if bar is not None:
        bar.visible_until = now + health_bar


# =============================================================================
# RENDERING
# =============================================================================

TILE_COLORS = {
    TileKind.WALL: GRAY_MED,
    TileKind.FLOOR: GRAY_DARK,
    TileKind.DOOR: NEON_YELLOW,
    TileKind.FINISH: NEON_GREEN,
}


def render_dungeon(dungeon: Dungeon, renderer: 'GameRenderer',
                   offset_x: int = 0, offset_y: int = 0):
    for x, y in dungeon.cells():
        kind = dungeon.kind_at(x, y)
        renderer.put(offset_x + x, offset_y + y, TILE_CHARS[kind], TILE_COLORS[kind])


def render_system(world: World, renderer: 'GameRenderer', now: float,
                  offset_x: int = 0, offset_y: int = 0):
    """
    Draw every visible entity, lowest layer first. Entities flashing from a
    hit are drawn white; a visible health bar is drawn above its owner.
    """
    render_list = [
        (rend.layer, entity_id, pos, rend)
        for entity_id, pos, rend in world.query(GridPosition, Renderable)
        if rend.visible
    ]
    render_list.sort(key=lambda item: (item[0], item[1]))

    for _, entity_id, pos, rend in render_list:
        color = rend.color
        hit_flash = world.get_component(entity_id, HitFlash)
        if hit_flash is not None and hit_flash.until > now:
            color = hit_flash.flash_color
        renderer.put(offset_x + pos.x, offset_y + pos.y, rend.char, color)

    for _, entity_id, pos, _ in render_list:
        bar = world.get_component(entity_id, HealthBar)
        combatant = world.get_component(entity_id, Combatant)
        if bar is None or combatant is None or bar.visible_until <= now:
            continue
        ratio = combatant.health / combatant.max_health
        char = '=' if ratio > 0.66 else '-' if ratio > 0.33 else '.'
        color = NEON_GREEN if ratio > 0.66 else NEON_YELLOW if ratio > 0.33 else NEON_RED
        renderer.put(offset_x + pos.x, offset_y + pos.y - 1, char, color)


def render_cursor(renderer: 'GameRenderer', cell: Tuple[int, int], frame: int,
                  offset_x: int = 0, offset_y: int = 0):
    """Blinking target cursor."""
    color = WHITE if (frame // 15) % 2 == 0 else GRAY_LIGHT
    renderer.put(offset_x + cell[0], offset_y + cell[1], 'X', color)
