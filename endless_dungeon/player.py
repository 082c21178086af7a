"""
Player Module
==============
Player entity creation and keyboard input handling.
"""

from typing import Dict, List, Optional, Tuple

from .ecs import World
from .components import (
    GridPosition, Renderable, Combatant, Purse,
    PlayerTag, HitFlash, HealthBar
)
from .colors import NEON_CYAN
from .config import GameConfig, DEFAULT_CONFIG
from .pathfinding import Direction


def create_player(world: World, x: int, y: int,
                  config: GameConfig = DEFAULT_CONFIG,
                  combatant: Optional[Combatant] = None,
                  purse: Optional[Purse] = None) -> int:
    """
    Create the player entity.

    combatant and purse carry over from the previous level; when omitted
    the player starts fresh from the config stats.
    """
    if combatant is None:
        combatant = Combatant(
            max_health=config.player_health,
            health=config.player_health,
            damage=config.player_damage,
            shield=config.player_shield,
        )
    return world.create_entity(
        GridPosition(x, y),
        Renderable(char='@', color=NEON_CYAN, layer=10),
        combatant,
        purse if purse is not None else Purse(),
        PlayerTag(),
        HitFlash(),
        HealthBar(),
    )


def get_player_entity(world: World) -> Optional[int]:
    """Get the player entity ID."""
    for entity_id, _ in world.query(PlayerTag):
        return entity_id
    return None


# =============================================================================
# KEYBOARD INPUT
# =============================================================================

KEY_DIRECTIONS: Dict[str, Direction] = {
    'KEY_UP': Direction.UP,
    'KEY_DOWN': Direction.DOWN,
    'KEY_LEFT': Direction.LEFT,
    'KEY_RIGHT': Direction.RIGHT,
    'w': Direction.UP,
    's': Direction.DOWN,
    'a': Direction.LEFT,
    'd': Direction.RIGHT,
}


class InputHandler:
    """
    Turns blessed keystrokes into game intents.

    Terminals send no key-up events, so a held direction is simulated with
    a frame timer refreshed by the terminal's key repeat. When the timer
    runs out the direction counts as released.

    The target cursor stands in for a pointer: T opens it at the player,
    direction keys move it, ENTER picks the cell, ESC closes it.
    """

    def __init__(self, hold_duration: int = 8):
        self.keys_held: Dict[Direction, int] = {}  # direction -> frames remaining
        self.hold_duration = hold_duration

        self.targeting = False
        self.cursor: Optional[Tuple[int, int]] = None

        # Intents raised this frame (consumed on read)
        self._pressed: List[Direction] = []
        self._attack_triggered = False
        self._target_requested = False
        self._target_chosen: Optional[Tuple[int, int]] = None
        self._restart_triggered = False
        self._quit_triggered = False

    def process_key(self, key) -> None:
        """Process a single key press from blessed's inkey()."""
        if key is None or not key:
            return

        key_str = key.lower() if not key.is_sequence else ''
        direction = KEY_DIRECTIONS.get(key.name) if key.is_sequence else KEY_DIRECTIONS.get(key_str)

        if self.targeting:
            self._process_targeting_key(key, key_str, direction)
            return

        if key_str == 'q' or key.name == 'KEY_ESCAPE':
            self._quit_triggered = True
        elif direction is not None:
            # Key repeat only refreshes the timer; a new press is an intent
            if direction not in self.keys_held:
                self._pressed.append(direction)
            self.keys_held[direction] = self.hold_duration
        elif key_str == ' ':
            self._attack_triggered = True
        elif key_str == 't':
            self._target_requested = True
        elif key_str == 'r':
            self._restart_triggered = True

    def _process_targeting_key(self, key, key_str: str,
                               direction: Optional[Direction]) -> None:
        if key.name == 'KEY_ESCAPE' or key_str == 't':
            self.end_targeting()
        elif key.name == 'KEY_ENTER' or key_str in ('\n', '\r'):
            self._target_chosen = self.cursor
            self.end_targeting()
        elif direction is not None and self.cursor is not None:
            self.cursor = (self.cursor[0] + direction.dx, self.cursor[1] + direction.dy)

    def begin_targeting(self, origin: Tuple[int, int]) -> None:
        self.targeting = True
        self.cursor = origin
        self.keys_held.clear()

    def end_targeting(self) -> None:
        self.targeting = False
        self.cursor = None

    def update(self) -> List[Direction]:
        """Tick hold timers (once per frame). Returns directions just released."""
        released = []
        for direction in list(self.keys_held):
            self.keys_held[direction] -= 1
            if self.keys_held[direction] <= 0:
                del self.keys_held[direction]
                released.append(direction)
        return released

    def consume_presses(self) -> List[Direction]:
        pressed = self._pressed
        self._pressed = []
        return pressed

    def consume_attack(self) -> bool:
        triggered = self._attack_triggered
        self._attack_triggered = False
        return triggered

    def consume_target_request(self) -> bool:
        triggered = self._target_requested
        self._target_requested = False
        return triggered

    def consume_target(self) -> Optional[Tuple[int, int]]:
        """The cell picked with the target cursor, if any."""
        chosen = self._target_chosen
        self._target_chosen = None
        return chosen

    def consume_restart(self) -> bool:
        triggered = self._restart_triggered
        self._restart_triggered = False
        return triggered

    def consume_quit(self) -> bool:
        triggered = self._quit_triggered
        self._quit_triggered = False
        return triggered
