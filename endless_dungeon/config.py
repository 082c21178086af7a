"""
Game Configuration
===================
Tunable gameplay constants, bundled so tests can build tiny dungeons
and fast timers without touching module globals.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class GameConfig:
    """Gameplay tunables. Times are in seconds, distances in tiles."""

    # Dungeon size (odd-biased by the generator)
    dungeon_width: int = 33
    dungeon_height: int = 21

    # Movement cadence
    step_interval: float = 0.15     # key-hold steps
    path_interval: float = 0.05     # path-follow steps

    # Enemy agent loop
    enemy_interval: float = 1.0
    detection_radius: int = 8

    # Finish tile must be further than this from the player
    finish_min_distance: int = 5

    # Level population (inclusive ranges)
    enemy_count: Tuple[int, int] = (3, 5)
    potion_count: Tuple[int, int] = (2, 3)
    gold_count: Tuple[int, int] = (3, 5)
    potion_heal: int = 30

    # Player base stats
    player_health: int = 100
    player_damage: int = 20
    player_shield: int = 5

    # Cosmetic timers
    attack_flash: float = 0.3
    health_bar_visible: float = 3.0
    banner_duration: float = 2.0


DEFAULT_CONFIG = GameConfig()
