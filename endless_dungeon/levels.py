"""
Level / Run Controller
=======================
Owns the run state and is the only entry point for input and display.

Phases:
    generating -> active -> (finish reached) -> generating -> active ...
                         -> run_over (player died) -> generating (restart)

Everything is driven from one thread: input handlers and tick() run on the
same loop, and the last call wins. Every method takes the current time in
seconds; by default the performance counter is read.
"""

from dataclasses import dataclass
from typing import List, Optional
import logging
import random
import time

from .ecs import World
from .components import Combatant, GridPosition, Purse
from .combat import CombatResolver, Defeat, Ongoing, Victory
from .config import GameConfig, DEFAULT_CONFIG
from .dungeon import Dungeon, MazeGenerator, generate_dungeon
from .enemies import enemy_count, living_enemies
from .movement import (
    Attacked, MovementCoordinator, ReachedFinish, StepResult,
    attack_adjacent, step_player
)
from .pathfinding import Direction, find_path
from .spawner import populate_level, place_finish_tile
from .systems import EnemyAgentLoop, mark_hit


logger = logging.getLogger(__name__)

PHASE_GENERATING = 'generating'
PHASE_ACTIVE = 'active'
PHASE_RUN_OVER = 'run_over'


@dataclass
class RunState:
    """
    Everything that belongs to the current level. Replaced wholesale on
    level change and restart, never patched across a regeneration.
    """
    world: World
    dungeon: Dungeon
    player_id: int
    level: int = 1
    phase: str = PHASE_ACTIVE
    game_over: bool = False
    enemies_killed: int = 0

    # Cosmetic expiries, never consulted by game rules
    attack_flash_until: float = 0.0
    banner: Optional[str] = None
    banner_until: float = 0.0

    @property
    def player(self) -> Combatant:
        return self.world.get_component(self.player_id, Combatant)

    @property
    def player_position(self) -> GridPosition:
        return self.world.get_component(self.player_id, GridPosition)

    @property
    def gold(self) -> int:
        return self.world.get_component(self.player_id, Purse).gold_collected


@dataclass(frozen=True)
class Snapshot:
    """Read-only values for the HUD."""
    gold: int
    health: int
    max_health: int
    level: int
    game_over: bool
    enemies_left: int
    enemies_killed: int
    attacking: bool
    banner: Optional[str]


def _clock(now: Optional[float]) -> float:
    return time.perf_counter() if now is None else now


class GameController:
    """
    Level and run controller.

    Input boundary: on_directional_intent, on_intent_release, on_attack,
    on_pointer_target, on_restart. Display boundary: snapshot().
    """

    def __init__(self, config: GameConfig = DEFAULT_CONFIG,
                 generator: MazeGenerator = generate_dungeon,
                 rng: Optional[random.Random] = None):
        self.config = config
        self.generator = generator
        self.rng = rng or random.Random()
        self.resolver = CombatResolver(self.rng)
        self.movement = MovementCoordinator(config.step_interval, config.path_interval)
        self.enemy_loop = EnemyAgentLoop(config.enemy_interval)
        self.state: Optional[RunState] = None
        self._generating = False

    @property
    def phase(self) -> str:
        if self._generating or self.state is None:
            return PHASE_GENERATING
        return self.state.phase

    # -------------------------------------------------------------------------
    # Run lifecycle
    # -------------------------------------------------------------------------

    def start_game(self, now: Optional[float] = None) -> RunState:
        """Fresh run: level 1, full health, no gold."""
        logger.info('Starting new run')
        return self._generate(1, _clock(now))

    def on_restart(self, now: Optional[float] = None) -> RunState:
        logger.info('Restarting run')
        return self.start_game(now)

    def next_level(self, now: Optional[float] = None) -> RunState:
        """
        Regenerate one level deeper, keeping the player's health and gold.
        A direction still held keeps stepping on the new level.
        """
        previous = self.state
        combatant = previous.player
        purse = previous.world.get_component(previous.player_id, Purse)
        logger.info('Level %d complete', previous.level)
        return self._generate(previous.level + 1, _clock(now), combatant, purse,
                              previous.enemies_killed, keep_hold=True)

    def _generate(self, level: int, now: float,
                  combatant: Optional[Combatant] = None,
                  purse: Optional[Purse] = None,
                  enemies_killed: int = 0,
                  keep_hold: bool = False) -> RunState:
        self._generating = True
        try:
            # A held key keeps walking on the next level; a route does not
            if keep_hold:
                self.movement.drop_route()
            else:
                self.movement.stop()
            world = World()
            dungeon = self.generator(self.config.dungeon_width,
                                     self.config.dungeon_height, self.rng)
            player_id, spawned = populate_level(world, dungeon, self.rng, self.config,
                                                combatant, purse)
            state = RunState(world, dungeon, player_id, level=level,
                             enemies_killed=enemies_killed)

            if spawned['enemies'] == 0:
                place_finish_tile(world, dungeon, state.player_position.cell,
                                  self.rng, self.config.finish_min_distance)

            state.banner = f'LEVEL {level}'
            state.banner_until = now + self.config.banner_duration
            self.state = state
            self.enemy_loop.reset(now)
        finally:
            self._generating = False

        logger.info('Level %d generated: %dx%d, %d enemies, %d potions, %d gold piles',
                    level, dungeon.width, dungeon.height,
                    spawned['enemies'], spawned['potions'], spawned['gold'])
        return state

    def _fail_run(self) -> None:
        if self.state.game_over:
            return
        self.state.game_over = True
        self.state.phase = PHASE_RUN_OVER
        self.movement.stop()
        logger.info('Run over on level %d with %d gold', self.state.level, self.state.gold)

    def _active(self) -> bool:
        return self.phase == PHASE_ACTIVE

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _step(self, direction: Direction, now: float) -> StepResult:
        state = self.state
        result = step_player(state.world, state.dungeon, state.player_id, direction,
                             self.resolver, self.rng, self.config.finish_min_distance)
        if isinstance(result, Attacked):
            self._after_attack(result, now)
        elif isinstance(result, ReachedFinish):
            self.next_level(now)
        return result

    def _after_attack(self, attack: Attacked, now: float) -> None:
        state = self.state
        state.attack_flash_until = now + self.config.attack_flash

        if isinstance(attack.outcome, Ongoing):
            mark_hit(state.world, attack.enemy_id, now,
                     self.config.attack_flash, self.config.health_bar_visible)
            mark_hit(state.world, state.player_id, now,
                     self.config.attack_flash, self.config.health_bar_visible)
        elif isinstance(attack.outcome, Victory):
            state.enemies_killed += 1
            if attack.finish is not None:
                state.banner = 'THE WAY DOWN IS OPEN'
                state.banner_until = now + self.config.banner_duration
        elif isinstance(attack.outcome, Defeat):
            self._fail_run()

    # -------------------------------------------------------------------------
    # Input boundary
    # -------------------------------------------------------------------------

    def on_directional_intent(self, direction: Direction,
                              now: Optional[float] = None) -> Optional[StepResult]:
        if not self._active():
            return None
        now = _clock(now)
        return self.movement.press(direction, now, lambda d: self._step(d, now))

    def on_intent_release(self, direction: Direction) -> None:
        self.movement.release(direction)

    def on_attack(self, now: Optional[float] = None) -> List[Attacked]:
        """Strike every enemy next to the player."""
        if not self._active():
            return []
        now = _clock(now)
        state = self.state
        state.attack_flash_until = now + self.config.attack_flash

        results = attack_adjacent(state.world, state.dungeon, state.player_id,
                                  self.resolver, self.rng, self.config.finish_min_distance)
        for result in results:
            self._after_attack(result, now)
        return results

    def on_pointer_target(self, x: int, y: int, now: Optional[float] = None) -> bool:
        """
        Walk to a cell along the shortest route. Targeting an enemy walks up
        to it and attacks. Returns False when the cell cannot be reached.
        """
        if not self._active():
            return False
        state = self.state
        occupied = [pos.cell for _, pos, _ in living_enemies(state.world)]
        path = find_path(state.player_position.cell, (x, y), state.dungeon,
                         occupied, allow_occupant_at_goal=True)
        return self.movement.follow(path, _clock(now))

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> None:
        """Advance held/path movement and the enemy loop."""
        if not self._active():
            return
        now = _clock(now)

        self.movement.tick(now, self.state.player_position.cell,
                           lambda d: self._step(d, now))
        if not self._active():
            return

        state = self.state
        hits = self.enemy_loop.tick(state.world, state.dungeon, now)
        if hits:
            mark_hit(state.world, state.player_id, now,
                     self.config.attack_flash, self.config.health_bar_visible)
            if not state.player.is_alive:
                self._fail_run()

    # -------------------------------------------------------------------------
    # Display boundary
    # -------------------------------------------------------------------------

    def snapshot(self, now: Optional[float] = None) -> Optional[Snapshot]:
        state = self.state
        if state is None:
            return None
        now = _clock(now)
        player = state.player
        return Snapshot(
            gold=state.gold,
            health=player.health,
            max_health=player.max_health,
            level=state.level,
            game_over=state.game_over,
            enemies_left=enemy_count(state.world),
            enemies_killed=state.enemies_killed,
            attacking=state.attack_flash_until > now,
            banner=state.banner if state.banner_until > now else None,
        )
