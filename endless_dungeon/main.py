#!/usr/bin/env python3
"""
ENDLESS DUNGEON - Terminal Dungeon Crawler
===========================================
Explore a generated dungeon, slay everything in it, find the way down.

Controls:
    ARROWS / WASD  - Move (hold to keep walking, walk into enemies to fight)
    SPACE          - Sword attack on all adjacent enemies
    T              - Target cursor: move it, ENTER to travel there, ESC to cancel
    R              - Restart (after death)
    Q / ESC        - Quit
"""

from dataclasses import replace
from typing import Optional
import logging
import os
import sys
import time

try:
    from blessed import Terminal
except ImportError:
    print("ERROR: 'blessed' library required. Install with: pip install blessed")
    sys.exit(1)

from .colors import (
    GRAY_DARK, GRAY_DARKER, GRAY_MED, GOLD,
    NEON_CYAN, NEON_GREEN, NEON_MAGENTA, NEON_RED, NEON_YELLOW
)
from .config import DEFAULT_CONFIG, GameConfig
from .dungeon import MIN_HEIGHT as MIN_DUNGEON_HEIGHT, MIN_WIDTH as MIN_DUNGEON_WIDTH
from .engine import GameRenderer
from .errors import StartupError
from .levels import GameController, Snapshot, PHASE_ACTIVE, PHASE_RUN_OVER
from .player import InputHandler
from .systems import render_cursor, render_dungeon, render_system


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

TARGET_FPS = 60
FRAME_TIME = 1.0 / TARGET_FPS
MIN_WIDTH = MIN_DUNGEON_WIDTH + 2
MIN_HEIGHT = MIN_DUNGEON_HEIGHT + GameRenderer.HUD_ROWS + 1
MIN_COLORS = 256

# Largest dungeon drawn, whatever the terminal size
MAX_DUNGEON_WIDTH = 61
MAX_DUNGEON_HEIGHT = 31

LOG_FILE_ENV = 'ENDLESS_DUNGEON_LOG'
LOG_LEVEL_ENV = 'ENDLESS_DUNGEON_LOG_LEVEL'

PHASE_TITLE = 'title'
PHASE_PLAYING = 'playing'
PHASE_GAME_OVER = 'game_over'

TITLE_ART = [
    r" ___ _  _ ___  _    ___ ___ ___ ",
    r"| __| \| |   \| |  | __/ __/ __|",
    r"| _|| .` | |) | |__| _|\__ \__ \ ",
    r"|___|_|\_|___/|____|___|___/___/",
    r" ___  _   _ _  _  ___ ___ ___  _  _ ",
    r"|   \| | | | \| |/ __| __/ _ \| \| |",
    r"| |) | |_| | .` | (_ | _| (_) | .` |",
    r"|___/ \___/|_|\_|\___|___\___/|_|\_|",
]


# =============================================================================
# STARTUP
# =============================================================================

def configure_logging() -> None:
    """Log to a file only; the fullscreen terminal has no room for it."""
    path = os.environ.get(LOG_FILE_ENV)
    if not path:
        return
    level = os.environ.get(LOG_LEVEL_ENV, 'INFO').upper()
    logging.basicConfig(
        filename=path,
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def check_terminal(term: Terminal) -> None:
    """Raise StartupError when the terminal cannot host the game."""
    if term.width < MIN_WIDTH or term.height < MIN_HEIGHT:
        raise StartupError(
            f'Terminal too small: {term.width}x{term.height}. '
            f'Minimum: {MIN_WIDTH}x{MIN_HEIGHT}'
        )
    if term.number_of_colors < MIN_COLORS:
        raise StartupError(
            f'Terminal supports {term.number_of_colors} colours; {MIN_COLORS} required'
        )


def config_for_terminal(width: int, height: int,
                        base: GameConfig = DEFAULT_CONFIG) -> GameConfig:
    """Fit the dungeon to the map area. The generator rounds to odd sizes."""
    return replace(
        base,
        dungeon_width=min(MAX_DUNGEON_WIDTH, width - 2),
        dungeon_height=min(MAX_DUNGEON_HEIGHT, height - GameRenderer.HUD_ROWS - 1),
    )


# =============================================================================
# UI RENDERING
# =============================================================================

def render_ui(renderer: GameRenderer, snapshot: Snapshot, targeting: bool = False):
    """Render the HUD in the bottom rows."""
    ui_y = renderer.game_height
    width = renderer.width

    renderer.buffer.put_string(0, ui_y, '=' * width, GRAY_DARK)
    renderer.buffer.put_string(2, ui_y, ' ENDLESS DUNGEON ', NEON_MAGENTA)

    status = f' LEVEL:{snapshot.level}  ENEMIES:{snapshot.enemies_left} '
    renderer.buffer.put_string(width - len(status) - 1, ui_y, status, NEON_YELLOW)

    row1_y = ui_y + 1
    bar_width = 20
    filled = max(0, int((snapshot.health / snapshot.max_health) * bar_width))
    bar = '|' * filled + '.' * (bar_width - filled)
    color = NEON_CYAN if snapshot.health > snapshot.max_health * 0.3 else NEON_RED
    renderer.buffer.put_string(2, row1_y, 'HEALTH:', GRAY_MED)
    renderer.buffer.put_string(10, row1_y, f'[{bar}]', color)
    renderer.buffer.put_string(33, row1_y, f'{snapshot.health}/{snapshot.max_health}', color)

    gold_text = f'GOLD: {snapshot.gold}'
    renderer.buffer.put_string(width - len(gold_text) - 2, row1_y, gold_text, GOLD)

    if targeting:
        controls = 'ARROWS:Move cursor  ENTER:Travel  ESC:Cancel'
    else:
        controls = 'ARROWS/WASD:Move  SPACE:Attack  T:Target  Q:Quit'
    renderer.buffer.put_string(2, ui_y + 2, controls, GRAY_DARKER)

    if snapshot.attacking:
        renderer.buffer.put_string(width - 12, ui_y + 2, '* SLASH *', NEON_RED)


def render_banner(renderer: GameRenderer, text: str):
    bar = '=' * (len(text) + 4)
    renderer.put_centered(1, bar, GRAY_DARK)
    renderer.put_centered(2, text, NEON_YELLOW)
    renderer.put_centered(3, bar, GRAY_DARK)


def render_title_screen(renderer: GameRenderer, frame: int):
    width = renderer.width
    height = renderer.game_height

    art_y = max(1, height // 2 - len(TITLE_ART) // 2 - 3)
    for i, line in enumerate(TITLE_ART):
        color = NEON_MAGENTA if i < 4 else NEON_CYAN
        renderer.put_centered(art_y + i, line, color)

    prompt_y = art_y + len(TITLE_ART) + 2
    if (frame // 30) % 2 == 0:
        renderer.put_centered(prompt_y, '[ PRESS ANY KEY TO DESCEND ]', NEON_GREEN)

    controls = [
        'ARROWS/WASD - Move     SPACE - Attack',
        'T - Target & travel    Q/ESC - Quit',
    ]
    for i, line in enumerate(controls):
        renderer.put_centered(prompt_y + 2 + i, line, GRAY_DARK)

    renderer.draw_box(0, 0, width, height, GRAY_DARKER, '.', with_shake=False)


def render_game_over_screen(renderer: GameRenderer, snapshot: Snapshot, frame: int):
    height = renderer.game_height
    art = [
        r"__   _____  _   _   ___ ___ ___ ___  ",
        r"\ \ / / _ \| | | | |   \_ _| __|   \ ",
        r" \ V / (_) | |_| | | |) | || _|| |) |",
        r"  |_| \___/ \___/  |___/___|___|___/ ",
    ]
    art_y = max(1, height // 2 - 5)
    for i, line in enumerate(art):
        renderer.put_centered(art_y + i, line, NEON_RED)

    stats_y = art_y + len(art) + 2
    renderer.put_centered(stats_y, f'LEVEL REACHED: {snapshot.level}', NEON_YELLOW)
    renderer.put_centered(stats_y + 1, f'GOLD COLLECTED: {snapshot.gold}', GOLD)
    renderer.put_centered(stats_y + 2, f'ENEMIES SLAIN: {snapshot.enemies_killed}', NEON_YELLOW)

    if (frame // 30) % 2 == 0:
        renderer.put_centered(stats_y + 5, '[ R - RESTART ]    [ Q - QUIT ]', NEON_CYAN)


# =============================================================================
# APPLICATION
# =============================================================================

class GameApp:
    """Terminal front end around a GameController."""

    def __init__(self, term: Terminal, config: Optional[GameConfig] = None):
        self.term = term
        self.renderer = GameRenderer(term)
        self.input_handler = InputHandler()
        self.config = config or config_for_terminal(term.width, term.height)
        self.controller = GameController(self.config)

        self.running = True
        self.phase = PHASE_TITLE
        self.phase_frame = 0
        self._last_health: Optional[int] = None

    def start_game(self):
        self.controller.start_game()
        self.input_handler = InputHandler()
        self._last_health = None
        self.phase = PHASE_PLAYING
        self.phase_frame = 0

    def restart(self):
        self.controller.on_restart()
        self.input_handler = InputHandler()
        self._last_health = None
        self.phase = PHASE_PLAYING
        self.phase_frame = 0

    def map_offset(self):
        dungeon = self.controller.state.dungeon
        return (
            max(0, (self.renderer.width - dungeon.width) // 2),
            max(0, (self.renderer.game_height - dungeon.height) // 2),
        )

    def update(self):
        """Run one fixed-timestep tick."""
        self.phase_frame += 1
        if self.phase != PHASE_PLAYING:
            return

        now = time.perf_counter()
        for direction in self.input_handler.update():
            self.controller.on_intent_release(direction)
        self.controller.tick(now)

        snapshot = self.controller.snapshot(now)
        if self._last_health is not None and snapshot.health < self._last_health:
            self.renderer.trigger_shake()
        self._last_health = snapshot.health

        if self.controller.phase == PHASE_RUN_OVER:
            self.phase = PHASE_GAME_OVER
            self.phase_frame = 0

    def render(self):
        if (self.term.width, self.term.height) != (self.renderer.width, self.renderer.height):
            self.renderer.resize(self.term.width, self.term.height)
            print(self.term.home + self.term.clear, end='', flush=True)

        self.renderer.begin_frame()

        if self.phase == PHASE_TITLE:
            render_title_screen(self.renderer, self.phase_frame)
        else:
            now = time.perf_counter()
            snapshot = self.controller.snapshot(now)
            if self.phase == PHASE_GAME_OVER:
                render_game_over_screen(self.renderer, snapshot, self.phase_frame)
            else:
                offset_x, offset_y = self.map_offset()
                render_dungeon(self.controller.state.dungeon, self.renderer, offset_x, offset_y)
                render_system(self.controller.state.world, self.renderer, now, offset_x, offset_y)
                if self.input_handler.targeting and self.input_handler.cursor:
                    render_cursor(self.renderer, self.input_handler.cursor,
                                  self.phase_frame, offset_x, offset_y)
                if snapshot.banner:
                    render_banner(self.renderer, snapshot.banner)
            render_ui(self.renderer, snapshot, self.input_handler.targeting)

        output = self.renderer.end_frame()
        if output:
            print(output, end='', flush=True)

    def handle_input(self):
        """Drain all pending input from the terminal."""
        key = self.term.inkey(timeout=0)
        while key:
            if self.phase == PHASE_TITLE:
                self.start_game()
                return
            elif self.phase == PHASE_GAME_OVER:
                key_str = key.lower() if not key.is_sequence else ''
                if key_str == 'r':
                    self.restart()
                    return
                elif key_str == 'q' or key.name == 'KEY_ESCAPE':
                    self.running = False
                    return
            else:
                self.input_handler.process_key(key)
            key = self.term.inkey(timeout=0)

        if self.phase == PHASE_PLAYING:
            self._dispatch_intents()

    def _dispatch_intents(self):
        handler = self.input_handler
        controller = self.controller
        now = time.perf_counter()

        if handler.consume_quit():
            self.running = False
            return

        if handler.consume_target_request() and controller.phase == PHASE_ACTIVE:
            for direction in list(handler.keys_held):
                controller.on_intent_release(direction)
            handler.begin_targeting(controller.state.player_position.cell)

        target = handler.consume_target()
        if target is not None:
            controller.on_pointer_target(target[0], target[1], now)

        for direction in handler.consume_presses():
            controller.on_directional_intent(direction, now)

        if handler.consume_attack():
            controller.on_attack(now)

        if handler.consume_restart() and controller.phase == PHASE_RUN_OVER:
            self.restart()


# =============================================================================
# MAIN LOOP
# =============================================================================

def main():
    """Entry point. Sets up the terminal and runs the 60 FPS game loop."""
    configure_logging()
    term = Terminal()

    try:
        check_terminal(term)
    except StartupError as exc:
        print(f'ERROR: {exc}')
        sys.exit(1)

    with term.fullscreen(), term.cbreak(), term.hidden_cursor():
        app = GameApp(term)

        last_time = time.perf_counter()
        accumulator = 0.0

        print(term.home + term.clear, end='', flush=True)

        while app.running:
            now = time.perf_counter()
            delta = min(now - last_time, FRAME_TIME * 5)
            last_time = now
            accumulator += delta

            app.handle_input()

            ticks = 0
            while accumulator >= FRAME_TIME and ticks < 4:
                app.update()
                accumulator -= FRAME_TIME
                ticks += 1

            app.render()

            elapsed = time.perf_counter() - now
            sleep_time = FRAME_TIME - elapsed
            if sleep_time > 0.001:
                time.sleep(sleep_time * 0.9)

        print(term.normal, end='', flush=True)


if __name__ == '__main__':
    main()
