"""
Rendering Engine
=================
Double-buffered terminal renderer with screen shake.
"""

from dataclasses import dataclass, field
from typing import List, Tuple
import random

try:
    from blessed import Terminal
except ImportError:
    raise ImportError("'blessed' library required. Install with: pip install blessed")

from .colors import GRAY_DARK


@dataclass
class Cell:
    """One character cell of the map or HUD."""
    char: str = ' '
    fg_color: int = 7
    bg_color: int = -1  # -1 = terminal default

    def matches(self, other: 'Cell') -> bool:
        """True when both cells would draw the same thing."""
        return (
            self.char == other.char and
            self.fg_color == other.fg_color and
            self.bg_color == other.bg_color
        )

    def style(self) -> Tuple[int, int]:
        return self.fg_color, self.bg_color

    def reset(self):
        """Back to a blank default-coloured cell."""
        self.char = ' '
        self.fg_color = 7
        self.bg_color = -1


class DoubleBuffer:
    """
    Back/front cell grids sized to the terminal.

    Frames are drawn into the back grid. present() compares it against the
    front grid and emits output only for cells that changed. Runs of changed
    cells on one row share a single cursor move, and colour sequences are
    only emitted when the style changes along the run.
    """

    def __init__(self, term: Terminal):
        self.term = term
        self.width = term.width
        self.height = term.height
        self.front: List[List[Cell]] = []
        self.back: List[List[Cell]] = []
        self._init_buffers()
        self._normal = term.normal  # Cached reset sequence

    def _init_buffers(self):
        """Blank both grids at the current size."""
        self.front = [[Cell() for _ in range(self.width)] for _ in range(self.height)]
        self.back = [[Cell() for _ in range(self.width)] for _ in range(self.height)]

    def resize(self, width: int, height: int):
        """Match a new terminal size. The next present() redraws everything."""
        self.width = width
        self.height = height
        self._init_buffers()

    def clear_back(self):
        """Blank the back grid in place, reusing the Cell objects."""
        for row in self.back:
            for cell in row:
                cell.reset()

    def put(self, x: int, y: int, char: str, fg_color: int = 7, bg_color: int = -1):
        """Write one character into the back grid. Off-screen writes are dropped."""
        if 0 <= x < self.width and 0 <= y < self.height:
            cell = self.back[y][x]
            cell.char = char
            cell.fg_color = fg_color
            cell.bg_color = bg_color

    def put_string(self, x: int, y: int, text: str, fg_color: int = 7, bg_color: int = -1):
        """Write a string left to right, clipped at the screen edge."""
        for i, char in enumerate(text):
            self.put(x + i, y, char, fg_color, bg_color)

    def _style_sequence(self, cell: Cell) -> str:
        parts = [self._normal]
        if cell.bg_color >= 0:
            parts.append(self.term.on_color(cell.bg_color))
        parts.append(self.term.color(cell.fg_color))
        return ''.join(parts)

    def present(self) -> str:
        """
        Swap grids and return the escape output for changed cells only.

        Screen shake is applied when writing into the back grid, so this is
        a 1:1 copy of positions.
        """
        output_parts = []

        for y in range(self.height):
            back_row = self.back[y]
            front_row = self.front[y]
            cursor_x = None  # column the terminal cursor sits at, if known
            style = None

            for x in range(self.width):
                back_cell = back_row[x]
                if back_cell.matches(front_row[x]):
                    continue
                if cursor_x != x:
                    output_parts.append(self.term.move_xy(x, y))
                    style = None
                if back_cell.style() != style:
                    output_parts.append(self._style_sequence(back_cell))
                    style = back_cell.style()
                output_parts.append(back_cell.char or ' ')
                cursor_x = x + 1

        # The old front becomes the next back grid
        self.front, self.back = self.back, self.front
        return ''.join(output_parts)


@dataclass
class GameRenderer:
    """
    Game renderer with screen shake.

    The bottom HUD_ROWS rows are the HUD. Map elements use with_shake=True so
    they jitter during a shake; the HUD bypasses it.
    """
    term: Terminal
    buffer: DoubleBuffer = field(init=False)

    shake_x: int = 0
    shake_y: int = 0
    shake_frames: int = 0
    shake_intensity: int = 1

    HUD_ROWS = 3

    def __post_init__(self):
        self.buffer = DoubleBuffer(self.term)

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height

    @property
    def game_height(self) -> int:
        """Height of the map area (excluding HUD rows)."""
        return self.buffer.height - self.HUD_ROWS

    def trigger_shake(self, intensity: int = 1, frames: int = 6):
        self.shake_intensity = intensity
        self.shake_frames = max(self.shake_frames, frames)

    def update_effects(self):
        if self.shake_frames > 0:
            self.shake_x = random.randint(-self.shake_intensity, self.shake_intensity)
            self.shake_y = random.randint(-self.shake_intensity, self.shake_intensity)
            self.shake_frames -= 1
        else:
            self.shake_x = 0
            self.shake_y = 0

    def begin_frame(self):
        self.buffer.clear_back()

    def end_frame(self) -> str:
        """Advance effect timers and present the frame."""
        self.update_effects()
        return self.buffer.present()

    def put(self, x: int, y: int, char: str, fg_color: int = 7,
            with_shake: bool = True):
        if with_shake and y < self.game_height:
            x += self.shake_x
            y += self.shake_y
            if y >= self.game_height:
                return
        self.buffer.put(x, y, char, fg_color)

    def put_string(self, x: int, y: int, text: str, fg_color: int = 7,
                   with_shake: bool = True):
        for i, char in enumerate(text):
            self.put(x + i, y, char, fg_color, with_shake)

    def put_centered(self, y: int, text: str, fg_color: int = 7):
        """HUD/overlay text centred on a row, never shaken."""
        x = max(0, self.width // 2 - len(text) // 2)
        self.buffer.put_string(x, y, text, fg_color)

    def resize(self, width: int, height: int):
        self.buffer.resize(width, height)

    def draw_box(self, x: int, y: int, w: int, h: int, color: int = GRAY_DARK,
                 char: str = '#', with_shake: bool = True):
        for i in range(w):
            self.put(x + i, y, char, color, with_shake)
            self.put(x + i, y + h - 1, char, color, with_shake)
        for j in range(1, h - 1):
            self.put(x, y + j, char, color, with_shake)
            self.put(x + w - 1, y + j, char, color, with_shake)
