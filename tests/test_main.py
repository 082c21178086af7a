from types import SimpleNamespace

import pytest

from endless_dungeon.errors import StartupError
from endless_dungeon.main import MIN_HEIGHT, MIN_WIDTH, check_terminal, config_for_terminal


def test_small_terminal_is_refused() -> None:
    term = SimpleNamespace(width=MIN_WIDTH - 1, height=MIN_HEIGHT, number_of_colors=256)
    with pytest.raises(StartupError):
        check_terminal(term)


def test_colourless_terminal_is_refused() -> None:
    term = SimpleNamespace(width=80, height=24, number_of_colors=8)
    with pytest.raises(StartupError):
        check_terminal(term)


def test_capable_terminal_passes() -> None:
    check_terminal(SimpleNamespace(width=80, height=24, number_of_colors=256))


def test_dungeon_fits_the_map_area() -> None:
    config = config_for_terminal(80, 24)
    assert config.dungeon_width == 61
    assert config.dungeon_height == 20

    small = config_for_terminal(MIN_WIDTH, MIN_HEIGHT)
    assert small.dungeon_width >= 15
    assert small.dungeon_height >= 11
