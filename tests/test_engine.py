from endless_dungeon.engine import DoubleBuffer


class FakeTerminal:
    """Just enough of blessed.Terminal for the render buffer."""

    width = 6
    height = 2
    normal = '<N>'

    def move_xy(self, x, y):
        return f'<M{x},{y}>'

    def color(self, fg):
        return f'<F{fg}>'

    def on_color(self, bg):
        return f'<B{bg}>'


def test_present_emits_only_changed_cells() -> None:
    buffer = DoubleBuffer(FakeTerminal())
    buffer.put_string(1, 0, 'ab', 9)

    assert buffer.present() == '<M1,0><N><F9>ab'

    buffer.clear_back()
    buffer.put_string(1, 0, 'ab', 9)
    assert buffer.present() == ''


def test_style_is_resent_only_when_it_changes() -> None:
    buffer = DoubleBuffer(FakeTerminal())
    buffer.put(0, 1, 'x', 3)
    buffer.put(1, 1, 'y', 4, bg_color=2)
    buffer.put(4, 1, 'z', 4, bg_color=2)

    assert buffer.present() == '<M0,1><N><F3>x<N><B2><F4>y<M4,1><N><B2><F4>z'


def test_writes_off_screen_are_dropped() -> None:
    buffer = DoubleBuffer(FakeTerminal())
    buffer.put(-1, 0, 'x')
    buffer.put_string(4, 1, 'long')

    assert buffer.back[1][4].char == 'l'
    assert buffer.back[1][5].char == 'o'
    assert buffer.present() == '<M4,1><N><F7>lo'


def test_resize_forces_a_full_redraw() -> None:
    buffer = DoubleBuffer(FakeTerminal())
    buffer.put(0, 0, 'x')
    buffer.present()

    buffer.resize(3, 1)
    buffer.put(0, 0, 'x')
    assert buffer.present() == '<M0,0><N><F7>x'
