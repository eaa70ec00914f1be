# menu.py
import os
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, TextIO, Union

from colorama import Back, Fore, Style

import console

try:
    import msvcrt
except ImportError:
    msvcrt = None
try:
    import termios
    import tty
except ImportError:
    termios = None
    tty = None

QUIT = "Quit"

MenuResult = Union[str, List[str]]


class Key:
    UP = "UP"
    DOWN = "DOWN"
    SPACE = "SPACE"
    ENTER = "ENTER"
    Q = "Q"
    OTHER = "OTHER"


@dataclass
class MenuSpec:
    title: str
    options: List[str]
    multi_select: bool = False
    clear_screen: bool = True


class MenuState:
    def __init__(self, count: int, multi_select: bool = False):
        self.count = count
        self.multi_select = multi_select
        self.selected_index = 0
        self.checked: Set[int] = set()

    def move_up(self) -> None:
        self.selected_index = (self.selected_index - 1) % self.count

    def move_down(self) -> None:
        self.selected_index = (self.selected_index + 1) % self.count

    def toggle(self) -> None:
        if self.selected_index in self.checked:
            self.checked.remove(self.selected_index)
        else:
            self.checked.add(self.selected_index)

    def checked_options(self, options: List[str]) -> List[str]:
        return [opt for i, opt in enumerate(options) if i in self.checked]


def read_console_key() -> str:
    # Windows
    if msvcrt:
        ch = msvcrt.getch()
        if ch in (b'\x00', b'\xe0'):
            ch2 = msvcrt.getch()
            codes = {b'H': Key.UP, b'P': Key.DOWN}
            return codes.get(ch2, Key.OTHER)
        if ch in (b'\r', b'\n'):
            return Key.ENTER
        if ch == b' ':
            return Key.SPACE
        if ch in (b'q', b'Q'):
            return Key.Q
        if ch == b'\x03':
            raise KeyboardInterrupt
        return Key.OTHER

    # POSIX
    if not sys.stdin.isatty() or not termios or not tty:
        # Nothing to read keys from: accept the current row
        return Key.ENTER

    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        seq = os.read(fd, 3)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)

    if seq == b'\x1b[A':
        return Key.UP
    if seq == b'\x1b[B':
        return Key.DOWN
    if seq in (b'\r', b'\n'):
        return Key.ENTER
    if seq == b' ':
        return Key.SPACE
    if seq in (b'q', b'Q'):
        return Key.Q
    if seq == b'\x03':
        raise KeyboardInterrupt
    return Key.OTHER


def _render(spec: MenuSpec, state: MenuState, out: TextIO) -> int:
    lines = [f"{Fore.CYAN}{spec.title}{Style.RESET_ALL}", ""]
    for i, option in enumerate(spec.options):
        focused = i == state.selected_index
        box = ""
        if spec.multi_select:
            box = "[x] " if i in state.checked else "[ ] "
        if focused:
            lines.append(f"{Fore.BLACK}{Back.WHITE}> {box}{option}{Style.RESET_ALL}")
        else:
            lines.append(f"  {box}{option}")
    lines.append("")
    if spec.multi_select:
        hint = "Up/Down: move   Space: toggle   Enter: confirm"
    else:
        hint = "Up/Down: move   Enter: select   Q: quit"
    lines.append(f"{Style.DIM}{hint}{Style.RESET_ALL}")
    out.write("\n".join(lines) + "\n")
    out.flush()
    return len(lines)


def show_menu(spec: MenuSpec, read_key: Optional[Callable[[], str]] = None,
              stream: Optional[TextIO] = None) -> MenuResult:
    """
    Draw `spec` and block on key presses until the user confirms.

    Single-select returns the highlighted option (Enter or Space) or "Quit" (Q).
    Multi-select returns the checked options in list order, possibly empty.
    Every frame is drawn from scratch so no glyphs from the previous frame survive.
    """
    read = read_key or read_console_key
    out = stream or sys.stdout
    state = MenuState(len(spec.options), spec.multi_select)
    drawn = 0

    console.set_cursor_visible(False, out)
    try:
        while True:
            if spec.clear_screen:
                console.clear(out)
            elif drawn:
                console.erase_previous(drawn, out)
            drawn = _render(spec, state, out)

            key = read()
            if key == Key.UP:
                state.move_up()
            elif key == Key.DOWN:
                state.move_down()
            elif key == Key.SPACE:
                if spec.multi_select:
                    state.toggle()
                else:
                    return spec.options[state.selected_index]
            elif key == Key.ENTER:
                if spec.multi_select:
                    return state.checked_options(spec.options)
                return spec.options[state.selected_index]
            elif key == Key.Q and not spec.multi_select:
                return QUIT
    finally:
        console.set_cursor_visible(True, out)
