# console.py
import os
import sys
from typing import Optional, TextIO

from colorama import Fore, Style, Cursor
from colorama.ansi import clear_screen

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"

_debug = os.getenv("LLM_DEBUG", "0") == "1"


def set_debug(enabled: bool) -> None:
    global _debug
    _debug = enabled


def debug_enabled() -> bool:
    return _debug


def info(msg: str) -> None:
    print(msg)

def success(msg: str) -> None:
    print(f"{Fore.GREEN}{msg}{Style.RESET_ALL}")

def warn(msg: str) -> None:
    print(f"{Fore.YELLOW}{msg}{Style.RESET_ALL}")

def error(msg: str) -> None:
    print(f"{Fore.RED}{msg}{Style.RESET_ALL}")

def header(msg: str) -> None:
    print(f"{Fore.CYAN}{msg}{Style.RESET_ALL}")

def debug(msg: str) -> None:
    if _debug:
        print(f"{Style.DIM}[debug] {msg}{Style.RESET_ALL}")


def clear(stream: Optional[TextIO] = None) -> None:
    out = stream or sys.stdout
    out.write(clear_screen() + Cursor.POS(1, 1))
    out.flush()


def erase_previous(lines: int, stream: Optional[TextIO] = None) -> None:
    """Move back over the last `lines` printed rows and erase to end of screen."""
    out = stream or sys.stdout
    if lines > 0:
        out.write("\r" + Cursor.UP(lines))
    out.write(clear_screen(0))
    out.flush()


def set_cursor_visible(visible: bool, stream: Optional[TextIO] = None) -> None:
    # Some hosts (redirected output, dumb terminals) reject this; never fatal.
    try:
        out = stream or sys.stdout
        out.write(SHOW_CURSOR if visible else HIDE_CURSOR)
        out.flush()
    except Exception:
        pass
