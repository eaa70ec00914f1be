# run_script.py
"""
Run one of the automation scripts by name.

Usage:
  python run_script.py <ScriptName> [flags]
  python run_script.py               # pick a script from a menu

Examples:
  python run_script.py aiCommit --non-interactive --push
  python run_script.py llmCheck --debug
"""
import importlib
import sys
from typing import Callable, List, Optional

import console
from menu import MenuSpec, QUIT, show_menu

# name -> (module, description)
SCRIPTS = {
    "aiCommit": ("ai_commit", "Write AI commit messages and commit changed repositories"),
    "llmCheck": ("llm_check", "Check that the configured LLM provider answers"),
}


def resolve(name: str) -> Optional[Callable[[List[str]], int]]:
    entry = SCRIPTS.get(name) or SCRIPTS.get(name.removesuffix(".py"))
    if entry is None:
        # accept the module name as well (ai_commit)
        entry = next((e for e in SCRIPTS.values() if e[0] == name.removesuffix(".py")), None)
    if entry is None:
        return None
    return importlib.import_module(entry[0]).main


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    if not argv:
        labels = [f"{name}  ({desc})" for name, (_, desc) in SCRIPTS.items()]
        choice = show_menu(MenuSpec("Select a script to run", labels))
        if choice == QUIT:
            return 0
        argv = [choice.split()[0]]

    name, script_args = argv[0], argv[1:]
    entry = resolve(name)
    if entry is None:
        console.error(f"[ERROR] Script '{name}' not found!")
        console.error("Known scripts:")
        for known in SCRIPTS:
            console.error(f" - {known}")
        return 1
    return entry(script_args)


if __name__ == "__main__":
    sys.exit(main())
