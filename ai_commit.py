# ai_commit.py
import argparse
import json
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from colorama import init, Fore
from dotenv import load_dotenv

import console
import git_ops
from llm_gateway import LLMGateway
from menu import MenuSpec, QUIT, show_menu

COMMIT_SYSTEM_PROMPT = (
    "You write git commit messages in the Conventional Commits style. "
    "Return a JSON object with exactly two keys: "
    "\"subject\" (imperative, at most 72 characters, prefixed with a type such as feat, fix, chore, docs, refactor) "
    "and \"body\" (a short bullet list of the notable changes, may be empty)."
)

COMMIT = "Commit"
COMMIT_AND_PUSH = "Commit and push"
SKIP = "Skip"


def fallback_message(repo: Path) -> str:
    return f"chore: update {repo.name}"


def parse_commit_message(raw: Optional[str], repo: Path) -> str:
    """
    Turn the model's JSON answer into "subject\\n\\nbody". Anything unusable
    yields the placeholder message so the run can continue.
    """
    if not raw:
        return fallback_message(repo)
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        console.warn(f"Model reply for {repo.name} was not valid JSON; using placeholder message.")
        return fallback_message(repo)
    if not isinstance(obj, dict):
        return fallback_message(repo)
    subject = str(obj.get("subject") or "").strip()
    if not subject:
        return fallback_message(repo)
    body = obj.get("body") or ""
    if isinstance(body, list):
        body = "\n".join(f"- {line}" for line in body)
    body = str(body).strip()
    return f"{subject}\n\n{body}" if body else subject


def generate_commit_message(gateway: LLMGateway, repo: Path) -> str:
    diff = git_ops.collect_diff(repo)
    raw = gateway.generate(
        prompt=f"Repository: {repo.name}\n\nChanges:\n{diff}",
        system_prompt=COMMIT_SYSTEM_PROMPT,
        temperature=0.3,
        json_mode=True,
    )
    return parse_commit_message(raw, repo)


def choose_repositories(repos: List[Path], root: Path, interactive: bool) -> List[Path]:
    if not interactive:
        return repos
    labels = [str(r.relative_to(root)) if r != root else f"{root.name} (root)" for r in repos]
    picked = show_menu(MenuSpec("Select repositories to commit", labels, multi_select=True))
    return [r for r, label in zip(repos, labels) if label in picked]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Write AI commit messages and commit changed repositories.")
    ap.add_argument("--root", default=".", help="Monorepo root (default: current directory)")
    ap.add_argument("--non-interactive", action="store_true", help="No menus; commit every changed repository")
    ap.add_argument("--push", action="store_true", help="Push after committing (non-interactive mode)")
    ap.add_argument("--debug", action="store_true", help="Verbose provider output")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    init(autoreset=True)
    args = parse_args(argv)
    if args.debug:
        console.set_debug(True)
    interactive = not args.non_interactive
    root = Path(args.root).resolve()

    console.info(f"Scanning {root} for repositories…")
    changed = []
    for repo in git_ops.find_repositories(root):
        try:
            if git_ops.has_changes(repo):
                changed.append(repo)
        except subprocess.CalledProcessError as e:
            console.error(f"git status failed in {repo}: {e.stderr or e}")
    if not changed:
        console.success("Working trees are clean; nothing to commit.")
        return 0

    selected = choose_repositories(changed, root, interactive)
    if not selected:
        console.warn("No repositories selected.")
        return 0

    gateway = LLMGateway()
    gateway.initialize(interactive=interactive)

    failures = 0
    for repo in selected:
        console.header(f"== {repo.name}")
        try:
            message = generate_commit_message(gateway, repo)
            print(f"{Fore.YELLOW}{message}")
            if interactive:
                action = show_menu(MenuSpec(f"Commit {repo.name}?", [COMMIT, COMMIT_AND_PUSH, SKIP], clear_screen=False))
            else:
                action = COMMIT_AND_PUSH if args.push else COMMIT
            if action in (SKIP, QUIT):
                console.warn(f"Skipped {repo.name}.")
                continue
            git_ops.commit_all(repo, message)
            console.success(f"Committed {repo.name}.")
            if action == COMMIT_AND_PUSH:
                git_ops.push(repo)
                console.success(f"Pushed {repo.name}.")
        except subprocess.CalledProcessError as e:
            failures += 1
            console.error(f"git failed in {repo.name}: {(e.stderr or str(e)).strip()}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
