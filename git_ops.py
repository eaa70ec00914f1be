# git_ops.py
import subprocess
from pathlib import Path
from typing import List

SKIP_DIRS = {"node_modules", ".nuxt", ".output", "dist", ".git"}


def _git(repo: Path, *args: str) -> str:
    p = subprocess.run(
        ["git", *args],
        cwd=str(repo),
        capture_output=True,
        text=True,
        check=True,
    )
    return p.stdout


def find_repositories(root: Path, max_depth: int = 3) -> List[Path]:
    """
    The root repository plus every nested directory carrying a `.git` entry
    (a directory for plain clones, a file for submodules).
    """
    root = Path(root).resolve()
    found: List[Path] = []

    def walk(d: Path, depth: int):
        if (d / ".git").exists():
            found.append(d)
        if depth >= max_depth:
            return
        try:
            children = sorted(c for c in d.iterdir() if c.is_dir())
        except OSError:
            return
        for c in children:
            if c.name in SKIP_DIRS:
                continue
            walk(c, depth + 1)

    walk(root, 0)
    return found


def has_changes(repo: Path) -> bool:
    return bool(_git(repo, "status", "--porcelain").strip())


def has_head(repo: Path) -> bool:
    try:
        _git(repo, "rev-parse", "--verify", "--quiet", "HEAD")
    except subprocess.CalledProcessError:
        return False
    return True


def collect_diff(repo: Path, limit: int = 12000) -> str:
    # a freshly initialised repository has no HEAD to diff against yet
    if has_head(repo):
        diff = _git(repo, "diff", "HEAD")
    else:
        diff = _git(repo, "diff", "--cached")
    untracked = _git(repo, "ls-files", "--others", "--exclude-standard").split()
    if untracked:
        diff += "\nUntracked files:\n" + "\n".join(untracked)
    if len(diff) > limit:
        diff = diff[:limit] + "\n[diff truncated]"
    return diff


def commit_all(repo: Path, message: str) -> None:
    _git(repo, "add", "-A")
    _git(repo, "commit", "-m", message)


def push(repo: Path) -> None:
    _git(repo, "push")
