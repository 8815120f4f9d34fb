"""Git subprocess helpers.

Only read-only discovery lives here. Generated subtree commands are handed
back to the caller and never executed by this package.
"""

from __future__ import annotations

from pathlib import Path
from subprocess import CalledProcessError, run

from subtree_builder.errors import GitError


def get_toplevel(path: Path) -> Path:
    """Return the top-level directory of the repository containing ``path``."""
    return Path(_run_git(path, ["rev-parse", "--show-toplevel"]).strip())


def resolve_repo_root(path: Path) -> Path:
    """Return the repository top level, or ``path`` itself outside a git repository."""
    try:
        return get_toplevel(path)
    except GitError:
        return path.resolve()


def _run_git(repo: Path, args: list[str]) -> str:
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc
    except OSError as exc:
        raise GitError(f"failed to execute git: {exc}") from exc

    return completed.stdout
