"""Render ``git subtree`` command lines for a configured subtree."""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from typing import Literal

from subtree_builder.config import SubtreeConfig
from subtree_builder.reporting import LoggingReporter, Reporter

COMMIT_ID_DISPLAY_LENGTH = 10

# Characters that stay live inside a double-quoted shell word.
_SHELL_SPECIAL = re.compile(r'[\\"$`]')


def commit_message_flag(message: str) -> str:
    """Return the ``-m "..."`` fragment for a commit message, or an empty string."""
    if not message:
        return ""
    escaped = _SHELL_SPECIAL.sub(r"\\\g<0>", message)
    return f'-m "{escaped}"'


def squash_flag(squash: bool) -> str:
    return "--squash" if squash else ""


def render_add(config: SubtreeConfig, prefix: str) -> str:
    return _join(
        "git subtree add",
        f"--prefix={prefix}",
        squash_flag(config.squash),
        commit_message_flag(config.message),
        config.uri,
        config.branch,
    )


def render_pull(config: SubtreeConfig, prefix: str) -> str:
    return _join(
        "git subtree pull",
        f"--prefix={prefix}",
        squash_flag(config.squash),
        commit_message_flag(config.message),
        config.uri,
        config.branch,
    )


def render_merge(config: SubtreeConfig, prefix: str, commit_id: str) -> str:
    # Merges always squash regardless of the configured value.
    return _join(
        "git subtree merge",
        squash_flag(True),
        f"--prefix={prefix}",
        commit_message_flag(config.message),
        commit_id,
    )


def render_push(config: SubtreeConfig, prefix: str) -> str:
    return _join("git subtree push", f"--prefix={prefix}", config.uri, config.branch)


def render_split(prefix: str) -> str:
    return _join("git subtree split", f"--prefix={prefix}")


class SubtreeCommandBuilder:
    """Build ``git subtree`` commands for one named subtree.

    The builder applies the per-operation gating rules (flags, directory
    existence, required properties) and returns the command string. It never
    runs the command; the caller does that from the repository root.

    ``exists`` is probed with the repository-relative prefix. When omitted it
    checks the prefix below ``root`` (the current directory by default).
    """

    def __init__(
        self,
        config: SubtreeConfig,
        prefix: str,
        *,
        reporter: Reporter | None = None,
        exists: Callable[[str], bool] | None = None,
        root: Path | None = None,
    ) -> None:
        self.config = config
        self.prefix = prefix
        self.reporter: Reporter = reporter or LoggingReporter()
        base = root or Path(".")
        self._exists = exists or (lambda path: (base / path).exists())
        self.last_command: str | None = None

    @property
    def name(self) -> str:
        return self.config.name

    def add(self, fail_quietly: bool = False) -> str | Literal[False]:
        """Return the ``git subtree add`` command, or ``False`` when there is nothing to add.

        Raises SubtreeError when the prefix directory already exists and
        ``fail_quietly`` is not set.
        """
        if self._exists(self.prefix):
            if fail_quietly:
                return False
            self.reporter.log(
                f"Skipping add for {self.name}: {self.prefix} already exists.", "warning"
            )
            raise self.reporter.error(
                f"Cannot add subtree {self.name}: the directory {self.prefix} already exists. "
                "Remove the directory and add the subtree again, or skip adding a subtree "
                "that is already in place."
            )

        if not self.config.uri or not self.config.branch:
            return False

        return self._remember(render_add(self.config, self.prefix))

    def pull(self) -> str:
        """Return the ``git subtree pull`` command, or ``""`` when pulling is disabled."""
        if not self.config.pull:
            self.reporter.log(f"Pulling is disabled for subtree {self.name}.", "warning")
            return ""

        self.reporter.log(f"Preparing to pull subtree {self.name} into {self.prefix}.", "ok")
        return self._remember(render_pull(self.config, self.prefix))

    def merge(self, commit_id: str, tag: str = "") -> str:
        """Return the ``git subtree merge`` command, or ``""`` when merging is disabled."""
        if not self.config.merge:
            self.reporter.log(f"Merging is disabled for subtree {self.name}.", "ok")
            return ""

        target = commit_id[:COMMIT_ID_DISPLAY_LENGTH]
        if tag:
            target = f"{target} (tag {tag})"
        self.reporter.log(f"Preparing to merge {self.name} to {target}.", "ok")

        if not self.config.squash:
            self.reporter.log(
                f"Subtree {self.name} is configured with squash = false, but merges are "
                "only reliable when squashed. Squashing this merge anyway; pull still "
                "follows the configured setting.",
                "notice",
            )

        return self._remember(render_merge(self.config, self.prefix, commit_id))

    def push(self) -> str:
        """Return the ``git subtree push`` command.

        Raises SubtreeError when the prefix is missing or uri/branch are unset.
        """
        if not self._exists(self.prefix):
            raise self.reporter.error(
                f"Cannot push subtree {self.name}: there is no subtree at {self.prefix} to push."
            )

        missing = [key for key in ("uri", "branch") if not getattr(self.config, key)]
        if missing:
            raise self.reporter.error(
                f"Cannot push subtree {self.name}: missing required properties: "
                f"{', '.join(missing)}."
            )

        return self._remember(render_push(self.config, self.prefix))

    def split(self) -> str:
        """Return the ``git subtree split`` command; the caller captures the commit id."""
        return self._remember(render_split(self.prefix))

    def _remember(self, command: str) -> str:
        self.last_command = command
        return command


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)
