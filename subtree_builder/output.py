"""Output rendering."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import click

from subtree_builder import __version__
from subtree_builder.config import AppConfig


@dataclass(slots=True)
class CommandResult:
    """Outcome of rendering one operation for one subtree."""

    name: str
    prefix: str
    command: str | None
    skipped: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "prefix": self.prefix,
            "command": self.command,
            "skipped": self.skipped,
        }


def render_commands_human(results: list[CommandResult]) -> str:
    """Render one runnable command per line; skipped subtrees produce no line."""
    return "\n".join(item.command for item in results if item.command)


def render_commands_json(
    results: list[CommandResult],
    *,
    operation: str,
    repo_root: str,
    config_source: str | None,
) -> str:
    payload = {
        "operation": operation,
        "commands": [item.to_dict() for item in results],
        "meta": {
            "version": __version__,
            "repo_root": repo_root,
            "config_source": config_source,
        },
    }
    return json.dumps(payload, sort_keys=True)


def render_subtree_list(app_config: AppConfig) -> str:
    if not app_config.subtrees:
        return "No subtrees configured."

    lines = [click.style("Configured subtrees:", bold=True)]
    for name, subtree in app_config.subtrees.items():
        flags = ", ".join(
            f"{key}={'on' if getattr(subtree, key) else 'off'}"
            for key in ("squash", "pull", "merge")
        )
        remote = f"{subtree.uri or '<no uri>'} @ {subtree.branch or '<no branch>'}"
        lines.append(f"- {name}: {app_config.prefix_for(name)}")
        lines.append(f"   remote: {remote}")
        lines.append(f"   flags: {flags}")
    return "\n".join(lines)


def render_config_human(app_config: AppConfig) -> str:
    lines = [
        "Resolved configuration:",
        f"- source: {app_config.source or 'defaults'}",
        f"- prefix_root: {app_config.prefix_root or '.'}",
        f"- subtrees: {list(app_config.subtrees)}",
    ]
    return "\n".join(lines)
