"""Tests for output rendering."""

from __future__ import annotations

import json

from subtree_builder.config import AppConfig, SubtreeConfig
from subtree_builder.output import (
    CommandResult,
    render_commands_human,
    render_commands_json,
    render_subtree_list,
)


def test_render_commands_human_skips_empty_results() -> None:
    results = [
        CommandResult(name="a", prefix="x/a", command="git subtree split --prefix=x/a"),
        CommandResult(name="b", prefix="x/b", command=None, skipped="pull disabled"),
        CommandResult(name="c", prefix="x/c", command="git subtree split --prefix=x/c"),
    ]
    assert render_commands_human(results) == (
        "git subtree split --prefix=x/a\ngit subtree split --prefix=x/c"
    )


def test_render_commands_json_payload() -> None:
    results = [CommandResult(name="b", prefix="x/b", command=None, skipped="pull disabled")]
    payload = json.loads(
        render_commands_json(results, operation="pull", repo_root="/repo", config_source=None)
    )
    assert payload["operation"] == "pull"
    assert payload["commands"] == [
        {"name": "b", "prefix": "x/b", "command": None, "skipped": "pull disabled"}
    ]
    assert payload["meta"]["repo_root"] == "/repo"


def test_render_subtree_list_empty_and_populated() -> None:
    assert render_subtree_list(AppConfig()) == "No subtrees configured."

    config = AppConfig(subtrees={"lib": SubtreeConfig(name="lib", merge=False)})
    rendered = render_subtree_list(config)
    assert "- lib: docroot/modules/contrib/lib" in rendered
    assert "<no uri> @ <no branch>" in rendered
    assert "merge=off" in rendered
