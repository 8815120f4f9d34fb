"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from subtree_builder.config import (
    AppConfig,
    SubtreeConfig,
    default_config_template,
    load_app_config,
)
from subtree_builder.errors import ConfigError


def _write(path: Path, lines: list[str]) -> None:
    path.write_text("\n".join(lines), encoding="utf-8")


def test_load_app_config_defaults_without_files(tmp_path: Path) -> None:
    config = load_app_config(tmp_path)
    assert config.subtrees == {}
    assert config.prefix_root == "docroot/modules/contrib"
    assert config.source is None


def test_load_app_config_applies_property_defaults(tmp_path: Path) -> None:
    _write(
        tmp_path / ".subtrees.toml",
        [
            "[subtrees.mymodule]",
            'uri = "https://example.org/repo.git"',
            "",
            "[subtrees.other]",
            'branch = "main"',
            "squash = false",
            "merge = false",
        ],
    )
    config = load_app_config(tmp_path)
    assert list(config.subtrees) == ["mymodule", "other"]
    assert config.subtrees["mymodule"] == SubtreeConfig(
        name="mymodule", uri="https://example.org/repo.git"
    )
    other = config.subtrees["other"]
    assert (other.uri, other.branch, other.message) == ("", "main", "")
    assert (other.squash, other.pull, other.merge) == (False, True, False)
    assert config.source == str(tmp_path / ".subtrees.toml")


def test_load_app_config_prefers_dot_toml_over_yaml(tmp_path: Path) -> None:
    _write(tmp_path / ".subtrees.toml", ["[subtrees.fromtoml]"])
    _write(tmp_path / "subtrees.yml", ["subtrees:", "  fromyaml: {}"])
    config = load_app_config(tmp_path)
    assert list(config.subtrees) == ["fromtoml"]


def test_load_app_config_reads_yaml(tmp_path: Path) -> None:
    _write(
        tmp_path / "subtrees.yml",
        [
            "prefix_root: web/modules/custom",
            "subtrees:",
            "  mymodule:",
            "    uri: https://example.org/repo.git",
            '    branch: "2.10"',
            "    pull: false",
            "  bare:",
        ],
    )
    config = load_app_config(tmp_path)
    assert config.prefix_root == "web/modules/custom"
    assert config.subtrees["mymodule"].branch == "2.10"
    assert config.subtrees["mymodule"].pull is False
    assert config.subtrees["bare"] == SubtreeConfig(name="bare")
    assert config.prefix_for("mymodule") == "web/modules/custom/mymodule"


def test_load_app_config_reads_pyproject_hyphenated_key(tmp_path: Path) -> None:
    _write(
        tmp_path / "pyproject.toml",
        [
            '[tool."subtree-builder"]',
            'prefix_root = "vendor"',
            "",
            '[tool."subtree-builder".subtrees.lib]',
            'uri = "git@example.org:lib.git"',
        ],
    )
    config = load_app_config(tmp_path)
    assert config.prefix_for("lib") == "vendor/lib"
    assert config.source == str(tmp_path / "pyproject.toml")


def test_load_app_config_explicit_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="does not exist"):
        load_app_config(tmp_path, config_path=Path("missing.toml"))


def test_load_app_config_rejects_wrong_types(tmp_path: Path) -> None:
    _write(tmp_path / ".subtrees.toml", ["[subtrees.mymodule]", 'squash = "yes"'])
    with pytest.raises(ConfigError, match="subtrees.mymodule.squash must be a boolean"):
        load_app_config(tmp_path)


def test_load_app_config_rejects_unknown_keys(tmp_path: Path) -> None:
    _write(tmp_path / ".subtrees.toml", ["[subtrees.mymodule]", 'remote = "origin"'])
    with pytest.raises(ConfigError, match="unknown keys: remote"):
        load_app_config(tmp_path)


def test_load_app_config_reports_invalid_toml(tmp_path: Path) -> None:
    _write(tmp_path / ".subtrees.toml", ["[subtrees.mymodule", "uri ="])
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_app_config(tmp_path)


def test_prefix_for_with_empty_root() -> None:
    assert AppConfig(prefix_root="").prefix_for("lib") == "lib"


def test_get_subtree_unknown_name() -> None:
    config = AppConfig(subtrees={"a": SubtreeConfig(name="a")})
    with pytest.raises(ConfigError, match="Unknown subtree: b"):
        config.get_subtree("b")


def test_with_changes_returns_new_instance_and_keeps_name() -> None:
    original = SubtreeConfig(name="mymodule")
    changed = original.with_changes(uri="https://example.org/x.git", pull=False)
    assert original.uri == ""
    assert changed.uri == "https://example.org/x.git"
    assert changed.pull is False
    assert changed.name == "mymodule"
    with pytest.raises(ConfigError):
        original.with_changes(name="renamed")


def test_default_config_template_round_trips(tmp_path: Path) -> None:
    (tmp_path / ".subtrees.toml").write_text(default_config_template(), encoding="utf-8")
    config = load_app_config(tmp_path)
    assert list(config.subtrees) == ["mymodule"]
    assert config.subtrees["mymodule"].branch == "8.x-1.x"


def test_load_app_config_rejects_unquoted_numeric_yaml_branch(tmp_path: Path) -> None:
    _write(tmp_path / "subtrees.yml", ["subtrees:", "  lib:", "    branch: 2.10"])
    with pytest.raises(ConfigError, match="subtrees.lib.branch must be a string"):
        load_app_config(tmp_path)


def test_load_app_config_discovers_yaml_suffix(tmp_path: Path) -> None:
    _write(tmp_path / ".subtrees.yaml", ["subtrees:", "  lib:", "    uri: git@example.org:lib.git"])
    config = load_app_config(tmp_path)
    assert config.subtrees["lib"].uri == "git@example.org:lib.git"
    assert config.source == str(tmp_path.resolve() / ".subtrees.yaml")
