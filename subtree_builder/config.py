"""Configuration loading for subtree-builder."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from subtree_builder.errors import ConfigError

CONFIG_FILENAMES = (
    ".subtrees.toml",
    "subtrees.toml",
    ".subtrees.yml",
    "subtrees.yml",
    ".subtrees.yaml",
    "subtrees.yaml",
)
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("subtree_builder", "subtree-builder")
YAML_SUFFIXES = (".yml", ".yaml")

DEFAULT_PREFIX_ROOT = "docroot/modules/contrib"
SUBTREE_STRING_KEYS = ("uri", "branch", "message")
SUBTREE_BOOL_KEYS = ("squash", "pull", "merge")


@dataclass(slots=True, frozen=True)
class SubtreeConfig:
    """Properties of one named subtree."""

    name: str
    uri: str = ""
    branch: str = ""
    message: str = ""
    squash: bool = True
    pull: bool = True
    merge: bool = True

    def with_changes(self, **changes: Any) -> SubtreeConfig:
        """Return a copy with the given fields replaced; the name is fixed."""
        if "name" in changes:
            raise ConfigError("subtree name cannot be changed")
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "uri": self.uri,
            "branch": self.branch,
            "message": self.message,
            "squash": self.squash,
            "pull": self.pull,
            "merge": self.merge,
        }


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    prefix_root: str = DEFAULT_PREFIX_ROOT
    subtrees: dict[str, SubtreeConfig] = field(default_factory=dict)
    source: str | None = None

    def prefix_for(self, name: str) -> str:
        """Return the repository-relative path where subtree ``name`` lives."""
        if not self.prefix_root:
            return name
        return str(PurePosixPath(self.prefix_root) / name)

    def get_subtree(self, name: str) -> SubtreeConfig:
        try:
            return self.subtrees[name]
        except KeyError:
            known = ", ".join(self.subtrees) or "none"
            raise ConfigError(f"Unknown subtree: {name} (configured: {known})") from None

    def to_dict(self) -> dict[str, Any]:
        return {
            "prefix_root": self.prefix_root,
            "subtrees": {name: item.to_dict() for name, item in self.subtrees.items()},
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ConfigError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_file(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_file(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            "# Directory, relative to the repository root, holding subtree prefixes.",
            f'prefix_root = "{DEFAULT_PREFIX_ROOT}"',
            "",
            "[subtrees.mymodule]",
            'uri = "https://example.org/mymodule.git"',
            'branch = "8.x-1.x"',
            '# message = "Update mymodule"',
            "squash = true",
            "pull = true",
            "merge = true",
            "",
        ]
    )


def _load_file(path: Path) -> dict[str, Any]:
    if path.suffix in YAML_SUFFIXES:
        return _load_yaml(path)
    return _load_toml(path)


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    raw_root = mapping.get("prefix_root", DEFAULT_PREFIX_ROOT)
    prefix_root = _as_str(raw_root, "prefix_root").strip("/")

    subtrees_mapping = _as_table(mapping.get("subtrees"), "subtrees")
    subtrees: dict[str, SubtreeConfig] = {}
    for name, properties in subtrees_mapping.items():
        if not isinstance(name, str) or not name:
            raise ConfigError("subtrees keys must be non-empty strings")
        subtrees[name] = _parse_subtree_config(name, properties)

    return AppConfig(prefix_root=prefix_root, subtrees=subtrees, source=source)


def _parse_subtree_config(name: str, value: Any) -> SubtreeConfig:
    field_name = f"subtrees.{name}"
    # A bare `name:` entry in YAML loads as None and means "all defaults".
    properties = _as_table(value, field_name)

    unknown = sorted(set(properties) - set(SUBTREE_STRING_KEYS) - set(SUBTREE_BOOL_KEYS))
    if unknown:
        raise ConfigError(f"{field_name} has unknown keys: {', '.join(unknown)}")

    return SubtreeConfig(
        name=name,
        uri=_as_str(properties.get("uri", ""), f"{field_name}.uri"),
        branch=_as_str(properties.get("branch", ""), f"{field_name}.branch"),
        message=_as_str(properties.get("message", ""), f"{field_name}.message"),
        squash=_as_bool(properties.get("squash", True), f"{field_name}.squash"),
        pull=_as_bool(properties.get("pull", True), f"{field_name}.pull"),
        merge=_as_bool(properties.get("merge", True), f"{field_name}.merge"),
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{field_name} must be a table/object")
    return value


def _as_str(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{field_name} must be a string")
    return value


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ConfigError(f"{field_name} must be a boolean")
    return raw
