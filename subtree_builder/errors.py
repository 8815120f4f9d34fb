"""Exception types used across subtree-builder."""

from __future__ import annotations


class SubtreeBuilderError(Exception):
    """Base class for all subtree-builder specific errors."""


class ConfigError(SubtreeBuilderError, ValueError):
    """Raised when a configuration file is missing, malformed or mistyped."""


class SubtreeError(SubtreeBuilderError):
    """Raised when a subtree operation cannot produce a command."""


class GitError(SubtreeBuilderError):
    """Raised when git command execution fails."""
