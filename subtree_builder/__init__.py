"""Generate git subtree command lines from per-subtree configuration."""

__version__ = "0.1.0"
