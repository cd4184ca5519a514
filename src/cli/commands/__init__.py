"""CLI command modules."""

from .facts import facts

__all__ = ["facts"]
