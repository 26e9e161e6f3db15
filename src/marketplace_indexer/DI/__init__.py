"""Dependency injection."""

from marketplace_indexer.DI.container import Container

__all__ = ["Container"]
