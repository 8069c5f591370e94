"""Sous-package CLI commands - re-exporte les commandes publiques."""

from src.adapters.cli.commands.resolution_commands import (
    clear_cache,
    identify,
    integrations,
    resolve,
    snapshots,
    test_connections,
    trakt_auth,
)

__all__ = [
    "clear_cache",
    "identify",
    "integrations",
    "resolve",
    "snapshots",
    "test_connections",
    "trakt_auth",
]
