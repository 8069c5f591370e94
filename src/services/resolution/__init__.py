"""
Package du gestionnaire de resolution des metadonnees.

Reexporte les symboles principaux (from src.services.resolution import ...).
"""

from .dataclasses import (
    IdentifyResult,
    IdentifyStatus,
    ProviderOutcome,
    ResolveResult,
    SnapshotSet,
)
from .manager import ResolutionManager

__all__ = [
    "IdentifyResult",
    "IdentifyStatus",
    "ProviderOutcome",
    "ResolutionManager",
    "ResolveResult",
    "SnapshotSet",
]
