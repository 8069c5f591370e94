"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Les ports sont les frontières de l'architecture hexagonale. Ils définissent
ce dont le domaine a besoin du monde extérieur sans spécifier
comment ces besoins sont satisfaits.

Ports repository : Contrats de persistance des données
- IProviderMetadataRepository : Stockage des instantanés par fournisseur

Ports intégrations : Contrats pour les services externes
- BaseIntegration : Descripteur et cycle de vie d'une intégration
- MetadataCapability, RatingsCapability, ArtworkCapability, SyncCapability
"""

from src.core.ports.integrations import (
    ArtworkCapability,
    BaseIntegration,
    ConnectionStatus,
    IntegrationInfo,
    MetadataCapability,
    RatingsCapability,
    SyncCapability,
    has_artwork_capability,
    has_metadata_capability,
    has_ratings_capability,
    has_sync_capability,
)
from src.core.ports.repositories import IProviderMetadataRepository

__all__ = [
    # Repositories
    "IProviderMetadataRepository",
    # Intégrations
    "ArtworkCapability",
    "BaseIntegration",
    "ConnectionStatus",
    "IntegrationInfo",
    "MetadataCapability",
    "RatingsCapability",
    "SyncCapability",
    "has_artwork_capability",
    "has_metadata_capability",
    "has_ratings_capability",
    "has_sync_capability",
]
