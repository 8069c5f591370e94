"""
Interfaces ports pour les repositories.

Interfaces abstraites (ports) définissant les contrats pour la persistance des données.
Les implémentations (adaptateurs) fourniront les mécanismes de stockage concrets
(SQLite via SQLModel, en mémoire pour les tests, etc.).
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.core.entities.provider_metadata import ProviderSnapshot
from src.core.value_objects.media_type import MediaType


class IProviderMetadataRepository(ABC):
    """
    Interface de stockage des instantanés par fournisseur.

    Au plus un instantané par (type de média, ID média, fournisseur) :
    une sauvegarde remplace l'instantané existant.
    """

    @abstractmethod
    def save_snapshot(self, snapshot: ProviderSnapshot) -> ProviderSnapshot:
        """Insère ou remplace l'instantané du fournisseur pour ce média."""
        ...

    @abstractmethod
    def get_snapshot(
        self, media_type: MediaType, media_id: str, provider: str
    ) -> Optional[ProviderSnapshot]:
        """Récupère l'instantané d'un fournisseur pour un média."""
        ...

    @abstractmethod
    def list_snapshots(
        self, media_type: MediaType, media_id: str
    ) -> list[ProviderSnapshot]:
        """Liste les instantanés de tous les fournisseurs pour un média."""
        ...

    @abstractmethod
    def delete_snapshots(self, media_type: MediaType, media_id: str) -> int:
        """Supprime les instantanés d'un média, retourne le nombre supprimé."""
        ...
