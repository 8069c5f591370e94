"""
Modeles SQLModel pour la base de donnees CineMeta.

Ces modeles representent les tables de la base de donnees SQLite.
Ils sont distincts des entites de domaine (dataclass dans core/entities/)
selon l'architecture hexagonale.

Tables:
- provider_metadata: Instantane des details d'un media chez un fournisseur

Les champs JSON (*_json) stockent des structures serialisees dans SQLite.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProviderMetadataModel(SQLModel, table=True):
    """
    Instantane d'un fournisseur pour un media de la bibliotheque.

    Cle primaire composite (media_type, media_id, provider): au plus une
    ligne par media et par fournisseur, remplacee a chaque rafraichissement.
    """

    __tablename__ = "provider_metadata"

    media_type: str = Field(primary_key=True)  # "movie" ou "tvshow"
    media_id: str = Field(primary_key=True)
    provider: str = Field(primary_key=True)  # ex: "tmdb"
    provider_media_id: str = Field(index=True)
    title: str
    release_date: str | None = None
    external_ids_json: str | None = None  # JSON: {"tmdb": "603", "imdb": "tt0133093"}
    payload_json: str = "{}"
    fetched_at: datetime = Field(default_factory=_utcnow)

    @property
    def external_ids(self) -> dict[str, str]:
        """Retourne les identifiants externes deserialises."""
        if self.external_ids_json:
            return json.loads(self.external_ids_json)
        return {}

    @external_ids.setter
    def external_ids(self, value: dict[str, str]) -> None:
        """Serialise les identifiants externes en JSON."""
        self.external_ids_json = json.dumps(value)

    @property
    def payload(self) -> dict[str, Any]:
        """Retourne le detail complet deserialise."""
        return json.loads(self.payload_json) if self.payload_json else {}

    @payload.setter
    def payload(self, value: dict[str, Any]) -> None:
        self.payload_json = json.dumps(value, default=str)
