"""
Implementation SQLModel du repository des instantanes fournisseurs.

Implemente l'interface IProviderMetadataRepository pour la persistance
des instantanes dans la base de donnees SQLite via SQLModel.
"""

import json
from datetime import timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from src.core.entities.provider_metadata import ProviderSnapshot
from src.core.ports.repositories import IProviderMetadataRepository
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType
from src.infrastructure.persistence.models import ProviderMetadataModel


class SQLModelProviderMetadataRepository(IProviderMetadataRepository):
    """
    Repository SQLModel pour les instantanes par fournisseur.

    Implemente IProviderMetadataRepository avec conversion bidirectionnelle
    entre l'entite ProviderSnapshot (domaine) et ProviderMetadataModel
    (persistance).
    """

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
        """
        self._session = session

    def _to_entity(self, model: ProviderMetadataModel) -> ProviderSnapshot:
        fetched_at = model.fetched_at
        # SQLite ne conserve pas le fuseau horaire
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)
        return ProviderSnapshot(
            media_type=MediaType(model.media_type),
            media_id=model.media_id,
            provider=model.provider,
            provider_media_id=model.provider_media_id,
            title=model.title,
            release_date=model.release_date,
            external_ids=ExternalIds.from_dict(model.external_ids),
            payload=model.payload,
            fetched_at=fetched_at,
        )

    def _apply(self, model: ProviderMetadataModel, snapshot: ProviderSnapshot) -> None:
        model.provider_media_id = snapshot.provider_media_id
        model.title = snapshot.title
        model.release_date = snapshot.release_date
        model.external_ids_json = json.dumps(snapshot.external_ids.as_dict())
        model.payload = snapshot.payload
        model.fetched_at = snapshot.fetched_at

    def save_snapshot(self, snapshot: ProviderSnapshot) -> ProviderSnapshot:
        """Sauvegarde un instantane (insertion ou remplacement)."""
        key = (snapshot.media_type.value, snapshot.media_id, snapshot.provider)
        model = self._session.get(ProviderMetadataModel, key)
        if model is None:
            model = ProviderMetadataModel(
                media_type=snapshot.media_type.value,
                media_id=snapshot.media_id,
                provider=snapshot.provider,
                provider_media_id=snapshot.provider_media_id,
                title=snapshot.title,
            )
        self._apply(model, snapshot)
        try:
            self._session.add(model)
            self._session.commit()
        except SQLAlchemyError:
            # La session reste utilisable pour les instantanes suivants
            self._session.rollback()
            raise
        self._session.refresh(model)
        return self._to_entity(model)

    def get_snapshot(
        self, media_type: MediaType, media_id: str, provider: str
    ) -> Optional[ProviderSnapshot]:
        """Recupere l'instantane d'un fournisseur pour un media."""
        model = self._session.get(
            ProviderMetadataModel, (media_type.value, media_id, provider)
        )
        if model:
            return self._to_entity(model)
        return None

    def list_snapshots(
        self, media_type: MediaType, media_id: str
    ) -> list[ProviderSnapshot]:
        """Liste les instantanes d'un media, tries par fournisseur."""
        statement = (
            select(ProviderMetadataModel)
            .where(ProviderMetadataModel.media_type == media_type.value)
            .where(ProviderMetadataModel.media_id == media_id)
            .order_by(ProviderMetadataModel.provider)
        )
        models = self._session.exec(statement).all()
        return [self._to_entity(model) for model in models]

    def delete_snapshots(self, media_type: MediaType, media_id: str) -> int:
        """Supprime les instantanes d'un media."""
        statement = (
            select(ProviderMetadataModel)
            .where(ProviderMetadataModel.media_type == media_type.value)
            .where(ProviderMetadataModel.media_id == media_id)
        )
        models = self._session.exec(statement).all()
        for model in models:
            self._session.delete(model)
        self._session.commit()
        return len(models)
