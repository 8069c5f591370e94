"""
Module de persistance des instantanes fournisseurs pour CineMeta.

Ce module fournit l'infrastructure de stockage utilisant SQLModel (SQLAlchemy).
Il contient :

- database.py : Creation de l'engine et des tables
- models.py : Modele SQLModel de la table provider_metadata
- repositories/ : Implementation du port IProviderMetadataRepository

Le modele est un adapter de persistance, distinct de l'entite de domaine
ProviderSnapshot (dataclass dans core/entities/). La conversion entre les
deux se fait dans le repository.

Usage:
    from sqlmodel import Session
    from src.infrastructure.persistence import create_db_engine, init_db

    engine = init_db(create_db_engine("sqlite:///cinemeta.db"))
    session = Session(engine)
"""

from src.infrastructure.persistence.database import create_db_engine, init_db
from src.infrastructure.persistence.models import ProviderMetadataModel

__all__ = [
    "create_db_engine",
    "init_db",
    "ProviderMetadataModel",
]
