"""
Base de donnees des instantanes fournisseurs.

Ce module fournit :
- create_db_engine : engine SQLAlchemy pour l'URL configuree
- init_db : creation de la table provider_metadata si absente

L'engine n'est plus un global de module : il est construit par le container
a partir de CINEMETA_DATABASE_URL (defaut: sqlite:///cinemeta.db), ce qui
permet aux tests d'utiliser une base en memoire.
"""

from pathlib import Path

from sqlmodel import SQLModel, create_engine
from sqlalchemy import Engine

_SQLITE_FILE_PREFIX = "sqlite:///"
_SQLITE_MEMORY_URL = "sqlite:///:memory:"


def create_db_engine(db_url: str, echo: bool = False) -> Engine:
    """
    Cree l'engine de la base des instantanes.

    Pour une base SQLite fichier, le repertoire parent est cree. Les sessions
    etant ouvertes depuis la boucle asyncio de la CLI, le controle de thread
    de sqlite3 est desactive.

    Args:
        db_url: URL SQLAlchemy (ex: "sqlite:///data/cinemeta.db")
        echo: Journaliser les requetes SQL

    Returns:
        Engine SQLAlchemy
    """
    connect_args = {}
    if db_url.startswith(_SQLITE_FILE_PREFIX):
        connect_args["check_same_thread"] = False
        if not db_url.startswith(_SQLITE_MEMORY_URL):
            Path(db_url[len(_SQLITE_FILE_PREFIX):]).parent.mkdir(exist_ok=True, parents=True)

    return create_engine(db_url, echo=echo, connect_args=connect_args)


def init_db(engine: Engine) -> Engine:
    """
    Cree les tables des modeles enregistres (idempotent).

    Args:
        engine: Engine cible

    Returns:
        Le meme engine, pour un usage comme ressource du container
    """
    # L'import enregistre les modeles dans SQLModel.metadata
    from src.infrastructure.persistence import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    return engine
