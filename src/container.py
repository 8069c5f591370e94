"""
Container d'injection de dependances via dependency-injector.

Fournit une gestion centralisee des dependances pour la CLI: configuration,
cache API, clients des fournisseurs, repository des instantanes et
gestionnaire de resolution.
"""

from dependency_injector import containers, providers
from sqlmodel import Session

from .adapters.api.cache import APICache
from .adapters.api.fanart_client import FanartClient
from .adapters.api.mdblist_client import MDBListClient
from .adapters.api.tmdb_client import TMDBClient
from .adapters.api.trakt_client import TraktClient
from .adapters.api.tvdb_client import TVDBClient
from .config import Settings
from .infrastructure.persistence.database import create_db_engine, init_db
from .infrastructure.persistence.repositories import SQLModelProviderMetadataRepository
from .services.matcher import MatcherService
from .services.resolution import ResolutionManager


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        container.database.init()  # Initialise la DB une fois
        manager = container.resolution_manager()
        await manager.initialize_all()
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Engine construit depuis l'URL configuree
    engine = providers.Singleton(create_db_engine, config.provided.database_url)

    # Database - Resource pour creation unique des tables
    database = providers.Resource(init_db, engine)

    # Session factory - nouvelle session a chaque appel
    session = providers.Factory(Session, engine)

    # Politique de retry partagee par tous les clients
    retry_policy = providers.Singleton(Settings.retry_policy, config)

    # Cache API - Singleton pour partage entre clients
    api_cache = providers.Singleton(
        APICache,
        cache_dir=config.provided.cache_dir,
        search_ttl=config.provided.cache_search_ttl,
        details_ttl=config.provided.cache_details_ttl,
    )

    # Clients API - Singleton, identifiants lus par initialize()
    tmdb_client = providers.Singleton(
        TMDBClient,
        cache=api_cache,
        policy=retry_policy,
        language=config.provided.metadata_language,
    )
    tvdb_client = providers.Singleton(
        TVDBClient,
        cache=api_cache,
        policy=retry_policy,
        language=config.provided.tvdb_language,
    )
    mdblist_client = providers.Singleton(MDBListClient, cache=api_cache, policy=retry_policy)
    fanart_client = providers.Singleton(FanartClient, cache=api_cache, policy=retry_policy)
    trakt_client = providers.Singleton(TraktClient, policy=retry_policy)

    # Repository - Factory pour nouvelle instance avec session fraiche
    provider_metadata_repository = providers.Factory(
        SQLModelProviderMetadataRepository,
        session=session,
    )

    # Service de scoring (stateless - Singleton)
    matcher_service = providers.Singleton(
        MatcherService,
        threshold=config.provided.auto_match_threshold,
    )

    resolution_manager = providers.Singleton(
        ResolutionManager,
        settings=config.provided.to_metadata_settings.call(),
        integrations=providers.List(
            tmdb_client,
            tvdb_client,
            mdblist_client,
            fanart_client,
            trakt_client,
        ),
        repository=provider_metadata_repository,
        matcher=matcher_service,
    )
