"""
Clients API externes pour la resolution des metadonnees.

Ce module fournit les adaptateurs pour communiquer avec les API externes:
- TMDB: The Movie Database pour les films et series (metadonnees)
- TVDB: TheTVDB v4 pour les series TV (metadonnees)
- MDBList: notes agregees (IMDb, Rotten Tomatoes, Metacritic...)
- Fanart.tv: illustrations (logos, clear art, fonds)
- Trakt: synchronisation de l'historique de visionnage (OAuth)

Infrastructure partagee:
- APICache: Cache persistant avec TTL differencies (recherche 24h, details 7j)
- RetryPolicy / request_with_retry: deadline, retry et backoff exponentiel
- BaseIntegrationClient: cycle de vie et plomberie HTTP commune
"""

from src.adapters.api.cache import APICache
from src.adapters.api.retry import RetryPolicy, request_with_retry, with_retry

__all__ = [
    "APICache",
    "RetryPolicy",
    "request_with_retry",
    "with_retry",
]
