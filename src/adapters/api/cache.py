"""
Cache persistant pour les API externes avec TTL differencies.

Le cache utilise diskcache pour la persistence sur disque, ce qui permet
de conserver les reponses des fournisseurs entre les redemarrages.

TTL par defaut (configurables):
- Recherches (SEARCH_TTL): 24 heures - les resultats de recherche changent souvent
- Details (DETAILS_TTL): 7 jours - les metadonnees d'un film/serie changent rarement
"""

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, Optional, TypeVar

from diskcache import Cache

T = TypeVar("T")


class APICache:
    """
    Cache asynchrone avec TTL pour les appels API.

    Utilise diskcache pour la persistence et run_in_executor pour
    les operations asynchrones non-bloquantes.

    Attributes:
        SEARCH_TTL: Duree de vie par defaut des resultats de recherche (24h)
        DETAILS_TTL: Duree de vie par defaut des details (7 jours)

    Example:
        cache = APICache(cache_dir=".cache/api")
        results = await cache.get_or_set(
            "tmdb:search:movie:inception", cache.search_ttl, fetch_results
        )
    """

    SEARCH_TTL = 24 * 60 * 60  # 24 heures en secondes (86400)
    DETAILS_TTL = 7 * 24 * 60 * 60  # 7 jours en secondes (604800)

    def __init__(
        self,
        cache_dir: str = ".cache/api",
        search_ttl: Optional[int] = None,
        details_ttl: Optional[int] = None,
    ) -> None:
        """
        Initialise le cache avec un repertoire de stockage.

        Args:
            cache_dir: Chemin vers le repertoire du cache (cree si inexistant)
            search_ttl: TTL des recherches en secondes (defaut: SEARCH_TTL)
            details_ttl: TTL des details en secondes (defaut: DETAILS_TTL)
        """
        self._cache = Cache(cache_dir)
        self.search_ttl = search_ttl if search_ttl is not None else self.SEARCH_TTL
        self.details_ttl = details_ttl if details_ttl is not None else self.DETAILS_TTL

    async def get(self, key: str) -> Optional[Any]:
        """
        Recupere une valeur du cache.

        Args:
            key: Cle unique identifiant la donnee

        Returns:
            La valeur stockee ou None si absente ou expiree
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._cache.get, key)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """
        Stocke une valeur dans le cache avec un TTL.

        Args:
            key: Cle unique identifiant la donnee
            value: Valeur a stocker (doit etre serializable)
            ttl: Duree de vie en secondes
        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, partial(self._cache.set, key, value, expire=ttl)
        )

    async def get_or_set(
        self, key: str, ttl: int, factory: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Pattern cache-first: retourne la valeur cachee ou la calcule.

        Les valeurs None (media introuvable) ne sont pas cachees.

        Args:
            key: Cle unique identifiant la donnee
            ttl: Duree de vie en secondes
            factory: Coroutine produisant la valeur en cas d'absence

        Returns:
            La valeur cachee ou fraichement calculee
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await factory()
        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def clear(self) -> None:
        """Supprime toutes les entrees du cache."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._cache.clear)

    def close(self) -> None:
        """Ferme la connexion au cache (a appeler a la fin)."""
        self._cache.close()
