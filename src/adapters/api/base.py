"""
Socle commun des clients d'integration.

Regroupe la plomberie partagee par tous les fournisseurs:
- cycle de vie (initialize, is_ready, test_connection, close)
- client httpx unique cree a la demande (connection pooling)
- requetes avec retry/deadline et interpretation du statut HTTP
- rafraichissement unique des identifiants sur 401
- cache disque optionnel (pattern cache-first)

Chaque client concret declare son descripteur (source, name, capacites...)
en attributs de classe et implemente les methodes de ses capacites.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

import httpx
from loguru import logger

from src.adapters.api.cache import APICache
from src.adapters.api.retry import RetryPolicy, raise_for_status, request_with_retry
from src.core.exceptions import IntegrationError, IntegrationNotReadyError
from src.core.ports.integrations import ConnectionStatus, IntegrationInfo, integration_info
from src.core.value_objects.media_type import MediaType
from src.core.value_objects.settings import IntegrationConfig
from src.utils.constants import DEFAULT_LANGUAGE

T = TypeVar("T")


class BaseIntegrationClient:
    """
    Classe de base des clients d'integration.

    Attributes:
        BASE_URL: URL de base de l'API du fournisseur
        source: Identifiant de l'integration ("tmdb", "tvdb", ...)
        name: Nom affiche
        requires_api_key: Une cle API est necessaire pour etre pret
    """

    BASE_URL = ""

    source = ""
    name = ""
    description = ""
    api_key_url: Optional[str] = None
    requires_api_key = True
    uses_oauth = False
    provides_metadata = False
    supports_movies = False
    supports_shows = False
    supports_anime = False
    rating_sources: tuple[str, ...] = ()

    def __init__(
        self,
        cache: Optional[APICache] = None,
        policy: Optional[RetryPolicy] = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        """
        Initialise le client (non pret tant que initialize() n'a pas ete appele).

        Args:
            cache: Cache disque optionnel pour les recherches et details
            policy: Politique de retry/deadline (defaut: RetryPolicy())
            language: Langue par defaut des metadonnees
        """
        self._cache = cache
        self._policy = policy or RetryPolicy()
        self._default_language = language
        self._language = language
        self._config: Optional[IntegrationConfig] = None
        self._api_key: Optional[str] = None
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------
    # Cycle de vie
    # ------------------------------------------------------------------

    async def initialize(self, config: IntegrationConfig) -> None:
        """
        Lit la configuration de l'integration.

        Une cle API manquante laisse l'integration non prete sans lever.
        Le client HTTP existant est ferme pour prendre en compte les
        nouveaux identifiants.
        """
        await self.close()
        self._config = config
        self._api_key = config.api_key or None
        self._language = config.option("language", self._default_language)

        if self.requires_api_key and not self._api_key:
            logger.warning(f"{self.name}: cle API manquante, integration inactive")

        await self._on_initialize(config)

    async def _on_initialize(self, config: IntegrationConfig) -> None:
        """Point d'extension pour les initialisations specifiques."""

    def is_ready(self) -> bool:
        """Vrai si initialize() a ete appele avec les identifiants requis."""
        if self._config is None:
            return False
        return not self.requires_api_key or bool(self._api_key)

    def supports_media_type(self, media_type: MediaType) -> bool:
        if media_type == MediaType.MOVIE:
            return self.supports_movies
        return self.supports_shows

    def info(self) -> IntegrationInfo:
        """Description de l'integration pour l'affichage."""
        return integration_info(self)

    async def test_connection(self) -> ConnectionStatus:
        """
        Verifie les identifiants aupres du fournisseur.

        Ne leve jamais: les erreurs sont retournees dans ConnectionStatus.
        """
        if not self.is_ready():
            return ConnectionStatus(False, "Integration not configured")
        try:
            await self._check_connection()
        except IntegrationError as e:
            logger.warning(f"{self.name}: test de connexion en echec: {e}")
            return ConnectionStatus(False, str(e))
        return ConnectionStatus(True, "Connected")

    async def _check_connection(self) -> None:
        """Appel leger validant les identifiants (a surcharger)."""
        raise NotImplementedError

    async def close(self) -> None:
        """Ferme le client HTTP et libere les ressources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _ensure_ready(self) -> None:
        if not self.is_ready():
            raise IntegrationNotReadyError(self.source)

    def _default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    def _default_params(self) -> dict[str, str]:
        return {}

    def _auth_headers(self) -> dict[str, str]:
        """Headers d'authentification recalcules a chaque requete."""
        return {}

    def _get_client(self) -> httpx.AsyncClient:
        """
        Retourne le client HTTP, le cree si necessaire (lazy init).

        Utilise un client unique pour beneficier du connection pooling.
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                headers=self._default_headers(),
                params=self._default_params(),
                timeout=httpx.Timeout(self._policy.deadline),
            )
        return self._client

    async def _send(
        self, method: str, path: str, headers: Optional[dict[str, str]] = None, **kwargs
    ) -> httpx.Response:
        request_headers = {**self._auth_headers(), **(headers or {})}
        return await request_with_retry(
            self._get_client(),
            method,
            path,
            policy=self._policy,
            source=self.source,
            headers=request_headers,
            **kwargs,
        )

    def _current_credential(self) -> Optional[str]:
        """Identifiant d'authentification courant (jeton), None si aucun."""
        return None

    async def _refresh_credentials(self, stale: Optional[str]) -> bool:
        """
        Renouvelle les identifiants apres un 401.

        Args:
            stale: Identifiant utilise par la requete refusee. S'il a deja
                ete remplace par un appel concurrent, aucun renouvellement
                n'est necessaire.

        Returns:
            True si de nouveaux identifiants sont disponibles (la requete
            est alors rejouee une fois), False sinon.
        """
        return False

    async def _request(self, method: str, path: str, **kwargs) -> Optional[httpx.Response]:
        """
        Execute une requete authentifiee.

        Returns:
            La reponse, ou None si le fournisseur repond 404

        Raises:
            IntegrationNotReadyError: Integration non initialisee
            AuthenticationError: 401 persistant apres rafraichissement
            TransientServiceError: Erreur temporaire apres epuisement du retry
            IntegrationError: Autre erreur 4xx
        """
        self._ensure_ready()
        credential = self._current_credential()
        response = await self._send(method, path, **kwargs)
        if response.status_code == 401 and await self._refresh_credentials(credential):
            logger.info(f"{self.name}: identifiants renouveles, nouvelle tentative")
            response = await self._send(method, path, **kwargs)
        return raise_for_status(response, self.source)

    async def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Optional[Any]:
        """GET JSON; None si 404."""
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        response = await self._request("GET", path, params=clean_params)
        if response is None:
            return None
        return response.json()

    async def _cached(
        self, key: str, ttl: int, factory: Callable[[], Awaitable[T]]
    ) -> T:
        """Pattern cache-first si un cache est configure."""
        if self._cache is None:
            return await factory()
        return await self._cache.get_or_set(key, ttl, factory)

    @property
    def _search_ttl(self) -> int:
        return self._cache.search_ttl if self._cache else APICache.SEARCH_TTL

    @property
    def _details_ttl(self) -> int:
        return self._cache.details_ttl if self._cache else APICache.DETAILS_TTL
