"""
Mecanisme de retry avec backoff exponentiel pour les API externes.

Politique commune a toutes les integrations:
- chaque tentative est bornee par un delai maximum (deadline)
- les erreurs temporaires (reseau, timeout, 5xx, 429) sont relancees avec
  un delai croissant et du jitter aleatoire
- un 429 avec header Retry-After attend la duree demandee (bornee)
- les autres reponses sont retournees telles quelles a l'appelant, qui les
  convertit via raise_for_status() (404 -> None, 401 -> AuthenticationError,
  autres 4xx -> IntegrationError, sans retry)

Usage:
    # Avec le decorateur
    @with_retry(max_attempts=3, max_wait=10)
    async def my_api_call():
        ...

    # Avec la fonction helper
    response = await request_with_retry(client, "GET", url, policy=policy)
    response = raise_for_status(response, source="tmdb")
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from src.core.exceptions import (
    AuthenticationError,
    IntegrationError,
    RateLimitError,
    TransientServiceError,
)
from src.utils.constants import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY,
    DEFAULT_REQUEST_DEADLINE,
)

__all__ = [
    "RateLimitError",
    "RetryPolicy",
    "raise_for_status",
    "request_with_retry",
    "with_retry",
]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Parametres du retry partages par les integrations.

    Attributes:
        max_attempts: Nombre maximum de tentatives (defaut: 3)
        base_delay: Multiplicateur du backoff exponentiel en secondes (defaut: 1)
        max_delay: Delai maximum entre deux tentatives en secondes (defaut: 10)
        deadline: Duree maximum d'une tentative en secondes (defaut: 10)
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    deadline: float = DEFAULT_REQUEST_DEADLINE


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.debug(
        f"Nouvelle tentative {retry_state.attempt_number + 1} apres erreur: {error}"
    )


def _wait_strategy(base_delay: float, max_delay: float):
    """
    Backoff exponentiel avec jitter, sauf si le serveur impose Retry-After.
    """
    exponential = wait_random_exponential(multiplier=base_delay, max=max_delay)

    def _wait(retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return float(min(error.retry_after, max_delay))
        return exponential(retry_state)

    return _wait


def with_retry(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    max_wait: float = DEFAULT_MAX_DELAY,
    base_wait: float = DEFAULT_BASE_DELAY,
):
    """
    Decorateur pour relancer sur erreur temporaire avec backoff exponentiel.

    Relance sur TransientServiceError (et donc RateLimitError). Utilise
    wait_random_exponential pour ajouter du jitter et eviter le "thundering
    herd" quand plusieurs clients relancent en meme temps. L'erreur de la
    derniere tentative est propagee telle quelle.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 3)
        max_wait: Delai maximum entre les tentatives en secondes (defaut: 10)
        base_wait: Multiplicateur du backoff en secondes (defaut: 1)

    Returns:
        Decorateur a appliquer sur une fonction async

    Example:
        @with_retry(max_attempts=3, max_wait=10)
        async def fetch_data():
            # Sera relance jusqu'a 3 fois si TransientServiceError est levee
            ...
    """
    return retry(
        retry=retry_if_exception_type(TransientServiceError),
        wait=_wait_strategy(base_wait, max_wait),
        stop=stop_after_attempt(max_attempts),
        before_sleep=_log_retry,
        reraise=True,
    )


def _raise_for_transient(response: httpx.Response, source: Optional[str]) -> None:
    """Convertit 429 et 5xx en erreurs relancables."""
    if response.status_code == 429:
        retry_after_header = response.headers.get("Retry-After")
        retry_after = (
            int(retry_after_header)
            if retry_after_header and retry_after_header.isdigit()
            else None
        )
        raise RateLimitError(retry_after, source)
    if response.status_code >= 500:
        raise TransientServiceError(
            f"HTTP {response.status_code} on {response.request.method} {response.request.url.path}",
            source,
        )


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    policy: Optional[RetryPolicy] = None,
    source: Optional[str] = None,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP avec deadline par tentative et retry automatique.

    Les erreurs reseau, les depassements de deadline, les 5xx et les 429 sont
    relances avec backoff exponentiel. Les autres reponses (2xx, 4xx) sont
    retournees sans retry.

    Args:
        client: Client httpx async a utiliser
        method: Methode HTTP (GET, POST, etc.)
        url: URL a appeler
        policy: Politique de retry (defaut: RetryPolicy())
        source: Identifiant de l'integration, pour les messages d'erreur
        **kwargs: Arguments supplementaires passes a client.request()

    Returns:
        httpx.Response de la derniere tentative

    Raises:
        RateLimitError: Si 429 apres epuisement des tentatives
        TransientServiceError: Si reseau/timeout/5xx apres epuisement des tentatives
    """
    policy = policy or RetryPolicy()

    @with_retry(
        max_attempts=policy.max_attempts,
        max_wait=policy.max_delay,
        base_wait=policy.base_delay,
    )
    async def _do_request() -> httpx.Response:
        try:
            response = await asyncio.wait_for(
                client.request(method, url, **kwargs), timeout=policy.deadline
            )
        except asyncio.TimeoutError as e:
            raise TransientServiceError(
                f"Timeout after {policy.deadline}s on {method} {url}", source
            ) from e
        except httpx.TransportError as e:
            raise TransientServiceError(
                f"Network error on {method} {url}: {e}", source
            ) from e
        _raise_for_transient(response, source)
        return response

    return await _do_request()


def raise_for_status(
    response: httpx.Response, source: Optional[str] = None
) -> Optional[httpx.Response]:
    """
    Interprete le statut d'une reponse non relancable.

    Args:
        response: Reponse retournee par request_with_retry
        source: Identifiant de l'integration

    Returns:
        La reponse si 2xx/3xx, None si 404

    Raises:
        AuthenticationError: Sur 401
        IntegrationError: Sur les autres 4xx
    """
    status = response.status_code
    if status == 404:
        return None
    if status == 401:
        raise AuthenticationError("Credentials rejected (HTTP 401)", source)
    if status >= 400:
        raise IntegrationError(f"HTTP {status}: {response.text[:200]}", source)
    return response
