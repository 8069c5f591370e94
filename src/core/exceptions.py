"""
Exceptions du domaine pour les integrations de metadonnees.

Hierarchie:
- IntegrationError : echec lie a un fournisseur (base)
  - TransientServiceError : timeout, erreur reseau, 5xx (relancable)
    - RateLimitError : 429 Too Many Requests (relancable)
  - AuthenticationError : identifiants refuses apres tentative de rafraichissement
  - NotSupportedError : requete structurellement impossible pour ce fournisseur
  - IntegrationNotReadyError : capacite utilisee avant initialize() reussi
  - MediaNotFoundError : identifiant inconnu du fournisseur
"""

from typing import Optional


class IntegrationError(Exception):
    """
    Erreur levee par une integration externe.

    Attributes:
        source: Identifiant de l'integration en cause (ex: "tmdb"), ou None
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}" if source else message)


class TransientServiceError(IntegrationError):
    """Echec temporaire du service distant (timeout, reseau, 5xx)."""


class RateLimitError(TransientServiceError):
    """
    Exception levee quand l'API retourne 429 Too Many Requests.

    Attributes:
        retry_after: Nombre de secondes a attendre (depuis le header Retry-After),
                     ou None si non specifie.
    """

    def __init__(
        self, retry_after: Optional[int] = None, source: Optional[str] = None
    ) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limited. Retry after: {retry_after}s", source)


class AuthenticationError(IntegrationError):
    """Identifiants refuses par le fournisseur (401 persistant)."""


class NotSupportedError(IntegrationError):
    """Operation impossible pour ce fournisseur (ex: film demande a TVDB)."""


class IntegrationNotReadyError(IntegrationError):
    """Integration utilisee sans initialisation reussie."""

    def __init__(self, source: str) -> None:
        super().__init__("Integration not initialized or missing credentials", source)


class MediaNotFoundError(IntegrationError):
    """Le fournisseur ne connait pas l'identifiant demande."""

    def __init__(self, media_id: str, source: Optional[str] = None) -> None:
        self.media_id = media_id
        super().__init__(f"Media not found: {media_id}", source)
