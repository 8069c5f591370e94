"""
Dataclasses et enums du gestionnaire de resolution.

Chaque appel a un fournisseur produit un ProviderOutcome (valeur ou erreur),
ce qui permet de filtrer les succes pour le scoring et la mise en cache tout
en signalant les fournisseurs en echec.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar, Union

from src.core.entities.artwork import Artwork
from src.core.entities.media import MovieDetails, ScoredSearchResult, ShowDetails
from src.core.entities.provider_metadata import ProviderSnapshot
from src.core.entities.ratings import AggregateRatings
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType

T = TypeVar("T")

Details = Union[MovieDetails, ShowDetails]


@dataclass(frozen=True)
class ProviderOutcome(Generic[T]):
    """
    Resultat d'un appel a un fournisseur.

    Attributes:
        provider: Identifiant de l'integration
        value: Valeur retournee (None en cas d'echec)
        error: Exception levee par le fournisseur, ou None
    """

    provider: str
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class IdentifyStatus(str, Enum):
    """Issue d'une identification."""

    MATCHED = "matched"
    SUGGESTIONS = "suggestions"
    UNRESOLVED = "unresolved"


@dataclass
class IdentifyResult:
    """
    Resultat d'une identification titre/annee.

    - MATCHED : le meilleur candidat atteint le seuil d'association automatique
    - SUGGESTIONS : au moins un fournisseur a repondu, aucun candidat au seuil
      (liste eventuellement vide a faire valider manuellement)
    - UNRESOLVED : aucun fournisseur n'a pu etre interroge, ou tous ont echoue

    Attributes:
        status: Issue de l'identification
        match: Meilleur candidat si MATCHED
        candidates: Candidats classes par confiance decroissante
        outcomes: Resultat de recherche par fournisseur interroge
    """

    status: IdentifyStatus
    match: Optional[ScoredSearchResult] = None
    candidates: list[ScoredSearchResult] = field(default_factory=list)
    outcomes: dict[str, ProviderOutcome] = field(default_factory=dict)

    @property
    def is_matched(self) -> bool:
        return self.status == IdentifyStatus.MATCHED

    @property
    def providers(self) -> list[str]:
        """Fournisseurs interroges, dans l'ordre de priorite."""
        return list(self.outcomes)

    @property
    def failed_providers(self) -> list[str]:
        return [p for p, outcome in self.outcomes.items() if not outcome.succeeded]


@dataclass
class SnapshotSet:
    """
    Instantanes de tous les fournisseurs pour un media identifie.

    Attributes:
        media_id: Identifiant du media cote bibliotheque
        media_type: Film ou serie
        external_ids: Identifiants fusionnes de tous les fournisseurs
        details: Details par fournisseur (succes uniquement)
        outcomes: Resultat de recuperation par fournisseur tente
        artwork: Illustrations (si activees et disponibles)
        ratings: Notes filtrees par sources autorisees (si activees)
        persisted: Fournisseurs dont l'instantane a ete enregistre
        persist_errors: Erreur d'enregistrement par fournisseur
        supplemented_from: Fournisseurs ayant complete les logos du
            fournisseur principal
    """

    media_id: str
    media_type: MediaType
    external_ids: ExternalIds = field(default_factory=ExternalIds)
    details: dict[str, Details] = field(default_factory=dict)
    outcomes: dict[str, ProviderOutcome] = field(default_factory=dict)
    artwork: Optional[Artwork] = None
    ratings: Optional[AggregateRatings] = None
    persisted: list[str] = field(default_factory=list)
    persist_errors: dict[str, Exception] = field(default_factory=dict)
    supplemented_from: list[str] = field(default_factory=list)

    @property
    def providers(self) -> list[str]:
        """Fournisseurs ayant fourni des details."""
        return list(self.details)

    @property
    def failed_providers(self) -> list[str]:
        return [p for p, outcome in self.outcomes.items() if not outcome.succeeded]

    def snapshots(self) -> list[ProviderSnapshot]:
        """Construit un instantane par fournisseur ayant repondu."""
        return [
            ProviderSnapshot.from_details(self.media_id, details)
            for details in self.details.values()
        ]


@dataclass
class ResolveResult:
    """Identification suivie, si association, de la recuperation complete."""

    identify: IdentifyResult
    snapshots: Optional[SnapshotSet] = None

    @property
    def status(self) -> IdentifyStatus:
        return self.identify.status
