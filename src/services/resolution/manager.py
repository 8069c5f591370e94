"""
Gestionnaire de resolution des metadonnees.

ResolutionManager orchestre les integrations enregistrees:
- listes de priorite par categorie (films, series, animes)
- recherche concurrente sur tous les fournisseurs prets, scoring, seuil
- recuperation des details chez chaque fournisseur et mise en cache des
  instantanes, pour changer de source d'affichage sans nouvel appel reseau

Un fournisseur en echec est isole: son erreur est journalisee et reportee
dans le resultat, sans empecher l'exploitation des autres fournisseurs.
Les reglages sont un instantane immutable lu une fois par appel et remplace
en bloc par update_settings().
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace
from functools import partial
from typing import Any, Optional, TypeVar

from loguru import logger

from src.core.entities.artwork import Artwork
from src.core.entities.ratings import AggregateRatings
from src.core.ports.integrations import (
    ArtworkCapability,
    BaseIntegration,
    IntegrationInfo,
    MetadataCapability,
    RatingsCapability,
    SyncCapability,
    has_artwork_capability,
    has_metadata_capability,
    has_ratings_capability,
    has_sync_capability,
    integration_info,
)
from src.core.ports.repositories import IProviderMetadataRepository
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaCategory, MediaType
from src.core.value_objects.settings import IntegrationConfig, MetadataSettings
from src.services.matcher import MatcherService
from src.services.resolution.dataclasses import (
    IdentifyResult,
    IdentifyStatus,
    ProviderOutcome,
    ResolveResult,
    SnapshotSet,
)

T = TypeVar("T")

# Listes de societes dont les logos manquants sont completes
_LOGO_FIELDS = {
    MediaType.MOVIE: ("production_companies",),
    MediaType.TVSHOW: ("networks", "production_companies"),
}


def _logo_key(name: str) -> str:
    return (name or "").strip().lower()


def _merge_logos(entries: list, fallback: Iterable) -> list:
    """
    Renseigne logo_path des entrees qui n'en ont pas.

    Les entrees sont associees par nom (casse et espaces ignores).

    Args:
        entries: Societes ou chaines du fournisseur principal
        fallback: Societes ou chaines d'un autre fournisseur

    Returns:
        Nouvelle liste; les entrees deja pourvues d'un logo sont inchangees
    """
    logos: dict[str, str] = {}
    for item in fallback:
        if item.logo_path:
            logos.setdefault(_logo_key(item.name), item.logo_path)
    return [
        replace(entry, logo_path=logos[_logo_key(entry.name)])
        if not entry.logo_path and _logo_key(entry.name) in logos
        else entry
        for entry in entries
    ]


class ResolutionManager:
    """
    Orchestre l'identification et la mise en cache multi-fournisseurs.

    Example:
        manager = ResolutionManager(settings, [tmdb, tvdb, mdblist, fanart])
        await manager.initialize_all()

        result = await manager.identify("The Matrix", 1999, MediaType.MOVIE)
        if result.is_matched:
            ids = ExternalIds.from_provider(result.match.source, result.match.id)
            snapshots = await manager.fetch_and_cache_all("42", ids, MediaType.MOVIE)
    """

    def __init__(
        self,
        settings: MetadataSettings,
        integrations: Iterable[BaseIntegration] = (),
        repository: Optional[IProviderMetadataRepository] = None,
        matcher: Optional[MatcherService] = None,
    ) -> None:
        """
        Initialise le gestionnaire.

        Args:
            settings: Reglages initiaux
            integrations: Integrations a enregistrer (non initialisees)
            repository: Stockage des instantanes (optionnel)
            matcher: Service de scoring (defaut: MatcherService())
        """
        self._settings = settings
        self._integrations: dict[str, BaseIntegration] = {}
        self._repository = repository
        self._matcher = matcher or MatcherService()
        for integration in integrations:
            self.register_integration(integration)

    # ------------------------------------------------------------------
    # Reglages et integrations
    # ------------------------------------------------------------------

    @property
    def settings(self) -> MetadataSettings:
        """Instantane courant des reglages."""
        return self._settings

    def update_settings(self, settings: MetadataSettings) -> None:
        """
        Remplace les reglages en bloc.

        Les appels deja en cours conservent l'instantane lu a leur debut.
        """
        self._settings = settings
        logger.debug("Reglages de resolution remplaces")

    def register_integration(self, integration: BaseIntegration) -> None:
        """Enregistre une integration (remplace celle de meme identifiant)."""
        self._integrations[integration.source] = integration

    def get_integration(self, integration_id: str) -> Optional[BaseIntegration]:
        return self._integrations.get(integration_id)

    async def initialize_all(self) -> None:
        """
        Initialise concurremment les integrations configurees.

        Une integration absente des reglages reste non initialisee. Une
        erreur d'initialisation est journalisee, jamais propagee.
        """
        settings = self._settings
        targets = [
            (integration, settings.integrations[integration_id])
            for integration_id, integration in self._integrations.items()
            if integration_id in settings.integrations
        ]
        results = await asyncio.gather(
            *(integration.initialize(config) for integration, config in targets),
            return_exceptions=True,
        )
        for (integration, _), result in zip(targets, results):
            if isinstance(result, Exception):
                logger.error(f"Initialisation de {integration.source} en echec: {result}")

    async def update_integration_config(
        self, integration_id: str, config: IntegrationConfig
    ) -> None:
        """
        Remplace la configuration d'une integration et la reinitialise.

        Args:
            integration_id: Identifiant de l'integration
            config: Nouvelle configuration complete
        """
        if config.id != integration_id:
            config = replace(config, id=integration_id)
        self._settings = self._settings.with_integration(config)

        integration = self._integrations.get(integration_id)
        if integration is not None:
            await integration.initialize(config)

    def is_integration_ready(
        self, integration_id: str, settings: Optional[MetadataSettings] = None
    ) -> bool:
        """Vrai si l'integration est enregistree, activee et prete."""
        settings = settings or self._settings
        integration = self._integrations.get(integration_id)
        return (
            integration is not None
            and settings.is_enabled(integration_id)
            and integration.is_ready()
        )

    def get_integration_infos(self) -> list[IntegrationInfo]:
        """Description de toutes les integrations enregistrees."""
        return [integration_info(i) for i in self._integrations.values()]

    def _first_ready(
        self, check: Callable[[object], bool], settings: Optional[MetadataSettings] = None
    ) -> Optional[Any]:
        for integration_id, integration in self._integrations.items():
            if check(integration) and self.is_integration_ready(integration_id, settings):
                return integration
        return None

    def get_ratings_integration(self) -> Optional[RatingsCapability]:
        """Premiere integration de notes prete, ou None."""
        return self._first_ready(has_ratings_capability)

    def get_artwork_integration(self) -> Optional[ArtworkCapability]:
        """Premiere integration d'illustrations prete, ou None."""
        return self._first_ready(has_artwork_capability)

    def get_sync_integration(self) -> Optional[SyncCapability]:
        """Premiere integration de synchronisation prete, ou None."""
        return self._first_ready(has_sync_capability)

    def metadata_providers(
        self,
        media_type: MediaType,
        is_anime: bool = False,
        settings: Optional[MetadataSettings] = None,
    ) -> list[str]:
        """
        Liste ordonnee des fournisseurs de metadonnees utilisables.

        Filtre la liste de priorite de la categorie: integration enregistree,
        activee, prete, capable de metadonnees et supportant le type de media.
        """
        settings = settings or self._settings
        category = MediaCategory.for_media(media_type, is_anime)
        providers = []
        for integration_id in settings.priority_for(category):
            integration = self._integrations.get(integration_id)
            if integration is None or not has_metadata_capability(integration):
                continue
            if not self.is_integration_ready(integration_id, settings):
                continue
            if not integration.supports_media_type(media_type):
                continue
            if is_anime and not integration.supports_anime:
                continue
            providers.append(integration_id)
        return providers

    async def close_all(self) -> None:
        """Ferme toutes les integrations enregistrees."""
        await asyncio.gather(*(i.close() for i in self._integrations.values()))

    # ------------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------------

    async def identify(
        self,
        title: str,
        year: Optional[int],
        media_type: MediaType,
        is_anime: bool = False,
    ) -> IdentifyResult:
        """
        Identifie un media a partir de son titre et de son annee.

        Interroge concurremment chaque fournisseur utilisable, fusionne les
        resultats des fournisseurs ayant repondu et les classe par confiance.

        Args:
            title: Titre extrait par le scanner
            year: Annee extraite, ou None
            media_type: Film ou serie
            is_anime: Utiliser la liste de priorite anime

        Returns:
            IdentifyResult MATCHED, SUGGESTIONS ou UNRESOLVED
        """
        settings = self._settings
        providers = self.metadata_providers(media_type, is_anime, settings)
        if not providers:
            logger.warning(f"Aucun fournisseur de metadonnees pret pour {media_type.value}")
            return IdentifyResult(status=IdentifyStatus.UNRESOLVED)

        calls = {}
        for provider_id in providers:
            integration: MetadataCapability = self._integrations[provider_id]
            if media_type == MediaType.MOVIE:
                calls[provider_id] = partial(integration.search_movies, title, year)
            else:
                calls[provider_id] = partial(integration.search_shows, title, year)

        outcomes = await self._gather(calls, "recherche")

        if not any(outcome.succeeded for outcome in outcomes.values()):
            logger.warning(
                f"Identification impossible pour '{title}': tous les fournisseurs ont echoue"
            )
            return IdentifyResult(status=IdentifyStatus.UNRESOLVED, outcomes=outcomes)

        results = [
            result
            for outcome in outcomes.values()
            if outcome.succeeded
            for result in outcome.value or []
        ]
        candidates = self._matcher.score_results(results, title, year)

        if candidates and candidates[0].confidence >= settings.auto_match_threshold:
            best = candidates[0]
            logger.info(
                f"'{title}' associe a {best.source}:{best.id} ({best.confidence:.2f})"
            )
            return IdentifyResult(
                status=IdentifyStatus.MATCHED,
                match=best,
                candidates=candidates,
                outcomes=outcomes,
            )

        logger.info(f"'{title}': {len(candidates)} suggestion(s) sous le seuil")
        return IdentifyResult(
            status=IdentifyStatus.SUGGESTIONS,
            candidates=candidates,
            outcomes=outcomes,
        )

    # ------------------------------------------------------------------
    # Recuperation multi-fournisseurs
    # ------------------------------------------------------------------

    async def fetch_and_cache_all(
        self,
        media_id: str,
        identity: ExternalIds,
        media_type: MediaType,
        is_anime: bool = False,
    ) -> SnapshotSet:
        """
        Recupere les details chez chaque fournisseur et les met en cache.

        Premiere passe: chaque fournisseur dont l'identifiant est connu.
        Seconde passe: les fournisseurs restants devenus joignables grace aux
        identifiants fusionnes de la premiere. Les illustrations et les notes
        sont ajoutees si activees. Chaque instantane est enregistre
        independamment des autres.

        Args:
            media_id: Identifiant du media cote bibliotheque
            identity: Identifiants externes connus (au moins un)
            media_type: Film ou serie
            is_anime: Utiliser la liste de priorite anime

        Returns:
            SnapshotSet avec details, identifiants fusionnes et erreurs
        """
        settings = self._settings
        snapshot_set = SnapshotSet(
            media_id=media_id, media_type=media_type, external_ids=identity
        )
        providers = self.metadata_providers(media_type, is_anime, settings)

        await self._fetch_details_pass(snapshot_set, providers, identity, "details")
        # Fournisseurs devenus joignables grace aux identifiants fusionnes
        await self._fetch_details_pass(
            snapshot_set, providers, identity, "details (seconde passe)"
        )
        self._supplement_logos(snapshot_set)

        if settings.fetch_artwork:
            snapshot_set.artwork = await self._fetch_artwork(snapshot_set, settings)
        if settings.fetch_ratings:
            snapshot_set.ratings = await self._fetch_ratings(snapshot_set, settings)

        self._persist(snapshot_set)
        return snapshot_set

    async def _fetch_details_pass(
        self,
        snapshot_set: SnapshotSet,
        providers: list[str],
        identity: ExternalIds,
        label: str,
    ) -> None:
        """Recupere les details des fournisseurs non tentes dont l'ID est connu."""
        calls = {}
        for provider_id in providers:
            local_id = snapshot_set.external_ids.for_provider(provider_id)
            if provider_id in snapshot_set.outcomes or local_id is None:
                continue
            integration: MetadataCapability = self._integrations[provider_id]
            if snapshot_set.media_type == MediaType.MOVIE:
                calls[provider_id] = partial(integration.get_movie_details, local_id)
            else:
                calls[provider_id] = partial(integration.get_show_details, local_id)
        if not calls:
            return

        outcomes = await self._gather(calls, label)
        snapshot_set.outcomes.update(outcomes)
        for provider_id in providers:
            outcome = outcomes.get(provider_id)
            if outcome is not None and outcome.succeeded:
                snapshot_set.details[provider_id] = outcome.value
        snapshot_set.details = {
            p: snapshot_set.details[p] for p in providers if p in snapshot_set.details
        }

        # Fusion par priorite croissante: le fournisseur prioritaire l'emporte,
        # l'identite de depart l'emporte sur tous
        merged = ExternalIds()
        for details in reversed(list(snapshot_set.details.values())):
            merged = merged.merge(details.external_ids)
        snapshot_set.external_ids = merged.merge(identity)

    def _supplement_logos(self, snapshot_set: SnapshotSet) -> None:
        """
        Complete les logos manquants du fournisseur principal.

        Le principal est le premier fournisseur ayant repondu dans l'ordre de
        priorite. Les suivants sont parcourus dans cet ordre jusqu'a ce que
        toutes les societes (et chaines pour une serie) aient un logo.
        """
        if len(snapshot_set.details) < 2:
            return
        primary_id, *fallback_ids = snapshot_set.details
        primary = snapshot_set.details[primary_id]

        for attr in _LOGO_FIELDS[snapshot_set.media_type]:
            entries = getattr(primary, attr)
            for provider_id in fallback_ids:
                if all(entry.logo_path for entry in entries):
                    break
                merged = _merge_logos(entries, getattr(snapshot_set.details[provider_id], attr))
                if merged != entries:
                    entries = merged
                    if provider_id not in snapshot_set.supplemented_from:
                        snapshot_set.supplemented_from.append(provider_id)
            if entries is not getattr(primary, attr):
                primary = replace(primary, **{attr: entries})

        if snapshot_set.supplemented_from:
            logger.debug(
                f"{primary_id}: logos completes depuis "
                f"{', '.join(snapshot_set.supplemented_from)}"
            )
        snapshot_set.details[primary_id] = primary

    async def _fetch_artwork(
        self, snapshot_set: SnapshotSet, settings: MetadataSettings
    ) -> Optional[Artwork]:
        """Illustrations: films par ID TMDB, series par ID TVDB."""
        integration: Optional[ArtworkCapability] = self._first_ready(
            has_artwork_capability, settings
        )
        if integration is None:
            return None

        ids = snapshot_set.external_ids
        if snapshot_set.media_type == MediaType.MOVIE:
            if ids.tmdb is None:
                return None
            call = partial(integration.get_movie_artwork, ids.tmdb)
        else:
            if ids.tvdb is None:
                return None
            call = partial(integration.get_show_artwork, ids.tvdb)

        outcome = await self._run(integration.source, call, "illustrations")
        snapshot_set.outcomes[integration.source] = outcome
        if not outcome.succeeded or outcome.value is None or outcome.value.is_empty():
            return None
        return outcome.value

    async def _fetch_ratings(
        self, snapshot_set: SnapshotSet, settings: MetadataSettings
    ) -> Optional[AggregateRatings]:
        """Notes par ID IMDb, filtrees par les sources autorisees."""
        integration: Optional[RatingsCapability] = self._first_ready(
            has_ratings_capability, settings
        )
        imdb_id = snapshot_set.external_ids.imdb
        if integration is None or imdb_id is None:
            return None

        if snapshot_set.media_type == MediaType.MOVIE:
            call = partial(integration.get_movie_ratings, imdb_id)
        else:
            call = partial(integration.get_show_ratings, imdb_id)

        outcome = await self._run(integration.source, call, "notes")
        snapshot_set.outcomes[integration.source] = outcome
        if not outcome.succeeded or outcome.value is None:
            return None
        ratings = outcome.value.filter(settings.enabled_rating_sources)
        return None if ratings.is_empty() else ratings

    def _persist(self, snapshot_set: SnapshotSet) -> None:
        """Enregistre chaque instantane; une erreur n'affecte que son fournisseur."""
        if self._repository is None:
            return
        for snapshot in snapshot_set.snapshots():
            try:
                self._repository.save_snapshot(snapshot)
            except Exception as e:
                logger.error(
                    f"Enregistrement de l'instantane {snapshot.provider} "
                    f"pour {snapshot_set.media_id} en echec: {e}"
                )
                snapshot_set.persist_errors[snapshot.provider] = e
            else:
                snapshot_set.persisted.append(snapshot.provider)

    async def resolve(
        self,
        title: str,
        year: Optional[int],
        media_type: MediaType,
        media_id: str,
        is_anime: bool = False,
    ) -> ResolveResult:
        """
        Identifie un media puis, s'il est associe, recupere et met en cache
        les details de tous les fournisseurs.
        """
        identify_result = await self.identify(title, year, media_type, is_anime)
        if not identify_result.is_matched:
            return ResolveResult(identify=identify_result)

        match = identify_result.match
        identity = ExternalIds.from_provider(match.source, match.id)
        snapshots = await self.fetch_and_cache_all(media_id, identity, media_type, is_anime)
        return ResolveResult(identify=identify_result, snapshots=snapshots)

    # ------------------------------------------------------------------
    # Execution isolee
    # ------------------------------------------------------------------

    async def _run(
        self, provider_id: str, call: Callable[[], Awaitable[T]], label: str
    ) -> ProviderOutcome[T]:
        """Execute un appel fournisseur et capture son erreur."""
        try:
            value = await call()
        except Exception as e:
            logger.warning(f"{provider_id}: {label} en echec: {e}")
            return ProviderOutcome(provider=provider_id, error=e)
        return ProviderOutcome(provider=provider_id, value=value)

    async def _gather(
        self, calls: dict[str, Callable[[], Awaitable[T]]], label: str
    ) -> dict[str, ProviderOutcome[T]]:
        """Execute les appels concurremment; resultats dans l'ordre des fournisseurs."""
        outcomes = await asyncio.gather(
            *(self._run(provider_id, call, label) for provider_id, call in calls.items())
        )
        return dict(zip(calls, outcomes))
