"""
Provider metadata snapshot entity.

One snapshot per (media, provider): the full detail record a provider
returned for a library item, kept so the display layer can switch the
active source without a new network round-trip.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from src.core.entities.media import MovieDetails, ShowDetails
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType


@dataclass
class ProviderSnapshot:
    """
    Cached provider record for a library item.

    Attributes:
        media_type: Movie or TV show
        media_id: Library-side id of the item
        provider: Integration id that produced the record
        provider_media_id: Id of the item on that provider
        title: Title reported by the provider
        release_date: Release / first air date reported by the provider
        external_ids: Ids reported by the provider
        payload: Full serialized detail record
        fetched_at: When the record was fetched (UTC)
    """

    media_type: MediaType
    media_id: str
    provider: str
    provider_media_id: str
    title: str
    release_date: Optional[str] = None
    external_ids: ExternalIds = field(default_factory=ExternalIds)
    payload: dict[str, Any] = field(default_factory=dict)
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_details(
        cls,
        media_id: str,
        details: Union[MovieDetails, ShowDetails],
    ) -> "ProviderSnapshot":
        """Build a snapshot from a movie or show detail record."""
        if isinstance(details, MovieDetails):
            release_date = details.release_date
        else:
            release_date = details.first_air_date
        return cls(
            media_type=details.media_type,
            media_id=media_id,
            provider=details.source,
            provider_media_id=details.id,
            title=details.title,
            release_date=release_date,
            external_ids=details.external_ids,
            payload=asdict(details),
        )
