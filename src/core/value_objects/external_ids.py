"""
Identifiants externes d'un media chez les differents fournisseurs.

Un meme film ou une meme serie est connu sous un identifiant different
chez chaque fournisseur (TMDB, TVDB, IMDb, ...). ExternalIds regroupe ces
identifiants de maniere creuse et permet de les fusionner au fil des
recuperations de details.
"""

from dataclasses import asdict, dataclass, fields, replace
from typing import Optional


@dataclass(frozen=True)
class ExternalIds:
    """
    Correspondance creuse fournisseur -> identifiant.

    Attributs :
        tmdb : ID The Movie Database
        tvdb : ID TheTVDB
        imdb : ID IMDb (format "tt1234567")
        anidb : ID AniDB
        anilist : ID AniList
        mal : ID MyAnimeList
        trakt : ID Trakt
    """

    tmdb: Optional[str] = None
    tvdb: Optional[str] = None
    imdb: Optional[str] = None
    anidb: Optional[str] = None
    anilist: Optional[str] = None
    mal: Optional[str] = None
    trakt: Optional[str] = None

    @classmethod
    def provider_names(cls) -> tuple[str, ...]:
        """Retourne les noms des fournisseurs connus."""
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_provider(cls, provider_id: str, local_id: object) -> "ExternalIds":
        """
        Construit un ExternalIds a partir de l'ID local d'un fournisseur.

        Un fournisseur inconnu produit un ExternalIds vide.
        """
        if provider_id not in cls.provider_names() or local_id in (None, ""):
            return cls()
        return cls(**{provider_id: str(local_id)})

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ExternalIds":
        """Construit un ExternalIds depuis un dictionnaire (cles inconnues ignorees)."""
        if not data:
            return cls()
        known = cls.provider_names()
        return cls(
            **{
                key: str(value)
                for key, value in data.items()
                if key in known and value not in (None, "")
            }
        )

    def for_provider(self, provider_id: str) -> Optional[str]:
        """Retourne l'ID connu pour ce fournisseur, ou None."""
        if provider_id not in self.provider_names():
            return None
        return getattr(self, provider_id)

    def merge(self, other: "ExternalIds") -> "ExternalIds":
        """
        Fusionne deux ensembles d'identifiants.

        Les valeurs non nulles de `other` remplacent celles de self.
        """
        changes = {
            name: value
            for name, value in asdict(other).items()
            if value is not None
        }
        return replace(self, **changes)

    def as_dict(self) -> dict[str, str]:
        """Retourne uniquement les identifiants renseignes."""
        return {name: value for name, value in asdict(self).items() if value is not None}

    def is_empty(self) -> bool:
        """Vrai si aucun identifiant n'est connu."""
        return not self.as_dict()
