"""
Objets valeur immutables representant des concepts du domaine sans identite.

Les objets valeur sont definis par leurs attributs plutot que par une identite.
Ils sont immutables et peuvent etre librement partages et compares par valeur.

Exports :
- MediaType : Type de media (MOVIE, TVSHOW)
- MediaCategory : Categorie de priorite (MOVIE, TV, ANIME)
- ExternalIds : Identifiants du media chez chaque fournisseur
- OAuthTokens : Jetons OAuth2 avec expiration
- IntegrationConfig : Configuration d'une integration
- MetadataSettings : Instantane des reglages de resolution
"""

from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaCategory, MediaType
from src.core.value_objects.settings import (
    IntegrationConfig,
    MetadataSettings,
    OAuthTokens,
)

__all__ = [
    "ExternalIds",
    "MediaCategory",
    "MediaType",
    "OAuthTokens",
    "IntegrationConfig",
    "MetadataSettings",
]
