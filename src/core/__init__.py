"""
Couche domaine (core).

Contient les entités métier, ports (interfaces abstraites), et objets valeur.
Cette couche n'a AUCUNE dépendance vers l'infrastructure (adapters, frameworks, BDD).

Sous-packages :
- entities/ : Entités métier (SearchResult, MovieDetails, ShowDetails, Artwork...)
- ports/ : Capacités des intégrations et contrat de stockage des instantanés
- value_objects/ : Objets valeur immutables (MediaType, ExternalIds, MetadataSettings)
"""
