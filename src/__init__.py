"""
CineMeta - Moteur de resolution de metadonnees films et series.

Ce package identifie un titre (et son annee) aupres de plusieurs catalogues
externes, classe les candidats par confiance et met en cache les details de
chaque fournisseur pour changer de source d'affichage sans appel reseau.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entités, ports, objets valeur)
- services/ : Couche application (scoring, orchestration de la resolution)
- adapters/ : Couche infrastructure (CLI, clients API)
- infrastructure/ : Persistance des instantanés (SQLModel)
"""
