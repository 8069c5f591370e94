"""
Point d'entrée CLI de CineMeta.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from loguru import logger

from .adapters.cli.commands import (
    clear_cache,
    identify,
    integrations,
    resolve,
    snapshots,
    test_connections,
    trakt_auth,
)
from .config import Settings, split_list
from .container import Container
from .logging_config import configure_from_settings

app = typer.Typer(
    name="cinemeta",
    help="Moteur de resolution de metadonnees films et series",
)
container = Container()

# Etat global pour les options de verbosite
state = {"verbose": 0, "quiet": False}


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Augmenter la verbosite (-v, -vv, -vvv)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Mode silencieux (erreurs uniquement)"),
    ] = False,
) -> None:
    """CineMeta - Identification et cache multi-fournisseurs."""
    if quiet:
        state["quiet"] = True
        configure_from_settings(get_config(), quiet=True)
    else:
        state["verbose"] = verbose
        if verbose:
            configure_from_settings(get_config(), verbose=True)


app.command()(identify)
app.command()(resolve)
app.command()(integrations)
app.command()(snapshots)
app.command(name="test-connections")(test_connections)
app.command(name="trakt-auth")(trakt_auth)
app.command(name="clear-cache")(clear_cache)


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    logger.info("Configuration CineMeta")
    typer.echo(f"Base de données : {config.database_url}")
    typer.echo(f"Cache API : {config.cache_dir}")
    typer.echo(f"API TMDB : {'activée' if config.tmdb_enabled else 'désactivée'}")
    typer.echo(f"API TVDB : {'activée' if config.tvdb_enabled else 'désactivée'}")
    typer.echo(f"Priorité films : {', '.join(split_list(config.movie_integrations))}")
    typer.echo(f"Priorité séries : {', '.join(split_list(config.tv_integrations))}")
    typer.echo(f"Priorité animes : {', '.join(split_list(config.anime_integrations))}")
    typer.echo(f"Seuil d'association : {config.auto_match_threshold:.0%}")
    typer.echo(f"Langue : {config.metadata_language}")
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo("CineMeta v0.1.0")


def main() -> None:
    """Point d'entrée de l'application."""
    # Charge la configuration et configure le logging
    configure_from_settings(container.config())

    # Initialise la base de données (crée les tables si nécessaire)
    container.database.init()

    logger.info("Démarrage de CineMeta", version="0.1.0")

    # Lance la CLI
    app()


if __name__ == "__main__":
    main()
