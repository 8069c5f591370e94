"""
Commandes CLI du moteur de resolution (identify, resolve, integrations,
test-connections, snapshots, trakt-auth, clear-cache).
"""

import asyncio
from typing import Annotated, Optional

import typer
from rich.panel import Panel

from src.adapters.cli.display import (
    display_identify_result,
    display_snapshot_set,
    render_connection_statuses,
    render_integrations,
    render_snapshots,
)
from src.adapters.cli.helpers import (
    console,
    initialized_manager,
    suppress_loguru,
    with_container,
)
from src.core.value_objects.media_type import MediaType


def identify(
    title: Annotated[str, typer.Argument(help="Titre du film ou de la serie")],
    year: Annotated[
        Optional[int], typer.Option("--year", "-y", help="Annee de sortie")
    ] = None,
    media_type: Annotated[
        MediaType, typer.Option("--type", "-t", help="Type de media")
    ] = MediaType.MOVIE,
    anime: Annotated[
        bool, typer.Option("--anime", help="Utiliser la liste de priorite anime")
    ] = False,
) -> None:
    """Identifie un titre aupres des fournisseurs et affiche les candidats."""
    asyncio.run(_identify_async(title, year, media_type, anime))


@with_container(requires_db=False)
async def _identify_async(
    container, title: str, year: Optional[int], media_type: MediaType, anime: bool
) -> None:
    """Implementation async de la commande identify."""
    async with initialized_manager(container) as manager:
        result = await manager.identify(title, year, media_type, is_anime=anime)
        threshold = manager.settings.auto_match_threshold

    with suppress_loguru():
        display_identify_result(result, threshold)


def resolve(
    title: Annotated[str, typer.Argument(help="Titre du film ou de la serie")],
    media_id: Annotated[str, typer.Argument(help="Identifiant du media dans la bibliotheque")],
    year: Annotated[
        Optional[int], typer.Option("--year", "-y", help="Annee de sortie")
    ] = None,
    media_type: Annotated[
        MediaType, typer.Option("--type", "-t", help="Type de media")
    ] = MediaType.MOVIE,
    anime: Annotated[
        bool, typer.Option("--anime", help="Utiliser la liste de priorite anime")
    ] = False,
) -> None:
    """Identifie un titre puis met en cache les details de chaque fournisseur."""
    asyncio.run(_resolve_async(title, media_id, year, media_type, anime))


@with_container()
async def _resolve_async(
    container,
    title: str,
    media_id: str,
    year: Optional[int],
    media_type: MediaType,
    anime: bool,
) -> None:
    """Implementation async de la commande resolve."""
    async with initialized_manager(container) as manager:
        result = await manager.resolve(title, year, media_type, media_id, is_anime=anime)
        threshold = manager.settings.auto_match_threshold

    with suppress_loguru():
        display_identify_result(result.identify, threshold)
        if result.snapshots is None:
            console.print(
                "\n[yellow]Aucune association automatique: rien n'a ete mis en cache.[/yellow]"
            )
            return
        console.print()
        display_snapshot_set(result.snapshots)


def integrations() -> None:
    """Liste les integrations, leurs capacites et leur etat."""
    asyncio.run(_integrations_async())


@with_container(requires_db=False)
async def _integrations_async(container) -> None:
    """Implementation async de la commande integrations."""
    async with initialized_manager(container) as manager:
        infos = manager.get_integration_infos()

    with suppress_loguru():
        console.print(render_integrations(infos))


def test_connections() -> None:
    """Teste la connexion de chaque integration configuree."""
    asyncio.run(_test_connections_async())


@with_container(requires_db=False)
async def _test_connections_async(container) -> None:
    """Implementation async de la commande test-connections."""
    async with initialized_manager(container) as manager:
        sources = [info.source for info in manager.get_integration_infos()]
        statuses = await asyncio.gather(
            *(manager.get_integration(source).test_connection() for source in sources)
        )

    with suppress_loguru():
        console.print(render_connection_statuses(dict(zip(sources, statuses))))


def snapshots(
    media_id: Annotated[str, typer.Argument(help="Identifiant du media dans la bibliotheque")],
    media_type: Annotated[
        MediaType, typer.Option("--type", "-t", help="Type de media")
    ] = MediaType.MOVIE,
    delete: Annotated[
        bool, typer.Option("--delete", help="Supprimer les instantanes du media")
    ] = False,
) -> None:
    """Affiche (ou supprime) les instantanes en cache d'un media."""
    asyncio.run(_snapshots_async(media_id, media_type, delete))


@with_container()
async def _snapshots_async(
    container, media_id: str, media_type: MediaType, delete: bool
) -> None:
    """Implementation async de la commande snapshots."""
    repository = container.provider_metadata_repository()

    with suppress_loguru():
        if delete:
            count = repository.delete_snapshots(media_type, media_id)
            console.print(f"[green]{count}[/green] instantane(s) supprime(s)")
            return

        items = repository.list_snapshots(media_type, media_id)
        if not items:
            console.print(f"[yellow]Aucun instantane pour {media_id}.[/yellow]")
            return
        console.print(render_snapshots(items))


def trakt_auth(
    redirect_uri: Annotated[
        Optional[str],
        typer.Option("--redirect-uri", help="URI de redirection OAuth enregistree"),
    ] = None,
) -> None:
    """Autorise l'acces au compte Trakt et affiche les jetons a conserver."""
    asyncio.run(_trakt_auth_async(redirect_uri))


@with_container(requires_db=False)
async def _trakt_auth_async(container, redirect_uri: Optional[str]) -> None:
    """Implementation async de la commande trakt-auth."""
    client = container.trakt_client()
    config = container.config()
    await client.initialize(
        next(c for c in config.integration_configs() if c.id == "trakt")
    )

    try:
        if not client.is_ready():
            console.print(
                "[red]Trakt non configure: definir CINEMETA_TRAKT_CLIENT_ID "
                "et CINEMETA_TRAKT_CLIENT_SECRET.[/red]"
            )
            raise typer.Exit(1)

        with suppress_loguru():
            console.print(
                Panel(
                    client.get_authorization_url(redirect_uri),
                    title="Ouvrir cette adresse pour autoriser CineMeta",
                    border_style="cyan",
                )
            )
        code = typer.prompt("Code d'autorisation")
        tokens = await client.exchange_code_for_tokens(code.strip(), redirect_uri)
    finally:
        await client.close()

    with suppress_loguru():
        console.print("[green]Autorisation reussie.[/green] A ajouter au fichier .env :")
        console.print(f"CINEMETA_TRAKT_ACCESS_TOKEN={tokens.access_token}")
        console.print(f"CINEMETA_TRAKT_REFRESH_TOKEN={tokens.refresh_token}")
        console.print(f"CINEMETA_TRAKT_EXPIRES_AT={tokens.expires_at.isoformat()}")


def clear_cache() -> None:
    """Vide le cache disque des reponses des fournisseurs."""
    asyncio.run(_clear_cache_async())


@with_container(requires_db=False)
async def _clear_cache_async(container) -> None:
    """Implementation async de la commande clear-cache."""
    cache = container.api_cache()
    try:
        await cache.clear()
    finally:
        cache.close()

    with suppress_loguru():
        console.print(f"[green]Cache vide[/green] ({container.config().cache_dir})")
