"""
Affichage Rich des resultats de resolution.

Fournit la console partagee et le rendu des candidats, des integrations
et des instantanes.
"""


from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.core.entities.media import ScoredSearchResult
from src.core.entities.provider_metadata import ProviderSnapshot
from src.core.ports.integrations import ConnectionStatus, IntegrationInfo
from src.services.resolution import IdentifyResult, IdentifyStatus, SnapshotSet

# Console globale pour tous les affichages
console = Console()

STATUS_STYLES = {
    IdentifyStatus.MATCHED: "green",
    IdentifyStatus.SUGGESTIONS: "yellow",
    IdentifyStatus.UNRESOLVED: "red",
}


def confidence_color(confidence: float, threshold: float) -> str:
    """Vert au-dessus du seuil, jaune au-dessus de 0.5, rouge sinon."""
    if confidence >= threshold:
        return "green"
    if confidence >= 0.5:
        return "yellow"
    return "red"


def render_candidates(
    candidates: list[ScoredSearchResult], threshold: float, limit: int = 10
) -> Table:
    """
    Tableau des candidats classes.

    Args:
        candidates: Candidats tries par confiance decroissante
        threshold: Seuil d'association (coloration du score)
        limit: Nombre maximum de lignes
    """
    table = Table(title="Candidats", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("ID")
    table.add_column("Titre", style="bold")
    table.add_column("Annee", justify="right")
    table.add_column("Confiance", justify="right")

    for rank, candidate in enumerate(candidates[:limit], start=1):
        color = confidence_color(candidate.confidence, threshold)
        table.add_row(
            str(rank),
            candidate.source.upper(),
            candidate.id,
            candidate.title,
            str(candidate.result.year or "?"),
            f"[{color}]{candidate.confidence:.0%}[/{color}]",
        )
    return table


def display_identify_result(result: IdentifyResult, threshold: float) -> None:
    """Affiche l'issue d'une identification et les candidats."""
    style = STATUS_STYLES[result.status]
    lines = [f"Statut: [{style}]{result.status.value.upper()}[/{style}]"]
    if result.match:
        lines.append(
            f"Association: [bold]{result.match.title}[/bold] "
            f"({result.match.source}:{result.match.id}, {result.match.confidence:.0%})"
        )
    if result.providers:
        lines.append(f"Fournisseurs interroges: {', '.join(result.providers)}")
    for provider in result.failed_providers:
        lines.append(f"[red]Echec {provider}: {result.outcomes[provider].error}[/red]")
    console.print(Panel("\n".join(lines), title="Identification", border_style=style))

    if result.candidates:
        console.print(render_candidates(result.candidates, threshold))


def display_snapshot_set(snapshot_set: SnapshotSet) -> None:
    """Affiche le resultat d'une recuperation multi-fournisseurs."""
    table = Table(title=f"Instantanes de {snapshot_set.media_id}", header_style="bold cyan")
    table.add_column("Fournisseur", style="cyan")
    table.add_column("ID")
    table.add_column("Titre", style="bold")
    table.add_column("Enregistre", justify="center")

    for provider, details in snapshot_set.details.items():
        if provider in snapshot_set.persisted:
            saved = "[green]oui[/green]"
        elif provider in snapshot_set.persist_errors:
            saved = "[red]erreur[/red]"
        else:
            saved = "[dim]-[/dim]"
        table.add_row(provider.upper(), details.id, details.title, saved)
    console.print(table)

    ids = ", ".join(f"{k}={v}" for k, v in snapshot_set.external_ids.as_dict().items())
    console.print(f"IDs externes: {ids or '[dim]aucun[/dim]'}")

    if snapshot_set.ratings:
        scores = ", ".join(
            f"{source}={score.value:g}/{score.max_value:g}"
            for source, score in snapshot_set.ratings.as_dict().items()
        )
        console.print(f"Notes: {scores}")
    if snapshot_set.artwork:
        artwork = snapshot_set.artwork
        console.print(
            f"Illustrations: {len(artwork.posters)} affiches, "
            f"{len(artwork.backgrounds)} fonds, {len(artwork.logos)} logos"
        )
    for provider in snapshot_set.failed_providers:
        console.print(f"[red]Echec {provider}: {snapshot_set.outcomes[provider].error}[/red]")


def render_integrations(infos: list[IntegrationInfo]) -> Table:
    """Tableau des integrations enregistrees."""
    table = Table(title="Integrations", header_style="bold cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Nom")
    table.add_column("Capacites")
    table.add_column("Medias")
    table.add_column("Prete", justify="center")

    for info in infos:
        media = [
            label
            for label, supported in (
                ("films", info.supports_movies),
                ("series", info.supports_shows),
                ("animes", info.supports_anime),
            )
            if supported
        ]
        table.add_row(
            info.source,
            info.name,
            ", ".join(info.capabilities),
            ", ".join(media),
            "[green]oui[/green]" if info.ready else "[red]non[/red]",
        )
    return table


def render_connection_statuses(statuses: dict[str, ConnectionStatus]) -> Table:
    table = Table(title="Tests de connexion", header_style="bold cyan")
    table.add_column("Integration", style="cyan")
    table.add_column("Resultat", justify="center")
    table.add_column("Detail", style="dim")
    for source, status in statuses.items():
        result = "[green]OK[/green]" if status.success else "[red]ECHEC[/red]"
        table.add_row(source, result, status.message)
    return table


def render_snapshots(snapshots: list[ProviderSnapshot]) -> Table:
    table = Table(title="Instantanes en cache", header_style="bold cyan")
    table.add_column("Fournisseur", style="cyan")
    table.add_column("ID")
    table.add_column("Titre", style="bold")
    table.add_column("Sortie")
    table.add_column("Recupere le", style="dim")
    for snapshot in snapshots:
        table.add_row(
            snapshot.provider.upper(),
            snapshot.provider_media_id,
            snapshot.title,
            snapshot.release_date or "?",
            snapshot.fetched_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table
