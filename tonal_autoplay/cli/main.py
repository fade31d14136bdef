#!/usr/bin/env python3
"""
🎵 Tonal Autoplay - continuation engine for a proxied music catalog
CLI interface with Typer and Rich
"""

import random
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tonal_autoplay.core.autoplay.orchestrator import RecommendationOrchestrator
from tonal_autoplay.core.catalog.catalog_client import CatalogClient
from tonal_autoplay.core.catalog.embedding_source import JsonEmbeddingSource
from tonal_autoplay.core.catalog.providers import CachingMetadataProvider
from tonal_autoplay.core.config import get_config
from tonal_autoplay.core.embeddings.embedding_index import EmbeddingIndex
from tonal_autoplay.core.errors import MissingMetadata, TransientFetchError
from tonal_autoplay.core.models import PlayEvent, Track

console = Console()

app = typer.Typer(
    name="tonal-autoplay",
    help="🎵 Autoplay continuation engine for a proxied music catalog",
    add_completion=False,
    rich_markup_mode="rich",
)


def show_banner() -> None:
    """Display the app banner"""
    banner = Text()
    banner.append("🎵 ", style="bold magenta")
    banner.append("Tonal Autoplay", style="bold cyan")
    banner.append(" - what plays next", style="italic")

    console.print(Panel(banner, style="cyan", padding=(1, 2)))


def build_orchestrator(
    api_base: Optional[str], embeddings: Optional[str], seed: Optional[int]
) -> RecommendationOrchestrator:
    """Wire the catalog client, embedding index and settings together"""
    config = get_config()
    catalog_config = config.catalog_config
    client = CatalogClient(
        api_base or catalog_config["api_base"], timeout=catalog_config["timeout"]
    )
    orchestrator = RecommendationOrchestrator(
        metadata=CachingMetadataProvider(client),
        suggestions=client,
        search=client,
        index=EmbeddingIndex(),
        settings=config.autoplay_settings,
        rng=random.Random(seed),
    )

    source = embeddings or config.embedding_source
    if source:
        orchestrator.load_embeddings(JsonEmbeddingSource(source))
    return orchestrator


def _lookup(
    orchestrator: RecommendationOrchestrator, track_id: str
) -> Optional[Track]:
    """Fetch metadata for display, tolerating catalog errors"""
    try:
        return orchestrator.metadata.fetch(track_id)
    except (MissingMetadata, TransientFetchError):
        return None


@app.command()
def play(
    seed_track: str = typer.Argument(..., help="Track id to start the session from"),
    steps: int = typer.Option(10, "--steps", "-n", help="Tracks to autoplay"),
    api_base: Optional[str] = typer.Option(
        None, "--api-base", "-a", help="Catalog API base URL"
    ),
    embeddings: Optional[str] = typer.Option(
        None, "--embeddings", "-e", help="Embedding table URL or path"
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
) -> None:
    """▶️ Simulate an autoplay session starting from a track"""
    show_banner()

    orchestrator = build_orchestrator(api_base, embeddings, seed)
    session = orchestrator.new_session()

    table = Table(
        title="🎧 Autoplay Session", show_header=True, header_style="bold magenta"
    )
    table.add_column("#", style="dim")
    table.add_column("Tier", style="cyan")
    table.add_column("Track", style="green")
    table.add_column("Language")
    table.add_column("Year")
    table.add_column("Stream", style="dim", overflow="fold")
    quality = orchestrator.settings.preferred_quality

    track_id: Optional[str] = orchestrator.decide_next(
        session, PlayEvent.select(seed_track)
    )
    tier = "selected"
    with console.status("[bold green]Deciding what plays next...", spinner="dots"):
        for step in range(steps + 1):
            if track_id is None:
                break
            orchestrator.record_played(session, track_id)
            track = _lookup(orchestrator, track_id)
            table.add_row(
                str(step),
                tier,
                track.name if track else track_id,
                (track.language or "") if track else "",
                str(track.year or "") if track else "",
                (track.stream_url(quality) or "") if track else "",
            )
            if step == steps:
                break
            decision = orchestrator.decide(session, PlayEvent.ended())
            track_id, tier = decision.track_id, decision.tier

    console.print(table)
    if track_id is None:
        console.print("[yellow]⏹️  Nothing left to play[/yellow]")


@app.command()
def neighbors(
    track_id: str = typer.Argument(..., help="Track id to query"),
    embeddings: str = typer.Option(
        ..., "--embeddings", "-e", help="Embedding table URL or path"
    ),
    k: int = typer.Option(10, "-k", help="Number of neighbors"),
) -> None:
    """🧭 Show the nearest neighbors of a track"""
    index = EmbeddingIndex()
    if not index.load(JsonEmbeddingSource(embeddings)):
        console.print("[red]❌ Could not load embeddings[/red]")
        raise typer.Exit(1)

    results = index.similar_tracks(track_id, k)
    if not results:
        console.print(f"[red]❌ No neighbors for: {track_id}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"🧭 Neighbors of {track_id}", header_style="bold magenta")
    table.add_column("Track", style="cyan")
    table.add_column("Similarity", style="green")
    for neighbor_id, score in results:
        table.add_row(neighbor_id, f"{score:.3f}")
    console.print(table)


@app.command()
def settings() -> None:
    """⚙️ Show the effective autoplay settings"""
    current = get_config().autoplay_settings

    table = Table(title="⚙️ Autoplay Settings", header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for name, value in current.__dict__.items():
        table.add_row(name, str(value))
    console.print(table)


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
