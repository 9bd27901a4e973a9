"""Command handlers for the CLI"""

import argparse
import datetime
import json
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from analytics import CSVExporter, JSONExporter, SpotifyAnalytics
from analytics.exporters import to_plain
from config import ConfigurationError, get_credentials, save_env
from podcaster_auth import Credentials
import settings


def parse_date(value: str) -> datetime.date:
    """argparse type for YYYY-MM-DD dates"""
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def load_credentials() -> Credentials:
    """Credentials from the environment

    Raises:
        ConfigurationError: If sp_dc or sp_key is missing
    """
    raw = get_credentials()
    if not raw:
        raise ConfigurationError('No credentials found. Run "podcast-analytics init" first.')
    return Credentials(
        sp_dc=raw["sp_dc"],
        sp_key=raw["sp_key"],
        client_id=raw.get("client_id") or settings.CLIENT_ID,
    )


def handle_init(args: argparse.Namespace, console: Console) -> int:
    """Prompt for the session cookies and write them to a .env file"""
    console.print("Creating Spotify Analytics .env file...\n")
    console.print("[dim]Copy the sp_dc and sp_key cookies from a logged-in open.spotify.com session.[/dim]")

    sp_dc = ""
    while not sp_dc:
        sp_dc = Prompt.ask("Enter your sp_dc cookie", password=True, console=console).strip()
    sp_key = ""
    while not sp_key:
        sp_key = Prompt.ask("Enter your sp_key cookie", password=True, console=console).strip()

    path = save_env({"sp_dc": sp_dc, "sp_key": sp_key, "client_id": settings.CLIENT_ID}, args.env_file)
    console.print(f"[green]✓[/green] Configuration saved to {path}")
    return 0


def _write_records(records, fmt: str, output: Optional[str], console: Console):
    """Write records to a file, or print them when no output path is given"""
    exporter = CSVExporter() if fmt == "csv" else JSONExporter()
    if output:
        exporter.write_file(records, output)
    else:
        console.print(exporter.stringify(records), markup=False, highlight=False)


async def handle_list(args: argparse.Namespace, console: Console) -> int:
    """List the shows of the account"""
    async with SpotifyAnalytics(load_credentials(), base_url=settings.BASE_URL) as analytics:
        podcasts = await analytics.get_catalog()

    if args.format == "table":
        table = Table(title="Podcasts")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Publisher", style="dim")
        for podcast in podcasts:
            table.add_row(podcast.id, podcast.name, podcast.publisher)
        console.print(table)
        return 0

    _write_records(podcasts, args.format, args.output, console)
    if args.output:
        console.print(f"[green]✓[/green] Exported to {args.output}")
    return 0


async def handle_episodes(args: argparse.Namespace, console: Console) -> int:
    async with SpotifyAnalytics(
        load_credentials(), podcast_id=args.podcast_id, base_url=settings.BASE_URL
    ) as analytics:
        episodes = await analytics.get_episodes(start=args.start, end=args.end, limit=args.limit)

    output = args.output or f"episodes.{args.format}"
    _write_records(episodes, args.format, output, console)
    console.print(f"[green]✓[/green] Exported {len(episodes)} episodes to {output}")
    return 0


async def handle_streams(args: argparse.Namespace, console: Console) -> int:
    async with SpotifyAnalytics(
        load_credentials(), podcast_id=args.podcast_id, base_url=settings.BASE_URL
    ) as analytics:
        streams = await analytics.get_streams(args.start, args.end, episode_id=args.episode_id)

    output = args.output or f"streams_{args.start.isoformat()}.{args.format}"
    _write_records(streams, args.format, output, console)
    console.print(f"[green]✓[/green] Exported {len(streams)} records to {output}")
    return 0


async def handle_export_all(args: argparse.Namespace, console: Console) -> int:
    console.print(f"Exporting all data for podcast {args.podcast_id}...")

    def on_progress(progress):
        console.print(f"{progress['type']}: {progress['percentage']}%")

    async with SpotifyAnalytics(
        load_credentials(), podcast_id=args.podcast_id, base_url=settings.BASE_URL
    ) as analytics:
        result = await analytics.export_all(
            args.output_dir,
            args.start,
            args.end,
            fmt=args.format,
            on_progress=on_progress,
        )

    console.print(f"\n[green]✓[/green] Exported {len(result.files)} files in {result.duration_ms}ms")
    console.print("\nGenerated files:")
    for path in result.files:
        console.print(f"  - {path}")
    if args.debug:
        console.print(json.dumps(to_plain(result.summary), indent=2), markup=False)
    return 0
