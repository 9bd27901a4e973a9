"""CLI entry point and argument parsing"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import httpx

import settings
from config import ConfigurationError
from podcaster_auth import CredentialsExpiredError, SpotifyAnalyticsError
from utils.debug_console import create_debug_console, setup_logging
from cli.handlers import (
    handle_episodes,
    handle_export_all,
    handle_init,
    handle_list,
    handle_streams,
    parse_date,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NO_CREDENTIALS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podcast-analytics",
        description="Spotify Podcast Analytics CLI"
    )
    parser.add_argument("--env-file", "-c", default=None, help="Path to .env file with credentials")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress non-error output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create .env file with credentials")

    list_parser = subparsers.add_parser("list", help="List available podcasts")
    list_parser.add_argument("--format", "-f", choices=["table", "csv", "json"], default="table")
    list_parser.add_argument("--output", "-o", default=None, help="Output file path")

    episodes_parser = subparsers.add_parser("episodes", help="Get episodes list")
    episodes_parser.add_argument("--podcast-id", required=True)
    episodes_parser.add_argument("--start", type=parse_date, default=None, help="Start date (YYYY-MM-DD)")
    episodes_parser.add_argument("--end", type=parse_date, default=None, help="End date (YYYY-MM-DD)")
    episodes_parser.add_argument("--limit", type=int, default=None, help="Maximum number of episodes")
    episodes_parser.add_argument("--format", "-f", choices=["csv", "json"], default="csv")
    episodes_parser.add_argument("--output", "-o", default=None)

    streams_parser = subparsers.add_parser("streams", help="Get streams data")
    streams_parser.add_argument("--podcast-id", required=True)
    streams_parser.add_argument("--start", type=parse_date, required=True, help="Start date (YYYY-MM-DD)")
    streams_parser.add_argument("--end", type=parse_date, default=None, help="End date (YYYY-MM-DD)")
    streams_parser.add_argument("--episode-id", default=None, help="Specific episode ID")
    streams_parser.add_argument("--format", "-f", choices=["csv", "json"], default="csv")
    streams_parser.add_argument("--output", "-o", default=None)

    export_parser = subparsers.add_parser("export-all", help="Export all data types")
    export_parser.add_argument("--podcast-id", required=True)
    export_parser.add_argument("--start", type=parse_date, required=True, help="Start date (YYYY-MM-DD)")
    export_parser.add_argument("--end", type=parse_date, default=None, help="End date (YYYY-MM-DD)")
    export_parser.add_argument("--output-dir", default="./output", help="Output directory")
    export_parser.add_argument("--format", "-f", choices=["csv", "json", "both"], default="csv")

    return parser


ASYNC_HANDLERS = {
    "list": handle_list,
    "episodes": handle_episodes,
    "streams": handle_streams,
    "export-all": handle_export_all,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    if args.env_file:
        # Replaces what the default .env lookup loaded at import
        settings.load_settings(args.env_file)

    level = "warning" if args.quiet else settings.LOG_LEVEL
    console_logger = setup_logging(level=level, debug=args.debug, log_file=settings.DEBUG_LOG_FILE)
    console = create_debug_console(args.debug, console_logger, quiet=args.quiet)
    error_console = create_debug_console(args.debug, console_logger)

    try:
        if args.command == "init":
            return handle_init(args, console)
        return asyncio.run(ASYNC_HANDLERS[args.command](args, console))

    except ConfigurationError as e:
        error_console.print(f"[red]✗[/red] {e}")
        return EXIT_NO_CREDENTIALS
    except CredentialsExpiredError as e:
        error_console.print(f"[red]✗[/red] {e}")
        error_console.print('Refresh your sp_dc/sp_key cookies and run "podcast-analytics init".')
        return EXIT_FAILURE
    except httpx.HTTPStatusError as e:
        error_console.print(
            f"[red]✗[/red] Spotify API error (HTTP {e.response.status_code}) for {e.request.url}"
        )
        if args.debug:
            logger.exception("Command failed")
        return EXIT_FAILURE
    except (SpotifyAnalyticsError, httpx.TransportError, ValueError, OSError) as e:
        error_console.print(f"[red]✗[/red] Failed to run {args.command}: {e}")
        if args.debug:
            logger.exception("Command failed")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        error_console.print("\n[yellow]Interrupted by user[/yellow]")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
