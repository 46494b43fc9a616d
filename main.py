#!/usr/bin/env python3
"""
Competitor ad ingestion - CLI entry point

Usage:
    python main.py --platform google                     # Scrape the default advertiser
    python main.py --platform google --id AR123 --id AR456
    python main.py --platform meta --id 80379486838
    python main.py --init-db                             # Create database tables
    python main.py --serve --port 8000                   # Run the HTTP API
"""

import asyncio
import sys
import click

from adscope.config import ConfigError, Settings
from adscope.models import create_db_engine, create_session_factory, init_db
from adscope.scrapers.orchestrator import build_orchestrator
from adscope.utils.logger import get_logger

logger = get_logger("main")


@click.command()
@click.option("--platform", type=click.Choice(["google", "meta"]), help="Platform to scrape")
@click.option("--id", "identifiers", multiple=True, help="Advertiser or page id (repeatable)")
@click.option("--init-db", "initialize_db", is_flag=True, help="Initialize database tables")
@click.option("--serve", is_flag=True, help="Run the HTTP API with uvicorn")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def main(platform: str, identifiers: tuple, initialize_db: bool, serve: bool, host: str, port: int):
    """Scrape competitor ads from Google Ads Transparency Center or Meta Ad Library."""

    platforms = (platform,) if platform else ("google", "meta")
    try:
        settings = Settings.from_env(platforms=platforms)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    if serve:
        import uvicorn
        from adscope.api import create_app

        uvicorn.run(create_app(settings), host=host, port=port)
        return

    engine = create_db_engine(settings.database_url)

    if initialize_db:
        click.echo("Initializing database tables...")
        init_db(engine)
        click.echo("Database initialized successfully!")
        return

    if not platform:
        click.echo("Error: --platform is required when scraping", err=True)
        sys.exit(1)

    ids = list(identifiers) or None
    click.echo(f"Starting {platform} scrape: {', '.join(ids) if ids else 'default identifier'}")

    orchestrator = build_orchestrator(
        platform,
        settings,
        create_session_factory(engine=engine),
        metadata={"trigger": "cli"},
    )

    try:
        summary = asyncio.run(orchestrator.run(ids))
    except KeyboardInterrupt:
        click.echo("\nScrape interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error("scrape_failed", error=str(e))
        click.echo(f"Scrape failed: {e}")
        sys.exit(1)

    for result in summary.results:
        line = (
            f"  {result.identifier}: {result.status} - {result.ads_processed} ads, "
            f"{result.creatives_inserted} creatives, {result.images_failed} images failed"
        )
        if result.error:
            line += f" ({result.error})"
        click.echo(line)
    click.echo("Scrape completed successfully!")


if __name__ == "__main__":
    main()
