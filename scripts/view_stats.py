#!/usr/bin/env python3
"""
View scrape run statistics, errors and advertiser summaries.

Usage:
    python scripts/view_stats.py
    python scripts/view_stats.py --runs 10
    python scripts/view_stats.py --ads
    python scripts/view_stats.py --advertiser {advertiser_id}
    python scripts/view_stats.py --errors
"""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import click
from sqlalchemy import func

from adscope.config import Settings
from adscope.models import Ad, Advertiser, ScrapeError, ScrapeRun, create_session_factory
from adscope.services.ads_service import AdsService, platform_label


@click.command()
@click.option("--runs", type=int, default=5, help="Number of recent runs to show")
@click.option("--ads", is_flag=True, help="Show ad statistics")
@click.option("--advertiser", type=str, help="Show the summary for one advertiser")
@click.option("--errors", is_flag=True, help="Show recent errors")
def main(runs: int, ads: bool, advertiser: str, errors: bool):
    """View scraper statistics."""

    # Read-only: no upstream or storage secrets needed
    database_url = os.getenv("DATABASE_URL", Settings.database_url)
    session_factory = create_session_factory(database_url)

    if advertiser:
        show_advertiser_summary(AdsService(session_factory), advertiser)
        return

    db = session_factory()
    try:
        if errors:
            show_errors(db)
        elif ads:
            show_ad_stats(db)
        else:
            show_run_stats(db, runs)
    finally:
        db.close()


def show_run_stats(db, limit: int):
    """Show recent scrape run statistics."""
    click.echo("\n=== Recent Scrape Runs ===\n")

    runs = db.query(ScrapeRun).order_by(ScrapeRun.started_at.desc()).limit(limit).all()

    if not runs:
        click.echo("No scrape runs found.")
        return

    for run in runs:
        duration = ""
        if run.completed_at and run.started_at:
            delta = run.completed_at - run.started_at
            duration = f" ({delta.seconds}s)"

        click.echo(f"Run #{run.id} [{run.platform}] - {run.status}{duration}")
        click.echo(f"  Started: {run.started_at.strftime('%Y-%m-%d %H:%M:%S')}")
        click.echo(f"  Identifiers: {run.identifiers_processed}/{run.identifiers_total} (failed: {run.identifiers_failed})")
        click.echo(f"  Ads: found={run.ads_found}, new={run.ads_new}, updated={run.ads_updated}")
        click.echo(f"  Creatives inserted: {run.creatives_inserted} (images failed: {run.images_failed})")
        click.echo(f"  Errors: {run.errors_count}")
        click.echo("")


def show_ad_stats(db):
    """Show ad counts by status, type and advertiser."""
    click.echo("\n=== Ad Statistics ===\n")

    total_ads = db.query(Ad).count()
    active_ads = db.query(Ad).filter(Ad.is_active == True).count()  # noqa: E712

    click.echo(f"Total ads: {total_ads}")
    click.echo(f"Active: {active_ads}")
    click.echo(f"Inactive: {total_ads - active_ads}")

    click.echo("\nBy ad type:")
    type_counts = db.query(Ad.ad_type, func.count(Ad.id)).group_by(Ad.ad_type).all()
    for ad_type, count in type_counts:
        click.echo(f"  {ad_type or 'unknown'}: {count}")

    click.echo("\nAds by advertiser:")
    advertiser_counts = (
        db.query(Advertiser.name, Advertiser.platform_id, func.count(Ad.id))
        .join(Ad, Ad.advertiser_id == Advertiser.id)
        .group_by(Advertiser.id, Advertiser.name, Advertiser.platform_id)
        .order_by(func.count(Ad.id).desc())
        .limit(10)
        .all()
    )
    for name, platform_id, count in advertiser_counts:
        click.echo(f"  {name} ({platform_label(platform_id)}): {count} ads")


def show_advertiser_summary(service: AdsService, advertiser_id: str):
    result = service.summarize_advertiser(advertiser_id)
    if not result.ok:
        click.echo(f"Failed to load advertiser: {result.error}")
        sys.exit(1)
    if result.data is None:
        click.echo(f"No advertiser with id {advertiser_id}")
        return

    summary = result.data
    click.echo(f"\n=== {summary.name} ({summary.platform}) ===\n")
    click.echo(f"Total ads: {summary.total_ads}")
    click.echo(f"Active: {summary.active_ads}")
    click.echo(f"Inactive: {summary.inactive_ads}")
    click.echo(f"Average duration: {summary.average_duration_days} days")

    if summary.timeline:
        click.echo("\nLaunched per month:")
        for entry in summary.timeline:
            click.echo(f"  {entry['month']}: {entry['count']}")


def show_errors(db):
    """Show recent errors."""
    click.echo("\n=== Recent Errors ===\n")

    errors = db.query(ScrapeError).order_by(ScrapeError.created_at.desc()).limit(10).all()

    if not errors:
        click.echo("No errors found.")
        return

    for error in errors:
        click.echo(f"Error #{error.id} - Run #{error.scrape_run_id}")
        click.echo(f"  Identifier: {error.identifier}")
        click.echo(f"  Type: {error.error_type}")
        click.echo(f"  Message: {(error.error_message or '')[:100]}")
        click.echo("")


if __name__ == "__main__":
    main()
