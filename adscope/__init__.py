"""Competitor ad ingestion for Google Ads Transparency Center and Meta Ad Library."""

__version__ = "0.1.0"
