from adscope.scrapers.base import PlatformAdapter, ScrapedBatch, UpstreamError
from adscope.scrapers.google_ads import GoogleAdsAdapter
from adscope.scrapers.meta_ads import MetaAdsAdapter
from adscope.scrapers.orchestrator import ScrapeOrchestrator, ScrapeSummary, build_orchestrator

__all__ = [
    "PlatformAdapter",
    "ScrapedBatch",
    "UpstreamError",
    "GoogleAdsAdapter",
    "MetaAdsAdapter",
    "ScrapeOrchestrator",
    "ScrapeSummary",
    "build_orchestrator",
]
