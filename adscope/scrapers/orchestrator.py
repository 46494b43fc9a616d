import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

import httpx
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from adscope.config import DEFAULT_GOOGLE_ADVERTISER_ID, DEFAULT_META_PAGE_ID, Settings
from adscope.models import Ad, AdCreative, Advertiser, ScrapeError, ScrapeRun
from adscope.models.creative import CREATIVE_IMAGE
from adscope.scrapers.base import PlatformAdapter, ScrapedAd, ScrapedAdvertiser, ScrapedCreative, UpstreamError
from adscope.scrapers.google_ads import GoogleAdsAdapter
from adscope.scrapers.meta_ads import MetaAdsAdapter
from adscope.utils.blob_store import build_blob_store
from adscope.utils.media_downloader import MediaDownloader
from adscope.utils.logger import get_logger

logger = get_logger("orchestrator")

DEFAULT_IDENTIFIERS = {
    "google": DEFAULT_GOOGLE_ADVERTISER_ID,
    "meta": DEFAULT_META_PAGE_ID,
}


@dataclass
class IdentifierResult:
    identifier: str
    status: str = "ok"  # ok, failed
    ads_processed: int = 0
    ads_failed: int = 0
    creatives_inserted: int = 0
    images_failed: int = 0
    error: Optional[str] = None


@dataclass
class ScrapeSummary:
    platform: str
    run_id: Optional[int] = None
    results: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "run_id": self.run_id,
            "results": [asdict(r) for r in self.results],
        }


class ScrapeOrchestrator:
    """Runs one platform adapter over a list of identifiers and writes the results.

    Identifiers and the ads within them are processed one at a time. Each
    identifier, ad and creative is an independent unit of work; failures are
    logged and recorded, never rolled back across units.
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        downloader: MediaDownloader,
        session_factory: sessionmaker,
        metadata: dict = None,
    ):
        self.adapter = adapter
        self.downloader = downloader
        self.session_factory = session_factory
        self.metadata = metadata or {}
        self.db: Optional[Session] = None
        self.scrape_run: Optional[ScrapeRun] = None

    async def run(self, identifiers: list = None) -> ScrapeSummary:
        """Scrape every identifier, falling back to the platform default."""
        identifiers = list(identifiers or [DEFAULT_IDENTIFIERS[self.adapter.platform]])
        summary = ScrapeSummary(platform=self.adapter.platform)
        self.db = self.session_factory()

        try:
            self.scrape_run = ScrapeRun(
                platform=self.adapter.platform,
                status="running",
                identifiers_total=len(identifiers),
                run_metadata={**self.metadata, "identifiers": identifiers},
            )
            self.db.add(self.scrape_run)
            self.db.commit()
            summary.run_id = self.scrape_run.id

            logger.info(
                "scrape_run_started",
                run_id=self.scrape_run.id,
                platform=self.adapter.platform,
                identifiers=len(identifiers),
            )

            await self.adapter.start()
            await self.downloader.start()

            for identifier in identifiers:
                with structlog.contextvars.bound_contextvars(
                    platform=self.adapter.platform, identifier=identifier
                ):
                    result = await self._process_identifier(identifier)
                summary.results.append(result)
                self._count_result(result)

            self.scrape_run.mark_completed()
            self._commit_run()

            logger.info(
                "scrape_run_completed",
                run_id=self.scrape_run.id,
                identifiers_processed=self.scrape_run.identifiers_processed,
                identifiers_failed=self.scrape_run.identifiers_failed,
                ads_found=self.scrape_run.ads_found,
                ads_new=self.scrape_run.ads_new,
            )
            return summary

        except Exception as e:
            logger.error("scrape_run_failed", error=str(e))
            if self.scrape_run is not None and self.scrape_run.id is not None:
                self.db.rollback()
                self.scrape_run.mark_failed()
                self._commit_run()
            raise

        finally:
            await self.adapter.stop()
            await self.downloader.stop()
            self.db.close()

    async def _process_identifier(self, identifier: str) -> IdentifierResult:
        result = IdentifierResult(identifier=identifier)
        logger.info("processing_identifier")

        try:
            batch = await self.adapter.fetch_for_identifier(identifier)
        except UpstreamError as e:
            logger.error("upstream_error", error=e.message)
            self._save_error(identifier, e)
            result.status = "failed"
            result.error = e.message
            return result

        self.scrape_run.ads_found += len(batch.ads)

        if batch.advertiser is not None and not self._upsert_advertiser(batch.advertiser):
            result.error = "advertiser upsert failed"

        for scraped_ad in batch.ads:
            if not self._upsert_ad(identifier, scraped_ad):
                result.ads_failed += 1
                continue
            result.ads_processed += 1

            for creative in scraped_ad.creatives:
                if creative.creative_type == CREATIVE_IMAGE:
                    public_url = await self.downloader.persist(creative.source_url, creative.storage_path)
                    if public_url is None:
                        result.images_failed += 1
                        continue
                    creative.content = public_url
                if self._insert_creative(scraped_ad.id, creative):
                    result.creatives_inserted += 1

        logger.info(
            "identifier_processed",
            ads=result.ads_processed,
            ads_failed=result.ads_failed,
            advertiser_failed=result.error is not None,
            creatives=result.creatives_inserted,
            images_failed=result.images_failed,
        )
        return result

    def _upsert_advertiser(self, scraped: ScrapedAdvertiser) -> bool:
        """Insert or update the advertiser; the identifier never changes."""
        try:
            advertiser = self.db.get(Advertiser, scraped.id)
            if advertiser is None:
                advertiser = Advertiser(id=scraped.id)
                self.db.add(advertiser)
            advertiser.platform_id = scraped.platform_id
            advertiser.name = scraped.name
            if scraped.metadata is not None:
                advertiser.metadata_ = scraped.metadata
            advertiser.updated_at = datetime.utcnow()
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self._write_failed("advertiser_upsert_failed", scraped.id, e)
            return False

    def _upsert_ad(self, advertiser_id: str, scraped: ScrapedAd) -> bool:
        """Insert the ad or replace its mutable fields."""
        try:
            ad = self.db.get(Ad, scraped.id)
            if ad is None:
                ad = Ad(id=scraped.id)
                self.db.add(ad)
                self.scrape_run.ads_new += 1
            else:
                self.scrape_run.ads_updated += 1
            ad.advertiser_id = advertiser_id
            ad.ad_type = scraped.ad_type
            ad.start_date = scraped.start_date
            ad.end_date = scraped.end_date
            ad.is_active = scraped.is_active
            ad.total_active_time = scraped.total_active_time
            ad.metadata_ = scraped.metadata
            ad.updated_at = datetime.utcnow()
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self._write_failed("ad_upsert_failed", scraped.id, e)
            return False

    def _insert_creative(self, ad_id: str, scraped: ScrapedCreative) -> bool:
        try:
            self.db.add(
                AdCreative(
                    ad_id=ad_id,
                    creative_type=scraped.creative_type,
                    content=scraped.content,
                    storage_path=scraped.storage_path,
                    width=scraped.width,
                    height=scraped.height,
                    metadata_=scraped.metadata,
                )
            )
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self._write_failed("creative_insert_failed", ad_id, e)
            return False

    def _write_failed(self, event: str, record_id: str, error: Exception):
        self.db.rollback()
        logger.error(event, record_id=record_id, error=str(error))
        self._save_error(record_id, error)

    def _save_error(self, identifier: str, error: Exception):
        """Record an isolated failure; a failure to record it is only logged."""
        try:
            self.db.add(
                ScrapeError(
                    scrape_run_id=self.scrape_run.id,
                    identifier=identifier,
                    error_type=type(error).__name__,
                    error_message=str(error),
                    stack_trace="".join(traceback.format_exception(type(error), error, error.__traceback__)),
                )
            )
            self.scrape_run.errors_count += 1
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("scrape_error_save_failed", identifier=identifier, error=str(e))

    def _count_result(self, result: IdentifierResult):
        if result.status == "ok":
            self.scrape_run.identifiers_processed += 1
        else:
            self.scrape_run.identifiers_failed += 1
        self.scrape_run.creatives_inserted += result.creatives_inserted
        self.scrape_run.images_failed += result.images_failed
        self._commit_run()

    def _commit_run(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("scrape_run_update_failed", run_id=self.scrape_run.id, error=str(e))


def build_adapter(platform: str, settings: Settings, transport: httpx.AsyncBaseTransport = None) -> PlatformAdapter:
    if platform == "google":
        return GoogleAdsAdapter(
            settings.serpapi_api_key,
            region=settings.google_region,
            timeout=settings.upstream_timeout,
            transport=transport,
        )
    if platform == "meta":
        return MetaAdsAdapter(
            settings.searchapi_api_key,
            timeout=settings.upstream_timeout,
            transport=transport,
        )
    raise ValueError(f"Unknown platform: {platform}")


def build_orchestrator(
    platform: str,
    settings: Settings,
    session_factory: sessionmaker,
    transport: httpx.AsyncBaseTransport = None,
    metadata: dict = None,
) -> ScrapeOrchestrator:
    """Wire an adapter, media downloader and store for one platform.

    ``transport`` replaces the network for the upstream and media HTTP clients (used in tests).
    """
    downloader = MediaDownloader(
        build_blob_store(settings),
        timeout=settings.media_timeout,
        transport=transport,
    )
    return ScrapeOrchestrator(
        build_adapter(platform, settings, transport=transport),
        downloader,
        session_factory,
        metadata=metadata,
    )
