import time
from typing import Callable, Optional

import httpx

from adscope.config import SERPAPI_SEARCH_URL
from adscope.models.advertiser import PLATFORM_GOOGLE
from adscope.models.creative import CREATIVE_IMAGE
from adscope.scrapers.base import (
    PlatformAdapter,
    ScrapedAd,
    ScrapedAdvertiser,
    ScrapedBatch,
    ScrapedCreative,
    normalize_ad_type,
    ordered_range,
    utc_from_timestamp,
)
from adscope.utils.logger import get_logger

logger = get_logger("google_ads")

# Transparency Center has no live status; an ad shown within this window counts as active.
ACTIVE_WINDOW_SECONDS = 7 * 24 * 60 * 60


def is_recently_shown(last_shown: float, now: float) -> bool:
    return (now - last_shown) < ACTIVE_WINDOW_SECONDS


class GoogleAdsAdapter(PlatformAdapter):
    """Google Ads Transparency Center through SerpApi."""

    platform = "google"
    platform_id = PLATFORM_GOOGLE
    search_url = SERPAPI_SEARCH_URL

    def __init__(
        self,
        api_key: str,
        region: str = "2840",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(api_key, timeout=timeout, transport=transport)
        self.region = region
        self.clock = clock

    def build_params(self, identifier: str) -> dict:
        return {
            "engine": "google_ads_transparency_center",
            "advertiser_id": identifier,
            "region": self.region,
        }

    def parse(self, identifier: str, payload: dict) -> ScrapedBatch:
        records = payload.get("ad_creatives") or []
        now = self.clock()

        name = "Unknown"
        if records and isinstance(records[0], dict):
            name = records[0].get("advertiser") or "Unknown"

        advertiser = ScrapedAdvertiser(id=identifier, platform_id=self.platform_id, name=name)

        ads = []
        for record in records:
            ad = self._parse_record(identifier, record, now)
            if ad:
                ads.append(ad)

        return ScrapedBatch(identifier=identifier, advertiser=advertiser, ads=ads)

    def _parse_record(self, identifier: str, record: dict, now: float) -> Optional[ScrapedAd]:
        if not isinstance(record, dict):
            return None

        ad_id = record.get("ad_creative_id")
        if not ad_id:
            logger.warning("skipping_record", identifier=identifier, reason="no_ad_creative_id")
            return None

        try:
            first_shown = int(record["first_shown"])
            last_shown = int(record["last_shown"])
        except (KeyError, TypeError, ValueError):
            logger.warning("skipping_record", identifier=identifier, ad_id=ad_id, reason="bad_timestamps")
            return None

        start_date, end_date = ordered_range(
            ad_id, utc_from_timestamp(first_shown), utc_from_timestamp(last_shown)
        )

        creatives = []
        image_url = record.get("image")
        if image_url:
            creatives.append(
                ScrapedCreative(
                    creative_type=CREATIVE_IMAGE,
                    source_url=image_url,
                    storage_path=f"google/{ad_id}.jpg",
                    width=record.get("width"),
                    height=record.get("height"),
                )
            )

        return ScrapedAd(
            id=str(ad_id),
            ad_type=normalize_ad_type(record.get("format")),
            start_date=start_date,
            end_date=end_date,
            is_active=is_recently_shown(last_shown, now),
            total_active_time=last_shown - first_shown,
            metadata={"details_link": record.get("details_link")},
            creatives=creatives,
        )
