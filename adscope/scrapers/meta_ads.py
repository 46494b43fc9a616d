from typing import Optional

from adscope.config import SEARCHAPI_SEARCH_URL
from adscope.models.advertiser import PLATFORM_META
from adscope.models.creative import CREATIVE_BODY_TEXT, CREATIVE_CTA, CREATIVE_IMAGE
from adscope.scrapers.base import (
    PlatformAdapter,
    ScrapedAd,
    ScrapedAdvertiser,
    ScrapedBatch,
    ScrapedCreative,
    normalize_ad_type,
    ordered_range,
    parse_upstream_datetime,
)
from adscope.utils.logger import get_logger

logger = get_logger("meta_ads")

PAGE_METADATA_FIELDS = ("page_verification", "likes", "ig_username", "ig_followers")


class MetaAdsAdapter(PlatformAdapter):
    """Meta Ad Library through SearchApi.io.

    Active and inactive ads come back in one call (``active_status=all``).
    ``is_active`` and ``total_active_time`` are taken from upstream as-is.
    """

    platform = "meta"
    platform_id = PLATFORM_META
    search_url = SEARCHAPI_SEARCH_URL

    def build_params(self, identifier: str) -> dict:
        return {
            "engine": "meta_ad_library",
            "page_id": identifier,
            "active_status": "all",
        }

    def parse(self, identifier: str, payload: dict) -> ScrapedBatch:
        search_info = payload.get("search_information") or {}
        page_info = search_info.get("ad_library_page_info")

        advertiser = None
        if page_info:
            advertiser = ScrapedAdvertiser(
                id=identifier,
                platform_id=self.platform_id,
                name=page_info.get("page_name") or "Unknown",
                metadata={key: page_info.get(key) for key in PAGE_METADATA_FIELDS},
            )
        else:
            logger.warning("page_info_missing", identifier=identifier)

        ads = []
        for record in payload.get("ads") or []:
            ad = self._parse_ad(identifier, record)
            if ad:
                ads.append(ad)

        return ScrapedBatch(identifier=identifier, advertiser=advertiser, ads=ads)

    def _parse_ad(self, identifier: str, record: dict) -> Optional[ScrapedAd]:
        if not isinstance(record, dict):
            return None

        ad_id = record.get("ad_archive_id")
        if not ad_id:
            logger.warning("skipping_record", identifier=identifier, reason="no_ad_archive_id")
            return None
        ad_id = str(ad_id)

        snapshot = record.get("snapshot") or {}
        start_date, end_date = ordered_range(
            ad_id,
            parse_upstream_datetime(record.get("start_date")),
            parse_upstream_datetime(record.get("end_date")),
        )

        return ScrapedAd(
            id=ad_id,
            ad_type=normalize_ad_type(snapshot.get("display_format")),
            start_date=start_date,
            end_date=end_date,
            is_active=bool(record.get("is_active")),
            total_active_time=record.get("total_active_time"),
            metadata=self._ad_metadata(record, snapshot),
            creatives=self._creatives(ad_id, snapshot),
        )

    def _ad_metadata(self, record: dict, snapshot: dict) -> dict:
        metadata = {
            "publisher_platform": record.get("publisher_platform"),
            "categories": record.get("categories"),
        }

        platforms = record.get("publisher_platform")
        if isinstance(platforms, list) and platforms:
            metadata["placement"] = ", ".join(str(p) for p in platforms)
        elif isinstance(platforms, str) and platforms:
            metadata["placement"] = platforms

        optional = {
            "cta_link": snapshot.get("link_url"),
            "headline": snapshot.get("title"),
            "description": snapshot.get("link_description"),
        }
        metadata.update({key: value for key, value in optional.items() if value})
        return metadata

    def _creatives(self, ad_id: str, snapshot: dict) -> list:
        creatives = []

        body = snapshot.get("body")
        body_text = body.get("text") if isinstance(body, dict) else None
        if body_text:
            creatives.append(ScrapedCreative(creative_type=CREATIVE_BODY_TEXT, content=body_text))

        cta_text = snapshot.get("cta_text")
        if cta_text:
            creatives.append(
                ScrapedCreative(
                    creative_type=CREATIVE_CTA,
                    content=cta_text,
                    metadata={"cta_type": snapshot.get("cta_type")},
                )
            )

        # The index is the upstream array position, even when an element is skipped
        for index, image in enumerate(snapshot.get("images") or []):
            if not isinstance(image, dict):
                continue
            url = image.get("original_image_url") or image.get("resized_image_url")
            if not url:
                logger.debug("image_url_missing", ad_id=ad_id, index=index)
                continue
            creatives.append(
                ScrapedCreative(
                    creative_type=CREATIVE_IMAGE,
                    source_url=url,
                    storage_path=f"meta/{ad_id}_{index}.jpg",
                )
            )

        return creatives
