"""Read side: joins ads, advertisers and creatives back into display records.

Nothing here raises to the caller. Every call returns a ``FetchResult`` so a
consumer can tell "no ads" (``ok`` with empty data) from "store unreachable"
(not ``ok``, with an error message).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from adscope.models import Ad, AdCreative, Advertiser, PLATFORM_GOOGLE
from adscope.models.creative import CREATIVE_BODY_TEXT, CREATIVE_CTA, CREATIVE_IMAGE
from adscope.utils.logger import get_logger

logger = get_logger("ads_service")

PLACEHOLDER_IMAGE = "/placeholder.jpg"

T = TypeVar("T")


@dataclass
class FetchResult(Generic[T]):
    ok: bool
    data: T
    error: Optional[str] = None


@dataclass
class AdView:
    id: str
    image_url: str
    advertiser: str
    platform: str
    start_date: str
    end_date: str
    status: str
    ad_type: str
    images: list = field(default_factory=list)
    headline: str = ""
    description: str = ""
    body_text: Optional[str] = None
    call_to_action: Optional[str] = None
    cta_link: str = ""
    placement: str = ""
    first_seen: str = ""
    last_seen: str = ""
    transparency_url: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "imageUrl": self.image_url,
            "advertiser": self.advertiser,
            "platform": self.platform,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "status": self.status,
            "adType": self.ad_type,
            "images": list(self.images),
            "headline": self.headline,
            "description": self.description,
            "bodyText": self.body_text,
            "callToAction": self.call_to_action,
            "ctaLink": self.cta_link,
            "placement": self.placement,
            "firstSeen": self.first_seen,
            "lastSeen": self.last_seen,
            "transparencyUrl": self.transparency_url,
        }


@dataclass
class AdvertiserSummary:
    advertiser_id: str
    name: str
    platform: str
    total_ads: int
    active_ads: int
    inactive_ads: int
    average_duration_days: float
    timeline: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.advertiser_id,
            "name": self.name,
            "platform": self.platform,
            "totalAds": self.total_ads,
            "activeAds": self.active_ads,
            "inactiveAds": self.inactive_ads,
            "averageDuration": self.average_duration_days,
            "timeline": [dict(entry) for entry in self.timeline],
        }


def platform_label(platform_id) -> str:
    # Closed two-platform mapping
    return "Google Ads" if platform_id == PLATFORM_GOOGLE else "Meta Ads"


def display_ad_type(ad_type: Optional[str]) -> str:
    if ad_type in ("image", "video"):
        return ad_type
    return "text"


def _date_string(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def _meta_text(metadata: dict, key: str) -> str:
    value = metadata.get(key)
    return str(value) if value else ""


def launch_timeline(ads: list) -> list:
    """Ads launched per calendar month, oldest month first."""
    counts = {}
    for ad in ads:
        if ad.start_date is None:
            continue
        month = ad.start_date.strftime("%Y-%m")
        counts[month] = counts.get(month, 0) + 1
    return [{"month": month, "count": counts[month]} for month in sorted(counts)]


def build_ad_view(ad: Ad, advertiser: Optional[Advertiser], creatives: list) -> AdView:
    """Flatten one ad, its advertiser and its creatives (in id order)."""
    metadata = ad.metadata_ if isinstance(ad.metadata_, dict) else {}

    images = [c.content for c in creatives if c.creative_type == CREATIVE_IMAGE]
    body_text = next((c.content for c in creatives if c.creative_type == CREATIVE_BODY_TEXT), None)
    call_to_action = next((c.content for c in creatives if c.creative_type == CREATIVE_CTA), None)

    start_date = _date_string(ad.start_date)
    end_date = _date_string(ad.end_date)

    return AdView(
        id=ad.id,
        image_url=images[0] if images else PLACEHOLDER_IMAGE,
        advertiser=(advertiser.name if advertiser and advertiser.name else "Unknown"),
        platform=platform_label(advertiser.platform_id if advertiser else None),
        start_date=start_date,
        end_date=end_date,
        status="active" if ad.is_active else "inactive",
        ad_type=display_ad_type(ad.ad_type),
        images=images,
        headline=_meta_text(metadata, "headline"),
        description=_meta_text(metadata, "description"),
        body_text=body_text,
        call_to_action=call_to_action,
        cta_link=_meta_text(metadata, "cta_link"),
        placement=_meta_text(metadata, "placement"),
        first_seen=start_date,
        last_seen=end_date,
        transparency_url=_meta_text(metadata, "transparency_url") or _meta_text(metadata, "details_link"),
    )


class AdsService:
    """Query interface the gallery and advertiser dashboard read from."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def fetch_ads(self) -> FetchResult:
        """All ads, most recently ingested first."""
        db = self.session_factory()
        try:
            rows = (
                db.query(Ad, Advertiser)
                .outerjoin(Advertiser, Ad.advertiser_id == Advertiser.id)
                .order_by(Ad.created_at.desc())
                .all()
            )
            creatives = self._creatives_by_ad(db, [ad.id for ad, _ in rows])
            views = [build_ad_view(ad, advertiser, creatives.get(ad.id, [])) for ad, advertiser in rows]
            logger.info("ads_fetched", count=len(views))
            return FetchResult(ok=True, data=views)
        except Exception as e:
            logger.error("fetch_ads_failed", error=str(e))
            return FetchResult(ok=False, data=[], error=str(e))
        finally:
            db.close()

    def fetch_ad_by_id(self, ad_id: str) -> FetchResult:
        db = self.session_factory()
        try:
            row = (
                db.query(Ad, Advertiser)
                .outerjoin(Advertiser, Ad.advertiser_id == Advertiser.id)
                .filter(Ad.id == ad_id)
                .first()
            )
            if row is None:
                return FetchResult(ok=True, data=None)
            ad, advertiser = row
            creatives = self._creatives_by_ad(db, [ad.id])
            return FetchResult(ok=True, data=build_ad_view(ad, advertiser, creatives.get(ad.id, [])))
        except Exception as e:
            logger.error("fetch_ad_failed", ad_id=ad_id, error=str(e))
            return FetchResult(ok=False, data=None, error=str(e))
        finally:
            db.close()

    def summarize_advertiser(self, advertiser_id: str) -> FetchResult:
        """Per-advertiser ad statistics for the advertiser dashboard."""
        db = self.session_factory()
        try:
            advertiser = db.get(Advertiser, advertiser_id)
            if advertiser is None:
                return FetchResult(ok=True, data=None)

            ads = db.query(Ad).filter(Ad.advertiser_id == advertiser_id).all()
            active = sum(1 for ad in ads if ad.is_active)
            durations = [ad.active_duration_seconds() for ad in ads]
            average_days = round(sum(durations) / len(durations) / 86400, 1) if durations else 0.0

            return FetchResult(
                ok=True,
                data=AdvertiserSummary(
                    advertiser_id=advertiser.id,
                    name=advertiser.name,
                    platform=platform_label(advertiser.platform_id),
                    total_ads=len(ads),
                    active_ads=active,
                    inactive_ads=len(ads) - active,
                    average_duration_days=average_days,
                    timeline=launch_timeline(ads),
                ),
            )
        except Exception as e:
            logger.error("summarize_advertiser_failed", advertiser_id=advertiser_id, error=str(e))
            return FetchResult(ok=False, data=None, error=str(e))
        finally:
            db.close()

    def _creatives_by_ad(self, db, ad_ids: list) -> dict:
        grouped = {}
        if not ad_ids:
            return grouped
        try:
            creatives = (
                db.query(AdCreative)
                .filter(AdCreative.ad_id.in_(ad_ids))
                .order_by(AdCreative.id)
                .all()
            )
        except SQLAlchemyError as e:
            # Ads are still returned, without creatives
            logger.error("fetch_creatives_failed", error=str(e))
            db.rollback()
            return grouped
        for creative in creatives:
            grouped.setdefault(creative.ad_id, []).append(creative)
        return grouped
