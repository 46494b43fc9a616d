from adscope.models.database import Base, create_db_engine, create_session_factory, init_db
from adscope.models.advertiser import Advertiser, PLATFORM_GOOGLE, PLATFORM_META
from adscope.models.ad import Ad
from adscope.models.creative import AdCreative, CREATIVE_IMAGE, CREATIVE_BODY_TEXT, CREATIVE_CTA
from adscope.models.scrape_run import ScrapeRun, ScrapeError

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "Advertiser",
    "PLATFORM_GOOGLE",
    "PLATFORM_META",
    "Ad",
    "AdCreative",
    "CREATIVE_IMAGE",
    "CREATIVE_BODY_TEXT",
    "CREATIVE_CTA",
    "ScrapeRun",
    "ScrapeError",
]
