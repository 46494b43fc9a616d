from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from adscope.config import Settings
from adscope.models import create_db_engine, create_session_factory, init_db
from adscope.scrapers.orchestrator import build_orchestrator
from adscope.services.ads_service import AdsService
from adscope.utils.logger import get_logger

logger = get_logger("api")


class GoogleScrapeRequest(BaseModel):
    advertiser_ids: Optional[list[str]] = None


class MetaScrapeRequest(BaseModel):
    page_ids: Optional[list[str]] = None


def create_app(
    settings: Settings = None,
    session_factory: sessionmaker = None,
    transport: httpx.AsyncBaseTransport = None,
) -> FastAPI:
    """Build the app; missing configuration raises ConfigError here, at startup."""
    if settings is None:
        settings = Settings.from_env()
    if session_factory is None:
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        session_factory = create_session_factory(engine=engine)

    app = FastAPI(title="adscope")
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.ads_service = AdsService(session_factory)

    async def run_scrape(platform: str, identifiers: Optional[list[str]]):
        try:
            orchestrator = build_orchestrator(
                platform,
                settings,
                session_factory,
                transport=transport,
                metadata={"trigger": "http"},
            )
            summary = await orchestrator.run(identifiers)
        except Exception as e:
            logger.error("scrape_request_failed", platform=platform, error=str(e))
            return JSONResponse({"error": str(e)}, status_code=500)
        return {
            "success": True,
            "message": "Scraping completed",
            "results": summary.to_dict()["results"],
        }

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    @app.post("/scrape/google-ads")
    async def scrape_google_ads(body: Optional[GoogleScrapeRequest] = None):
        return await run_scrape("google", body.advertiser_ids if body else None)

    @app.post("/scrape/meta-ads")
    async def scrape_meta_ads(body: Optional[MetaScrapeRequest] = None):
        return await run_scrape("meta", body.page_ids if body else None)

    @app.get("/ads")
    def list_ads(request: Request):
        result = request.app.state.ads_service.fetch_ads()
        if not result.ok:
            return JSONResponse({"error": result.error}, status_code=503)
        return [view.to_dict() for view in result.data]

    @app.get("/ads/{ad_id}")
    def get_ad(ad_id: str, request: Request):
        result = request.app.state.ads_service.fetch_ad_by_id(ad_id)
        if not result.ok:
            return JSONResponse({"error": result.error}, status_code=503)
        if result.data is None:
            return JSONResponse({"error": "Ad not found"}, status_code=404)
        return result.data.to_dict()

    @app.get("/advertisers/{advertiser_id}/summary")
    def advertiser_summary(advertiser_id: str, request: Request):
        result = request.app.state.ads_service.summarize_advertiser(advertiser_id)
        if not result.ok:
            return JSONResponse({"error": result.error}, status_code=503)
        if result.data is None:
            return JSONResponse({"error": "Advertiser not found"}, status_code=404)
        return result.data.to_dict()

    return app
