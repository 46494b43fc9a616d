import time

import pytest
from fastapi.testclient import TestClient

import adscope.api as api_module
from adscope.api import create_app


@pytest.fixture()
def client(settings, session_factory, upstream):
    app = create_app(settings, session_factory=session_factory, transport=upstream.transport())
    with TestClient(app) as test_client:
        yield test_client


def test_google_scrape_endpoint(client, upstream):
    now = int(time.time())
    upstream.google["AR123"] = {
        "ad_creatives": [
            {
                "advertiser": "Tesla Inc.",
                "ad_creative_id": "C1",
                "format": "image",
                "image": "https://img.test/c1.jpg",
                "first_shown": now - 100,
                "last_shown": now - 50,
                "details_link": "https://adstransparency.google.com/creative/C1",
            }
        ]
    }

    response = client.post("/scrape/google-ads", json={"advertiser_ids": ["AR123"]})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Scraping completed"
    assert body["results"][0]["identifier"] == "AR123"
    assert body["results"][0]["ads_processed"] == 1

    ads = client.get("/ads").json()
    assert [ad["id"] for ad in ads] == ["C1"]
    assert ads[0]["status"] == "active"
    assert ads[0]["platform"] == "Google Ads"

    detail = client.get("/ads/C1").json()
    assert detail["imageUrl"] == "https://store.test/google/C1.jpg"

    summary = client.get("/advertisers/AR123/summary").json()
    assert summary["totalAds"] == 1
    assert summary["activeAds"] == 1


def test_meta_scrape_without_body_uses_default_page(client, upstream):
    response = client.post("/scrape/meta-ads")

    assert response.status_code == 200
    assert response.json()["results"][0]["identifier"] == "80379486838"
    assert upstream.search_requests("www.searchapi.io")[0].url.params["page_id"] == "80379486838"


def test_failed_identifier_still_returns_200(client, upstream):
    upstream.meta["P1"] = {"error": "Invalid page id"}

    response = client.post("/scrape/meta-ads", json={"page_ids": ["P1"]})

    assert response.status_code == 200
    result = response.json()["results"][0]
    assert result["status"] == "failed"
    assert result["error"] == "Invalid page id"


def test_unhandled_error_returns_500(client, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("store unreachable")

    monkeypatch.setattr(api_module, "build_orchestrator", explode)

    response = client.post("/scrape/google-ads", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "store unreachable"}


def test_missing_ad_and_advertiser_are_404(client):
    assert client.get("/ads/missing").status_code == 404
    assert client.get("/advertisers/missing/summary").status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
