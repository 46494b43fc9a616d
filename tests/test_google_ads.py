import asyncio

import httpx
import pytest

from adscope.scrapers.base import UpstreamError
from adscope.scrapers.google_ads import ACTIVE_WINDOW_SECONDS, GoogleAdsAdapter

NOW = 1_700_000_000


def _record(ad_id="C1", first_shown=NOW - 1000, last_shown=NOW - 100, **extra):
    record = {
        "advertiser_id": "AR123",
        "advertiser": "Tesla Inc.",
        "ad_creative_id": ad_id,
        "format": "image",
        "first_shown": first_shown,
        "last_shown": last_shown,
        "details_link": f"https://adstransparency.google.com/advertiser/AR123/creative/{ad_id}",
    }
    record.update(extra)
    return record


def _adapter(**kwargs):
    return GoogleAdsAdapter("serp-key", clock=lambda: NOW, **kwargs)


def test_active_window_is_exclusive_at_seven_days():
    adapter = _adapter()
    batch = adapter.parse(
        "AR123",
        {
            "ad_creatives": [
                _record("inside", last_shown=NOW - ACTIVE_WINDOW_SECONDS + 1, first_shown=NOW - 10**7),
                _record("boundary", last_shown=NOW - ACTIVE_WINDOW_SECONDS, first_shown=NOW - 10**7),
                _record("old", last_shown=NOW - 30 * 86400, first_shown=NOW - 10**7),
            ]
        },
    )

    flags = {ad.id: ad.is_active for ad in batch.ads}
    assert flags == {"inside": True, "boundary": False, "old": False}


def test_total_active_time_is_last_minus_first_shown():
    batch = _adapter().parse("AR123", {"ad_creatives": [_record(first_shown=NOW - 5000, last_shown=NOW - 1200)]})

    assert batch.ads[0].total_active_time == 3800
    assert batch.ads[0].start_date < batch.ads[0].end_date


def test_advertiser_name_comes_from_first_record():
    batch = _adapter().parse(
        "AR123",
        {"ad_creatives": [_record("C1"), _record("C2", advertiser="Someone Else")]},
    )

    assert batch.advertiser.id == "AR123"
    assert batch.advertiser.platform_id == 1
    assert batch.advertiser.name == "Tesla Inc."
    assert batch.advertiser.metadata is None


def test_empty_batch_defaults_name_to_unknown():
    batch = _adapter().parse("AR999", {})

    assert batch.advertiser.name == "Unknown"
    assert batch.ads == []


def test_metadata_holds_only_details_link():
    batch = _adapter().parse("AR123", {"ad_creatives": [_record("C1")]})

    assert batch.ads[0].metadata == {
        "details_link": "https://adstransparency.google.com/advertiser/AR123/creative/C1"
    }


def test_image_becomes_one_creative_with_dimensions():
    batch = _adapter().parse(
        "AR123",
        {"ad_creatives": [_record("C1", image="https://img.test/c1.jpg", width=300, height=250)]},
    )

    (creative,) = batch.ads[0].creatives
    assert creative.creative_type == "image"
    assert creative.source_url == "https://img.test/c1.jpg"
    assert creative.storage_path == "google/C1.jpg"
    assert (creative.width, creative.height) == (300, 250)


def test_records_without_image_have_no_creatives():
    batch = _adapter().parse("AR123", {"ad_creatives": [_record("C1", format="Text")]})

    assert batch.ads[0].creatives == []
    assert batch.ads[0].ad_type == "text"


def test_malformed_records_are_skipped():
    batch = _adapter().parse(
        "AR123",
        {
            "ad_creatives": [
                {"advertiser": "Tesla Inc.", "first_shown": NOW, "last_shown": NOW},
                _record("C2", first_shown="not-a-number"),
                _record("C3"),
            ]
        },
    )

    assert [ad.id for ad in batch.ads] == ["C3"]


def test_fetch_sends_transparency_center_query():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"ad_creatives": [_record("C1")]})

    adapter = _adapter(transport=httpx.MockTransport(handler))

    async def go():
        await adapter.start()
        try:
            return await adapter.fetch_for_identifier("AR123")
        finally:
            await adapter.stop()

    batch = asyncio.run(go())

    params = seen[0].url.params
    assert seen[0].url.host == "serpapi.com"
    assert params["engine"] == "google_ads_transparency_center"
    assert params["advertiser_id"] == "AR123"
    assert params["region"] == "2840"
    assert params["api_key"] == "serp-key"
    assert [ad.id for ad in batch.ads] == ["C1"]


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(200, json={"error": "Invalid API key."}),
        lambda request: httpx.Response(502, text="Bad gateway"),
        lambda request: httpx.Response(200, text="<html>not json</html>"),
    ],
    ids=["error-field", "http-error", "not-json"],
)
def test_upstream_failures_raise_upstream_error(handler):
    adapter = _adapter(transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(adapter.fetch_for_identifier("AR123"))

    assert exc_info.value.identifier == "AR123"


def test_timeout_is_an_upstream_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    adapter = _adapter(transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError, match="timed out"):
        asyncio.run(adapter.fetch_for_identifier("AR123"))
