from datetime import datetime

import pytest

from adscope.models import Ad, AdCreative, Advertiser, create_session_factory
from adscope.services.ads_service import PLACEHOLDER_IMAGE, AdsService, platform_label


def _seed(session_factory):
    db = session_factory()
    db.add_all(
        [
            Advertiser(id="AR1", platform_id=1, name="Tesla Inc."),
            Advertiser(id="P1", platform_id=2, name="SNIPES USA", metadata_={"likes": 10}),
            Ad(
                id="G1",
                advertiser_id="AR1",
                ad_type="image",
                start_date=datetime(2024, 1, 1),
                end_date=datetime(2024, 1, 11),
                is_active=False,
                total_active_time=864000,
                metadata_={"details_link": "https://adstransparency.google.com/creative/G1"},
                created_at=datetime(2024, 2, 1),
            ),
            Ad(
                id="M1",
                advertiser_id="P1",
                ad_type="dco",
                start_date=datetime(2024, 3, 1),
                end_date=datetime(2024, 3, 3),
                is_active=True,
                total_active_time=172800,
                metadata_={
                    "placement": "FACEBOOK, INSTAGRAM",
                    "cta_link": "https://snipesusa.com/",
                    "headline": "SNIPES",
                    "transparency_url": "https://facebook.com/ads/library/?id=M1",
                    "details_link": "https://ignored.test",
                },
                created_at=datetime(2024, 3, 5),
            ),
            Ad(
                id="M2",
                advertiser_id="P1",
                ad_type="video",
                is_active=True,
                total_active_time=None,
                metadata_=None,
                created_at=datetime(2024, 1, 1),
            ),
        ]
    )
    db.commit()
    db.add_all(
        [
            AdCreative(ad_id="M1", creative_type="image", content="https://store.test/meta/M1_0.jpg"),
            AdCreative(ad_id="M1", creative_type="body_text", content="First body"),
            AdCreative(ad_id="M1", creative_type="image", content="https://store.test/meta/M1_1.jpg"),
            AdCreative(ad_id="M1", creative_type="cta", content="Shop now", metadata_={"cta_type": "SHOP_NOW"}),
            AdCreative(ad_id="M1", creative_type="body_text", content="Second body"),
        ]
    )
    db.commit()
    db.close()


@pytest.fixture()
def service(session_factory):
    _seed(session_factory)
    return AdsService(session_factory)


def test_fetch_ads_orders_by_ingestion_time_desc(service):
    result = service.fetch_ads()

    assert result.ok
    assert [view.id for view in result.data] == ["M1", "G1", "M2"]


def test_view_flattens_creatives_and_metadata(service):
    view = service.fetch_ad_by_id("M1").data

    assert view.images == ["https://store.test/meta/M1_0.jpg", "https://store.test/meta/M1_1.jpg"]
    assert view.image_url == view.images[0]
    assert view.body_text == "First body"
    assert view.call_to_action == "Shop now"
    assert view.advertiser == "SNIPES USA"
    assert view.platform == "Meta Ads"
    assert view.status == "active"
    assert view.ad_type == "text"
    assert view.headline == "SNIPES"
    assert view.description == ""
    assert view.cta_link == "https://snipesusa.com/"
    assert view.placement == "FACEBOOK, INSTAGRAM"
    assert view.transparency_url == "https://facebook.com/ads/library/?id=M1"
    assert view.start_date == "2024-03-01T00:00:00"
    assert view.first_seen == view.start_date
    assert view.last_seen == view.end_date == "2024-03-03T00:00:00"


def test_view_without_images_uses_placeholder(service):
    view = service.fetch_ad_by_id("G1").data

    assert view.images == []
    assert view.image_url == PLACEHOLDER_IMAGE
    assert view.platform == "Google Ads"
    assert view.status == "inactive"
    assert view.ad_type == "image"
    assert view.transparency_url == "https://adstransparency.google.com/creative/G1"


def test_partial_records_degrade_to_empty_fields(service):
    view = service.fetch_ad_by_id("M2").data

    assert view.ad_type == "video"
    assert view.start_date == ""
    assert view.end_date == ""
    assert view.body_text is None
    assert view.call_to_action is None
    assert view.headline == ""
    assert view.transparency_url == ""


def test_ad_with_missing_advertiser_still_reads(session_factory):
    db = session_factory()
    db.add(Ad(id="X1", advertiser_id="gone", ad_type="image", is_active=False))
    db.commit()
    db.close()

    view = AdsService(session_factory).fetch_ad_by_id("X1").data

    assert view.advertiser == "Unknown"
    assert view.platform == "Meta Ads"


def test_to_dict_uses_display_keys(service):
    data = service.fetch_ad_by_id("M1").data.to_dict()

    assert data["imageUrl"] == "https://store.test/meta/M1_0.jpg"
    assert data["callToAction"] == "Shop now"
    assert data["transparencyUrl"] == "https://facebook.com/ads/library/?id=M1"
    assert set(data) >= {"id", "advertiser", "platform", "startDate", "endDate", "status", "firstSeen", "lastSeen"}


def test_unknown_id_is_ok_with_no_data(service):
    result = service.fetch_ad_by_id("nope")

    assert result.ok
    assert result.data is None


@pytest.mark.parametrize("platform_id,label", [(1, "Google Ads"), (2, "Meta Ads"), (3, "Meta Ads"), (None, "Meta Ads")])
def test_platform_label(platform_id, label):
    assert platform_label(platform_id) == label


def test_store_failure_returns_error_result():
    # No tables created: every query fails
    broken = AdsService(create_session_factory("sqlite://"))

    listing = broken.fetch_ads()
    single = broken.fetch_ad_by_id("M1")
    summary = broken.summarize_advertiser("P1")

    assert (listing.ok, listing.data) == (False, [])
    assert (single.ok, single.data) == (False, None)
    assert (summary.ok, summary.data) == (False, None)
    assert listing.error


def test_empty_store_is_ok_and_empty(session_factory):
    result = AdsService(session_factory).fetch_ads()

    assert result.ok
    assert result.data == []


def test_summarize_advertiser(service):
    summary = service.summarize_advertiser("P1").data

    assert summary.name == "SNIPES USA"
    assert summary.platform == "Meta Ads"
    assert (summary.total_ads, summary.active_ads, summary.inactive_ads) == (2, 2, 0)
    # M1: 2 days, M2: no duration information
    assert summary.average_duration_days == 1.0
    assert summary.timeline == [{"month": "2024-03", "count": 1}]


def test_summarize_unknown_advertiser(service):
    result = service.summarize_advertiser("missing")

    assert result.ok
    assert result.data is None


def test_summary_timeline_counts_launches_per_month(session_factory):
    db = session_factory()
    db.add(Advertiser(id="AR1", platform_id=1, name="Tesla Inc."))
    db.add_all(
        [
            Ad(id="A", advertiser_id="AR1", start_date=datetime(2024, 1, 20), is_active=True),
            Ad(id="B", advertiser_id="AR1", start_date=datetime(2023, 12, 2), is_active=False),
            Ad(id="C", advertiser_id="AR1", start_date=datetime(2024, 1, 3), is_active=True),
            Ad(id="D", advertiser_id="AR1", start_date=None, is_active=True),
        ]
    )
    db.commit()
    db.close()

    summary = AdsService(session_factory).summarize_advertiser("AR1").data

    assert summary.timeline == [
        {"month": "2023-12", "count": 1},
        {"month": "2024-01", "count": 2},
    ]
    assert summary.to_dict()["timeline"] == summary.timeline
