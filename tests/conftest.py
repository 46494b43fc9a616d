import json
import os
import sys
from pathlib import Path

import httpx
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("LOG_LEVEL", "WARNING")

from adscope.config import Settings  # noqa: E402
from adscope.models import create_db_engine, create_session_factory, init_db  # noqa: E402

IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.fixture()
def session_factory():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield create_session_factory(engine=engine)
    engine.dispose()


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        storage_url="https://store.test",
        storage_service_key="service-key",
        serpapi_api_key="serp-key",
        searchapi_api_key="search-key",
        database_url="sqlite://",
        storage_backend="local",
        media_base_path=tmp_path / "media",
    )


class UpstreamStub:
    """Routes requests by host: search APIs return canned JSON, image hosts return bytes."""

    def __init__(self):
        self.google = {}
        self.meta = {}
        self.failing_images = set()
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host == "serpapi.com":
            payload = self.google.get(request.url.params.get("advertiser_id"), {"ad_creatives": []})
            return _json_response(payload)
        if host == "www.searchapi.io":
            payload = self.meta.get(request.url.params.get("page_id"), {"ads": []})
            return _json_response(payload)
        if host == "img.test":
            if str(request.url) in self.failing_images:
                return httpx.Response(404)
            return httpx.Response(200, content=IMAGE_BYTES, headers={"content-type": "image/jpeg"})
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def search_requests(self, host: str) -> list:
        return [r for r in self.requests if r.url.host == host]


def _json_response(payload) -> httpx.Response:
    if isinstance(payload, httpx.Response):
        return payload
    return httpx.Response(200, content=json.dumps(payload), headers={"content-type": "application/json"})


@pytest.fixture()
def upstream():
    return UpstreamStub()
