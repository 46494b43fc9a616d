"""Shared adapter contract and the intermediate records every platform produces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import httpx
from dateutil.parser import parse as parse_date

from adscope.utils.logger import get_logger

logger = get_logger("scrapers")


class UpstreamError(Exception):
    """Upstream search API failed for one identifier."""

    def __init__(self, identifier: str, message: str):
        super().__init__(f"{identifier}: {message}")
        self.identifier = identifier
        self.message = message


@dataclass
class ScrapedCreative:
    """A creative ready for insertion.

    Image creatives carry the remote ``source_url`` and target
    ``storage_path``; their ``content`` is filled in with the public URL once
    the asset has been persisted.
    """

    creative_type: str
    content: Optional[str] = None
    source_url: Optional[str] = None
    storage_path: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    metadata: Optional[dict] = None


@dataclass
class ScrapedAd:
    id: str
    ad_type: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    is_active: bool
    total_active_time: Optional[int]
    metadata: dict = field(default_factory=dict)
    creatives: list = field(default_factory=list)


@dataclass
class ScrapedAdvertiser:
    id: str
    platform_id: int
    name: str
    # None leaves stored metadata untouched on upsert
    metadata: Optional[dict] = None


@dataclass
class ScrapedBatch:
    identifier: str
    advertiser: Optional[ScrapedAdvertiser]
    ads: list = field(default_factory=list)


def utc_from_timestamp(value) -> Optional[datetime]:
    """UNIX seconds to a naive UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(float(value), tz=timezone.utc).replace(tzinfo=None)


def parse_upstream_datetime(value) -> Optional[datetime]:
    """Parse an ISO string or UNIX timestamp; anything unparseable is None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            return utc_from_timestamp(value)
        parsed = parse_date(str(value))
    except (ValueError, OverflowError, OSError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_ad_type(value) -> str:
    if not value:
        return "unknown"
    return str(value).strip().lower() or "unknown"


def ordered_range(ad_id: str, start: Optional[datetime], end: Optional[datetime]):
    """Clamp end to start when upstream reports them inverted."""
    if start and end and end < start:
        logger.warning("ad_dates_inverted", ad_id=ad_id, start=start.isoformat(), end=end.isoformat())
        return start, start
    return start, end


class PlatformAdapter(ABC):
    """Fetches one identifier from an upstream search API and maps it to a ScrapedBatch."""

    platform: str = ""
    platform_id: int = 0
    search_url: str = ""

    def __init__(self, api_key: str, timeout: float = 30.0, transport: httpx.AsyncBaseTransport = None):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def start(self):
        """Initialize the HTTP client."""
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def stop(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None

    @abstractmethod
    def build_params(self, identifier: str) -> dict:
        """Query parameters for the upstream search request."""

    @abstractmethod
    def parse(self, identifier: str, payload: dict) -> ScrapedBatch:
        """Map an upstream payload to the common representation."""

    async def fetch_for_identifier(self, identifier: str) -> ScrapedBatch:
        payload = await self._request(identifier)
        try:
            batch = self.parse(identifier, payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UpstreamError(identifier, f"unexpected payload shape: {e}") from e

        logger.info(
            "ads_fetched",
            platform=self.platform,
            identifier=identifier,
            count=len(batch.ads),
        )
        return batch

    async def _request(self, identifier: str) -> dict:
        if self.client is None:
            await self.start()

        params = {**self.build_params(identifier), "api_key": self.api_key}
        logger.info("upstream_request", platform=self.platform, identifier=identifier)

        try:
            response = await self.client.get(self.search_url, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamError(identifier, "request timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamError(identifier, f"request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            if response.is_error:
                raise UpstreamError(identifier, f"HTTP {response.status_code}") from e
            raise UpstreamError(identifier, "response is not valid JSON") from e

        if isinstance(payload, dict) and payload.get("error"):
            raise UpstreamError(identifier, str(payload["error"]))
        if response.is_error:
            raise UpstreamError(identifier, f"HTTP {response.status_code}")
        if not isinstance(payload, dict):
            raise UpstreamError(identifier, "response is not a JSON object")

        return payload
