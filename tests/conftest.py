"""Pytest configuration and shared fixtures."""

from collections import deque
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Deque, List, Union

import pytest

from findr.domain.entities.listing import Listing, SellerInfo
from findr.domain.entities.search_criteria import SearchCriteria
from findr.domain.interfaces.provider_interface import ProviderClientInterface
from findr.infrastructure.provider.models import ProviderRequest, ProviderResponse
from findr.utils.config import ENV_OVERRIDES, AppConfig, reset_config

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def advance_ms(self, milliseconds: float) -> None:
        self.now += milliseconds / 1000.0


class FakeProviderClient(ProviderClientInterface):
    """Provider client that replays queued responses or exceptions."""

    def __init__(self, outcomes: List[Union[ProviderResponse, Exception]] = None):
        self.outcomes: Deque[Union[ProviderResponse, Exception]] = deque(outcomes or [])
        self.requests: List[ProviderRequest] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def queue_html(self, html: str, status_code: int = 200) -> None:
        self.outcomes.append(ProviderResponse(status_code=status_code, body=html))

    def queue_error(self, error: Exception) -> None:
        self.outcomes.append(error)

    async def fetch(self, request: ProviderRequest) -> ProviderResponse:
        self.requests.append(request)
        if not self.outcomes:
            raise AssertionError(f"Unexpected provider call for {request.url}")
        outcome = self.outcomes.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


def load_fixture(name: str) -> str:
    """Read an HTML fixture from tests/fixtures."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep every test independent of the developer's environment and config."""
    for env_name in ENV_OVERRIDES:
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.delenv("FINDR_CONFIG", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def test_config() -> AppConfig:
    """Configuration with credentials and zero-delay retries."""
    return AppConfig.model_validate({
        "provider": {"api_key": "test-key", "zone": "test_zone"},
        "retry": {
            "max_retries": 3,
            "base_delay_seconds": 0.0,
            "max_jitter_seconds": 0.0,
            "rate_limit_cooldown_seconds": 0.0,
            "max_rate_limit_retries": 1,
        },
        "rate_limit": {"requests_per_minute": 1000, "max_concurrent_requests": 100},
    })


@pytest.fixture
def fake_clock() -> FakeClock:
    """Manually advanced clock for limiter and cache tests."""
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeProviderClient:
    """Provider client with an empty outcome queue."""
    return FakeProviderClient()


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for scoring and parsing."""
    return FIXED_NOW


@pytest.fixture
def search_html() -> str:
    """Search results page with five listing cards."""
    return load_fixture("facebook-marketplace-search.html")


@pytest.fixture
def two_card_html() -> str:
    """Search results page with two in-range chair cards."""
    return load_fixture("facebook-marketplace-search-two.html")


@pytest.fixture
def item_html() -> str:
    """Single listing detail page."""
    return load_fixture("facebook-marketplace-item.html")


@pytest.fixture
def sample_criteria() -> SearchCriteria:
    """Typical search for a chair under $200."""
    return SearchCriteria(
        query="vintage chair",
        location="Brooklyn, NY",
        radius=25,
        min_price=50,
        max_price=200,
        limit=10,
    )


@pytest.fixture
def sample_listing(now) -> Listing:
    """A complete listing that matches sample_criteria well."""
    return Listing(
        listing_id="123456789",
        listing_url="https://www.facebook.com/marketplace/item/123456789",
        title="Vintage Mid-Century Chair",
        price=150.0,
        currency="USD",
        location="Brooklyn, NY",
        distance=3.0,
        description="Beautiful vintage chair in solid walnut, recently reupholstered.",
        condition="Good",
        seller_info=SellerInfo(
            name="John Doe",
            rating="★★★★☆ 4.8",
            joined_date="January 2017",
            profile_url="https://www.facebook.com/user/johndoe",
        ),
        posted_at=now - timedelta(hours=2),
    )


@pytest.fixture
def sample_listings(now) -> List[Listing]:
    """Listings of varying quality for ranking tests."""
    return [
        Listing(
            listing_id="1",
            listing_url="https://www.facebook.com/marketplace/item/1",
            title="Office desk",
            price=500.0,
            posted_at=now - timedelta(days=30),
        ),
        Listing(
            listing_id="2",
            listing_url="https://www.facebook.com/marketplace/item/2",
            title="Vintage chair",
            price=60.0,
            distance=2.0,
            posted_at=now - timedelta(hours=1),
        ),
        Listing(
            listing_id="3",
            listing_url="https://www.facebook.com/marketplace/item/3",
            title="Wooden chair",
            price=180.0,
            posted_at=now - timedelta(days=2),
        ),
    ]
