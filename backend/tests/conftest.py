import httpx
import pytest
import pytest_asyncio
import respx

from factories import BASE_URL, token_response

from app.config import Settings


class FakeClock:
    """Manually advanced clock, usable for both wall and monotonic time."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Records requested sleeps and advances the clock instead of waiting."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sleep(clock):
    return FakeSleep(clock)


@pytest.fixture
def test_settings():
    return Settings(
        amadeus_client_id="client-id",
        amadeus_client_secret="client-secret",
        amadeus_base_url=BASE_URL,
        calendar_min_interval_s=0,
        reference_preload_enabled=False,
    )


@pytest.fixture
def provider():
    """respx router for the provider; the token endpoint always succeeds."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as mock:
        mock.post("/v1/security/oauth2/token", name="token").respond(200, json=token_response())
        yield mock


@pytest_asyncio.fixture
async def http_client():
    async with httpx.AsyncClient(base_url=BASE_URL) as client:
        yield client
