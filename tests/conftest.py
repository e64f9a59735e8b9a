"""Shared pytest fixtures: per-test SQLite database, running app and HTTP client."""

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from linkshort.config import Settings
from linkshort.dependencies import ServiceContainer
from linkshort.main import create_app
from linkshort.stats import ServiceStats
from linkshort.store import LinkStore

TEST_SECRET = "lemurs have stripy tails"
TEST_HOST = "https://short.test"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        APP_ENV="test",
        BASE_URL=f"{TEST_HOST}/",
        SECRET=TEST_SECRET,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'links.db'}",
    )


@pytest.fixture
def serve(settings: Settings) -> Callable:
    """Run a fresh app through its lifespan, optionally overriding settings."""

    @asynccontextmanager
    async def _serve(**overrides) -> AsyncIterator[tuple[ServiceContainer, AsyncClient]]:
        app = create_app(settings.model_copy(update=overrides))
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url=TEST_HOST) as ac:
                yield app.state.container, ac

    return _serve


@pytest_asyncio.fixture
async def running(serve) -> AsyncGenerator[tuple[ServiceContainer, AsyncClient], None]:
    async with serve() as pair:
        yield pair


@pytest.fixture
def container(running: tuple[ServiceContainer, AsyncClient]) -> ServiceContainer:
    return running[0]


@pytest.fixture
def client(running: tuple[ServiceContainer, AsyncClient]) -> AsyncClient:
    return running[1]


@pytest_asyncio.fixture
async def store(settings: Settings) -> AsyncGenerator[LinkStore, None]:
    link_store = LinkStore.from_url(settings.DATABASE_URL)
    await link_store.create_tables()
    yield link_store
    await link_store.close()


@pytest.fixture
def stats() -> ServiceStats:
    return ServiceStats()


async def shorten(client: AsyncClient, long_url: str, secret: str = TEST_SECRET, prefix: str = "/") -> str:
    response = await client.post(f"{prefix}_create", json={"long_url": long_url, "secret": secret})
    assert response.status_code == 200, response.text
    return response.json()["short_url"]


@pytest.fixture
def create_link() -> Callable:
    return shorten
