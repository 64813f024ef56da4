from collections.abc import AsyncGenerator, Generator
import os

os.environ.setdefault("TESTING", "true")

from fastapi import FastAPI  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.core.database.session import get_session, get_unit_of_work  # noqa: E402
from src.main.config import Config, get_settings  # noqa: E402
from src.main.web import get_application  # noqa: E402
from src.user.auth.keys import SigningKey  # noqa: E402
from src.user.auth.security import TokenIssuer, get_token_lifetime_policy  # noqa: E402
from tests.fakes.db import (  # noqa: E402
    FakeAsyncSession,
    FakeUnitOfWork,
    InMemoryUserRepository,
)
from tests.helpers.overrides import DependencyOverrides  # noqa: E402
from tests.helpers.providers import ProvideAsyncValue  # noqa: E402


@pytest.fixture(scope="session")
def settings() -> Config:
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def app() -> FastAPI:
    return get_application()


@pytest.fixture
def dependency_overrides(app: FastAPI) -> Generator[DependencyOverrides]:
    overrides = DependencyOverrides(app)
    yield overrides
    overrides.reset()


@pytest.fixture
def app_signing_key(app: FastAPI) -> SigningKey:
    return app.state.signing_key


@pytest.fixture
def app_issuer(app_signing_key: SigningKey) -> TokenIssuer:
    """Issuer sharing the application's key, for minting request credentials."""
    return TokenIssuer(key=app_signing_key, policy=get_token_lifetime_policy())


@pytest.fixture
def fake_session() -> FakeAsyncSession:
    return FakeAsyncSession()


@pytest.fixture
def users_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def fake_uow(
    fake_session: FakeAsyncSession, users_repo: InMemoryUserRepository
) -> FakeUnitOfWork:
    return FakeUnitOfWork(session=fake_session, repositories={"users": users_repo})


@pytest.fixture
def app_with_fakes(
    app: FastAPI,
    dependency_overrides: DependencyOverrides,
    fake_session: FakeAsyncSession,
    fake_uow: FakeUnitOfWork,
) -> FastAPI:
    dependency_overrides.set(get_session, ProvideAsyncValue(fake_session))
    dependency_overrides.set(get_unit_of_work, ProvideAsyncValue(fake_uow))
    return app


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest_asyncio.fixture
async def async_client_with_fakes(
    app_with_fakes: FastAPI,
) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app_with_fakes)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client
