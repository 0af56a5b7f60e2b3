from typing import List, Optional

import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain.entities  # noqa: F401 - registers table metadata
from config import ApplicationConfig, PasswordResetConfig
from src.adapter.repositories.user_repository import UserRepository
from src.adapter.services.memory_rate_limit_store import MemoryRateLimitStore
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.app import create_app
from src.app.services.email_sender import IEmailSender, PasswordResetEmail
from src.app.services.token_codec import TokenCodec
from src.depends import get_unit_of_work
from src.domain.entities import User

OLD_PASSWORD = "OldSecurePass123!"


class CapturingEmailSender(IEmailSender):
    """Keeps sent reset emails so tests can read the code and token"""

    def __init__(self):
        self.sent: List[PasswordResetEmail] = []

    async def send_password_reset(self, email: PasswordResetEmail) -> bool:
        self.sent.append(email)
        return True

    @property
    def last(self) -> PasswordResetEmail:
        return self.sent[-1]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest.fixture
def codec():
    return TokenCodec(memory_cost=8, time_cost=1, parallelism=1)


@pytest.fixture
def outbox():
    return CapturingEmailSender()


@pytest.fixture
def reset_config():
    # Generous verification limit so lockout can be reached from one client
    return PasswordResetConfig(verify_rate_limit=100)


@pytest.fixture
def make_client(db_session, codec, outbox):
    """Builds a test client around a fresh app with the given reset settings"""

    def _make(config: PasswordResetConfig, trusted_proxies: Optional[List[str]] = None) -> AsyncClient:
        app = create_app(
            ApplicationConfig,
            rate_limit_store=MemoryRateLimitStore(),
            token_codec=codec,
            email_sender=outbox,
            password_reset_config=config,
            trusted_proxies=trusted_proxies or [],
        )

        async def override_get_unit_of_work():
            yield SqlAlchemyUnitOfWork(db_session)

        app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work

        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return _make


@pytest_asyncio.fixture
async def client(make_client, reset_config):
    async with make_client(reset_config) as ac:
        yield ac


@pytest.fixture
def create_user(db_session):
    async def _create(email: str = "user@example.com") -> User:
        password_hash = bcrypt.hashpw(OLD_PASSWORD.encode(), bcrypt.gensalt(4))
        user = User(email=email, name="Test User", password_hash=password_hash.decode())
        await UserRepository(db_session).add(user)
        await db_session.commit()
        return user

    return _create


@pytest_asyncio.fixture
async def user(create_user):
    return await create_user()
