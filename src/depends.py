from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig, PasswordResetConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.email_sender import IEmailSender
from src.app.services.rate_limiter import RateLimiter
from src.app.services.token_codec import TokenCodec

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


# Process-wide collaborators live on app.state, built by create_app


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_email_sender(request: Request) -> IEmailSender:
    return request.app.state.email_sender


def get_password_reset_config(request: Request) -> PasswordResetConfig:
    return request.app.state.password_reset_config


async def init_db() -> None:
    """Create missing tables (development convenience, no migrations)"""
    from sqlmodel import SQLModel

    import src.domain.entities  # noqa: F401 - registers table metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
