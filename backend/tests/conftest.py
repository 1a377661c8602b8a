"""
Pytest configuration and fixtures for SEOpilot tests.
"""
import uuid as uuid_module
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy import JSON
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# IMPORTANT: Patch PostgreSQL types for SQLite compatibility
# Must be done before importing any models
import sqlalchemy.dialects.postgresql as pg_dialect
from sqlalchemy.types import TypeDecorator, CHAR


class SQLiteUUID(TypeDecorator):
    """SQLite-compatible UUID type."""
    impl = CHAR(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return uuid_module.UUID(value)
        return value


pg_dialect.JSONB = JSON
pg_dialect.UUID = SQLiteUUID

from seopilot.config import settings
from seopilot.database import get_db
from seopilot.models.base import Base
from seopilot.models import CodebaseScan, Change, SearchMetricsDaily  # noqa: F401
from seopilot.services.frameworks import HandlerRegistry, build_default_registry
from seopilot.services.types import CodebaseProfile, ImageInfo, PageInfo

from fixtures.sample_repos import (
    ASTRO_REPO,
    FIXED_MTIME,
    HTML_REPO,
    NEXT_APP_REPO,
    NEXT_PAGES_REPO,
    InMemoryFileReader,
    write_tree,
)
from fixtures.profiles import make_page, make_profile

# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# FastAPI App Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(db_session: AsyncSession, repos_root) -> FastAPI:
    """Create test FastAPI application."""
    from seopilot.main import app as main_app

    async def override_get_db():
        yield db_session

    main_app.dependency_overrides[get_db] = override_get_db

    yield main_app

    main_app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client. Lifespan is not run, so init_db never touches Postgres."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def repos_root(tmp_path, monkeypatch):
    """REPOS_ROOT pointing at a temporary directory."""
    root = tmp_path / "repos"
    root.mkdir()
    monkeypatch.setattr(settings, "REPOS_ROOT", str(root))
    return root


# ============================================================================
# Repository Fixtures
# ============================================================================

@pytest.fixture
def registry() -> HandlerRegistry:
    return build_default_registry()


@pytest.fixture
def next_app_reader() -> InMemoryFileReader:
    return InMemoryFileReader(NEXT_APP_REPO, mtime=FIXED_MTIME)


@pytest.fixture
def next_pages_reader() -> InMemoryFileReader:
    return InMemoryFileReader(NEXT_PAGES_REPO)


@pytest.fixture
def astro_reader() -> InMemoryFileReader:
    return InMemoryFileReader(ASTRO_REPO)


@pytest.fixture
def html_reader() -> InMemoryFileReader:
    return InMemoryFileReader(HTML_REPO)


@pytest.fixture
def next_app_repo(repos_root):
    """NEXT_APP_REPO written to disk under REPOS_ROOT/acme."""
    return write_tree(repos_root / "acme", NEXT_APP_REPO)


@pytest.fixture
def html_repo(repos_root):
    return write_tree(repos_root / "plain", HTML_REPO)


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_pages() -> list[PageInfo]:
    return [
        make_page("/", "app/page.tsx", has_schema=True, internal_links=["/about", "/blog/launch"]),
        make_page("/about", "app/about/page.tsx"),
        make_page(
            "/blog/launch",
            "app/blog/launch/page.tsx",
            images=[ImageInfo(src="/hero.png", alt=None), ImageInfo(src="/team.png", alt="Team")],
        ),
    ]


@pytest.fixture
def sample_profile(sample_pages) -> CodebaseProfile:
    return make_profile(
        sample_pages,
        existing_sitemap="app/sitemap.ts",
        existing_robots="app/robots.ts",
    )
