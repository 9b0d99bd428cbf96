"""
Pytest fixtures for codegen service tests.
"""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.config import Settings
from src.database import create_engine_for_url, create_session_maker, init_db
from src.orchestration.orchestrator import Orchestrator
from tests.fakes import ScriptedModelClient


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        shutdown_grace_seconds=0.5,
    )


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-based SQLite so every session (request or background step) sees the same data."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(db_engine)


@pytest.fixture
def model() -> ScriptedModelClient:
    return ScriptedModelClient()


@pytest_asyncio.fixture
async def orchestrator(
    session_maker: async_sessionmaker[AsyncSession],
    model: ScriptedModelClient,
    settings: Settings,
) -> AsyncGenerator[Orchestrator, None]:
    """Orchestrator whose every step talks to the scripted ``model``."""
    def client_factory(provider: str, model_name: Optional[str]) -> ScriptedModelClient:
        model.selections.append((provider, model_name))
        return model

    orch = Orchestrator(session_maker, client_factory=client_factory, settings=settings)
    yield orch
    model.release_all()
    await orch.shutdown()
