import pytest
import pytest_asyncio
from tortoise import Tortoise
from fastapi.testclient import TestClient

from app.core.db import MODELS_MODULES
from app.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database per test."""
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": MODELS_MODULES},
        use_tz=True,
        timezone="UTC",
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()
