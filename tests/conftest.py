
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from tortoise import Tortoise

from backoffice.core.db import init_db
from backoffice.main import app
from backoffice.models.bill import Bill


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database per test, with real transactions."""
    await init_db("sqlite://:memory:")
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def pending_bill(db):
    return await Bill.create(filename="facture-0001.pdf")


@pytest.fixture
def client():
    # No lifespan: routes under test have their services patched
    return TestClient(app)


