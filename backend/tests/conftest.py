from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from smokehouse.main import app
from smokehouse.schemas.catalog import Product
from smokehouse.services.cart import CartRegistry
from smokehouse.services.notifications import OrderNotifier
from smokehouse.services.orders import OrderStore


@pytest.fixture(scope="module")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def ribs() -> Product:
    return Product(id="ribs", name="Ribs", price=990, weight="500 г", category="Мясо")


@pytest.fixture
def steak() -> Product:
    return Product(id="steak", name="Steak", price=1500, weight="1.2 кг", category="Мясо")


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    # Carts and orders live on app.state; give every test a clean session store.
    app.state.cart_registry = CartRegistry()
    app.state.order_store = OrderStore()
    app.state.notifier = OrderNotifier()
    test_client = TestClient(app)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()
