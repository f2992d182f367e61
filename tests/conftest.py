import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from cartlines import CartOwner
from cart_service.database import cart_db
from cart_service.main import app
from cart_service.security import issue_account_token
from storefront.core.session import MemoryStore, SessionIdentity
from storefront.services.cart_store import CartStoreClient

CART_SERVICE_URL = "http://cart.test"


@pytest.fixture(autouse=True)
def reset_carts():
    """Every test starts with no carts"""
    cart_db.reset()
    yield
    cart_db.reset()


@pytest.fixture
def test_client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def account_token() -> str:
    return issue_account_token("user-42")


@pytest.fixture
def account(account_token) -> CartOwner:
    return CartOwner.account("user-42", account_token)


@pytest.fixture
def session() -> SessionIdentity:
    return SessionIdentity(MemoryStore())


@pytest.fixture
def guest(session) -> CartOwner:
    return CartOwner.guest(session.get_or_create())


@pytest_asyncio.fixture
async def store():
    """Cart store client talking to the service in-process"""
    client = CartStoreClient(
        CART_SERVICE_URL,
        timeout=5.0,
        transport=httpx.ASGITransport(app=app),
    )
    yield client
    await client.close()
