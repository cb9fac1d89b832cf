from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import create_tables
from app.main import create_app
from app.models.product import Product


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'moyoclub_test.db'}",
        SECRET_KEY="test-secret-key",
        USE_MOCK_EMAIL=True,
        DEBUG=True,
    )


@pytest.fixture
def application(settings):
    application = create_app(settings)
    create_tables(application.state.engine)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def db(application):
    session = application.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def client(application):
    with TestClient(application) as test_client:
        yield test_client


@pytest.fixture
def product(db):
    item = Product(
        name="Millet Breakfast Bowl",
        description="Weekly millet breakfast subscription",
        price=Decimal("249.00"),
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def sign_in(client):
    """Run the OTP flow over HTTP and return the session token."""

    def _sign_in(email: str, name: str = "Test Customer", **profile) -> str:
        response = client.post("/api/auth/request-otp", json={"email": email})
        assert response.status_code == 200, response.text
        code = response.json()["mock_otp"]

        response = client.post("/api/auth/verify-otp", json={"email": email, "otp": code, "name": name, **profile})
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _sign_in
