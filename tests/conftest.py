import os
from typing import Generator

# Keep the module-level engine off the working directory during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront import crud, models
from storefront.db import init_db, make_engine
from storefront.main import app, get_db, get_payment_verifier
from storefront.payments import PaystackVerifier

@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = make_engine("sqlite://", poolclass=StaticPool)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    init_db(engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(scope="function")
def client(db_session):
    # Override dependency to use the same session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def catalog(db_session):
    """Two categories, two active products and one hidden product."""
    phones = models.Category(name="Phones & Tablets")
    audio = models.Category(name="Audio")
    db_session.add_all([phones, audio])
    db_session.flush()
    phone = models.Product(name="NeoPhone X1", price=250000, category_id=phones.id, description="5G", image="/static/img/phone.png", active=1)
    pods = models.Product(name="BassPods Wireless", price=68000, category_id=audio.id, description="ANC", image="", active=1)
    hidden = models.Product(name="Prototype Z", price=999, category_id=phones.id, active=0)
    db_session.add_all([phone, pods, hidden])
    db_session.commit()
    return {"phones": phones, "audio": audio, "phone": phone, "pods": pods, "hidden": hidden}


class FakeGateway:
    """Stands in for the payment gateway's verify endpoint."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {"status": True, "message": "Verification successful", "data": {"status": "success"}}
        self.error = None

    def reply(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def verifier(self, secret_key="sk_test_123"):
        return PaystackVerifier(
            secret_key=secret_key,
            base_url="https://gateway.test",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture(scope="function")
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_payment_verifier] = lambda: fake.verifier()
    yield fake
    app.dependency_overrides.pop(get_payment_verifier, None)


def login(client, email, password):
    return client.post("/login", data={"email": email, "password": password}, follow_redirects=False)


@pytest.fixture(scope="function")
def admin_client(client, db_session):
    crud.create_user(db_session, "admin@neotech.local", "admin123", role="admin")
    r = login(client, "admin@neotech.local", "admin123")
    assert r.status_code == 303
    return client
