import os

# The application module builds an engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from starlette.testclient import TestClient

from app.database import build_engine, build_session_factory, init_db
from app.main import create_app


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def api(engine):
    return create_app(engine=engine)


@pytest.fixture()
def client(api):
    return TestClient(api)


@pytest.fixture()
def seeded(client):
    """ABC Corp and Widget (100 @ 18%), both with id 1."""
    company = client.post("/api/companies", json={"name": "ABC Corp", "address": "Mumbai"})
    product = client.post(
        "/api/products",
        json={"name": "Widget", "unit_price": 100, "vat_rate": 18, "quantity_in_stock": 10},
    )
    assert company.status_code == 201
    assert product.status_code == 201
    return company.json(), product.json()
