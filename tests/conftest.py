"""Fixtures de pytest: SQLite en memoria y TestClient de FastAPI"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import app.models  # noqa: F401
from app.database import get_session
from app.main import app as fastapi_app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine) -> Generator[TestClient, None, None]:
    """Cliente con una sesión nueva por request contra la base de pruebas"""

    def override_get_session():
        with Session(engine) as session:
            yield session

    fastapi_app.dependency_overrides[get_session] = override_get_session
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def wallet(client: TestClient) -> dict:
    response = client.post("/wallets", json={"name": "W1", "currency": "MYR", "balance": "5000"})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def make_loan(client: TestClient, wallet: dict):
    """Crea un préstamo (con su transacción de origen por defecto) y devuelve el JSON"""

    def _make_loan(type: str = "lend", total_amount: str = "1000", with_origination: bool = True, **fields) -> dict:
        payload = {
            "type": type,
            "person": fields.pop("person", "Alice"),
            "total_amount": total_amount,
            "currency": "MYR",
            "start_date": "2026-01-10",
            **fields,
        }
        if with_origination:
            payload["wallet_id"] = wallet["id"]
        response = client.post("/loans", json=payload)
        assert response.status_code == 200, response.text
        return response.json()

    return _make_loan
