import os
import tempfile

# Settings are read at import time; point them at throwaway resources first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.routes.deps import get_db
from app.core.config import settings
from app.db.base import Base
from app.db.session import enable_sqlite_foreign_keys
from app.main import app


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

API = "/api/v1"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(db, upload_dir):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def regular_payload(email="buyer@example.com", **overrides):
    payload = {
        "email": email,
        "password": "secret123",
        "userType": "regular",
        "phoneNumber": "0400000000",
        "firstName": "Ada",
        "lastName": "Buyer",
    }
    payload.update(overrides)
    return payload


def business_payload(email="shelter@example.com", **overrides):
    payload = {
        "email": email,
        "password": "secret123",
        "userType": "business",
        "phoneNumber": "0411111111",
        "businessName": "Happy Tails Shelter",
        "businessType": "shelter",
        "address": "1 Bark St",
    }
    payload.update(overrides)
    return payload


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, payload):
    res = client.post(f"{API}/auth/register", json=payload)
    assert res.status_code == 201, res.text
    body = res.json()
    return body["user"], auth_headers(body["token"])


@pytest.fixture
def seller(client):
    return register(client, business_payload())


@pytest.fixture
def buyer(client):
    return register(client, regular_payload())


@pytest.fixture
def other_buyer(client):
    return register(client, regular_payload(email="second@example.com", firstName="Bob"))


PET_FORM = {
    "name": "Rex",
    "type": "dog",
    "breed": "Kelpie",
    "age": "2 years",
    "gender": "male",
    "price": "150",
    "description": "Friendly and energetic",
    "healthInfo": "Vaccinated",
    "requirements": "Fenced yard",
}


def create_pet(client, headers, **overrides):
    data = dict(PET_FORM)
    data.update(overrides)
    res = client.post(f"{API}/pets", data=data, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def pet(client, seller):
    _, headers = seller
    return create_pet(client, headers)
