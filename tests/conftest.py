import mongomock
import pytest
from fastapi.testclient import TestClient

from noter.core.config import settings
from noter.infrastructure.db import mongo
from noter.infrastructure.db.bootstrap import ensure_indexes
from noter.main import create_app

PASSWORD = "Aa1!aaaa"


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    root = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(root))
    return root


@pytest.fixture(autouse=True)
def db():
    database = mongomock.MongoClient()["noter_test"]
    mongo.use_database(database)
    ensure_indexes()
    yield database
    mongo.close_mongo()


@pytest.fixture()
def client(db, upload_dir):
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def signup(client, email="a@b.com", name="Ada Lovelace", password=PASSWORD):
    return client.post(
        "/api/user/new",
        json={"name": name, "emailAddress": email, "password": password, "confirmPassword": password},
    )


def login(client, email="a@b.com", password=PASSWORD):
    return client.post("/api/user/authenticate", json={"emailAddress": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth(client):
    """Signed-up and logged-in user: (headers, user_id)."""
    assert signup(client).status_code == 201
    res = login(client)
    assert res.status_code == 200, res.text
    body = res.json()
    return bearer(body["token"]), body["user"]["id"]
