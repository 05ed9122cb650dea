"""Pytest fixtures backed by an in-memory MongoDB."""

import mongomock
import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    yield client["konveksi_test"]
    client.close()


@pytest.fixture
def app(db):
    from main import create_app

    return create_app(db)


@pytest.fixture
def client(app):
    return TestClient(app)
