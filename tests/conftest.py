import mongomock
import pytest
from fastapi.testclient import TestClient

from main import app, build_services


@pytest.fixture
def services():
    return build_services(mongomock.MongoClient().db, bcrypt_rounds=4)


@pytest.fixture
def client(services):
    app.state.services = services
    with TestClient(app) as c:
        yield c
