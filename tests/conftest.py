import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from tests.fakes import FakeDatabase, FakeUploader


VALID_FIELDS = {
    "name": "Cabin",
    "type": "Cabin Or Cottage",
    "description": "Quiet cabin near the lifts",
    "location.street": "1 Pine Rd",
    "location.city": "Aspen",
    "location.state": "CO",
    "location.zipcode": "81611",
    "beds": "2",
    "baths": "1",
    "square_feet": "900",
    "rates.nightly": "",
    "rates.weekly": "1100",
    "rates.monthly": "",
    "seller_info.name": "Dana",
    "seller_info.email": "dana@example.com",
    "seller_info.phone": "555-0100",
}


@pytest.fixture
def fields():
    return dict(VALID_FIELDS)


@pytest.fixture
def settings():
    return Settings(asset_folder="propertypulse", trust_user_header=True)


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def app(settings, db, uploader):
    return create_app(settings=settings, db=db, uploader=uploader)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def owner_headers():
    return {"X-User-Id": "user-1"}
