import asyncio
import io
import math

import pytest
from starlette.datastructures import FormData, Headers, UploadFile

from cache import ViewCache
from config import Settings
from database import PropertyNotFound, PropertyRepository
from forms import SubmissionError
from identity import AuthorizationError, SessionUser
from services import create_property, delete_property
from tests.fakes import FakeDatabase, FakeUploader, hosted_url
from uploads import AssetUploadError

OWNER = SessionUser(id="user-1", email="dana@example.com")


def _image(payload, name=None):
    return UploadFile(file=io.BytesIO(payload.encode()), filename=f"{payload}.jpg" if name is None else name,
                      headers=Headers({"content-type": "image/jpeg"}))


@pytest.fixture
def repository():
    return PropertyRepository(FakeDatabase())


@pytest.fixture
def collection(repository):
    return repository.collection


def _create(form, repository, uploader=None, user=OWNER, cache=None, settings=None):
    return asyncio.run(create_property(
        form,
        user=user,
        repository=repository,
        uploader=uploader or FakeUploader(),
        cache=cache or ViewCache(),
        settings=settings or Settings(),
    ))


def test_zero_images_creates_record_with_empty_images(fields, repository, collection):
    uploader = FakeUploader()
    doc = _create(FormData(list(fields.items())), repository, uploader)

    assert doc["images"] == []
    assert doc["owner"] == "user-1"
    assert uploader.calls == []
    assert len(collection.docs) == 1


def test_cabin_scenario(fields, repository, collection):
    form = FormData(list(fields.items()) + [("amenities", "Wifi"), ("images", _image("cabin"))])
    doc = _create(form, repository)

    stored = collection.docs[0]
    assert stored["_id"] == doc["_id"]
    assert stored["beds"] == 2
    assert stored["location"]["city"] == "Aspen"
    assert stored["images"] == [hosted_url("propertypulse", "cabin")]
    assert stored["amenities"] == ["Wifi"]
    assert "nightly" not in stored["rates"]
    assert stored["rates"]["weekly"] == 1100
    assert "created_at" in stored


def test_images_are_stored_in_submission_order(fields, repository):
    names = ["kitchen", "porch", "loft", "view"]
    uploader = FakeUploader(delays={"kitchen": 0.03, "loft": 0.01})
    form = FormData(list(fields.items()) + [("images", _image(n)) for n in names])

    doc = _create(form, repository, uploader, settings=Settings(upload_concurrency=4))

    assert doc["images"] == [hosted_url("propertypulse", n) for n in names]


def test_unnamed_file_parts_are_not_uploaded(fields, repository):
    uploader = FakeUploader()
    form = FormData(list(fields.items()) + [("images", _image("", name=""))])
    doc = _create(form, repository, uploader)
    assert doc["images"] == []
    assert uploader.calls == []


def test_missing_identity_aborts_before_uploads_or_writes(fields, repository, collection):
    uploader = FakeUploader()
    form = FormData(list(fields.items()) + [("images", _image("cabin"))])

    with pytest.raises(AuthorizationError):
        _create(form, repository, uploader, user=None)
    with pytest.raises(AuthorizationError):
        _create(form, repository, uploader, user=SessionUser(id=""))

    assert uploader.calls == []
    assert collection.calls == []


def test_blank_beds_is_stored_as_zero(fields, repository, collection):
    fields["beds"] = ""
    _create(FormData(list(fields.items())), repository)
    assert collection.docs[0]["beds"] == 0


def test_non_numeric_rate_is_passed_through_as_nan(fields, repository, collection):
    fields["rates.monthly"] = "call us"
    _create(FormData(list(fields.items())), repository)
    assert math.isnan(collection.docs[0]["rates"]["monthly"])


def test_strict_mode_rejects_before_uploading(fields, repository, collection):
    fields["beds"] = ""
    uploader = FakeUploader()
    form = FormData(list(fields.items()) + [("images", _image("cabin"))])

    with pytest.raises(SubmissionError):
        _create(form, repository, uploader, settings=Settings(strict_numeric_fields=True))
    assert uploader.calls == []
    assert collection.docs == []


def test_upload_failure_writes_nothing(fields, repository, collection):
    uploader = FakeUploader(fail_on="porch")
    form = FormData(list(fields.items()) + [("images", _image("kitchen")), ("images", _image("porch"))])

    with pytest.raises(AssetUploadError):
        _create(form, repository, uploader)
    assert collection.docs == []


def test_images_without_configured_asset_host(fields, repository, collection):
    form = FormData(list(fields.items()) + [("images", _image("cabin"))])
    with pytest.raises(AssetUploadError):
        asyncio.run(create_property(form, user=OWNER, repository=repository, uploader=None,
                                    cache=ViewCache(), settings=Settings()))
    assert collection.docs == []


def test_create_invalidates_cached_views(fields, repository):
    cache = ViewCache()
    cache.set("/api/properties", [])
    _create(FormData(list(fields.items())), repository, cache=cache)
    assert cache.get("/api/properties") is None


def test_delete_is_scoped_to_owner(fields, repository, collection):
    doc = _create(FormData(list(fields.items())), repository)
    cache = ViewCache()
    cache.set("/api/properties", ["stale"])

    with pytest.raises(PropertyNotFound):
        delete_property(str(doc["_id"]), user=SessionUser(id="someone-else"), repository=repository, cache=cache)
    assert len(collection.docs) == 1
    assert cache.get("/api/properties") == ["stale"]

    delete_property(str(doc["_id"]), user=OWNER, repository=repository, cache=cache)
    assert collection.docs == []
    assert cache.get("/api/properties") is None


def test_delete_requires_identity(repository, collection):
    with pytest.raises(AuthorizationError):
        delete_property("65f000000000000000000000", user=None, repository=repository, cache=ViewCache())
    assert collection.calls == []
