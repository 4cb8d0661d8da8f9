"""Tests for both persistence backends."""

import pytest

from conftest import TickingClock, make_face, make_new_analysis

from facelens.config import TestingConfig
from facelens.domain.models import ImageDimensions, NewFaceAnalysis, NewUser
from facelens.infrastructure.storage import (
    DuplicateUsernameError,
    MemoryStorage,
    SQLAlchemyStorage,
    create_storage,
)


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    clock = TickingClock()
    if request.param == "memory":
        return MemoryStorage(clock=clock)
    return SQLAlchemyStorage.from_url("sqlite://", clock=clock)


def test_create_and_get_analysis(storage):
    faces = [make_face("face-1"), make_face("face-2", x=100, gender="male")]
    created = storage.create_analysis(make_new_analysis("team.jpg", faces))

    assert created.id
    fetched = storage.get_analysis(created.id)
    assert fetched is not None
    assert fetched.image_file_name == "team.jpg"
    assert fetched.image_dimensions.width == 640
    assert fetched.detected_faces == tuple(faces)
    assert fetched.processing_time == "1.2s"
    assert fetched.analysis_timestamp == created.analysis_timestamp


def test_get_missing_analysis(storage):
    assert storage.get_analysis("does-not-exist") is None


def test_list_newest_first_with_limit(storage):
    ids = [storage.create_analysis(make_new_analysis(f"{i}.jpg")).id for i in range(12)]

    default = storage.list_analyses()
    assert len(default) == 10
    assert [r.id for r in default] == list(reversed(ids))[:10]

    assert [r.id for r in storage.list_analyses(limit=3)] == list(reversed(ids))[:3]


def test_list_with_non_positive_limit(storage):
    storage.create_analysis(make_new_analysis())
    assert storage.list_analyses(limit=0) == []
    assert storage.list_analyses(limit=-5) == []


def test_ids_are_unique(storage):
    first = storage.create_analysis(make_new_analysis())
    second = storage.create_analysis(make_new_analysis())
    assert first.id != second.id


def test_missing_processing_time_is_none(storage):
    created = storage.create_analysis(NewFaceAnalysis(
        image_file_name="empty.jpg",
        image_dimensions=ImageDimensions(10, 10),
        detected_faces=(),
    ))
    assert storage.get_analysis(created.id).processing_time is None
    assert storage.get_analysis(created.id).detected_faces == ()


def test_users(storage):
    user = storage.create_user(NewUser(username="ada", password="secret"))

    assert storage.get_user(user.id) == user
    assert storage.get_user_by_username("ada") == user
    assert storage.get_user_by_username("bob") is None
    assert storage.get_user("missing") is None


def test_duplicate_username(storage):
    storage.create_user(NewUser(username="ada", password="one"))
    with pytest.raises(DuplicateUsernameError):
        storage.create_user(NewUser(username="ada", password="two"))


def test_factory_defaults_to_memory():
    assert isinstance(create_storage(TestingConfig()), MemoryStorage)


def test_factory_uses_database_when_configured():
    config = TestingConfig()
    config.DATABASE_URL = "sqlite://"
    storage = create_storage(config)
    assert isinstance(storage, SQLAlchemyStorage)
    assert storage.name == "database"
