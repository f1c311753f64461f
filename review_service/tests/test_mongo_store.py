from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import PyMongoError

from review_service.core.errors import StorageFailure
from review_service.db.mongodb import MongoDB, MongoRatingStore
from review_service.services.rating_service import RatingService

NOW = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def make_doc(resource_id, rater_id, value):
    # pymongo without tz_aware returns naive UTC datetimes
    naive = NOW.replace(tzinfo=None)
    return {
        "_id": f"{resource_id}_{rater_id}",
        "resourceId": resource_id,
        "raterId": rater_id,
        "value": value,
        "createdAt": naive,
        "updatedAt": naive,
    }


@pytest.fixture
def collection():
    collection = MagicMock()
    collection.name = "reviews"
    collection.update_one = AsyncMock()
    collection.create_index = AsyncMock()
    return collection


def set_documents(collection, docs):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs)
    collection.find.return_value = cursor


@pytest.mark.asyncio
async def test_upsert_uses_composite_id_and_keeps_created_at(collection):
    store = MongoRatingStore(collection)

    await store.upsert(42, "u1", 4, NOW)

    collection.update_one.assert_awaited_once()
    args, kwargs = collection.update_one.call_args
    selector, update = args
    assert selector == {"_id": "42_u1"}
    assert update["$set"] == {
        "resourceId": 42,
        "raterId": "u1",
        "value": 4,
        "updatedAt": NOW,
    }
    assert update["$setOnInsert"] == {"createdAt": NOW}
    assert kwargs["upsert"] is True


@pytest.mark.asyncio
async def test_list_for_resource_queries_by_resource(collection):
    set_documents(collection, [make_doc(42, "u1", 5), make_doc(42, "u2", 3)])
    store = MongoRatingStore(collection)

    ratings = await store.list_for_resource(42)

    collection.find.assert_called_once_with({"resourceId": 42})
    assert [(r.rater_id, r.value) for r in ratings] == [("u1", 5), ("u2", 3)]
    assert ratings[0].created_at == NOW


@pytest.mark.asyncio
async def test_list_all_has_no_filter(collection):
    set_documents(collection, [])
    store = MongoRatingStore(collection)

    assert await store.list_all() == []
    collection.find.assert_called_once_with({})


@pytest.mark.asyncio
async def test_driver_errors_become_storage_failures(collection):
    collection.update_one.side_effect = PyMongoError("connection refused")
    collection.find.side_effect = PyMongoError("connection refused")
    store = MongoRatingStore(collection)

    with pytest.raises(StorageFailure):
        await store.upsert(1, "u1", 3, NOW)
    with pytest.raises(StorageFailure):
        await store.list_all()


@pytest.mark.asyncio
async def test_service_on_mongo_store(collection):
    set_documents(collection, [make_doc(42, "u1", 5), make_doc(42, "u2", 2)])
    service = RatingService(MongoRatingStore(collection), clock=lambda: NOW)

    stats = await service.submit_rating(42, "u2", 2)

    assert stats.average == 3.5
    assert stats.count == 2


@pytest.mark.asyncio
async def test_init_indexes_resource_id(collection):
    await MongoRatingStore(collection).init()

    collection.create_index.assert_awaited_once_with("resourceId")


def test_collection_before_connect_fails():
    with pytest.raises(StorageFailure):
        MongoDB().get_collection("reviews")
