import logging
from datetime import datetime
from typing import List

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from ..core.errors import StorageFailure
from ..models.rating import RatingRecord, as_utc, rating_key

logger = logging.getLogger(__name__)


class MongoDB:
    def __init__(self):
        self.client = None
        self.db = None

    def connect(self, mongo_uri: str, database: str):
        self.client = AsyncMongoClient(mongo_uri, tz_aware=True)
        self.db = self.client[database]

    async def disconnect(self):
        if self.client:
            await self.client.close()

    def get_collection(self, collection_name: str):
        if self.db is None:
            raise StorageFailure("Database connection is not initialized")
        return self.db[collection_name]


def to_record(doc: dict) -> RatingRecord:
    return RatingRecord(
        resource_id=doc["resourceId"],
        rater_id=doc["raterId"],
        value=doc["value"],
        created_at=as_utc(doc["createdAt"]),
        updated_at=as_utc(doc["updatedAt"]),
    )


class MongoRatingStore:
    """Ratings as documents whose _id is "{resourceId}_{raterId}"."""

    def __init__(self, collection, mongodb: MongoDB = None):
        self.collection = collection
        self.mongodb = mongodb

    @classmethod
    def from_settings(cls, settings) -> "MongoRatingStore":
        mongodb = MongoDB()
        mongodb.connect(settings.MONGO_URI, settings.MONGO_DATABASE)
        return cls(mongodb.get_collection(settings.REVIEWS_COLLECTION), mongodb)

    async def init(self):
        try:
            await self.collection.create_index("resourceId")
        except PyMongoError as e:
            raise StorageFailure(str(e)) from e
        logger.info("Mongo rating store ready (%s)", self.collection.name)

    async def upsert(self, resource_id: int, rater_id: str, value: int, now: datetime):
        try:
            await self.collection.update_one(
                {"_id": rating_key(resource_id, rater_id)},
                {
                    "$set": {
                        "resourceId": resource_id,
                        "raterId": rater_id,
                        "value": value,
                        "updatedAt": now,
                    },
                    "$setOnInsert": {"createdAt": now},
                },
                upsert=True,
            )
        except PyMongoError as e:
            raise StorageFailure(str(e)) from e

    async def list_for_resource(self, resource_id: int) -> List[RatingRecord]:
        return await self._find({"resourceId": resource_id})

    async def list_all(self) -> List[RatingRecord]:
        return await self._find({})

    async def _find(self, query: dict) -> List[RatingRecord]:
        try:
            docs = await self.collection.find(query).to_list()
        except PyMongoError as e:
            raise StorageFailure(str(e)) from e
        return [to_record(doc) for doc in docs]

    async def close(self):
        if self.mongodb is not None:
            await self.mongodb.disconnect()
            logger.info("Mongo rating store closed")
