from datetime import datetime, timezone
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel
from sqlalchemy import BigInteger, Column, DateTime
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # sqlite hands timestamps back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


MAX_RATER_ID_LENGTH = 128


def rating_key(resource_id: int, rater_id: str) -> str:
    return f"{resource_id}_{rater_id}"


class Rating(SQLModel, table=True):
    resource_id: int = Field(
        primary_key=True, sa_type=BigInteger, sa_column_kwargs={"autoincrement": False}
    )
    rater_id: str = Field(primary_key=True, max_length=MAX_RATER_ID_LENGTH)
    value: int
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RatingRecord(CamelModel):
    resource_id: int
    rater_id: str
    value: int
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def id(self) -> str:
        return rating_key(self.resource_id, self.rater_id)


class ResourceStats(CamelModel):
    average: float
    count: int


class ResourceSummary(CamelModel):
    scope: Literal["resource"] = "resource"
    resource_id: int
    average: float
    count: int
    unique_users: int


class GlobalStats(CamelModel):
    scope: Literal["global"] = "global"
    reviews_count: int
    average_rating: float
    unique_users: int
    unique_resources: int


class ReviewList(CamelModel):
    resource_id: int
    reviews: List[RatingRecord]
    count: int
