"""
Rating Service

Handles rating submission and the statistics derived from stored ratings.
"""

import logging
import math
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Union

from ..core.errors import InvalidArgument, Unauthenticated
from ..models.rating import (
    MAX_RATER_ID_LENGTH,
    GlobalStats,
    RatingRecord,
    ResourceStats,
    ResourceSummary,
    utc_now,
)

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

# signed 64-bit, the widest integer both SQL and BSON stores hold
MIN_RESOURCE_ID = -(2**63)
MAX_RESOURCE_ID = 2**63 - 1


class RatingStore(Protocol):
    async def upsert(self, resource_id: int, rater_id: str, value: int, now: datetime): ...

    async def list_for_resource(self, resource_id: int) -> List[RatingRecord]: ...

    async def list_all(self) -> List[RatingRecord]: ...

    async def close(self): ...


def _integral(raw, message: str) -> int:
    # bool is an int subclass but never a valid id or score
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidArgument(message)
    if not math.isfinite(raw) or raw != int(raw):
        raise InvalidArgument(message)
    return int(raw)


def in_resource_id_range(value: int) -> bool:
    return MIN_RESOURCE_ID <= value <= MAX_RESOURCE_ID


def validate_resource_id(raw) -> int:
    message = "resourceId must be a number"
    resource_id = _integral(raw, message)
    if not in_resource_id_range(resource_id):
        raise InvalidArgument(message)
    return resource_id


def validate_rater_id(rater_id: str) -> str:
    if len(rater_id) > MAX_RATER_ID_LENGTH:
        raise InvalidArgument(f"raterId must be at most {MAX_RATER_ID_LENGTH} characters")
    return rater_id


def validate_rating(raw) -> int:
    message = f"rating must be {MIN_RATING}..{MAX_RATING}"
    value = _integral(raw, message)
    if not MIN_RATING <= value <= MAX_RATING:
        raise InvalidArgument(message)
    return value


def average(values: List[int]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def resource_stats(ratings: List[RatingRecord]) -> ResourceStats:
    return ResourceStats(average=average([r.value for r in ratings]), count=len(ratings))


def summarize_resource(resource_id: int, ratings: List[RatingRecord]) -> ResourceSummary:
    stats = resource_stats(ratings)
    return ResourceSummary(
        resource_id=resource_id,
        average=stats.average,
        count=stats.count,
        unique_users=len({r.rater_id for r in ratings}),
    )


def summarize_all(ratings: List[RatingRecord]) -> GlobalStats:
    return GlobalStats(
        reviews_count=len(ratings),
        average_rating=average([r.value for r in ratings]),
        unique_users=len({r.rater_id for r in ratings}),
        unique_resources=len({r.resource_id for r in ratings}),
    )


class RatingService:
    """Service for storing per-rater ratings and aggregating them per resource."""

    def __init__(
        self,
        store: RatingStore,
        clock: Callable[[], datetime] = utc_now,
        require_auth_for_global_stats: bool = False,
    ):
        self.store = store
        self.clock = clock
        self.require_auth_for_global_stats = require_auth_for_global_stats

    async def submit_rating(self, resource_id, rater_id: Optional[str], value) -> ResourceStats:
        """
        Store the rater's rating for a resource and return fresh stats.

        A rater has at most one rating per resource. Resubmitting replaces
        the value and keeps the original creation time. The returned stats
        include this rating and may include concurrent ratings from others.
        """
        if not rater_id:
            logger.warning("Unauthenticated attempt to save review")
            raise Unauthenticated()

        try:
            rater_id = validate_rater_id(rater_id)
            resource_id = validate_resource_id(resource_id)
            value = validate_rating(value)
        except InvalidArgument as e:
            logger.warning("Rejected review from %s: %s", rater_id, e.message)
            raise

        await self.store.upsert(resource_id, rater_id, value, self.clock())

        ratings = await self.store.list_for_resource(resource_id)
        stats = resource_stats(ratings)
        logger.info(
            "Saved review resource=%s rater=%s value=%s count=%s",
            resource_id,
            rater_id,
            value,
            stats.count,
        )
        return stats

    async def list_ratings(self, resource_id) -> List[RatingRecord]:
        """All ratings of one resource, in store order."""
        resource_id = validate_resource_id(resource_id)
        return await self.store.list_for_resource(resource_id)

    async def get_stats(
        self, resource_id=None, rater_id: Optional[str] = None
    ) -> Union[ResourceSummary, GlobalStats]:
        """
        Stats for one resource when resource_id is given, else for all ratings.

        Resource stats always need a rater identity. Global stats need one
        only when require_auth_for_global_stats is set.
        """
        if resource_id is None:
            if self.require_auth_for_global_stats and not rater_id:
                raise Unauthenticated()
            return summarize_all(await self.store.list_all())

        if not rater_id:
            raise Unauthenticated()
        resource_id = validate_resource_id(resource_id)
        ratings = await self.store.list_for_resource(resource_id)
        return summarize_resource(resource_id, ratings)
