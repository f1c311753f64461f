"""
Callable functions

POST endpoints using the Firebase callable wire format: the request body
is {"data": {...}}, success is {"result": ...}, and failures are rendered
as {"error": {"status": ..., "message": ...}} by the app's error handler.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..core.errors import InvalidArgument
from ..dependencies import get_rating_service
from ..services.rating_service import RatingService
from ..utils.auth import get_current_rater

router = APIRouter()


async def read_callable_data(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidArgument("Request body must be JSON")
    if not isinstance(body, dict):
        raise InvalidArgument("Request body must be an object")
    data = body.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgument("data must be an object")
    return data


@router.post("/saveReview")
async def save_review(
    request: Request,
    rater_id: Optional[str] = Depends(get_current_rater),
    service: RatingService = Depends(get_rating_service),
):
    """Save the caller's rating for a resource and return {average, count}."""
    data = await read_callable_data(request)
    stats = await service.submit_rating(data.get("resourceId"), rater_id, data.get("rating"))
    return {"result": stats.model_dump(by_alias=True, mode="json")}


@router.post("/getStats")
async def get_stats(
    request: Request,
    rater_id: Optional[str] = Depends(get_current_rater),
    service: RatingService = Depends(get_rating_service),
):
    """Stats for one resource, or global stats when resourceId is absent."""
    data = await read_callable_data(request)
    stats = await service.get_stats(data.get("resourceId"), rater_id)
    return {"result": stats.model_dump(by_alias=True, mode="json")}
