import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from ..core.errors import StorageFailure
from ..dependencies import get_rating_service
from ..models.rating import ReviewList
from ..services.rating_service import RatingService, in_resource_id_range

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_resource_id(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        resource_id = int(raw)
    except ValueError:
        # "42.0" and "1e3" are numbers too
        try:
            number = float(raw)
        except ValueError:
            return None
        if not math.isfinite(number) or not number.is_integer():
            return None
        resource_id = int(number)
    if not in_resource_id_range(resource_id):
        return None
    return resource_id


@router.get("/reviews")
async def list_reviews(
    resource_id: Optional[str] = Query(None, alias="resourceId"),
    service: RatingService = Depends(get_rating_service),
):
    """All reviews for one resource. Public, no identity needed."""
    parsed = parse_resource_id(resource_id)
    if parsed is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "resourceId must be a number"},
        )

    try:
        reviews = await service.list_ratings(parsed)
    except StorageFailure:
        logger.exception("api /reviews error")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    body = ReviewList(resource_id=parsed, reviews=reviews, count=len(reviews))
    return body.model_dump(by_alias=True, mode="json")


@router.options("/reviews")
async def reviews_options():
    return Response(status_code=status.HTTP_204_NO_CONTENT)
