from fastapi import Request

from .services.rating_service import RatingService


def get_rating_service(request: Request) -> RatingService:
    return request.app.state.rating_service
