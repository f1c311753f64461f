from fastapi import APIRouter
from . import functions
from . import reviews
router = APIRouter()

# Include Routers
router.include_router(functions.router, tags=["Functions"])
router.include_router(reviews.router, tags=["Reviews"])


def get_router():
    return router
