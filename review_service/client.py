"""
Review client

Async client for the review endpoints, for frontends and scripts that
talk to a running service.
"""

import math
from typing import Optional

import httpx


class ReviewClientError(Exception):
    """A call was rejected locally or by the server."""

    def __init__(self, status: str, message: str, http_status: Optional[int] = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.http_status = http_status


def _to_number(raw, name: str):
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise ReviewClientError("INVALID_ARGUMENT", f"{name} must be a number")
    if not math.isfinite(number):
        raise ReviewClientError("INVALID_ARGUMENT", f"{name} must be a number")
    return int(number) if number.is_integer() else number


def _json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def shorten_rater(rater_id: Optional[str]) -> str:
    return (rater_id or "")[:6] or "-"


class ReviewClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _call(self, name: str, data: dict):
        response = await self.client.post(f"/{name}", json={"data": data}, headers=self._headers())
        body = _json(response)
        if response.is_success and "result" in body:
            return body["result"]
        error = body.get("error")
        if not isinstance(error, dict):
            error = {}
        raise ReviewClientError(
            error.get("status", "INTERNAL"),
            error.get("message", "Request failed"),
            response.status_code,
        )

    async def save_review(self, resource_id, rating) -> dict:
        """Save a rating; returns {"average", "count"} for the resource."""
        return await self._call(
            "saveReview",
            {
                "resourceId": _to_number(resource_id, "resourceId"),
                "rating": _to_number(rating, "rating"),
            },
        )

    async def get_stats(self, resource_id=None) -> dict:
        data = {}
        if resource_id is not None:
            data["resourceId"] = _to_number(resource_id, "resourceId")
        return await self._call("getStats", data)

    async def fetch_reviews(self, resource_id) -> dict:
        """
        All reviews for one resource as {"resourceId", "reviews", "count"}.

        Each review gains a "raterShort" entry for display.
        """
        resource_id = _to_number(resource_id, "resourceId")
        response = await self.client.get("/reviews", params={"resourceId": resource_id})
        body = _json(response)
        if not response.is_success:
            kind = "INVALID_ARGUMENT" if response.status_code == 400 else "INTERNAL"
            raise ReviewClientError(
                kind, body.get("error") or "failed to load reviews", response.status_code
            )
        body["reviews"] = [
            {**review, "raterShort": shorten_rater(review.get("raterId"))}
            for review in body.get("reviews") or []
        ]
        return body
