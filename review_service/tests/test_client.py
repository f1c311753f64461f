import httpx
import pytest
import pytest_asyncio

from review_service.client import ReviewClient, ReviewClientError, shorten_rater
from review_service.main import create_app
from review_service.utils.auth import create_rater_token


@pytest.fixture
def app(settings, store):
    return create_app(settings, store=store)


def make_client(app, token=None):
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test/api")
    return ReviewClient(token=token, client=http)


@pytest_asyncio.fixture
async def review_client(app, settings):
    async with make_client(app, create_rater_token("user-123456789", settings)) as client:
        yield client


@pytest.mark.asyncio
async def test_save_and_fetch(review_client: ReviewClient):
    stats = await review_client.save_review("42", "4")
    assert stats == {"average": 4, "count": 1}

    data = await review_client.fetch_reviews(42)

    assert data["resourceId"] == 42
    assert data["count"] == 1
    [review] = data["reviews"]
    assert review["raterId"] == "user-123456789"
    assert review["raterShort"] == "user-1"
    assert review["value"] == 4


@pytest.mark.asyncio
async def test_stats_through_client(review_client: ReviewClient):
    await review_client.save_review(3, 5)

    summary = await review_client.get_stats(3)
    overall = await review_client.get_stats()

    assert summary["scope"] == "resource"
    assert summary["uniqueUsers"] == 1
    assert overall["scope"] == "global"
    assert overall["uniqueResources"] == 1


@pytest.mark.asyncio
async def test_anonymous_save_is_rejected(app):
    async with make_client(app) as client:
        with pytest.raises(ReviewClientError) as excinfo:
            await client.save_review(42, 5)

    assert excinfo.value.status == "UNAUTHENTICATED"
    assert excinfo.value.http_status == 401


@pytest.mark.asyncio
async def test_server_side_validation_error(review_client: ReviewClient):
    with pytest.raises(ReviewClientError) as excinfo:
        await review_client.save_review(42, 9)

    assert excinfo.value.status == "INVALID_ARGUMENT"
    assert excinfo.value.message == "rating must be 1..5"


@pytest.mark.asyncio
async def test_non_numeric_ids_fail_before_sending(review_client: ReviewClient):
    with pytest.raises(ReviewClientError) as excinfo:
        await review_client.fetch_reviews("abc")
    assert excinfo.value.http_status is None

    with pytest.raises(ReviewClientError):
        await review_client.save_review("abc", 3)


def test_shorten_rater():
    assert shorten_rater("abcdefghij") == "abcdef"
    assert shorten_rater("abc") == "abc"
    assert shorten_rater("") == "-"
    assert shorten_rater(None) == "-"
