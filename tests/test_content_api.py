"""Tests for posts, comments, likes and summary endpoints."""

from datetime import UTC, datetime

import pytest

from tests.conftest import TEST_USERNAME


def _current_month() -> str:
    return datetime.now(UTC).strftime("%Y-%m")


@pytest.mark.asyncio
async def test_create_post(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/posts",
        json={"title": "Hello", "description": "First post"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["username"] == TEST_USERNAME
    assert data["title"] == "Hello"
    assert data["id"]
    assert data["created_at"] is not None


@pytest.mark.asyncio
async def test_create_post_empty_title(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/posts",
        json={"title": "", "description": "First post"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"].startswith("invalid post")


@pytest.mark.asyncio
async def test_create_post_requires_token(async_client):
    response = await async_client.post(
        "/api/v1/posts",
        json={"title": "Hello", "description": "First post"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_comment(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/comments",
        json={"post_id": "p1", "comment": "Nice"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["username"] == TEST_USERNAME


@pytest.mark.asyncio
async def test_create_comment_empty_text(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/comments",
        json={"post_id": "p1", "comment": ""},
        headers=auth_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_like(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/likes", json={"post_id": "p1"}, headers=auth_headers
    )

    assert response.status_code == 201
    assert response.json()["username_from"] == TEST_USERNAME


@pytest.mark.asyncio
async def test_create_like_empty_post_id(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/likes", json={"post_id": ""}, headers=auth_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_published_post_is_stored(app, async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/posts/pubsub",
        json={"title": "Queued", "description": "via bus"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json() == {"message": "posts event published successfully"}

    await app.state.event_bus.drain()
    [post] = await app.state.posts_service.repo.all()
    assert post.title == "Queued"
    assert post.username == TEST_USERNAME


@pytest.mark.asyncio
async def test_published_comment_and_like_are_stored(app, async_client, auth_headers):
    comment = await async_client.post(
        "/api/v1/comments/pubsub",
        json={"post_id": "p1", "comment": "Queued"},
        headers=auth_headers,
    )
    like = await async_client.post(
        "/api/v1/likes/pubsub", json={"post_id": "p1"}, headers=auth_headers
    )

    assert comment.status_code == 201
    assert like.status_code == 201

    await app.state.event_bus.drain()
    assert len(await app.state.comments_service.repo.all()) == 1
    [stored_like] = await app.state.likes_service.repo.all()
    assert stored_like.username_from == TEST_USERNAME


@pytest.mark.asyncio
async def test_invalid_published_post_is_dropped(app, async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/posts/pubsub",
        json={"title": "", "description": "via bus"},
        headers=auth_headers,
    )

    # Accepted at publish time, rejected by the consumer
    assert response.status_code == 201
    await app.state.event_bus.drain()
    assert await app.state.posts_service.repo.all() == []


@pytest.mark.asyncio
async def test_summary_counts_current_month(async_client, auth_headers):
    await async_client.post(
        "/api/v1/posts",
        json={"title": "Hello", "description": "First post"},
        headers=auth_headers,
    )
    await async_client.post(
        "/api/v1/comments",
        json={"post_id": "p1", "comment": "Nice"},
        headers=auth_headers,
    )
    await async_client.post("/api/v1/likes", json={"post_id": "p1"}, headers=auth_headers)
    await async_client.post("/api/v1/likes", json={"post_id": "p2"}, headers=auth_headers)

    response = await async_client.post(
        "/api/v1/summary", json={"username": TEST_USERNAME}, headers=auth_headers
    )

    assert response.status_code == 200
    month = _current_month()
    assert response.json() == {
        "username": TEST_USERNAME,
        "likes": {month: 2},
        "comments": {month: 1},
        "posts": {month: 1},
    }


@pytest.mark.asyncio
async def test_summary_for_user_without_activity(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/summary", json={"username": "nobody"}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["posts"] == {}


@pytest.mark.asyncio
async def test_summary_empty_username(async_client, auth_headers):
    response = await async_client.post(
        "/api/v1/summary", json={"username": "   "}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "invalid username: cannot be empty"


@pytest.mark.asyncio
async def test_summary_requires_token(async_client):
    response = await async_client.post("/api/v1/summary", json={"username": TEST_USERNAME})

    assert response.status_code == 401
