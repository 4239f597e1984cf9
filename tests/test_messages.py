"""Tests for AI message endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

MESSAGES = "/api/v1/messages"


async def post_message(client: AsyncClient, headers: dict, user_id, content: str, conv="c1"):
    return await client.post(
        MESSAGES,
        json={
            "user_id": str(user_id),
            "role": "user",
            "content": content,
            "conversation_id": conv,
        },
        headers=headers,
    )


@pytest.mark.asyncio
class TestMessageEndpoints:
    """Tests for storing and reading conversations."""

    async def test_create_message(self, client: AsyncClient, test_user, auth_headers):
        response = await post_message(client, auth_headers, test_user["id"], "Plan a trip")

        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "user"
        assert data["conversation_id"] == "c1"

    async def test_invalid_role(self, client: AsyncClient, test_user, auth_headers):
        response = await client.post(
            MESSAGES,
            json={
                "user_id": str(test_user["id"]),
                "role": "system",
                "content": "hi",
                "conversation_id": "c1",
            },
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_cannot_write_for_someone_else(self, client: AsyncClient, auth_headers):
        response = await post_message(client, auth_headers, uuid4(), "Hello")

        assert response.status_code == 403

    async def test_user_messages_oldest_first(self, client: AsyncClient, test_user, auth_headers):
        for content in ("one", "two", "three"):
            await post_message(client, auth_headers, test_user["id"], content)

        response = await client.get(f"{MESSAGES}/user/{test_user['id']}", headers=auth_headers)

        assert [m["content"] for m in response.json()] == ["one", "two", "three"]

    async def test_conversation(self, client: AsyncClient, test_user, auth_headers):
        await post_message(client, auth_headers, test_user["id"], "a", conv="c1")
        await post_message(client, auth_headers, test_user["id"], "b", conv="c2")

        response = await client.get(
            f"{MESSAGES}/conversation/c2",
            params={"user_id": str(test_user["id"])},
            headers=auth_headers,
        )

        assert [m["content"] for m in response.json()] == ["b"]

    async def test_conversation_requires_user_id(self, client: AsyncClient, auth_headers):
        response = await client.get(f"{MESSAGES}/conversation/c1", headers=auth_headers)

        assert response.status_code == 422

    async def test_delete_conversation(self, client: AsyncClient, test_user, auth_headers):
        await post_message(client, auth_headers, test_user["id"], "a", conv="c1")
        await post_message(client, auth_headers, test_user["id"], "b", conv="c1")
        await post_message(client, auth_headers, test_user["id"], "c", conv="c2")

        response = await client.delete(
            f"{MESSAGES}/conversation/c1",
            params={"user_id": str(test_user["id"])},
            headers=auth_headers,
        )

        assert response.json()["deleted_count"] == 2
        remaining = await client.get(f"{MESSAGES}/user/{test_user['id']}", headers=auth_headers)
        assert [m["content"] for m in remaining.json()] == ["c"]

    async def test_delete_user_messages(self, client: AsyncClient, test_user, auth_headers):
        await post_message(client, auth_headers, test_user["id"], "a")

        response = await client.delete(f"{MESSAGES}/user/{test_user['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["deleted_count"] == 1

    async def test_admin_reads_any_user(
        self, client: AsyncClient, test_user, auth_headers, admin_headers
    ):
        await post_message(client, auth_headers, test_user["id"], "mine")

        response = await client.get(f"{MESSAGES}/user/{test_user['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert len(response.json()) == 1

    async def test_other_user_cannot_read(
        self, client: AsyncClient, test_user, premium_headers
    ):
        response = await client.get(
            f"{MESSAGES}/user/{test_user['id']}",
            headers=premium_headers,
        )

        assert response.status_code == 403
