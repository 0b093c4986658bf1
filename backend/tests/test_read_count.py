"""
Blog API Backend - Concurrent Read Counter Tests
=================================================

What:  N concurrent GET /api/blogs/{id} must raise read_count by exactly N.
How:   Fires the reads with asyncio.gather against a file-backed SQLite
       database; each request runs in its own session and connection, and
       SQLite's busy timeout queues the competing UPDATEs.
"""

import asyncio

import pytest
from sqlalchemy import select

from blog_api.models.post import Post

CONCURRENT_READS = 10


class TestConcurrentReads:

    @pytest.mark.asyncio
    async def test_no_lost_increments(self, test_client, signup, database):
        _, headers = await signup()
        created = await test_client.post(
            "/api/blogs", json={"title": "Popular", "body": "word " * 50}, headers=headers
        )
        blog_id = created.json()["data"]["id"]
        await test_client.patch(
            f"/api/blogs/{blog_id}", json={"state": "published"}, headers=headers
        )

        responses = await asyncio.gather(
            *(test_client.get(f"/api/blogs/{blog_id}") for _ in range(CONCURRENT_READS))
        )

        assert all(r.status_code == 200 for r in responses)
        # Every read saw a distinct post-increment value
        seen = sorted(r.json()["data"]["read_count"] for r in responses)
        assert seen == list(range(1, CONCURRENT_READS + 1))

        async with database.session() as session:
            stored = await session.scalar(select(Post.read_count).where(Post.title == "Popular"))
        assert stored == CONCURRENT_READS

    @pytest.mark.asyncio
    async def test_concurrent_reads_of_draft_do_not_count(self, test_client, signup, database):
        _, headers = await signup()
        created = await test_client.post(
            "/api/blogs", json={"title": "Hidden", "body": "text"}, headers=headers
        )
        blog_id = created.json()["data"]["id"]

        responses = await asyncio.gather(
            *(test_client.get(f"/api/blogs/{blog_id}") for _ in range(5))
        )

        assert {r.status_code for r in responses} == {404}
        async with database.session() as session:
            stored = await session.scalar(select(Post.read_count).where(Post.title == "Hidden"))
        assert stored == 0
