"""
Blog API Backend - Blog Endpoint Tests
=======================================

What:  End-to-end tests for /api/blogs against a per-test SQLite database.

What we test:
    ✅ Create: draft state, reading_time from body, tags cleaned, author embedded
    ✅ Duplicate titles → 400; missing fields / auth → 400 / 401
    ✅ Public listing: published only, pagination, search, author filter, sorting
    ✅ Pages past the end (however large) are empty, tags longer than 100 → 400
    ✅ Read: drafts are 404, every read adds exactly one to read_count
    ✅ Update/delete: owner only (others get 404), ignored fields, state round trip
    ✅ Owner listing with the state filter
"""

import uuid
from datetime import datetime

import pytest

LONG_BODY = "word " * 250


def _naive(timestamp):
    # SQLite hands timestamps back without an offset; all values are UTC
    return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).replace(tzinfo=None)


async def create_blog(client, headers, title="A blog", body=LONG_BODY, **extra):
    response = await client.post(
        "/api/blogs", json={"title": title, "body": body, **extra}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def publish(client, headers, blog_id):
    response = await client.patch(
        f"/api/blogs/{blog_id}", json={"state": "published"}, headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestCreateBlog:
    """Tests for POST /api/blogs."""

    @pytest.mark.asyncio
    async def test_create_draft_with_reading_time(self, test_client, signup):
        """250 words → reading_time 2, state draft, read_count 0."""
        user, headers = await signup()

        response = await test_client.post(
            "/api/blogs",
            json={
                "title": "T",
                "description": "  short  ",
                "body": LONG_BODY,
                "tags": ["python", " fastapi ", "", "python"],
            },
            headers=headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Blog created successfully"
        blog = body["data"]
        assert blog["title"] == "T"
        assert blog["description"] == "short"
        assert blog["state"] == "draft"
        assert blog["read_count"] == 0
        assert blog["reading_time"] == 2
        assert blog["tags"] == ["fastapi", "python"]
        assert blog["author"]["id"] == user["id"]
        assert blog["author"]["email"] == user["email"]
        assert "password_hash" not in blog["author"]

    @pytest.mark.asyncio
    async def test_client_cannot_choose_state_or_counters(self, test_client, signup):
        _, headers = await signup()

        blog = await create_blog(
            test_client, headers, state="published", read_count=50, reading_time=99
        )

        assert blog["state"] == "draft"
        assert blog["read_count"] == 0
        assert blog["reading_time"] == 2

    @pytest.mark.asyncio
    async def test_requires_authentication(self, test_client):
        response = await test_client.post("/api/blogs", json={"title": "T", "body": "text"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"body": "text"},
            {"title": "T"},
            {"title": "   ", "body": "text"},
            {"title": "T", "body": "   "},
        ],
    )
    async def test_missing_or_blank_fields_rejected(self, test_client, signup, payload):
        _, headers = await signup()

        response = await test_client.post("/api/blogs", json=payload, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_oversized_tag_rejected(self, test_client, signup):
        _, headers = await signup()

        response = await test_client.post(
            "/api/blogs",
            json={"title": "T", "body": "text", "tags": ["ok", "x" * 101]},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["details"]["errors"][0]["field"] == "tags.1"

    @pytest.mark.asyncio
    async def test_tag_length_counted_after_stripping(self, test_client, signup):
        _, headers = await signup()

        blog = await create_blog(test_client, headers, tags=["  " + "x" * 100 + "  "])

        assert blog["tags"] == ["x" * 100]

    @pytest.mark.asyncio
    async def test_duplicate_title_rejected(self, test_client, signup):
        _, alice = await signup("alice@example.com")
        _, bob = await signup("bob@example.com")
        await create_blog(test_client, alice, title="Unique title")

        response = await test_client.post(
            "/api/blogs", json={"title": "Unique title", "body": "text"}, headers=bob
        )

        assert response.status_code == 400
        assert response.json()["error"] == "conflict"
        assert response.json()["message"] == "Blog title already exists"


class TestReadBlog:
    """Tests for GET /api/blogs/{id}."""

    @pytest.mark.asyncio
    async def test_draft_is_not_found(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers)

        response = await test_client.get(f"/api/blogs/{blog['id']}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, test_client):
        response = await test_client.get(f"/api/blogs/{uuid.uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_malformed_id_is_bad_request(self, test_client):
        response = await test_client.get("/api/blogs/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_each_read_increments_read_count(self, test_client, signup):
        user, headers = await signup()
        blog = await create_blog(test_client, headers, tags=["python"])
        await publish(test_client, headers, blog["id"])

        counts = []
        for _ in range(3):
            response = await test_client.get(f"/api/blogs/{blog['id']}")
            assert response.status_code == 200
            counts.append(response.json()["data"]["read_count"])

        assert counts == [1, 2, 3]
        data = response.json()["data"]
        assert data["author"]["id"] == user["id"]
        assert data["tags"] == ["python"]

    @pytest.mark.asyncio
    async def test_read_does_not_touch_updated_at(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers)
        published = await publish(test_client, headers, blog["id"])

        read = (await test_client.get(f"/api/blogs/{blog['id']}")).json()["data"]

        assert _naive(read["updated_at"]) == _naive(published["updated_at"])


class TestListBlogs:
    """Tests for GET /api/blogs."""

    @pytest.mark.asyncio
    async def test_only_published_blogs_listed(self, test_client, signup):
        _, headers = await signup()
        published = await create_blog(test_client, headers, title="Public")
        await publish(test_client, headers, published["id"])
        await create_blog(test_client, headers, title="Secret draft")

        response = await test_client.get("/api/blogs")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [b["title"] for b in data["blogs"]] == ["Public"]
        assert data["pagination"] == {"total": 1, "page": 1, "pages": 1, "limit": 20}
        assert response.headers["X-Total-Count"] == "1"

    @pytest.mark.asyncio
    async def test_empty_listing(self, test_client):
        response = await test_client.get("/api/blogs")

        data = response.json()["data"]
        assert data["blogs"] == []
        assert data["pagination"]["total"] == 0
        assert data["pagination"]["pages"] == 0

    @pytest.mark.asyncio
    async def test_pagination(self, test_client, signup):
        _, headers = await signup()
        for i in range(5):
            blog = await create_blog(test_client, headers, title=f"Post {i}")
            await publish(test_client, headers, blog["id"])

        first = (await test_client.get("/api/blogs?page=1&limit=2")).json()["data"]
        last = (await test_client.get("/api/blogs?page=3&limit=2")).json()["data"]
        beyond = (await test_client.get("/api/blogs?page=4&limit=2")).json()["data"]

        assert len(first["blogs"]) == 2
        assert first["pagination"] == {"total": 5, "page": 1, "pages": 3, "limit": 2}
        assert len(last["blogs"]) == 1
        assert beyond["blogs"] == []

        seen = set()
        for page in (1, 2, 3):
            blogs = (await test_client.get(f"/api/blogs?page={page}&limit=2")).json()["data"]["blogs"]
            seen.update(b["id"] for b in blogs)
        assert len(seen) == 5

    @pytest.mark.asyncio
    async def test_huge_page_number_is_an_empty_page(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers)
        await publish(test_client, headers, blog["id"])

        response = await test_client.get("/api/blogs", params={"page": 10**20, "limit": 100})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["blogs"] == []
        assert data["pagination"]["total"] == 1
        assert data["pagination"]["page"] == 10**20

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101", "page=abc", "author=nope"])
    async def test_invalid_query_rejected(self, test_client, query):
        response = await test_client.get(f"/api/blogs?{query}")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_search_matches_title_substring_or_tag(self, test_client, signup):
        _, headers = await signup()
        fixtures = [
            ("Learning FastAPI", ["web"]),
            ("Gardening tips", ["Python"]),
            ("Cooking pasta", ["food"]),
        ]
        for title, tags in fixtures:
            blog = await create_blog(test_client, headers, title=title, tags=tags)
            await publish(test_client, headers, blog["id"])

        async def titles(term):
            response = await test_client.get("/api/blogs", params={"search": term})
            return sorted(b["title"] for b in response.json()["data"]["blogs"])

        assert await titles("fastapi") == ["Learning FastAPI"]
        assert await titles("TIPS") == ["Gardening tips"]
        assert await titles("python") == ["Gardening tips"]
        # Tags match whole names only
        assert await titles("foo") == []
        assert await titles("%") == []

    @pytest.mark.asyncio
    async def test_search_never_returns_drafts(self, test_client, signup):
        _, headers = await signup()
        await create_blog(test_client, headers, title="Draft about python", tags=["python"])

        response = await test_client.get("/api/blogs", params={"search": "python"})
        assert response.json()["data"]["blogs"] == []

    @pytest.mark.asyncio
    async def test_author_filter(self, test_client, signup):
        alice, alice_headers = await signup("alice@example.com")
        _, bob_headers = await signup("bob@example.com")
        for headers, title in ((alice_headers, "By Alice"), (bob_headers, "By Bob")):
            blog = await create_blog(test_client, headers, title=title)
            await publish(test_client, headers, blog["id"])

        response = await test_client.get("/api/blogs", params={"author": alice["id"]})

        blogs = response.json()["data"]["blogs"]
        assert [b["title"] for b in blogs] == ["By Alice"]

    @pytest.mark.asyncio
    async def test_order_by_read_count_and_reading_time(self, test_client, signup):
        _, headers = await signup()
        short = await create_blog(test_client, headers, title="Short", body="word " * 10)
        long = await create_blog(test_client, headers, title="Long", body="word " * 900)
        for blog in (short, long):
            await publish(test_client, headers, blog["id"])
        for _ in range(3):
            await test_client.get(f"/api/blogs/{short['id']}")

        by_reads = (await test_client.get("/api/blogs?order_by=read_count")).json()["data"]["blogs"]
        by_length = (await test_client.get("/api/blogs?order_by=reading_time")).json()["data"]["blogs"]

        assert [b["title"] for b in by_reads] == ["Short", "Long"]
        assert [b["title"] for b in by_length] == ["Long", "Short"]

    @pytest.mark.asyncio
    async def test_unknown_order_by_falls_back(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers)
        await publish(test_client, headers, blog["id"])

        response = await test_client.get("/api/blogs?order_by=password_hash")

        assert response.status_code == 200
        assert response.json()["data"]["pagination"]["total"] == 1


class TestUpdateBlog:
    """Tests for PATCH /api/blogs/{id}."""

    @pytest.mark.asyncio
    async def test_state_round_trip_with_my_blogs_filter(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers)

        async def my_titles(state):
            response = await test_client.get(
                "/api/blogs/user/my-blogs", params={"state": state}, headers=headers
            )
            return [b["title"] for b in response.json()["data"]["blogs"]]

        assert await my_titles("draft") == ["A blog"]
        assert await my_titles("published") == []

        await publish(test_client, headers, blog["id"])
        assert await my_titles("draft") == []
        assert await my_titles("published") == ["A blog"]

        response = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"state": "draft"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["state"] == "draft"
        assert await my_titles("draft") == ["A blog"]
        assert (await test_client.get(f"/api/blogs/{blog['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_body_change_recomputes_reading_time(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers)

        title_only = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"title": "Renamed"}, headers=headers
        )
        new_body = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"body": "word " * 601}, headers=headers
        )

        assert title_only.json()["message"] == "Blog updated successfully"
        assert title_only.json()["data"]["reading_time"] == 2
        assert new_body.json()["data"]["reading_time"] == 4
        assert new_body.json()["data"]["title"] == "Renamed"

    @pytest.mark.asyncio
    async def test_protected_fields_ignored(self, test_client, signup):
        user, headers = await signup()
        blog = await create_blog(test_client, headers)

        response = await test_client.patch(
            f"/api/blogs/{blog['id']}",
            json={
                "read_count": 1000,
                "reading_time": 1000,
                "author": str(uuid.uuid4()),
                "id": str(uuid.uuid4()),
                "title": None,
            },
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == blog["id"]
        assert data["title"] == "A blog"
        assert data["read_count"] == 0
        assert data["reading_time"] == 2
        assert data["author"]["id"] == user["id"]

    @pytest.mark.asyncio
    async def test_null_description_clears_it(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers, description="Intro")

        response = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"description": None}, headers=headers
        )

        assert response.json()["data"]["description"] is None

    @pytest.mark.asyncio
    async def test_tags_replaced(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers, tags=["old", "kept"])

        response = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"tags": ["kept", "new"]}, headers=headers
        )

        assert response.json()["data"]["tags"] == ["kept", "new"]

    @pytest.mark.asyncio
    async def test_tags_only_change_bumps_updated_at(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers, tags=["old"])

        updated = (
            await test_client.patch(
                f"/api/blogs/{blog['id']}", json={"tags": ["new"]}, headers=headers
            )
        ).json()["data"]
        mine = (await test_client.get("/api/blogs/user/my-blogs", headers=headers)).json()["data"]

        assert _naive(updated["updated_at"]) > _naive(blog["updated_at"])
        assert _naive(mine["blogs"][0]["updated_at"]) == _naive(updated["updated_at"])

    @pytest.mark.asyncio
    async def test_oversized_tag_rejected_on_update(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers, tags=["kept"])

        response = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"tags": ["y" * 101]}, headers=headers
        )
        mine = (await test_client.get("/api/blogs/user/my-blogs", headers=headers)).json()["data"]

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert mine["blogs"][0]["tags"] == ["kept"]

    @pytest.mark.asyncio
    async def test_invalid_state_rejected(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers)

        response = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"state": "archived"}, headers=headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_title_rejected(self, test_client, signup):
        _, headers = await signup()
        await create_blog(test_client, headers, title="First")
        second = await create_blog(test_client, headers, title="Second")

        response = await test_client.patch(
            f"/api/blogs/{second['id']}", json={"title": "First"}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_non_owner_gets_not_found(self, test_client, signup):
        _, owner = await signup("owner@example.com")
        _, intruder = await signup("intruder@example.com")
        blog = await create_blog(test_client, owner, title="Mine")

        response = await test_client.patch(
            f"/api/blogs/{blog['id']}", json={"title": "Stolen"}, headers=intruder
        )
        missing = await test_client.patch(
            f"/api/blogs/{uuid.uuid4()}", json={"title": "Stolen"}, headers=intruder
        )

        assert response.status_code == 404
        assert response.json()["message"] == missing.json()["message"]
        mine = await test_client.get("/api/blogs/user/my-blogs", headers=owner)
        assert [b["title"] for b in mine.json()["data"]["blogs"]] == ["Mine"]


class TestDeleteBlog:
    """Tests for DELETE /api/blogs/{id}."""

    @pytest.mark.asyncio
    async def test_owner_deletes(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers, tags=["gone"])
        await publish(test_client, headers, blog["id"])

        response = await test_client.delete(f"/api/blogs/{blog['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Blog deleted successfully",
            "data": None,
        }
        assert (await test_client.get(f"/api/blogs/{blog['id']}")).status_code == 404
        again = await test_client.delete(f"/api/blogs/{blog['id']}", headers=headers)
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_title_reusable_after_delete(self, test_client, signup):
        _, headers = await signup()
        blog = await create_blog(test_client, headers, title="Reborn", tags=["x"])
        await test_client.delete(f"/api/blogs/{blog['id']}", headers=headers)

        await create_blog(test_client, headers, title="Reborn", tags=["x"])

    @pytest.mark.asyncio
    async def test_non_owner_gets_not_found(self, test_client, signup):
        _, owner = await signup("owner@example.com")
        _, intruder = await signup("intruder@example.com")
        blog = await create_blog(test_client, owner)
        await publish(test_client, owner, blog["id"])

        response = await test_client.delete(f"/api/blogs/{blog['id']}", headers=intruder)

        assert response.status_code == 404
        assert (await test_client.get(f"/api/blogs/{blog['id']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_requires_authentication(self, test_client):
        response = await test_client.delete(f"/api/blogs/{uuid.uuid4()}")
        assert response.status_code == 401


class TestMyBlogs:
    """Tests for GET /api/blogs/user/my-blogs."""

    @pytest.mark.asyncio
    async def test_lists_only_own_posts_in_any_state(self, test_client, signup):
        _, alice = await signup("alice@example.com")
        _, bob = await signup("bob@example.com")
        draft = await create_blog(test_client, alice, title="Alice draft")
        live = await create_blog(test_client, alice, title="Alice live")
        await publish(test_client, alice, live["id"])
        await create_blog(test_client, bob, title="Bob draft")

        response = await test_client.get("/api/blogs/user/my-blogs", headers=alice)

        data = response.json()["data"]
        assert sorted(b["id"] for b in data["blogs"]) == sorted([draft["id"], live["id"]])
        assert data["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_huge_page_number_is_an_empty_page(self, test_client, signup):
        _, headers = await signup()
        await create_blog(test_client, headers)

        response = await test_client.get(
            "/api/blogs/user/my-blogs", params={"page": 10**20}, headers=headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["blogs"] == []
        assert data["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_invalid_state_filter(self, test_client, signup):
        _, headers = await signup()

        response = await test_client.get(
            "/api/blogs/user/my-blogs", params={"state": "deleted"}, headers=headers
        )
        assert response.status_code == 400
