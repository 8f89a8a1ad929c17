"""
API tests for post indexing and the timeline / feed / per-user views.
"""
from sqlalchemy import select

from social_index.models import Post
from tests.helpers import create_post, follow, like, save_profile


async def test_post_before_profile_appears_on_timeline(client):
    resp = await client.post(
        "/posts/",
        json={
            "postId": 42,
            "authorAddress": "0xA",
            "contentHash": "h1",
            "contentText": "hello",
            "transactionHash": "0xT1",
        },
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "post_id": 42}

    [row] = (await client.get("/posts/timeline")).json()

    assert row["post_id"] == 42
    assert row["author_address"] == "0xA"
    assert row["username"] is None
    assert row["content_text"] == "hello"
    assert row["transaction_hash"] == "0xT1"
    assert row["like_count"] == 0
    assert row["comment_count"] == 0


async def test_author_profile_is_joined_once_indexed(client):
    await create_post(client, 1, "0xA")
    await save_profile(client, "0xA", "alice", avatarUrl="https://a/img.png")

    post = (await client.get("/posts/1")).json()

    assert post["username"] == "alice"
    assert post["avatar_url"] == "https://a/img.png"


async def test_duplicate_post_id_is_a_conflict(client, store):
    await create_post(client, 7, "0xA", text="original")

    resp = await client.post(
        "/posts/",
        json={
            "postId": 7,
            "authorAddress": "0xB",
            "contentHash": "other",
            "contentText": "overwrite?",
            "transactionHash": "0xT2",
        },
    )

    assert resp.status_code == 409
    assert resp.json() == {"error": "Post 7 already exists", "status": 409}
    async with store.session() as db:
        post = await db.scalar(select(Post).where(Post.post_id == 7))
    assert post.author_address == "0xA"
    assert post.content_text == "original"
    assert post.transaction_hash == "0xpost7"


async def test_post_requires_content_hash_and_tx(client):
    resp = await client.post("/posts/", json={"postId": 1, "authorAddress": "0xA"})
    assert resp.status_code == 400
    assert resp.json()["status"] == 400


async def test_media_urls_accept_list_or_comma_string(client):
    base = {"authorAddress": "0xA", "contentHash": "h", "transactionHash": "0xT"}
    await client.post("/posts/", json={**base, "postId": 1, "mediaUrls": ["ipfs://a", "ipfs://b"]})
    await client.post("/posts/", json={**base, "postId": 2, "mediaUrls": "ipfs://c, ipfs://d"})
    await client.post("/posts/", json={**base, "postId": 3, "mediaUrls": ""})

    assert (await client.get("/posts/1")).json()["media_urls"] == ["ipfs://a", "ipfs://b"]
    assert (await client.get("/posts/2")).json()["media_urls"] == ["ipfs://c", "ipfs://d"]
    assert (await client.get("/posts/3")).json()["media_urls"] == []


async def test_timeline_is_newest_first_and_paginated(client):
    for post_id in range(1, 26):
        await create_post(client, post_id, "0xA")

    default_page = (await client.get("/posts/timeline")).json()
    second_page = (await client.get("/posts/timeline", params={"limit": 10, "offset": 20})).json()

    assert len(default_page) == 20
    assert default_page[0]["post_id"] == 25
    assert [p["post_id"] for p in second_page] == [5, 4, 3, 2, 1]


async def test_pagination_bounds_are_validated(client):
    assert (await client.get("/posts/timeline", params={"limit": 0})).status_code == 400
    assert (await client.get("/posts/timeline", params={"offset": -1})).status_code == 400


async def test_counts_are_live(client):
    await create_post(client, 1, "0xA")
    await like(client, 1, "0xB")
    await like(client, 1, "0xC")
    await client.post(
        "/interactions/comment",
        json={
            "commentId": 1,
            "postId": 1,
            "userAddress": "0xB",
            "commentHash": "c1",
            "commentText": "gm",
            "transactionHash": "0xc1",
        },
    )
    await client.request(
        "DELETE", "/interactions/like", json={"postId": 1, "userAddress": "0xC"}
    )

    post = (await client.get("/posts/1")).json()

    assert post["like_count"] == 1
    assert post["comment_count"] == 1


async def test_feed_only_contains_followed_authors(client):
    await create_post(client, 1, "0xA")
    await create_post(client, 2, "0xB")
    await create_post(client, 3, "0xC")
    await create_post(client, 4, "0xA")
    await follow(client, "0xME", "0xA")
    await follow(client, "0xME", "0xC")

    feed = (await client.get("/posts/feed/0xME")).json()
    empty = (await client.get("/posts/feed/0xNOBODY")).json()

    assert [p["post_id"] for p in feed] == [4, 3, 1]
    assert empty == []


async def test_unfollow_removes_author_from_feed(client):
    await create_post(client, 1, "0xA")
    await follow(client, "0xME", "0xA")
    await client.request(
        "DELETE",
        "/interactions/follow",
        json={"followerAddress": "0xME", "followingAddress": "0xA"},
    )

    assert (await client.get("/posts/feed/0xME")).json() == []


async def test_user_posts(client):
    await create_post(client, 1, "0xA")
    await create_post(client, 2, "0xB")
    await create_post(client, 3, "0xA")

    posts = (await client.get("/posts/user/0xA")).json()

    assert [p["post_id"] for p in posts] == [3, 1]


async def test_missing_post_is_not_found(client):
    resp = await client.get("/posts/404")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Post not found", "status": 404}


async def test_post_text_is_stored_exactly(client, store):
    await create_post(client, 1, "0xA", text="  indented\n")

    async with store.session() as db:
        stored = await db.scalar(select(Post.content_text).where(Post.post_id == 1))
    assert stored == "  indented\n"
    assert (await client.get("/posts/1")).json()["content_text"] == "  indented\n"
