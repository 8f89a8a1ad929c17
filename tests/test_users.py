"""
API tests for profile upsert, profile statistics, trending and social graph reads.
"""
import asyncio

from sqlalchemy import func, select

from social_index.models import Follow, User
from tests.helpers import follow, save_profile


async def test_profile_upsert_keeps_one_row_with_latest_username(client, store):
    await save_profile(client, "0xA", "alice")
    resp = await save_profile(client, "0xA", "alice_v2", bio="gm")

    assert resp.json() == {"success": True, "message": "Profile saved successfully"}
    async with store.session() as db:
        rows = (await db.scalars(select(User).where(User.address == "0xA"))).all()
    assert len(rows) == 1
    assert rows[0].username == "alice_v2"
    assert rows[0].bio == "gm"
    assert rows[0].updated_at >= rows[0].created_at


async def test_profile_update_keeps_created_at(client):
    await save_profile(client, "0xA", "alice")
    first = (await client.get("/users/profile/0xA")).json()

    await save_profile(client, "0xA", "alice2")
    second = (await client.get("/users/profile/0xA")).json()

    assert second["created_at"] == first["created_at"]
    assert second["username"] == "alice2"


async def test_profile_accepts_camel_case_fields(client):
    await save_profile(
        client, "0xA", "alice", avatarUrl="https://a/img.png", headerUrl="https://a/h.png"
    )
    profile = (await client.get("/users/profile/0xA")).json()
    assert profile["avatar_url"] == "https://a/img.png"
    assert profile["header_url"] == "https://a/h.png"


async def test_username_length_is_validated(client, store):
    short = await client.post("/users/profile", json={"address": "0xA", "username": "ab"})
    long = await client.post("/users/profile", json={"address": "0xA", "username": "a" * 31})

    for resp in (short, long):
        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] == 400
        assert "username" in body["error"]

    async with store.session() as db:
        assert await db.scalar(select(func.count()).select_from(User)) == 0


async def test_bio_over_500_chars_is_rejected(client):
    resp = await client.post(
        "/users/profile", json={"address": "0xA", "username": "alice", "bio": "x" * 501}
    )
    assert resp.status_code == 400
    assert "bio" in resp.json()["error"]


async def test_taken_username_is_a_conflict(client):
    await save_profile(client, "0xA", "alice")
    resp = await client.post("/users/profile", json={"address": "0xB", "username": "alice"})

    assert resp.status_code == 409
    assert resp.json() == {"error": "Username 'alice' already taken", "status": 409}


async def test_missing_profile_is_not_found(client):
    resp = await client.get("/users/profile/0xNOPE")
    assert resp.status_code == 404
    assert resp.json() == {"error": "User not found", "status": 404}


async def test_profile_stats_are_computed_per_request(client):
    await save_profile(client, "0xA", "alice")
    for i in (1, 2, 3):
        await client.post(
            "/posts/",
            json={
                "postId": i,
                "authorAddress": "0xA",
                "contentHash": f"h{i}",
                "transactionHash": f"0xt{i}",
            },
        )
    await follow(client, "0xB", "0xA")
    await follow(client, "0xC", "0xA")
    await follow(client, "0xA", "0xB")
    for amount in ("0.1", "0.2"):
        await client.post(
            "/interactions/tip",
            json={
                "fromAddress": "0xB",
                "toAddress": "0xA",
                "amount": amount,
                "transactionHash": "0xtip",
            },
        )

    stats = (await client.get("/users/profile/0xA")).json()["stats"]

    assert stats == {
        "posts": 3,
        "followers": 2,
        "following": 1,
        "tips_received": 2,
        "total_tips_eth": "0.3000",
    }


async def test_profile_stats_are_zero_for_new_user(client):
    await save_profile(client, "0xA", "alice")
    stats = (await client.get("/users/profile/0xA")).json()["stats"]
    assert stats == {
        "posts": 0,
        "followers": 0,
        "following": 0,
        "tips_received": 0,
        "total_tips_eth": "0.0000",
    }


async def test_trending_ties_go_to_newer_account(client, store):
    async with store.session() as db:
        db.add(User(address="0xU1", username="older", created_at=1_000, updated_at=1_000))
        db.add(User(address="0xU2", username="newer", created_at=2_000, updated_at=2_000))
        db.add(User(address="0xU3", username="popular", created_at=500, updated_at=500))
        for i in range(5):
            db.add(Follow(follower_address=f"0xF{i}", following_address="0xU1"))
            db.add(Follow(follower_address=f"0xF{i}", following_address="0xU2"))
        for i in range(6):
            db.add(Follow(follower_address=f"0xF{i}", following_address="0xU3"))

    ranked = (await client.get("/users/trending")).json()

    assert [u["address"] for u in ranked] == ["0xU3", "0xU2", "0xU1"]
    assert [u["follower_count"] for u in ranked] == [6, 5, 5]


async def test_trending_is_capped_at_ten(client, store):
    async with store.session() as db:
        for i in range(12):
            db.add(User(address=f"0x{i:02d}", username=f"user{i:02d}", created_at=i, updated_at=i))

    ranked = (await client.get("/users/trending")).json()

    assert len(ranked) == 10
    assert all(u["follower_count"] == 0 for u in ranked)


async def test_followers_and_following_lists(client):
    await save_profile(client, "0xA", "alice")
    await save_profile(client, "0xB", "bob")
    await follow(client, "0xB", "0xA")

    followers = (await client.get("/users/0xA/followers")).json()
    following = (await client.get("/users/0xB/following")).json()
    status = (await client.get("/users/0xB/follows/0xA")).json()
    reverse = (await client.get("/users/0xA/follows/0xB")).json()

    assert [u["username"] for u in followers] == ["bob"]
    assert [u["username"] for u in following] == ["alice"]
    assert status == {"isFollowing": True}
    assert reverse == {"isFollowing": False}


async def test_search_matches_username_or_address(client):
    await save_profile(client, "0xAAA1", "alice")
    await save_profile(client, "0xBBB2", "bob_builder")

    by_name = (await client.get("/users/search/build")).json()
    by_address = (await client.get("/users/search/AAA")).json()

    assert [u["username"] for u in by_name] == ["bob_builder"]
    assert [u["username"] for u in by_address] == ["alice"]


async def test_concurrent_first_saves_for_one_address_all_succeed(file_client, file_store):
    names = [f"name{i}" for i in range(5)]

    responses = await asyncio.gather(
        *(
            file_client.post("/users/profile", json={"address": "0xA", "username": n})
            for n in names
        )
    )

    assert [r.status_code for r in responses] == [200] * 5
    async with file_store.session() as db:
        rows = (await db.scalars(select(User).where(User.address == "0xA"))).all()
    assert len(rows) == 1
    assert rows[0].username in names


async def test_taken_username_on_update_is_a_conflict(client):
    await save_profile(client, "0xA", "alice")
    await save_profile(client, "0xB", "bob")

    resp = await client.post("/users/profile", json={"address": "0xB", "username": "alice"})

    assert resp.status_code == 409
    assert (await client.get("/users/profile/0xB")).json()["username"] == "bob"


async def test_identity_fields_are_trimmed_but_bio_is_not(client):
    await save_profile(client, "  0xA ", " alice ", bio="  gm\n")

    profile = (await client.get("/users/profile/0xA")).json()

    assert profile["username"] == "alice"
    assert profile["bio"] == "  gm\n"


async def test_follow_lists_include_addresses_without_profiles(client):
    await save_profile(client, "0xA", "alice")
    await follow(client, "0xGHOST", "0xA")
    await follow(client, "0xA", "0xNEW")

    [follower] = (await client.get("/users/0xA/followers")).json()
    [followed] = (await client.get("/users/0xA/following")).json()

    assert follower["address"] == "0xGHOST"
    assert follower["username"] is None
    assert follower["followed_at"] > 0
    assert followed["address"] == "0xNEW"
    assert followed["username"] is None


async def test_store_failure_names_the_profile_save(client, store_down):
    resp = await client.post("/users/profile", json={"address": "0xA", "username": "alice"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to save profile", "status": 500}
