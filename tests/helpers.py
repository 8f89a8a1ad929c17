"""Request helpers and doubles shared by the tests."""
from httpx import AsyncClient


class BrokenStore:
    """Stand-in store whose every session fails, as if the database were down."""

    def session(self):
        raise ConnectionError("store unavailable")


async def save_profile(client: AsyncClient, address: str, username: str, **extra):
    resp = await client.post(
        "/users/profile", json={"address": address, "username": username, **extra}
    )
    assert resp.status_code == 200, resp.text
    return resp


async def create_post(client: AsyncClient, post_id: int, author: str, text: str = "hello"):
    resp = await client.post(
        "/posts/",
        json={
            "postId": post_id,
            "authorAddress": author,
            "contentHash": f"h{post_id}",
            "contentText": text,
            "transactionHash": f"0xpost{post_id}",
        },
    )
    assert resp.status_code == 200, resp.text
    return resp


async def like(client: AsyncClient, post_id: int, user: str, tx: str = "0xlike"):
    return await client.post(
        "/interactions/like",
        json={"postId": post_id, "userAddress": user, "transactionHash": tx},
    )


async def follow(client: AsyncClient, follower: str, following: str, tx: str = "0xfollow"):
    return await client.post(
        "/interactions/follow",
        json={
            "followerAddress": follower,
            "followingAddress": following,
            "transactionHash": tx,
        },
    )


async def inbox(client: AsyncClient, address: str, **params) -> list[dict]:
    resp = await client.get(f"/notifications/{address}", params=params)
    assert resp.status_code == 200, resp.text
    return resp.json()
