"""
API tests for the notification inbox.
"""
import pytest

from social_index.fanout import NotificationType
from tests.helpers import inbox, save_profile


async def _seed(fanout, recipient: str, count: int) -> list[int]:
    ids = []
    for i in range(count):
        ids.append(
            await fanout.deliver(
                recipient, NotificationType.FOLLOW, f"0xF{i}", "started following you"
            )
        )
    return ids


async def test_inbox_is_newest_first_with_actor_profile(client, fanout):
    await save_profile(client, "0xF1", "follower_one")
    ids = await _seed(fanout, "0xA", 3)

    notes = await inbox(client, "0xA")

    assert [n["id"] for n in notes] == list(reversed(ids))
    assert notes[1]["username"] == "follower_one"
    assert notes[0]["username"] is None
    assert all(n["is_read"] is False for n in notes)


async def test_inbox_pagination_defaults_to_twenty(client, fanout):
    await _seed(fanout, "0xA", 25)

    assert len(await inbox(client, "0xA")) == 20
    assert len(await inbox(client, "0xA", limit=10, offset=20)) == 5


async def test_unread_only_filter_and_count(client, fanout):
    first, second, third = await _seed(fanout, "0xA", 3)
    await client.put(f"/notifications/{second}/read")

    unread = await inbox(client, "0xA", unreadOnly="true")
    count = (await client.get("/notifications/0xA/count")).json()

    assert [n["id"] for n in unread] == [third, first]
    assert count == {"count": 2}
    assert len(await inbox(client, "0xA")) == 3


async def test_mark_read_is_idempotent(client, fanout):
    [note_id] = await _seed(fanout, "0xA", 1)

    for _ in range(2):
        resp = await client.put(f"/notifications/{note_id}/read")
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

    [note] = await inbox(client, "0xA")
    assert note["is_read"] is True


async def test_mark_read_on_unknown_id_is_a_silent_success(client):
    resp = await client.put("/notifications/12345/read")
    assert resp.status_code == 200


async def test_read_all_is_scoped_to_address(client, fanout):
    await _seed(fanout, "0xA", 2)
    await _seed(fanout, "0xB", 1)

    resp = await client.put("/notifications/0xA/read-all")

    assert resp.status_code == 200
    assert (await client.get("/notifications/0xA/count")).json() == {"count": 0}
    assert (await client.get("/notifications/0xB/count")).json() == {"count": 1}


async def test_delete_is_idempotent(client, fanout):
    keep, drop = await _seed(fanout, "0xA", 2)

    for _ in range(2):
        resp = await client.delete(f"/notifications/{drop}")
        assert resp.status_code == 200

    assert [n["id"] for n in await inbox(client, "0xA")] == [keep]


@pytest.mark.parametrize(
    "method, path, message",
    [
        ("PUT", "/notifications/1/read", "Failed to mark as read"),
        ("PUT", "/notifications/0xA/read-all", "Failed to mark all as read"),
        ("DELETE", "/notifications/1", "Failed to delete notification"),
    ],
)
async def test_store_failure_names_the_inbox_action(client, store_down, method, path, message):
    resp = await client.request(method, path)

    assert resp.status_code == 500
    assert resp.json() == {"error": message, "status": 500}
