#!/usr/bin/env python3
"""
Seed script — replays a realistic set of ledger-confirmed actions against the
index API, the way the wallet UI does after each transaction confirms.

Creates:
  • 10 profiles (wallet address → username)
  • A follow graph (each user follows 4 others)
  • 3 posts per user (30 total), post ids assigned sequentially like the ledger
  • Some likes, comments and tips across posts

Run against a running API:
  python scripts/seed_data.py --api-url http://localhost:8000

Fake transaction hashes are generated locally; nothing is sent to a chain.
"""
import argparse
import json
import random
import secrets
import time
import urllib.error
import urllib.request
from dataclasses import dataclass


BASE_USERS = [
    "alice_eth",
    "bob_builder",
    "carol_codes",
    "dave_degen",
    "eve_validator",
    "frank_fhe",
    "grace_gas",
    "henry_hodl",
    "iris_infra",
    "jack_mev",
]

SAMPLE_POSTS = [
    "gm. Just minted my first on-chain post 🚀",
    "Confidential transfers are the missing piece for social tipping.",
    "Sepolia faucet is dry again. Anyone have spare test ETH?",
    "Indexers are the unsung heroes of every dapp frontend.",
    "Reading the FHE docs this weekend. Encrypted likes are wild.",
    "Block times are slow, but the index makes the feed feel instant.",
    "Who else keeps their profile bio under 500 chars? 😅",
    "Shipping a follow graph on-chain was easier than expected.",
    "Tip jar is open. Decimal strings only, no floats please.",
    "Eventual consistency is a feature when the ledger is the source of truth.",
]

SAMPLE_COMMENTS = [
    "Love this!",
    "Totally agree, the indexer makes everything snappier than reading the chain directly.",
    "wagmi",
    "Can you share the contract address?",
    "Bookmarked for later 🔖",
]


def fake_address() -> str:
    return "0x" + secrets.token_hex(20)


def fake_tx() -> str:
    return "0x" + secrets.token_hex(32)


@dataclass
class ApiClient:
    base_url: str

    def request(self, method: str, path: str, data: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        body = json.dumps(data).encode() if data is not None else None
        req = urllib.request.Request(
            url, data=body, headers={"Content-Type": "application/json"}, method=method
        )
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                return json.loads(resp.read())
        except urllib.error.HTTPError as e:
            print(f"  HTTP {e.code} on {method} {path}: {e.read().decode()}")
            return {}

    def post(self, path: str, data: dict) -> dict:
        return self.request("POST", path, data)

    def get(self, path: str) -> dict:
        return self.request("GET", path)


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for _ in range(retries):
        try:
            result = client.get("/health")
            if result.get("status") == "ok":
                print("  API is ready!\n")
                return
        except (urllib.error.URLError, ConnectionError):
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


def main(api_url: str, first_post_id: int) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Profiles ─────────────────────────────────────────────────────────
    print("Creating profiles...")
    addresses: list[str] = []
    for username in BASE_USERS:
        address = fake_address()
        result = client.post(
            "/users/profile",
            {"address": address, "username": username, "bio": f"I am {username}"},
        )
        if result.get("success"):
            addresses.append(address)
            print(f"  ✓ {username} ({address})")
        else:
            print(f"  ✗ Failed to create {username}")

    if not addresses:
        print("No profiles created — aborting")
        return

    # ── Follow graph ─────────────────────────────────────────────────────
    print("\nCreating follow relationships...")
    for follower in addresses:
        for following in random.sample([a for a in addresses if a != follower], k=min(4, len(addresses) - 1)):
            client.post(
                "/interactions/follow",
                {"followerAddress": follower, "followingAddress": following, "transactionHash": fake_tx()},
            )
    print("  ✓ Follow graph created")

    # ── Posts ────────────────────────────────────────────────────────────
    print("\nCreating posts...")
    post_ids: list[int] = []
    next_id = first_post_id
    for author in addresses:
        for _ in range(3):
            text = random.choice(SAMPLE_POSTS)
            result = client.post(
                "/posts/",
                {
                    "postId": next_id,
                    "authorAddress": author,
                    "contentHash": secrets.token_hex(23),
                    "contentText": text,
                    "transactionHash": fake_tx(),
                },
            )
            if result.get("success"):
                post_ids.append(next_id)
            next_id += 1
    print(f"  ✓ {len(post_ids)} posts created")

    # ── Likes, comments, tips ────────────────────────────────────────────
    print("\nAdding interactions...")
    likes = comments = tips = 0
    comment_id = first_post_id
    for post_id in post_ids:
        for liker in random.sample(addresses, k=random.randint(0, 5)):
            client.post(
                "/interactions/like",
                {"postId": post_id, "userAddress": liker, "transactionHash": fake_tx()},
            )
            likes += 1
        if random.random() < 0.5:
            client.post(
                "/interactions/comment",
                {
                    "commentId": comment_id,
                    "postId": post_id,
                    "userAddress": random.choice(addresses),
                    "commentHash": secrets.token_hex(23),
                    "commentText": random.choice(SAMPLE_COMMENTS),
                    "transactionHash": fake_tx(),
                },
            )
            comment_id += 1
            comments += 1
    for _ in range(10):
        sender, receiver = random.sample(addresses, k=2)
        client.post(
            "/interactions/tip",
            {
                "fromAddress": sender,
                "toAddress": receiver,
                "amount": random.choice(["0.001", "0.01", "0.05", "0.1"]),
                "transactionHash": fake_tx(),
            },
        )
        tips += 1
    print(f"  ✓ {likes} likes, {comments} comments, {tips} tips added")

    # ── Summary ──────────────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    a = addresses[0]
    print(f"# Timeline:")
    print(f"  curl -s '{api_url}/posts/timeline' | python3 -m json.tool\n")
    print(f"# Feed for '{BASE_USERS[0]}':")
    print(f"  curl -s '{api_url}/posts/feed/{a}' | python3 -m json.tool\n")
    print(f"# Profile + stats:")
    print(f"  curl -s '{api_url}/users/profile/{a}' | python3 -m json.tool\n")
    print(f"# Notifications:")
    print(f"  curl -s '{api_url}/notifications/{a}?unreadOnly=true' | python3 -m json.tool\n")
    print(f"# Trending users:")
    print(f"  curl -s '{api_url}/users/trending' | python3 -m json.tool")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the social index")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    parser.add_argument(
        "--first-post-id", type=int, default=1, help="First ledger post id to assign"
    )
    args = parser.parse_args()
    main(args.api_url, args.first_post_id)
