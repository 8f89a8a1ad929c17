"""
Ledger JSON-RPC client.

The index never writes to the ledger. Clients submit transactions themselves
and only call the mutation endpoints once a transaction is confirmed; this
client lets them (and operators) poll for that confirmation and read the
contract's own view of posts and profiles:

  eth_getTransactionReceipt  →  pending | confirmed | failed
  eth_blockNumber            →  current chain head
  eth_call                   →  postCounter() / getPost(id) / getProfile(address)
"""
import itertools
import logging
from typing import Any, Optional, Sequence

import httpx
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, function_signature_to_4byte_selector, is_address

from social_index.config import Settings
from social_index.errors import Internal, NotFound, ValidationError
from social_index.schemas import OnChainPost, OnChainProfile, ReceiptResponse

logger = logging.getLogger(__name__)

# Human-readable ABI of the social contract, served as-is to clients.
CONTRACT_ABI = [
    "function createProfile(string memory _username, string memory _profileHash) external",
    "function updateProfile(string memory _username, string memory _profileHash) external",
    "function createPost(string memory _contentHash) external returns (uint256)",
    "function likePost(uint256 _postId, bytes memory encryptedLike, bytes calldata inputProof) external",
    "function commentOnPost(uint256 _postId, string memory _commentHash) external returns (uint256)",
    "function sharePost(uint256 _originalPostId, string memory _additionalContent) external returns (uint256)",
    "function tipUser(address _to, bytes memory encryptedAmount, bytes calldata inputProof) external payable",
    "function followUser(address _userToFollow, bytes memory encryptedFollow, bytes calldata inputProof) external",
    "function getPost(uint256 _postId) external view returns (uint256 id, address author, string memory contentHash, uint256 timestamp)",
    "function getUserPosts(address _user) external view returns (uint256[] memory)",
    "function getProfile(address _user) external view returns (address userAddress, string memory username, string memory profileHash)",
    "function postCounter() external view returns (uint256)",
    "event PostCreated(uint256 indexed postId, address indexed author, string contentHash, uint256 timestamp)",
    "event PostLiked(uint256 indexed postId, address indexed liker)",
    "event PostCommented(uint256 indexed postId, uint256 commentId, address indexed commenter)",
    "event TipSent(address indexed from, address indexed to, uint256 timestamp)",
    "event UserFollowed(address indexed follower, address indexed following)",
]


class LedgerError(Exception):
    pass


# Transport failures, RPC errors, and anything a malformed answer raises
# while being parsed.
_LEDGER_ERRORS = (
    httpx.HTTPError,
    LedgerError,
    DecodingError,
    KeyError,
    TypeError,
    ValueError,
    AttributeError,
)


class LedgerClient:
    def __init__(self, settings: Settings) -> None:
        self.rpc_url = settings.ledger_rpc_url
        self.contract_address = settings.contract_address
        self._timeout = settings.ledger_rpc_timeout
        self._ids = itertools.count(1)
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._http = httpx.AsyncClient(timeout=self._timeout, transport=transport)

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()

    async def _call(self, method: str, params: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        resp = await self._http.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if data.get("error"):
            raise LedgerError(data["error"].get("message", "unknown RPC error"))
        return data.get("result")

    async def _view(
        self,
        signature: str,
        arg_types: Sequence[str],
        args: Sequence[Any],
        out_types: Sequence[str],
    ) -> tuple:
        """Call a view function on the contract and decode its return values."""
        if not self.contract_address:
            raise NotFound("Contract address not configured")
        data = function_signature_to_4byte_selector(signature) + encode(arg_types, args)
        result = await self._call(
            "eth_call",
            [{"to": self.contract_address, "data": "0x" + data.hex()}, "latest"],
        )
        return decode(out_types, decode_hex(result))

    # ── Transactions ──────────────────────────────────────────────────────

    async def get_receipt(self, tx_hash: str) -> ReceiptResponse:
        """
        Confirmation state of a transaction. A missing receipt means the
        transaction has not been mined yet.
        """
        try:
            receipt = await self._call("eth_getTransactionReceipt", [tx_hash])
            if receipt is None:
                return ReceiptResponse(transaction_hash=tx_hash, status="pending")
            succeeded = int(receipt["status"], 16) == 1
            block = receipt.get("blockNumber")
            return ReceiptResponse(
                transaction_hash=tx_hash,
                status="confirmed" if succeeded else "failed",
                block_number=int(block, 16) if block else None,
            )
        except _LEDGER_ERRORS as exc:
            logger.warning("Receipt lookup failed for %s: %s", tx_hash, exc)
            raise Internal("Failed to fetch transaction receipt from ledger")

    async def block_number(self) -> int:
        try:
            return int(await self._call("eth_blockNumber", []), 16)
        except _LEDGER_ERRORS as exc:
            logger.warning("Block number lookup failed: %s", exc)
            raise Internal("Failed to fetch block number from ledger")

    # ── Contract views ────────────────────────────────────────────────────

    async def post_counter(self) -> int:
        try:
            (counter,) = await self._view("postCounter()", [], [], ["uint256"])
            return counter
        except _LEDGER_ERRORS as exc:
            logger.warning("Post counter lookup failed: %s", exc)
            raise Internal("Failed to fetch post counter")

    async def get_post(self, post_id: int) -> OnChainPost:
        try:
            post_id_, author, content_hash, timestamp = await self._view(
                "getPost(uint256)",
                ["uint256"],
                [post_id],
                ["uint256", "address", "string", "uint256"],
            )
        except _LEDGER_ERRORS as exc:
            logger.warning("On-chain post lookup failed for %s: %s", post_id, exc)
            raise Internal("Failed to fetch on-chain post")
        return OnChainPost(
            id=str(post_id_),
            author=author,
            content_hash=content_hash,
            timestamp=str(timestamp),
        )

    async def get_profile(self, address: str) -> OnChainProfile:
        if not is_address(address):
            raise ValidationError(f"Invalid address: {address}")
        try:
            user_address, username, profile_hash = await self._view(
                "getProfile(address)",
                ["address"],
                [address],
                ["address", "string", "string"],
            )
        except _LEDGER_ERRORS as exc:
            logger.warning("On-chain profile lookup failed for %s: %s", address, exc)
            raise Internal("Failed to fetch on-chain profile")
        return OnChainProfile(
            user_address=user_address, username=username, profile_hash=profile_hash
        )
