"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models to avoid coupling transport to storage.

Request bodies accept camelCase keys (as sent by the wallet UI) as well as
snake_case; responses are snake_case. Only identity fields (addresses and
usernames) are whitespace-trimmed; free text is stored exactly as sent.
"""
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

# Non-negative decimal string; never parsed to float on the write path.
DECIMAL_PATTERN = r"^\d+(\.\d+)?$"

Address = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=66)]
Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=30)]


class _Request(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ──────────────────────────── Users ───────────────────────────────────────

class ProfileUpsert(_Request):
    address: Address
    username: Username
    profile_hash: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[str] = None
    header_url: Optional[str] = None


class UserResponse(BaseModel):
    address: str
    username: str
    profile_hash: Optional[str]
    bio: Optional[str]
    avatar_url: Optional[str]
    header_url: Optional[str]
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True


class ProfileStats(BaseModel):
    posts: int
    followers: int
    following: int
    tips_received: int
    # Float sum rendered to 4 places; see queries.profile_stats.
    total_tips_eth: str


class ProfileResponse(UserResponse):
    stats: ProfileStats


class TrendingUser(UserResponse):
    follower_count: int


class FollowEdgeUser(BaseModel):
    """
    One side of a follow edge. Profile fields are None while the address
    has no indexed profile yet.
    """

    address: str
    username: Optional[str] = None
    profile_hash: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    header_url: Optional[str] = None
    followed_at: int


# ──────────────────────────── Posts ───────────────────────────────────────

class PostCreate(_Request):
    post_id: int = Field(..., ge=0)
    author_address: Address
    content_hash: str = Field(..., min_length=1)
    content_text: Optional[str] = ""
    media_urls: list[str] = Field(default_factory=list)
    transaction_hash: str = Field(..., min_length=1, max_length=66)

    @field_validator("media_urls", mode="before")
    @classmethod
    def _split_media(cls, value):
        # Older clients send a single comma-separated string.
        if isinstance(value, str):
            return [u.strip() for u in value.split(",") if u.strip()]
        return value or []


class PostResponse(BaseModel):
    post_id: int
    author_address: str
    # None while the author's profile has not been indexed yet.
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    content_hash: str
    content_text: Optional[str]
    media_urls: list[str]
    transaction_hash: Optional[str]
    like_count: int
    comment_count: int
    created_at: int


# ──────────────────────────── Interactions ────────────────────────────────

class LikeRequest(_Request):
    post_id: int = Field(..., ge=0)
    user_address: Address
    transaction_hash: str = Field(..., min_length=1, max_length=66)


class UnlikeRequest(_Request):
    post_id: int = Field(..., ge=0)
    user_address: Address


class CommentCreate(_Request):
    comment_id: int = Field(..., ge=0)
    post_id: int = Field(..., ge=0)
    user_address: Address
    comment_hash: str = Field(..., min_length=1)
    comment_text: Optional[str] = ""
    transaction_hash: str = Field(..., min_length=1, max_length=66)


class CommentResponse(BaseModel):
    comment_id: int
    post_id: int
    user_address: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    comment_hash: str
    comment_text: Optional[str]
    transaction_hash: Optional[str]
    created_at: int


class FollowRequest(_Request):
    follower_address: Address
    following_address: Address
    transaction_hash: str = Field(..., min_length=1, max_length=66)


class UnfollowRequest(_Request):
    follower_address: Address
    following_address: Address


class TipCreate(_Request):
    from_address: Address
    to_address: Address
    amount: str = Field(..., pattern=DECIMAL_PATTERN, max_length=78)
    transaction_hash: str = Field(..., min_length=1, max_length=66)


class TipResponse(BaseModel):
    id: int
    from_address: str
    to_address: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    amount: str
    transaction_hash: str
    created_at: int


class ShareCreate(_Request):
    original_post_id: int = Field(..., ge=0)
    new_post_id: int = Field(..., ge=0)
    user_address: Address
    transaction_hash: str = Field(..., min_length=1, max_length=66)


class MutationResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    post_id: Optional[int] = None
    comment_id: Optional[int] = None
    new_post_id: Optional[int] = None


# ──────────────────────────── Notifications ───────────────────────────────

class NotificationResponse(BaseModel):
    id: int
    user_address: str
    type: str
    from_address: str
    # Actor's profile, if indexed.
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    post_id: Optional[int]
    comment_id: Optional[int]
    message: str
    is_read: bool
    created_at: int


class UnreadCount(BaseModel):
    count: int


# ──────────────────────────── Ledger ──────────────────────────────────────

class ReceiptResponse(BaseModel):
    transaction_hash: str
    status: str   # 'pending' | 'confirmed' | 'failed'
    block_number: Optional[int] = None


class OnChainPost(BaseModel):
    # uint256 values are returned as decimal strings.
    id: str
    author: str
    content_hash: str
    timestamp: str


class OnChainProfile(BaseModel):
    user_address: str
    username: str
    profile_hash: str
