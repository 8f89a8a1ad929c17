"""
SQLAlchemy ORM models for the entity store.

Tables:
  users         — profiles keyed by wallet address
  posts         — posts keyed by the ledger-assigned post_id
  likes         — user × post engagement, one row per pair
  comments      — comments keyed by the ledger-assigned comment_id
  follows       — social graph edges (follower → following)
  tips          — append-only transfer records, amount kept as a decimal string
  shares        — append-only original_post → new_post links
  notifications — per-recipient inbox entries derived from the rows above

All timestamps are integer epoch milliseconds. Post/comment authorship is not
backed by a foreign key: a post may land before its author's profile does.
"""
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from social_index.database import Base, now_ms

ADDRESS = String(66)
TX_HASH = String(66)


class User(Base):
    __tablename__ = "users"

    address: Mapped[str] = mapped_column(ADDRESS, primary_key=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    profile_hash: Mapped[Optional[str]] = mapped_column(String(255))
    bio: Mapped[Optional[str]] = mapped_column(String(500))
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))
    header_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)


class Post(Base):
    __tablename__ = "posts"

    # Assigned by the ledger, never generated here.
    post_id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    author_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    content_text: Mapped[Optional[str]] = mapped_column(Text)
    media_urls: Mapped[Optional[list]] = mapped_column(JSON)
    transaction_hash: Mapped[Optional[str]] = mapped_column(TX_HASH)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)

    __table_args__ = (
        Index("idx_posts_author", "author_address"),
        Index("idx_posts_created", "created_at"),
    )


class Like(Base):
    __tablename__ = "likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    transaction_hash: Mapped[Optional[str]] = mapped_column(TX_HASH)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)

    __table_args__ = (
        UniqueConstraint("post_id", "user_address", name="uq_likes_post_user"),
        Index("idx_likes_post", "post_id"),
    )


class Comment(Base):
    __tablename__ = "comments"

    comment_id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    post_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    comment_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    comment_text: Mapped[Optional[str]] = mapped_column(Text)
    transaction_hash: Mapped[Optional[str]] = mapped_column(TX_HASH)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)

    __table_args__ = (Index("idx_comments_post", "post_id"),)


class Follow(Base):
    __tablename__ = "follows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    following_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    transaction_hash: Mapped[Optional[str]] = mapped_column(TX_HASH)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "follower_address", "following_address", name="uq_follows_pair"
        ),
        Index("idx_follows_follower", "follower_address"),
        Index("idx_follows_following", "following_address"),
    )


class Tip(Base):
    __tablename__ = "tips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    to_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    # Exact decimal string, e.g. "0.000000000000000001"
    amount: Mapped[str] = mapped_column(String(78), nullable=False)
    transaction_hash: Mapped[str] = mapped_column(TX_HASH, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)

    __table_args__ = (Index("idx_tips_to", "to_address"),)


class Share(Base):
    __tablename__ = "shares"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    original_post_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    new_post_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    transaction_hash: Mapped[Optional[str]] = mapped_column(TX_HASH)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)

    __table_args__ = (Index("idx_shares_original", "original_post_id"),)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    from_address: Mapped[str] = mapped_column(ADDRESS, nullable=False)
    post_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    comment_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    message: Mapped[str] = mapped_column(String(255), nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="0", nullable=False
    )
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, nullable=False)

    __table_args__ = (
        Index("idx_notifications_user", "user_address"),
        Index("idx_notifications_created", "created_at"),
    )
