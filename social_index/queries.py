"""
Read / aggregation queries over the entity store.

Nothing here is cached or denormalised: like/comment counts are correlated
sub-queries per post row and profile statistics are recomputed per call, so
every read reflects the latest committed writes.

Author and actor profiles are LEFT OUTER joined. A post may be indexed before
its author's profile (the two arrive as independent calls), in which case
username/avatar_url come back as None instead of the row disappearing.
"""
from typing import Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from social_index.models import Comment, Follow, Like, Notification, Post, Tip, User
from social_index.schemas import (
    CommentResponse,
    FollowEdgeUser,
    NotificationResponse,
    PostResponse,
    ProfileStats,
    TipResponse,
    TrendingUser,
    UserResponse,
)


# ─────────────────────────── Posts ────────────────────────────────────────

def _enriched_posts() -> Select:
    like_count = (
        select(func.count(Like.id))
        .where(Like.post_id == Post.post_id)
        .correlate(Post)
        .scalar_subquery()
    )
    comment_count = (
        select(func.count(Comment.comment_id))
        .where(Comment.post_id == Post.post_id)
        .correlate(Post)
        .scalar_subquery()
    )
    return select(
        Post,
        User.username,
        User.avatar_url,
        like_count.label("like_count"),
        comment_count.label("comment_count"),
    ).outerjoin(User, User.address == Post.author_address)


def _newest_first(stmt: Select, limit: int, offset: int) -> Select:
    return (
        stmt.order_by(Post.created_at.desc(), Post.post_id.desc())
        .limit(limit)
        .offset(offset)
    )


def _to_post(row) -> PostResponse:
    post: Post = row.Post
    return PostResponse(
        post_id=post.post_id,
        author_address=post.author_address,
        username=row.username,
        avatar_url=row.avatar_url,
        content_hash=post.content_hash,
        content_text=post.content_text,
        media_urls=post.media_urls or [],
        transaction_hash=post.transaction_hash,
        like_count=row.like_count or 0,
        comment_count=row.comment_count or 0,
        created_at=post.created_at,
    )


async def timeline(db: AsyncSession, limit: int, offset: int) -> list[PostResponse]:
    """All posts, newest first."""
    rows = await db.execute(_newest_first(_enriched_posts(), limit, offset))
    return [_to_post(r) for r in rows.all()]


async def feed(
    db: AsyncSession, address: str, limit: int, offset: int
) -> list[PostResponse]:
    """Posts by the authors `address` follows, newest first."""
    stmt = _enriched_posts().join(
        Follow, Follow.following_address == Post.author_address
    ).where(Follow.follower_address == address)
    rows = await db.execute(_newest_first(stmt, limit, offset))
    return [_to_post(r) for r in rows.all()]


async def user_posts(
    db: AsyncSession, address: str, limit: int, offset: int
) -> list[PostResponse]:
    stmt = _enriched_posts().where(Post.author_address == address)
    rows = await db.execute(_newest_first(stmt, limit, offset))
    return [_to_post(r) for r in rows.all()]


async def get_post(db: AsyncSession, post_id: int) -> Optional[PostResponse]:
    row = (await db.execute(_enriched_posts().where(Post.post_id == post_id))).first()
    return _to_post(row) if row else None


# ─────────────────────────── Users ────────────────────────────────────────

async def _count(db: AsyncSession, stmt) -> int:
    return await db.scalar(stmt) or 0


async def profile_stats(db: AsyncSession, address: str) -> ProfileStats:
    """
    Fresh per-call statistics for one address.

    Tip amounts are stored as exact decimal strings; the total is summed as
    binary floats and rendered to 4 decimal places, so sub-1e-4 amounts and
    very large totals lose precision here (and only here).
    """
    posts = await _count(
        db, select(func.count(Post.post_id)).where(Post.author_address == address)
    )
    followers = await _count(
        db, select(func.count(Follow.id)).where(Follow.following_address == address)
    )
    following = await _count(
        db, select(func.count(Follow.id)).where(Follow.follower_address == address)
    )
    amounts = (
        await db.scalars(select(Tip.amount).where(Tip.to_address == address))
    ).all()
    total = sum(float(a) for a in amounts)
    return ProfileStats(
        posts=posts,
        followers=followers,
        following=following,
        tips_received=len(amounts),
        total_tips_eth=f"{total:.4f}",
    )


async def trending(db: AsyncSession, limit: int) -> list[TrendingUser]:
    """Users by follower count; ties go to the more recently created account."""
    follower_count = func.count(Follow.id).label("follower_count")
    stmt = (
        select(User, follower_count)
        .outerjoin(Follow, Follow.following_address == User.address)
        .group_by(User.address)
        .order_by(follower_count.desc(), User.created_at.desc())
        .limit(limit)
    )
    rows = await db.execute(stmt)
    return [
        TrendingUser(
            **UserResponse.model_validate(r.User).model_dump(),
            follower_count=r.follower_count,
        )
        for r in rows.all()
    ]


async def _follow_edges(
    db: AsyncSession, match, other_side
) -> list[FollowEdgeUser]:
    stmt = (
        select(other_side, Follow.created_at, User)
        .outerjoin_from(Follow, User, User.address == other_side)
        .where(match)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    rows = await db.execute(stmt)
    edges = []
    for address, followed_at, user in rows.all():
        edges.append(
            FollowEdgeUser(
                address=address,
                username=user.username if user else None,
                profile_hash=user.profile_hash if user else None,
                bio=user.bio if user else None,
                avatar_url=user.avatar_url if user else None,
                header_url=user.header_url if user else None,
                followed_at=followed_at,
            )
        )
    return edges


async def followers(db: AsyncSession, address: str) -> list[FollowEdgeUser]:
    """Addresses following `address`, most recent first, indexed or not."""
    return await _follow_edges(
        db, Follow.following_address == address, Follow.follower_address
    )


async def following(db: AsyncSession, address: str) -> list[FollowEdgeUser]:
    return await _follow_edges(
        db, Follow.follower_address == address, Follow.following_address
    )


async def search_users(db: AsyncSession, query: str, limit: int) -> list[User]:
    stmt = (
        select(User)
        .where(
            User.username.contains(query, autoescape=True)
            | User.address.contains(query, autoescape=True)
        )
        .order_by(User.username)
        .limit(limit)
    )
    return list((await db.scalars(stmt)).all())


# ─────────────────────────── Interactions ─────────────────────────────────

async def comments(db: AsyncSession, post_id: int) -> list[CommentResponse]:
    """Comment thread for one post, oldest first."""
    stmt = (
        select(Comment, User.username, User.avatar_url)
        .outerjoin(User, User.address == Comment.user_address)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.comment_id.asc())
    )
    rows = await db.execute(stmt)
    return [
        CommentResponse(
            comment_id=r.Comment.comment_id,
            post_id=r.Comment.post_id,
            user_address=r.Comment.user_address,
            username=r.username,
            avatar_url=r.avatar_url,
            comment_hash=r.Comment.comment_hash,
            comment_text=r.Comment.comment_text,
            transaction_hash=r.Comment.transaction_hash,
            created_at=r.Comment.created_at,
        )
        for r in rows.all()
    ]


async def tips_received(db: AsyncSession, address: str) -> list[TipResponse]:
    stmt = (
        select(Tip, User.username, User.avatar_url)
        .outerjoin(User, User.address == Tip.from_address)
        .where(Tip.to_address == address)
        .order_by(Tip.created_at.desc(), Tip.id.desc())
    )
    rows = await db.execute(stmt)
    return [
        TipResponse(
            id=r.Tip.id,
            from_address=r.Tip.from_address,
            to_address=r.Tip.to_address,
            username=r.username,
            avatar_url=r.avatar_url,
            amount=r.Tip.amount,
            transaction_hash=r.Tip.transaction_hash,
            created_at=r.Tip.created_at,
        )
        for r in rows.all()
    ]


# ─────────────────────────── Notifications ────────────────────────────────

async def notifications(
    db: AsyncSession,
    address: str,
    limit: int,
    offset: int,
    unread_only: bool = False,
) -> list[NotificationResponse]:
    stmt = (
        select(Notification, User.username, User.avatar_url)
        .outerjoin(User, User.address == Notification.from_address)
        .where(Notification.user_address == address)
    )
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = (
        stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = await db.execute(stmt)
    return [
        NotificationResponse(
            id=r.Notification.id,
            user_address=r.Notification.user_address,
            type=r.Notification.type,
            from_address=r.Notification.from_address,
            username=r.username,
            avatar_url=r.avatar_url,
            post_id=r.Notification.post_id,
            comment_id=r.Notification.comment_id,
            message=r.Notification.message,
            is_read=r.Notification.is_read,
            created_at=r.Notification.created_at,
        )
        for r in rows.all()
    ]


async def unread_count(db: AsyncSession, address: str) -> int:
    return await _count(
        db,
        select(func.count(Notification.id)).where(
            Notification.user_address == address,
            Notification.is_read.is_(False),
        ),
    )
