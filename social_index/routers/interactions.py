"""
Interaction endpoints (the write side mirrors ledger-confirmed actions):
  POST   /interactions/like                            — like a post (insert-or-replace)
  DELETE /interactions/like                            — unlike (unconditional delete)
  GET    /interactions/like/{post_id}/{user_address}   — like status
  POST   /interactions/comment                         — add a comment (insert-only)
  GET    /interactions/comments/{post_id}              — comment thread, oldest first
  POST   /interactions/follow                          — follow (insert-or-replace)
  DELETE /interactions/follow                          — unfollow (unconditional delete)
  POST   /interactions/tip                             — record a tip (append-only)
  GET    /interactions/tips/{address}                  — tips received
  POST   /interactions/share                           — record a share link (append-only)

Each handler commits its primary row before fan-out runs; notification
failures are absorbed by Fanout and never change the response.
"""
import logging

from fastapi import APIRouter, Depends
from opentelemetry import trace
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from social_index import queries
from social_index.database import Base, get_db, now_ms
from social_index.deps import get_fanout
from social_index.errors import Conflict, failing_as
from social_index.fanout import Fanout
from social_index.models import Comment, Follow, Like, Share, Tip
from social_index.schemas import (
    CommentCreate,
    CommentResponse,
    FollowRequest,
    LikeRequest,
    MutationResponse,
    ShareCreate,
    TipCreate,
    TipResponse,
    UnfollowRequest,
    UnlikeRequest,
)
from social_index.telemetry import MUTATIONS_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


async def _upsert(
    db: AsyncSession, model: type[Base], key: dict, values: dict
) -> bool:
    """
    Insert-or-replace one row identified by `key`.
    Returns True only when a new row was inserted.
    """
    existing = await db.scalar(select(model).filter_by(**key))
    if existing is None:
        db.add(model(**key, **values))
        try:
            await db.commit()
            return True
        except IntegrityError:
            # A concurrent request inserted the same key first.
            await db.rollback()
            existing = await db.scalar(select(model).filter_by(**key))
            if existing is None:
                raise

    for name, value in values.items():
        setattr(existing, name, value)
    await db.commit()
    return False


# ─────────────────────────── Likes ────────────────────────────────────────

@router.post("/like", response_model=MutationResponse, response_model_exclude_none=True)
async def like_post(
    body: LikeRequest,
    db: AsyncSession = Depends(get_db),
    fanout: Fanout = Depends(get_fanout),
):
    """Like a post. Repeat calls replace the row and do not notify again."""
    with tracer.start_as_current_span("like_post") as span, failing_as(
        "Failed to like post"
    ):
        span.set_attribute("post.id", body.post_id)
        created = await _upsert(
            db,
            Like,
            {"post_id": body.post_id, "user_address": body.user_address},
            {"transaction_hash": body.transaction_hash, "created_at": now_ms()},
        )
        MUTATIONS_TOTAL.labels(
            action="like", outcome="created" if created else "replaced"
        ).inc()
        logger.info("Post %s liked by %s", body.post_id, body.user_address)

        if created:
            await fanout.post_liked(body.post_id, body.user_address)
        return MutationResponse()


@router.delete("/like", response_model=MutationResponse, response_model_exclude_none=True)
async def unlike_post(body: UnlikeRequest, db: AsyncSession = Depends(get_db)):
    with failing_as("Failed to unlike post"):
        await db.execute(
            delete(Like).where(
                Like.post_id == body.post_id, Like.user_address == body.user_address
            )
        )
        await db.commit()
    MUTATIONS_TOTAL.labels(action="like", outcome="deleted").inc()
    logger.info("Post %s unliked by %s", body.post_id, body.user_address)
    return MutationResponse()


@router.get("/like/{post_id}/{user_address}")
async def like_status(post_id: int, user_address: str, db: AsyncSession = Depends(get_db)):
    row = await db.scalar(
        select(Like.id).where(Like.post_id == post_id, Like.user_address == user_address)
    )
    return {"hasLiked": row is not None}


# ─────────────────────────── Comments ─────────────────────────────────────

@router.post("/comment", response_model=MutationResponse, response_model_exclude_none=True)
async def create_comment(
    body: CommentCreate,
    db: AsyncSession = Depends(get_db),
    fanout: Fanout = Depends(get_fanout),
):
    with tracer.start_as_current_span("create_comment") as span, failing_as(
        "Failed to create comment"
    ):
        span.set_attribute("comment.id", body.comment_id)
        span.set_attribute("post.id", body.post_id)
        db.add(
            Comment(
                comment_id=body.comment_id,
                post_id=body.post_id,
                user_address=body.user_address,
                comment_hash=body.comment_hash,
                comment_text=body.comment_text or "",
                transaction_hash=body.transaction_hash,
                created_at=now_ms(),
            )
        )
        try:
            await db.commit()
        except IntegrityError:
            MUTATIONS_TOTAL.labels(action="comment", outcome="conflict").inc()
            raise Conflict(f"Comment {body.comment_id} already exists")

        MUTATIONS_TOTAL.labels(action="comment", outcome="created").inc()
        logger.info(
            "Comment %s added to post %s by %s",
            body.comment_id, body.post_id, body.user_address,
        )
        await fanout.post_commented(
            body.post_id, body.comment_id, body.user_address, body.comment_text
        )
        return MutationResponse(comment_id=body.comment_id)


@router.get("/comments/{post_id}", response_model=list[CommentResponse])
async def list_comments(post_id: int, db: AsyncSession = Depends(get_db)):
    return await queries.comments(db, post_id)


# ─────────────────────────── Follows ──────────────────────────────────────

@router.post("/follow", response_model=MutationResponse, response_model_exclude_none=True)
async def follow_user(
    body: FollowRequest,
    db: AsyncSession = Depends(get_db),
    fanout: Fanout = Depends(get_fanout),
):
    """
    Follow another address. Self-follow is not rejected here.

    Unlike likes, every Follow call notifies, including a repeat follow or a
    re-follow after unfollowing.
    """
    with tracer.start_as_current_span("follow_user"), failing_as("Failed to follow user"):
        created = await _upsert(
            db,
            Follow,
            {
                "follower_address": body.follower_address,
                "following_address": body.following_address,
            },
            {"transaction_hash": body.transaction_hash, "created_at": now_ms()},
        )
        MUTATIONS_TOTAL.labels(
            action="follow", outcome="created" if created else "replaced"
        ).inc()
        logger.info("%s followed %s", body.follower_address, body.following_address)

        await fanout.user_followed(body.following_address, body.follower_address)
        return MutationResponse()


@router.delete("/follow", response_model=MutationResponse, response_model_exclude_none=True)
async def unfollow_user(body: UnfollowRequest, db: AsyncSession = Depends(get_db)):
    with failing_as("Failed to unfollow user"):
        await db.execute(
            delete(Follow).where(
                Follow.follower_address == body.follower_address,
                Follow.following_address == body.following_address,
            )
        )
        await db.commit()
    MUTATIONS_TOTAL.labels(action="follow", outcome="deleted").inc()
    logger.info("%s unfollowed %s", body.follower_address, body.following_address)
    return MutationResponse()


# ─────────────────────────── Tips ─────────────────────────────────────────

@router.post("/tip", response_model=MutationResponse, response_model_exclude_none=True)
async def record_tip(
    body: TipCreate,
    db: AsyncSession = Depends(get_db),
    fanout: Fanout = Depends(get_fanout),
):
    """Append a tip. The amount is stored exactly as received."""
    with tracer.start_as_current_span("record_tip"), failing_as("Failed to record tip"):
        db.add(
            Tip(
                from_address=body.from_address,
                to_address=body.to_address,
                amount=body.amount,
                transaction_hash=body.transaction_hash,
                created_at=now_ms(),
            )
        )
        await db.commit()
        MUTATIONS_TOTAL.labels(action="tip", outcome="created").inc()
        logger.info(
            "Tip sent from %s to %s: %s", body.from_address, body.to_address, body.amount
        )

        await fanout.tip_received(body.to_address, body.from_address, body.amount)
        return MutationResponse()


@router.get("/tips/{address}", response_model=list[TipResponse])
async def list_tips(address: str, db: AsyncSession = Depends(get_db)):
    return await queries.tips_received(db, address)


# ─────────────────────────── Shares ───────────────────────────────────────

@router.post("/share", response_model=MutationResponse, response_model_exclude_none=True)
async def record_share(
    body: ShareCreate,
    db: AsyncSession = Depends(get_db),
    fanout: Fanout = Depends(get_fanout),
):
    """
    Record the original → new post link. The new post itself arrives through
    POST /posts/; until it does, the link points at a post that isn't indexed.
    """
    with tracer.start_as_current_span("record_share"), failing_as("Failed to record share"):
        db.add(
            Share(
                original_post_id=body.original_post_id,
                new_post_id=body.new_post_id,
                user_address=body.user_address,
                transaction_hash=body.transaction_hash,
                created_at=now_ms(),
            )
        )
        await db.commit()
        MUTATIONS_TOTAL.labels(action="share", outcome="created").inc()
        logger.info(
            "Post %s shared by %s as %s",
            body.original_post_id, body.user_address, body.new_post_id,
        )

        await fanout.post_shared(body.original_post_id, body.user_address)
        return MutationResponse(new_post_id=body.new_post_id)
