"""
User profile endpoints:
  POST /users/profile                       — create or update a profile (upsert by address)
  GET  /users/profile/{address}             — profile + live statistics
  GET  /users/trending                      — top users by follower count
  GET  /users/search/{query}                — username / address substring search
  GET  /users/{address}/followers           — list followers
  GET  /users/{address}/following           — list followed users
  GET  /users/{follower}/follows/{following} — follow status
"""
import logging

from fastapi import APIRouter, Depends
from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from social_index import queries
from social_index.config import Settings
from social_index.database import get_db, now_ms
from social_index.deps import get_settings
from social_index.errors import Conflict, NotFound, failing_as
from social_index.models import Follow, User
from social_index.schemas import (
    FollowEdgeUser,
    MutationResponse,
    ProfileResponse,
    ProfileUpsert,
    TrendingUser,
    UserResponse,
)
from social_index.telemetry import MUTATIONS_TOTAL, READ_LATENCY

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


def _apply_profile(user: User, body: ProfileUpsert, ts: int) -> None:
    user.username = body.username
    user.profile_hash = body.profile_hash or ""
    user.bio = body.bio or ""
    user.avatar_url = body.avatar_url or ""
    user.header_url = body.header_url or ""
    user.updated_at = ts


def _username_taken(body: ProfileUpsert) -> Conflict:
    MUTATIONS_TOTAL.labels(action="profile", outcome="conflict").inc()
    return Conflict(f"Username '{body.username}' already taken")


@router.post("/profile", response_model=MutationResponse, response_model_exclude_none=True)
async def save_profile(body: ProfileUpsert, db: AsyncSession = Depends(get_db)):
    """
    Create or update the profile for `address`.

    The address is immutable; every other field is replaced. Callers get the
    same response for create and update. Two first-time saves racing on one
    address both end up as updates of a single row; only a clash on the
    username is a Conflict.
    """
    with tracer.start_as_current_span("save_profile") as span, failing_as(
        "Failed to save profile"
    ):
        span.set_attribute("user.address", body.address)
        ts = now_ms()
        user = await db.get(User, body.address)
        created = user is None
        if created:
            user = User(address=body.address, created_at=ts)
            _apply_profile(user, body, ts)
            db.add(user)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                # Either the address was inserted concurrently or the
                # username belongs to someone else.
                user = await db.get(User, body.address, populate_existing=True)
                if user is None:
                    raise _username_taken(body)
                created = False

        if not created:
            _apply_profile(user, body, ts)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise _username_taken(body)

        if created:
            logger.info("New user profile created: %s", body.address)
        else:
            logger.info("User profile updated: %s", body.address)
        MUTATIONS_TOTAL.labels(
            action="profile", outcome="created" if created else "replaced"
        ).inc()
        return MutationResponse(message="Profile saved successfully")


@router.get("/profile/{address}", response_model=ProfileResponse)
async def get_profile(address: str, db: AsyncSession = Depends(get_db)):
    with READ_LATENCY.labels(view="profile").time():
        user = await db.get(User, address)
        if not user:
            raise NotFound("User not found")
        stats = await queries.profile_stats(db, address)
    return ProfileResponse(
        **UserResponse.model_validate(user).model_dump(), stats=stats
    )


@router.get("/trending", response_model=list[TrendingUser])
async def trending_users(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    with READ_LATENCY.labels(view="trending").time():
        return await queries.trending(db, settings.trending_limit)


@router.get("/search/{query}", response_model=list[UserResponse])
async def search_users(
    query: str,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await queries.search_users(db, query, settings.search_limit)


@router.get("/{address}/followers", response_model=list[FollowEdgeUser])
async def list_followers(address: str, db: AsyncSession = Depends(get_db)):
    return await queries.followers(db, address)


@router.get("/{address}/following", response_model=list[FollowEdgeUser])
async def list_following(address: str, db: AsyncSession = Depends(get_db)):
    return await queries.following(db, address)


@router.get("/{follower}/follows/{following}")
async def follow_status(follower: str, following: str, db: AsyncSession = Depends(get_db)):
    row = await db.scalar(
        select(Follow.id).where(
            Follow.follower_address == follower,
            Follow.following_address == following,
        )
    )
    return {"isFollowing": row is not None}
