"""
Post endpoints:
  POST /posts/                 — index a ledger-confirmed post
  GET  /posts/timeline         — all posts, newest first
  GET  /posts/feed/{address}   — posts from authors `address` follows
  GET  /posts/user/{address}   — posts by one author
  GET  /posts/{post_id}        — a single post
"""
import logging

from fastapi import APIRouter, Depends
from opentelemetry import trace
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from social_index import queries
from social_index.database import get_db, now_ms
from social_index.deps import Page
from social_index.errors import Conflict, NotFound, failing_as
from social_index.models import Post
from social_index.schemas import MutationResponse, PostCreate, PostResponse
from social_index.telemetry import MUTATIONS_TOTAL, READ_LATENCY

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/", response_model=MutationResponse, response_model_exclude_none=True)
async def create_post(body: PostCreate, db: AsyncSession = Depends(get_db)):
    """
    Index a post the ledger has already confirmed.

    post_id comes from the ledger, so a duplicate is a Conflict and the
    existing row is left untouched. The author's profile is not required to
    exist yet; it may still be in flight.
    """
    with tracer.start_as_current_span("create_post") as span, failing_as(
        "Failed to create post"
    ):
        span.set_attribute("post.id", body.post_id)
        span.set_attribute("post.author", body.author_address)

        db.add(
            Post(
                post_id=body.post_id,
                author_address=body.author_address,
                content_hash=body.content_hash,
                content_text=body.content_text or "",
                media_urls=body.media_urls,
                transaction_hash=body.transaction_hash,
                created_at=now_ms(),
            )
        )
        try:
            await db.commit()
        except IntegrityError:
            MUTATIONS_TOTAL.labels(action="post", outcome="conflict").inc()
            logger.warning("Post %s already indexed", body.post_id)
            raise Conflict(f"Post {body.post_id} already exists")

        MUTATIONS_TOTAL.labels(action="post", outcome="created").inc()
        logger.info("Post created: %s by %s", body.post_id, body.author_address)
        return MutationResponse(post_id=body.post_id)


@router.get("/timeline", response_model=list[PostResponse])
async def get_timeline(page: Page = Depends(), db: AsyncSession = Depends(get_db)):
    with READ_LATENCY.labels(view="timeline").time():
        return await queries.timeline(db, page.limit, page.offset)


@router.get("/feed/{address}", response_model=list[PostResponse])
async def get_feed(
    address: str, page: Page = Depends(), db: AsyncSession = Depends(get_db)
):
    with tracer.start_as_current_span("get_feed") as span:
        span.set_attribute("user.address", address)
        with READ_LATENCY.labels(view="feed").time():
            return await queries.feed(db, address, page.limit, page.offset)


@router.get("/user/{address}", response_model=list[PostResponse])
async def get_user_posts(
    address: str, page: Page = Depends(), db: AsyncSession = Depends(get_db)
):
    with READ_LATENCY.labels(view="user_posts").time():
        return await queries.user_posts(db, address, page.limit, page.offset)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    post = await queries.get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")
    return post
