"""
Notification fan-out.

Runs inline in the Like / Comment / Follow / Tip / Share handlers, after the
primary write has been committed. Each notification is its own commit in its
own session, so a failure here can never undo or fail the triggering
mutation.

Delivery is at-most-once:
  • no self-notification (actor == recipient is skipped)
  • store errors are logged and counted, never retried, never raised
  • a missing post (author lookup miss) silently skips the notification
"""
import enum
import logging
from typing import Optional

from opentelemetry import trace
from sqlalchemy import select

from social_index.config import Settings
from social_index.database import Store
from social_index.models import Notification, Post
from social_index.telemetry import NOTIFICATIONS_TOTAL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ELLIPSIS = "..."


class NotificationType(str, enum.Enum):
    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"
    TIP = "tip"
    SHARE = "share"


def comment_preview(text: Optional[str], limit: int = 30) -> str:
    """First `limit` characters of a comment, with an ellipsis if cut."""
    text = text or ""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


class Fanout:
    def __init__(self, store: Store, settings: Settings) -> None:
        self._store = store
        self._settings = settings

    # ── Per-action entry points ───────────────────────────────────────────

    async def post_liked(self, post_id: int, actor: str) -> Optional[int]:
        author = await self._post_author(post_id, NotificationType.LIKE)
        if author is None:
            return None
        return await self.deliver(
            author, NotificationType.LIKE, actor, "liked your post", post_id=post_id
        )

    async def post_commented(
        self, post_id: int, comment_id: int, actor: str, text: Optional[str]
    ) -> Optional[int]:
        author = await self._post_author(post_id, NotificationType.COMMENT)
        if author is None:
            return None
        preview = comment_preview(text, self._settings.comment_preview_length)
        return await self.deliver(
            author,
            NotificationType.COMMENT,
            actor,
            f'commented: "{preview}"',
            post_id=post_id,
            comment_id=comment_id,
        )

    async def user_followed(self, following: str, actor: str) -> Optional[int]:
        return await self.deliver(
            following, NotificationType.FOLLOW, actor, "started following you"
        )

    async def tip_received(self, to_address: str, actor: str, amount: str) -> Optional[int]:
        return await self.deliver(
            to_address,
            NotificationType.TIP,
            actor,
            f"sent you {amount} {self._settings.tip_currency}",
        )

    async def post_shared(self, original_post_id: int, actor: str) -> Optional[int]:
        author = await self._post_author(original_post_id, NotificationType.SHARE)
        if author is None:
            return None
        return await self.deliver(
            author,
            NotificationType.SHARE,
            actor,
            "shared your post",
            post_id=original_post_id,
        )

    # ── Delivery ──────────────────────────────────────────────────────────

    async def deliver(
        self,
        recipient: str,
        kind: NotificationType,
        actor: str,
        message: str,
        post_id: Optional[int] = None,
        comment_id: Optional[int] = None,
    ) -> Optional[int]:
        """
        Append one notification to `recipient`'s inbox.
        Returns the new notification id, or None if skipped or lost.
        """
        if recipient == actor:
            NOTIFICATIONS_TOTAL.labels(type=kind.value, outcome="skipped").inc()
            return None

        with tracer.start_as_current_span("fanout_notification") as span:
            span.set_attribute("notification.type", kind.value)
            try:
                async with self._store.session() as db:
                    note = Notification(
                        user_address=recipient,
                        type=kind.value,
                        from_address=actor,
                        post_id=post_id,
                        comment_id=comment_id,
                        message=message,
                        is_read=False,
                    )
                    db.add(note)
                    await db.flush()
                    note_id = note.id
            except Exception as exc:
                NOTIFICATIONS_TOTAL.labels(type=kind.value, outcome="failed").inc()
                logger.error(
                    "Notification %s for %s from %s lost: %s",
                    kind.value, recipient, actor, exc,
                )
                return None

        NOTIFICATIONS_TOTAL.labels(type=kind.value, outcome="delivered").inc()
        logger.info("Notification created for %s: %s", recipient, kind.value)
        return note_id

    async def _post_author(self, post_id: int, kind: NotificationType) -> Optional[str]:
        try:
            async with self._store.session() as db:
                author = await db.scalar(
                    select(Post.author_address).where(Post.post_id == post_id)
                )
        except Exception as exc:
            NOTIFICATIONS_TOTAL.labels(type=kind.value, outcome="failed").inc()
            logger.error("Author lookup for post %s failed: %s", post_id, exc)
            return None
        if author is None:
            NOTIFICATIONS_TOTAL.labels(type=kind.value, outcome="skipped").inc()
            logger.info("Post %s not indexed yet, skipping %s notification", post_id, kind.value)
        return author
