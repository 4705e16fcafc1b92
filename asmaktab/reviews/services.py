"""Service layer for daily reviews on purchases."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from google.api_core.exceptions import AlreadyExists, GoogleAPICallError

from asmaktab.constants import PURCHASES_COLLECTION, REVIEW_KINDS
from asmaktab.errors import ConflictError, NotFoundError, StoreError, ValidationError
from asmaktab.utils import validate_document_id

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class PurchaseNotFound(NotFoundError):
    """Raised when a purchase record does not exist."""

    def __init__(self, message="Purchase not found"):
        """Initialize the error."""
        super().__init__(message)


class AlreadyReviewedToday(ConflictError):
    """Raised when a review of the same kind was already submitted today."""

    def __init__(
        self,
        message="You have already submitted a review today. Only one review is allowed per day.",
    ):
        """Initialize the error."""
        super().__init__(message)


def local_time(
    now: datetime.datetime | None = None, tz: datetime.tzinfo | None = None
) -> datetime.datetime:
    """Return ``now`` (default: the current time) as an aware local datetime.

    ``tz`` defaults to the server's local timezone. Naive values are taken to
    be in that zone already.
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz) if tz else now.astimezone()
    return now.astimezone(tz) if tz else now.astimezone()


def day_window(now: datetime.datetime) -> tuple[datetime.datetime, datetime.datetime]:
    """Return the first and last millisecond of ``now``'s calendar day."""
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(hour=23, minute=59, second=59, microsecond=999000)
    return start, end


class ReviewService:
    """Service class for student and tutor reviews on a purchase."""

    @staticmethod
    def _review_collection(db: Client, purchase_id: str, kind: str) -> Any:
        if kind not in REVIEW_KINDS:
            raise ValidationError(f"Unknown review type {kind!r}")
        purchase_id = validate_document_id(purchase_id, "purchase ID")
        purchase_ref = db.collection(PURCHASES_COLLECTION).document(purchase_id)
        if not purchase_ref.get().exists:
            raise PurchaseNotFound()
        return purchase_ref.collection(kind)

    @staticmethod
    def submit_review(  # noqa: PLR0913
        db: Client,
        purchase_id: str,
        kind: str,
        answers: Any,
        comments: Any,
        author_id: str | None = None,
        now: datetime.datetime | None = None,
        tz: datetime.tzinfo | None = None,
    ) -> dict[str, Any]:
        """Store a review, allowing one per purchase, kind and local day.

        The review is keyed by its local date, so the create itself rejects a
        second review for the same day even when two arrive at once.
        """
        reviews_ref = ReviewService._review_collection(db, purchase_id, kind)
        created_at = local_time(now, tz)
        start, _ = day_window(created_at)
        day = start.date().isoformat()

        review = {
            "answers": answers,
            "comments": comments,
            "createdAt": created_at,
            "day": day,
            "authorId": author_id,
        }
        try:
            reviews_ref.document(day).create(review)
        except AlreadyExists as e:
            raise AlreadyReviewedToday() from e
        except GoogleAPICallError as e:
            logger.error(f"Error storing {kind} for purchase {purchase_id}: {e}")
            raise StoreError() from e

        logger.info(f"Stored {kind} for purchase {purchase_id} on {day}")
        return review

    @staticmethod
    def has_review_today(
        db: Client,
        purchase_id: str,
        kind: str,
        now: datetime.datetime | None = None,
        tz: datetime.tzinfo | None = None,
    ) -> bool:
        """Check whether a review of this kind falls inside today's window."""
        reviews_ref = ReviewService._review_collection(db, purchase_id, kind)
        start, end = day_window(local_time(now, tz))
        doc = cast("DocumentSnapshot", reviews_ref.document(start.date().isoformat()).get())
        if not doc.exists:
            return False
        created_at = (doc.to_dict() or {}).get("createdAt")
        if not isinstance(created_at, datetime.datetime):
            return True
        return start <= created_at.astimezone(start.tzinfo) <= end

    @staticmethod
    def list_reviews(db: Client, purchase_id: str, kind: str) -> list[dict[str, Any]]:
        """Fetch all reviews of one kind for a purchase, oldest first."""
        reviews_ref = ReviewService._review_collection(db, purchase_id, kind)
        reviews = [doc.to_dict() for doc in reviews_ref.stream() if doc.exists]
        reviews.sort(key=lambda r: r.get("day") or "")
        return reviews
