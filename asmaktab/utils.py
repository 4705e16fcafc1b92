"""Utility functions for the application."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any

from google.api_core.exceptions import (
    AlreadyExists,
    FailedPrecondition,
    GoogleAPICallError,
    NotFound,
)

from .errors import ConflictError, StoreError, ValidationError

if TYPE_CHECKING:
    from flask_wtf import FlaskForm
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.batch import WriteBatch

logger = logging.getLogger(__name__)

MAX_DOCUMENT_ID_BYTES = 1500


def utcnow() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def snapshot_to_dict(snapshot: DocumentSnapshot | None) -> dict[str, Any] | None:
    """Return a document's data with its id, or None if it does not exist."""
    if snapshot is None or not snapshot.exists:
        return None
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data


def validate_document_id(value: Any, label: str = "ID") -> str:
    """Check that a value can be used as a Firestore document id."""
    if not isinstance(value, str):
        value = "" if value is None else str(value)
    value = value.strip()
    if (
        not value
        or "/" in value
        or value in (".", "..")
        or (value.startswith("__") and value.endswith("__"))
        or len(value.encode("utf-8")) > MAX_DOCUMENT_ID_BYTES
    ):
        raise ValidationError(f"Invalid {label}")
    return value


def validate_form(form: FlaskForm) -> None:
    """Raise a ValidationError carrying the first error of an invalid form."""
    if form.validate():
        return
    for field_name, errors in form.errors.items():
        if errors:
            label = getattr(form, field_name).label.text
            raise ValidationError(f"{label}: {errors[0]}")
    raise ValidationError()


def commit_batch(batch: WriteBatch) -> None:
    """Commit a write batch atomically.

    AlreadyExists from create-if-absent writes is re-raised untouched so
    callers can retry or map it. A failed precondition means another writer
    got there first and becomes a ConflictError; any other store failure
    becomes a StoreError.
    """
    try:
        batch.commit()
    except AlreadyExists:
        raise
    except (FailedPrecondition, NotFound) as e:
        logger.warning(f"Batch precondition failed: {e}")
        raise ConflictError(
            "The record changed while it was being updated. Please try again."
        ) from e
    except GoogleAPICallError as e:
        logger.error(f"Batch commit failed: {e}")
        raise StoreError() from e


def exists_option(db: Any) -> Any:
    """Build a write option that fails if the document no longer exists."""
    return db.write_option(exists=True)
