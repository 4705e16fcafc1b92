"""Family discount resolution for purchases."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from asmaktab.constants import (
    FAMILY_GROUPS_COLLECTION,
    GROUP_STATUS_APPROVED,
    USERS_COLLECTION,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class DiscountService:
    """Service class for resolving a purchaser's family discount."""

    @staticmethod
    def resolve_discount(db: Client, user_id: str | None) -> Any:
        """Return the discount percentage a user is entitled to right now.

        Users outside a group, or in a group that is still pending, get 0.
        The value is meant to be copied onto the record being created; it is
        not looked up again if the group's discount changes later.
        """
        if not user_id:
            return 0
        user_doc = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(user_id).get()
        )
        if not user_doc.exists:
            return 0
        group_id = (user_doc.to_dict() or {}).get("familyGroupId")
        if not group_id:
            return 0

        group_doc = cast(
            "DocumentSnapshot",
            db.collection(FAMILY_GROUPS_COLLECTION).document(group_id).get(),
        )
        if not group_doc.exists:
            logger.warning(f"User {user_id} points at missing group {group_id}")
            return 0
        group = group_doc.to_dict() or {}
        if group.get("status") != GROUP_STATUS_APPROVED:
            return 0
        return group.get("discount") or 0
