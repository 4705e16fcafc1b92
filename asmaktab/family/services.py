"""Service layer for family (sibling) groups.

A group is stored once, in ``family_groups/{groupId}``. Its members live in
``family_members/{userId}`` and its pending join requests in
``family_join_requests/{groupId}_{userId}``; each user document only keeps
the ``familyGroupId`` back-reference. Every multi-document change is written
as one batch, and uniqueness (group codes, one group per user, one request
per user and group) is enforced by create-if-absent writes rather than by
reading first.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists, GoogleAPICallError

from asmaktab.codes import generate_group_code, unique_code
from asmaktab.constants import (
    DEFAULT_CODE_MAX_ATTEMPTS,
    FAMILY_GROUPS_COLLECTION,
    FAMILY_MEMBERS_COLLECTION,
    FAMILY_REQUESTS_COLLECTION,
    GROUP_STATUS_APPROVED,
    GROUP_STATUS_NONE,
    GROUP_STATUS_PENDING,
    MAX_DISCOUNT,
    MEMBER_ROLE_MEMBER,
    MEMBER_ROLE_OWNER,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_REJECTED,
    USERS_COLLECTION,
)
from asmaktab.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from asmaktab.user.services import UserService
from asmaktab.utils import (
    commit_batch,
    exists_option,
    snapshot_to_dict,
    utcnow,
    validate_document_id,
)

from .models import FamilyGroup, JoinRequest, MemberSnapshot

if TYPE_CHECKING:
    import datetime

    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


class GroupNotFound(NotFoundError):
    """Raised when no family group has the given ID."""

    def __init__(self, message="Group not found"):
        """Initialize the error."""
        super().__init__(message)


class RequestNotFound(NotFoundError):
    """Raised when a group holds no pending request for a user."""

    def __init__(self, message="Request not found"):
        """Initialize the error."""
        super().__init__(message)


class AlreadyInGroup(ConflictError):
    """Raised when a user who already belongs to a group tries to enter another."""

    def __init__(self, message="You are already a member of a family group"):
        """Initialize the error."""
        super().__init__(message)


class GroupNotApproved(ConflictError):
    """Raised when joining a group that an admin has not approved yet."""

    def __init__(self, message="This group has not been approved by an admin yet"):
        """Initialize the error."""
        super().__init__(message)


class DuplicateRequest(ConflictError):
    """Raised when a user already has a pending request for the group."""

    def __init__(self, message="You have already sent a request to this group"):
        """Initialize the error."""
        super().__init__(message)


class FamilyGroupService:
    """Service class for the family group lifecycle."""

    @staticmethod
    def _group_ref(db: Client, group_id: str) -> DocumentReference:
        return db.collection(FAMILY_GROUPS_COLLECTION).document(group_id)

    @staticmethod
    def _membership_ref(db: Client, user_id: str) -> DocumentReference:
        return db.collection(FAMILY_MEMBERS_COLLECTION).document(user_id)

    @staticmethod
    def _request_ref(db: Client, group_id: str, user_id: str) -> DocumentReference:
        return db.collection(FAMILY_REQUESTS_COLLECTION).document(
            f"{group_id}_{user_id}"
        )

    @staticmethod
    def _require_group(db: Client, group_id: str) -> dict[str, Any]:
        group_id = validate_document_id(group_id, "group ID")
        group_doc = cast(
            "DocumentSnapshot", FamilyGroupService._group_ref(db, group_id).get()
        )
        group = snapshot_to_dict(group_doc)
        if group is None:
            raise GroupNotFound()
        return group

    @staticmethod
    def _read_user(db: Client, user_id: str) -> dict[str, Any]:
        user_id = validate_document_id(user_id, "user ID")
        return cast("dict[str, Any]", UserService.require_user(db, user_id))

    @staticmethod
    def _is_member_anywhere(db: Client, user: dict[str, Any]) -> bool:
        if user.get("familyGroupId"):
            return True
        return bool(FamilyGroupService._membership_ref(db, user["id"]).get().exists)

    @staticmethod
    def _check_can_manage(
        group: dict[str, Any], actor_id: str | None, actor_is_admin: bool
    ) -> None:
        if actor_is_admin or (actor_id and actor_id == group.get("createdBy")):
            return
        raise AuthorizationError("Only the group owner or an admin can do this")

    @staticmethod
    def member_snapshot(
        user: dict[str, Any], group_id: str, role: str, joined_at: datetime.datetime
    ) -> MemberSnapshot:
        """Copy a user's identity fields into a group member entry."""
        return {
            "groupId": group_id,
            "userId": user["id"],
            "name": user.get("name"),
            "email": user.get("email"),
            "fatherName": user.get("fatherName"),
            "joinedAt": joined_at,
            "role": role,
        }

    @staticmethod
    def create_group(
        db: Client, user_id: str, max_attempts: int = DEFAULT_CODE_MAX_ATTEMPTS
    ) -> str:
        """Create a pending group owned by the user and return its ID."""
        user = FamilyGroupService._read_user(db, user_id)
        if FamilyGroupService._is_member_anywhere(db, user):
            raise AlreadyInGroup()

        groups_ref = db.collection(FAMILY_GROUPS_COLLECTION)
        for attempt in range(1, max_attempts + 1):
            group_id = unique_code(
                generate_group_code,
                lambda code: groups_ref.document(code).get().exists,
                max_attempts,
            )
            now = utcnow()

            batch = db.batch()
            batch.create(
                groups_ref.document(group_id),
                {
                    "groupId": group_id,
                    "status": GROUP_STATUS_PENDING,
                    "discount": 0,
                    "createdBy": user["id"],
                    "createdAt": now,
                },
            )
            batch.create(
                FamilyGroupService._membership_ref(db, user["id"]),
                FamilyGroupService.member_snapshot(
                    user, group_id, MEMBER_ROLE_OWNER, now
                ),
            )
            batch.update(
                db.collection(USERS_COLLECTION).document(user["id"]),
                {"familyGroupId": group_id, "updatedAt": now},
            )
            try:
                commit_batch(batch)
            except AlreadyExists as e:
                if FamilyGroupService._membership_ref(db, user["id"]).get().exists:
                    raise AlreadyInGroup() from e
                logger.info(f"Group code {group_id} taken (attempt {attempt}), retrying")
                continue

            logger.info(f"User {user['id']} created family group {group_id}")
            return group_id

        raise StoreError("Could not allocate a unique group ID.")

    @staticmethod
    def join_group(db: Client, group_id: str, user_id: str) -> JoinRequest:
        """Queue a request from the user to join an approved group."""
        user = FamilyGroupService._read_user(db, user_id)
        if FamilyGroupService._is_member_anywhere(db, user):
            raise AlreadyInGroup()

        group = FamilyGroupService._require_group(db, group_id)
        if group.get("status") != GROUP_STATUS_APPROVED:
            raise GroupNotApproved()

        request: JoinRequest = {
            "groupId": group["id"],
            "userId": user["id"],
            "name": user.get("name"),
            "email": user.get("email"),
            "requestedAt": utcnow(),
            "status": REQUEST_STATUS_PENDING,
        }
        request_ref = FamilyGroupService._request_ref(db, group["id"], user["id"])
        try:
            request_ref.create(request)
        except AlreadyExists as e:
            raise DuplicateRequest() from e
        except GoogleAPICallError as e:
            logger.error(f"Error storing join request for {group['id']}: {e}")
            raise StoreError() from e

        logger.info(f"User {user['id']} requested to join {group['id']}")
        return request

    @staticmethod
    def approve_request(
        db: Client,
        group_id: str,
        user_id: str,
        actor_id: str | None = None,
        actor_is_admin: bool = False,
    ) -> MemberSnapshot:
        """Turn a pending join request into a group membership.

        The member entry, the user's back-reference and the removal of the
        request are committed together. The member create fails if the user
        has joined any group since the request was read, and the request
        delete fails if another approval or rejection consumed it first.
        """
        group = FamilyGroupService._require_group(db, group_id)
        FamilyGroupService._check_can_manage(group, actor_id, actor_is_admin)

        user_id = validate_document_id(user_id, "user ID")
        request_ref = FamilyGroupService._request_ref(db, group["id"], user_id)
        if not request_ref.get().exists:
            raise RequestNotFound()

        user = FamilyGroupService._read_user(db, user_id)
        if FamilyGroupService._is_member_anywhere(db, user):
            raise AlreadyInGroup("This user is already a member of a family group")

        now = utcnow()
        member = FamilyGroupService.member_snapshot(
            user, group["id"], MEMBER_ROLE_MEMBER, now
        )

        batch = db.batch()
        batch.create(FamilyGroupService._membership_ref(db, user_id), member)
        batch.update(
            db.collection(USERS_COLLECTION).document(user_id),
            {"familyGroupId": group["id"], "updatedAt": now},
        )
        batch.delete(request_ref, option=exists_option(db))
        try:
            commit_batch(batch)
        except AlreadyExists as e:
            raise AlreadyInGroup(
                "This user is already a member of a family group"
            ) from e

        logger.info(f"User {user_id} added to family group {group['id']}")
        return member

    @staticmethod
    def reject_request(
        db: Client,
        group_id: str,
        user_id: str,
        actor_id: str | None = None,
        actor_is_admin: bool = False,
    ) -> JoinRequest:
        """Drop a pending join request without adding the user."""
        group = FamilyGroupService._require_group(db, group_id)
        FamilyGroupService._check_can_manage(group, actor_id, actor_is_admin)

        user_id = validate_document_id(user_id, "user ID")
        request_ref = FamilyGroupService._request_ref(db, group["id"], user_id)
        request_doc = cast("DocumentSnapshot", request_ref.get())
        if not request_doc.exists:
            raise RequestNotFound()

        batch = db.batch()
        batch.delete(request_ref, option=exists_option(db))
        commit_batch(batch)

        logger.info(f"Join request from {user_id} to {group['id']} rejected")
        request = cast("JoinRequest", request_doc.to_dict() or {})
        request["status"] = REQUEST_STATUS_REJECTED
        return request

    @staticmethod
    def approve_group(
        db: Client,
        group_id: str,
        discount: Any,
        actor_id: str | None = None,
        actor_is_admin: bool = False,
    ) -> FamilyGroup:
        """Approve a pending group and set its discount percentage (admin only).

        Calling this on an approved group updates the discount.
        """
        if not actor_is_admin:
            raise AuthorizationError("Only an admin can approve family groups")
        try:
            discount = float(discount)
        except (TypeError, ValueError) as e:
            raise ValidationError("Discount must be a number") from e
        if not 0 <= discount <= MAX_DISCOUNT:
            raise ValidationError(f"Discount must be between 0 and {MAX_DISCOUNT}")
        if discount.is_integer():
            discount = int(discount)

        group = FamilyGroupService._require_group(db, group_id)
        update = {
            "status": GROUP_STATUS_APPROVED,
            "discount": discount,
            "approvedAt": utcnow(),
            "approvedBy": actor_id,
        }
        try:
            FamilyGroupService._group_ref(db, group["id"]).update(update)
        except GoogleAPICallError as e:
            logger.error(f"Error approving family group {group['id']}: {e}")
            raise StoreError() from e

        logger.info(f"Family group {group['id']} approved with {discount}% discount")
        return cast("FamilyGroup", {**group, **update})

    @staticmethod
    def get_group(db: Client, group_id: str) -> FamilyGroup:
        """Fetch a group with its members and pending requests."""
        group = FamilyGroupService._require_group(db, group_id)

        members = [
            doc.to_dict()
            for doc in db.collection(FAMILY_MEMBERS_COLLECTION)
            .where(filter=firestore.FieldFilter("groupId", "==", group["id"]))
            .stream()
        ]
        members.sort(key=lambda m: str(m.get("joinedAt") or ""))

        requests = [
            doc.to_dict()
            for doc in db.collection(FAMILY_REQUESTS_COLLECTION)
            .where(filter=firestore.FieldFilter("groupId", "==", group["id"]))
            .stream()
        ]
        requests.sort(key=lambda r: str(r.get("requestedAt") or ""))

        group["members"] = members
        group["requests"] = requests
        return cast("FamilyGroup", group)

    @staticmethod
    def get_user_group(db: Client, user_id: str) -> FamilyGroup | None:
        """Fetch the group a user belongs to, or None."""
        user = FamilyGroupService._read_user(db, user_id)
        group_id = user.get("familyGroupId")
        if not group_id:
            return None
        try:
            return FamilyGroupService.get_group(db, group_id)
        except GroupNotFound:
            logger.warning(f"User {user_id} points at missing group {group_id}")
            return None

    @staticmethod
    def get_user_state(db: Client, user_id: str) -> str:
        """Return ``none``, ``pending`` or ``approved`` for a user."""
        group = FamilyGroupService.get_user_group(db, user_id)
        if group is None:
            return GROUP_STATUS_NONE
        return group.get("status", GROUP_STATUS_PENDING)
