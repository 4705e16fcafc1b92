"""Service layer for referral codes and the referral ledger."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from asmaktab.constants import REFERRAL_CODES_COLLECTION, USERS_COLLECTION
from asmaktab.errors import ConflictError, NotFoundError, ValidationError
from asmaktab.utils import snapshot_to_dict, validate_document_id

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class SelfReferral(ConflictError):
    """Raised when a user tries to redeem their own referral code."""

    def __init__(self, message="You cannot use your own referral code"):
        """Initialize the error."""
        super().__init__(message)


class InvalidReferralCode(NotFoundError):
    """Raised when no user owns a referral code."""

    def __init__(self, message="Invalid referral code"):
        """Initialize the error."""
        super().__init__(message)


class ReferralService:
    """Service class for referral-related operations."""

    @staticmethod
    def find_referrer(db: Client, code: str | None) -> str | None:
        """Return the id of the user owning a referral code, if any."""
        if not code:
            return None
        try:
            code = validate_document_id(code, "referral code")
        except ValidationError:
            return None
        code_doc = cast(
            "DocumentSnapshot",
            db.collection(REFERRAL_CODES_COLLECTION).document(code).get(),
        )
        data = snapshot_to_dict(code_doc)
        if data is None or not data.get("userId"):
            return None

        user_id = data["userId"]
        if not db.collection(USERS_COLLECTION).document(user_id).get().exists:
            logger.warning(f"Referral code {code} belongs to missing user {user_id}")
            return None
        return user_id

    @staticmethod
    def find_user_by_email(db: Client, email: str | None) -> dict[str, Any] | None:
        """Fetch the user document registered with an email address."""
        if not email:
            return None
        query = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("email", "==", email.strip().lower()))
            .limit(1)
        )
        for doc in query.stream():
            return snapshot_to_dict(doc)
        return None

    @staticmethod
    def validate_referral(
        db: Client, code: str | None, current_user_email: str | None
    ) -> str:
        """Check that a referral code can be redeemed by the current user.

        Returns the referrer's user id.
        """
        if not code:
            raise ValidationError("Referral code is required")
        code = code.strip()

        current_user = ReferralService.find_user_by_email(db, current_user_email)
        if current_user and current_user.get("referralCode") == code:
            logger.warning(f"User {current_user['id']} tried to use their own code")
            raise SelfReferral()

        referrer_id = ReferralService.find_referrer(db, code)
        if not referrer_id:
            raise InvalidReferralCode()
        return referrer_id

    @staticmethod
    def get_referral_summary(db: Client, user_id: str) -> dict[str, Any]:
        """Fetch a user's referral code, count and the users they referred."""
        user_doc = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(user_id).get()
        )
        user = snapshot_to_dict(user_doc)
        if user is None:
            raise NotFoundError("User not found")

        referred_query = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("referredBy", "==", user_id))
            .stream()
        )
        referred_users = []
        for doc in referred_query:
            data = doc.to_dict() or {}
            referred_users.append(
                {
                    "id": doc.id,
                    "name": data.get("name"),
                    "createdAt": data.get("createdAt"),
                }
            )
        referred_users.sort(key=lambda u: str(u.get("createdAt") or ""))

        return {
            "referralCode": user.get("referralCode"),
            "referralCount": user.get("referralCount", 0),
            "totalReferralDiscount": user.get("totalReferralDiscount", 0),
            "referredUsers": referred_users,
        }
