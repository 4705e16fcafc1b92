"""Service layer for user accounts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists

from asmaktab.codes import generate_referral_code
from asmaktab.constants import (
    DEFAULT_CODE_MAX_ATTEMPTS,
    REFERRAL_CODES_COLLECTION,
    ROLE_USER,
    USERS_COLLECTION,
)
from asmaktab.errors import ConflictError, NotFoundError, StoreError, ValidationError
from asmaktab.referral.services import ReferralService
from asmaktab.utils import commit_batch, snapshot_to_dict, utcnow

from .models import AccountCreated, User

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class DuplicateUser(ConflictError):
    """Raised when an account already exists for an email address."""

    def __init__(self, message="User already exists"):
        """Initialize the error."""
        super().__init__(message)


class UserNotFound(NotFoundError):
    """Raised when a user document does not exist."""

    def __init__(self, message="User not found"):
        """Initialize the error."""
        super().__init__(message)


class UserService:
    """Service class for account creation and user lookups."""

    @staticmethod
    def get_user_by_id(db: Client, user_id: str) -> User | None:
        """Fetch a user by their ID."""
        user_doc = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(user_id).get()
        )
        return cast("User | None", snapshot_to_dict(user_doc))

    @staticmethod
    def require_user(db: Client, user_id: str) -> User:
        """Fetch a user by ID or raise UserNotFound."""
        user = UserService.get_user_by_id(db, user_id)
        if user is None:
            raise UserNotFound()
        return user

    @staticmethod
    def ensure_email_available(db: Client, email: str) -> None:
        """Raise DuplicateUser if an account is registered with the email."""
        if ReferralService.find_user_by_email(db, email):
            raise DuplicateUser()

    @staticmethod
    def create_account(
        db: Client,
        data: dict[str, Any],
        uid: str | None = None,
        max_attempts: int = DEFAULT_CODE_MAX_ATTEMPTS,
    ) -> AccountCreated:
        """Create a user document with a fresh referral code.

        ``data`` carries ``name``, ``email`` and ``password`` plus the optional
        ``PhoneNo``, ``fatherName`` and ``referredBy`` (a referral code). The
        password is only checked for presence; credentials belong to Firebase
        Auth. The user, the referral-code claim and the referrer's counter
        increment are committed in one batch.
        """
        name = (data.get("name") or "").strip()
        email = (data.get("email") or "").strip().lower()
        if not name or not email or not data.get("password"):
            raise ValidationError("Name, email and password are required")

        UserService.ensure_email_available(db, email)

        referral_input = (data.get("referredBy") or "").strip()
        referrer_id = ReferralService.find_referrer(db, referral_input)
        if referral_input and not referrer_id:
            logger.warning(f"Ignoring unknown referral code {referral_input!r}")

        users_ref = db.collection(USERS_COLLECTION)
        user_ref = users_ref.document(uid) if uid else users_ref.document()
        now = utcnow()
        user_data = {
            "name": name,
            "email": email,
            "PhoneNo": data.get("PhoneNo"),
            "fatherName": data.get("fatherName"),
            "referredBy": referrer_id,
            "familyGroupId": None,
            "referralCount": 0,
            "totalReferralDiscount": 0,
            "role": ROLE_USER,
            "createdAt": now,
            "updatedAt": now,
        }

        for attempt in range(1, max_attempts + 1):
            referral_code = generate_referral_code(name)
            batch = db.batch()
            batch.set(user_ref, {**user_data, "referralCode": referral_code})
            batch.create(
                db.collection(REFERRAL_CODES_COLLECTION).document(referral_code),
                {"userId": user_ref.id, "createdAt": now},
            )
            if referrer_id:
                batch.update(
                    users_ref.document(referrer_id),
                    {"referralCount": firestore.Increment(1), "updatedAt": now},
                )
            try:
                commit_batch(batch)
            except AlreadyExists:
                logger.info(
                    f"Referral code {referral_code} taken (attempt {attempt}), retrying"
                )
                continue

            logger.info(f"Created user {user_ref.id} with code {referral_code}")
            return {
                "insertedId": user_ref.id,
                "referralCode": referral_code,
                "referredBy": referrer_id,
            }

        raise StoreError("Could not allocate a unique referral code.")
