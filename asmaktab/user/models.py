"""Data models for the user blueprint."""

from __future__ import annotations

from typing import TypedDict

from asmaktab.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    email: str
    name: str
    fatherName: str
    PhoneNo: str
    role: str
    referralCode: str
    referredBy: str | None
    referralCount: int
    totalReferralDiscount: float
    familyGroupId: str | None


class AccountCreated(TypedDict):
    """Result of a successful account creation."""

    insertedId: str
    referralCode: str
    referredBy: str | None

