"""Data models for the family blueprint."""

from __future__ import annotations

import datetime
from typing import Any, TypedDict

from asmaktab.core.types import FirestoreDocument


class MemberSnapshot(TypedDict):
    """A copy of a user's identity fields taken when they joined a group."""

    groupId: str
    userId: str
    name: str | None
    email: str | None
    fatherName: str | None
    joinedAt: datetime.datetime
    role: str


class JoinRequest(TypedDict, total=False):
    """A request to join a family group."""

    groupId: str
    userId: str
    name: str | None
    email: str | None
    requestedAt: datetime.datetime
    status: str


class FamilyGroup(FirestoreDocument, total=False):
    """A family group document, optionally with its members and requests loaded."""

    groupId: str
    status: str
    createdBy: str
    discount: float
    approvedAt: Any
    approvedBy: str | None
    members: list[MemberSnapshot]
    requests: list[JoinRequest]
