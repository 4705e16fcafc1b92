"""Shared document types for the asmaktab application."""

from __future__ import annotations

import datetime
from typing import TypedDict


class FirestoreDocument(TypedDict, total=False):
    """Fields every stored document has once it is read back with its id."""

    id: str
    createdAt: datetime.datetime
    updatedAt: datetime.datetime
