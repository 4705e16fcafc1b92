"""Shared fixtures for API route tests."""

from __future__ import annotations

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from mockfirestore import MockFirestore

from asmaktab import create_app
from tests.conftest import patch_mockfirestore

FIRESTORE_MODULES = (
    "asmaktab.auth.decorators",
    "asmaktab.user.routes",
    "asmaktab.family.routes",
    "asmaktab.family.decorators",
    "asmaktab.payments.routes",
    "asmaktab.reviews.routes",
)


class ApiTestCase(unittest.TestCase):
    """Base test case with a mock Firestore and fake ID tokens."""

    def setUp(self) -> None:
        patch_mockfirestore()
        self.db = MockFirestore()
        self.mock_firestore_service = MagicMock()
        self.mock_firestore_service.client.return_value = self.db

        patchers = {
            module: patch(f"{module}.firestore", new=self.mock_firestore_service)
            for module in FIRESTORE_MODULES
        }
        patchers["verify_id_token"] = patch("firebase_admin.auth.verify_id_token")
        patchers["create_user"] = patch("firebase_admin.auth.create_user")
        patchers["delete_user"] = patch("firebase_admin.auth.delete_user")

        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.tokens: dict[str, dict[str, Any]] = {}
        self.mocks["verify_id_token"].side_effect = self._verify_token

        self.app = create_app({"TESTING": True})
        self.client = self.app.test_client()

    def _verify_token(self, token: str) -> dict[str, Any]:
        if token not in self.tokens:
            raise ValueError("Token is not valid")
        return self.tokens[token]

    def add_user(
        self,
        uid: str,
        name: str = "Test User",
        email: str | None = None,
        role: str = "user",
        **fields: Any,
    ) -> dict[str, Any]:
        """Store a user document and return its data."""
        data = {
            "name": name,
            "email": email or f"{uid}@example.com",
            "fatherName": None,
            "referralCode": None,
            "referredBy": None,
            "familyGroupId": None,
            "referralCount": 0,
            "role": role,
            **fields,
        }
        self.db.collection("users").document(uid).set(data)
        return data

    def auth_headers(self, uid: str, email: str | None = None) -> dict[str, str]:
        """Return headers carrying a token that verifies as ``uid``."""
        token = f"token-{uid}"
        self.tokens[token] = {"uid": uid, "email": email or f"{uid}@example.com"}
        return {"Authorization": f"Bearer {token}"}
