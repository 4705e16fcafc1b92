"""Tests for the user blueprint routes."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from firebase_admin import auth, exceptions

from asmaktab.errors import StoreError
from tests.helpers import ApiTestCase

MOCK_PASSWORD = "Password123"  # nosec


class TestRegistration(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.mocks["create_user"].return_value = MagicMock(uid="new-uid")

    def _payload(self, **overrides):
        return {
            "name": "Hasan Ali",
            "email": "hasan@example.com",
            "password": MOCK_PASSWORD,
            "PhoneNo": "01711111111",
            "fatherName": "Ali",
            **overrides,
        }

    def test_register(self) -> None:
        response = self.client.post("/users", json=self._payload())

        self.assertEqual(response.status_code, 201)
        body = response.get_json()
        self.assertTrue(body["success"])
        self.assertEqual(body["insertedId"], "new-uid")
        self.assertTrue(body["referralCode"].startswith("HASAN"))
        self.mocks["create_user"].assert_called_once_with(
            email="hasan@example.com", password=MOCK_PASSWORD, display_name="Hasan Ali"
        )
        user = self.db.collection("users").document("new-uid").get().to_dict()
        self.assertEqual(user["fatherName"], "Ali")
        self.mocks["delete_user"].assert_not_called()

    def test_register_with_referral(self) -> None:
        self.add_user("ref", referralCode="REFXX1234")
        self.db.collection("referral_codes").document("REFXX1234").set(
            {"userId": "ref"}
        )

        response = self.client.post("/users", json=self._payload(referredBy="REFXX1234"))

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["referredBy"], "ref")
        referrer = self.db.collection("users").document("ref").get().to_dict()
        self.assertEqual(referrer["referralCount"], 1)

    def test_invalid_input(self) -> None:
        for payload in (
            self._payload(email="not-an-email"),
            self._payload(password="123"),
            self._payload(name=""),
        ):
            response = self.client.post("/users", json=payload)
            self.assertEqual(response.status_code, 400)
            self.assertFalse(response.get_json()["success"])
        self.mocks["create_user"].assert_not_called()

    def test_existing_email(self) -> None:
        self.add_user("old", email="hasan@example.com")
        response = self.client.post("/users", json=self._payload())
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "User already exists")
        self.mocks["create_user"].assert_not_called()

    def test_existing_auth_account(self) -> None:
        self.mocks["create_user"].side_effect = auth.EmailAlreadyExistsError(
            "exists", None, None
        )
        response = self.client.post("/users", json=self._payload())
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "User already exists")

    def test_failed_account_removes_auth_user(self) -> None:
        with patch(
            "asmaktab.user.routes.UserService.create_account", side_effect=StoreError()
        ):
            response = self.client.post("/users", json=self._payload())

        self.assertEqual(response.status_code, 500)
        self.assertFalse(response.get_json()["success"])
        self.mocks["delete_user"].assert_called_once_with("new-uid")
        self.assertFalse(self.db.collection("users").document("new-uid").get().exists)

    def test_failed_cleanup_keeps_original_error(self) -> None:
        self.mocks["delete_user"].side_effect = exceptions.UnavailableError(
            "Auth service unavailable"
        )
        with patch(
            "asmaktab.user.routes.UserService.create_account", side_effect=StoreError()
        ):
            with self.assertLogs(self.app.logger, level="ERROR") as logs:
                response = self.client.post("/users", json=self._payload())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json()["message"],
            "A database error occurred. Please try again later.",
        )
        self.mocks["delete_user"].assert_called_once_with("new-uid")
        self.assertTrue(
            any("Could not remove auth user new-uid" in line for line in logs.output)
        )


class TestValidateReferral(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_user("ref", referralCode="REFXX1234")
        self.db.collection("referral_codes").document("REFXX1234").set(
            {"userId": "ref"}
        )
        self.add_user("me", email="me@example.com", referralCode="MEXXX5678")

    def test_requires_token(self) -> None:
        response = self.client.get("/users/validateReferral?code=REFXX1234")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["message"], "No token provided")

    def test_invalid_token(self) -> None:
        response = self.client.get(
            "/users/validateReferral?code=REFXX1234",
            headers={"Authorization": "Bearer forged"},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["message"], "Invalid token")

    def test_valid_code(self) -> None:
        response = self.client.get(
            "/users/validateReferral?code=REFXX1234",
            headers=self.auth_headers("me", "me@example.com"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["referrerId"], "ref")

    def test_own_code(self) -> None:
        response = self.client.get(
            "/users/validateReferral?code=MEXXX5678",
            headers=self.auth_headers("me", "me@example.com"),
        )
        self.assertEqual(response.status_code, 400)

    def test_unknown_code(self) -> None:
        response = self.client.get(
            "/users/validateReferral?code=NOPEX0000",
            headers=self.auth_headers("me", "me@example.com"),
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["message"], "Invalid referral code")

    def test_cannot_check_for_someone_else(self) -> None:
        response = self.client.get(
            "/users/validateReferral?code=REFXX1234&userId=other@example.com",
            headers=self.auth_headers("me", "me@example.com"),
        )
        self.assertEqual(response.status_code, 403)

    def test_admin_can_check_for_someone_else(self) -> None:
        self.add_user("boss", role="admin")
        response = self.client.get(
            "/users/validateReferral?code=REFXX1234&userId=me@example.com",
            headers=self.auth_headers("boss"),
        )
        self.assertEqual(response.status_code, 200)


class TestReferralSummary(ApiTestCase):
    def test_summary(self) -> None:
        self.add_user("ref", referralCode="REFXX1234", referralCount=1)
        self.add_user("kid", referredBy="ref")

        response = self.client.get("/users/referrals", headers=self.auth_headers("ref"))

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["referralCode"], "REFXX1234")
        self.assertEqual(body["referralCount"], 1)
        self.assertEqual([u["id"] for u in body["referredUsers"]], ["kid"])


if __name__ == "__main__":
    unittest.main()
