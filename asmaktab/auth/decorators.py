"""Decorators for authenticating API requests."""

from functools import wraps

from firebase_admin import auth, firestore
from flask import current_app, g, request

from asmaktab.constants import ROLE_ADMIN, USERS_COLLECTION
from asmaktab.errors import AuthenticationError, AuthorizationError
from asmaktab.utils import snapshot_to_dict


def current_user_is_admin():
    """Return True if the authenticated user has the admin role."""
    return (g.get("user") or {}).get("role") == ROLE_ADMIN


def _bearer_token():
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header.split(" ", 1)[1].strip() or None


def login_required(f=None, admin_required=False):
    """Reject requests without a valid Firebase ID token.

    On success ``g.identity`` holds the verified ``uid`` and ``email`` and
    ``g.user`` the matching user document (or None if it does not exist).

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(admin_required=True)
    def admin_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            token = _bearer_token()
            if not token:
                raise AuthenticationError("No token provided")
            try:
                decoded = auth.verify_id_token(token)
            except (
                ValueError,
                auth.InvalidIdTokenError,
                auth.CertificateFetchError,
                auth.UserDisabledError,
            ) as e:
                current_app.logger.warning(f"Rejected ID token: {e}")
                raise AuthenticationError("Invalid token") from e

            g.identity = {"uid": decoded["uid"], "email": decoded.get("email")}
            db = firestore.client()
            g.user = snapshot_to_dict(
                db.collection(USERS_COLLECTION).document(decoded["uid"]).get()
            )
            if admin_required and not current_user_is_admin():
                raise AuthorizationError()
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
