"""Decorators for the family blueprint."""

from functools import wraps

from firebase_admin import firestore
from flask import g

from .discount import DiscountService


def apply_family_discount(f):
    """Resolve the signed-in user's family discount into ``g.discount``.

    Must be applied below ``login_required`` so ``g.identity`` is set.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        db = firestore.client()
        g.discount = DiscountService.resolve_discount(db, g.identity["uid"])
        return f(*args, **kwargs)

    return decorated_function
