"""Routes for the payments blueprint."""

from firebase_admin import firestore
from flask import g, jsonify, request

from asmaktab.auth.decorators import login_required
from asmaktab.errors import NotFoundError
from asmaktab.family.decorators import apply_family_discount
from asmaktab.utils import validate_form

from . import bp
from .forms import PaymentForm
from .services import PaymentService


@bp.route("/submit", methods=["POST"])
@login_required
@apply_family_discount
def submit_payment():
    """Record a payment, carrying the family discount resolved for this request."""
    form = PaymentForm()
    validate_form(form)
    if g.user is None:
        raise NotFoundError("Student not found")

    db = firestore.client()
    data = {**(request.get_json(silent=True) or {}), "amount": form.amount.data}
    payment_id = PaymentService.submit_payment(db, g.user, data, g.discount)
    return (
        jsonify({"success": True, "insertedId": payment_id, "discount": g.discount}),
        201,
    )
