"""Routes for the reviews blueprint."""

from zoneinfo import ZoneInfo

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from asmaktab.auth.decorators import login_required
from asmaktab.constants import STUDENT_REVIEW, TUTOR_REVIEW

from . import bp
from .services import ReviewService


def _review_timezone():
    """Return the configured review timezone, or None for server local time."""
    name = current_app.config.get("REVIEW_TIMEZONE")
    return ZoneInfo(name) if name else None


def _submit(purchase_id, kind):
    body = request.get_json(silent=True) or {}
    db = firestore.client()
    ReviewService.submit_review(
        db,
        purchase_id,
        kind,
        body.get("answers"),
        body.get("comments"),
        author_id=g.identity["uid"],
        tz=_review_timezone(),
    )
    return jsonify({"success": True, "message": "Review submitted!"})


@bp.route("/studentReview/<string:purchase_id>", methods=["PATCH"])
@login_required
def student_review(purchase_id):
    """Submit the student's review of a purchase (once per day)."""
    return _submit(purchase_id, STUDENT_REVIEW)


@bp.route("/tutorReview/<string:purchase_id>", methods=["PATCH"])
@login_required
def tutor_review(purchase_id):
    """Submit the tutor's review of a purchase (once per day)."""
    return _submit(purchase_id, TUTOR_REVIEW)


def _history(purchase_id, kind):
    db = firestore.client()
    reviews = ReviewService.list_reviews(db, purchase_id, kind)
    reviewed_today = ReviewService.has_review_today(
        db, purchase_id, kind, tz=_review_timezone()
    )
    return jsonify(
        {"success": True, "reviews": reviews, "reviewedToday": reviewed_today}
    )


@bp.route("/studentReview/<string:purchase_id>", methods=["GET"])
@login_required
def student_review_history(purchase_id):
    """List a purchase's student reviews and whether today's is in."""
    return _history(purchase_id, STUDENT_REVIEW)


@bp.route("/tutorReview/<string:purchase_id>", methods=["GET"])
@login_required
def tutor_review_history(purchase_id):
    """List a purchase's tutor reviews and whether today's is in."""
    return _history(purchase_id, TUTOR_REVIEW)
