"""Routes for the user blueprint."""

from firebase_admin import auth, firestore
from firebase_admin.exceptions import FirebaseError
from flask import current_app, g, jsonify, request

from asmaktab.auth.decorators import current_user_is_admin, login_required
from asmaktab.errors import AuthorizationError
from asmaktab.referral.services import ReferralService
from asmaktab.utils import validate_form

from . import bp
from .forms import RegisterForm
from .services import DuplicateUser, UserService


@bp.route("", methods=["POST"])
def create_user():
    """Register an account, attributing it to a referrer when a code is given."""
    form = RegisterForm()
    validate_form(form)
    data = {
        "name": form.name.data,
        "email": form.email.data,
        "password": form.password.data,
        "PhoneNo": form.PhoneNo.data,
        "fatherName": form.fatherName.data,
        "referredBy": form.referredBy.data,
    }

    db = firestore.client()
    UserService.ensure_email_available(db, data["email"])
    try:
        user_record = auth.create_user(
            email=data["email"], password=data["password"], display_name=data["name"]
        )
    except auth.EmailAlreadyExistsError as e:
        raise DuplicateUser() from e

    try:
        result = UserService.create_account(
            db,
            data,
            uid=user_record.uid,
            max_attempts=current_app.config["REFERRAL_CODE_MAX_ATTEMPTS"],
        )
    except Exception as e:
        # Roll back the auth account.
        current_app.logger.error(
            f"Error creating user document for {user_record.uid}: {e}"
        )
        try:
            auth.delete_user(user_record.uid)
        except FirebaseError as delete_error:
            current_app.logger.error(
                f"Could not remove auth user {user_record.uid}: {delete_error}"
            )
        raise
    return jsonify({"success": True, **result}), 201


@bp.route("/validateReferral", methods=["GET"])
@login_required
def validate_referral():
    """Check that the current user may redeem a referral code."""
    email = request.args.get("userId") or g.identity["email"]
    if email != g.identity["email"] and not current_user_is_admin():
        raise AuthorizationError("Unauthorized access")

    db = firestore.client()
    referrer_id = ReferralService.validate_referral(db, request.args.get("code"), email)
    return jsonify(
        {
            "success": True,
            "message": "Referral code is valid",
            "referrerId": referrer_id,
        }
    )


@bp.route("/referrals", methods=["GET"])
@login_required
def referral_summary():
    """Show the current user's referral code and who signed up with it."""
    db = firestore.client()
    summary = ReferralService.get_referral_summary(db, g.identity["uid"])
    return jsonify({"success": True, **summary})
