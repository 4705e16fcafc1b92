"""Routes for the family blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify

from asmaktab.auth.decorators import current_user_is_admin, login_required
from asmaktab.errors import AuthorizationError
from asmaktab.utils import validate_form

from . import bp
from .decorators import apply_family_discount
from .forms import ApproveGroupForm, CreateGroupForm, JoinGroupForm, RequestDecisionForm
from .services import FamilyGroupService


def _acting_user_id(requested_id):
    """Return the user an action is for, refusing to act for someone else."""
    user_id = requested_id or g.identity["uid"]
    if user_id != g.identity["uid"] and not current_user_is_admin():
        raise AuthorizationError("You can only act on your own account")
    return user_id


@bp.route("/createGroup", methods=["POST"])
@login_required
def create_group():
    """Create a family group owned by the current user."""
    form = CreateGroupForm()
    validate_form(form)
    user_id = _acting_user_id(form.userId.data)

    db = firestore.client()
    group_id = FamilyGroupService.create_group(
        db, user_id, max_attempts=current_app.config["GROUP_CODE_MAX_ATTEMPTS"]
    )
    return jsonify(
        {
            "success": True,
            "groupId": group_id,
            "message": "Family group created! Please wait for admin approval.",
        }
    )


@bp.route("/joinGroup", methods=["POST"])
@login_required
def join_group():
    """Ask to join an approved family group."""
    form = JoinGroupForm()
    validate_form(form)
    user_id = _acting_user_id(form.userId.data)

    db = firestore.client()
    join_request = FamilyGroupService.join_group(db, form.groupId.data, user_id)
    return jsonify(
        {
            "success": True,
            "message": "Your request to join the group has been sent.",
            "request": join_request,
        }
    )


@bp.route("/approveRequest", methods=["POST"])
@login_required
def approve_request():
    """Accept a pending join request (group owner or admin)."""
    form = RequestDecisionForm()
    validate_form(form)

    db = firestore.client()
    member = FamilyGroupService.approve_request(
        db,
        form.groupId.data,
        form.userId.data,
        actor_id=g.identity["uid"],
        actor_is_admin=current_user_is_admin(),
    )
    return jsonify(
        {
            "success": True,
            "message": f"{member['name']} has been added to the family group",
            "member": member,
        }
    )


@bp.route("/rejectRequest", methods=["POST"])
@login_required
def reject_request():
    """Decline a pending join request (group owner or admin)."""
    form = RequestDecisionForm()
    validate_form(form)

    db = firestore.client()
    join_request = FamilyGroupService.reject_request(
        db,
        form.groupId.data,
        form.userId.data,
        actor_id=g.identity["uid"],
        actor_is_admin=current_user_is_admin(),
    )
    return jsonify(
        {"success": True, "message": "Request rejected", "request": join_request}
    )


@bp.route("/approveGroup/<string:group_id>", methods=["PATCH"])
@login_required(admin_required=True)
def approve_group(group_id):
    """Approve a pending family group and set its discount."""
    form = ApproveGroupForm()
    validate_form(form)

    db = firestore.client()
    group = FamilyGroupService.approve_group(
        db,
        group_id,
        form.discount.data,
        actor_id=g.identity["uid"],
        actor_is_admin=current_user_is_admin(),
    )
    return jsonify(
        {"success": True, "message": "Family group approved", "group": group}
    )


@bp.route("/me", methods=["GET"])
@login_required
def my_group():
    """Show the current user's group, if any."""
    db = firestore.client()
    status = FamilyGroupService.get_user_state(db, g.identity["uid"])
    group = FamilyGroupService.get_user_group(db, g.identity["uid"])
    return jsonify({"success": True, "status": status, "group": group})


@bp.route("/discount", methods=["GET"])
@login_required
@apply_family_discount
def my_discount():
    """Show the discount the current user would get on a payment now."""
    return jsonify({"success": True, "discount": g.discount})


@bp.route("/<string:group_id>", methods=["GET"])
@login_required
def view_group(group_id):
    """Show a group's members and pending requests to its members and admins."""
    user_group_id = (g.user or {}).get("familyGroupId")
    if user_group_id != group_id and not current_user_is_admin():
        raise AuthorizationError("You are not a member of this group")

    db = firestore.client()
    group = FamilyGroupService.get_group(db, group_id)
    return jsonify({"success": True, "group": group})
