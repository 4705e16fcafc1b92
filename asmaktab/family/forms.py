"""Forms for the family blueprint."""

from wtforms import FloatField, StringField
from wtforms.validators import DataRequired, NumberRange, Optional

from asmaktab.constants import MAX_DISCOUNT
from asmaktab.forms import ApiForm


class CreateGroupForm(ApiForm):
    """Form for creating a family group."""

    userId = StringField("User ID", validators=[Optional()])


class JoinGroupForm(ApiForm):
    """Form for requesting to join a family group."""

    groupId = StringField("Group ID", validators=[DataRequired()])
    userId = StringField("User ID", validators=[Optional()])


class RequestDecisionForm(ApiForm):
    """Form for approving or rejecting a join request."""

    groupId = StringField("Group ID", validators=[DataRequired()])
    userId = StringField("User ID", validators=[DataRequired()])


class ApproveGroupForm(ApiForm):
    """Form for an admin approving a family group."""

    discount = FloatField(
        "Discount",
        validators=[Optional(), NumberRange(min=0, max=MAX_DISCOUNT)],
    )
