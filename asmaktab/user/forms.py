"""Forms for the user blueprint."""

from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, Optional

from asmaktab.forms import ApiForm


class RegisterForm(ApiForm):
    """Form for creating an account."""

    name = StringField("Name", validators=[DataRequired()])
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    PhoneNo = StringField("Phone Number", validators=[Optional()])
    fatherName = StringField("Father's Name", validators=[Optional()])
    referredBy = StringField("Referral Code", validators=[Optional()])
