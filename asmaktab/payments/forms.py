"""Forms for the payments blueprint."""

from wtforms import FloatField, StringField
from wtforms.validators import DataRequired, Optional

from asmaktab.forms import ApiForm


class PaymentForm(ApiForm):
    """Form for submitting a course payment."""

    courseId = StringField("Course ID", validators=[DataRequired()])
    courseName = StringField("Course Name", validators=[Optional()])
    month = StringField("Month", validators=[DataRequired()])
    year = StringField("Year", validators=[DataRequired()])
    amount = FloatField("Amount", validators=[DataRequired()])
    paymentMethod = StringField("Payment Method", validators=[DataRequired()])
    transactionId = StringField("Transaction ID", validators=[Optional()])
