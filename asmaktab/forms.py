"""Shared form base for the JSON API."""

from flask_wtf import FlaskForm


class ApiForm(FlaskForm):
    """A form fed from the JSON request body.

    Requests are authenticated by bearer tokens, not cookies, so CSRF tokens
    are not used.
    """

    class Meta:
        csrf = False
