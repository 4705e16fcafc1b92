"""The reviews blueprint."""

from flask import Blueprint

bp = Blueprint("reviews", __name__)

from . import routes  # noqa: E402

__all__ = ["routes"]
