"""The member blueprint."""

from flask import Blueprint

bp = Blueprint("member", __name__, url_prefix="/members")

from . import routes  # noqa: E402

__all__ = ["routes"]
