"""Forms for the member blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectField, StringField
from wtforms.validators import DataRequired, Optional

from .services import (
    DEFAULT_MEMBER_STATUS,
    MEMBER_STATUSES,
    MEMBER_TEXT_FIELDS,
)


class MemberForm(FlaskForm):
    """Form for creating or editing a member."""

    nickname = StringField("Nickname", validators=[DataRequired()])
    name = StringField("Name", validators=[Optional()])
    region = StringField("Region", validators=[Optional()])
    child_name = StringField("Child Name", validators=[Optional()])
    handle = StringField("Handle", validators=[Optional()])
    email = StringField("Email", validators=[Optional()])
    phone = StringField("Phone", validators=[Optional()])
    status = SelectField(
        "Status",
        choices=[(s, s.capitalize()) for s in MEMBER_STATUSES],
        default=DEFAULT_MEMBER_STATUS,
    )

    def load(self, member):
        for name in MEMBER_TEXT_FIELDS:
            getattr(self, name).data = member.get(name)
        self.status.data = member.get("status") or DEFAULT_MEMBER_STATUS

    def to_data(self):
        return {
            "nickname": self.nickname.data,
            "name": self.name.data,
            "region": self.region.data,
            "child_name": self.child_name.data,
            "handle": self.handle.data,
            "email": self.email.data,
            "phone": self.phone.data,
            "status": self.status.data,
        }
