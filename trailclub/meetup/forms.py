"""Forms for the meetup blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import (
    DateField,
    HiddenField,
    IntegerField,
    SelectField,
    SelectMultipleField,
    StringField,
    TextAreaField,
    TimeField,
    ValidationError,
)
from wtforms.validators import DataRequired, NumberRange, Optional

from trailclub.utils import canonical_ids, parse_date, parse_time

from .options import (
    LEVELED_TYPE,
    MEETUP_LEVEL_OPTIONS,
    MEETUP_STATUS_OPTIONS,
    MEETUP_TYPE_OPTIONS,
    STATUS_PENDING,
    choices,
)


class MeetupForm(FlaskForm):
    """Form for creating or editing a meetup."""

    title = StringField("Title", validators=[DataRequired()])
    date = DateField("Date", validators=[DataRequired()])
    start_time = TimeField("Start Time", validators=[Optional()])
    end_time = TimeField("End Time", validators=[Optional()])
    place = StringField("Place", validators=[Optional()])
    course = StringField("Course", validators=[Optional()])
    leader_nickname = StringField("Leader", validators=[DataRequired()])
    leader_member_id = HiddenField("Leader Id")
    sub_leader_member_ids = SelectMultipleField(
        "Sub-leaders", validators=[Optional()], validate_choice=False
    )
    type = SelectField(
        "Type", choices=choices(MEETUP_TYPE_OPTIONS), validators=[DataRequired()]
    )
    level = SelectField(
        "Level",
        choices=[("", "-")] + choices(MEETUP_LEVEL_OPTIONS),
        default="",
    )
    status = SelectField(
        "Status",
        choices=choices(MEETUP_STATUS_OPTIONS),
        default=STATUS_PENDING,
        validators=[DataRequired()],
    )
    description = TextAreaField("Description", validators=[Optional()])
    cancel_reason = TextAreaField("Cancel Reason", validators=[Optional()])
    review = TextAreaField("Review", validators=[Optional()])
    total_donation = IntegerField(
        "Total Donation", default=0, validators=[Optional(), NumberRange(min=0)]
    )
    # Stale ids must survive an edit even when the roster no longer lists them.
    attendees = SelectMultipleField(
        "Attendees", validators=[Optional()], validate_choice=False
    )

    def validate_level(self, field):
        """Hiking meetups need a difficulty level."""
        if self.type.data == LEVELED_TYPE and not field.data:
            raise ValidationError("Level is required for hiking meetups.")

    def set_member_choices(self, members, meetup=None):
        """Fill the member pickers from the roster.

        Ids already on ``meetup`` that the roster does not list are kept as
        ``#<id>`` options, so saving the form does not drop them.
        """
        member_choices = [(m["id"], m.get("nickname") or m["id"]) for m in members]
        known = {member_id for member_id, _ in member_choices}
        current = []
        if meetup:
            current = [a["member_id"] for a in meetup.get("attendees", [])]
            current += canonical_ids(meetup.get("sub_leader_member_ids"))
        for member_id in current:
            if member_id not in known:
                known.add(member_id)
                member_choices.append((member_id, f"#{member_id}"))
        self.attendees.choices = member_choices
        self.sub_leader_member_ids.choices = member_choices

    def load(self, event):
        """Pre-fill the form from a projected meetup."""
        meetup = event.resource
        self.title.data = meetup.get("title")
        self.date.data = parse_date(meetup.get("date"))
        self.start_time.data = (
            parse_time(meetup["start_time"]) if meetup.get("start_time") else None
        )
        self.end_time.data = (
            parse_time(meetup["end_time"]) if meetup.get("end_time") else None
        )
        self.place.data = meetup.get("place")
        self.course.data = meetup.get("course")
        self.leader_nickname.data = meetup.get("leader_nickname")
        self.leader_member_id.data = meetup.get("leader_member_id") or ""
        self.sub_leader_member_ids.data = canonical_ids(
            meetup.get("sub_leader_member_ids")
        )
        self.type.data = meetup.get("type")
        self.level.data = meetup.get("level") or ""
        self.status.data = meetup.get("status") or STATUS_PENDING
        self.description.data = meetup.get("description")
        self.cancel_reason.data = meetup.get("cancel_reason")
        self.review.data = meetup.get("review")
        self.total_donation.data = meetup.get("total_donation") or 0
        self.attendees.data = [a["member_id"] for a in meetup.get("attendees", [])]

    def to_data(self):
        """The submitted meetup fields, without the attendees."""
        return {
            "title": self.title.data,
            "date": self.date.data,
            "start_time": self.start_time.data,
            "end_time": self.end_time.data,
            "place": self.place.data,
            "course": self.course.data,
            "leader_nickname": self.leader_nickname.data,
            "leader_member_id": self.leader_member_id.data or None,
            "sub_leader_member_ids": self.sub_leader_member_ids.data or [],
            "type": self.type.data,
            "level": self.level.data or None,
            "status": self.status.data,
            "description": self.description.data,
            "cancel_reason": self.cancel_reason.data,
            "review": self.review.data,
            "total_donation": self.total_donation.data,
        }
