"""Routes for the meetup blueprint."""

from flask import (
    Response,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from trailclub.core.search import (
    MeetupFilters,
    filter_meetups,
    find_member_id_by_nickname,
)
from trailclub.errors import RemoteOperationError, ValidationError
from trailclub.member.services import MemberService
from trailclub.storage import get_store
from trailclub.utils import parse_date

from . import bp
from .feeds import build_ical, to_feed_item
from .forms import MeetupForm
from .options import (
    MEETUP_LEVEL_OPTIONS,
    MEETUP_STATUS_OPTIONS,
    MEETUP_TYPE_OPTIONS,
    type_color_table,
)
from .services import MeetupService


def _try_roster(store):
    """Roster snapshot, or None when it cannot be loaded."""
    try:
        return MemberService.roster(store)
    except RemoteOperationError as e:
        current_app.logger.warning(f"Roster unavailable, showing member ids: {e}")
        return None


def _load_roster(store):
    """Roster snapshot for display; an unavailable roster shows raw ids."""
    roster = _try_roster(store)
    return {} if roster is None else roster


def _type_colors():
    return type_color_table(current_app.config.get("MEETUP_TYPE_COLORS"))


def _flash_form_errors(form):
    for field, errors in form.errors.items():
        for error in errors:
            flash(f"Error in {getattr(form, field).label.text}: {error}", "danger")


def _submitted(form, roster):
    """Meetup fields and attendee ids from a validated form."""
    data = form.to_data()
    if not data["leader_member_id"]:
        data["leader_member_id"] = find_member_id_by_nickname(
            roster.values(), data["leader_nickname"]
        )
    return data, form.attendees.data or []


@bp.route("/", methods=["GET"])
def list_meetups():
    """Display the meetup table, filtered by the query arguments."""
    store = get_store()
    filters = MeetupFilters.from_args(request.args)
    events = MeetupService.list_events(store, _load_roster(store))
    return render_template(
        "meetups/list.html",
        events=filter_meetups(events, filters),
        filters=filters,
        type_options=MEETUP_TYPE_OPTIONS,
        level_options=MEETUP_LEVEL_OPTIONS,
        status_options=MEETUP_STATUS_OPTIONS,
    )


@bp.route("/calendar", methods=["GET"])
def calendar():
    """Render the calendar page; events are loaded from the JSON feed."""
    return render_template(
        "meetups/calendar.html",
        type_options=MEETUP_TYPE_OPTIONS,
        type_colors=_type_colors(),
    )


@bp.route("/events.json", methods=["GET"])
def events_feed():
    """Projected events with their style, optionally within a date window."""
    start, end = request.args.get("start"), request.args.get("end")
    try:
        window_start = parse_date(start) if start else None
        window_end = parse_date(end) if end else None
    except ValueError:
        raise ValidationError("start and end must be ISO dates.", "start")

    store = get_store()
    events = MeetupService.list_events(store, _load_roster(store))
    filters = MeetupFilters.from_args(request.args)
    colors = _type_colors()
    feed = [
        to_feed_item(event, colors)
        for event in filter_meetups(events, filters)
        if (window_end is None or event.start.date() <= window_end)
        and (window_start is None or event.end.date() >= window_start)
    ]
    return jsonify(feed)


@bp.route("/calendar.ics", methods=["GET"])
def ical_export():
    """Export every meetup as an iCalendar file."""
    store = get_store()
    events = MeetupService.list_events(store, _load_roster(store))
    return Response(
        build_ical(events),
        mimetype="text/calendar",
        headers={"Content-Disposition": "attachment; filename=meetups.ics"},
    )


@bp.route("/<string:meetup_id>", methods=["GET"])
def view_meetup(meetup_id):
    """Display a single meetup with its attendees."""
    store = get_store()
    event = MeetupService.get_event(store, meetup_id, _load_roster(store))
    return render_template(
        "meetups/detail.html",
        event=event,
        meetup=event.resource,
    )


@bp.route("/create", methods=["GET", "POST"])
def create_meetup():
    """Create a new meetup."""
    store = get_store()
    roster = _load_roster(store)
    form = MeetupForm()
    form.set_member_choices(roster.values())

    if form.validate_on_submit():
        data, attendee_ids = _submitted(form, roster)
        try:
            result = MeetupService.create_meetup(
                store,
                data,
                attendee_ids,
                current_app.config["RECONCILE_MAX_WORKERS"],
            )
        except ValidationError as e:
            flash(e.message, "danger")
        except RemoteOperationError as e:
            current_app.logger.error(f"Error creating meetup: {e.message}")
            flash(f"Could not create the meetup: {e.message}", "danger")
        else:
            if result.warning:
                flash(result.warning, "warning")
            else:
                flash("Meetup created successfully.", "success")
            return redirect(url_for(".view_meetup", meetup_id=result.meetup_id))
    elif request.method == "POST":
        _flash_form_errors(form)

    return render_template("meetups/form.html", form=form, meetup=None)


@bp.route("/<string:meetup_id>/edit", methods=["GET", "POST"])
def edit_meetup(meetup_id):
    """Edit a meetup and reconcile its attendees."""
    store = get_store()
    roster = _try_roster(store)
    roster_loaded = roster is not None
    roster = roster or {}
    event = MeetupService.get_event(store, meetup_id, roster)

    form = MeetupForm()
    form.set_member_choices(roster.values(), event.resource)
    if request.method == "GET":
        form.load(event)

    if form.validate_on_submit():
        data, attendee_ids = _submitted(form, roster)
        if not roster_loaded:
            # Attendees cannot be reviewed without the roster; keep them.
            attendee_ids = None
            flash("Member list unavailable; attendees were not changed.", "warning")
        try:
            result = MeetupService.update_meetup(
                store,
                meetup_id,
                data,
                attendee_ids,
                current_app.config["RECONCILE_MAX_WORKERS"],
            )
        except ValidationError as e:
            flash(e.message, "danger")
        except RemoteOperationError as e:
            current_app.logger.error(f"Error updating meetup {meetup_id}: {e.message}")
            flash(f"Could not update the meetup: {e.message}", "danger")
        else:
            if result.warning:
                flash(result.warning, "warning")
            else:
                flash("Meetup updated successfully.", "success")
            return redirect(url_for(".view_meetup", meetup_id=meetup_id))
    elif request.method == "POST":
        _flash_form_errors(form)

    return render_template("meetups/form.html", form=form, meetup=event.resource)


@bp.route("/<string:meetup_id>/delete", methods=["POST"])
def delete_meetup(meetup_id):
    """Delete a meetup and its attendee links."""
    try:
        MeetupService.delete_meetup(
            get_store(), meetup_id, current_app.config["RECONCILE_MAX_WORKERS"]
        )
    except RemoteOperationError as e:
        current_app.logger.error(f"Error deleting meetup {meetup_id}: {e.message}")
        flash(f"Could not delete the meetup: {e.message}", "danger")
        return redirect(url_for(".view_meetup", meetup_id=meetup_id))

    flash("Meetup deleted.", "success")
    return redirect(url_for(".list_meetups"))
