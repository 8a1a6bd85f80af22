"""Routes for the member blueprint."""

from flask import (
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from trailclub.errors import RemoteOperationError, ValidationError
from trailclub.storage import get_store

from . import bp
from .forms import MemberForm
from .services import MemberService


def _flash_form_errors(form):
    for field, errors in form.errors.items():
        for error in errors:
            flash(f"Error in {getattr(form, field).label.text}: {error}", "danger")


@bp.route("/", methods=["GET"])
def list_members():
    """Display the roster, filtered by the ``q`` search term."""
    search_term = request.args.get("q", "")
    members = MemberService.list_members(get_store(), search_term)
    return render_template(
        "members/list.html",
        members=members,
        search_term=search_term,
    )


@bp.route("/autocomplete", methods=["GET"])
def autocomplete():
    """Nickname suggestions as JSON."""
    return jsonify(MemberService.autocomplete(get_store(), request.args.get("q", "")))


@bp.route("/create", methods=["GET", "POST"])
def create_member():
    """Add a member to the roster."""
    form = MemberForm()
    if form.validate_on_submit():
        try:
            MemberService.create_member(get_store(), form.to_data())
        except ValidationError as e:
            flash(e.message, "danger")
        except RemoteOperationError as e:
            current_app.logger.error(f"Error creating member: {e.message}")
            flash(f"Could not create the member: {e.message}", "danger")
        else:
            flash("Member created successfully.", "success")
            return redirect(url_for(".list_members"))
    elif request.method == "POST":
        _flash_form_errors(form)

    return render_template("members/form.html", form=form, member=None)


@bp.route("/<string:member_id>/edit", methods=["GET", "POST"])
def edit_member(member_id):
    """Edit a member."""
    store = get_store()
    member = MemberService.get_member(store, member_id)

    form = MemberForm()
    if request.method == "GET":
        form.load(member)

    if form.validate_on_submit():
        try:
            MemberService.update_member(store, member_id, form.to_data())
        except ValidationError as e:
            flash(e.message, "danger")
        except RemoteOperationError as e:
            current_app.logger.error(f"Error updating member {member_id}: {e.message}")
            flash(f"Could not update the member: {e.message}", "danger")
        else:
            flash("Member updated successfully.", "success")
            return redirect(url_for(".list_members"))
    elif request.method == "POST":
        _flash_form_errors(form)

    return render_template("members/form.html", form=form, member=member)


@bp.route("/<string:member_id>/delete", methods=["POST"])
def delete_member(member_id):
    """Remove a member from the roster."""
    try:
        MemberService.delete_member(get_store(), member_id)
    except RemoteOperationError as e:
        current_app.logger.error(f"Error deleting member {member_id}: {e.message}")
        flash(f"Could not delete the member: {e.message}", "danger")
    else:
        flash("Member deleted.", "success")
    return redirect(url_for(".list_members"))
