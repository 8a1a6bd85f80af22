"""A store wrapper that fails selected calls, for partial-failure tests."""

from trailclub.errors import RemoteOperationError
from trailclub.storage.base import MeetupStore


class FlakyStore(MeetupStore):
    """Delegates to ``inner`` but fails the configured writes.

    Attributes:
        fail_link_deletes: Link ids whose delete fails.
        fail_link_adds: Member ids whose link insert fails.
        fail_meetup_writes: Fail create/update/delete of meetups.
        fail_link_listing: Fail listing link rows.
        calls: (operation, argument) log of every write, in call order.
    """

    def __init__(self, inner):
        self.inner = inner
        self.fail_link_deletes = set()
        self.fail_link_adds = set()
        self.fail_meetup_writes = False
        self.fail_link_listing = False
        self.calls = []

    def list_meetups(self):
        return self.inner.list_meetups()

    def get_meetup(self, meetup_id):
        return self.inner.get_meetup(meetup_id)

    def create_meetup(self, data):
        self.calls.append(("create_meetup", data.get("title")))
        if self.fail_meetup_writes:
            raise RemoteOperationError("meetups table rejected the insert")
        return self.inner.create_meetup(data)

    def update_meetup(self, meetup_id, data):
        self.calls.append(("update_meetup", meetup_id))
        if self.fail_meetup_writes:
            raise RemoteOperationError("meetups table rejected the update")
        self.inner.update_meetup(meetup_id, data)

    def delete_meetup(self, meetup_id):
        self.calls.append(("delete_meetup", meetup_id))
        if self.fail_meetup_writes:
            raise RemoteOperationError("meetups table rejected the delete")
        self.inner.delete_meetup(meetup_id)

    def list_attendee_links(self, meetup_id=None):
        if self.fail_link_listing:
            raise RemoteOperationError("connection reset")
        return self.inner.list_attendee_links(meetup_id)

    def create_attendee_link(
        self, meetup_id, member_id, donation_paid=False, donation_amount=0
    ):
        self.calls.append(("create_attendee_link", member_id))
        if member_id in self.fail_link_adds:
            raise RemoteOperationError(f"insert of member {member_id} failed")
        return self.inner.create_attendee_link(
            meetup_id, member_id, donation_paid, donation_amount
        )

    def delete_attendee_link(self, link_id):
        self.calls.append(("delete_attendee_link", link_id))
        if link_id in self.fail_link_deletes:
            raise RemoteOperationError(f"delete of link {link_id} failed")
        self.inner.delete_attendee_link(link_id)

    def list_members(self):
        return self.inner.list_members()

    def get_member(self, member_id):
        return self.inner.get_member(member_id)

    def create_member(self, data):
        return self.inner.create_member(data)

    def update_member(self, member_id, data):
        self.inner.update_member(member_id, data)

    def delete_member(self, member_id):
        self.inner.delete_member(member_id)
