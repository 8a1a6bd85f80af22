"""Tests for the calendar JSON feed and iCalendar export."""

import datetime
import unittest

from icalendar import Calendar

from trailclub.meetup.feeds import build_ical, to_feed_item
from trailclub.meetup.projection import CANCELLED_COLOR, project

MEETUPS = [
    {
        "id": "7",
        "date": "2025-06-01",
        "start_time": "08:00:00",
        "end_time": "11:00:00",
        "title": "Canyon loop",
        "place": "Red Canyon",
        "type": "hiking",
        "level": "intermediate",
        "status": "completed",
        "leader_nickname": "Alice",
        "meetup_attendees": [{"id": "l1", "member_id": "1", "nickname": "Bo"}],
    },
    {
        "id": "8",
        "date": "2025-06-02",
        "title": "",
        "place": "Park",
        "type": "walk",
        "status": "cancelled",
        "cancel_reason": "Storm warning",
    },
]


class FeedItemTestCase(unittest.TestCase):
    def test_active_event(self):
        event = project(MEETUPS)[0]

        item = to_feed_item(event, {"hiking": "#52c41a"})

        self.assertEqual(item["id"], "7")
        self.assertEqual(item["start"], "2025-06-01T08:00:00")
        self.assertEqual(item["end"], "2025-06-01T11:00:00")
        self.assertEqual(item["backgroundColor"], "#52c41a")
        self.assertEqual(item["textDecoration"], "none")
        self.assertEqual(item["extendedProps"]["attendees"], ["Bo"])

    def test_cancelled_event(self):
        event = project(MEETUPS)[1]

        item = to_feed_item(event)

        self.assertEqual(item["title"], "Park")
        self.assertEqual(item["backgroundColor"], CANCELLED_COLOR)
        self.assertEqual(item["textDecoration"], "line-through")


class IcalTestCase(unittest.TestCase):
    def test_export(self):
        cal = Calendar.from_ical(build_ical(project(MEETUPS), name="Test club"))

        events = cal.walk("VEVENT")
        self.assertEqual(len(events), 2)
        self.assertEqual(str(cal.get("x-wr-calname")), "Test club")

        first, second = events
        self.assertEqual(str(first.get("summary")), "Canyon loop")
        self.assertEqual(str(first.get("uid")), "meetup-7@trailclub")
        self.assertEqual(str(first.get("location")), "Red Canyon")
        self.assertEqual(
            first.decoded("dtstart"), datetime.datetime(2025, 6, 1, 8, 0)
        )
        self.assertEqual(str(first.get("status")), "CONFIRMED")

        self.assertEqual(str(second.get("status")), "CANCELLED")
        self.assertEqual(str(second.get("description")), "Storm warning")

    def test_empty_calendar(self):
        cal = Calendar.from_ical(build_ical([]))
        self.assertEqual(cal.walk("VEVENT"), [])


if __name__ == "__main__":
    unittest.main()
