"""
Google Calendar links for events and reminders.

No calendar API access: the link opens a pre-filled "add event" page
in the user's browser, where they confirm it themselves.
"""

from datetime import timedelta
from typing import Union
from urllib.parse import urlencode

from finance_tracker.models.records import CalendarEvent, NewCalendarEvent


GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"


def google_calendar_link(event: Union[CalendarEvent, NewCalendarEvent]) -> str:
    """All-day event template link (end date is exclusive)."""
    start = event.date.strftime("%Y%m%d")
    end = (event.date + timedelta(days=1)).strftime("%Y%m%d")
    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "dates": f"{start}/{end}",
    }
    if event.description:
        params["details"] = event.description
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"
