import calendar
import secrets
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

MAX_SESSIONS = 52
MAX_HORIZON_DAYS = 365


def meeting_details():
    """Fresh meeting id, url and password for a session."""
    meeting_id = f"meeting_{int(timezone.now().timestamp())}_{secrets.token_hex(5)}"
    url = f"https://meet.jit.si/{settings.LMS['MEETING_URL_PREFIX']}-{meeting_id}"
    return meeting_id, url, secrets.token_hex(4)


def add_months(value, months):
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def recurring_dates(start, pattern, now=None):
    """
    Follow-up session times after ``start``.

    The series holds at most ``MAX_SESSIONS`` sessions including the first one
    and never reaches more than a year past ``now``.
    """
    horizon = (now or timezone.now()) + timedelta(days=MAX_HORIZON_DAYS)
    dates = []
    for i in range(1, MAX_SESSIONS):
        if pattern == 'daily':
            value = start + timedelta(days=i)
        elif pattern == 'weekly':
            value = start + timedelta(weeks=i)
        elif pattern == 'monthly':
            value = add_months(start, i)
        else:
            return dates
        if value > horizon:
            break
        dates.append(value)
    return dates
