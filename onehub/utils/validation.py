"""
Form validation for requirements, consultants, and interviews.

Each validate_* function returns a dict of field -> error message;
an empty dict means the form is valid.
"""

import re
from datetime import date, datetime, time
from urllib.parse import urlparse

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
RATE_RE = re.compile(r"^\$?\d+k?(-\$?\d+k?)?$", re.IGNORECASE)
PHONE_STRIP_RE = re.compile(r"[\s\-()]")

INTERVIEW_TRANSITIONS: dict[str, list[str]] = {
    "Scheduled": ["Confirmed", "Cancelled", "Re-Scheduled"],
    "Confirmed": ["Completed", "Cancelled", "Re-Scheduled", "No Show"],
    "Completed": ["Re-Scheduled"],
    "Cancelled": ["Scheduled"],
    "Re-Scheduled": ["Confirmed", "Cancelled", "Completed", "No Show"],
    "Pending": ["Scheduled", "Confirmed", "Cancelled"],
    "No Show": ["Re-Scheduled"],
}

REQUIREMENT_URL_FIELDS = ("client_website", "imp_website", "vendor_website")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and bool(EMAIL_RE.match(value.strip()))


def is_valid_url(value: str | None) -> bool:
    if not value:
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_phone(value: str | None) -> bool:
    """10-15 digits once spaces, dashes and parentheses are removed."""
    if not value:
        return False
    digits = PHONE_STRIP_RE.sub("", value)
    if digits.startswith("+"):
        digits = digits[1:]
    return digits.isdigit() and 10 <= len(digits) <= 15


def is_valid_rate(value: str | None) -> bool:
    """Accepts 80k, $80k, $80k-120k, 65-75."""
    if not value:
        return False
    return bool(RATE_RE.match(re.sub(r"\s", "", value)))


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_requirement(data: dict) -> dict[str, str]:
    errors: dict[str, str] = {}

    if _blank(data.get("title")):
        errors["title"] = "Job title is required"
    if _blank(data.get("company")):
        errors["company"] = "Company name is required"

    vendor_email = data.get("vendor_email")
    if not _blank(vendor_email) and not is_valid_email(vendor_email):
        errors["vendor_email"] = "Invalid email format"

    for field in REQUIREMENT_URL_FIELDS:
        value = data.get(field)
        if not _blank(value) and not is_valid_url(value):
            errors[field] = "Invalid URL format"

    rate = data.get("rate")
    if not _blank(rate) and not is_valid_rate(rate):
        errors["rate"] = "Invalid rate format (e.g., 80k or $80k-120k)"

    return errors


def age_on(dob: date, today: date) -> int:
    years = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        years -= 1
    return years


def validate_consultant(data: dict, today: date | None = None) -> dict[str, str]:
    errors: dict[str, str] = {}
    today = today or date.today()

    if _blank(data.get("name")):
        errors["name"] = "Name is required"

    email = data.get("email")
    if not _blank(email) and not is_valid_email(email):
        errors["email"] = "Invalid email format"

    phone = data.get("phone")
    if not _blank(phone) and not is_valid_phone(phone):
        errors["phone"] = "Invalid phone format (10-15 digits)"

    dob = data.get("date_of_birth")
    if dob:
        if isinstance(dob, str):
            dob = date.fromisoformat(dob)
        age = age_on(dob, today)
        if age < 18:
            errors["date_of_birth"] = "Must be at least 18 years old"
        elif age > 120:
            errors["date_of_birth"] = "Invalid date of birth"

    expected_rate = data.get("expected_rate")
    if not _blank(expected_rate) and not is_valid_rate(expected_rate):
        errors["expected_rate"] = "Invalid rate format (e.g., 80k or $80k-120k)"

    return errors


def parse_time(value: str | None) -> time | None:
    """Parse HH:MM (24h). Returns None for blank input; raises ValueError if malformed."""
    if _blank(value):
        return None
    return datetime.strptime(value.strip(), "%H:%M").time()


def scheduled_moment(scheduled_date: date, scheduled_time: str | None) -> datetime:
    """Interview start; a missing time counts as the end of that day."""
    t = parse_time(scheduled_time)
    if t is None:
        return datetime.combine(scheduled_date, time(23, 59, 59))
    return datetime.combine(scheduled_date, t)


def is_in_future(scheduled_date: date, scheduled_time: str | None, now: datetime | None = None) -> bool:
    return scheduled_moment(scheduled_date, scheduled_time) > (now or datetime.now())


def validate_interview(data: dict, now: datetime | None = None) -> dict[str, str]:
    errors: dict[str, str] = {}

    if _blank(data.get("requirement_id")):
        errors["requirement_id"] = "Requirement is required"

    scheduled_date = data.get("scheduled_date")
    if not scheduled_date:
        errors["scheduled_date"] = "Interview date is required"
    else:
        if isinstance(scheduled_date, str):
            scheduled_date = date.fromisoformat(scheduled_date)
        try:
            if not is_in_future(scheduled_date, data.get("scheduled_time"), now):
                errors["scheduled_date"] = "Interview must be scheduled for a future date and time"
        except ValueError:
            errors["scheduled_time"] = "Invalid time format (HH:MM)"

    if _blank(data.get("interview_with")):
        errors["interview_with"] = "Candidate name is required"

    return errors


def can_transition(current: str, new: str) -> bool:
    """Whether an interview may move from current to new status."""
    if current == new:
        return True
    return new in INTERVIEW_TRANSITIONS.get(current, [])


MEETING_PATTERNS = (
    "zoom.us",
    "meet.google.com",
    "teams.microsoft.com",
    "webex.com",
    "bluejeans.com",
    "join.",
    "conference",
    "meeting",
)
MEETING_SERVICE_RE = re.compile(r"zoom|google meet|microsoft teams|webex|bluejeans", re.IGNORECASE)


def is_meeting_link(value: str) -> bool:
    lower = value.lower()
    return any(p in lower for p in MEETING_PATTERNS)


def location_label(location: str | None) -> str:
    """Short display label for an interview location or meeting link."""
    if not location:
        return "Location"
    parsed = urlparse(location.strip())
    if parsed.scheme and parsed.hostname:
        hostname = parsed.hostname.replace("www.", "", 1)
        return hostname[:1].upper() + hostname[1:]
    if is_meeting_link(location):
        m = MEETING_SERVICE_RE.search(location)
        return m.group(0) if m else "Meeting Link"
    return "Location"
