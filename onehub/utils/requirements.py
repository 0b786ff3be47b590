"""Requirement metrics: age, SLA, consultant matching, similarity, CSV export."""

import csv
import io
import math
import re
from collections.abc import Iterable
from datetime import UTC, datetime

SLA_RESOLVED = "Resolved"
SLA_DELAYED = "Delayed"
SLA_AT_RISK = "At Risk"
SLA_ON_TRACK = "On Track"

TERM_SPLIT_RE = re.compile(r"[,;/|\n]+")
WORD_RE = re.compile(r"[a-z0-9+#.]+")


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (as read back from some DBs) as UTC."""
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def days_open(created_at: datetime, now: datetime | None = None) -> int:
    now = as_utc(now or datetime.now(UTC))
    elapsed = (now - as_utc(created_at)).total_seconds() / 86400
    return max(0, math.ceil(elapsed))


def is_stale(created_at: datetime, stale_after_days: int = 30, now: datetime | None = None) -> bool:
    return days_open(created_at, now) > stale_after_days


def sla_status(status: str, created_at: datetime, now: datetime | None = None) -> str:
    if status == "CLOSED":
        return SLA_RESOLVED
    days = days_open(created_at, now)
    if days > 7:
        return SLA_DELAYED
    if days > 3:
        return SLA_AT_RISK
    return SLA_ON_TRACK


def split_terms(value: str | None) -> set[str]:
    """Split a skills / tech-stack string into lowercase terms."""
    if not value:
        return set()
    return {t.strip().lower() for t in TERM_SPLIT_RE.split(value) if t.strip()}


def _same(a: str | None, b: str | None) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def match_score(requirement, consultant) -> int:
    """
    Score a consultant against a requirement (0-100).

    - Skills: up to 50, proportional to the requirement's tech-stack terms
      the consultant lists in primary or secondary skills
    - Location: 25 when equal (case-insensitive)
    - Work type: 25 when the requirement's remote flag matches the preferred work type
    """
    score = 0.0

    required = split_terms(requirement.primary_tech_stack)
    if required:
        offered = split_terms(consultant.primary_skills) | split_terms(consultant.secondary_skills)
        score += len(required & offered) / len(required) * 50

    if _same(requirement.location, consultant.preferred_work_location or consultant.location):
        score += 25

    if _same(_work_type(requirement.remote), consultant.preferred_work_type):
        score += 25

    return round(score)


def _work_type(remote: str | None) -> str | None:
    """Normalize a requirement's remote flag to Remote / Hybrid / Onsite."""
    if not remote:
        return None
    lower = remote.lower()
    if "hybrid" in lower:
        return "Hybrid"
    if "remote" in lower or lower in ("yes", "true"):
        return "Remote"
    if "onsite" in lower or "on-site" in lower or lower in ("no", "false"):
        return "Onsite"
    return remote


def title_words(title: str | None) -> set[str]:
    return {w for w in WORD_RE.findall((title or "").lower()) if len(w) > 2}


def is_similar(candidate, other) -> bool:
    """Same company, still open, and the same stack or a shared title word."""
    if candidate.id == getattr(other, "id", None) or other.status == "CLOSED":
        return False
    if not _same(candidate.company, other.company):
        return False
    if _same(candidate.primary_tech_stack, other.primary_tech_stack):
        return True
    return bool(title_words(candidate.title) & title_words(other.title))


def find_similar(candidate, others: Iterable) -> list:
    return [o for o in others if is_similar(candidate, o)]


def to_csv(rows: Iterable, columns: list[str]) -> str:
    """Render rows (objects or dicts) as CSV with a header line."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        getter = row.get if isinstance(row, dict) else lambda c, r=row: getattr(r, c, None)
        writer.writerow([_csv_value(getter(c)) for c in columns])
    return buf.getvalue()


def _csv_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
