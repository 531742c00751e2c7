"""Attendance aggregation.

Adapter between raw time-tracking entries (as returned by the attendance
service) and the calculator. Entries are loose dicts; field names vary
between API versions, so each lookup tries the known spellings in order.

Per-day output:
    {
        "2025-06-02": DayHoursSummary(
            total_hours=8.0,
            notes=["Covered reception"],
            companies=[CompanyHours(company_id="c1", name="Acme", hours=8.0)],
        ),
    }
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .amounts import (
    NO_COMPANY_NAME,
    normalize_company_label,
    parse_amount,
    parse_time_to_minutes,
    sort_key_for_name,
    trim_to_none,
)
from .schemas import CompanyHours, DayHoursSummary

logger = logging.getLogger(__name__)

DEFAULT_UTC_OFFSET_HOURS = 2

NOTE_FIELDS = (
    "notes",
    "note",
    "comment",
    "comments",
    "observation",
    "observations",
    "description",
)

COMPANY_ID_FIELDS = ("companyId", "company_id", "companyID", "companyIdContract")
COMPANY_NAME_FIELDS = ("companyName", "company_name")


def parse_entry_date(value: Any, utc_offset_hours: float = DEFAULT_UTC_OFFSET_HOURS) -> Optional[str]:
    """Resolve an entry timestamp to its YYYY-MM-DD day key.

    Aware timestamps are converted to UTC first; naive ones are taken as
    UTC. The offset is then applied since attendance records are stored
    behind local time.

    Returns:
        Day key, or None if the value is missing or unparseable.
    """
    text = trim_to_none(value)
    if text is None:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None

    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    moment += timedelta(hours=utc_offset_hours)
    return moment.strftime("%Y-%m-%d")


def shift_hours(shifts: Any) -> float:
    """Sum end - start over shift intervals, in hours.

    Intervals with unparseable bounds are skipped; negative intervals
    count as zero.
    """
    if not isinstance(shifts, list):
        return 0.0

    total_minutes = 0
    for shift in shifts:
        if not isinstance(shift, Mapping):
            continue
        start = parse_time_to_minutes(shift.get("workStart", shift.get("start")))
        end = parse_time_to_minutes(shift.get("workEnd", shift.get("end")))
        if start is None or end is None:
            continue
        total_minutes += max(0, end - start)
    return total_minutes / 60


def entry_hours(entry: Mapping[str, Any]) -> float:
    """Duration of an entry: explicit value first, shifts as fallback."""
    hours = parse_amount(entry.get("value"))
    if hours == 0:
        hours = shift_hours(entry.get("workShifts", entry.get("shifts")))
    return hours


def _first_string(entry: Mapping[str, Any], fields: Iterable[str]) -> Optional[str]:
    for field in fields:
        value = entry.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def resolve_company(
    entry: Mapping[str, Any],
    company_lookup: Optional[Mapping[str, str]] = None,
) -> tuple:
    """Resolve (company_id, company_name) for an attendance entry."""
    company = entry.get("company")
    company_id = _first_string(entry, COMPANY_ID_FIELDS)
    if company_id is None and isinstance(company, Mapping):
        company_id = _first_string(company, ("id",))

    name = _first_string(entry, COMPANY_NAME_FIELDS)
    if name is None and isinstance(company, Mapping):
        name = _first_string(company, ("name",))
    if name is None and isinstance(company, str) and company.strip():
        name = company.strip()
    if name is None and company_id and company_lookup:
        name = trim_to_none(company_lookup.get(company_id))

    return company_id, name


def _collect_notes(collector: List[str], value: Any) -> None:
    if not value:
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _collect_notes(collector, item)
        return
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed and trimmed not in collector:
            collector.append(trimmed)


class _DayAggregate:
    """Mutable accumulator for one day, frozen into DayHoursSummary at the end."""

    def __init__(self):
        self.total_hours = 0.0
        self.notes: List[str] = []
        self.companies: Dict[str, Dict[str, Any]] = {}

    def is_empty(self) -> bool:
        return self.total_hours == 0 and not self.notes and not self.companies

    def freeze(self, company_lookup: Mapping[str, str]) -> DayHoursSummary:
        companies = []
        for bucket in self.companies.values():
            company_id = bucket["company_id"]
            name = (
                trim_to_none(bucket["name"])
                or (trim_to_none(company_lookup.get(company_id)) if company_id else None)
                or company_id
                or NO_COMPANY_NAME
            )
            companies.append(CompanyHours(company_id=company_id, name=name, hours=bucket["hours"]))
        companies.sort(key=lambda c: sort_key_for_name(c.name))
        return DayHoursSummary(
            total_hours=self.total_hours,
            notes=list(self.notes),
            companies=companies,
        )


def aggregate_attendance(
    hour_entries: Iterable[Mapping[str, Any]],
    note_entries: Iterable[Mapping[str, Any]] = (),
    company_lookup: Optional[Mapping[str, str]] = None,
    utc_offset_hours: float = DEFAULT_UTC_OFFSET_HOURS,
) -> Dict[str, DayHoursSummary]:
    """Merge a month of raw attendance entries into per-day summaries.

    Args:
        hour_entries: Time entries with dateTime, value or workShifts,
            and an employer reference.
        note_entries: Note-only entries; contribute notes, never hours.
        company_lookup: Employer id -> display name, for entries that only
            carry an id.
        utc_offset_hours: Shift applied to timestamps before taking the day.

    Returns:
        Day key (YYYY-MM-DD) -> DayHoursSummary, in chronological order.
    """
    lookup = company_lookup or {}
    days: Dict[str, _DayAggregate] = {}
    dropped = 0

    for entry in hour_entries:
        if not isinstance(entry, Mapping):
            continue
        key = parse_entry_date(entry.get("dateTime"), utc_offset_hours)
        if key is None:
            dropped += 1
            continue

        day = days.setdefault(key, _DayAggregate())
        for field in NOTE_FIELDS:
            _collect_notes(day.notes, entry.get(field))

        hours = entry_hours(entry)
        if hours <= 0:
            continue
        day.total_hours += hours

        company_id, name = resolve_company(entry, lookup)
        bucket_key = company_id or normalize_company_label(name) or f"sin-empresa-{key}"
        bucket = day.companies.setdefault(
            bucket_key, {"company_id": company_id, "name": name, "hours": 0.0}
        )
        if not trim_to_none(bucket["name"]):
            bucket["name"] = name
        bucket["hours"] += hours

    for entry in note_entries:
        if not isinstance(entry, Mapping):
            continue
        key = parse_entry_date(entry.get("dateTime") or entry.get("date"), utc_offset_hours)
        if key is None:
            dropped += 1
            continue
        day = days.setdefault(key, _DayAggregate())
        for field in NOTE_FIELDS + ("value",):
            _collect_notes(day.notes, entry.get(field))

    if dropped:
        logger.debug(f"Dropped {dropped} attendance entries without a parseable date")

    return {
        key: days[key].freeze(lookup)
        for key in sorted(days)
        if not days[key].is_empty()
    }


def company_hours_totals(days: Mapping[str, DayHoursSummary]) -> List[CompanyHours]:
    """Month totals per employer, merged by id or normalized name."""
    totals: Dict[str, Dict[str, Any]] = {}

    for summary in days.values():
        for company in summary.companies:
            if company.hours <= 0:
                continue
            key = company.company_id or f"name:{normalize_company_label(company.name) or ''}"
            bucket = totals.get(key)
            if bucket is None:
                totals[key] = {
                    "company_id": company.company_id,
                    "name": company.name,
                    "hours": company.hours,
                }
            else:
                bucket["hours"] += company.hours

    result = [CompanyHours(**bucket) for bucket in totals.values()]
    result.sort(key=lambda c: sort_key_for_name(c.name))
    return result


def calendar_hours_for_company(
    totals: Iterable[CompanyHours],
    company_id: Optional[str] = None,
    company_name: Optional[str] = None,
) -> float:
    """Calendar hours for one employer: id match first, then name."""
    totals = list(totals)
    if company_id:
        for entry in totals:
            if entry.company_id and entry.company_id == company_id:
                return entry.hours

    normalized = normalize_company_label(company_name)
    if normalized:
        for entry in totals:
            if normalize_company_label(entry.name) == normalized:
                return entry.hours

    return 0.0
