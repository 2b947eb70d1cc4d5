"""Period resolution and Sunday-start week helpers."""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from app.domain.screentime import policy
from app.domain.screentime.errors import InvalidReference, InvalidScope, MissingReference
from app.domain.screentime.models import DateRange, Scope

_DAY_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_MONTH_RE = re.compile(r"([0-9]{4})-([0-9]{2})")
_YEAR_RE = re.compile(r"[0-9]{4}")

# Request parameter carrying the reference for each scope
REFERENCE_PARAMS = {
	Scope.WEEK: "weekStart",
	Scope.MONTH: "month",
	Scope.YEAR: "year",
}


def parse_scope(value: Scope | str | None) -> Scope:
	if isinstance(value, Scope):
		return value
	if value is None:
		raise InvalidScope("scope is required")
	try:
		return Scope(value)
	except ValueError:
		raise InvalidScope() from None


def parse_day(value: str, *, field: str = "weekStart") -> date:
	"""Parse a strict ``YYYY-MM-DD`` calendar date."""

	if not _DAY_RE.fullmatch(value):
		raise InvalidReference(f"{field} must use YYYY-MM-DD", field=field)
	try:
		return date.fromisoformat(value)
	except ValueError:
		raise InvalidReference(f"{field} is not a calendar date", field=field) from None


def is_week_start(value: date) -> bool:
	return value.weekday() == policy.WEEK_START_WEEKDAY


def week_start_for(value: date) -> date:
	"""Return the Sunday on or before ``value``."""

	offset = (value.weekday() - policy.WEEK_START_WEEKDAY) % policy.DAYS_PER_WEEK
	return value - timedelta(days=offset)


def today_utc() -> date:
	return datetime.now(timezone.utc).date()


def current_week_start(today: Optional[date] = None) -> date:
	return week_start_for(today or today_utc())


def allowed_weeks(today: Optional[date] = None) -> List[date]:
	"""Weeks open for submission, newest first."""

	current = current_week_start(today)
	return [current - timedelta(weeks=offset) for offset in range(policy.SUBMISSION_WINDOW_PRIOR_WEEKS + 1)]


def _week_range(reference: str) -> DateRange:
	start = parse_day(reference, field="weekStart")
	if not is_week_start(start):
		raise InvalidReference("weekStart must be a Sunday", field="weekStart")
	return DateRange(start=start, end=start + timedelta(days=policy.DAYS_PER_WEEK - 1))


def _month_range(reference: str) -> DateRange:
	match = _MONTH_RE.fullmatch(reference)
	if not match:
		raise InvalidReference("month must use YYYY-MM", field="month")
	year, month = int(match.group(1)), int(match.group(2))
	if year < 1 or not 1 <= month <= 12:
		raise InvalidReference("month is out of range", field="month")
	last_day = calendar.monthrange(year, month)[1]
	return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def _year_range(reference: str) -> DateRange:
	if not _YEAR_RE.fullmatch(reference) or int(reference) < 1:
		raise InvalidReference("year must use YYYY", field="year")
	year = int(reference)
	return DateRange(start=date(year, 1, 1), end=date(year, 12, 31))


def resolve_range(scope: Scope | str, reference: Optional[str]) -> DateRange:
	"""Turn a scope tag plus reference token into an inclusive date range."""

	scope = parse_scope(scope)
	field = REFERENCE_PARAMS[scope]
	if reference is None or not reference.strip():
		raise MissingReference(f"{field} is required for {scope.value} scope", field=field)
	reference = reference.strip()
	if scope is Scope.WEEK:
		return _week_range(reference)
	if scope is Scope.MONTH:
		return _month_range(reference)
	return _year_range(reference)


def select_reference(
	scope: Scope,
	*,
	week_start: Optional[str] = None,
	month: Optional[str] = None,
	year: Optional[str] = None,
) -> Optional[str]:
	"""Pick the reference matching ``scope``; references for other scopes are rejected."""

	supplied = {
		Scope.WEEK: week_start,
		Scope.MONTH: month,
		Scope.YEAR: year,
	}
	for other, value in supplied.items():
		if other is not scope and value is not None:
			field = REFERENCE_PARAMS[other]
			raise InvalidReference(f"{field} does not apply to {scope.value} scope", field=field)
	return supplied[scope]


def current_reference(scope: Scope, today: Optional[date] = None) -> str:
	"""Reference token describing the period that contains ``today``."""

	today = today or today_utc()
	if scope is Scope.WEEK:
		return week_start_for(today).isoformat()
	if scope is Scope.MONTH:
		return f"{today.year:04d}-{today.month:02d}"
	return f"{today.year:04d}"


def format_week_label(week_start: date) -> str:
	"""Human label such as ``Mar 3 - Mar 9, 2024``."""

	week_end = week_start + timedelta(days=policy.DAYS_PER_WEEK - 1)
	return f"{week_start:%b} {week_start.day} - {week_end:%b} {week_end.day}, {week_end.year}"
