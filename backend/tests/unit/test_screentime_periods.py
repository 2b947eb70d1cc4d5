from datetime import date

import pytest

from app.domain.screentime import periods
from app.domain.screentime.errors import InvalidReference, InvalidScope, MissingReference
from app.domain.screentime.models import DateRange, Scope


def test_week_range_spans_sunday_to_saturday():
	assert periods.resolve_range("week", "2024-03-03") == DateRange(date(2024, 3, 3), date(2024, 3, 9))


def test_week_range_crosses_year_boundary():
	assert periods.resolve_range(Scope.WEEK, "2023-12-31") == DateRange(date(2023, 12, 31), date(2024, 1, 6))


def test_week_range_rejects_non_sunday():
	with pytest.raises(InvalidReference) as excinfo:
		periods.resolve_range("week", "2024-03-04")
	assert excinfo.value.field == "weekStart"


def test_month_range_handles_leap_february():
	assert periods.resolve_range("month", "2024-02") == DateRange(date(2024, 2, 1), date(2024, 2, 29))
	assert periods.resolve_range("month", "2023-02") == DateRange(date(2023, 2, 1), date(2023, 2, 28))


def test_year_range_covers_calendar_year():
	assert periods.resolve_range("year", "2024") == DateRange(date(2024, 1, 1), date(2024, 12, 31))


@pytest.mark.parametrize(
	"scope,reference,field",
	[
		("week", None, "weekStart"),
		("week", "  ", "weekStart"),
		("month", None, "month"),
		("year", "", "year"),
	],
)
def test_missing_reference_names_the_parameter(scope, reference, field):
	with pytest.raises(MissingReference) as excinfo:
		periods.resolve_range(scope, reference)
	assert excinfo.value.field == field
	assert excinfo.value.reason == "missing_reference"


@pytest.mark.parametrize(
	"scope,reference",
	[
		("week", "2024-3-3"),
		("week", "2024-02-30"),
		("month", "2024-13"),
		("month", "2024-00"),
		("month", "March"),
		("year", "24"),
		("year", "0000"),
		("week", "٢٠٢٤-٠٣-٠٣"),
		("month", "٢٠٢٤-٠٣"),
		("year", "٢٠٢٤"),
		("year", "２０２４"),
	],
)
def test_malformed_reference_is_rejected(scope, reference):
	with pytest.raises(InvalidReference):
		periods.resolve_range(scope, reference)


@pytest.mark.parametrize("value", [None, "day", "WEEK", ""])
def test_parse_scope_rejects_unknown_values(value):
	with pytest.raises(InvalidScope) as excinfo:
		periods.parse_scope(value)
	assert excinfo.value.field == "scope"


def test_select_reference_picks_the_matching_parameter():
	assert periods.select_reference(Scope.MONTH, month="2024-03") == "2024-03"
	assert periods.select_reference(Scope.YEAR) is None


def test_select_reference_rejects_parameters_for_other_scopes():
	with pytest.raises(InvalidReference) as excinfo:
		periods.select_reference(Scope.WEEK, week_start="2024-03-03", year="2024")
	assert excinfo.value.field == "year"


def test_week_start_for_returns_sunday_on_or_before():
	assert periods.week_start_for(date(2024, 3, 3)) == date(2024, 3, 3)
	assert periods.week_start_for(date(2024, 3, 9)) == date(2024, 3, 3)
	assert periods.week_start_for(date(2024, 3, 6)) == date(2024, 3, 3)


def test_allowed_weeks_is_current_plus_two_prior():
	weeks = periods.allowed_weeks(date(2024, 3, 13))
	assert weeks == [date(2024, 3, 10), date(2024, 3, 3), date(2024, 2, 25)]


def test_current_reference_per_scope():
	today = date(2024, 3, 6)
	assert periods.current_reference(Scope.WEEK, today) == "2024-03-03"
	assert periods.current_reference(Scope.MONTH, today) == "2024-03"
	assert periods.current_reference(Scope.YEAR, today) == "2024"


def test_format_week_label():
	assert periods.format_week_label(date(2024, 3, 3)) == "Mar 3 - Mar 9, 2024"
	assert periods.format_week_label(date(2023, 12, 31)) == "Dec 31 - Jan 6, 2024"
