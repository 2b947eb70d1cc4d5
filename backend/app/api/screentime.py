"""FastAPI routes for screen-time entries, metrics and the leaderboard."""

from __future__ import annotations

from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.domain.screentime import periods
from app.domain.screentime.errors import RateLimitUnavailable, ScreenTimeError, UpstreamFetchFailure
from app.domain.screentime.models import Scope
from app.domain.screentime.schemas import (
	AllowedWeeksResponse,
	CurrentPeriodResponse,
	EntrySchema,
	LeaderboardResponseSchema,
	MetricsResponseSchema,
	RangeSchema,
	SubmitEntryRequest,
	SubmitEntryResponse,
)
from app.domain.screentime.service import ScreenTimeService
from app.infra.auth import AuthenticatedUser, get_current_user
from app.infra.rate_limit import RateLimitExceeded

router = APIRouter(tags=["screentime"])

_service = ScreenTimeService()


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, RateLimitExceeded):
		headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
		return HTTPException(status.HTTP_429_TOO_MANY_REQUESTS, detail=exc.reason, headers=headers)
	if isinstance(exc, RateLimitUnavailable):
		return HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail={"reason": exc.reason, "field": None, "message": str(exc)})
	if isinstance(exc, ScreenTimeError):
		code = status.HTTP_502_BAD_GATEWAY if isinstance(exc, UpstreamFetchFailure) else status.HTTP_400_BAD_REQUEST
		return HTTPException(code, detail={"reason": exc.reason, "field": exc.field, "message": str(exc)})
	return HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _reference(
	scope: Optional[str],
	week_start: Optional[str],
	month: Optional[str],
	year: Optional[str],
) -> Tuple[Scope, Optional[str]]:
	parsed = periods.parse_scope(scope)
	return parsed, periods.select_reference(parsed, week_start=week_start, month=month, year=year)


@router.get(
	"/metrics/me",
	response_model=MetricsResponseSchema,
	response_model_exclude_none=True,
)
async def my_metrics_endpoint(
	scope: Optional[str] = Query(default=None, description="week, month or year"),
	week_start: Optional[str] = Query(default=None, alias="weekStart", description="Sunday in YYYY-MM-DD"),
	month: Optional[str] = Query(default=None, description="YYYY-MM"),
	year: Optional[str] = Query(default=None, description="YYYY"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MetricsResponseSchema:
	try:
		parsed, reference = _reference(scope, week_start, month, year)
		report = await _service.get_my_metrics(user_id=auth_user.id, scope=parsed, reference=reference)
	except ScreenTimeError as exc:
		raise _map_error(exc) from exc
	return MetricsResponseSchema.from_report(report)


@router.get(
	"/metrics/all",
	response_model=MetricsResponseSchema,
	response_model_exclude_none=True,
)
async def all_metrics_endpoint(
	scope: Optional[str] = Query(default=None, description="week, month or year"),
	week_start: Optional[str] = Query(default=None, alias="weekStart", description="Sunday in YYYY-MM-DD"),
	month: Optional[str] = Query(default=None, description="YYYY-MM"),
	year: Optional[str] = Query(default=None, description="YYYY"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MetricsResponseSchema:
	try:
		parsed, reference = _reference(scope, week_start, month, year)
		report = await _service.get_all_metrics(scope=parsed, reference=reference)
	except ScreenTimeError as exc:
		raise _map_error(exc) from exc
	return MetricsResponseSchema.from_report(report)


@router.get(
	"/leaderboard",
	response_model=LeaderboardResponseSchema,
	response_model_exclude_none=True,
)
async def leaderboard_endpoint(
	scope: Optional[str] = Query(default=None, description="week, month or year"),
	week_start: Optional[str] = Query(default=None, alias="weekStart", description="Sunday in YYYY-MM-DD"),
	month: Optional[str] = Query(default=None, description="YYYY-MM"),
	year: Optional[str] = Query(default=None, description="YYYY"),
	limit: Optional[int] = Query(default=None, ge=1, description="Rows to return; capped server-side"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> LeaderboardResponseSchema:
	try:
		parsed, reference = _reference(scope, week_start, month, year)
		report = await _service.get_leaderboard(
			user_id=auth_user.id,
			scope=parsed,
			reference=reference,
			limit=limit,
		)
	except ScreenTimeError as exc:
		raise _map_error(exc) from exc
	return LeaderboardResponseSchema.from_report(report)


@router.post("/entries", response_model=SubmitEntryResponse)
async def submit_entry_endpoint(
	payload: SubmitEntryRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> SubmitEntryResponse:
	try:
		entry = await _service.submit_entry(
			user_id=auth_user.id,
			week_start_local=payload.week_start_local,
			total_hours=payload.total_hours,
		)
	except (ScreenTimeError, RateLimitExceeded) as exc:
		raise _map_error(exc) from exc
	return SubmitEntryResponse(data=EntrySchema.from_entry(entry))


@router.get("/entries/me", response_model=list[EntrySchema])
async def my_entries_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[EntrySchema]:
	try:
		entries = await _service.list_my_entries(user_id=auth_user.id)
	except ScreenTimeError as exc:
		raise _map_error(exc) from exc
	return [EntrySchema.from_entry(entry) for entry in entries]


@router.get("/entries/allowed-weeks", response_model=AllowedWeeksResponse)
async def allowed_weeks_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> AllowedWeeksResponse:
	weeks = periods.allowed_weeks()
	return AllowedWeeksResponse(weeks=weeks, labels=[periods.format_week_label(week) for week in weeks])


@router.get("/periods/current", response_model=CurrentPeriodResponse)
async def current_period_endpoint(
	scope: Optional[str] = Query(default=None, description="week, month or year"),
) -> CurrentPeriodResponse:
	try:
		parsed = periods.parse_scope(scope)
		reference = periods.current_reference(parsed)
		date_range = periods.resolve_range(parsed, reference)
	except ScreenTimeError as exc:
		raise _map_error(exc) from exc
	return CurrentPeriodResponse(scope=parsed, reference=reference, range=RangeSchema.from_range(date_range))
