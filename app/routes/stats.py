#stats.py
from datetime import date, datetime
import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.config.environment import resolve_level_policy, resolve_stats_timezone
from app.routes.error_responses import safe_api_error_response
from app.services.activity_levels import get_classifier
from app.services.daily_record_store import DailyRecordStore
from app.services.daily_records import DailyRecord, InvalidArgument
from app.services.date_ranges import DateRange, parse_month
from app.services.heatmap import build_heatmap_cells
from app.services.streaks import (
    calculate_activity_rate,
    calculate_streak_stats,
    has_activity_today,
)
from app.services.summaries import summarize

router = APIRouter()
logger = logging.getLogger(__name__)

# Longest streak looks back three years; current streak only ever needs the tail.
STREAK_HISTORY_DAYS = 1095
ACTIVITY_RATE_DAYS = 30
MAX_HEATMAP_DAYS = 3650
SUMMARY_PERIODS = {"week", "month", "year", "all", "last_days", "custom"}


class DailyRecordInput(BaseModel):
    day: date = Field(alias="date")
    pages_read: int
    books_read_count: int = 0


class ComputeStatsInput(BaseModel):
    records: list[DailyRecordInput]
    today: date | None = None
    window_days: int = 30
    policy: str | None = None


def local_today() -> date:
    return datetime.now(resolve_stats_timezone()).date()


def _require_user(request: Request) -> str:
    user_id = request.state.user_id
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


def _record_store(request: Request) -> DailyRecordStore:
    return request.app.state.record_store


def _activity_rate_for_recent_days(records: list[DailyRecord], today: date) -> float:
    window = DateRange.last_days(ACTIVITY_RATE_DAYS, today)
    return calculate_activity_rate([r for r in records if window.contains(r.day)])


def _streak_payload(records: list[DailyRecord], today: date) -> dict:
    stats = calculate_streak_stats(records, today)
    return {
        **stats.to_dict(),
        "has_activity_today": has_activity_today(records, today),
        "activity_rate_30d": round(_activity_rate_for_recent_days(records, today), 1),
    }


def _resolve_summary_period(
    period: str | None,
    *,
    days: int | None,
    month: str | None,
    start: date | None,
    end: date | None,
) -> str:
    # Each range parameter belongs to exactly one period.
    implied = []
    if start is not None or end is not None:
        implied.append("custom")
    if month is not None:
        implied.append("month")
    if days is not None:
        implied.append("last_days")
    if len(implied) > 1:
        raise InvalidArgument(f"Conflicting range parameters for periods: {', '.join(implied)}.")

    if period is None:
        return implied[0] if implied else "month"

    period = period.strip().lower()
    if period not in SUMMARY_PERIODS:
        allowed = ", ".join(sorted(SUMMARY_PERIODS))
        raise InvalidArgument(f"Unknown period '{period}'. Expected one of: {allowed}.")
    if implied and implied[0] != period:
        raise InvalidArgument(f"period={period} does not accept parameters for period={implied[0]}.")
    return period


def _resolve_summary_range(
    period: str,
    today: date,
    *,
    days: int | None,
    month: str | None,
    start: date | None,
    end: date | None,
) -> DateRange | None:
    if period == "week":
        return DateRange.this_week(today)
    if period == "month":
        return parse_month(month) if month else DateRange.this_month(today)
    if period == "year":
        return DateRange.this_year(today)
    if period == "last_days":
        if days is None:
            raise InvalidArgument("period=last_days requires the days parameter.")
        return DateRange.last_days(days, today)
    if period == "custom":
        if start is None or end is None:
            raise InvalidArgument("period=custom requires both start and end.")
        return DateRange(start=start, end=end)
    return None


@router.get("/api/stats/streak")
async def get_streak(request: Request, today: date | None = None):
    user_id = _require_user(request)
    today = today or local_today()
    history = DateRange.last_days(STREAK_HISTORY_DAYS, today)

    try:
        records = await _record_store(request).fetch_range(user_id, history.start, history.end)
    except Exception:
        logger.warning("stats.streak_fetch_failed", extra={"user_id": user_id}, exc_info=True)
        return JSONResponse(
            content={
                **calculate_streak_stats([], today).to_dict(),
                "has_activity_today": False,
                "activity_rate_30d": 0.0,
                "degraded": True,
                "error_code": "STREAK_PARTIAL_DATA",
            },
            status_code=206,
        )

    return _streak_payload(records, today)


@router.get("/api/stats/heatmap")
async def get_heatmap(
    request: Request,
    days: int = Query(365, ge=1, le=MAX_HEATMAP_DAYS),
    policy: str | None = None,
    today: date | None = None,
):
    user_id = _require_user(request)
    today = today or local_today()
    classifier = get_classifier(policy or resolve_level_policy())
    window = DateRange.last_days(days, today)

    try:
        records = await _record_store(request).fetch_range(user_id, window.start, window.end)
    except HTTPException:
        raise
    except Exception as exc:
        return safe_api_error_response(
            request=request,
            error_code="HEATMAP_UNAVAILABLE",
            message="Unable to load reading activity right now.",
            exc=exc,
        )

    cells = build_heatmap_cells(records, days, today, classifier)
    return {
        "policy": classifier.name,
        "range": window.to_dict(),
        "days": [cell.to_dict() for cell in cells],
    }


@router.get("/api/stats/summary")
async def get_summary(
    request: Request,
    period: str | None = None,
    days: int | None = Query(None, ge=1, le=MAX_HEATMAP_DAYS),
    month: str | None = None,
    start: date | None = None,
    end: date | None = None,
    today: date | None = None,
):
    user_id = _require_user(request)
    period = _resolve_summary_period(period, days=days, month=month, start=start, end=end)

    today = today or local_today()
    date_range = _resolve_summary_range(period, today, days=days, month=month, start=start, end=end)
    store = _record_store(request)

    try:
        if date_range is None:
            records = await store.fetch_all(user_id)
        else:
            records = await store.fetch_range(user_id, date_range.start, date_range.end)
    except HTTPException:
        raise
    except Exception as exc:
        return safe_api_error_response(
            request=request,
            error_code="SUMMARY_UNAVAILABLE",
            message="Unable to load reading summary right now.",
            exc=exc,
        )

    return {
        "period": period,
        "range": date_range.to_dict() if date_range else None,
        "summary": summarize(records).to_dict(),
    }


@router.get("/api/stats/daily")
async def get_daily_records(
    request: Request,
    start: date | None = None,
    end: date | None = None,
    today: date | None = None,
):
    user_id = _require_user(request)
    end = end or today or local_today()
    start = start or DateRange.last_days(ACTIVITY_RATE_DAYS, end).start
    date_range = DateRange(start=start, end=end)

    records = await _record_store(request).fetch_range(user_id, date_range.start, date_range.end)
    return {
        "range": date_range.to_dict(),
        "records": [record.to_dict() for record in records],
    }


@router.post("/api/stats/compute")
async def compute_stats(request: Request, payload: ComputeStatsInput):
    _require_user(request)
    if not 1 <= payload.window_days <= MAX_HEATMAP_DAYS:
        raise InvalidArgument(f"window_days must be between 1 and {MAX_HEATMAP_DAYS}.")

    today = payload.today or local_today()
    classifier = get_classifier(payload.policy or resolve_level_policy())
    records = [
        DailyRecord(day=item.day, pages_read=item.pages_read, books_read_count=item.books_read_count)
        for item in payload.records
    ]

    return {
        "streak": _streak_payload(records, today),
        "summary": summarize(records).to_dict(),
        "heatmap": {
            "policy": classifier.name,
            "days": [cell.to_dict() for cell in build_heatmap_cells(records, payload.window_days, today, classifier)],
        },
    }
