from __future__ import annotations

import logging
from datetime import date

from app.services.daily_records import DailyRecord, InvalidArgument, normalize_day
from app.services.supabase_rest import SupabaseRestRepository, expect_ok

logger = logging.getLogger(__name__)

DAILY_STATS_TABLE = "daily_reading_stats"
DAILY_STATS_COLUMNS = "date,total_pages_read,books_read_count"


class DailyRecordStore:
    """Read-only access to the per-day aggregates the database trigger maintains."""

    def __init__(self, repository: SupabaseRestRepository, *, table: str = DAILY_STATS_TABLE):
        self._repository = repository
        self._table = table

    async def fetch_range(self, user_id: str, start: date, end: date) -> list[DailyRecord]:
        start = normalize_day(start)
        end = normalize_day(end)
        if start > end:
            raise InvalidArgument(f"start {start} is after end {end}")
        return await self._fetch(
            user_id,
            [
                ("date", f"gte.{start.isoformat()}"),
                ("date", f"lte.{end.isoformat()}"),
            ],
        )

    async def fetch_all(self, user_id: str) -> list[DailyRecord]:
        return await self._fetch(user_id, [])

    async def _fetch(self, user_id: str, filters: list[tuple[str, str]]) -> list[DailyRecord]:
        params: list[tuple[str, str]] = [
            ("user_id", f"eq.{user_id}"),
            ("select", DAILY_STATS_COLUMNS),
            *filters,
            ("order", "date.asc"),
        ]
        response = await self._repository.get(self._table, params=params)
        expect_ok(response, detail="Failed to load daily reading stats.")

        records = [DailyRecord.from_row(row) for row in response.json()]
        logger.info(
            "daily_records.fetched",
            extra={"user_id": user_id, "record_count": len(records)},
        )
        return records
