import asyncio
from collections import Counter
from datetime import datetime

from app.config import Settings
from app.db import SupabaseClient
from .audience import ROLE_FIELD, TOKEN_FIELD
from .schemas import (
	BroadcastRecordOut,
	BroadcastStatsResponse,
	CollectionsOverviewResponse,
	PartitionOverview,
)

UNKNOWN_ROLE = "unknown"


def _int_or_zero(value: object) -> int:
	return value if isinstance(value, int) and not isinstance(value, bool) else 0


def row_to_record(row: dict) -> BroadcastRecordOut:
	"""Запись истории с дефолтами для отсутствующих полей."""
	sent_at = row.get("sent_at")
	return BroadcastRecordOut(
		id=str(row.get("id", "")),
		message=row.get("message") or "",
		audience=row.get("audience") or "all",
		sent_at=str(sent_at) if sent_at else None,
		sent_by=row.get("sent_by"),
		status=row.get("status") or "unknown",
		recipient_count=_int_or_zero(row.get("recipient_count")),
		success_count=_int_or_zero(row.get("success_count")),
		failure_count=_int_or_zero(row.get("failure_count")),
	)


def local_midnight(now: datetime | None = None) -> datetime:
	"""Полночь по локальному времени; смещение берётся на саму полночь, а не на now (DST)."""
	local_now = now.astimezone().replace(tzinfo=None) if now else datetime.now()
	return local_now.replace(hour=0, minute=0, second=0, microsecond=0).astimezone()


class HistoryReader:
	def __init__(self, db: SupabaseClient, settings: Settings) -> None:
		self._db = db
		self._settings = settings

	def clamp_limit(self, raw: str | int | None) -> int:
		"""Как parseInt(limit) || 10: мусор и неположительные значения дают дефолт."""
		default = self._settings.history_default_limit
		try:
			limit = int(raw) if raw is not None else default
		except (TypeError, ValueError):
			limit = default
		if limit < 1:
			limit = default
		return min(limit, self._settings.history_max_limit)

	async def list_recent(self, limit: int = 10) -> list[BroadcastRecordOut]:
		rows = await self._db.get(
			self._settings.broadcasts_table,
			{"order": "sent_at.desc", "limit": str(self.clamp_limit(limit))},
		)
		return [row_to_record(r) for r in rows]

	async def stats(self, now: datetime | None = None) -> BroadcastStatsResponse:
		table = self._settings.broadcasts_table
		total, today = await asyncio.gather(
			self._db.count(table),
			self._db.count(table, {"sent_at": f"gte.{local_midnight(now).isoformat()}"}),
		)
		return BroadcastStatsResponse(total=total, today=today)

	async def _partition_overview(self, table: str) -> PartitionOverview:
		total, with_token = await asyncio.gather(
			self._db.count(table),
			self._db.count(table, {TOKEN_FIELD: "not.is.null"}),
		)
		return PartitionOverview(total=total, with_token=with_token)

	async def collections_overview(self) -> CollectionsOverviewResponse:
		tables = [
			self._settings.users_table,
			self._settings.doctors_table,
			self._settings.chws_table,
		]
		overviews = await asyncio.gather(*(self._partition_overview(t) for t in tables))
		rows = await self._db.get_all(
			self._settings.users_table,
			{"select": ROLE_FIELD, "order": "id.asc"},
			page_size=self._settings.partition_page_size,
		)
		roles = Counter(
			r.get(ROLE_FIELD) if isinstance(r.get(ROLE_FIELD), str) else UNKNOWN_ROLE
			for r in rows
		)
		return CollectionsOverviewResponse(
			partitions=dict(zip(tables, overviews)),
			user_roles=dict(roles),
		)
