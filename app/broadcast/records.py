from datetime import datetime, timezone

from app.config import Settings
from app.db import SupabaseClient
from app.errors import DependencyError

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_FAILED = "failed"


class BroadcastRecordManager:
	"""
	Запись рассылки в broadcast_notifications: pending до отправки,
	sent (или failed) после. Статус меняется только вперёд.
	"""

	def __init__(self, db: SupabaseClient, settings: Settings) -> None:
		self._db = db
		self._table = settings.broadcasts_table

	async def create(self, message: str, audience: str, sent_by: str) -> str:
		payload = {
			"message": message,
			"audience": audience,
			"sent_at": datetime.now(timezone.utc).isoformat(),
			"sent_by": sent_by,
			"status": STATUS_PENDING,
			"recipient_count": 0,
			"success_count": 0,
			"failure_count": 0,
		}
		result = await self._db.insert(self._table, payload)
		if not result or not result[0].get("id"):
			raise DependencyError("Failed to create broadcast record")
		return str(result[0]["id"])

	async def _finish(self, record_id: str, data: dict) -> None:
		await self._db.update(
			self._table,
			{"id": f"eq.{record_id}", "status": f"eq.{STATUS_PENDING}"},
			data,
		)

	async def mark_sent(
		self,
		record_id: str,
		recipient_count: int,
		success_count: int,
		failure_count: int,
	) -> None:
		await self._finish(record_id, {
			"status": STATUS_SENT,
			"recipient_count": recipient_count,
			"success_count": success_count,
			"failure_count": failure_count,
		})

	async def mark_failed(
		self,
		record_id: str,
		recipient_count: int,
		success_count: int,
		failure_count: int,
		error: str,
	) -> None:
		await self._finish(record_id, {
			"status": STATUS_FAILED,
			"recipient_count": recipient_count,
			"success_count": success_count,
			"failure_count": failure_count,
			"error": error,
		})
