from app.errors import ValidationError
from app.logging_config import get_logger
from .audience import AudienceResolver
from .dispatcher import DeliveryDispatcher
from .records import STATUS_FAILED, STATUS_SENT, BroadcastRecordManager
from .schemas import BroadcastDetails, BroadcastSendResponse

logger = get_logger(__name__)

REQUIRED_FIELDS_ERROR = "Missing required fields: message, audience, adminId"


def _is_blank(value: str | None) -> bool:
	return not isinstance(value, str) or not value.strip()


class BroadcastService:
	def __init__(
		self,
		resolver: AudienceResolver,
		dispatcher: DeliveryDispatcher,
		records: BroadcastRecordManager,
	) -> None:
		self._resolver = resolver
		self._dispatcher = dispatcher
		self._records = records

	async def send(
		self,
		message: str | None,
		audience: str | None,
		admin_id: str | None,
	) -> BroadcastSendResponse:
		"""
		Аудитория -> запись pending -> отправка -> запись sent/failed.

		Ошибки Supabase пробрасываются; ошибка отправки фиксируется в записи.
		"""
		if _is_blank(message) or _is_blank(audience) or _is_blank(admin_id):
			raise ValidationError(REQUIRED_FIELDS_ERROR)

		logger.info("broadcast_requested", extra={"audience": audience, "admin_id": admin_id})

		candidates = await self._resolver.collect_tokens(audience)
		tokens = list(dict.fromkeys(candidates))

		broadcast_id = await self._records.create(message, audience, admin_id)

		outcome = await self._dispatcher.dispatch(tokens, message)

		if outcome.failed:
			status = STATUS_FAILED
			await self._records.mark_failed(
				broadcast_id,
				len(tokens),
				outcome.success_count,
				outcome.failure_count,
				outcome.error or "",
			)
		else:
			status = STATUS_SENT
			await self._records.mark_sent(
				broadcast_id,
				len(tokens),
				outcome.success_count,
				outcome.failure_count,
			)

		logger.info(
			"broadcast_finished",
			extra={
				"broadcast_id": broadcast_id,
				"status": status,
				"recipients": len(tokens),
				"success_count": outcome.success_count,
				"failure_count": outcome.failure_count,
			},
		)

		return BroadcastSendResponse(
			success=not outcome.failed,
			count=len(tokens),
			success_count=outcome.success_count,
			failure_count=outcome.failure_count,
			broadcast_id=broadcast_id,
			status=status,
			details=BroadcastDetails(tokens_found=len(candidates), unique_tokens=len(tokens)),
			error=outcome.error,
		)
