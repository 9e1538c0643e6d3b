import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from app.logging_config import get_logger
from app.push import BatchResult, TokenOutcome

logger = get_logger(__name__)

BROADCAST_TYPE = "broadcast"


class PushSender(Protocol):
	async def send_multicast(
		self,
		tokens: list[str],
		title: str,
		body: str,
		data: dict[str, str],
	) -> BatchResult:
		...


@dataclass
class DispatchOutcome:
	success_count: int = 0
	failure_count: int = 0
	outcomes: list[TokenOutcome] = field(default_factory=list)
	error: str | None = None

	@property
	def failed(self) -> bool:
		"""Вызов доставки упал целиком, это не то же самое что «нет получателей»."""
		return self.error is not None


def chunked(tokens: list[str], size: int) -> Iterable[list[str]]:
	for start in range(0, len(tokens), size):
		yield tokens[start:start + size]


class DeliveryDispatcher:
	def __init__(self, push: PushSender, title: str, batch_size: int = 500) -> None:
		if batch_size < 1:
			raise ValueError("batch_size must be positive")
		self._push = push
		self._title = title
		self._batch_size = batch_size

	async def dispatch(self, tokens: Iterable[str], message_body: str) -> DispatchOutcome:
		outcome = DispatchOutcome()
		# dict сохраняет порядок и убирает повторы
		token_list = list(dict.fromkeys(tokens))
		if not token_list:
			return outcome

		data = {
			"type": BROADCAST_TYPE,
			"message": message_body,
			"sentAt": str(int(time.time() * 1000)),
		}

		for batch in chunked(token_list, self._batch_size):
			try:
				result = await self._push.send_multicast(batch, self._title, message_body, data)
			except Exception as e:
				# Токены упавшего батча считаются неудачными, остальные батчи уходят как обычно.
				logger.exception("push_batch_failed", extra={"batch_size": len(batch)})
				error = str(e) or e.__class__.__name__
				if outcome.error is None:
					outcome.error = error
				outcome.outcomes.extend(TokenOutcome(token=t, success=False, error=error) for t in batch)
				outcome.failure_count += len(batch)
				continue

			for token_outcome in result.outcomes:
				if not token_outcome.success:
					logger.warning(
						"push_token_failed",
						extra={"token_prefix": token_outcome.token[:8], "error": token_outcome.error},
					)
			outcome.outcomes.extend(result.outcomes)
			outcome.success_count += result.success_count
			outcome.failure_count += result.failure_count

		logger.info(
			"push_dispatched",
			extra={
				"success_count": outcome.success_count,
				"failure_count": outcome.failure_count,
				"failed": outcome.failed,
			},
		)
		return outcome
