from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BroadcastSendRequest(CamelModel):
	# Поля необязательны в модели: отсутствие проверяет сервис и отвечает 400.
	message: Optional[str] = None
	audience: Optional[str] = None
	admin_id: Optional[str] = None


class BroadcastDetails(CamelModel):
	tokens_found: int
	unique_tokens: int


class BroadcastSendResponse(CamelModel):
	success: bool
	count: int
	success_count: int
	failure_count: int
	broadcast_id: str
	status: str
	details: BroadcastDetails
	error: Optional[str] = None


class BroadcastRecordOut(CamelModel):
	id: str
	message: str = ""
	audience: str = "all"
	sent_at: Optional[str] = None
	sent_by: Optional[str] = None
	status: str = "unknown"
	recipient_count: int = 0
	success_count: int = 0
	failure_count: int = 0


class BroadcastStatsResponse(CamelModel):
	total: int
	today: int


class PartitionOverview(CamelModel):
	total: int
	with_token: int


class CollectionsOverviewResponse(CamelModel):
	partitions: dict[str, PartitionOverview]
	user_roles: dict[str, int]
