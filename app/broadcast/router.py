from fastapi import APIRouter, Depends, Query, Request

from app.dependencies import get_broadcast_service, get_history_reader
from app.rate_limit import get_broadcast_rate_limit, limiter
from .history import HistoryReader
from .schemas import (
	BroadcastRecordOut,
	BroadcastSendRequest,
	BroadcastSendResponse,
	BroadcastStatsResponse,
	CollectionsOverviewResponse,
)
from .service import BroadcastService

router = APIRouter(prefix="/api", tags=["broadcast"])
debug_router = APIRouter(prefix="/api/debug", tags=["debug"])


@router.post("/send-broadcast", response_model=BroadcastSendResponse, response_model_exclude_none=True)
@limiter.limit(get_broadcast_rate_limit)
async def send_broadcast_endpoint(
	request: Request,
	data: BroadcastSendRequest,
	service: BroadcastService = Depends(get_broadcast_service),
):
	return await service.send(data.message, data.audience, data.admin_id)


@router.get("/broadcast-history", response_model=list[BroadcastRecordOut])
async def broadcast_history_endpoint(
	limit: str | None = Query(None),
	reader: HistoryReader = Depends(get_history_reader),
):
	"""
	Последние рассылки, новые первыми.

	Некорректный или неположительный limit даёт 10. Значения больше
	HISTORY_MAX_LIMIT (по умолчанию 100) обрезаются до него.
	"""
	return await reader.list_recent(reader.clamp_limit(limit))


@router.get("/stats", response_model=BroadcastStatsResponse)
async def broadcast_stats_endpoint(
	reader: HistoryReader = Depends(get_history_reader),
):
	return await reader.stats()


@debug_router.get("/collections", response_model=CollectionsOverviewResponse)
async def debug_collections_endpoint(
	reader: HistoryReader = Depends(get_history_reader),
):
	return await reader.collections_overview()
