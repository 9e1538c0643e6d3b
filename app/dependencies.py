from functools import lru_cache

from fastapi import Depends

from app.broadcast.audience import AudienceResolver
from app.broadcast.dispatcher import DeliveryDispatcher
from app.broadcast.history import HistoryReader
from app.broadcast.records import BroadcastRecordManager
from app.broadcast.service import BroadcastService
from app.config import Settings, get_settings
from app.db import SupabaseClient
from app.push import PushService


@lru_cache
def get_supabase_client() -> SupabaseClient:
    settings = get_settings()
    return SupabaseClient(settings.supabase_url, settings.supabase_key)


@lru_cache
def get_push_service() -> PushService:
    """Firebase инициализируется лениво, при первой отправке."""
    return PushService(get_settings())


def get_audience_resolver(
    db: SupabaseClient = Depends(get_supabase_client),
    settings: Settings = Depends(get_settings),
) -> AudienceResolver:
    return AudienceResolver(db, settings)


def get_delivery_dispatcher(
    push: PushService = Depends(get_push_service),
    settings: Settings = Depends(get_settings),
) -> DeliveryDispatcher:
    return DeliveryDispatcher(push, settings.notification_title, settings.fcm_batch_size)


def get_record_manager(
    db: SupabaseClient = Depends(get_supabase_client),
    settings: Settings = Depends(get_settings),
) -> BroadcastRecordManager:
    return BroadcastRecordManager(db, settings)


def get_broadcast_service(
    resolver: AudienceResolver = Depends(get_audience_resolver),
    dispatcher: DeliveryDispatcher = Depends(get_delivery_dispatcher),
    records: BroadcastRecordManager = Depends(get_record_manager),
) -> BroadcastService:
    return BroadcastService(resolver, dispatcher, records)


def get_history_reader(
    db: SupabaseClient = Depends(get_supabase_client),
    settings: Settings = Depends(get_settings),
) -> HistoryReader:
    return HistoryReader(db, settings)
