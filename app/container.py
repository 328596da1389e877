# app/container.py
from functools import lru_cache

from fastapi import HTTPException

from app.infra.cache.redis_cache import RedisCache
from app.infra.notify.fcm_notifier import FcmNotifier
from app.infra.repo.connection import MongoConnection
from app.infra.repo.mongo_repo import MongoDeviceRepo, MongoProductRepo

from app.services.job_status import JobStatusService

from app.application.expiry_job import ExpiryNotificationJob
from app.application.ingest_use_case import CsvIngestUseCase
from app.application.inventory_use_cases import DeviceRegistrationUseCase, ProductUseCase
from app.application.scheduler import DailyScheduler

import logging
logger = logging.getLogger(__name__)

@lru_cache
def _conn() -> MongoConnection: return MongoConnection()

@lru_cache
def _products() -> MongoProductRepo: return MongoProductRepo(_conn())

@lru_cache
def _devices() -> MongoDeviceRepo: return MongoDeviceRepo(_conn())

@lru_cache
def _cache() -> RedisCache: return RedisCache.from_env()

@lru_cache
def _status() -> JobStatusService: return JobStatusService(_cache())

@lru_cache
def _notifier() -> FcmNotifier: return FcmNotifier()

@lru_cache
def _expiry_job() -> ExpiryNotificationJob:
    return ExpiryNotificationJob(
        products=_products(), devices=_devices(), notifier=_notifier(), status=_status(),
    )

@lru_cache
def _scheduler() -> DailyScheduler:
    job = _expiry_job()
    return DailyScheduler(job.run_once)

# ── FastAPI providers ─────────────────────────────────────────────
async def require_db() -> None:
    """503 when the store cannot be reached; connection is established lazily here."""
    try:
        await _conn().ensure_connected()
    except Exception as e:
        logger.error("Database connection failed in dependency: %s", e)
        raise HTTPException(
            status_code=503,
            detail={"error": "Database not connected", "reason": str(e)},
        )

def get_connection() -> MongoConnection: return _conn()
def get_product_repo() -> MongoProductRepo: return _products()
def get_device_repo() -> MongoDeviceRepo: return _devices()
def get_cache() -> RedisCache: return _cache()
def get_notifier() -> FcmNotifier: return _notifier()
def get_status_store() -> JobStatusService: return _status()
def get_expiry_job() -> ExpiryNotificationJob: return _expiry_job()
def get_scheduler() -> DailyScheduler: return _scheduler()

def get_ingest_use_case() -> CsvIngestUseCase:
    return CsvIngestUseCase(repo=_products(), status=_status())

def get_product_use_case() -> ProductUseCase:
    return ProductUseCase(_products())

def get_device_use_case() -> DeviceRegistrationUseCase:
    return DeviceRegistrationUseCase(_devices())
