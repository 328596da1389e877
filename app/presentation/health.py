# app/presentation/health.py
from fastapi import APIRouter, Depends
from app.container import get_cache, get_device_repo, get_notifier, get_product_repo

router = APIRouter()

@router.get("/healthz")
async def healthz():
    return {"ok": True}

@router.get("/readyz")
async def readyz(
    products = Depends(get_product_repo),
    devices = Depends(get_device_repo),
    cache = Depends(get_cache),
    notifier = Depends(get_notifier),
):
    checks = {}; ok = True
    # Mongo (connect + unique indexes)
    try:
        await products.ensure_indexes()
        await devices.ensure_indexes()
        checks["mongo"] = True
    except Exception as e:
        checks["mongo"] = False; checks["mongo_error"] = str(e); ok = False
    # Redis (status cache; degraded but not fatal)
    try:
        checks["redis"] = bool(await cache.ping())
    except Exception as e:
        checks["redis"] = False; checks["redis_error"] = str(e)
    # Push transport
    checks["fcm_initialized"] = bool(notifier.initialized)
    return {"ok": ok, **checks}
