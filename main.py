# main.py
from dotenv import load_dotenv
load_dotenv()

import os
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Router v1 (guarded by X-Api-Key via dependencies in routers.py)
from app.presentation.routers import router as v1_router
from app.presentation.health import router as health_router
from app.container import get_device_repo, get_product_repo, get_scheduler

# --- logging config must come first ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Expiry Tracker",
    version=os.getenv("APP_VERSION", "0.1.0"),
)

# app-level request log, not 'uvicorn.access'
app_logger = logging.getLogger("expiry.request")

@app.middleware("http")
async def log_requests(request: Request, call_next):
    app_logger.info(f"Incoming {request.method} {request.url.path}")
    try:
        response = await call_next(request)
        app_logger.info(f"Completed {request.method} {request.url.path} -> {response.status_code}")
        return response
    except Exception:
        app_logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        raise

# ─────────────────────────────────────────────────────────────
# CORS (env: CORS_ALLOW_ORIGINS="https://foo.com,https://bar.com")
# ─────────────────────────────────────────────────────────────
raw_origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
allow_origins = [o.strip().rstrip("/") for o in raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials="*" not in allow_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Api-Key"],
)

# ─────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────
app.include_router(v1_router, tags=["api"])
app.include_router(health_router, tags=["health"])

@app.get("/")
async def root():
    return {
        "name": "Expiry Tracker",
        "version": os.getenv("APP_VERSION", "0.1.0"),
        "ok": True,
    }

# ─────────────────────────────────────────────────────────────
# Startup / shutdown: indexes + daily expiry scheduler
# ─────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    # Mongo down at boot is not fatal; repos retry index setup on first use
    try:
        await get_product_repo().ensure_indexes()
        await get_device_repo().ensure_indexes()
    except Exception as e:
        app_logger.warning(f"Index setup deferred: {e}")

    if os.getenv("SCHEDULER_ENABLED", "1") == "1":
        await get_scheduler().start()
    else:
        app_logger.info("Expiry scheduler disabled (SCHEDULER_ENABLED=0)")

@app.on_event("shutdown")
async def shutdown():
    await get_scheduler().stop()
