# app/presentation/routers.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.infra.api.security import require_api_key

from app.presentation.routes import devices as device_routes
from app.presentation.routes import notifications as notification_routes
from app.presentation.routes import products as product_routes

# All endpoints live under /v1 and are guarded by X-Api-Key
router = APIRouter(prefix="/v1", dependencies=[Depends(require_api_key)])

# ── PRODUCTS + CSV upload ─────────────────────────────────────────
router.include_router(product_routes.router, tags=["products"])

# ── DEVICE TOKENS ─────────────────────────────────────────────────
router.include_router(device_routes.router, tags=["devices"])

# ── EXPIRY NOTIFICATIONS ──────────────────────────────────────────
router.include_router(notification_routes.router, tags=["notifications"])
