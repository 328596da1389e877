# app/presentation/schemas.py
from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Literal, Optional

from app.domain.models import Product

# ── PRODUCTS ─────────────────────────────────────────────────────
class MessageResponse(BaseModel):
    message: str

class ProductMessage(BaseModel):
    message: str
    product: Product

class ExistingProduct(BaseModel):
    id: Optional[str] = None
    name: str
    category: str = ""
    quantity: float | int

class DuplicateProductResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str = "Duplicate product"
    message: str
    existing_product: Optional[ExistingProduct] = Field(None, alias="existingProduct")

# ── NOTIFICATIONS ────────────────────────────────────────────────
class UpcomingItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product: Product
    days_left: float = Field(..., alias="daysLeft", description="Real-valued days until expiry")
    notify_days: int = Field(..., alias="notifyDays", description="ceil(daysLeft), as shown in the alert")

class SchedulerStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    state: Literal["armed", "running"]
    at: str = Field(..., description="Daily trigger time (local HH:MM)")
    next_run: Optional[datetime] = Field(None, alias="nextRun")
    runs_started: int = Field(0, alias="runsStarted")
    triggers_dropped: int = Field(0, alias="triggersDropped")
    transport_ready: bool = Field(False, alias="transportReady")
    last_run: Optional[Dict[str, Any]] = Field(None, alias="lastRun")

class TriggerResponse(BaseModel):
    started: bool
    state: Literal["armed", "running"]
