# app/domain/expiry.py
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass

from app.domain.models import Product

ALERT_TITLE = "⚠️ Expiry Alert"
_DAY = dt.timedelta(days=1)


@dataclass
class ExpiryMessage:
    title: str
    body: str


def _as_utc(ts: dt.datetime) -> dt.datetime:
    return ts.replace(tzinfo=dt.timezone.utc) if ts.tzinfo is None else ts


def days_remaining(expiry: dt.datetime, now: dt.datetime) -> float:
    """Real-valued days until expiry (negative once expired)."""
    return (_as_utc(expiry) - _as_utc(now)) / _DAY


def is_eligible(days_left: float, notify_before_days: float) -> bool:
    # expired / expiring right now is not "upcoming"
    return 0 < days_left <= notify_before_days


def build_message(product: Product, days_left: float) -> ExpiryMessage:
    n = math.ceil(days_left)
    unit = "day" if n == 1 else "days"
    return ExpiryMessage(title=ALERT_TITLE, body=f"{product.name} expires in {n} {unit}")
