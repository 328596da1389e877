# app/application/expiry_job.py
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional

from app.domain.expiry import build_message, days_remaining, is_eligible
from app.domain.models import Product
from app.domain.ports import DeviceRepoPort, NotifierPort, ProductRepoPort, StatusStorePort

logger = logging.getLogger("expiry.notify")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass
class ExpiryRunSummary:
    started_at: str
    finished_at: Optional[str] = None
    products_scanned: int = 0
    devices: int = 0
    eligible: int = 0
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    skipped: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UpcomingExpiry:
    product: Product
    days_left: float


class ExpiryNotificationJob:
    """
    One invocation = full scan of products × devices.

    - `now` is captured once per run.
    - Eligible: 0 < days_left <= notify_before_days.
    - One send per (eligible product, device); a failed send is logged and
      counted, the loop carries on. No retry.
    """

    def __init__(
        self,
        products: ProductRepoPort,
        devices: DeviceRepoPort,
        notifier: NotifierPort,
        status: Optional[StatusStorePort] = None,
        *,
        clock: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        self.products = products
        self.devices = devices
        self.notifier = notifier
        self.status = status
        self.clock = clock

    def _eligible(self, products: List[Product], now: dt.datetime) -> List[UpcomingExpiry]:
        out: List[UpcomingExpiry] = []
        for p in products:
            left = days_remaining(p.expiry_date, now)
            if is_eligible(left, p.notify_before_days):
                out.append(UpcomingExpiry(product=p, days_left=left))
        return out

    async def preview(self, now: Optional[dt.datetime] = None) -> List[UpcomingExpiry]:
        """Eligible products at `now`, without dispatching anything."""
        now = now or self.clock()
        return self._eligible(await self.products.find_all(), now)

    async def run_once(self, now: Optional[dt.datetime] = None) -> ExpiryRunSummary:
        started = self.clock()
        summary = ExpiryRunSummary(started_at=started.isoformat())

        if not self.notifier.initialized:
            logger.warning("Skipping expiry notifications - transport not initialized")
            summary.skipped = True
            summary.reason = "transport not initialized"
            summary.finished_at = self.clock().isoformat()
            await self._save(summary)
            return summary

        products = await self.products.find_all()
        devices = await self.devices.find_all()
        now = now or started
        summary.products_scanned = len(products)
        summary.devices = len(devices)

        for item in self._eligible(products, now):
            summary.eligible += 1
            msg = build_message(item.product, item.days_left)
            for d in devices:
                summary.attempted += 1
                try:
                    await self.notifier.send(d.fcm_token, msg.title, msg.body)
                    summary.sent += 1
                except Exception as e:
                    summary.failed += 1
                    logger.error(
                        "Error sending notification product=%s token=%s…: %s",
                        item.product.name, (d.fcm_token or "")[:12], e,
                    )

        summary.finished_at = self.clock().isoformat()
        logger.info(
            "[expiry] scanned=%d devices=%d eligible=%d attempted=%d sent=%d failed=%d",
            summary.products_scanned, summary.devices, summary.eligible,
            summary.attempted, summary.sent, summary.failed,
        )
        await self._save(summary)
        return summary

    async def _save(self, summary: ExpiryRunSummary) -> None:
        if self.status is None:
            return
        try:
            await self.status.save_expiry_run(summary.to_dict())
        except Exception as e:
            logger.warning("[expiry] could not store run summary: %s", e)
