# app/services/job_status.py
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.domain.ports import CachePort, StatusStorePort


class JobStatusService(StatusStorePort):
    """Keeps the last expiry-job summary and recent upload reports in the cache."""

    def __init__(self, store: CachePort):
        self.rs = store

    # ---- Upload reports (from /products/upload-csv) ----
    async def save_ingest_report(self, report_id: str, report: Dict[str, Any]):
        await self.rs.set(f"ingest:report:{report_id}", report)

    async def get_ingest_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        return await self.rs.get(f"ingest:report:{report_id}")

    # ---- Expiry job ----
    async def save_expiry_run(self, summary: Dict[str, Any]):
        item = {**summary, "saved_at": datetime.now(timezone.utc).isoformat()}
        await self.rs.set("expiry:last_run", item)

    async def get_last_expiry_run(self) -> Optional[Dict[str, Any]]:
        return await self.rs.get("expiry:last_run")
