# app/application/ingest_use_case.py
from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.errors import DuplicateProductError, UploadRejected
from app.domain.models import Product
from app.domain.ports import ProductRepoPort, StatusStorePort
from app.domain.validators import (
    CsvFormatError, RowValidationError, parse_csv, validate_row,
)

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))  # 5 MiB
CSV_CONTENT_TYPES = {"text/csv"}
SKIP_REASON = "Product already exists"

logger = logging.getLogger("expiry.ingest")


# ── Report shape ───────────────────────────────────────────────────
class RowError(BaseModel):
    line: int
    data: Dict[str, Any]
    error: str

class SkippedRow(BaseModel):
    line: int
    name: str
    reason: str

class IngestSummary(BaseModel):
    total: int
    successful: int
    failed: int
    skipped: int

class IngestReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    report_id: str = Field(..., alias="reportId")
    message: str = "CSV processing completed"
    summary: IngestSummary
    successful_products: List[Product] = Field(default_factory=list, alias="successfulProducts")
    errors: List[RowError] = Field(default_factory=list)
    skipped: List[SkippedRow] = Field(default_factory=list)


# ── Use case ───────────────────────────────────────────────────────
class CsvIngestUseCase:
    """
    Bulk CSV → products.

    Every row is evaluated on its own, in file order:
      presence → numbers → date → atomic insert (duplicate name = skipped).
    Row failures are collected; only the pre-flight checks abort the upload.
    """

    def __init__(
        self,
        repo: ProductRepoPort,
        status: Optional[StatusStorePort] = None,
        *,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ) -> None:
        self.repo = repo
        self.status = status
        self.max_bytes = max_bytes

    def check_upload(self, filename: Optional[str], content_type: Optional[str], size: int) -> None:
        """Type + size pre-flight. Raises UploadRejected."""
        is_csv = (content_type or "").split(";")[0].strip().lower() in CSV_CONTENT_TYPES
        if not is_csv and not (filename or "").lower().endswith(".csv"):
            raise UploadRejected("Only CSV files are allowed", 400)
        if size > self.max_bytes:
            raise UploadRejected(f"File too large (max {self.max_bytes} bytes)", 413)

    async def run(self, raw: bytes) -> IngestReport:
        try:
            rows = parse_csv(raw)
        except CsvFormatError as e:
            logger.warning("[ingest] unparseable upload: %s", e)
            rows = []
        if not rows:
            raise UploadRejected("CSV file is empty or invalid", 400)

        created: List[Product] = []
        errors: List[RowError] = []
        skipped: List[SkippedRow] = []

        for row in rows:
            try:
                fields = validate_row(row.data)
            except RowValidationError as e:
                errors.append(RowError(line=row.line, data=row.data, error=str(e)))
                continue

            try:
                product = await self.repo.insert(fields)
            except DuplicateProductError:
                skipped.append(SkippedRow(line=row.line, name=fields.name, reason=SKIP_REASON))
                continue
            except Exception as e:
                logger.warning("[ingest] line=%s write failed: %s", row.line, e)
                errors.append(RowError(line=row.line, data=row.data, error=str(e)))
                continue

            created.append(product)

        report = IngestReport(
            report_id=uuid.uuid4().hex,
            summary=IngestSummary(
                total=len(rows),
                successful=len(created),
                failed=len(errors),
                skipped=len(skipped),
            ),
            successful_products=created,
            errors=errors,
            skipped=skipped,
        )
        logger.info(
            "[ingest] report=%s total=%d ok=%d failed=%d skipped=%d",
            report.report_id, report.summary.total, report.summary.successful,
            report.summary.failed, report.summary.skipped,
        )
        await self._save(report)
        return report

    async def _save(self, report: IngestReport) -> None:
        if self.status is None:
            return
        try:
            await self.status.save_ingest_report(
                report.report_id, report.model_dump(mode="json", by_alias=True)
            )
        except Exception as e:
            logger.warning("[ingest] could not cache report %s: %s", report.report_id, e)
