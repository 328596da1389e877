# app/presentation/routes/products.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.application.commands import SaveProductCommand, UpdateProductCommand
from app.application.ingest_use_case import CsvIngestUseCase, IngestReport
from app.application.inventory_use_cases import ProductUseCase
from app.container import get_ingest_use_case, get_product_use_case, get_status_store, require_db
from app.domain.errors import DuplicateProductError, UploadRejected
from app.domain.models import Product
from app.presentation.schemas import (
    DuplicateProductResponse, ExistingProduct, MessageResponse, ProductMessage,
)
from app.services.job_status import JobStatusService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_db)])


async def _duplicate_response(uc: ProductUseCase, name: str) -> JSONResponse:
    existing = await uc.existing(name)
    payload = DuplicateProductResponse(
        message=f'Product "{name}" already exists in the inventory.',
        existing_product=(
            ExistingProduct(
                id=existing.id, name=existing.name,
                category=existing.category, quantity=existing.quantity,
            )
            if existing else None
        ),
    )
    return JSONResponse(status_code=409, content=jsonable_encoder(payload, by_alias=True))


# ── LIST / SEARCH ─────────────────────────────────────────────────
@router.get("/products", response_model=List[Product])
async def list_products(uc: ProductUseCase = Depends(get_product_use_case)):
    try:
        return await uc.list_all()
    except Exception as e:
        logger.exception("fetch products failed")
        raise HTTPException(status_code=500, detail=f"Failed to fetch products: {e}")

@router.get("/products/search", response_model=List[Product])
async def search_products(
    q: str | None = Query(None, description="Substring of name/category/subcategory"),
    uc: ProductUseCase = Depends(get_product_use_case),
):
    try:
        return await uc.search(q)
    except Exception as e:
        logger.exception("search products failed q=%r", q)
        raise HTTPException(status_code=500, detail=f"Failed to search products: {e}")

# ── CSV UPLOAD ────────────────────────────────────────────────────
@router.post("/products/upload-csv", response_model=IngestReport)
async def upload_csv(
    csv_file: UploadFile | None = File(None, alias="csvFile"),
    uc: CsvIngestUseCase = Depends(get_ingest_use_case),
):
    """
    Bulk import. Pre-flight (type/size/empty) → 4xx with no report.
    Otherwise 200 with a per-row report, even if every row failed.
    """
    if csv_file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    try:
        raw = await csv_file.read(uc.max_bytes + 1)
        uc.check_upload(csv_file.filename, csv_file.content_type, len(raw))
        return await uc.run(raw)
    except UploadRejected as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("CSV upload failed file=%s", csv_file.filename)
        raise HTTPException(status_code=500, detail=f"Failed to process CSV file: {e}")

@router.get("/products/upload-csv/{report_id}")
async def get_upload_report(report_id: str, status: JobStatusService = Depends(get_status_store)):
    try:
        report = await status.get_ingest_report(report_id)
    except Exception as e:
        logger.warning("report lookup failed id=%s: %s", report_id, e)
        raise HTTPException(status_code=503, detail="Report store unavailable")
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report

# ── SINGLE PRODUCT ────────────────────────────────────────────────
@router.get("/product/{product_id}", response_model=Product)
async def get_product(product_id: str, uc: ProductUseCase = Depends(get_product_use_case)):
    product = await uc.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@router.post(
    "/product",
    status_code=201,
    response_model=ProductMessage,
    responses={409: {"model": DuplicateProductResponse}},
)
async def add_product(cmd: SaveProductCommand, uc: ProductUseCase = Depends(get_product_use_case)):
    try:
        product = await uc.create(cmd)
    except DuplicateProductError:
        return await _duplicate_response(uc, cmd.name)
    logger.info("product added name=%s id=%s", product.name, product.id)
    return ProductMessage(message="Product Added", product=product)

@router.put(
    "/product/{product_id}",
    response_model=ProductMessage,
    responses={409: {"model": DuplicateProductResponse}},
)
async def update_product(
    product_id: str,
    cmd: UpdateProductCommand,
    uc: ProductUseCase = Depends(get_product_use_case),
):
    """Partial update: omitted fields keep their stored value."""
    try:
        product = await uc.update(product_id, cmd.changes())
    except DuplicateProductError:
        return await _duplicate_response(uc, cmd.name or "")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductMessage(message="Product Updated", product=product)

@router.delete("/product/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: str, uc: ProductUseCase = Depends(get_product_use_case)):
    if not await uc.delete(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return MessageResponse(message="Product Deleted")
