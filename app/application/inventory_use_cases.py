# app/application/inventory_use_cases.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.domain.errors import DuplicateDeviceError
from app.domain.models import Product, ProductFields
from app.domain.ports import DeviceRepoPort, ProductRepoPort

logger = logging.getLogger(__name__)


class ProductUseCase:
    """Single-record product operations. Duplicate names surface as DuplicateProductError."""

    def __init__(self, repo: ProductRepoPort):
        self.repo = repo

    async def list_all(self) -> List[Product]:
        return await self.repo.list_sorted()

    async def search(self, q: str | None) -> List[Product]:
        if not q or not q.strip():
            return []
        return await self.repo.search(q.strip())

    async def get(self, product_id: str) -> Optional[Product]:
        return await self.repo.get(product_id)

    async def existing(self, name: str) -> Optional[Product]:
        return await self.repo.find_by_name(name)

    async def create(self, fields: ProductFields) -> Product:
        return await self.repo.insert(fields)

    async def update(self, product_id: str, changes: Dict[str, Any]) -> Optional[Product]:
        """Fields absent from `changes` keep their stored value."""
        return await self.repo.update(product_id, changes)

    async def delete(self, product_id: str) -> bool:
        return await self.repo.delete(product_id)


@dataclass
class Registration:
    created: bool
    message: str


class DeviceRegistrationUseCase:
    """Idempotent: a token seen before is acknowledged, not duplicated."""

    def __init__(self, repo: DeviceRepoPort):
        self.repo = repo

    async def register(self, token: str) -> Registration:
        try:
            await self.repo.insert(token)
        except DuplicateDeviceError:
            return Registration(created=False, message="Token already registered")
        logger.info("device registered token=%s…", token[:12])
        return Registration(created=True, message="Token Saved")
