# app/domain/ports.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.domain.models import Device, Product, ProductFields

# ===== Record store =====

class ProductRepoPort(ABC):
    """Product collection. `insert` must be an atomic insert-or-reject on the normalized name."""
    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def find_all(self) -> List[Product]: ...

    @abstractmethod
    async def list_sorted(self) -> List[Product]: ...

    @abstractmethod
    async def search(self, q: str) -> List[Product]: ...

    @abstractmethod
    async def get(self, product_id: str) -> Optional[Product]: ...

    @abstractmethod
    async def find_by_name(self, name: str) -> Optional[Product]: ...

    @abstractmethod
    async def insert(self, fields: ProductFields) -> Product: ...  # raises DuplicateProductError

    @abstractmethod
    async def update(self, product_id: str, changes: Dict[str, Any]) -> Optional[Product]: ...  # raises DuplicateProductError

    @abstractmethod
    async def delete(self, product_id: str) -> bool: ...

class DeviceRepoPort(ABC):
    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def find_all(self) -> List[Device]: ...

    @abstractmethod
    async def find_by_token(self, token: str) -> Optional[Device]: ...

    @abstractmethod
    async def insert(self, token: str) -> Device: ...  # raises DuplicateDeviceError

# ===== Push transport =====

class NotifierPort(ABC):
    """`initialized` is False when the transport could not be set up at startup."""
    initialized: bool = False

    @abstractmethod
    async def send(self, token: str, title: str, body: str) -> None: ...  # raises on failure

# ===== Cache =====

class CachePort(ABC):
    @abstractmethod
    async def get(self, key: str): ...
    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int = 43200): ...

class StatusStorePort(ABC):
    @abstractmethod
    async def save_ingest_report(self, report_id: str, report: Dict[str, Any]) -> None: ...
    @abstractmethod
    async def get_ingest_report(self, report_id: str) -> Optional[Dict[str, Any]]: ...
    @abstractmethod
    async def save_expiry_run(self, summary: Dict[str, Any]) -> None: ...
    @abstractmethod
    async def get_last_expiry_run(self) -> Optional[Dict[str, Any]]: ...
