# tests/conftest.py
import uuid
from typing import Dict, List, Optional

import pytest

from app.domain.errors import DuplicateDeviceError, DuplicateProductError
from app.domain.models import Device, Product, ProductFields, name_key
from app.domain.ports import DeviceRepoPort, NotifierPort, ProductRepoPort
from app.infra.cache.redis_cache import RedisCache
from app.services.job_status import JobStatusService


class InMemoryProductRepo(ProductRepoPort):
    """Insertion-ordered store; `fail_names` makes insert raise a store error for those names."""

    def __init__(self):
        self.items: List[Product] = []
        self.fail_names: set = set()
        self.insert_calls = 0

    async def ensure_indexes(self):
        return None

    async def find_all(self):
        return list(self.items)

    async def list_sorted(self):
        return sorted(self.items, key=lambda p: p.expiry_date)

    async def search(self, q):
        q = q.lower()
        return [p for p in self.items if q in p.name.lower() or q in p.category.lower() or q in p.subcategory.lower()]

    async def get(self, product_id):
        return next((p for p in self.items if p.id == product_id), None)

    async def find_by_name(self, name):
        return next((p for p in self.items if name_key(p.name) == name_key(name)), None)

    async def insert(self, fields: ProductFields):
        self.insert_calls += 1
        if fields.name in self.fail_names:
            raise RuntimeError("connection reset by peer")
        if await self.find_by_name(fields.name):
            raise DuplicateProductError(fields.name)
        p = Product(id=uuid.uuid4().hex, **fields.model_dump())
        self.items.append(p)
        return p

    async def update(self, product_id, changes):
        idx = next((i for i, p in enumerate(self.items) if p.id == product_id), None)
        if idx is None:
            return None
        if "name" in changes:
            clash = await self.find_by_name(changes["name"])
            if clash and clash.id != product_id:
                raise DuplicateProductError(changes["name"])
        merged = {**self.items[idx].model_dump(exclude={"id"}), **changes}
        self.items[idx] = Product(id=product_id, **merged)
        return self.items[idx]

    async def delete(self, product_id):
        before = len(self.items)
        self.items = [p for p in self.items if p.id != product_id]
        return len(self.items) < before


class InMemoryDeviceRepo(DeviceRepoPort):
    def __init__(self, tokens=()):
        self.items: List[Device] = [Device(id=str(i), fcm_token=t) for i, t in enumerate(tokens)]

    async def ensure_indexes(self):
        return None

    async def find_all(self):
        return list(self.items)

    async def find_by_token(self, token):
        return next((d for d in self.items if d.fcm_token == token), None)

    async def insert(self, token):
        if await self.find_by_token(token):
            raise DuplicateDeviceError(token)
        d = Device(id=uuid.uuid4().hex, fcm_token=token)
        self.items.append(d)
        return d


class FakeNotifier(NotifierPort):
    def __init__(self, initialized=True, fail_tokens=()):
        self.initialized = initialized
        self.fail_tokens = set(fail_tokens)
        self.sent: List[dict] = []
        self.attempts = 0

    async def send(self, token, title, body):
        self.attempts += 1
        if token in self.fail_tokens:
            raise RuntimeError(f"invalid registration token {token}")
        self.sent.append({"token": token, "title": title, "body": body})


class FakeRedis:
    """Subset of redis.asyncio.Redis used by RedisCache."""

    def __init__(self, broken=False):
        self.data: Dict[str, str] = {}
        self.ttl: Dict[str, Optional[int]] = {}
        self.broken = broken

    async def get(self, k):
        if self.broken:
            raise ConnectionError("redis down")
        return self.data.get(k)

    async def set(self, k, v, ex=None):
        if self.broken:
            raise ConnectionError("redis down")
        self.data[k] = v
        self.ttl[k] = ex
        return True

    async def ping(self):
        if self.broken:
            raise ConnectionError("redis down")
        return True

    async def delete(self, *keys):
        return sum(1 for k in keys if self.data.pop(k, None) is not None)


@pytest.fixture
def product_repo():
    return InMemoryProductRepo()

@pytest.fixture
def device_repo():
    return InMemoryDeviceRepo(tokens=["tok-a", "tok-b", "tok-c"])

@pytest.fixture
def notifier():
    return FakeNotifier()

@pytest.fixture
def fake_redis():
    return FakeRedis()

@pytest.fixture
def status_store(fake_redis):
    return JobStatusService(RedisCache(fake_redis))

@pytest.fixture
def broken_status_store():
    return JobStatusService(RedisCache(FakeRedis(broken=True)))
