# app/infra/repo/mongo_repo.py
from __future__ import annotations

import os
import re
import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.domain.errors import DuplicateDeviceError, DuplicateProductError
from app.domain.models import Device, Product, ProductFields, name_key
from app.domain.ports import DeviceRepoPort, ProductRepoPort
from app.infra.repo.connection import MongoConnection

PRODUCTS_COLL = os.getenv("MONGO_PRODUCTS_COLL", "products")
DEVICES_COLL  = os.getenv("MONGO_DEVICES_COLL", "devices")

logger = logging.getLogger(__name__)


def _oid(raw: str) -> Optional[ObjectId]:
    try:
        return ObjectId(raw)
    except (InvalidId, TypeError):
        return None


def _to_product(doc: Dict[str, Any]) -> Product:
    return Product(
        id=str(doc["_id"]),
        name=doc.get("name", ""),
        category=doc.get("category") or "",
        subcategory=doc.get("subcategory") or "",
        quantity=doc.get("quantity", 0),
        weight=doc.get("weight"),
        price=doc.get("price", 0),
        expiry_date=doc["expiry_date"],
        notify_before_days=doc.get("notify_before_days", 0),
    )


def _to_doc(fields: ProductFields) -> Dict[str, Any]:
    doc = fields.model_dump(by_alias=False, exclude={"id"})
    doc["name_key"] = name_key(fields.name)
    return doc


class MongoProductRepo(ProductRepoPort):
    """
    Async repository for the `products` collection.

    Uniqueness of the product name (case-insensitive) lives in the unique
    index on `name_key`; insert/update translate DuplicateKeyError into
    DuplicateProductError.

    Indexes are created on first use and remembered. Until that succeeds
    every operation raises, so nothing is written without the constraint.
    """

    def __init__(self, conn: MongoConnection, coll_name: str = PRODUCTS_COLL) -> None:
        self.conn = conn
        self.coll_name = coll_name
        self._indexes_ready = False

    async def _coll(self) -> AsyncIOMotorCollection:
        db = await self.conn.ensure_connected()
        coll = db[self.coll_name]
        if not self._indexes_ready:
            await self._create_indexes(coll)
            self._indexes_ready = True
            logger.info("indexes ready coll=%s", self.coll_name)
        return coll

    # ──────────────────────────────────────────────────────────────
    #  Indexing
    # ──────────────────────────────────────────────────────────────
    async def _create_indexes(self, coll: AsyncIOMotorCollection) -> None:
        await coll.create_index([("name_key", ASCENDING)], unique=True)
        await coll.create_index([("expiry_date", ASCENDING)])

    async def ensure_indexes(self) -> None:
        await self._coll()

    # ──────────────────────────────────────────────────────────────
    #  Reads
    # ──────────────────────────────────────────────────────────────
    async def find_all(self) -> List[Product]:
        coll = await self._coll()
        return [_to_product(d) async for d in coll.find({})]

    async def list_sorted(self) -> List[Product]:
        coll = await self._coll()
        cursor = coll.find({}).sort("expiry_date", ASCENDING)
        return [_to_product(d) async for d in cursor]

    async def search(self, q: str) -> List[Product]:
        q = (q or "").strip()
        if not q:
            return []
        rx = {"$regex": re.escape(q), "$options": "i"}
        coll = await self._coll()
        cursor = coll.find(
            {
                "$or": [
                    {"name": rx},
                    {"category": rx},
                    {"subcategory": rx},
                ]
            }
        ).sort("expiry_date", ASCENDING)
        return [_to_product(d) async for d in cursor]

    async def get(self, product_id: str) -> Optional[Product]:
        oid = _oid(product_id)
        if oid is None:
            return None
        coll = await self._coll()
        doc = await coll.find_one({"_id": oid})
        return _to_product(doc) if doc else None

    async def find_by_name(self, name: str) -> Optional[Product]:
        coll = await self._coll()
        doc = await coll.find_one({"name_key": name_key(name)})
        return _to_product(doc) if doc else None

    # ──────────────────────────────────────────────────────────────
    #  Writes
    # ──────────────────────────────────────────────────────────────
    async def insert(self, fields: ProductFields) -> Product:
        coll = await self._coll()
        doc = _to_doc(fields)
        try:
            res = await coll.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateProductError(fields.name) from e
        doc["_id"] = res.inserted_id
        return _to_product(doc)

    async def update(self, product_id: str, changes: Dict[str, Any]) -> Optional[Product]:
        """Partial update: only the given (snake_case) fields are set."""
        oid = _oid(product_id)
        if oid is None:
            return None
        if not changes:
            return await self.get(product_id)
        patch = dict(changes)
        if "name" in patch:
            patch["name_key"] = name_key(patch["name"])
        coll = await self._coll()
        try:
            doc = await coll.find_one_and_update(
                {"_id": oid},
                {"$set": patch},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise DuplicateProductError(patch.get("name", "")) from e
        return _to_product(doc) if doc else None

    async def delete(self, product_id: str) -> bool:
        oid = _oid(product_id)
        if oid is None:
            return False
        coll = await self._coll()
        res = await coll.delete_one({"_id": oid})
        return res.deleted_count > 0


class MongoDeviceRepo(DeviceRepoPort):
    """Registered push endpoints (`devices`), unique on `fcm_token`."""

    def __init__(self, conn: MongoConnection, coll_name: str = DEVICES_COLL) -> None:
        self.conn = conn
        self.coll_name = coll_name
        self._indexes_ready = False

    async def _coll(self) -> AsyncIOMotorCollection:
        db = await self.conn.ensure_connected()
        coll = db[self.coll_name]
        if not self._indexes_ready:
            await coll.create_index([("fcm_token", ASCENDING)], unique=True)
            self._indexes_ready = True
        return coll

    async def ensure_indexes(self) -> None:
        await self._coll()

    async def find_all(self) -> List[Device]:
        coll = await self._coll()
        return [Device(id=str(d["_id"]), fcm_token=d["fcm_token"]) async for d in coll.find({})]

    async def find_by_token(self, token: str) -> Optional[Device]:
        coll = await self._coll()
        d = await coll.find_one({"fcm_token": token})
        return Device(id=str(d["_id"]), fcm_token=d["fcm_token"]) if d else None

    async def insert(self, token: str) -> Device:
        coll = await self._coll()
        try:
            res = await coll.insert_one({"fcm_token": token})
        except DuplicateKeyError as e:
            raise DuplicateDeviceError(token) from e
        return Device(id=str(res.inserted_id), fcm_token=token)
