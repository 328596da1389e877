# app/domain/models.py
from __future__ import annotations

import datetime as dt
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Number = Union[int, float]


class ProductFields(BaseModel):
    """Writable product fields. Wire names are camelCase, python names snake_case."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    category: str = ""
    subcategory: str = ""
    quantity: Number
    weight: Optional[Number] = None
    price: Number
    expiry_date: dt.datetime = Field(..., alias="expiryDate")
    notify_before_days: Number = Field(..., alias="notifyBeforeDays")


class Product(ProductFields):
    id: Optional[str] = Field(None, alias="_id")


class Device(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    fcm_token: str = Field(..., alias="fcmToken")


def name_key(name: str) -> str:
    """Normalized form used for the case-insensitive uniqueness constraint."""
    return (name or "").strip().lower()
