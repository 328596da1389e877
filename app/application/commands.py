# app/application/commands.py
import datetime as dt
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.models import Number, ProductFields


def _to_utc(v: dt.datetime) -> dt.datetime:
    # naive / date-only input is UTC, same as CSV rows
    return v.replace(tzinfo=dt.timezone.utc) if v.tzinfo is None else v.astimezone(dt.timezone.utc)


class SaveProductCommand(ProductFields):
    """Body of POST /product. Same camelCase fields as a CSV row."""

    @field_validator("name", "category", "subcategory", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else ("" if v is None else v)

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("expiry_date")
    @classmethod
    def _utc(cls, v: dt.datetime) -> dt.datetime:
        return _to_utc(v)


class UpdateProductCommand(BaseModel):
    """
    Body of PUT /product/{id}. Every field is optional; only the ones sent
    are changed. `weight: null` clears the weight, other fields cannot be nulled.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    quantity: Optional[Number] = None
    weight: Optional[Number] = None
    price: Optional[Number] = None
    expiry_date: Optional[dt.datetime] = Field(None, alias="expiryDate")
    notify_before_days: Optional[Number] = Field(None, alias="notifyBeforeDays")

    @field_validator("name", "category", "subcategory", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else ("" if v is None else v)

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("quantity", "price", "expiry_date", "notify_before_days")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("expiry_date")
    @classmethod
    def _utc(cls, v: dt.datetime) -> dt.datetime:
        return _to_utc(v)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class RegisterDeviceCommand(BaseModel):
    token: Optional[str] = Field(None, description="FCM registration token")
