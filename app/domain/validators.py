# app/domain/validators.py
from __future__ import annotations

import csv
import datetime as dt
import io
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.domain.models import Number, ProductFields

REQUIRED_FIELDS = ("name", "quantity", "price", "expiryDate", "notifyBeforeDays")
NUMERIC_FIELDS = ("quantity", "price", "notifyBeforeDays")

MISSING_FIELDS_MSG = "Missing required fields (name, quantity, price, expiryDate, notifyBeforeDays)"
INVALID_DATE_MSG = "Invalid date format for expiryDate (use YYYY-MM-DD)"

# Accepted in addition to ISO-8601 (date or date-time)
_EXTRA_DATE_FORMATS = ("%Y/%m/%d", "%m/%d/%Y")


class CsvFormatError(ValueError):
    pass


class RowValidationError(ValueError):
    pass


@dataclass
class CsvRow:
    line: int                         # header = line 1, first record = line 2
    data: Dict[str, Any] = field(default_factory=dict)


def parse_csv(raw: bytes) -> List[CsvRow]:
    """
    Decode + split an uploaded buffer into ordered rows.
    Header names are trimmed; surplus cells (no header) are dropped from `data`.
    """
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvFormatError(f"file is not valid UTF-8: {e}") from e

    reader = csv.DictReader(io.StringIO(text, newline=""))
    try:
        if reader.fieldnames:
            reader.fieldnames = [(h or "").strip() for h in reader.fieldnames]
        rows: List[CsvRow] = []
        for line, rec in enumerate(reader, start=2):
            rec.pop(None, None)
            rows.append(CsvRow(line=line, data=dict(rec)))
    except csv.Error as e:
        raise CsvFormatError(str(e)) from e
    return rows


def _present(v: Any) -> bool:
    return v is not None and str(v).strip() != ""


def parse_number(v: Any) -> Optional[Number]:
    """Finite number or None. Integral values come back as int."""
    try:
        x = float(str(v).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(x):
        return None
    return int(x) if x.is_integer() else x


def parse_date(v: Any) -> Optional[dt.datetime]:
    """
    Calendar date/date-time → aware UTC datetime.
    Date-only and naive values are read as UTC.
    """
    s = str(v or "").strip()
    if not s:
        return None
    parsed: Optional[dt.datetime] = None
    try:
        parsed = dt.datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _EXTRA_DATE_FORMATS:
            try:
                parsed = dt.datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def validate_row(data: Dict[str, Any]) -> ProductFields:
    """
    Presence → numbers → date, in that order. Raises RowValidationError with
    the reason of the first failing stage.
    """
    if not all(_present(data.get(k)) for k in REQUIRED_FIELDS):
        raise RowValidationError(MISSING_FIELDS_MSG)

    numbers = {k: parse_number(data.get(k)) for k in NUMERIC_FIELDS}
    bad = [k for k, v in numbers.items() if v is None]
    if bad:
        raise RowValidationError(f"Invalid number format for {', '.join(bad)}")

    weight: Optional[Number] = None
    if _present(data.get("weight")):
        weight = parse_number(data.get("weight"))
        if weight is None:
            raise RowValidationError("Invalid number format for weight")

    expiry = parse_date(data.get("expiryDate"))
    if expiry is None:
        raise RowValidationError(INVALID_DATE_MSG)

    return ProductFields(
        name=str(data["name"]).strip(),
        category=str(data.get("category") or "").strip(),
        subcategory=str(data.get("subcategory") or "").strip(),
        quantity=numbers["quantity"],
        weight=weight,
        price=numbers["price"],
        expiry_date=expiry,
        notify_before_days=numbers["notifyBeforeDays"],
    )
