# tests/unit/test_ingest_use_case.py
import asyncio

import pytest

from app.application.ingest_use_case import CsvIngestUseCase, SKIP_REASON
from app.domain.errors import UploadRejected
from app.domain.validators import MISSING_FIELDS_MSG

HEADER = "name,category,subcategory,quantity,weight,price,expiryDate,notifyBeforeDays\n"

SCENARIO = (
    HEADER
    + "Milk,Dairy,,5,,2,2099-01-01,3\n"
    + "Milk,Dairy,,1,,1,2099-02-01,1\n"
    + "Bread,Bakery,,abc,,1,2099-01-01,2\n"
).encode()


def _check_totals(report):
    s = report.summary
    assert s.total == s.successful + s.failed + s.skipped
    assert s.successful == len(report.successful_products)
    assert s.failed == len(report.errors)
    assert s.skipped == len(report.skipped)


def test_mixed_batch_partitions_rows(product_repo):
    uc = CsvIngestUseCase(product_repo)
    report = asyncio.run(uc.run(SCENARIO))

    _check_totals(report)
    assert report.summary.total == 3
    assert [p.name for p in report.successful_products] == ["Milk"]
    assert report.successful_products[0].quantity == 5

    assert len(report.skipped) == 1
    assert report.skipped[0].line == 3
    assert report.skipped[0].name == "Milk"
    assert report.skipped[0].reason == SKIP_REASON

    assert len(report.errors) == 1
    assert report.errors[0].line == 4
    assert report.errors[0].data["name"] == "Bread"
    assert "quantity" in report.errors[0].error

    assert [p.name for p in product_repo.items] == ["Milk"]


def test_existing_name_is_skipped_case_insensitively(product_repo):
    uc = CsvIngestUseCase(product_repo)
    asyncio.run(uc.run((HEADER + "Fresh Milk,,,1,,1,2099-01-01,1\n").encode()))
    report = asyncio.run(uc.run((HEADER + "  fresh MILK ,,,2,,3,2099-03-01,2\n").encode()))

    assert report.summary.successful == 0
    assert report.skipped[0].name == "fresh MILK"
    assert len(product_repo.items) == 1
    assert product_repo.items[0].quantity == 1


def test_reupload_is_all_skipped(product_repo):
    uc = CsvIngestUseCase(product_repo)
    raw = (HEADER + "A,,,1,,1,2099-01-01,1\nB,,,2,,0,2099-01-02,2\n").encode()
    first = asyncio.run(uc.run(raw))
    second = asyncio.run(uc.run(raw))

    assert first.summary.successful == 2
    assert second.summary.successful == 0
    assert second.summary.skipped == second.summary.total == 2
    assert len(product_repo.items) == 2


def test_missing_fields_create_nothing(product_repo):
    uc = CsvIngestUseCase(product_repo)
    raw = (HEADER + ",,,1,,1,2099-01-01,1\nC,,,1,,,2099-01-01,1\n").encode()
    report = asyncio.run(uc.run(raw))

    _check_totals(report)
    assert [e.error for e in report.errors] == [MISSING_FIELDS_MSG, MISSING_FIELDS_MSG]
    assert product_repo.insert_calls == 0


def test_store_failure_is_a_row_error(product_repo):
    product_repo.fail_names = {"Broken"}
    uc = CsvIngestUseCase(product_repo)
    raw = (HEADER + "Broken,,,1,,1,2099-01-01,1\nFine,,,1,,1,2099-01-01,1\n").encode()
    report = asyncio.run(uc.run(raw))

    _check_totals(report)
    assert report.errors[0].line == 2
    assert "connection reset" in report.errors[0].error
    assert [p.name for p in report.successful_products] == ["Fine"]


def test_every_row_failing_still_reports(product_repo):
    uc = CsvIngestUseCase(product_repo)
    raw = (HEADER + "X,,,x,,1,2099-01-01,1\nY,,,1,,1,someday,1\n").encode()
    report = asyncio.run(uc.run(raw))
    assert report.summary.failed == report.summary.total == 2


@pytest.mark.parametrize("raw", [b"", HEADER.encode(), b"\xff\xfe\x00"])
def test_empty_or_unparseable_is_rejected_wholesale(product_repo, raw):
    uc = CsvIngestUseCase(product_repo)
    with pytest.raises(UploadRejected) as ei:
        asyncio.run(uc.run(raw))
    assert ei.value.status_code == 400
    assert product_repo.insert_calls == 0


def test_check_upload_type_and_size(product_repo):
    uc = CsvIngestUseCase(product_repo, max_bytes=100)
    uc.check_upload("stock.csv", "application/octet-stream", 10)
    uc.check_upload("stock", "text/csv; charset=utf-8", 10)

    with pytest.raises(UploadRejected) as ei:
        uc.check_upload("stock.xlsx", "application/vnd.ms-excel", 10)
    assert ei.value.status_code == 400

    with pytest.raises(UploadRejected) as ei:
        uc.check_upload("stock.csv", "text/csv", 101)
    assert ei.value.status_code == 413


def test_report_is_cached(product_repo, status_store):
    uc = CsvIngestUseCase(product_repo, status=status_store)
    report = asyncio.run(uc.run(SCENARIO))
    cached = asyncio.run(status_store.get_ingest_report(report.report_id))
    assert cached["summary"]["total"] == 3
    assert cached["successfulProducts"][0]["name"] == "Milk"


def test_cache_outage_does_not_fail_ingest(product_repo, broken_status_store):
    uc = CsvIngestUseCase(product_repo, status=broken_status_store)
    report = asyncio.run(uc.run(SCENARIO))
    assert report.summary.successful == 1
