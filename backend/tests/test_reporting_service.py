from datetime import datetime, timedelta

import pytest

from boutique.services import accounting_service, reporting_service, sales_service
from boutique.time_utils import utcnow
from boutique.validation import ValidationError

from conftest import make_product, sale_cmd


def _sale_at(db_session, pid, when, **kwargs):
    sale = sales_service.create_sale(sale_cmd([(pid, "black", "M", 1, "100")], **kwargs))
    sale.created_at = when
    db_session.commit()
    return sale


@pytest.fixture
def stocked(db_session):
    return make_product("R1", stock=[("boutique", "black", "M", 50), ("online", "black", "M", 50)])["id"]


def test_sales_range_is_inclusive(db_session, stocked):
    first = _sale_at(db_session, stocked, datetime(2026, 3, 1, 0, 0, 0))
    middle = _sale_at(db_session, stocked, datetime(2026, 3, 2, 12, 0, 0))
    last = _sale_at(db_session, stocked, datetime(2026, 3, 3, 0, 0, 0))
    _sale_at(db_session, stocked, datetime(2026, 3, 4, 0, 0, 0))

    found = reporting_service.get_sales_in_range(datetime(2026, 3, 1), datetime(2026, 3, 3))

    assert [s.id for s in found] == [first.id, middle.id, last.id]


def test_bare_end_date_covers_the_whole_day(db_session, stocked):
    late = _sale_at(db_session, stocked, datetime(2026, 3, 3, 23, 30, 0))

    start, end = reporting_service.parse_range("2026-03-03", "2026-03-03")
    assert [s.id for s in reporting_service.get_sales_in_range(start, end)] == [late.id]


def test_open_ended_ranges(db_session, stocked):
    old = _sale_at(db_session, stocked, datetime(2025, 1, 1))
    new = _sale_at(db_session, stocked, datetime(2026, 6, 1))

    assert [s.id for s in reporting_service.get_sales_in_range(None, None)] == [old.id, new.id]
    assert [s.id for s in reporting_service.get_sales_in_range(datetime(2026, 1, 1), None)] == [new.id]


def test_parse_range_rejects_garbage_and_reversed_bounds():
    with pytest.raises(ValidationError):
        reporting_service.parse_range("yesterday", None)
    with pytest.raises(ValidationError):
        reporting_service.parse_range("2026-03-05", "2026-03-01")


def test_expenses_and_purchases_in_range(db_session):
    inside = accounting_service.create_expense(
        {"amount": "1500", "description": "Rent", "category": "rent", "date": "2026-03-01T09:00:00Z"}
    )
    accounting_service.create_expense(
        {"amount": "80", "description": "Courier", "category": "shipping", "date": "2026-04-01T09:00:00Z"}
    )
    purchase = accounting_service.create_purchase(
        {"amount": "4000", "description": "Silk bolts", "supplier": "Damascus Textiles", "date": "2026-03-10"}
    )

    start, end = reporting_service.parse_range("2026-03-01", "2026-03-31")
    assert [e.id for e in reporting_service.get_expenses_in_range(start, end)] == [inside.id]
    assert [p.id for p in reporting_service.get_purchases_in_range(start, end)] == [purchase.id]


def test_summary_partitions_by_channel(db_session, stocked):
    day = datetime(2026, 5, 5, 10, 0, 0)
    _sale_at(db_session, stocked, day)
    _sale_at(db_session, stocked, day, payment_method="visa")
    _sale_at(db_session, stocked, day, store_type="online", payment_method="bank-transfer")
    accounting_service.create_expense(
        {"amount": "50", "description": "Tape", "category": "supplies", "date": "2026-05-05T08:00:00Z"}
    )

    summary = reporting_service.sales_summary(datetime(2026, 5, 5), datetime(2026, 5, 5, 23, 59, 59))

    assert summary["channels"]["in-store"] == {
        "count": 2, "subtotal": "200.00", "fees": "5.00", "total": "205.00",
    }
    assert summary["channels"]["online"]["count"] == 1
    assert summary["channels"]["online"]["total"] == "100.00"
    assert summary["sales_total"] == "305.00"
    assert summary["expenses_total"] == "50.00"
    assert summary["net"] == "255.00"


def test_dashboard_stats(db_session, stocked):
    make_product("EMPTY", stock=[("boutique", "white", "S", 0)])
    make_product("LOW", stock=[("online", "white", "S", 3)])
    _sale_at(db_session, stocked, utcnow(), store_type="online", payment_method="cash-on-delivery")
    _sale_at(db_session, stocked, utcnow() - timedelta(days=3))

    stats = reporting_service.dashboard_stats()

    assert stats["total_products"] == 3
    assert stats["todays_sales_count"] == 1
    assert stats["todays_sales_total"] == "100.00"
    assert stats["todays_online_orders"] == 1
    assert stats["out_of_stock_count"] == 1
    assert stats["low_stock_count"] == 1
