# Overview: Read-only range queries and aggregates over sales, expenses and purchases.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..constants import CHANNEL_ONLINE, SALES_CHANNELS, STOCK_LOW, STOCK_OUT
from ..extensions import db
from ..models import Expense, Product, ProductInventory, Purchase, Sale
from ..time_utils import day_bounds, end_of_day_if_date, parse_iso_datetime, to_utc_z, utcnow
from ..validation import ValidationError
from .inventory_service import stock_status

ZERO = Decimal("0.00")


def parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """
    Parse query-string bounds. Both are inclusive; a bare date as the end
    bound covers that whole day. Missing bounds leave that side open.
    """
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = end_of_day_if_date(end, parse_iso_datetime(end)) if end else None
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 dates or datetimes", field="start")
    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("start must be before end", field="start")
    return start_dt, end_dt


def _in_range(query, column, start: datetime | None, end: datetime | None):
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column <= end)
    return query


def get_sales_in_range(start: datetime | None, end: datetime | None) -> list[Sale]:
    q = _in_range(db.session.query(Sale), Sale.created_at, start, end)
    return q.order_by(Sale.created_at.asc(), Sale.id.asc()).all()


def get_expenses_in_range(start: datetime | None, end: datetime | None) -> list[Expense]:
    q = _in_range(db.session.query(Expense), Expense.date, start, end)
    return q.order_by(Expense.date.asc(), Expense.id.asc()).all()


def get_purchases_in_range(start: datetime | None, end: datetime | None) -> list[Purchase]:
    q = _in_range(db.session.query(Purchase), Purchase.date, start, end)
    return q.order_by(Purchase.date.asc(), Purchase.id.asc()).all()


def _sum(values) -> Decimal:
    return sum((Decimal(v) for v in values), ZERO)


def sales_summary(start: datetime | None, end: datetime | None) -> dict:
    """
    Sales partitioned by channel with per-channel count, subtotal, fees and
    total, plus the expense and purchase totals over the same range.
    """
    sales = get_sales_in_range(start, end)
    expenses = get_expenses_in_range(start, end)
    purchases = get_purchases_in_range(start, end)

    channels = {}
    for channel in SALES_CHANNELS:
        rows = [s for s in sales if s.channel == channel]
        channels[channel] = {
            "count": len(rows),
            "subtotal": f"{_sum(s.subtotal for s in rows):.2f}",
            "fees": f"{_sum(s.fees for s in rows):.2f}",
            "total": f"{_sum(s.total for s in rows):.2f}",
        }

    sales_total = _sum(s.total for s in sales)
    expenses_total = _sum(e.amount for e in expenses)
    purchases_total = _sum(p.amount for p in purchases)

    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "channels": channels,
        "sales_count": len(sales),
        "sales_total": f"{sales_total:.2f}",
        "expenses_count": len(expenses),
        "expenses_total": f"{expenses_total:.2f}",
        "purchases_count": len(purchases),
        "purchases_total": f"{purchases_total:.2f}",
        "net": f"{sales_total - expenses_total - purchases_total:.2f}",
    }


def dashboard_stats(now: datetime | None = None) -> dict:
    """Headline numbers for the dashboard; "today" is the current UTC day."""
    day_start, day_end = day_bounds((now or utcnow()).date())

    todays_sales = get_sales_in_range(day_start, day_end)

    totals = dict(
        db.session.query(
            Product.id,
            func.coalesce(func.sum(ProductInventory.quantity), 0),
        )
        .outerjoin(ProductInventory, ProductInventory.product_id == Product.id)
        .group_by(Product.id)
        .all()
    )
    statuses = [stock_status(int(qty)) for qty in totals.values()]

    return {
        "total_products": len(totals),
        "todays_sales_count": len(todays_sales),
        "todays_sales_total": f"{_sum(s.total for s in todays_sales):.2f}",
        "todays_online_orders": sum(1 for s in todays_sales if s.channel == CHANNEL_ONLINE),
        "out_of_stock_count": statuses.count(STOCK_OUT),
        "low_stock_count": statuses.count(STOCK_LOW),
    }
