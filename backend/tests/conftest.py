"""
Pytest fixtures for boutique backend tests.

Provides test database setup, catalog fixtures, command builders and test client.
"""

from decimal import Decimal

import pytest

from boutique import create_app
from boutique.commands import (
    InventoryLine,
    ReturnCommand,
    ReturnItemCommand,
    SaleCommand,
    SaleItemCommand,
)
from boutique.extensions import db
from boutique.services import products_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STRICT_EXCHANGE_STOCK': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        db.session.remove()


@pytest.fixture(scope='function')
def strict_exchanges(app, monkeypatch):
    """Harden exchange replacement debits for the duration of one test."""
    monkeypatch.setitem(app.config, 'STRICT_EXCHANGE_STOCK', True)


def make_product(model_number="P1", stock=(), **fields):
    """
    Create a product through the catalog service.

    stock: iterable of (store_type, color, size, quantity).
    """
    patch = {
        "model_number": model_number,
        "company_name": "Maison Test",
        "product_type": "dress",
        "store_price": Decimal("100.00"),
        "online_price": Decimal("95.00"),
    }
    patch.update(fields)
    lines = [InventoryLine(*row) for row in stock]
    return products_service.create_product(patch=patch, inventory=lines)


def sale_cmd(items, *, store_type="boutique", payment_method="cash", channel=None, subtotal=None, **header):
    """
    Build a SaleCommand.

    items: iterable of (product_id, color, size, quantity, unit_price).
    """
    if channel is None:
        channel = "online" if store_type == "online" else "in-store"
    return SaleCommand(
        channel=channel,
        payment_method=payment_method,
        store_type=store_type,
        customer_name=header.pop("customer_name", "Layla"),
        customer_phone=header.pop("customer_phone", "0100000000"),
        items=tuple(
            SaleItemCommand(pid, color, size, qty, Decimal(str(price)))
            for pid, color, size, qty, price in items
        ),
        subtotal=Decimal(str(subtotal)) if subtotal is not None else None,
        **header,
    )


def return_cmd(sale_id, items, *, return_type="refund", **header):
    """
    Build a ReturnCommand.

    items: iterable of (product_id, color, size, quantity).
    """
    refund = header.pop("refund_amount", None)
    return ReturnCommand(
        original_sale_id=sale_id,
        return_type=return_type,
        items=tuple(ReturnItemCommand(*row) for row in items),
        refund_amount=Decimal(str(refund)) if refund is not None else None,
        **header,
    )


@pytest.fixture(scope='function')
def dress(db_session):
    """Product P1 with (black, M) stocked at 5 in the boutique."""
    return make_product("P1", stock=[("boutique", "black", "M", 5)])
