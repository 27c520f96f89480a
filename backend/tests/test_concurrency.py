"""
Concurrent sales racing on one variant, against a file-backed SQLite
database so every thread gets its own connection.
"""

import threading

import pytest

from boutique import create_app
from boutique.extensions import db
from boutique.models import Sale
from boutique.services import inventory_service, sales_service
from boutique.services.sales_service import InsufficientInventory

from conftest import make_product, sale_cmd


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.sqlite3'}",
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def _race(app, product_id, workers, quantity):
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(workers)

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                sales_service.create_sale(sale_cmd([(product_id, "black", "M", quantity, "10")]))
                outcome = "ok"
            except InsufficientInventory:
                outcome = "short"
            except Exception as exc:  # surfaced through the assertion below
                outcome = repr(exc)
            finally:
                db.session.remove()
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def test_racing_sales_never_drive_stock_negative(file_app):
    with file_app.app_context():
        pid = make_product("RACE", stock=[("boutique", "black", "M", 5)])["id"]

    results = _race(file_app, pid, workers=12, quantity=1)

    assert set(results) <= {"ok", "short"}, results
    assert results.count("ok") == 5
    assert results.count("short") == 7

    with file_app.app_context():
        assert inventory_service.get_variant_quantity(pid, "boutique", "black", "M") == 0
        assert db.session.query(Sale).count() == 5


def test_racing_multi_unit_sales(file_app):
    with file_app.app_context():
        pid = make_product("RACE2", stock=[("boutique", "black", "M", 7)])["id"]

    results = _race(file_app, pid, workers=6, quantity=2)

    assert results.count("ok") == 3
    with file_app.app_context():
        assert inventory_service.get_variant_quantity(pid, "boutique", "black", "M") == 1
