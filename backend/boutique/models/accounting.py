from __future__ import annotations

from ..extensions import db
from boutique.time_utils import to_utc_z
from .inventory import _money


class Expense(db.Model):
    """Operating expense (rent, salaries, shipping...). Bookkeeping only."""
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": _money(self.amount),
            "description": self.description,
            "category": self.category,
            "date": to_utc_z(self.date),
        }


class Purchase(db.Model):
    """Stock purchase from a supplier. Does not touch inventory counts."""
    __tablename__ = "purchases"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    supplier = db.Column(db.String(255), nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": _money(self.amount),
            "description": self.description,
            "supplier": self.supplier,
            "date": to_utc_z(self.date),
        }
