from __future__ import annotations

from ..extensions import db
from boutique.time_utils import to_utc_z
from .inventory import _money


class Return(db.Model):
    """
    Return or exchange against one original sale.

    RECONCILIATION (applied once, at creation):
    - refund: returned variant credited back to the sale's store partition
    - exchange: returned variant credited, replacement variant debited in the
      same partition. The replacement is described once on the header
      (new_product_id / new_color / new_size) and applies to every item.

    refund_amount is only meaningful for refunds and is stored as 0.00 for
    exchanges.
    """
    __tablename__ = "returns"
    __table_args__ = (
        db.Index("ix_returns_sale_created", "original_sale_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    original_sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    # refund | exchange
    return_type = db.Column(db.String(16), nullable=False, index=True)
    # product-to-product | color-change | size-change (exchanges only)
    exchange_type = db.Column(db.String(32), nullable=True)

    new_product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    new_color = db.Column(db.String(64), nullable=True)
    new_size = db.Column(db.String(32), nullable=True)

    refund_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    original_sale = db.relationship("Sale", backref=db.backref("returns", lazy=True))
    new_product = db.relationship("Product", foreign_keys=[new_product_id])

    def __repr__(self) -> str:
        return f"<Return id={self.id} sale_id={self.original_sale_id} type={self.return_type}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "original_sale_id": self.original_sale_id,
            "return_type": self.return_type,
            "exchange_type": self.exchange_type,
            "new_product_id": self.new_product_id,
            "new_color": self.new_color,
            "new_size": self.new_size,
            "refund_amount": _money(self.refund_amount),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict(include_product=True) for item in self.items]
            data["original_sale"] = self.original_sale.to_dict() if self.original_sale else None
        return data


class ReturnItem(db.Model):
    """A variant handed back by the customer, as it was originally sold."""
    __tablename__ = "return_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(db.Integer, db.ForeignKey("returns.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    color = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    return_doc = db.relationship(
        "Return",
        backref=db.backref("items", lazy=True, order_by="ReturnItem.id"),
    )
    product = db.relationship("Product")

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "return_id": self.return_id,
            "product_id": self.product_id,
            "color": self.color,
            "size": self.size,
            "quantity": self.quantity,
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data
