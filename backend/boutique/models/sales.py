from __future__ import annotations

from ..extensions import db
from boutique.time_utils import to_utc_z
from .inventory import _money


class Sale(db.Model):
    """
    A completed sale on one channel.

    Sales are written once, together with their items and the inventory
    debits, inside a single transaction. fees and total are frozen at
    creation time (total = subtotal + fees) and never recomputed from the
    current fee rules.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_sales_invoice_number"),
        db.Index("ix_sales_channel_created", "channel", "created_at"),
        db.Index("ix_sales_store_type_created", "store_type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable invoice number (e.g., "INV-1767225600000")
    invoice_number = db.Column(db.String(64), nullable=False)

    channel = db.Column(db.String(16), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    store_type = db.Column(db.String(16), nullable=False)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(64), nullable=False)
    employee = db.Column(db.String(120), nullable=True)

    # Online only
    tracking_number = db.Column(db.String(128), nullable=True)
    order_status = db.Column(db.String(32), nullable=True)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    fees = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def __repr__(self) -> str:
        return f"<Sale id={self.id} invoice={self.invoice_number!r} total={self.total}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "channel": self.channel,
            "payment_method": self.payment_method,
            "store_type": self.store_type,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "employee": self.employee,
            "tracking_number": self.tracking_number,
            "order_status": self.order_status,
            "subtotal": _money(self.subtotal),
            "fees": _money(self.fees),
            "total": _money(self.total),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict(include_product=True) for item in self.items]
        return data


class SaleItem(db.Model):
    """Individual line items on a sale; the variant sold and its price."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    color = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    sale = db.relationship(
        "Sale",
        backref=db.backref("items", lazy=True, order_by="SaleItem.id"),
    )
    product = db.relationship("Product")

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "color": self.color,
            "size": self.size,
            "quantity": self.quantity,
            "unit_price": _money(self.unit_price),
            "total_price": _money(self.total_price),
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data
