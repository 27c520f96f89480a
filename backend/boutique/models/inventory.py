from __future__ import annotations

from ..extensions import db
from boutique.time_utils import to_utc_z


def _money(value) -> str | None:
    return None if value is None else f"{value:.2f}"


class Product(db.Model):
    """
    Catalog entry for a garment or accessory.

    Products carry two channel prices; the boutique price applies to
    in-store sales, the online price to the online shop. Stock is never held
    on the product itself, only in ProductInventory rows.

    MODEL NUMBER: unique across the catalog, checked by the service before
    insert (DuplicateModelNumber) and backed by a unique constraint.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("model_number", name="uq_products_model_number"),
        db.Index("ix_products_company_type", "company_name", "product_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    model_number = db.Column(db.String(64), nullable=False)
    company_name = db.Column(db.String(255), nullable=False)
    product_type = db.Column(db.String(64), nullable=False)

    store_price = db.Column(db.Numeric(10, 2), nullable=False)
    online_price = db.Column(db.Numeric(10, 2), nullable=False)

    image_url = db.Column(db.String(1024), nullable=True)
    specifications = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} model_number={self.model_number!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "model_number": self.model_number,
            "company_name": self.company_name,
            "product_type": self.product_type,
            "store_price": _money(self.store_price),
            "online_price": _money(self.online_price),
            "image_url": self.image_url,
            "specifications": self.specifications,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
        }


class ProductInventory(db.Model):
    """
    One stock counter per (product, store partition, color, size).

    Rows are only mutated through inventory_service, which applies deltas as
    SQL expressions (quantity = quantity + :delta) so that no caller ever
    writes back a quantity it read earlier.
    """
    __tablename__ = "product_inventory"
    __table_args__ = (
        db.UniqueConstraint(
            "product_id", "store_type", "color", "size",
            name="uq_inventory_product_store_variant",
        ),
        db.Index("ix_inventory_product_store", "product_id", "store_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # 'online' or 'boutique'; the two partitions never exchange stock
    store_type = db.Column(db.String(16), nullable=False)
    color = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(32), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("inventory_rows", lazy=True))

    def __repr__(self) -> str:
        return (
            f"<ProductInventory product_id={self.product_id} store_type={self.store_type} "
            f"color={self.color!r} size={self.size!r} quantity={self.quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "store_type": self.store_type,
            "color": self.color,
            "size": self.size,
            "quantity": self.quantity,
        }
