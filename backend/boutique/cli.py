# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/boutique/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Prefer `flask db upgrade` once migrations are in use.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Load two demo products with stock in both store partitions.
#
# Inventory inspection/repair:
# - python -m flask inventory show EVE-001 [--store-type boutique]
#   Print the variant grid of a product.
# - python -m flask inventory set EVE-001 boutique black 38 12
#   Set the absolute quantity of one variant (stock count correction).

import click
from flask.cli import with_appcontext

from .commands import InventoryLine
from .constants import STORE_TYPE_BOUTIQUE, STORE_TYPE_ONLINE, STORE_TYPES
from .extensions import db
from .services import inventory_service, products_service

DEMO_COLORS = ("black", "white", "red", "blue", "green", "pink")
DEMO_SIZES = ("36", "38", "40", "42", "44", "46", "48", "50")

DEMO_PRODUCTS = (
    {
        "model_number": "EVE-001",
        "company_name": "Haute Couture House",
        "product_type": "evening-wear",
        "store_price": "890.00",
        "online_price": "850.00",
        "specifications": "Elegant evening dress in premium fabric",
    },
    {
        "model_number": "HIJ-025",
        "company_name": "Luxury Hijab Co.",
        "product_type": "hijab",
        "store_price": "150.00",
        "online_price": "140.00",
        "specifications": "Premium silk hijab",
    },
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create any missing tables."""
    db.create_all()
    click.echo("PASS Database tables ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for sample data.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Create the demo catalog; products that already exist are skipped."""
    from decimal import Decimal

    db.create_all()
    for index, fields in enumerate(DEMO_PRODUCTS):
        if products_service.get_product_by_model_number(fields["model_number"]) is not None:
            click.echo(f"SKIP {fields['model_number']} already exists")
            continue

        lines = []
        for c, color in enumerate(DEMO_COLORS):
            for s, size in enumerate(DEMO_SIZES):
                # Deterministic spread so some variants start low
                base = (c * len(DEMO_SIZES) + s + index * 7) % 17
                lines.append(InventoryLine(STORE_TYPE_ONLINE, color, size, base + 1))
                lines.append(InventoryLine(STORE_TYPE_BOUTIQUE, color, size, (base * 3) % 13 + 1))

        patch = dict(fields)
        patch["store_price"] = Decimal(patch["store_price"])
        patch["online_price"] = Decimal(patch["online_price"])
        created = products_service.create_product(patch=patch, inventory=lines)
        click.echo(
            f"PASS Created {created['model_number']} (ID: {created['id']}) "
            f"with {len(lines)} variants, {created['total_quantity']} units"
        )


@click.group('inventory')
def inventory_group():
    """Inventory ledger inspection and correction."""


def _product_or_abort(model_number: str):
    product = products_service.get_product_by_model_number(model_number)
    if product is None:
        raise click.ClickException(f"Product {model_number} not found")
    return product


@inventory_group.command('show')
@click.argument('model_number')
@click.option('--store-type', type=click.Choice(STORE_TYPES), help='Restrict to one store partition')
@with_appcontext
def show_inventory(model_number, store_type):
    """Print every variant of a product with its quantity."""
    product = _product_or_abort(model_number)
    rows = inventory_service.list_product_inventory(product.id, store_type)

    click.echo(f"\n{product.model_number} - {product.company_name} ({product.product_type})")
    click.echo("="*60)
    click.echo(f"{'STORE':<10} {'COLOR':<12} {'SIZE':<6} {'QTY':>6}")
    click.echo("-"*60)
    for row in rows:
        flag = "  << NEGATIVE" if row.quantity < 0 else ""
        click.echo(f"{row.store_type:<10} {row.color:<12} {row.size:<6} {row.quantity:>6}{flag}")

    total = sum(row.quantity for row in rows)
    click.echo("-"*60)
    click.echo(f"TOTAL {total} ({inventory_service.stock_status(total)})\n")


@inventory_group.command('set')
@click.argument('model_number')
@click.argument('store_type', type=click.Choice(STORE_TYPES))
@click.argument('color')
@click.argument('size')
@click.argument('quantity', type=click.IntRange(min=0))
@with_appcontext
def set_inventory(model_number, store_type, color, size, quantity):
    """Set the absolute quantity of one variant."""
    product = _product_or_abort(model_number)
    before = inventory_service.get_variant_quantity(product.id, store_type, color, size)
    products_service.set_inventory(
        product_id=product.id,
        lines=[InventoryLine(store_type, color, size, quantity)],
    )
    click.echo(f"PASS {model_number} {color}/{size} ({store_type}): {before} -> {quantity}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
