# Overview: Flask CLI commands to bootstrap, back up and inspect the stored shop document.

# backend/boutique/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "boutique:create_app".
# - Use: python -m flask shop <command> [options]
#
# - python -m flask shop init [--name "Admin"] [--pin 1234]
#   Create the document if missing and seed an Admin user when there is none.
# - python -m flask shop export backup.json
#   Write the stored document to a backup file.
# - python -m flask shop restore backup.json
#   Replace the stored document with a backup file.
# - python -m flask shop reset --yes
#   Wipe catalogue and transactions; keeps users, categories and backup settings.
# - python -m flask shop low-stock
#   List low-stock products and the suggested reorder quantities per supplier.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import UserRole
from .services import backup_service, document_service, purchase_service
from .services.auth_service import AuthError
from .store import ShopStore
from .store.facade import ShopActions
from .validation import ValidationError


def _open_store() -> ShopActions:
    key = current_app.config["BOUTIQUE_DATA_KEY"]
    return ShopActions(ShopStore(document_service.load_state(key)))


def _commit(actions: ShopActions) -> None:
    document_service.save_state(current_app.config["BOUTIQUE_DATA_KEY"], actions.state)


@click.group('shop')
def shop_group():
    """Shop document bootstrap, backup and inspection commands."""


@shop_group.command('init')
@click.option('--name', default='Admin', help='Name of the first Admin user')
@click.option('--pin', default='1234', help='PIN of the first Admin user (4-8 digits)')
@with_appcontext
def init_shop(name, pin):
    """
    Create tables, the shop document and a first Admin user. Idempotent.

    SECURITY: Change the default PIN immediately!
    """
    db.create_all()
    actions = _open_store()
    if actions.state.users:
        click.echo(f"PASS Using existing users: {', '.join(u.name for u in actions.state.users)}")
    else:
        try:
            user = actions.add_user(name, UserRole.ADMIN, pin)
        except AuthError as exc:
            raise click.ClickException(str(exc))
        click.echo(f"PASS Created Admin user: {user.name} (ID: {user.id})")
    _commit(actions)
    click.echo(f"PASS Categories: {', '.join(actions.state.categories)}")


@shop_group.command('export')
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_shop(path):
    """Write the stored document to PATH as a JSON backup."""
    actions = _open_store()
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(backup_service.export_json(actions.state))
    click.echo(f"PASS Exported {len(actions.state.products)} products, {len(actions.state.orders)} orders to {path}")


@shop_group.command('restore')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def restore_shop(path, yes):
    """Replace the stored document with the backup in PATH."""
    if not yes:
        click.confirm("WARN This will REPLACE all shop data. Are you sure?", abort=True)
    with open(path, "r", encoding="utf-8") as handle:
        payload = handle.read()
    actions = _open_store()
    try:
        actions.restore_data(payload)
    except ValidationError as exc:
        raise click.ClickException(str(exc))
    _commit(actions)
    click.echo(f"PASS Restored {len(actions.state.products)} products, {len(actions.state.orders)} orders")


@shop_group.command('reset')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_shop(yes):
    """
    Clear catalogue and transactional data.

    Keeps: users, categories and backup settings.
    """
    if not yes:
        click.confirm("WARN This will DELETE all products, clients and orders. Are you sure?", abort=True)
    actions = _open_store()
    actions.reset_all_data()
    _commit(actions)
    click.echo("PASS Shop data reset.")


@shop_group.command('low-stock')
@with_appcontext
def low_stock():
    """List low-stock products grouped by supplier with reorder suggestions."""
    state = _open_store().state
    suggestions = purchase_service.replenishment_suggestions(state)
    if not suggestions:
        click.echo("PASS No low-stock product with a supplier.")
    for supplier_id, lines in suggestions.items():
        supplier = state.supplier(supplier_id)
        click.echo(f"\n{supplier.company_name if supplier else supplier_id}")
        for product, quantity in lines:
            click.echo(f"  {product.name:<30} stock {product.stock:>5} / alert {product.alert_threshold:>5}  -> order {quantity}")
    orphans = [p for p in state.products if p.is_low_stock and not p.supplier_id]
    if orphans:
        click.echo("\nWARN Low stock without supplier: " + ", ".join(p.name for p in orphans))


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(shop_group)
