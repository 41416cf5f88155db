"""
Backup export/restore, data reset and backup settings.
"""

import json

import pytest

from boutique.models import BackupFrequency, PaymentStatus, UserRole
from boutique.services import auth_service, backup_service
from boutique.services.backup_service import BackupError
from boutique.validation import ValidationError


@pytest.fixture
def busy_shop(shop, line):
    admin = shop.add_user("Amina", UserRole.ADMIN, "1234")
    order = shop.create_order("c1", [line(quantity=2), line("p2", 1, 5000, "M", "Rouge")],
                              payment_status=PaymentStatus.PAID, notes="Livraison samedi")
    shop.create_return(order.id, [line(quantity=1)], refund_amount=1000)
    po = shop.add_purchase_order("sup1", [{"productId": "p1", "quantity": 4, "purchasePrice": 600}])
    shop.add_supplier_payment(po.id, 600)
    shop.login(admin.id, "1234")
    return shop


def test_export_then_restore_reproduces_the_document(busy_shop):
    exported = busy_shop.export_data()
    text = json.dumps(exported)

    restored = backup_service.parse_backup(text)

    assert restored.to_document() == exported
    assert restored.current_user is None
    assert "currentUser" not in exported


def test_restore_replaces_state_and_logs_out(busy_shop, store):
    backup = busy_shop.export_data()
    busy_shop.add_category("Bijoux")

    busy_shop.restore_data(backup)

    assert "Bijoux" not in store.state.categories
    assert store.state.current_user is None
    assert store.state.to_document() == backup


def test_restore_rejects_garbage(shop):
    before = shop.state
    with pytest.raises(BackupError):
        shop.restore_data("{not json")
    with pytest.raises(BackupError):
        shop.restore_data({"orders": "nope"})
    assert shop.state is before


@pytest.mark.parametrize("document", [
    {"orders": [1]},
    {"products": ["Robe"]},
    {"orders": [{"id": "o1", "items": [1]}]},
    {"products": [{"id": "x", "variants": ["M"]}]},
    {"backupSettings": "daily"},
    {"categories": 3},
])
def test_restore_rejects_entries_of_the_wrong_shape(shop, document):
    before = shop.state
    with pytest.raises(BackupError):
        shop.restore_data(json.dumps(document))
    assert shop.state is before


def test_restore_fills_defaults_and_normalises_numbers(shop):
    shop.restore_data({
        "products": [{"id": "x", "name": "Foulard", "sellingPrice": "1500", "stock": 3.0}],
        "orders": [{
            "id": "o1", "date": "2026-02-01T09:00:00.000Z", "clientId": "c1",
            "items": [{"productId": "x", "quantity": "2", "price": 1500}],
            "total": 3000, "paidAmount": 0, "paymentStatus": "En attente", "deliveryStatus": "En préparation",
        }],
    })

    state = shop.state
    assert state.product("x").selling_price == 1500
    assert state.product("x").stock == 3
    assert state.order("o1").items[0].quantity == 2
    assert state.order("o1").date.year == 2026
    assert state.returns == () and state.users == ()
    assert state.categories == ("Vêtements", "Accessoires", "Chaussures")
    assert state.backup_settings.time == "22:00"


def test_legacy_plain_pins_are_hashed_on_restore(shop):
    shop.restore_data({"users": [{"id": "user1", "name": "Amina", "pin": "1234", "role": "Admin"}]})

    user = shop.state.user("user1")
    assert user.pin_hash != "1234"
    assert auth_service.verify_pin("1234", user.pin_hash)
    assert shop.login("user1", "1234") is True


def test_reset_keeps_users_categories_and_settings(busy_shop, store):
    busy_shop.add_category("Bijoux")
    busy_shop.update_backup_settings({"enabled": True, "frequency": "weekly"})

    busy_shop.reset_all_data()

    state = store.state
    assert state.products == () and state.orders == () and state.payments == ()
    assert state.purchase_orders == () and state.returns == () and state.clients == ()
    assert [u.name for u in state.users] == ["Amina"]
    assert "Bijoux" in state.categories
    assert state.backup_settings.enabled is True
    assert state.current_user is None


def test_backup_settings_merge_and_validate(shop):
    shop.update_backup_settings({"enabled": True, "frequency": BackupFrequency.WEEKLY.value, "time": "06:15"})

    settings = shop.state.backup_settings
    assert settings.enabled is True
    assert settings.frequency == BackupFrequency.WEEKLY
    assert settings.time == "06:15"

    with pytest.raises(ValidationError):
        shop.update_backup_settings({"time": "25:00"})
    with pytest.raises(ValidationError):
        shop.update_backup_settings({"frequency": "hourly"})
    assert shop.state.backup_settings == settings


def test_last_backup_timestamp(shop):
    shop.update_last_backup_timestamp(1767225600000)
    assert shop.state.backup_settings.last_backup_timestamp == 1767225600000

    with pytest.raises(BackupError):
        shop.update_last_backup_timestamp(0)
