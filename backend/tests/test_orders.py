"""
Order lifecycle: creation, editing, delivery, cancellation and archiving.
"""

import pytest

from boutique.models import DeliveryStatus, PaymentStatus, UserRole
from boutique.services import auth_service
from boutique.services.inventory_service import InventoryError
from boutique.services.order_service import OrderError


def _product(shop, product_id):
    return shop.state.product(product_id)


def test_create_order_reserves_stock_and_starts_in_preparation(shop, line):
    order = shop.create_order("c1", [line(quantity=3)])

    assert order.total == 3000
    assert order.paid_amount == 0
    assert order.payment_status == PaymentStatus.PENDING
    assert order.delivery_status == DeliveryStatus.PREPARING
    assert _product(shop, "p1").stock == 7
    assert shop.state.orders[0].id == order.id
    assert [m.description for m in order.modification_history] == ["Commande créée."]
    assert order.modification_history[0].user == "Système"


def test_create_order_paid_at_checkout_records_one_payment(shop, line):
    order = shop.create_order("c1", [line(quantity=2)], payment_status=PaymentStatus.PAID, discount=500)

    assert order.total == 1500
    assert order.paid_amount == 1500
    assert order.payment_status == PaymentStatus.PAID
    payments = shop.state.payments_for_order(order.id)
    assert len(payments) == 1
    assert payments[0].amount == 1500
    assert payments[0].method.value == "Espèces"
    assert len(order.modification_history) == 2


def test_create_order_decrements_matching_variant(shop, line):
    shop.create_order("c1", [line("p2", quantity=2, price=5000, size="M", color="Rouge")])

    product = _product(shop, "p2")
    assert product.stock == 3
    assert product.variants[0].quantity == 1
    assert product.variants[1].quantity == 2
    assert product.stock == product.variant_stock


@pytest.mark.parametrize("items, error", [
    ([], OrderError),
    ([{"productId": "p1", "quantity": 0, "price": 1000}], OrderError),
    ([{"productId": "missing", "quantity": 1, "price": 1000}], InventoryError),
    ([{"productId": "p2", "quantity": 1, "price": 5000}], InventoryError),
    ([{"productId": "p2", "quantity": 1, "price": 5000, "size": "XL", "color": "Vert"}], InventoryError),
    ([{"productId": "p1", "quantity": 1, "price": 1000, "size": "M"}], InventoryError),
])
def test_create_order_rejections_leave_state_unchanged(shop, items, error):
    before = shop.state
    with pytest.raises(error):
        shop.create_order("c1", items)
    assert shop.state is before


def test_discount_cannot_swallow_the_total(shop, line):
    with pytest.raises(OrderError):
        shop.create_order("c1", [line(quantity=1)], discount=1000)


def test_oversell_is_allowed_but_blocks_delivery(shop, line):
    order = shop.create_order("c1", [line(quantity=12)])
    assert _product(shop, "p1").stock == -2

    with pytest.raises(OrderError, match="negative stock"):
        shop.update_order_delivery_status(order.id, DeliveryStatus.DELIVERED)
    assert shop.state.order(order.id).delivery_status == DeliveryStatus.PREPARING

    assert shop.update_order_delivery_status(order.id, DeliveryStatus.OUT_OF_STOCK) is True
    assert shop.state.order(order.id).delivery_status == DeliveryStatus.OUT_OF_STOCK


def test_delivery_status_updates(shop, line):
    order = shop.create_order("c1", [line(quantity=1)])

    assert shop.update_order_delivery_status(order.id, "Livrée") is True
    updated = shop.state.order(order.id)
    assert updated.delivery_status == DeliveryStatus.DELIVERED
    assert updated.modification_history[-1].description == "Statut de livraison mis à jour à 'Livrée'."

    # Unchanged status is a no-op
    assert shop.update_order_delivery_status(order.id, "Livrée") is False
    # Cancellation/return statuses have their own operations
    with pytest.raises(OrderError):
        shop.update_order_delivery_status(order.id, DeliveryStatus.RETURNED)


def test_update_order_applies_net_stock_delta(shop, line):
    order = shop.create_order("c1", [line(quantity=3)])
    shop.add_payment(order.id, 1000)

    assert shop.update_order(order.id, "c1", [line(quantity=5), line("p2", 1, 5000, "L", "Bleu")]) is True

    updated = shop.state.order(order.id)
    assert updated.total == 10000
    assert updated.paid_amount == 1000
    assert updated.payment_status == PaymentStatus.PARTIALLY_PAID
    assert _product(shop, "p1").stock == 5
    assert _product(shop, "p2").stock == 4
    assert _product(shop, "p2").variants[1].quantity == 1


def test_update_order_requires_items_and_covers_paid_amount(shop, line):
    order = shop.create_order("c1", [line(quantity=3)], payment_status=PaymentStatus.PAID)

    with pytest.raises(OrderError):
        shop.update_order(order.id, "c1", [])
    with pytest.raises(OrderError, match="below the amount already paid"):
        shop.update_order(order.id, "c1", [line(quantity=1)])
    assert _product(shop, "p1").stock == 7


def test_update_order_to_a_higher_total_unpays_it(shop, line):
    order = shop.create_order("c1", [line(quantity=1)], payment_status=PaymentStatus.PAID)

    shop.update_order(order.id, "c1", [line(quantity=2)])

    assert shop.state.order(order.id).payment_status == PaymentStatus.PARTIALLY_PAID


def test_cancel_scenario_requires_payments_to_be_deleted_first(shop, line):
    order = shop.create_order("c1", [line(quantity=3)])
    assert order.total == 3000
    assert order.payment_status == PaymentStatus.PENDING
    assert _product(shop, "p1").stock == 7

    payment = shop.add_payment(order.id, 3000)
    assert shop.state.order(order.id).payment_status == PaymentStatus.PAID

    before = shop.state
    with pytest.raises(OrderError, match="Impossible d'annuler"):
        shop.cancel_order(order.id)
    assert shop.state is before

    assert shop.delete_payment(payment.id) is True
    reopened = shop.state.order(order.id)
    assert reopened.paid_amount == 0
    assert reopened.payment_status == PaymentStatus.PENDING

    assert shop.cancel_order(order.id) is True
    cancelled = shop.state.order(order.id)
    assert cancelled.payment_status == PaymentStatus.CANCELLED
    assert cancelled.delivery_status == DeliveryStatus.CANCELLED
    assert _product(shop, "p1").stock == 10


def test_cancel_restores_variants_and_every_line(shop, line, seeded_state):
    order = shop.create_order("c1", [
        line(quantity=2),
        line("p2", 1, 5000, "M", "Rouge"),
        line("p2", 1, 5000, "M", "Rouge"),
    ])

    shop.cancel_order(order.id)

    assert shop.state.products == seeded_state.products
    with pytest.raises(OrderError):
        shop.cancel_order(order.id)


def test_cancelled_orders_are_frozen(shop, line):
    order = shop.create_order("c1", [line(quantity=1)])
    shop.cancel_order(order.id)

    with pytest.raises(OrderError):
        shop.update_order(order.id, "c1", [line(quantity=2)])
    with pytest.raises(OrderError):
        shop.update_order_delivery_status(order.id, DeliveryStatus.DELIVERED)


def test_archive_and_unarchive(shop, line):
    order = shop.create_order("c1", [line(quantity=1)])

    assert shop.archive_order(order.id) is True
    assert shop.state.order(order.id).is_archived is True
    assert shop.archive_order(order.id) is False
    assert shop.unarchive_order(order.id) is True

    history = [m.description for m in shop.state.order(order.id).modification_history]
    assert history[-2:] == ["Commande archivée.", "Commande désarchivée."]


def test_unknown_order_is_a_lookup_miss(shop, line):
    before = shop.state
    assert shop.update_order("nope", "c1", [line()]) is False
    assert shop.cancel_order("nope") is False
    assert shop.update_order_delivery_status("nope", DeliveryStatus.DELIVERED) is False
    assert shop.state is before


def test_history_uses_the_logged_in_operator(shop, line, store):
    user = shop.add_user("Amina", UserRole.ADMIN, "1234")
    assert shop.login(user.id, "1234") is True

    order = shop.create_order("c1", [line()])

    assert order.modification_history[0].user == "Amina"
    assert auth_service.verify_pin("1234", store.state.current_user.pin_hash)
