# Overview: Service-layer operations for client orders; keeps stock and payments consistent.

"""
Order Service

An order and the stock it consumes change together: every function that
alters an order's item set (create, edit, cancel) computes the matching
StockAdjustment and returns ONE action carrying both the new order and the
adjusted products.

LIFECYCLE:
- create: stock reserved optimistically (may go negative), optional
  immediate full payment
- edit: net stock delta between old and new lines; paid amount unchanged,
  payment status re-derived against the new total
- delivery: 'Livrée' refused while any line's stock is negative
- cancel: only when nothing is paid; restocks every line
- archive/unarchive: visibility flag only
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from boutique.models import (
    MANUAL_DELIVERY_STATUSES,
    DeliveryStatus,
    Order,
    OrderItem,
    Payment,
    PaymentMethod,
    PaymentStatus,
    ShopState,
)
from boutique.models.statuses import parse_enum
from boutique.services.history_service import format_fcfa, history_entry
from boutique.services.identifier_service import generate_unique_id
from boutique.services.inventory_service import (
    StockAdjustment,
    find_negative_stock,
    validate_sale_lines,
)
from boutique.services.payment_service import derive_payment_status, has_refund
from boutique.store.actions import (
    OrderArchiveToggled,
    OrderCancelled,
    OrderCreated,
    OrderDeliveryStatusUpdated,
    OrderUpdated,
)
from boutique.time_utils import utcnow
from boutique.validation import ValidationError, as_amount, as_optional_str, as_str


class OrderError(ValidationError):
    """Raised for order operation errors."""
    pass


# Delivery status given to new orders.
INITIAL_DELIVERY_STATUS = DeliveryStatus.PREPARING

# Statuses accepted at checkout; anything else is derived later.
CHECKOUT_PAYMENT_STATUSES = (PaymentStatus.PAID, PaymentStatus.PENDING)


def _coerce_items(items: Iterable) -> tuple[OrderItem, ...]:
    lines = tuple(OrderItem.coerce(item) for item in items or ())
    if not lines:
        raise OrderError("An order needs at least one item")
    for line in lines:
        if not line.product_id:
            raise OrderError("Each item needs a productId")
        if line.quantity <= 0:
            raise OrderError("Item quantities must be positive")
        if line.price < 0:
            raise OrderError("Item prices cannot be negative")
    return lines


def compute_total(items: Iterable[OrderItem], discount: int) -> int:
    """total = sum(price x quantity) - discount"""
    return sum(item.line_total for item in items) - discount


def _checked_total(lines: tuple[OrderItem, ...], discount) -> tuple[int, int]:
    discount = as_amount(discount, "discount")
    if discount < 0:
        raise OrderError("Discount cannot be negative")
    total = compute_total(lines, discount)
    if total <= 0:
        raise OrderError("Discount cannot cover the whole order")
    return discount, total


def create_order(state: ShopState, client_id: str, items: Iterable,
                 payment_status=PaymentStatus.PENDING, discount=0, notes: str | None = None,
                 *, payment_method=PaymentMethod.CASH, user: str | None = None,
                 now: datetime | None = None) -> OrderCreated:
    """
    Checkout: build the order, decrement stock for every line and, when the
    order is paid at once, the matching payment row.

    Raises:
        OrderError: no items, bad quantities/prices, discount too large
        InventoryError: unknown product or variant
    """
    lines = _coerce_items(items)
    validate_sale_lines(state, lines)
    discount, total = _checked_total(lines, discount)
    payment_status = parse_enum(PaymentStatus, payment_status, "paymentStatus")
    if payment_status not in CHECKOUT_PAYMENT_STATUSES:
        raise OrderError(f"An order cannot be created as '{payment_status.value}'")
    payment_method = parse_enum(PaymentMethod, payment_method, "method")

    now = now or utcnow()
    user = user or state.acting_user_name
    paid_now = payment_status == PaymentStatus.PAID

    history = [history_entry(user, "Commande créée.", now)]
    if paid_now:
        history.append(history_entry(
            user, f"Commande marquée comme payée à la création pour {format_fcfa(total)}.", now
        ))

    order = Order(
        id=generate_unique_id("ord"),
        date=now,
        client_id=as_str(client_id),
        items=lines,
        total=total,
        paid_amount=total if paid_now else 0,
        discount=discount,
        payment_status=derive_payment_status(total if paid_now else 0, total),
        delivery_status=INITIAL_DELIVERY_STATUS,
        notes=as_optional_str(notes),
        modification_history=tuple(history),
        is_archived=False,
    )

    payments = ()
    if paid_now:
        payments = (Payment(
            id=generate_unique_id("pay"),
            order_id=order.id,
            date=now,
            amount=total,
            method=payment_method,
        ),)

    products = StockAdjustment().add_lines(lines, sign=-1).apply(state.products)
    return OrderCreated(order=order, products=products, payments=payments)


def update_order(state: ShopState, order_id: str, client_id: str, items: Iterable,
                 discount=0, notes: str | None = None,
                 *, user: str | None = None, now: datetime | None = None) -> OrderUpdated | None:
    """
    Replace the client, lines, discount and notes of an order.

    Stock moves by the net difference per product/variant between the old
    and the new lines. The paid amount is kept; the payment status is
    re-derived against the new total.
    """
    order = state.order(order_id)
    if order is None:
        return None
    if order.is_cancelled:
        raise OrderError(f"Order {order.id} is cancelled and cannot be edited")
    if state.returns_for_order(order.id):
        raise OrderError(f"Order {order.id} has returns and cannot be edited")

    lines = _coerce_items(items)
    validate_sale_lines(state, lines)
    discount, total = _checked_total(lines, discount)
    if total < order.paid_amount:
        raise OrderError(
            f"New total {format_fcfa(total)} is below the amount already paid "
            f"({format_fcfa(order.paid_amount)}); delete or edit payments first"
        )

    adjustment = StockAdjustment().add_lines(order.items, sign=1).add_lines(lines, sign=-1)
    products = adjustment.apply(state.products)

    now = now or utcnow()
    user = user or state.acting_user_name
    updated = replace(
        order,
        client_id=as_str(client_id),
        items=lines,
        discount=discount,
        notes=as_optional_str(notes),
        total=total,
        payment_status=derive_payment_status(order.paid_amount, total, refunded=has_refund(state, order)),
        modification_history=order.with_history(history_entry(
            user, "Détails de la commande (client/articles/remise) mis à jour.", now
        )),
    )
    return OrderUpdated(order=updated, products=products)


def update_order_delivery_status(state: ShopState, order_id: str, status,
                                 *, user: str | None = None,
                                 now: datetime | None = None) -> OrderDeliveryStatusUpdated | None:
    """
    Set a manually chosen delivery status.

    'Livrée' is refused while any line's product or variant stock is negative;
    cancellation and return statuses have their own operations, and an order
    with returns keeps the status its returns gave it.
    """
    order = state.order(order_id)
    if order is None:
        return None
    status = parse_enum(DeliveryStatus, status, "deliveryStatus")
    if order.is_cancelled:
        raise OrderError(f"Order {order.id} is cancelled")
    if state.returns_for_order(order.id):
        raise OrderError(f"Order {order.id} has returns; its delivery status follows the returns")
    if status not in MANUAL_DELIVERY_STATUSES:
        raise OrderError(f"Delivery status '{status.value}' is set by cancellation or returns only")
    if status == DeliveryStatus.DELIVERED:
        shortages = find_negative_stock(state, order.items)
        if shortages:
            raise OrderError("Cannot deliver: negative stock for " + ", ".join(shortages))
    if status == order.delivery_status:
        return None

    now = now or utcnow()
    user = user or state.acting_user_name
    updated = replace(
        order,
        delivery_status=status,
        modification_history=order.with_history(history_entry(
            user, f"Statut de livraison mis à jour à '{status.value}'.", now
        )),
    )
    return OrderDeliveryStatusUpdated(order=updated)


def cancel_order(state: ShopState, order_id: str,
                 *, user: str | None = None, now: datetime | None = None) -> OrderCancelled | None:
    """
    Cancel an unpaid order and put every line back in stock.

    Raises:
        OrderError: payments exist, order already cancelled, or returns recorded
    """
    order = state.order(order_id)
    if order is None:
        return None
    if order.is_cancelled:
        raise OrderError(f"Order {order.id} is already cancelled")
    if order.paid_amount != 0:
        raise OrderError(
            "Impossible d'annuler une commande avec des paiements. "
            "Veuillez d'abord supprimer les paiements."
        )
    if state.returns_for_order(order.id):
        raise OrderError(f"Order {order.id} has returns and cannot be cancelled")

    products = StockAdjustment().add_lines(order.items, sign=1).apply(state.products)

    now = now or utcnow()
    user = user or state.acting_user_name
    updated = replace(
        order,
        payment_status=PaymentStatus.CANCELLED,
        delivery_status=DeliveryStatus.CANCELLED,
        modification_history=order.with_history(history_entry(user, "Commande annulée.", now)),
    )
    return OrderCancelled(order=updated, products=products)


def set_order_archived(state: ShopState, order_id: str, archived: bool,
                       *, user: str | None = None, now: datetime | None = None) -> OrderArchiveToggled | None:
    order = state.order(order_id)
    if order is None or order.is_archived == archived:
        return None
    now = now or utcnow()
    user = user or state.acting_user_name
    description = "Commande archivée." if archived else "Commande désarchivée."
    updated = replace(
        order,
        is_archived=archived,
        modification_history=order.with_history(history_entry(user, description, now)),
    )
    return OrderArchiveToggled(order=updated)
