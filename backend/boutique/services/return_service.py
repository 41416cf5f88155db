# Overview: Service-layer operations for product returns and refunds.

"""
Return Processing Service

A return is recorded in one transition that:
1. puts the returned lines back in stock,
2. appends a negative Payment row for the refund (refunds are payments),
3. lowers the order total by the value of the returned lines,
4. lowers the order's paid amount by the refund,
5. re-derives the payment status ('Partiellement remboursé' once money
   went back) and the delivery status ('Retourné' once every ordered unit
   came back across all returns, otherwise 'Partiellement retourné').
"""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from boutique.models import (
    DeliveryStatus,
    Order,
    Payment,
    PaymentMethod,
    ProductReturn,
    ReturnItem,
    ShopState,
)
from boutique.models.statuses import parse_enum
from boutique.services.history_service import format_fcfa, history_entry
from boutique.services.identifier_service import generate_unique_id
from boutique.services.inventory_service import StockAdjustment
from boutique.services.payment_service import derive_payment_status, has_refund
from boutique.store.actions import ReturnCreated
from boutique.time_utils import utcnow
from boutique.validation import ValidationError, as_amount, as_optional_str


class ReturnError(ValidationError):
    """Raised for return operation errors."""
    pass


def _line_key(line) -> tuple[str, str, str]:
    return (line.product_id,) + line.variant_key


def returnable_quantities(state: ShopState, order: Order) -> Counter:
    """Units still returnable per (product, size, color): ordered minus already returned."""
    remaining = Counter()
    for item in order.items:
        remaining[_line_key(item)] += item.quantity
    for previous in state.returns_for_order(order.id):
        for item in previous.items:
            remaining[_line_key(item)] -= item.quantity
    return remaining


def _coerce_items(state: ShopState, order: Order, items: Iterable) -> tuple[ReturnItem, ...]:
    lines = tuple(ReturnItem.coerce(item) for item in items or ())
    lines = tuple(line for line in lines if line.quantity != 0)
    if not lines:
        raise ReturnError("A return needs at least one item")

    remaining = returnable_quantities(state, order)
    requested = Counter()
    for line in lines:
        if line.quantity < 0:
            raise ReturnError("Returned quantities must be positive")
        if line.price < 0:
            raise ReturnError("Returned item prices cannot be negative")
        requested[_line_key(line)] += line.quantity

    for key, quantity in requested.items():
        available = remaining.get(key, 0)
        if quantity > available:
            product_id, size, color = key
            label = product_id
            if size or color:
                label += " (" + ", ".join(p for p in (size, color) if p) + ")"
            raise ReturnError(
                f"Cannot return {quantity} unit(s) of {label}: only {max(available, 0)} returnable"
            )
    return lines


def create_return(state: ShopState, order_id: str, items: Iterable, refund_amount=0,
                  refund_method=PaymentMethod.CASH, notes: str | None = None,
                  *, user: str | None = None, now: datetime | None = None) -> ReturnCreated | None:
    """
    Record returned items against an order.

    Raises:
        ReturnError: order cancelled, quantities above what is returnable,
            or refund outside 0..paid amount
    """
    order = state.order(order_id)
    if order is None:
        return None
    if order.is_cancelled:
        raise ReturnError(f"Order {order.id} is cancelled")

    lines = _coerce_items(state, order, items)
    refund_amount = as_amount(refund_amount, "refundAmount")
    refund_method = parse_enum(PaymentMethod, refund_method, "refundMethod")
    if refund_amount < 0:
        raise ReturnError("Refund amount cannot be negative")
    if refund_amount > order.paid_amount:
        raise ReturnError(
            f"Refund of {format_fcfa(refund_amount)} exceeds the amount paid ({format_fcfa(order.paid_amount)})"
        )

    now = now or utcnow()
    user = user or state.acting_user_name

    product_return = ProductReturn(
        id=generate_unique_id("ret"),
        order_id=order.id,
        date=now,
        items=lines,
        refund_amount=refund_amount,
        refund_method=refund_method,
        notes=as_optional_str(notes),
    )

    refund = None
    if refund_amount > 0:
        refund = Payment(
            id=generate_unique_id("pay"),
            order_id=order.id,
            date=now,
            amount=-refund_amount,
            method=refund_method,
        )

    returned_value = sum(line.line_total for line in lines)
    new_total = order.total - returned_value
    new_paid = order.paid_amount - refund_amount

    ordered_units = sum(item.quantity for item in order.items)
    returned_units = sum(r.quantity for r in state.returns_for_order(order.id)) + product_return.quantity
    if returned_units >= ordered_units:
        delivery_status = DeliveryStatus.RETURNED
    elif returned_units > 0:
        delivery_status = DeliveryStatus.PARTIALLY_RETURNED
    else:
        delivery_status = order.delivery_status

    refunded = refund_amount > 0 or has_refund(state, order)
    updated_order = replace(
        order,
        total=new_total,
        paid_amount=new_paid,
        delivery_status=delivery_status,
        payment_status=derive_payment_status(new_paid, new_total, refunded=refunded),
        modification_history=order.with_history(history_entry(
            user,
            f"Retour de {len(lines)} article(s) d'une valeur de {format_fcfa(returned_value)} "
            f"enregistré, avec un remboursement de {format_fcfa(refund_amount)}.",
            now,
        )),
    )

    products = StockAdjustment().add_lines(lines, sign=1).apply(state.products)
    return ReturnCreated(product_return=product_return, order=updated_order, products=products, refund=refund)
