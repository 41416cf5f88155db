# Overview: Service-layer operations for order payments and payment schedules.

"""
Payment Processing Service

Payments are separate rows linked to an order (many-to-one). The order keeps
a denormalized paid_amount that must always equal the signed sum of its
payment rows, and a payment_status that is always derive_payment_status()
of that paid_amount against the order total. Every function here returns a
single action that carries the payment row change AND the recomputed order,
so both land in the same state transition.

DESIGN PRINCIPLES:
- 0 < amount <= remaining balance when adding
- Editing or deleting must keep 0 <= paid_amount <= total
- Refund rows (negative amounts) are written by returns only and are not
  editable here
- Cancelled orders accept no payment activity
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from boutique.models import (
    Installment,
    InstallmentStatus,
    Order,
    Payment,
    PaymentMethod,
    PaymentSchedule,
    PaymentStatus,
    PurchaseOrderPaymentStatus,
    ShopState,
)
from boutique.models.statuses import parse_enum
from boutique.services.history_service import format_fcfa, history_entry
from boutique.services.identifier_service import generate_unique_id
from boutique.store.actions import (
    InstallmentPaid,
    PaymentAdded,
    PaymentDeleted,
    PaymentScheduleSaved,
    PaymentUpdated,
)
from boutique.time_utils import utcnow
from boutique.validation import ValidationError, as_amount, as_datetime


class PaymentError(ValidationError):
    """Raised for payment operation errors."""
    pass


class ScheduleError(ValidationError):
    """Raised for payment schedule errors."""
    pass


# =============================================================================
# STATUS DERIVATION
# =============================================================================

def derive_payment_status(paid_amount: int, total: int, *, refunded: bool = False) -> PaymentStatus:
    """
    Payment status of an order as a pure function of its amounts.

    `refunded` tells whether money has already been given back on the order,
    which turns a partial balance into 'Partiellement remboursé'.
    """
    if total <= 0:
        return PaymentStatus.REFUNDED
    if paid_amount >= total:
        return PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIALLY_REFUNDED if refunded else PaymentStatus.PARTIALLY_PAID
    return PaymentStatus.PENDING


def derive_purchase_order_payment_status(paid_amount: int, total: int) -> PurchaseOrderPaymentStatus:
    if paid_amount >= total:
        return PurchaseOrderPaymentStatus.PAID
    if paid_amount > 0:
        return PurchaseOrderPaymentStatus.PARTIALLY_PAID
    return PurchaseOrderPaymentStatus.PENDING


def has_refund(state: ShopState, order: Order) -> bool:
    if order.payment_status == PaymentStatus.PARTIALLY_REFUNDED:
        return True
    return any(p.is_refund for p in state.payments_for_order(order.id)) or any(
        r.refund_amount > 0 for r in state.returns_for_order(order.id)
    )


def rederive_order(state: ShopState, order: Order, paid_amount: int, history_description: str,
                   user: str, now: datetime) -> Order:
    """Copy of `order` with a new paid amount, its derived status and one history entry."""
    return replace(
        order,
        paid_amount=paid_amount,
        payment_status=derive_payment_status(paid_amount, order.total, refunded=has_refund(state, order)),
        modification_history=order.with_history(history_entry(user, history_description, now)),
    )


def _require_open(order: Order) -> None:
    if order.is_cancelled:
        raise PaymentError(f"Cannot record payments on cancelled order {order.id}")


def _check_paid_range(paid_amount: int, total: int) -> None:
    if paid_amount < 0:
        raise PaymentError("Paid amount cannot become negative")
    if paid_amount > total:
        raise PaymentError(
            f"Paid amount {format_fcfa(paid_amount)} would exceed order total {format_fcfa(total)}"
        )


# =============================================================================
# PAYMENT CREATION / EDIT / DELETE
# =============================================================================

def _build_payment(state: ShopState, order: Order, amount, method, user: str | None,
                   now: datetime | None, description: str | None = None) -> tuple[Payment, Order]:
    _require_open(order)
    amount = as_amount(amount)
    method = parse_enum(PaymentMethod, method, "method")
    if amount <= 0:
        raise PaymentError("Payment amount must be positive")
    remaining = order.total - order.paid_amount
    if remaining <= 0:
        raise PaymentError("Order has no remaining balance due")
    if amount > remaining:
        raise PaymentError(
            f"Payment of {format_fcfa(amount)} exceeds remaining balance {format_fcfa(remaining)}"
        )

    now = now or utcnow()
    user = user or state.acting_user_name
    payment = Payment(
        id=generate_unique_id("pay"),
        order_id=order.id,
        date=now,
        amount=amount,
        method=method,
    )
    updated = rederive_order(
        state,
        order,
        order.paid_amount + amount,
        description or f"Nouveau paiement de {format_fcfa(amount)} ajouté.",
        user,
        now,
    )
    return payment, updated


def add_payment(state: ShopState, order_id: str, amount, method=PaymentMethod.CASH,
                *, user: str | None = None, now: datetime | None = None) -> PaymentAdded | None:
    """
    Record money received for an order.

    Returns None when the order does not exist.

    Raises:
        PaymentError: amount not positive, above the remaining balance, or order cancelled
    """
    order = state.order(order_id)
    if order is None:
        return None
    payment, updated = _build_payment(state, order, amount, method, user, now)
    return PaymentAdded(payment=payment, order=updated)


def update_payment(state: ShopState, payment_id: str, new_amount, new_method,
                   *, user: str | None = None, now: datetime | None = None) -> PaymentUpdated | None:
    """
    Change the amount and/or method of a payment row.

    The order's paid_amount moves by (new - old); the payment keeps its date.
    """
    payment = state.payment(payment_id)
    if payment is None:
        return None
    order = state.order(payment.order_id)
    if order is None:
        return None
    _require_open(order)
    if payment.is_refund:
        raise PaymentError("Refund payments cannot be edited")

    new_amount = as_amount(new_amount)
    new_method = parse_enum(PaymentMethod, new_method, "method")
    if new_amount <= 0:
        raise PaymentError("Payment amount must be positive; delete the payment instead")

    new_paid = order.paid_amount + (new_amount - payment.amount)
    _check_paid_range(new_paid, order.total)

    now = now or utcnow()
    user = user or state.acting_user_name
    description = (
        f"Paiement {payment.id[-4:]} modifié: Montant de {format_fcfa(payment.amount)} "
        f"à {format_fcfa(new_amount)}, Méthode de '{payment.method.value}' à '{new_method.value}'."
    )
    updated_order = rederive_order(state, order, new_paid, description, user, now)
    updated_payment = replace(payment, amount=new_amount, method=new_method)
    return PaymentUpdated(payment=updated_payment, order=updated_order)


def delete_payment(state: ShopState, payment_id: str,
                   *, user: str | None = None, now: datetime | None = None) -> PaymentDeleted | None:
    payment = state.payment(payment_id)
    if payment is None:
        return None
    order = state.order(payment.order_id)
    if order is None:
        return None
    _require_open(order)
    if payment.is_refund:
        raise PaymentError("Refund payments cannot be deleted")

    new_paid = order.paid_amount - payment.amount
    _check_paid_range(new_paid, order.total)

    now = now or utcnow()
    user = user or state.acting_user_name
    description = f"Paiement de {format_fcfa(payment.amount)} ({payment.method.value}) supprimé."
    updated_order = rederive_order(state, order, new_paid, description, user, now)
    return PaymentDeleted(payment_id=payment.id, order=updated_order)


# =============================================================================
# PAYMENT SCHEDULES
# =============================================================================

def _coerce_installments(installments: Iterable) -> tuple[Installment, ...]:
    result = []
    for raw in installments:
        if isinstance(raw, Installment):
            due_date, amount = raw.due_date, raw.amount
        else:
            due_date = as_datetime(raw.get("dueDate", raw.get("due_date")), "dueDate")
            amount = as_amount(raw.get("amount"))
        if due_date is None:
            raise ScheduleError("Each installment needs a due date")
        if amount <= 0:
            raise ScheduleError("Installment amounts must be positive")
        # New or edited installments always start unpaid.
        result.append(Installment(due_date=due_date, amount=amount, status=InstallmentStatus.PENDING))
    if not result:
        raise ScheduleError("A payment schedule needs at least one installment")
    return tuple(result)


def save_payment_schedule(state: ShopState, order_id: str, installments: Iterable,
                          *, user: str | None = None, now: datetime | None = None) -> PaymentScheduleSaved | None:
    """
    Create the order's schedule, or replace the installments of the existing one.

    The schedule id is stable across edits and the order points at it.
    """
    order = state.order(order_id)
    if order is None:
        return None
    if order.is_cancelled:
        raise ScheduleError(f"Cannot schedule payments for cancelled order {order.id}")

    items = _coerce_installments(installments)
    now = now or utcnow()
    user = user or state.acting_user_name

    existing = state.schedule_for_order(order)
    if existing is None:
        schedule = PaymentSchedule(id=generate_unique_id("ps"), order_id=order.id, installments=items)
        description = f"Échéancier de paiement créé avec {len(items)} échéance(s)."
    else:
        schedule = replace(existing, installments=items)
        description = f"Échéancier de paiement mis à jour avec {len(items)} échéance(s)."

    updated_order = replace(
        order,
        payment_schedule_id=schedule.id,
        modification_history=order.with_history(history_entry(user, description, now)),
    )
    return PaymentScheduleSaved(schedule=schedule, order=updated_order)


def mark_installment_as_paid(state: ShopState, order_id: str, installment_index: int,
                             payment_method=PaymentMethod.CASH,
                             *, user: str | None = None, now: datetime | None = None) -> InstallmentPaid | None:
    """
    Pay one installment: creates the payment, recomputes the order and flips
    the installment to 'Payé' in a single action.

    Returns None when the order, its schedule or the installment is missing,
    and when the installment is already paid (idempotent).
    """
    order = state.order(order_id)
    if order is None:
        return None
    schedule = state.schedule_for_order(order)
    if schedule is None:
        return None
    if not 0 <= installment_index < len(schedule.installments):
        return None
    installment = schedule.installments[installment_index]
    if installment.status == InstallmentStatus.PAID:
        return None

    method = parse_enum(PaymentMethod, payment_method, "method")
    payment, updated_order = _build_payment(
        state,
        order,
        installment.amount,
        method,
        user,
        now,
        description=f"Échéance de {format_fcfa(installment.amount)} payée via {method.value}.",
    )
    installments = list(schedule.installments)
    installments[installment_index] = replace(installment, status=InstallmentStatus.PAID)
    updated_schedule = replace(schedule, installments=tuple(installments))
    return InstallmentPaid(payment=payment, order=updated_order, schedule=updated_schedule)
