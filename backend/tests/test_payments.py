"""
Payments against orders: add, edit, delete and the derived payment status.
"""

import pytest

from boutique.models import PaymentMethod, PaymentStatus
from boutique.services.history_service import format_fcfa
from boutique.services.payment_service import PaymentError, derive_payment_status
from boutique.validation import ValidationError


def _paid_matches_payments(state):
    for order in state.orders:
        assert order.paid_amount == sum(p.amount for p in state.payments_for_order(order.id)), order.id


@pytest.fixture
def order(shop, line):
    return shop.create_order("c1", [line(quantity=5)])


@pytest.mark.parametrize("paid, total, refunded, expected", [
    (0, 5000, False, PaymentStatus.PENDING),
    (1, 5000, False, PaymentStatus.PARTIALLY_PAID),
    (1, 5000, True, PaymentStatus.PARTIALLY_REFUNDED),
    (5000, 5000, False, PaymentStatus.PAID),
    (6000, 5000, False, PaymentStatus.PAID),
    (0, 0, True, PaymentStatus.REFUNDED),
])
def test_derive_payment_status(paid, total, refunded, expected):
    assert derive_payment_status(paid, total, refunded=refunded) == expected


def test_add_payment_rederives_status(shop, order):
    payment = shop.add_payment(order.id, 2000, PaymentMethod.MOBILE_MONEY)

    updated = shop.state.order(order.id)
    assert payment.amount == 2000
    assert payment.method == PaymentMethod.MOBILE_MONEY
    assert updated.paid_amount == 2000
    assert updated.payment_status == PaymentStatus.PARTIALLY_PAID
    assert updated.modification_history[-1].description == "Nouveau paiement de 2 000 FCFA ajouté."

    shop.add_payment(order.id, 3000)
    assert shop.state.order(order.id).payment_status == PaymentStatus.PAID
    _paid_matches_payments(shop.state)


@pytest.mark.parametrize("amount", [0, -100, 5001])
def test_add_payment_rejects_invalid_amounts(shop, order, amount):
    before = shop.state
    with pytest.raises(PaymentError):
        shop.add_payment(order.id, amount)
    assert shop.state is before


def test_add_payment_rejects_non_numeric_amount(shop, order):
    with pytest.raises(ValidationError, match="must be a number"):
        shop.add_payment(order.id, "abc")


def test_add_payment_on_fully_paid_order_is_rejected(shop, order):
    shop.add_payment(order.id, 5000)
    with pytest.raises(PaymentError, match="no remaining balance"):
        shop.add_payment(order.id, 1)


def test_add_payment_unknown_order(shop):
    assert shop.add_payment("nope", 100) is None


def test_update_payment_moves_paid_amount_by_delta(shop, order):
    payment = shop.add_payment(order.id, 2000)

    assert shop.update_payment(payment.id, 4500, PaymentMethod.CREDIT_CARD) is True

    updated = shop.state.order(order.id)
    assert updated.paid_amount == 4500
    assert updated.payment_status == PaymentStatus.PARTIALLY_PAID
    assert shop.state.payment(payment.id).method == PaymentMethod.CREDIT_CARD
    assert "de 2 000 FCFA à 4 500 FCFA" in updated.modification_history[-1].description
    _paid_matches_payments(shop.state)


def test_update_payment_cannot_exceed_total(shop, order):
    first = shop.add_payment(order.id, 2000)
    shop.add_payment(order.id, 2000)

    before = shop.state
    with pytest.raises(PaymentError, match="exceed order total"):
        shop.update_payment(first.id, 3001, PaymentMethod.CASH)
    with pytest.raises(PaymentError):
        shop.update_payment(first.id, 0, PaymentMethod.CASH)
    assert shop.state is before


def test_delete_payment_rederives_status(shop, order):
    first = shop.add_payment(order.id, 2000)
    second = shop.add_payment(order.id, 3000)

    assert shop.delete_payment(second.id) is True
    updated = shop.state.order(order.id)
    assert updated.paid_amount == 2000
    assert updated.payment_status == PaymentStatus.PARTIALLY_PAID
    assert shop.state.payment(second.id) is None

    shop.delete_payment(first.id)
    assert shop.state.order(order.id).payment_status == PaymentStatus.PENDING
    _paid_matches_payments(shop.state)


def test_delete_unknown_payment_is_a_no_op(shop, order):
    before = shop.state
    assert shop.delete_payment("nope") is False
    assert shop.state is before


def test_paid_amount_tracks_payments_through_a_sequence(shop, order, line):
    other = shop.create_order("c1", [line(quantity=2)], payment_status=PaymentStatus.PAID)
    a = shop.add_payment(order.id, 1000)
    b = shop.add_payment(order.id, 1500)
    shop.update_payment(a.id, 500, PaymentMethod.CASH)
    shop.delete_payment(b.id)
    shop.add_payment(order.id, 4500)

    _paid_matches_payments(shop.state)
    assert shop.state.order(order.id).payment_status == PaymentStatus.PAID
    assert shop.state.order(other.id).payment_status == PaymentStatus.PAID


@pytest.mark.parametrize("amount, expected", [
    (0, "0 FCFA"),
    (950, "950 FCFA"),
    (3000, "3 000 FCFA"),
    (1250000, "1 250 000 FCFA"),
])
def test_format_fcfa_groups_thousands_with_spaces(amount, expected):
    assert format_fcfa(amount) == expected
