# Overview: Read-only figures for the dashboard: sales, debts, low stock and payment reminders.

from __future__ import annotations

import math
from datetime import datetime, timedelta

from boutique.models import InstallmentStatus, Order, PaymentStatus, PurchaseOrderPaymentStatus, ShopState
from boutique.time_utils import start_of_day, to_utc_z, utcnow


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


SALES_PERIODS = ("daily", "weekly", "monthly")

# Installments due within this many days (or overdue) are reminded.
REMINDER_HORIZON_DAYS = 7

# Orders that no longer represent money owed or earned.
_CLOSED_PAYMENT_STATUSES = (PaymentStatus.CANCELLED, PaymentStatus.REFUNDED)


def period_start(period: str, now: datetime) -> datetime:
    """Start of today, of the current week (Monday) or of the current month."""
    today = start_of_day(now)
    if period == "daily":
        return today
    if period == "weekly":
        return today - timedelta(days=today.weekday())
    if period == "monthly":
        return today.replace(day=1)
    raise ReportError(f"Unknown period '{period}'. Must be one of {SALES_PERIODS}")


def _counted(order: Order) -> bool:
    return not order.is_archived and order.payment_status != PaymentStatus.CANCELLED


def sales_summary(state: ShopState, start: datetime, end: datetime | None = None) -> dict:
    """
    Revenue, number of sales and gross profit of non-archived, non-cancelled
    orders dated in [start, end).

    Gross profit = sum((sale price - current purchase price) x qty) - discount.
    """
    orders = [
        o for o in state.orders
        if _counted(o) and o.date >= start and (end is None or o.date < end)
    ]
    revenue = sum(o.total for o in orders)
    gross_profit = 0
    for order in orders:
        for item in order.items:
            product = state.product(item.product_id)
            if product is not None:
                gross_profit += (item.price - product.purchase_price) * item.quantity
        gross_profit -= order.discount
    return {
        "totalRevenue": revenue,
        "numberOfSales": len(orders),
        "grossProfit": gross_profit,
    }


def low_stock_products(state: ShopState) -> list:
    return [p for p in state.products if p.is_low_stock]


def client_debt(state: ShopState) -> int:
    return sum(
        o.balance for o in state.orders
        if _counted(o) and o.payment_status not in _CLOSED_PAYMENT_STATUSES and o.payment_status != PaymentStatus.PAID
    )


def supplier_debt(state: ShopState) -> int:
    return sum(
        po.balance for po in state.purchase_orders
        if po.payment_status != PurchaseOrderPaymentStatus.PAID
    )


def payment_reminders(state: ShopState, now: datetime | None = None,
                      horizon_days: int = REMINDER_HORIZON_DAYS) -> list[dict]:
    """
    Pending installments that are overdue or due within `horizon_days`,
    soonest first. diffDays is negative for overdue installments.
    """
    today = start_of_day(now or utcnow())
    reminders = []
    for schedule in state.payment_schedules:
        order = state.order(schedule.order_id)
        if order is None or order.is_archived or order.is_cancelled:
            continue
        client = state.client(order.client_id)
        if client is None:
            continue
        for index, installment in enumerate(schedule.installments):
            if installment.status != InstallmentStatus.PENDING:
                continue
            due = start_of_day(installment.due_date)
            diff_days = math.ceil((due - today).total_seconds() / 86400)
            if diff_days <= horizon_days:
                reminders.append({
                    "orderId": order.id,
                    "installmentIndex": index,
                    "clientName": client.full_name,
                    "clientPhone": client.phone,
                    "clientEmail": client.email,
                    "amount": installment.amount,
                    "dueDate": to_utc_z(installment.due_date),
                    "diffDays": diff_days,
                })
    return sorted(reminders, key=lambda r: r["diffDays"])


def dashboard_summary(state: ShopState, now: datetime | None = None, period: str = "weekly") -> dict:
    now = now or utcnow()
    today = start_of_day(now)
    return {
        "salesToday": sum(o.total for o in state.orders if _counted(o) and o.date >= today),
        "lowStockProducts": len(low_stock_products(state)),
        "clientDebt": client_debt(state),
        "supplierDebt": supplier_debt(state),
        "sales": sales_summary(state, period_start(period, now)),
        "paymentReminders": payment_reminders(state, now),
        "recentOrders": [o.id for o in state.orders if not o.is_archived][:5],
    }
