"""
Pure reducer for the shop state document.

reduce(state, action) -> new state. No I/O, no clock, no id generation:
everything an action needs was computed by the services beforehand. Each
handler either splices its precomputed entities into the document in one
step or, when the entity it targets no longer exists, returns the state
unchanged.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from boutique.models import DEFAULT_CATEGORIES, ShopState
from boutique.models.state import find_by_id, remove_by_id, replace_by_id
from . import actions as a


def _replace_products(state: ShopState, products) -> tuple:
    updated = state.products
    for product in products:
        updated = replace_by_id(updated, product)
    return updated


def _has(collection, entity_id: str) -> bool:
    return find_by_id(collection, entity_id) is not None


# Session ----------------------------------------------------------------------

def _logged_in(state: ShopState, action: a.LoggedIn) -> ShopState:
    if not _has(state.users, action.user.id):
        return state
    return replace(state, current_user=action.user)


def _logged_out(state: ShopState, action: a.LoggedOut) -> ShopState:
    return replace(state, current_user=None)


# Users ------------------------------------------------------------------------

def _user_added(state: ShopState, action: a.UserAdded) -> ShopState:
    return replace(state, users=state.users + (action.user,))


def _user_updated(state: ShopState, action: a.UserUpdated) -> ShopState:
    current = state.current_user
    if current is not None and current.id == action.user.id:
        current = action.user
    return replace(state, users=replace_by_id(state.users, action.user), current_user=current)


def _user_deleted(state: ShopState, action: a.UserDeleted) -> ShopState:
    return replace(state, users=remove_by_id(state.users, action.user_id))


# Catalogue --------------------------------------------------------------------

def _product_added(state: ShopState, action: a.ProductAdded) -> ShopState:
    return replace(state, products=state.products + (action.product,))


def _product_updated(state: ShopState, action: a.ProductUpdated) -> ShopState:
    return replace(state, products=replace_by_id(state.products, action.product))


def _product_deleted(state: ShopState, action: a.ProductDeleted) -> ShopState:
    return replace(state, products=remove_by_id(state.products, action.product_id))


def _category_added(state: ShopState, action: a.CategoryAdded) -> ShopState:
    if action.category in state.categories:
        return state
    return replace(state, categories=state.categories + (action.category,))


def _client_added(state: ShopState, action: a.ClientAdded) -> ShopState:
    return replace(state, clients=state.clients + (action.client,))


def _client_updated(state: ShopState, action: a.ClientUpdated) -> ShopState:
    return replace(state, clients=replace_by_id(state.clients, action.client))


def _supplier_added(state: ShopState, action: a.SupplierAdded) -> ShopState:
    return replace(state, suppliers=state.suppliers + (action.supplier,))


def _supplier_updated(state: ShopState, action: a.SupplierUpdated) -> ShopState:
    return replace(state, suppliers=replace_by_id(state.suppliers, action.supplier))


# Orders -----------------------------------------------------------------------

def _order_created(state: ShopState, action: a.OrderCreated) -> ShopState:
    # Newest orders first.
    return replace(
        state,
        orders=(action.order,) + state.orders,
        products=_replace_products(state, action.products),
        payments=state.payments + tuple(action.payments),
    )


def _order_updated(state: ShopState, action: a.OrderUpdated) -> ShopState:
    if not _has(state.orders, action.order.id):
        return state
    return replace(
        state,
        orders=replace_by_id(state.orders, action.order),
        products=_replace_products(state, action.products),
    )


def _order_replaced(state: ShopState, action) -> ShopState:
    if not _has(state.orders, action.order.id):
        return state
    return replace(state, orders=replace_by_id(state.orders, action.order))


def _return_created(state: ShopState, action: a.ReturnCreated) -> ShopState:
    if not _has(state.orders, action.order.id):
        return state
    payments = state.payments
    if action.refund is not None:
        payments = payments + (action.refund,)
    return replace(
        state,
        orders=replace_by_id(state.orders, action.order),
        products=_replace_products(state, action.products),
        returns=state.returns + (action.product_return,),
        payments=payments,
    )


# Payments ---------------------------------------------------------------------

def _payment_added(state: ShopState, action: a.PaymentAdded) -> ShopState:
    if not _has(state.orders, action.order.id):
        return state
    return replace(
        state,
        orders=replace_by_id(state.orders, action.order),
        payments=state.payments + (action.payment,),
    )


def _payment_updated(state: ShopState, action: a.PaymentUpdated) -> ShopState:
    if not _has(state.orders, action.order.id) or not _has(state.payments, action.payment.id):
        return state
    return replace(
        state,
        orders=replace_by_id(state.orders, action.order),
        payments=replace_by_id(state.payments, action.payment),
    )


def _payment_deleted(state: ShopState, action: a.PaymentDeleted) -> ShopState:
    if not _has(state.orders, action.order.id) or not _has(state.payments, action.payment_id):
        return state
    return replace(
        state,
        orders=replace_by_id(state.orders, action.order),
        payments=remove_by_id(state.payments, action.payment_id),
    )


def _payment_schedule_saved(state: ShopState, action: a.PaymentScheduleSaved) -> ShopState:
    if not _has(state.orders, action.order.id):
        return state
    if _has(state.payment_schedules, action.schedule.id):
        schedules = replace_by_id(state.payment_schedules, action.schedule)
    else:
        schedules = state.payment_schedules + (action.schedule,)
    return replace(
        state,
        orders=replace_by_id(state.orders, action.order),
        payment_schedules=schedules,
    )


def _installment_paid(state: ShopState, action: a.InstallmentPaid) -> ShopState:
    if not _has(state.orders, action.order.id) or not _has(state.payment_schedules, action.schedule.id):
        return state
    return replace(
        state,
        orders=replace_by_id(state.orders, action.order),
        payments=state.payments + (action.payment,),
        payment_schedules=replace_by_id(state.payment_schedules, action.schedule),
    )


# Purchasing -------------------------------------------------------------------

def _purchase_order_added(state: ShopState, action: a.PurchaseOrderAdded) -> ShopState:
    return replace(state, purchase_orders=(action.purchase_order,) + state.purchase_orders)


def _purchase_order_updated(state: ShopState, action: a.PurchaseOrderUpdated) -> ShopState:
    if not _has(state.purchase_orders, action.purchase_order.id):
        return state
    return replace(state, purchase_orders=replace_by_id(state.purchase_orders, action.purchase_order))


def _purchase_order_items_received(state: ShopState, action: a.PurchaseOrderItemsReceived) -> ShopState:
    if not _has(state.purchase_orders, action.purchase_order.id):
        return state
    return replace(
        state,
        purchase_orders=replace_by_id(state.purchase_orders, action.purchase_order),
        products=_replace_products(state, action.products),
    )


def _supplier_payment_added(state: ShopState, action: a.SupplierPaymentAdded) -> ShopState:
    if not _has(state.purchase_orders, action.purchase_order.id):
        return state
    return replace(
        state,
        purchase_orders=replace_by_id(state.purchase_orders, action.purchase_order),
        supplier_payments=state.supplier_payments + (action.supplier_payment,),
    )


# Settings and whole-document operations ---------------------------------------

def _backup_settings_updated(state: ShopState, action: a.BackupSettingsUpdated) -> ShopState:
    return replace(state, backup_settings=action.settings)


def _last_backup_timestamp_updated(state: ShopState, action: a.LastBackupTimestampUpdated) -> ShopState:
    return replace(
        state,
        backup_settings=replace(state.backup_settings, last_backup_timestamp=action.timestamp),
    )


def _data_reset(state: ShopState, action: a.DataReset) -> ShopState:
    # Users, categories and backup settings survive a reset; the session does not.
    return ShopState(
        categories=state.categories or DEFAULT_CATEGORIES,
        users=state.users,
        backup_settings=state.backup_settings,
        current_user=None,
    )


def _data_restored(state: ShopState, action: a.DataRestored) -> ShopState:
    return replace(action.state, current_user=None)


_HANDLERS: dict[type, Callable] = {
    a.LoggedIn: _logged_in,
    a.LoggedOut: _logged_out,
    a.UserAdded: _user_added,
    a.UserUpdated: _user_updated,
    a.UserDeleted: _user_deleted,
    a.ProductAdded: _product_added,
    a.ProductUpdated: _product_updated,
    a.ProductDeleted: _product_deleted,
    a.CategoryAdded: _category_added,
    a.ClientAdded: _client_added,
    a.ClientUpdated: _client_updated,
    a.SupplierAdded: _supplier_added,
    a.SupplierUpdated: _supplier_updated,
    a.OrderCreated: _order_created,
    a.OrderUpdated: _order_updated,
    a.OrderDeliveryStatusUpdated: _order_replaced,
    a.OrderArchiveToggled: _order_replaced,
    a.OrderCancelled: _order_updated,
    a.ReturnCreated: _return_created,
    a.PaymentAdded: _payment_added,
    a.PaymentUpdated: _payment_updated,
    a.PaymentDeleted: _payment_deleted,
    a.PaymentScheduleSaved: _payment_schedule_saved,
    a.InstallmentPaid: _installment_paid,
    a.PurchaseOrderAdded: _purchase_order_added,
    a.PurchaseOrderUpdated: _purchase_order_updated,
    a.PurchaseOrderItemsReceived: _purchase_order_items_received,
    a.SupplierPaymentAdded: _supplier_payment_added,
    a.BackupSettingsUpdated: _backup_settings_updated,
    a.LastBackupTimestampUpdated: _last_backup_timestamp_updated,
    a.DataReset: _data_reset,
    a.DataRestored: _data_restored,
}


def reduce(state: ShopState, action: a.Action) -> ShopState:
    """Apply one action. Unknown actions return the state unchanged."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state
    return handler(state, action)
