"""
Shop Actions

The operations the back office calls. Each one reads the latest state,
builds one action through a service and dispatches it, all under the store
lock (see ShopStore.apply).

RETURN VALUES:
- create/add operations return the new entity
- other operations return True when an action was dispatched and False on
  a lookup miss or a no-op (already paid installment, unchanged status, ...)
- validation failures raise the service's error (a ValidationError
  subclass) and leave the state unchanged

PERMISSIONS: checked only while a user is logged in. Catalogue operations
need their capability; clients, purchasing and data management need the
matching module.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from boutique.models import PaymentMethod, PaymentStatus, ShopState, SupplierPaymentMethod
from boutique.permissions import (
    CAN_ADD_PRODUCTS,
    CAN_DELETE_PRODUCTS,
    CAN_EDIT_PRODUCTS,
    CAN_MANAGE_SUPPLIERS,
    CAN_MANAGE_USERS,
    MODULE_CLIENTS,
    MODULE_PURCHASING,
    MODULE_SETTINGS,
)
from boutique.services import (
    auth_service,
    backup_service,
    catalog_service,
    order_service,
    payment_service,
    purchase_service,
    reporting_service,
    return_service,
)
from boutique.services.permission_service import PermissionDeniedError, require_permission
from boutique.time_utils import utcnow
from boutique.validation import ValidationError
from .actions import Action
from .store import ShopStore

logger = logging.getLogger(__name__)


class ShopActions:
    def __init__(self, store: ShopStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    @property
    def state(self) -> ShopState:
        return self.store.state

    def _run(self, name: str, build: Callable[[ShopState], Optional[Action]]) -> Optional[Action]:
        try:
            action = self.store.apply(build)
        except (ValidationError, PermissionDeniedError) as exc:
            logger.warning("%s rejected: %s", name, exc)
            raise
        if action is None:
            logger.warning("%s: nothing to do (unknown id or no change)", name)
        return action

    def _context(self, state: ShopState) -> dict:
        return {"user": state.acting_user_name, "now": self.clock()}

    def _guarded(self, permission: str, build: Callable[[ShopState], Optional[Action]]):
        def _build(state: ShopState) -> Optional[Action]:
            require_permission(state.current_user, permission)
            return build(state)
        return _build

    # -------------------------------------------------------------------------
    # Session and users
    # -------------------------------------------------------------------------

    def login(self, user_id: str, pin: str) -> bool:
        action = self.store.apply(lambda s: auth_service.login(s, user_id, pin))
        if action is None:
            logger.info("Login refused for user %s", user_id)
        return action is not None

    def logout(self) -> None:
        self.store.apply(auth_service.logout)

    def add_user(self, name: str, role, pin: str):
        action = self._run("add_user", self._guarded(
            CAN_MANAGE_USERS, lambda s: auth_service.add_user(s, name, role, pin)))
        return action.user

    def update_user(self, user_id: str, name: str | None = None, role=None, pin: str | None = None) -> bool:
        return self._run("update_user", self._guarded(
            CAN_MANAGE_USERS, lambda s: auth_service.update_user(s, user_id, name, role, pin))) is not None

    def delete_user(self, user_id: str) -> bool:
        return self._run("delete_user", self._guarded(
            CAN_MANAGE_USERS, lambda s: auth_service.delete_user(s, user_id))) is not None

    # -------------------------------------------------------------------------
    # Catalogue
    # -------------------------------------------------------------------------

    def add_product(self, data):
        action = self._run("add_product", self._guarded(
            CAN_ADD_PRODUCTS, lambda s: catalog_service.add_product(s, data)))
        return action.product

    def update_product(self, data) -> bool:
        return self._run("update_product", self._guarded(
            CAN_EDIT_PRODUCTS, lambda s: catalog_service.update_product(s, data))) is not None

    def delete_product(self, product_id: str) -> bool:
        return self._run("delete_product", self._guarded(
            CAN_DELETE_PRODUCTS, lambda s: catalog_service.delete_product(s, product_id))) is not None

    def add_category(self, category: str) -> bool:
        return self._run("add_category", lambda s: catalog_service.add_category(s, category)) is not None

    def add_client(self, data):
        action = self._run("add_client", self._guarded(
            MODULE_CLIENTS, lambda s: catalog_service.add_client(s, data)))
        return action.client

    def update_client(self, data) -> bool:
        return self._run("update_client", self._guarded(
            MODULE_CLIENTS, lambda s: catalog_service.update_client(s, data))) is not None

    def add_supplier(self, data):
        action = self._run("add_supplier", self._guarded(
            CAN_MANAGE_SUPPLIERS, lambda s: catalog_service.add_supplier(s, data)))
        return action.supplier

    def update_supplier(self, data) -> bool:
        return self._run("update_supplier", self._guarded(
            CAN_MANAGE_SUPPLIERS, lambda s: catalog_service.update_supplier(s, data))) is not None

    # -------------------------------------------------------------------------
    # Orders and returns
    # -------------------------------------------------------------------------

    def create_order(self, client_id: str, items: Iterable, payment_status=PaymentStatus.PENDING,
                     discount=0, notes: str | None = None, payment_method=PaymentMethod.CASH):
        action = self._run("create_order", lambda s: order_service.create_order(
            s, client_id, items, payment_status, discount, notes,
            payment_method=payment_method, **self._context(s)))
        return action.order

    def update_order(self, order_id: str, client_id: str, items: Iterable, discount=0,
                     notes: str | None = None) -> bool:
        return self._run("update_order", lambda s: order_service.update_order(
            s, order_id, client_id, items, discount, notes, **self._context(s))) is not None

    def update_order_delivery_status(self, order_id: str, status) -> bool:
        return self._run("update_order_delivery_status", lambda s: order_service.update_order_delivery_status(
            s, order_id, status, **self._context(s))) is not None

    def cancel_order(self, order_id: str) -> bool:
        return self._run("cancel_order", lambda s: order_service.cancel_order(
            s, order_id, **self._context(s))) is not None

    def archive_order(self, order_id: str) -> bool:
        return self._run("archive_order", lambda s: order_service.set_order_archived(
            s, order_id, True, **self._context(s))) is not None

    def unarchive_order(self, order_id: str) -> bool:
        return self._run("unarchive_order", lambda s: order_service.set_order_archived(
            s, order_id, False, **self._context(s))) is not None

    def create_return(self, order_id: str, items: Iterable, refund_amount=0,
                      refund_method=PaymentMethod.CASH, notes: str | None = None):
        action = self._run("create_return", lambda s: return_service.create_return(
            s, order_id, items, refund_amount, refund_method, notes, **self._context(s)))
        return action.product_return if action is not None else None

    # -------------------------------------------------------------------------
    # Payments and schedules
    # -------------------------------------------------------------------------

    def add_payment(self, order_id: str, amount, method=PaymentMethod.CASH):
        action = self._run("add_payment", lambda s: payment_service.add_payment(
            s, order_id, amount, method, **self._context(s)))
        return action.payment if action is not None else None

    def update_payment(self, payment_id: str, new_amount, new_method) -> bool:
        return self._run("update_payment", lambda s: payment_service.update_payment(
            s, payment_id, new_amount, new_method, **self._context(s))) is not None

    def delete_payment(self, payment_id: str) -> bool:
        return self._run("delete_payment", lambda s: payment_service.delete_payment(
            s, payment_id, **self._context(s))) is not None

    def create_payment_schedule(self, order_id: str, installments: Iterable):
        action = self._run("create_payment_schedule", lambda s: payment_service.save_payment_schedule(
            s, order_id, installments, **self._context(s)))
        return action.schedule if action is not None else None

    def update_payment_schedule(self, order_id: str, installments: Iterable):
        return self.create_payment_schedule(order_id, installments)

    def mark_installment_as_paid(self, order_id: str, installment_index: int,
                                 payment_method=PaymentMethod.CASH) -> bool:
        return self._run("mark_installment_as_paid", lambda s: payment_service.mark_installment_as_paid(
            s, order_id, installment_index, payment_method, **self._context(s))) is not None

    # -------------------------------------------------------------------------
    # Purchasing
    # -------------------------------------------------------------------------

    def add_purchase_order(self, supplier_id: str, items: Iterable, total=None, notes: str | None = None):
        action = self._run("add_purchase_order", self._guarded(
            MODULE_PURCHASING, lambda s: purchase_service.add_purchase_order(
                s, supplier_id, items, total, notes, now=self.clock())))
        return action.purchase_order

    def update_purchase_order(self, purchase_order_id: str, supplier_id: str, items: Iterable,
                              total=None, notes: str | None = None) -> bool:
        return self._run("update_purchase_order", self._guarded(
            MODULE_PURCHASING, lambda s: purchase_service.update_purchase_order(
                s, purchase_order_id, supplier_id, items, total, notes))) is not None

    def receive_purchase_order_items(self, purchase_order_id: str, received_items: Iterable) -> bool:
        return self._run("receive_purchase_order_items", self._guarded(
            MODULE_PURCHASING, lambda s: purchase_service.receive_purchase_order_items(
                s, purchase_order_id, received_items))) is not None

    def add_supplier_payment(self, purchase_order_id: str, amount, method=SupplierPaymentMethod.CASH):
        action = self._run("add_supplier_payment", self._guarded(
            MODULE_PURCHASING, lambda s: purchase_service.add_supplier_payment(
                s, purchase_order_id, amount, method, now=self.clock())))
        return action.supplier_payment if action is not None else None

    def replenishment_suggestions(self):
        return purchase_service.replenishment_suggestions(self.state)

    def create_replenishment_order(self, supplier_id: str, quantities: dict | None = None):
        action = self._run("create_replenishment_order", self._guarded(
            MODULE_PURCHASING, lambda s: purchase_service.create_replenishment_order(
                s, supplier_id, quantities, now=self.clock())))
        return action.purchase_order

    # -------------------------------------------------------------------------
    # Data management
    # -------------------------------------------------------------------------

    def export_data(self) -> dict:
        state = self.state
        require_permission(state.current_user, MODULE_SETTINGS)
        return backup_service.export_document(state)

    def restore_data(self, payload) -> None:
        self._run("restore_data", self._guarded(
            MODULE_SETTINGS, lambda s: backup_service.restore_data(s, payload)))

    def reset_all_data(self) -> None:
        self._run("reset_all_data", self._guarded(MODULE_SETTINGS, backup_service.reset_all_data))

    def update_backup_settings(self, settings) -> None:
        self._run("update_backup_settings", self._guarded(
            MODULE_SETTINGS, lambda s: backup_service.update_backup_settings(s, settings)))

    def update_last_backup_timestamp(self, timestamp) -> None:
        self._run("update_last_backup_timestamp",
                  lambda s: backup_service.update_last_backup_timestamp(s, timestamp))

    def dashboard(self, period: str = "weekly") -> dict:
        return reporting_service.dashboard_summary(self.state, self.clock(), period)
