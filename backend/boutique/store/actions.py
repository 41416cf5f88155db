"""
Actions understood by the reducer.

Each class is one discriminant of the action union. Payloads are fully
precomputed by the services: the reducer only splices the new entities into
the document and never recomputes totals, stock or statuses.
"""

from __future__ import annotations

from dataclasses import dataclass

from boutique.models import (
    BackupSettings,
    Client,
    Order,
    Payment,
    PaymentSchedule,
    Product,
    ProductReturn,
    PurchaseOrder,
    ShopState,
    Supplier,
    SupplierPayment,
    User,
)


@dataclass(frozen=True)
class Action:
    """Base class; unknown subclasses are ignored by the reducer."""


# Session ----------------------------------------------------------------------

@dataclass(frozen=True)
class LoggedIn(Action):
    user: User


@dataclass(frozen=True)
class LoggedOut(Action):
    pass


# Users ------------------------------------------------------------------------

@dataclass(frozen=True)
class UserAdded(Action):
    user: User


@dataclass(frozen=True)
class UserUpdated(Action):
    user: User


@dataclass(frozen=True)
class UserDeleted(Action):
    user_id: str


# Catalogue --------------------------------------------------------------------

@dataclass(frozen=True)
class ProductAdded(Action):
    product: Product


@dataclass(frozen=True)
class ProductUpdated(Action):
    product: Product


@dataclass(frozen=True)
class ProductDeleted(Action):
    product_id: str


@dataclass(frozen=True)
class CategoryAdded(Action):
    category: str


@dataclass(frozen=True)
class ClientAdded(Action):
    client: Client


@dataclass(frozen=True)
class ClientUpdated(Action):
    client: Client


@dataclass(frozen=True)
class SupplierAdded(Action):
    supplier: Supplier


@dataclass(frozen=True)
class SupplierUpdated(Action):
    supplier: Supplier


# Orders -----------------------------------------------------------------------

@dataclass(frozen=True)
class OrderCreated(Action):
    order: Order
    products: tuple[Product, ...] = ()
    payments: tuple[Payment, ...] = ()


@dataclass(frozen=True)
class OrderUpdated(Action):
    order: Order
    products: tuple[Product, ...] = ()


@dataclass(frozen=True)
class OrderDeliveryStatusUpdated(Action):
    order: Order


@dataclass(frozen=True)
class OrderArchiveToggled(Action):
    order: Order


@dataclass(frozen=True)
class OrderCancelled(Action):
    order: Order
    products: tuple[Product, ...] = ()


@dataclass(frozen=True)
class ReturnCreated(Action):
    product_return: ProductReturn
    order: Order
    products: tuple[Product, ...] = ()
    refund: Payment | None = None


# Payments ---------------------------------------------------------------------

@dataclass(frozen=True)
class PaymentAdded(Action):
    payment: Payment
    order: Order


@dataclass(frozen=True)
class PaymentUpdated(Action):
    payment: Payment
    order: Order


@dataclass(frozen=True)
class PaymentDeleted(Action):
    payment_id: str
    order: Order


@dataclass(frozen=True)
class PaymentScheduleSaved(Action):
    schedule: PaymentSchedule
    order: Order


@dataclass(frozen=True)
class InstallmentPaid(Action):
    payment: Payment
    order: Order
    schedule: PaymentSchedule


# Purchasing -------------------------------------------------------------------

@dataclass(frozen=True)
class PurchaseOrderAdded(Action):
    purchase_order: PurchaseOrder


@dataclass(frozen=True)
class PurchaseOrderUpdated(Action):
    purchase_order: PurchaseOrder


@dataclass(frozen=True)
class PurchaseOrderItemsReceived(Action):
    purchase_order: PurchaseOrder
    products: tuple[Product, ...] = ()


@dataclass(frozen=True)
class SupplierPaymentAdded(Action):
    supplier_payment: SupplierPayment
    purchase_order: PurchaseOrder


# Settings and whole-document operations ---------------------------------------

@dataclass(frozen=True)
class BackupSettingsUpdated(Action):
    settings: BackupSettings


@dataclass(frozen=True)
class LastBackupTimestampUpdated(Action):
    timestamp: int


@dataclass(frozen=True)
class DataReset(Action):
    pass


@dataclass(frozen=True)
class DataRestored(Action):
    state: ShopState
