"""
The shop state document.

ShopState is the single in-memory document that the reducer replaces on
every action. Collections are tuples and entities are frozen dataclasses,
so a state value can be shared freely (subscribers, the debounced saver)
without copying.

to_document()/from_document() convert to and from the JSON shape used by
the persistence endpoint and by backup files. The logged-in user is
session data and never part of that shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, TypeVar

from boutique.models.auth import User
from boutique.models.catalog import Client, Product, Supplier
from boutique.models.purchasing import PurchaseOrder, SupplierPayment
from boutique.models.sales import Order, Payment, PaymentSchedule, ProductReturn
from boutique.models.settings import BackupSettings
from boutique.validation import ValidationError

DEFAULT_CATEGORIES = ("Vêtements", "Accessoires", "Chaussures")

T = TypeVar("T")


def find_by_id(collection: Iterable[T], entity_id: str) -> T | None:
    for entity in collection:
        if entity.id == entity_id:
            return entity
    return None


def replace_by_id(collection: tuple[T, ...], entity: T) -> tuple[T, ...]:
    """Swap the entity with the same id; unknown ids leave the tuple unchanged."""
    return tuple(entity if existing.id == entity.id else existing for existing in collection)


def remove_by_id(collection: tuple[T, ...], entity_id: str) -> tuple[T, ...]:
    return tuple(existing for existing in collection if existing.id != entity_id)


@dataclass(frozen=True)
class ShopState:
    products: tuple[Product, ...] = ()
    clients: tuple[Client, ...] = ()
    suppliers: tuple[Supplier, ...] = ()
    orders: tuple[Order, ...] = ()
    returns: tuple[ProductReturn, ...] = ()
    purchase_orders: tuple[PurchaseOrder, ...] = ()
    payments: tuple[Payment, ...] = ()
    supplier_payments: tuple[SupplierPayment, ...] = ()
    payment_schedules: tuple[PaymentSchedule, ...] = ()
    categories: tuple[str, ...] = DEFAULT_CATEGORIES
    users: tuple[User, ...] = ()
    backup_settings: BackupSettings = field(default_factory=BackupSettings)
    current_user: User | None = None

    def product(self, product_id: str) -> Product | None:
        return find_by_id(self.products, product_id)

    def order(self, order_id: str) -> Order | None:
        return find_by_id(self.orders, order_id)

    def payment(self, payment_id: str) -> Payment | None:
        return find_by_id(self.payments, payment_id)

    def purchase_order(self, purchase_order_id: str) -> PurchaseOrder | None:
        return find_by_id(self.purchase_orders, purchase_order_id)

    def user(self, user_id: str) -> User | None:
        return find_by_id(self.users, user_id)

    def client(self, client_id: str) -> Client | None:
        return find_by_id(self.clients, client_id)

    def supplier(self, supplier_id: str) -> Supplier | None:
        return find_by_id(self.suppliers, supplier_id)

    def payment_schedule(self, schedule_id: str) -> PaymentSchedule | None:
        return find_by_id(self.payment_schedules, schedule_id)

    def schedule_for_order(self, order: Order) -> PaymentSchedule | None:
        if order.payment_schedule_id:
            schedule = self.payment_schedule(order.payment_schedule_id)
            if schedule is not None:
                return schedule
        for schedule in self.payment_schedules:
            if schedule.order_id == order.id:
                return schedule
        return None

    def payments_for_order(self, order_id: str) -> list[Payment]:
        return [p for p in self.payments if p.order_id == order_id]

    def returns_for_order(self, order_id: str) -> list[ProductReturn]:
        return [r for r in self.returns if r.order_id == order_id]

    @property
    def acting_user_name(self) -> str:
        """Name written into modification history entries."""
        return self.current_user.name if self.current_user else "Système"

    def to_document(self) -> dict:
        return {
            "products": [p.to_dict() for p in self.products],
            "clients": [c.to_dict() for c in self.clients],
            "suppliers": [s.to_dict() for s in self.suppliers],
            "orders": [o.to_dict() for o in self.orders],
            "returns": [r.to_dict() for r in self.returns],
            "purchaseOrders": [po.to_dict() for po in self.purchase_orders],
            "payments": [p.to_dict() for p in self.payments],
            "supplierPayments": [sp.to_dict() for sp in self.supplier_payments],
            "paymentSchedules": [ps.to_dict() for ps in self.payment_schedules],
            "categories": list(self.categories),
            "users": [u.to_dict() for u in self.users],
            "backupSettings": self.backup_settings.to_dict(),
        }

    @classmethod
    def from_document(cls, document: dict) -> "ShopState":
        """
        Build a state from a persisted or backup document.

        Missing collections fall back to their defaults; numbers and dates are
        normalized. Any currentUser key in the document is ignored.
        """
        if not isinstance(document, dict):
            raise ValidationError("State document must be a JSON object")

        def _items(key: str) -> list:
            value = document.get(key) or []
            if not isinstance(value, list):
                raise ValidationError(f"{key} must be a list")
            for index, entry in enumerate(value):
                if not isinstance(entry, dict):
                    raise ValidationError(f"{key}[{index}] must be an object")
            return value

        backup = document.get("backupSettings")
        if backup and not isinstance(backup, dict):
            raise ValidationError("backupSettings must be an object")
        categories = document.get("categories")
        if categories is not None and not isinstance(categories, list):
            raise ValidationError("categories must be a list")
        try:
            return cls(
                products=tuple(Product.from_dict(p) for p in _items("products")),
                clients=tuple(Client.from_dict(c) for c in _items("clients")),
                suppliers=tuple(Supplier.from_dict(s) for s in _items("suppliers")),
                orders=tuple(Order.from_dict(o) for o in _items("orders")),
                returns=tuple(ProductReturn.from_dict(r) for r in _items("returns")),
                purchase_orders=tuple(PurchaseOrder.from_dict(po) for po in _items("purchaseOrders")),
                payments=tuple(Payment.from_dict(p) for p in _items("payments")),
                supplier_payments=tuple(SupplierPayment.from_dict(sp) for sp in _items("supplierPayments")),
                payment_schedules=tuple(PaymentSchedule.from_dict(ps) for ps in _items("paymentSchedules")),
                categories=tuple(str(c) for c in categories) if categories is not None else DEFAULT_CATEGORIES,
                users=tuple(User.from_dict(u) for u in _items("users")),
                backup_settings=BackupSettings.from_dict(backup) if backup else BackupSettings(),
                current_user=None,
            )
        except (AttributeError, TypeError) as exc:
            # nested entries (order lines, variants, installments) of the wrong shape
            raise ValidationError(f"Malformed state document: {exc}") from exc
