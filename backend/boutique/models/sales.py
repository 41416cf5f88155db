from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from boutique.models.catalog import variant_key
from boutique.models.statuses import (
    DeliveryStatus,
    InstallmentStatus,
    PaymentMethod,
    PaymentStatus,
    parse_enum,
)
from boutique.time_utils import to_utc_z, utcnow
from boutique.validation import as_datetime, as_int, as_optional_str, as_str


def _line_to_dict(data: dict, size: str | None, color: str | None) -> dict:
    if size is not None:
        data["size"] = size
    if color is not None:
        data["color"] = color
    return data


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    quantity: int
    price: int
    size: str | None = None
    color: str | None = None

    @property
    def variant_key(self) -> tuple[str, str]:
        return variant_key(self.size, self.color)

    @property
    def has_variant(self) -> bool:
        return bool(self.size or self.color)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return _line_to_dict(
            {"productId": self.product_id, "quantity": self.quantity, "price": self.price},
            self.size,
            self.color,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "OrderItem":
        return cls(
            product_id=as_str(data.get("productId")),
            quantity=as_int(data.get("quantity"), "quantity"),
            price=as_int(data.get("price"), "price"),
            size=as_optional_str(data.get("size")),
            color=as_optional_str(data.get("color")),
        )

    @classmethod
    def coerce(cls, value) -> "OrderItem":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class Modification:
    """One entry of an order's append-only modification history."""
    date: datetime
    user: str
    description: str

    def to_dict(self) -> dict:
        return {"date": to_utc_z(self.date), "user": self.user, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> "Modification":
        return cls(
            date=as_datetime(data.get("date")) or utcnow(),
            user=as_str(data.get("user")),
            description=as_str(data.get("description")),
        )


@dataclass(frozen=True)
class Order:
    id: str
    date: datetime
    client_id: str
    items: tuple[OrderItem, ...]
    total: int
    payment_status: PaymentStatus
    delivery_status: DeliveryStatus
    paid_amount: int = 0
    discount: int = 0
    notes: str | None = None
    payment_schedule_id: str | None = None
    modification_history: tuple[Modification, ...] = ()
    is_archived: bool = False

    @property
    def balance(self) -> int:
        return self.total - self.paid_amount

    @property
    def is_cancelled(self) -> bool:
        return self.payment_status == PaymentStatus.CANCELLED

    def with_history(self, entry: Modification) -> tuple[Modification, ...]:
        return self.modification_history + (entry,)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "date": to_utc_z(self.date),
            "clientId": self.client_id,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "paidAmount": self.paid_amount,
            "discount": self.discount,
            "paymentStatus": self.payment_status.value,
            "deliveryStatus": self.delivery_status.value,
            "modificationHistory": [entry.to_dict() for entry in self.modification_history],
            "isArchived": self.is_archived,
        }
        if self.notes is not None:
            data["notes"] = self.notes
        if self.payment_schedule_id is not None:
            data["paymentScheduleId"] = self.payment_schedule_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        return cls(
            id=as_str(data.get("id")),
            date=as_datetime(data.get("date")) or utcnow(),
            client_id=as_str(data.get("clientId")),
            items=tuple(OrderItem.from_dict(i) for i in (data.get("items") or [])),
            total=as_int(data.get("total"), "total"),
            paid_amount=as_int(data.get("paidAmount"), "paidAmount"),
            discount=as_int(data.get("discount"), "discount"),
            payment_status=parse_enum(PaymentStatus, data.get("paymentStatus") or PaymentStatus.PENDING.value, "paymentStatus"),
            delivery_status=parse_enum(DeliveryStatus, data.get("deliveryStatus") or DeliveryStatus.PENDING.value, "deliveryStatus"),
            notes=data.get("notes"),
            payment_schedule_id=as_optional_str(data.get("paymentScheduleId")),
            modification_history=tuple(
                Modification.from_dict(m) for m in (data.get("modificationHistory") or [])
            ),
            is_archived=bool(data.get("isArchived", False)),
        )


@dataclass(frozen=True)
class Payment:
    """Money received against an order. Refunds are negative amounts."""
    id: str
    order_id: str
    date: datetime
    amount: int
    method: PaymentMethod

    @property
    def is_refund(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "date": to_utc_z(self.date),
            "amount": self.amount,
            "method": self.method.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Payment":
        return cls(
            id=as_str(data.get("id")),
            order_id=as_str(data.get("orderId")),
            date=as_datetime(data.get("date")) or utcnow(),
            amount=as_int(data.get("amount"), "amount"),
            method=parse_enum(PaymentMethod, data.get("method") or PaymentMethod.CASH.value, "method"),
        )


@dataclass(frozen=True)
class Installment:
    due_date: datetime
    amount: int
    status: InstallmentStatus = InstallmentStatus.PENDING

    def to_dict(self) -> dict:
        return {"dueDate": to_utc_z(self.due_date), "amount": self.amount, "status": self.status.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Installment":
        return cls(
            due_date=as_datetime(data.get("dueDate"), "dueDate") or utcnow(),
            amount=as_int(data.get("amount"), "amount"),
            status=parse_enum(InstallmentStatus, data.get("status") or InstallmentStatus.PENDING.value, "status"),
        )


@dataclass(frozen=True)
class PaymentSchedule:
    id: str
    order_id: str
    installments: tuple[Installment, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "installments": [i.to_dict() for i in self.installments],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentSchedule":
        return cls(
            id=as_str(data.get("id")),
            order_id=as_str(data.get("orderId")),
            installments=tuple(Installment.from_dict(i) for i in (data.get("installments") or [])),
        )


@dataclass(frozen=True)
class ReturnItem:
    product_id: str
    quantity: int
    price: int
    size: str | None = None
    color: str | None = None

    @property
    def variant_key(self) -> tuple[str, str]:
        return variant_key(self.size, self.color)

    @property
    def has_variant(self) -> bool:
        return bool(self.size or self.color)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return _line_to_dict(
            {"productId": self.product_id, "quantity": self.quantity, "price": self.price},
            self.size,
            self.color,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ReturnItem":
        return cls(
            product_id=as_str(data.get("productId")),
            quantity=as_int(data.get("quantity"), "quantity"),
            price=as_int(data.get("price"), "price"),
            size=as_optional_str(data.get("size")),
            color=as_optional_str(data.get("color")),
        )

    @classmethod
    def coerce(cls, value) -> "ReturnItem":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class ProductReturn:
    id: str
    order_id: str
    date: datetime
    items: tuple[ReturnItem, ...]
    refund_amount: int
    refund_method: PaymentMethod
    notes: str | None = None

    @property
    def quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "orderId": self.order_id,
            "date": to_utc_z(self.date),
            "items": [item.to_dict() for item in self.items],
            "refundAmount": self.refund_amount,
            "refundMethod": self.refund_method.value,
        }
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ProductReturn":
        return cls(
            id=as_str(data.get("id")),
            order_id=as_str(data.get("orderId")),
            date=as_datetime(data.get("date")) or utcnow(),
            items=tuple(ReturnItem.from_dict(i) for i in (data.get("items") or [])),
            refund_amount=as_int(data.get("refundAmount"), "refundAmount"),
            refund_method=parse_enum(PaymentMethod, data.get("refundMethod") or PaymentMethod.CASH.value, "refundMethod"),
            notes=data.get("notes"),
        )
