from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from boutique.models.catalog import variant_key
from boutique.models.statuses import (
    PurchaseOrderPaymentStatus,
    PurchaseOrderStatus,
    SupplierPaymentMethod,
    parse_enum,
)
from boutique.time_utils import to_utc_z, utcnow
from boutique.validation import as_datetime, as_int, as_optional_str, as_str


@dataclass(frozen=True)
class PurchaseOrderItem:
    product_id: str
    quantity: int
    purchase_price: int
    quantity_received: int = 0
    size: str | None = None
    color: str | None = None

    @property
    def variant_key(self) -> tuple[str, str]:
        return variant_key(self.size, self.color)

    @property
    def line_key(self) -> tuple[str, str, str]:
        return (self.product_id,) + self.variant_key

    @property
    def has_variant(self) -> bool:
        return bool(self.size or self.color)

    @property
    def remaining(self) -> int:
        return max(0, self.quantity - self.quantity_received)

    def to_dict(self) -> dict:
        data = {
            "productId": self.product_id,
            "quantity": self.quantity,
            "quantityReceived": self.quantity_received,
            "purchasePrice": self.purchase_price,
        }
        if self.size is not None:
            data["size"] = self.size
        if self.color is not None:
            data["color"] = self.color
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PurchaseOrderItem":
        return cls(
            product_id=as_str(data.get("productId")),
            quantity=as_int(data.get("quantity"), "quantity"),
            quantity_received=as_int(data.get("quantityReceived"), "quantityReceived"),
            purchase_price=as_int(data.get("purchasePrice"), "purchasePrice"),
            size=as_optional_str(data.get("size")),
            color=as_optional_str(data.get("color")),
        )

    @classmethod
    def coerce(cls, value) -> "PurchaseOrderItem":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class PurchaseOrder:
    id: str
    supplier_id: str
    date: datetime
    items: tuple[PurchaseOrderItem, ...]
    total: int
    status: PurchaseOrderStatus = PurchaseOrderStatus.SENT
    paid_amount: int = 0
    payment_status: PurchaseOrderPaymentStatus = PurchaseOrderPaymentStatus.PENDING
    notes: str | None = None

    @property
    def balance(self) -> int:
        return self.total - self.paid_amount

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "supplierId": self.supplier_id,
            "date": to_utc_z(self.date),
            "items": [item.to_dict() for item in self.items],
            "status": self.status.value,
            "total": self.total,
            "paidAmount": self.paid_amount,
            "paymentStatus": self.payment_status.value,
        }
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PurchaseOrder":
        return cls(
            id=as_str(data.get("id")),
            supplier_id=as_str(data.get("supplierId")),
            date=as_datetime(data.get("date")) or utcnow(),
            items=tuple(PurchaseOrderItem.from_dict(i) for i in (data.get("items") or [])),
            total=as_int(data.get("total"), "total"),
            status=parse_enum(PurchaseOrderStatus, data.get("status") or PurchaseOrderStatus.SENT.value, "status"),
            paid_amount=as_int(data.get("paidAmount"), "paidAmount"),
            payment_status=parse_enum(
                PurchaseOrderPaymentStatus,
                data.get("paymentStatus") or PurchaseOrderPaymentStatus.PENDING.value,
                "paymentStatus",
            ),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class SupplierPayment:
    id: str
    purchase_order_id: str
    date: datetime
    amount: int
    method: SupplierPaymentMethod

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchaseOrderId": self.purchase_order_id,
            "date": to_utc_z(self.date),
            "amount": self.amount,
            "method": self.method.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SupplierPayment":
        return cls(
            id=as_str(data.get("id")),
            purchase_order_id=as_str(data.get("purchaseOrderId")),
            date=as_datetime(data.get("date")) or utcnow(),
            amount=as_int(data.get("amount"), "amount"),
            method=parse_enum(
                SupplierPaymentMethod,
                data.get("method") or SupplierPaymentMethod.CASH.value,
                "method",
            ),
        )
