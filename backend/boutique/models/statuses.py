"""
Closed status and method vocabularies.

The French labels are the values stored in the state document and backup
files; they are part of the on-disk format and must not be translated.
"""

from __future__ import annotations

from enum import Enum

from boutique.validation import ValidationError


class PaymentStatus(str, Enum):
    PAID = "Payé"
    PENDING = "En attente"
    PARTIALLY_PAID = "Partiellement payé"
    CANCELLED = "Annulée"
    REFUNDED = "Remboursé"
    PARTIALLY_REFUNDED = "Partiellement remboursé"


class DeliveryStatus(str, Enum):
    PENDING = "En attente"
    PREPARING = "En préparation"
    DELIVERED = "Livrée"
    CANCELLED = "Annulée"
    OUT_OF_STOCK = "Rupture de stock"
    PARTIALLY_RETURNED = "Partiellement retourné"
    RETURNED = "Retourné"


# Delivery statuses an operator may pick by hand. The others are written
# only by cancellation and returns.
MANUAL_DELIVERY_STATUSES = (
    DeliveryStatus.PENDING,
    DeliveryStatus.PREPARING,
    DeliveryStatus.DELIVERED,
    DeliveryStatus.OUT_OF_STOCK,
)


class PurchaseOrderStatus(str, Enum):
    SENT = "Envoyée"
    PARTIALLY_RECEIVED = "Reçue partiellement"
    FULLY_RECEIVED = "Reçue totalement"


class PurchaseOrderPaymentStatus(str, Enum):
    PAID = "Payé"
    PENDING = "En attente"
    PARTIALLY_PAID = "Partiellement payé"


class InstallmentStatus(str, Enum):
    PENDING = "En attente"
    PAID = "Payé"


class PaymentMethod(str, Enum):
    CASH = "Espèces"
    MOBILE_MONEY = "Mobile Money"
    CREDIT_CARD = "Carte de crédit"


class SupplierPaymentMethod(str, Enum):
    CASH = "Espèces"
    BANK_TRANSFER = "Virement bancaire"
    CHECK = "Chèque"


class UserRole(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    SELLER = "Vendeur"


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class BackupFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


def parse_enum(enum_cls, value, field: str):
    """Look up an enum member by value, raising ValidationError on unknown labels."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field}: {value!r}. Must be one of {allowed}")
