from .statuses import (
    PaymentStatus, DeliveryStatus, PurchaseOrderStatus, PurchaseOrderPaymentStatus,
    InstallmentStatus, PaymentMethod, SupplierPaymentMethod, UserRole, SaveStatus,
    BackupFrequency, MANUAL_DELIVERY_STATUSES,
)
from .catalog import Product, ProductVariant, Client, Supplier, variant_key
from .sales import (
    Order, OrderItem, Modification, Payment, Installment, PaymentSchedule,
    ReturnItem, ProductReturn,
)
from .purchasing import PurchaseOrder, PurchaseOrderItem, SupplierPayment
from .auth import User
from .settings import BackupSettings
from .state import ShopState, DEFAULT_CATEGORIES
from .storage import StateDocument

__all__ = [
    'PaymentStatus', 'DeliveryStatus', 'PurchaseOrderStatus', 'PurchaseOrderPaymentStatus',
    'InstallmentStatus', 'PaymentMethod', 'SupplierPaymentMethod', 'UserRole', 'SaveStatus',
    'BackupFrequency', 'MANUAL_DELIVERY_STATUSES',
    'Product', 'ProductVariant', 'Client', 'Supplier', 'variant_key',
    'Order', 'OrderItem', 'Modification', 'Payment', 'Installment', 'PaymentSchedule',
    'ReturnItem', 'ProductReturn',
    'PurchaseOrder', 'PurchaseOrderItem', 'SupplierPayment',
    'User', 'BackupSettings',
    'ShopState', 'DEFAULT_CATEGORIES',
    'StateDocument',
]
