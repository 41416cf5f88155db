# Overview: Service-layer operations for supplier purchase orders, receipts and supplier payments.

"""
Purchase Order Service

WHY: Replenishment. Purchase orders (POs) are sent to a supplier, received
in one or more deliveries, and paid in one or more supplier payments.

LIFECYCLE:
1. Envoyée: created, nothing received
2. Reçue partiellement: some units received
3. Reçue totalement: every line received in full (no further receipts)

DESIGN:
- status is derived from the lines (quantity vs quantity_received)
- payment_status is derived from paid_amount vs total
- A receipt raises quantity_received and product stock in ONE action; sizes
  or colors the product does not have yet become new variants
- Lines for a product stocked by size/color must name a variant, so stock
  stays equal to the sum of the variant quantities
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from boutique.models import (
    Product,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderPaymentStatus,
    PurchaseOrderStatus,
    ShopState,
    SupplierPayment,
    SupplierPaymentMethod,
)
from boutique.models.statuses import parse_enum
from boutique.services.history_service import format_fcfa
from boutique.services.identifier_service import generate_unique_id
from boutique.services.inventory_service import StockAdjustment
from boutique.services.payment_service import derive_purchase_order_payment_status
from boutique.store.actions import (
    PurchaseOrderAdded,
    PurchaseOrderItemsReceived,
    PurchaseOrderUpdated,
    SupplierPaymentAdded,
)
from boutique.time_utils import utcnow
from boutique.validation import ValidationError, as_amount, as_int, as_optional_str, as_str


class PurchaseOrderError(ValidationError):
    """Raised for purchase order errors."""
    pass


# =============================================================================
# STATUS DERIVATION
# =============================================================================

def derive_purchase_order_status(items: Iterable[PurchaseOrderItem],
                                 current: PurchaseOrderStatus = PurchaseOrderStatus.SENT) -> PurchaseOrderStatus:
    """Fully received when every line is, partially when any unit arrived, else unchanged."""
    items = list(items)
    if items and all(item.quantity_received >= item.quantity for item in items):
        return PurchaseOrderStatus.FULLY_RECEIVED
    if any(item.quantity_received > 0 for item in items):
        return PurchaseOrderStatus.PARTIALLY_RECEIVED
    return current


def _coerce_items(items: Iterable) -> tuple[PurchaseOrderItem, ...]:
    lines = tuple(PurchaseOrderItem.coerce(item) for item in items or ())
    if not lines:
        raise PurchaseOrderError("A purchase order needs at least one item")
    seen = set()
    for line in lines:
        if not line.product_id:
            raise PurchaseOrderError("Each item needs a productId")
        if line.quantity <= 0:
            raise PurchaseOrderError("Ordered quantities must be positive")
        if line.purchase_price < 0:
            raise PurchaseOrderError("Purchase prices cannot be negative")
        if line.line_key in seen:
            raise PurchaseOrderError(f"Duplicate line for product {line.product_id}")
        seen.add(line.line_key)
    return lines


def _check_variant_lines(state: ShopState, lines: Iterable[PurchaseOrderItem]) -> None:
    """Products stocked by size/color take purchase lines that name a variant."""
    for line in lines:
        product = state.product(line.product_id)
        if product is not None and product.variants and not line.has_variant:
            raise PurchaseOrderError(
                f"Product '{product.name}' is stocked by size/color; a variant must be selected"
            )


def compute_purchase_total(items: Iterable[PurchaseOrderItem]) -> int:
    return sum(item.quantity * item.purchase_price for item in items)


# =============================================================================
# CREATE / UPDATE
# =============================================================================

def add_purchase_order(state: ShopState, supplier_id: str, items: Iterable, total=None,
                       notes: str | None = None, *, now: datetime | None = None) -> PurchaseOrderAdded:
    """
    Create a PO in status 'Envoyée', nothing paid, nothing received.

    total defaults to the sum of quantity x purchase price.
    """
    supplier_id = as_str(supplier_id)
    if not supplier_id:
        raise PurchaseOrderError("supplierId is required")
    lines = tuple(replace(line, quantity_received=0) for line in _coerce_items(items))
    _check_variant_lines(state, lines)
    total = compute_purchase_total(lines) if total is None else as_amount(total, "total")
    if total < 0:
        raise PurchaseOrderError("Total cannot be negative")

    purchase_order = PurchaseOrder(
        id=generate_unique_id("po"),
        supplier_id=supplier_id,
        date=now or utcnow(),
        items=lines,
        total=total,
        status=PurchaseOrderStatus.SENT,
        paid_amount=0,
        payment_status=PurchaseOrderPaymentStatus.PENDING,
        notes=as_optional_str(notes),
    )
    return PurchaseOrderAdded(purchase_order=purchase_order)


def update_purchase_order(state: ShopState, purchase_order_id: str, supplier_id: str, items: Iterable,
                          total=None, notes: str | None = None) -> PurchaseOrderUpdated | None:
    """
    Edit supplier, lines and notes of a PO that is not fully received.

    Already received quantities are kept per line; a line cannot be reduced
    below what was received, and the total cannot drop below what was paid.
    """
    purchase_order = state.purchase_order(purchase_order_id)
    if purchase_order is None:
        return None
    if purchase_order.status == PurchaseOrderStatus.FULLY_RECEIVED:
        raise PurchaseOrderError(f"Purchase order {purchase_order.id} is fully received and cannot be edited")

    received = {item.line_key: item.quantity_received for item in purchase_order.items}
    lines = []
    for line in _coerce_items(items):
        already = received.pop(line.line_key, 0)
        if line.quantity < already:
            raise PurchaseOrderError(
                f"Cannot order {line.quantity} of {line.product_id}: {already} already received"
            )
        lines.append(replace(line, quantity_received=already))
    if any(qty > 0 for qty in received.values()):
        raise PurchaseOrderError("Lines with received units cannot be removed")
    _check_variant_lines(state, lines)

    total = compute_purchase_total(lines) if total is None else as_amount(total, "total")
    if total < purchase_order.paid_amount:
        raise PurchaseOrderError(
            f"Total {format_fcfa(total)} is below the amount already paid ({format_fcfa(purchase_order.paid_amount)})"
        )

    updated = replace(
        purchase_order,
        supplier_id=as_str(supplier_id) or purchase_order.supplier_id,
        items=tuple(lines),
        total=total,
        notes=as_optional_str(notes),
        status=derive_purchase_order_status(lines, PurchaseOrderStatus.SENT),
        payment_status=derive_purchase_order_payment_status(purchase_order.paid_amount, total),
    )
    return PurchaseOrderUpdated(purchase_order=updated)


# =============================================================================
# RECEIPT
# =============================================================================

def _coerce_receptions(received_items: Iterable) -> list[tuple[PurchaseOrderItem, int]]:
    receptions = []
    for entry in received_items or ():
        if isinstance(entry, dict):
            item, quantity = entry.get("item"), entry.get("quantityToReceive")
        else:
            item, quantity = entry
        receptions.append((PurchaseOrderItem.coerce(item), as_int(quantity, "quantityToReceive")))
    return receptions


def receive_purchase_order_items(state: ShopState, purchase_order_id: str,
                                 received_items: Iterable) -> PurchaseOrderItemsReceived | None:
    """
    Receive units on a PO.

    received_items: iterable of {"item": <line>, "quantityToReceive": n}
    or (line, n) pairs. Lines are matched by product, size and color.

    Raises:
        PurchaseOrderError: PO fully received, unknown line, negative quantity,
            quantity above what remains, nothing to receive, or a line
            without size/color for a product that has variants
    """
    purchase_order = state.purchase_order(purchase_order_id)
    if purchase_order is None:
        return None
    if purchase_order.status == PurchaseOrderStatus.FULLY_RECEIVED:
        raise PurchaseOrderError(f"Purchase order {purchase_order.id} is already fully received")

    incoming = defaultdict(int)
    for item, quantity in _coerce_receptions(received_items):
        if quantity < 0:
            raise PurchaseOrderError("Received quantities cannot be negative")
        incoming[item.line_key] += quantity

    lines_by_key = {item.line_key: item for item in purchase_order.items}
    for key, quantity in incoming.items():
        line = lines_by_key.get(key)
        if line is None:
            raise PurchaseOrderError(f"Product {key[0]} is not on purchase order {purchase_order.id}")
        if quantity > line.remaining:
            raise PurchaseOrderError(
                f"Cannot receive {quantity} of {line.product_id}: only {line.remaining} outstanding"
            )
    if not any(incoming.values()):
        raise PurchaseOrderError("Enter a quantity for at least one item")
    _check_variant_lines(state, (lines_by_key[key] for key, quantity in incoming.items() if quantity))

    adjustment = StockAdjustment()
    new_items = []
    for item in purchase_order.items:
        quantity = incoming.get(item.line_key, 0)
        if quantity:
            adjustment.add(item.product_id, quantity, item.size, item.color)
            item = replace(item, quantity_received=item.quantity_received + quantity)
        new_items.append(item)

    updated = replace(
        purchase_order,
        items=tuple(new_items),
        status=derive_purchase_order_status(new_items, purchase_order.status),
    )
    products = adjustment.apply(state.products, create_missing_variants=True)
    return PurchaseOrderItemsReceived(purchase_order=updated, products=products)


# =============================================================================
# SUPPLIER PAYMENTS
# =============================================================================

def add_supplier_payment(state: ShopState, purchase_order_id: str, amount,
                         method=SupplierPaymentMethod.CASH,
                         *, now: datetime | None = None) -> SupplierPaymentAdded | None:
    purchase_order = state.purchase_order(purchase_order_id)
    if purchase_order is None:
        return None
    amount = as_amount(amount)
    method = parse_enum(SupplierPaymentMethod, method, "method")
    if amount <= 0:
        raise PurchaseOrderError("Payment amount must be positive")
    remaining = purchase_order.total - purchase_order.paid_amount
    if amount > remaining:
        raise PurchaseOrderError(
            f"Payment of {format_fcfa(amount)} exceeds remaining balance {format_fcfa(max(remaining, 0))}"
        )

    payment = SupplierPayment(
        id=generate_unique_id("spay"),
        purchase_order_id=purchase_order.id,
        date=now or utcnow(),
        amount=amount,
        method=method,
    )
    paid = purchase_order.paid_amount + amount
    updated = replace(
        purchase_order,
        paid_amount=paid,
        payment_status=derive_purchase_order_payment_status(paid, purchase_order.total),
    )
    return SupplierPaymentAdded(supplier_payment=payment, purchase_order=updated)


# =============================================================================
# REPLENISHMENT
# =============================================================================

def suggested_quantity(product: Product) -> int:
    return max(1, product.alert_threshold * 2 - product.stock)


def replenishment_suggestions(state: ShopState) -> dict[str, list[tuple[Product, int]]]:
    """
    Low-stock products that have a supplier, grouped by supplier id, each with
    a suggested reorder quantity of max(1, 2 x alert threshold - stock).
    """
    grouped: dict[str, list[tuple[Product, int]]] = {}
    for product in state.products:
        if product.supplier_id and product.is_low_stock:
            grouped.setdefault(product.supplier_id, []).append((product, suggested_quantity(product)))
    return grouped


def create_replenishment_order(state: ShopState, supplier_id: str,
                               quantities: dict[str, int] | None = None,
                               *, now: datetime | None = None) -> PurchaseOrderAdded:
    """
    Turn one supplier's low-stock suggestions into a PO.

    quantities overrides the suggested quantity per product id; products with
    a quantity of 0 are left out. A product stocked by size/color is reordered
    on its lowest-stocked variant.
    """
    suggestions = replenishment_suggestions(state).get(supplier_id)
    if not suggestions:
        raise PurchaseOrderError(f"No low-stock products for supplier {supplier_id}")
    quantities = quantities or {}
    items = []
    for product, suggested in suggestions:
        quantity = as_int(quantities.get(product.id, suggested), "quantity")
        if quantity > 0:
            variant = min(product.variants, key=lambda v: v.quantity, default=None)
            items.append(PurchaseOrderItem(
                product_id=product.id,
                quantity=quantity,
                purchase_price=product.purchase_price,
                size=variant.size if variant else None,
                color=variant.color if variant else None,
            ))
    if not items:
        raise PurchaseOrderError("Select a quantity for at least one product")
    return add_purchase_order(state, supplier_id, items, now=now)
