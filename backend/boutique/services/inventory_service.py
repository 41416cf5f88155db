# Overview: Stock arithmetic shared by orders, returns, cancellations and receipts.

"""
Inventory Service

Stock lives on Product.stock and, for products sold by size/color, on
Product.variants. Every order mutation computes one StockAdjustment holding
the net delta per product and per variant, then applies it to produce the
new Product values that travel inside the same action as the order change.

STRICTNESS:
- Sales (create/edit) must name an existing variant when the product has
  variants, and must not name one when it has none (validate_sale_lines).
- Restocking (cancel/return/edit rollback) applies to whatever variant
  matches and otherwise adjusts only the total.
- Receipts upsert: a size/color not yet on the product becomes a new variant.

Negative stock is allowed here. Delivery is where it is refused
(find_negative_stock).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from typing import Iterable

from boutique.models import Product, ProductVariant, ShopState, variant_key
from boutique.validation import ValidationError


class InventoryError(ValidationError):
    """Raised when sale lines do not match the catalogue."""
    pass


class StockAdjustment:
    """Accumulates signed quantity deltas per product and per size/color."""

    def __init__(self):
        self._totals: dict[str, int] = defaultdict(int)
        self._variants: dict[str, dict[tuple[str, str], int]] = defaultdict(lambda: defaultdict(int))
        self._variant_labels: dict[tuple[str, str, str], tuple[str | None, str | None]] = {}

    def add(self, product_id: str, quantity: int, size: str | None = None, color: str | None = None) -> None:
        self._totals[product_id] += quantity
        if size or color:
            key = variant_key(size, color)
            self._variants[product_id][key] += quantity
            self._variant_labels[(product_id,) + key] = (size, color)

    def add_lines(self, lines: Iterable, sign: int = 1) -> "StockAdjustment":
        """Add order/return/receipt lines; sign=-1 removes stock, +1 restores it."""
        for line in lines:
            self.add(line.product_id, sign * line.quantity, line.size, line.color)
        return self

    def apply(self, products: Iterable[Product], *, create_missing_variants: bool = False) -> tuple[Product, ...]:
        """
        Return the adjusted copies of every product touched by this adjustment.

        Products that are not in `products` are skipped (lookup miss). Unmatched
        variants are created only when create_missing_variants is set.
        """
        by_id = {p.id: p for p in products}
        updated = []
        for product_id, total_delta in self._totals.items():
            product = by_id.get(product_id)
            if product is None:
                continue
            variant_deltas = self._variants.get(product_id, {})
            if total_delta == 0 and not any(variant_deltas.values()):
                continue

            variants = list(product.variants)
            for key, delta in variant_deltas.items():
                if delta == 0:
                    continue
                index = product.find_variant(*key)
                if index is not None:
                    variants[index] = replace(variants[index], quantity=variants[index].quantity + delta)
                elif create_missing_variants:
                    size, color = self._variant_labels[(product_id,) + key]
                    variants.append(ProductVariant(quantity=delta, size=size, color=color))

            updated.append(replace(product, stock=product.stock + total_delta, variants=tuple(variants)))
        return tuple(updated)


def validate_sale_lines(state: ShopState, lines: Iterable) -> None:
    """
    Check that every sold line points at a known product and a valid variant.

    Raises InventoryError naming the first offending line.
    """
    for line in lines:
        product = state.product(line.product_id)
        if product is None:
            raise InventoryError(f"Product {line.product_id} not found")
        if product.variants:
            if not line.has_variant:
                raise InventoryError(
                    f"Product '{product.name}' is sold by size/color; a variant must be selected"
                )
            if product.find_variant(line.size, line.color) is None:
                raise InventoryError(
                    f"Product '{product.name}' has no variant "
                    f"size={line.size or '-'} color={line.color or '-'}"
                )
        elif line.has_variant:
            raise InventoryError(f"Product '{product.name}' has no size/color variants")


def find_negative_stock(state: ShopState, lines: Iterable) -> list[str]:
    """Names of products (or product variants) in `lines` whose stock is below zero."""
    shortages = []
    for line in lines:
        product = state.product(line.product_id)
        if product is None:
            continue
        negative = product.stock < 0
        label = product.name
        if line.has_variant:
            index = product.find_variant(line.size, line.color)
            if index is not None:
                label = f"{product.name} ({', '.join(p for p in (line.size, line.color) if p)})"
                negative = negative or product.variants[index].quantity < 0
        if negative and label not in shortages:
            shortages.append(label)
    return shortages


def normalize_variant_stock(product: Product) -> Product:
    """Products with variants carry stock equal to the sum of their variants."""
    if not product.variants:
        return product
    return replace(product, stock=product.variant_stock)
