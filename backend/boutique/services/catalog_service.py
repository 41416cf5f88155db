# Overview: Service-layer operations for products, categories, clients and suppliers.

from __future__ import annotations


from boutique.models import Client, Product, ShopState, Supplier
from boutique.services.identifier_service import generate_unique_id
from boutique.services.inventory_service import normalize_variant_stock
from boutique.store.actions import (
    CategoryAdded,
    ClientAdded,
    ClientUpdated,
    ProductAdded,
    ProductDeleted,
    ProductUpdated,
    SupplierAdded,
    SupplierUpdated,
)
from boutique.validation import ConflictError, ValidationError, as_str


class CatalogError(ValidationError):
    """Raised for catalogue (product/client/supplier) errors."""
    pass


def _as_dict(value) -> dict:
    if isinstance(value, (Product, Client, Supplier)):
        return value.to_dict()
    if not isinstance(value, dict):
        raise CatalogError("Expected an object")
    return dict(value)


# =============================================================================
# PRODUCTS
# =============================================================================

def _validated_product(state: ShopState, product: Product) -> Product:
    if not product.name:
        raise CatalogError("Product name is required")
    if product.purchase_price < 0 or product.selling_price < 0:
        raise CatalogError("Prices cannot be negative")
    if product.alert_threshold < 0:
        raise CatalogError("Alert threshold cannot be negative")
    keys = [variant.key for variant in product.variants]
    if len(keys) != len(set(keys)):
        raise CatalogError("Each size/color combination may appear only once")
    if product.sku:
        for other in state.products:
            if other.id != product.id and other.sku == product.sku:
                raise ConflictError(f"SKU '{product.sku}' is already used by '{other.name}'")
    return normalize_variant_stock(product)


def add_product(state: ShopState, data) -> ProductAdded:
    fields = _as_dict(data)
    fields["id"] = generate_unique_id("prod")
    product = _validated_product(state, Product.from_dict(fields))
    return ProductAdded(product=product)


def update_product(state: ShopState, data) -> ProductUpdated | None:
    fields = _as_dict(data)
    existing = state.product(as_str(fields.get("id")))
    if existing is None:
        return None
    product = _validated_product(state, Product.from_dict(fields))
    return ProductUpdated(product=product)


def delete_product(state: ShopState, product_id: str) -> ProductDeleted | None:
    if state.product(product_id) is None:
        return None
    return ProductDeleted(product_id=product_id)


def add_category(state: ShopState, category: str) -> CategoryAdded | None:
    category = as_str(category)
    if not category:
        raise CatalogError("Category name is required")
    if category in state.categories:
        return None
    return CategoryAdded(category=category)


# =============================================================================
# CLIENTS / SUPPLIERS
# =============================================================================

def _validated_client(client: Client) -> Client:
    if not client.first_name and not client.last_name:
        raise CatalogError("Client name is required")
    return client


def add_client(state: ShopState, data) -> ClientAdded:
    fields = _as_dict(data)
    fields["id"] = generate_unique_id("cli")
    return ClientAdded(client=_validated_client(Client.from_dict(fields)))


def update_client(state: ShopState, data) -> ClientUpdated | None:
    client = Client.from_dict(_as_dict(data))
    if state.client(client.id) is None:
        return None
    return ClientUpdated(client=_validated_client(client))


def _validated_supplier(supplier: Supplier) -> Supplier:
    if not supplier.company_name:
        raise CatalogError("Supplier company name is required")
    return supplier


def add_supplier(state: ShopState, data) -> SupplierAdded:
    fields = _as_dict(data)
    fields["id"] = generate_unique_id("sup")
    return SupplierAdded(supplier=_validated_supplier(Supplier.from_dict(fields)))


def update_supplier(state: ShopState, data) -> SupplierUpdated | None:
    supplier = Supplier.from_dict(_as_dict(data))
    if state.supplier(supplier.id) is None:
        return None
    return SupplierUpdated(supplier=_validated_supplier(supplier))
