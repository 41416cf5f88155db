from __future__ import annotations

from dataclasses import dataclass

from boutique.validation import as_int, as_optional_str, as_str


def variant_key(size: str | None, color: str | None) -> tuple[str, str]:
    """Identity of a size/color stock bucket; missing parts compare as ''."""
    return (size or "", color or "")


@dataclass(frozen=True)
class ProductVariant:
    quantity: int = 0
    size: str | None = None
    color: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return variant_key(self.size, self.color)

    def to_dict(self) -> dict:
        data = {"quantity": self.quantity}
        if self.size is not None:
            data["size"] = self.size
        if self.color is not None:
            data["color"] = self.color
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ProductVariant":
        return cls(
            quantity=as_int(data.get("quantity"), "quantity"),
            size=as_optional_str(data.get("size")),
            color=as_optional_str(data.get("color")),
        )


@dataclass(frozen=True)
class Product:
    """
    Catalogue item with its stock level.

    When variants are present, stock is the sum of the variant quantities.
    Stock may go negative after an oversell; delivery is where that is enforced.
    """
    id: str
    name: str
    sku: str = ""
    description: str = ""
    category: str = ""
    supplier_id: str = ""
    purchase_price: int = 0
    selling_price: int = 0
    stock: int = 0
    alert_threshold: int = 0
    variants: tuple[ProductVariant, ...] = ()
    image_url: str | None = None

    def find_variant(self, size: str | None, color: str | None) -> int | None:
        key = variant_key(size, color)
        for index, variant in enumerate(self.variants):
            if variant.key == key:
                return index
        return None

    @property
    def variant_stock(self) -> int:
        return sum(v.quantity for v in self.variants)

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.alert_threshold

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "description": self.description,
            "category": self.category,
            "supplierId": self.supplier_id,
            "purchasePrice": self.purchase_price,
            "sellingPrice": self.selling_price,
            "stock": self.stock,
            "alertThreshold": self.alert_threshold,
            "variants": [v.to_dict() for v in self.variants],
        }
        if self.image_url:
            data["imageUrl"] = self.image_url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")),
            sku=as_str(data.get("sku")),
            description=as_str(data.get("description")),
            category=as_str(data.get("category")),
            supplier_id=as_str(data.get("supplierId")),
            purchase_price=as_int(data.get("purchasePrice"), "purchasePrice"),
            selling_price=as_int(data.get("sellingPrice"), "sellingPrice"),
            stock=as_int(data.get("stock"), "stock"),
            alert_threshold=as_int(data.get("alertThreshold"), "alertThreshold"),
            variants=tuple(ProductVariant.from_dict(v) for v in (data.get("variants") or [])),
            image_url=as_optional_str(data.get("imageUrl")),
        )


@dataclass(frozen=True)
class Client:
    id: str
    first_name: str
    last_name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Client":
        return cls(
            id=as_str(data.get("id")),
            first_name=as_str(data.get("firstName")),
            last_name=as_str(data.get("lastName")),
            phone=as_str(data.get("phone")),
            email=as_str(data.get("email")),
            address=as_str(data.get("address")),
        )


@dataclass(frozen=True)
class Supplier:
    id: str
    company_name: str
    contact_person: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "companyName": self.company_name,
            "contactPerson": self.contact_person,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Supplier":
        return cls(
            id=as_str(data.get("id")),
            company_name=as_str(data.get("companyName")),
            contact_person=as_str(data.get("contactPerson")),
            phone=as_str(data.get("phone")),
            email=as_str(data.get("email")),
            address=as_str(data.get("address")),
        )
