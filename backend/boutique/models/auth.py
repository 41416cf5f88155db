from __future__ import annotations

from dataclasses import dataclass

from boutique.models.statuses import UserRole, parse_enum
from boutique.validation import as_str


@dataclass(frozen=True)
class User:
    """
    Shop operator.

    pin_hash holds a bcrypt hash of the login PIN, never the PIN itself.
    """
    id: str
    name: str
    role: UserRole
    pin_hash: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "pinHash": self.pin_hash,
        }

    def to_public_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "role": self.role.value}

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")),
            role=parse_enum(UserRole, data.get("role") or UserRole.SELLER.value, "role"),
            pin_hash=as_str(data.get("pinHash")),
        )
