from __future__ import annotations

from ..extensions import db
from boutique.time_utils import to_utc_z, utcnow


class StateDocument(db.Model):
    """
    Opaque JSON blob keyed by name.

    The persistence endpoint stores the whole shop state under a single key;
    there is no partial update and no versioning (last write wins).
    """
    __tablename__ = "state_documents"

    key = db.Column(db.String(64), primary_key=True)
    body = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "updated_at": to_utc_z(self.updated_at),
        }
