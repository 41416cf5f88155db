# Overview: Storage of the shop document blob in the state_documents table.

from __future__ import annotations

from typing import Optional

from boutique.extensions import db
from boutique.models import ShopState, StateDocument
from boutique.time_utils import utcnow


class DocumentError(Exception):
    """Raised when a document body cannot be stored."""
    pass


def get_document(key: str) -> Optional[dict]:
    row = db.session.get(StateDocument, key)
    return row.body if row is not None else None


def put_document(key: str, body) -> StateDocument:
    """Upsert the blob under `key`. The body is stored as given."""
    if not isinstance(body, dict):
        raise DocumentError("Document body must be a JSON object")
    row = db.session.get(StateDocument, key)
    if row is None:
        row = StateDocument(key=key, body=body, updated_at=utcnow())
        db.session.add(row)
    else:
        row.body = body
        row.updated_at = utcnow()
    db.session.commit()
    return row


def load_state(key: str) -> ShopState:
    """Stored document as a ShopState; defaults when nothing is stored."""
    body = get_document(key)
    return ShopState.from_document(body) if body is not None else ShopState()


def save_state(key: str, state: ShopState) -> StateDocument:
    return put_document(key, state.to_document())
