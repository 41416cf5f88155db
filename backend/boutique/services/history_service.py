# Overview: Modification-history entries and amount formatting for order audit trails.

from __future__ import annotations

from datetime import datetime

from boutique.models import Modification
from boutique.time_utils import utcnow


def format_fcfa(amount: int) -> str:
    """3000 -> '3 000 FCFA' (French grouping)."""
    return f"{amount:,}".replace(",", " ") + " FCFA"


def history_entry(user: str, description: str, now: datetime | None = None) -> Modification:
    return Modification(date=now or utcnow(), user=user, description=description)
