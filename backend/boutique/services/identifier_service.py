# Overview: Identifier generation for entities stored in the shop document.

from __future__ import annotations

import secrets
import string

from boutique.time_utils import to_epoch_ms, utcnow

_ALPHABET = string.ascii_lowercase + string.digits


def generate_unique_id(prefix: str) -> str:
    """
    Build an id like "ord-1718000000000-k3j9x0a1b".

    Prefix, creation time in milliseconds and a random suffix, so ids stay
    unique across sessions without a central sequence.
    """
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}-{to_epoch_ms(utcnow())}-{suffix}"
