# Overview: Backup export/restore, data reset and backup settings.

from __future__ import annotations

import json

from boutique.models import BackupSettings, ShopState
from boutique.services.auth_service import hash_pin
from boutique.store.actions import (
    BackupSettingsUpdated,
    DataReset,
    DataRestored,
    LastBackupTimestampUpdated,
)
from boutique.validation import ValidationError, as_int


class BackupError(ValidationError):
    """Raised when a backup file cannot be read."""
    pass


def export_document(state: ShopState) -> dict:
    """Backup payload: the persisted document (no session data)."""
    return state.to_document()


def export_json(state: ShopState) -> str:
    return json.dumps(export_document(state), ensure_ascii=False, indent=2)


def _upgrade_legacy_pins(document):
    """Older backups carry plain `pin` fields; replace them with bcrypt hashes."""
    if not isinstance(document, dict) or not isinstance(document.get("users"), list):
        return document
    users = []
    for raw in document["users"]:
        if isinstance(raw, dict) and raw.get("pin") and not raw.get("pinHash"):
            pin = str(raw["pin"])
            raw = {k: v for k, v in raw.items() if k != "pin"}
            raw["pinHash"] = hash_pin(pin)
        users.append(raw)
    return {**document, "users": users}


def parse_backup(payload) -> ShopState:
    """Accept a JSON string/bytes or an already decoded document."""
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise BackupError(f"Backup is not valid JSON: {exc.msg}")
    try:
        return ShopState.from_document(_upgrade_legacy_pins(payload))
    except ValidationError as exc:
        raise BackupError(f"Invalid backup: {exc}")


def restore_data(state: ShopState, payload) -> DataRestored:
    return DataRestored(state=parse_backup(payload))


def reset_all_data(state: ShopState) -> DataReset:
    return DataReset()


def update_backup_settings(state: ShopState, settings) -> BackupSettingsUpdated:
    if not isinstance(settings, BackupSettings):
        merged = {**state.backup_settings.to_dict(), **dict(settings)}
        settings = BackupSettings.from_dict(merged)
    return BackupSettingsUpdated(settings=settings)


def update_last_backup_timestamp(state: ShopState, timestamp) -> LastBackupTimestampUpdated:
    timestamp = as_int(timestamp, "timestamp")
    if timestamp <= 0:
        raise BackupError("timestamp must be a positive epoch in milliseconds")
    return LastBackupTimestampUpdated(timestamp=timestamp)
