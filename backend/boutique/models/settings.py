from __future__ import annotations

import re
from dataclasses import dataclass

from boutique.models.statuses import BackupFrequency, parse_enum
from boutique.validation import ValidationError, as_int

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True)
class BackupSettings:
    enabled: bool = False
    frequency: BackupFrequency = BackupFrequency.DAILY
    time: str = "22:00"
    last_backup_timestamp: int | None = None

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "frequency": self.frequency.value,
            "time": self.time,
            "lastBackupTimestamp": self.last_backup_timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BackupSettings":
        time = str(data.get("time") or "22:00")
        if not _TIME_RE.match(time):
            raise ValidationError("time must use the HH:MM format")
        last = data.get("lastBackupTimestamp")
        return cls(
            enabled=bool(data.get("enabled", False)),
            frequency=parse_enum(BackupFrequency, data.get("frequency") or BackupFrequency.DAILY.value, "frequency"),
            time=time,
            last_backup_timestamp=None if last is None else as_int(last, "lastBackupTimestamp"),
        )
