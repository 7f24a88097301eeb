"""
Durable storage of the throttler status.

The record is {"conf": ..., "status": ...}. A started throttler is stored
with its config; a stopped one has no record at all.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .config import ThrottlerConfig, ThrottlerStatus
from .exceptions import PersistenceCorruptionError
from .validation import validate_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusRecord:
    """Persisted throttler state. conf is set only when status is Started."""

    status: ThrottlerStatus
    conf: Optional[ThrottlerConfig] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "conf": self.conf.to_dict() if self.conf is not None else None,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Any, source: str = "<record>") -> "StatusRecord":
        """
        Parse a stored record.

        Raises:
            PersistenceCorruptionError: If the record is malformed.
        """
        if not isinstance(data, dict):
            raise PersistenceCorruptionError(source, "record is not an object")

        try:
            status = ThrottlerStatus(data.get("status"))
        except ValueError:
            raise PersistenceCorruptionError(source, f"unknown status {data.get('status')!r}")

        raw_conf = data.get("conf")
        if raw_conf is not None and not isinstance(raw_conf, dict):
            raise PersistenceCorruptionError(source, "conf is not an object")
        if (raw_conf is not None) != (status == ThrottlerStatus.STARTED):
            raise PersistenceCorruptionError(source, f"conf does not match status {status.value}")

        conf = ThrottlerConfig.from_dict(raw_conf) if raw_conf is not None else None
        if conf is not None:
            # the interface may be gone since the record was written; only its shape is checked
            checked = validate_config(conf, interface_exists=lambda name: isinstance(name, str) and bool(name))
            if not checked.ok:
                raise PersistenceCorruptionError(source, checked.message)
        return cls(status=status, conf=conf)


class StatusStore(ABC):
    """Storage for the single status record."""

    @abstractmethod
    def load(self) -> Optional[StatusRecord]:
        """Return the stored record, or None if there is none."""

    @abstractmethod
    def save(self, record: StatusRecord) -> None:
        """Durably replace the stored record."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored record. Missing records are not an error."""


class FileStatusStore(StatusStore):
    """
    Status record kept as a JSON file.

    Writes go through a temporary file in the same directory followed by
    an atomic rename, so readers see either the old or the new record.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> Optional[StatusRecord]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PersistenceCorruptionError(str(self.path), f"invalid JSON: {e}")
        except OSError as e:
            raise PersistenceCorruptionError(str(self.path), str(e))

        return StatusRecord.from_dict(data, source=str(self.path))

    def save(self, record: StatusRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved throttler status to {self.path}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.debug(f"Removed throttler status file {self.path}")


class MemoryStatusStore(StatusStore):
    """Status record kept in memory only."""

    def __init__(self, record: Optional[StatusRecord] = None):
        self.record = record

    def load(self) -> Optional[StatusRecord]:
        return self.record

    def save(self, record: StatusRecord) -> None:
        self.record = record

    def clear(self) -> None:
        self.record = None
