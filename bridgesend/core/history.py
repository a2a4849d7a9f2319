"""Transfer history store."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from bridgesend.core.models import TransferRecord
from bridgesend.core.utils import get_logger

LOGGER = get_logger("bridgesend.history")

WRITE_ONCE_FIELDS = frozenset({"dest_tx_hash", "replaced_from"})


class TransferHistory:
    """Thread-safe record store shared by all send invocations.

    Write-once fields are applied with compare-and-set semantics: they are
    only written while still ``None``. When ``path`` is given the store is
    persisted as JSON after every mutation.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, TransferRecord] = {}
        self.path = path
        if path is not None and path.exists():
            self._load(path)

    def _load(self, path: Path) -> None:
        try:
            with path.open("r", encoding="utf-8") as fh:
                entries = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"History file contains invalid JSON: {path}") from exc
        for entry in entries:
            record = TransferRecord.from_dict(entry)
            self._records[record.hash] = record

    def _persist(self) -> None:
        if self.path is None:
            return
        payload = [record.to_dict() for record in self._records.values()]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
        tmp_path.replace(self.path)

    def add_transaction(self, record: TransferRecord) -> TransferRecord:
        """Store ``record`` and return the stored record for its hash."""
        with self._lock:
            existing = self._records.get(record.hash)
            if existing is not None:
                LOGGER.warning("Transfer %s already recorded; keeping existing record", record.hash)
                return existing
            self._records[record.hash] = record
            self._persist()
            return record

    def update_transaction(self, record: TransferRecord, **changes: Any) -> bool:
        """Apply ``changes`` to the stored record; returns True if anything changed."""
        unknown = set(changes) - set(record.to_dict())
        if unknown:
            raise ValueError(f"Unknown transfer fields: {', '.join(sorted(unknown))}")

        with self._lock:
            target = self._records.get(record.hash, record)
            if any(name in WRITE_ONCE_FIELDS and getattr(target, name) is not None for name in changes):
                LOGGER.debug("Skip update of %s: write-once field already set", record.hash)
                return False
            changed = False
            for name, value in changes.items():
                if getattr(target, name) != value:
                    setattr(target, name, value)
                    changed = True
            if changed:
                self._persist()
            return changed

    def get(self, tx_hash: str) -> Optional[TransferRecord]:
        with self._lock:
            return self._records.get(tx_hash)

    def lineage(self, tx_hash: str) -> List[str]:
        """Return ``tx_hash`` followed by every hash it replaced, newest first."""
        chain: List[str] = []
        with self._lock:
            current: Optional[str] = tx_hash
            while current is not None and current not in chain:
                chain.append(current)
                record = self._records.get(current)
                current = record.replaced_from if record else None
        return chain

    @property
    def transactions(self) -> List[TransferRecord]:
        with self._lock:
            return sorted(self._records.values(), key=lambda record: record.timestamp, reverse=True)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._persist()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = ["TransferHistory", "WRITE_ONCE_FIELDS"]
