"""Record persistence used by the listener and the active scanner."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from .config import FilterConfig
from .models import DiscoveryRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Durable storage for discoveries and the filter configuration."""

    def insert(self, record: DiscoveryRecord) -> DiscoveryRecord: ...

    def update(self, record: DiscoveryRecord) -> None: ...

    def load_config(self) -> FilterConfig: ...

    def save_config(self, config: FilterConfig) -> None: ...


class MemoryStore:
    """Thread-safe in-memory store keyed by URL, with JSON import/export."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path
        self._lock = threading.Lock()
        self._records: Dict[str, DiscoveryRecord] = {}
        self._next_id = 1

    def insert(self, record: DiscoveryRecord) -> DiscoveryRecord:
        """Stores ``record``; an existing URL is updated in place instead."""

        with self._lock:
            existing = self._records.get(record.url)
            if existing is not None:
                existing.merge(record)
                return existing
            record.id = self._next_id
            self._next_id += 1
            self._records[record.url] = record
            return record

    def update(self, record: DiscoveryRecord) -> None:
        with self._lock:
            for url, current in self._records.items():
                if current.id == record.id and record.id:
                    if url != record.url:
                        del self._records[url]
                    self._records[record.url] = record
                    return
        raise KeyError(f"Unknown record id {record.id}")

    def delete(self, record_id: int) -> bool:
        with self._lock:
            for url, current in self._records.items():
                if current.id == record_id:
                    del self._records[url]
                    return True
        return False

    def get(self, url: str) -> Optional[DiscoveryRecord]:
        with self._lock:
            return self._records.get(url)

    def all_records(self) -> List[DiscoveryRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda record: record.discovered_at, reverse=True)

    def records_for_host(self, host: str) -> List[DiscoveryRecord]:
        host = host.lower()
        return [record for record in self.all_records() if record.host == host]

    def distinct_hosts(self) -> List[str]:
        with self._lock:
            return sorted({record.host for record in self._records.values() if record.host})

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def load_config(self) -> FilterConfig:
        if self.config_path is None or not self.config_path.exists():
            return FilterConfig()
        try:
            raw = json.loads(self.config_path.read_text(encoding="utf-8"))
            return FilterConfig.from_dict(raw)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load %s, using defaults: %s", self.config_path, exc)
            return FilterConfig()

    def save_config(self, config: FilterConfig) -> None:
        if self.config_path is None:
            return
        self.config_path.write_text(json.dumps(config.to_dict(), indent=4), encoding="utf-8")

    # ------------------------------------------------------------------
    # JSON import/export
    # ------------------------------------------------------------------
    def export_json(self, path: Path) -> int:
        records = self.all_records()
        data = [record.to_dict() for record in records]
        path.write_text(json.dumps(data, indent=4), encoding="utf-8")
        return len(records)

    def import_json(self, path: Path) -> int:
        raw = json.loads(path.read_text(encoding="utf-8"))
        imported = 0
        for entry in raw:
            record = DiscoveryRecord.from_dict(entry)
            record.id = 0
            self.insert(record)
            imported += 1
        return imported
