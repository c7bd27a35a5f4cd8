"""
reader_store.py

Participant records kept in memory and dumped as a whole to a JSON file
after every change. Each record is {"id": int, "name": str, "currentPage": int}.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from quran_pages import TOTAL_PAGES

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class StoreError(Exception):
    pass


class ValidationError(StoreError):
    pass


class RecordNotFound(StoreError):
    def __init__(self, record_id: Any):
        super().__init__(f"No participant with id {record_id}")
        self.record_id = record_id


def clean_name(name: Any) -> str:
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise ValidationError("Name required")
    return cleaned


def coerce_id(value: Any) -> Optional[int]:
    """Whole-number id from an int, a numeric string (" 1", "01") or an integral float."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_page(value: Any) -> int:
    """Accept an int (or a string/float holding one) in [1, TOTAL_PAGES]."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("currentPage must be a whole number")
    try:
        if isinstance(value, str):
            value = value.strip()
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("currentPage must be a whole number") from None
    if not number.is_integer():
        raise ValidationError("currentPage must be a whole number")
    page = int(number)
    if page < 1 or page > TOTAL_PAGES:
        raise ValidationError(f"currentPage must be between 1 and {TOTAL_PAGES}")
    return page


class ReaderStore:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._records: List[Record] = []
        self.load()

    def __len__(self) -> int:
        return len(self._records)

    # -------------------------------
    # Persistence
    # -------------------------------
    def load(self) -> None:
        """Read the data file, falling back to an empty list if it is unusable."""
        self._records = []
        if not self.path.exists():
            logger.info("No data file at %s, starting empty", self.path)
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to load %s, using in-memory list: %s", self.path, e)
            return

        if not isinstance(raw, list):
            logger.error("Data file %s does not hold a list, using in-memory list", self.path)
            return

        for item in raw:
            record_id = coerce_id(item.get("id")) if isinstance(item, dict) else None
            if record_id is None:
                logger.warning("Skipping malformed record in %s: %r", self.path, item)
                continue
            if self._find(record_id) is not None:
                logger.warning("Skipping duplicate id %s in %s", record_id, self.path)
                continue
            self._records.append({**item, "id": record_id})
        logger.info("Loaded %d participant(s) from %s", len(self._records), self.path)

    def save(self) -> bool:
        """Write every record to disk. Errors are logged, never raised."""
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".users-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
            tmp_name = None
            return True
        except OSError as e:
            logger.error("Failed to save %s: %s", self.path, e)
            return False
        finally:
            if tmp_name:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    # -------------------------------
    # Queries
    # -------------------------------
    def list(self) -> List[Record]:
        return [dict(r) for r in self._records]

    def get(self, record_id: Any) -> Optional[Record]:
        found = self._find(record_id)
        return dict(found) if found is not None else None

    def _find(self, record_id: Any) -> Optional[Record]:
        # ids arrive as strings from URLs
        key = coerce_id(record_id)
        if key is None:
            return None
        for record in self._records:
            if record["id"] == key:
                return record
        return None

    def _require(self, record_id: Any) -> Record:
        record = self._find(record_id)
        if record is None:
            raise RecordNotFound(record_id)
        return record

    def next_id(self) -> int:
        return max((r["id"] for r in self._records), default=0) + 1

    # -------------------------------
    # Mutations
    # -------------------------------
    def create(self, name: Any) -> Record:
        record = {"id": self.next_id(), "name": clean_name(name), "currentPage": 1}
        self._records.append(record)
        self.save()
        logger.info("Added participant %s (%s)", record["id"], record["name"])
        return dict(record)

    def update(self, record_id: Any, current_page: Any) -> Record:
        record = self._require(record_id)
        record["currentPage"] = parse_page(current_page)
        self.save()
        logger.info("Participant %s now on page %s", record["id"], record["currentPage"])
        return dict(record)

    def rename(self, record_id: Any, name: Any) -> Record:
        record = self._require(record_id)
        record["name"] = clean_name(name)
        self.save()
        return dict(record)

    def delete(self, record_id: Any) -> Record:
        record = self._require(record_id)
        self._records = [r for r in self._records if r is not record]
        self.save()
        logger.info("Removed participant %s (%s)", record["id"], record.get("name"))
        return dict(record)
