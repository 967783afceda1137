"""
Mock time-record store for running without a backend.
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pendulum import Date

from ..domain.exceptions import RecordStoreError
from ..domain.timeunits import MINUTES_PER_DAY
from .records import SlotRecommendation, TimeRecord

logger = logging.getLogger(__name__)

SAMPLE_DATA_FILE = Path(__file__).parent / "mock_time_records.json"
DEFAULT_RECOMMENDED_LENGTH = 60


class MockRecordStore:
    """
    In-memory store with the same interface as ``TimeRecordClient``.

    Records are loaded from ``data_file`` when it exists, otherwise from
    the bundled sample data. When a ``data_file`` is given every write is
    flushed back to it, so consecutive CLI runs see each other's changes.
    """

    def __init__(
        self,
        data_file: Optional[Path] = None,
        records: Optional[Iterable[TimeRecord]] = None,
    ):
        self.data_file = data_file
        self._records: Dict[str, TimeRecord] = {}

        if records is not None:
            for record in records:
                self._records[record.id] = record
        else:
            self._load(data_file if data_file and data_file.exists() else SAMPLE_DATA_FILE)

    def _load(self, path: Path) -> None:
        """Load records from a JSON array file."""
        if not path.exists():
            return

        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = json.load(f)
            except json.JSONDecodeError as e:
                raise RecordStoreError(f"Invalid mock data in {path}: {e}") from e

        for item in raw:
            try:
                record = TimeRecord.model_validate(item)
            except ValueError as e:
                logger.warning("Skipping invalid mock record in %s: %s", path, e)
                continue
            self._records[record.id] = record

    def _flush(self) -> None:
        if self.data_file is None:
            return
        payload = [record.to_payload() for record in self._records.values()]
        with open(self.data_file, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

    async def query(self, date: Date) -> List[TimeRecord]:
        day = date.isoformat()
        return sorted(
            (record for record in self._records.values() if record.date == day),
            key=lambda r: r.start_time,
        )

    async def save(self, record: TimeRecord) -> None:
        if record.id in self._records:
            raise RecordStoreError(f"Record {record.id} already exists")
        self._records[record.id] = record
        self._flush()

    async def update(self, record: TimeRecord) -> None:
        if record.id not in self._records:
            raise RecordStoreError(f"Record {record.id} does not exist")
        self._records[record.id] = record
        self._flush()

    async def delete(self, record_id: str) -> None:
        if self._records.pop(record_id, None) is None:
            raise RecordStoreError(f"Record {record_id} does not exist")
        self._flush()

    async def delete_by_date(self, date: Date) -> None:
        day = date.isoformat()
        self._records = {
            record_id: record
            for record_id, record in self._records.items()
            if record.date != day
        }
        self._flush()

    async def query_for_week(self, date: Date) -> List[TimeRecord]:
        first = date.start_of("week")
        days = {first.add(days=offset).isoformat() for offset in range(7)}
        return sorted(
            (record for record in self._records.values() if record.date in days),
            key=lambda r: (r.date, r.start_time),
        )

    async def recommend_type(self, date: Date, time: int) -> Optional[str]:
        """
        Category recorded most often around ``time`` on any day.

        Ties go to the category used most recently.
        """
        counts: Counter = Counter()
        latest: Dict[str, str] = {}
        for record in self._records.values():
            if record.start_time <= time < record.end_time:
                counts[record.category_id] += 1
                latest[record.category_id] = max(latest.get(record.category_id, ""), record.date)

        if not counts:
            return None
        return max(counts, key=lambda category_id: (counts[category_id], latest[category_id]))

    async def recommend_next(self, date: Date) -> Optional[SlotRecommendation]:
        """
        Suggest a slot right after the last record of ``date``.

        The category is the usual one at that time, else the last record's.
        The length repeats the most recent earlier record of that category,
        falling back to an hour. Empty days get no suggestion.
        """
        day = await self.query(date)
        if not day:
            return None

        last_of_day = max(day, key=lambda r: r.end_time)
        start = last_of_day.end_time
        if start >= MINUTES_PER_DAY:
            return None

        category_id = await self.recommend_type(date, start) or last_of_day.category_id

        previous = [
            record for record in self._records.values()
            if record.category_id == category_id and (record.date, record.start_time) < (date.isoformat(), start)
        ]
        length = DEFAULT_RECOMMENDED_LENGTH
        if previous:
            last = max(previous, key=lambda r: (r.date, r.start_time))
            length = last.end_time - last.start_time

        return SlotRecommendation(
            date=date.isoformat(),
            start_time=start,
            end_time=min(start + length, MINUTES_PER_DAY),
            category_id=category_id,
        )
