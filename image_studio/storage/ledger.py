"""
Usage ledger.

Ordered collection of daily usage records, one per distinct date, in the
order the dates were first seen.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .models import DailyUsageRecord, UsageEvent


class UsageLedger(ABC):
    """Abstract base for ledger implementations.

    Records returned by any method are copies; the ledger is only ever
    changed through ``record_event`` and ``insert_record``.
    """

    @abstractmethod
    def get(self, date: str) -> Optional[DailyUsageRecord]:
        """Return the record for ``date`` or None if nothing was recorded."""

    @abstractmethod
    def record_event(self, event: UsageEvent) -> DailyUsageRecord:
        """Find or create the record for ``event.date`` and apply the event.

        Returns:
            The updated record
        """

    @abstractmethod
    def insert_record(self, record: DailyUsageRecord) -> None:
        """Add a pre-aggregated record for a date not yet in the ledger.

        Raises:
            ValueError: If the date already has a record
        """

    @abstractmethod
    def records(self) -> List[DailyUsageRecord]:
        """All records in insertion order."""

    @abstractmethod
    def events(self, date: Optional[str] = None) -> List[UsageEvent]:
        """Recorded events in insertion order, optionally for one date."""

    def recent(self, limit: int = 7) -> List[DailyUsageRecord]:
        """The last ``limit`` records in insertion order."""
        if limit <= 0:
            return []
        return self.records()[-limit:]

    def __len__(self) -> int:
        return len(self.records())


class InMemoryUsageLedger(UsageLedger):
    """Process-lifetime ledger. Contents are lost when the process exits."""

    def __init__(self, records: Optional[Iterable[DailyUsageRecord]] = None):
        self._records: Dict[str, DailyUsageRecord] = {}
        self._events: List[UsageEvent] = []
        for record in records or ():
            self.insert_record(record)

    def get(self, date: str) -> Optional[DailyUsageRecord]:
        record = self._records.get(date)
        return replace(record) if record is not None else None

    def record_event(self, event: UsageEvent) -> DailyUsageRecord:
        record = self._records.get(event.date)
        if record is None:
            record = DailyUsageRecord(date=event.date)
            self._records[event.date] = record
        record.apply(event.tokens_used, event.cost)
        self._events.append(event)
        return replace(record)

    def insert_record(self, record: DailyUsageRecord) -> None:
        if record.date in self._records:
            raise ValueError(f"Usage record already exists for {record.date}")
        self._records[record.date] = replace(record)

    def records(self) -> List[DailyUsageRecord]:
        return [replace(record) for record in self._records.values()]

    def events(self, date: Optional[str] = None) -> List[UsageEvent]:
        if date is None:
            return list(self._events)
        return [event for event in self._events if event.date == date]

    def __len__(self) -> int:
        return len(self._records)
