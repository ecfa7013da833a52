"""
SQLite-backed usage ledger.

Persists daily usage records and the append-only usage event log so the
dashboard survives process restarts.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .ledger import InMemoryUsageLedger, UsageLedger
from .models import DailyUsageRecord, UsageEvent

# Costs are stored as TEXT so Decimal sums stay exact.
_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS daily_usage (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL UNIQUE,
        requests INTEGER NOT NULL DEFAULT 0,
        tokens_used INTEGER NOT NULL DEFAULT 0,
        estimated_cost TEXT NOT NULL DEFAULT '0'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS usage_event (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        date TEXT NOT NULL,
        model TEXT NOT NULL,
        request_type TEXT NOT NULL,
        tokens_used INTEGER NOT NULL,
        cost TEXT NOT NULL
    )
    """,
)


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the ledger tables if they don't exist.

    ``usage_event`` is append-only; ``daily_usage`` rows are only ever
    incremented, never deleted.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        for statement in _SCHEMA:
            conn.execute(statement)
        conn.commit()
    finally:
        conn.close()


def _row_to_record(row) -> DailyUsageRecord:
    return DailyUsageRecord(
        date=row[0],
        requests=row[1],
        tokens_used=row[2],
        estimated_cost=Decimal(row[3]),
    )


class SqliteUsageLedger(UsageLedger):
    """Ledger stored in a SQLite file.

    Opens a connection per operation; ``record_event`` runs in a single
    transaction.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the ledger, creating the schema if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        initialize_schema(db_path)

    def get(self, date: str) -> Optional[DailyUsageRecord]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT date, requests, tokens_used, estimated_cost FROM daily_usage WHERE date = ?",
                (date,),
            ).fetchone()
            return _row_to_record(row) if row else None
        finally:
            conn.close()

    def record_event(self, event: UsageEvent) -> DailyUsageRecord:
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute("""
                INSERT INTO usage_event
                (timestamp, date, model, request_type, tokens_used, cost)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                event.timestamp.isoformat(),
                event.date,
                event.model,
                event.request_type,
                event.tokens_used,
                str(event.cost),
            ))
            conn.execute("INSERT OR IGNORE INTO daily_usage (date) VALUES (?)", (event.date,))
            row = conn.execute(
                "SELECT date, requests, tokens_used, estimated_cost FROM daily_usage WHERE date = ?",
                (event.date,),
            ).fetchone()
            record = _row_to_record(row)
            record.apply(event.tokens_used, event.cost)
            conn.execute("""
                UPDATE daily_usage
                SET requests = ?, tokens_used = ?, estimated_cost = ?
                WHERE date = ?
            """, (record.requests, record.tokens_used, str(record.estimated_cost), record.date))
            conn.commit()
            return record
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def insert_record(self, record: DailyUsageRecord) -> None:
        conn = get_connection(self.db_path)
        try:
            exists = conn.execute(
                "SELECT 1 FROM daily_usage WHERE date = ?", (record.date,)
            ).fetchone()
            if exists:
                raise ValueError(f"Usage record already exists for {record.date}")
            conn.execute("""
                INSERT INTO daily_usage (date, requests, tokens_used, estimated_cost)
                VALUES (?, ?, ?, ?)
            """, (record.date, record.requests, record.tokens_used, str(record.estimated_cost)))
            conn.commit()
        finally:
            conn.close()

    def records(self) -> List[DailyUsageRecord]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT date, requests, tokens_used, estimated_cost FROM daily_usage ORDER BY id"
            )
            return [_row_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def events(self, date: Optional[str] = None) -> List[UsageEvent]:
        conn = get_connection(self.db_path)
        try:
            query = """
                SELECT timestamp, date, model, request_type, tokens_used, cost
                FROM usage_event
            """
            params = []
            if date is not None:
                query += " WHERE date = ?"
                params.append(date)
            query += " ORDER BY id"

            cursor = conn.execute(query, params)
            return [
                UsageEvent(
                    timestamp=datetime.fromisoformat(row[0]),
                    date=row[1],
                    model=row[2],
                    request_type=row[3],
                    tokens_used=row[4],
                    cost=Decimal(row[5]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def __len__(self) -> int:
        conn = get_connection(self.db_path)
        try:
            return conn.execute("SELECT COUNT(*) FROM daily_usage").fetchone()[0]
        finally:
            conn.close()


def get_ledger(db_path: Optional[str] = None) -> UsageLedger:
    """Get a ledger instance.

    Args:
        db_path: Path to SQLite database file; None keeps usage in memory

    Returns:
        A SqliteUsageLedger when a path is given, otherwise an InMemoryUsageLedger
    """
    if db_path:
        return SqliteUsageLedger(db_path)
    return InMemoryUsageLedger()
