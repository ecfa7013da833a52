# image_studio/demo/seed_demo_data.py

from decimal import Decimal

from image_studio.storage.ledger import UsageLedger
from image_studio.storage.models import DailyUsageRecord

DEMO_RECORDS = [
    DailyUsageRecord(
        date="2024-01-01",
        requests=15,
        tokens_used=1250,
        estimated_cost=Decimal("0.001"),
    ),
    DailyUsageRecord(
        date="2024-01-02",
        requests=23,
        tokens_used=2100,
        estimated_cost=Decimal("0.002"),
    ),
    DailyUsageRecord(
        date="2024-01-03",
        requests=18,
        tokens_used=1800,
        estimated_cost=Decimal("0.001"),
    ),
]


def seed_demo_ledger(ledger: UsageLedger) -> int:
    """Insert the demo records that are not already in the ledger.

    Returns:
        Number of records inserted
    """
    inserted = 0
    for record in DEMO_RECORDS:
        if ledger.get(record.date) is None:
            ledger.insert_record(record)
            inserted += 1
    return inserted


if __name__ == "__main__":
    from image_studio.storage.db import DEFAULT_DB_PATH
    from image_studio.storage.repository import get_ledger

    count = seed_demo_ledger(get_ledger(DEFAULT_DB_PATH))
    print(f"Inserted {count} demo usage records")
