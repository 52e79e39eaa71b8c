"""Sample data for a fresh shop."""

import logging

from .storage import Storage

logger = logging.getLogger(__name__)

SAMPLE_FLOWERS = [
    ("Red Roses", 24),
    ("White Lilies", 18),
    ("Pink Carnations", 30),
    ("Yellow Tulips", 15),
]

SAMPLE_NOTES = [
    (
        "Weekly Supplier Meeting",
        "Meeting with rose supplier scheduled for Friday at 2pm. Need to discuss "
        "increased orders for upcoming wedding season.",
    ),
    (
        "Store Closing Early",
        "The store will be closing at 4pm next Monday for staff training. Ensure "
        "all deliveries are scheduled before 3pm.",
    ),
]


def seed_storage(storage: Storage) -> bool:
    """
    Add sample stock and notes if the warehouse is empty.

    Returns:
        True if data was added, False if the warehouse already had stock.
    """
    if storage.list_flowers():
        return False

    for name, amount in SAMPLE_FLOWERS:
        storage.add_flowers(name, amount)
    for title, content in SAMPLE_NOTES:
        storage.add_note(title, content)

    logger.info(
        "Seeded %d flower(s) and %d note(s)", len(SAMPLE_FLOWERS), len(SAMPLE_NOTES)
    )
    return True
