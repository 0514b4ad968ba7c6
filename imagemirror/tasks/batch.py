from dataclasses import dataclass
from logging import getLogger

from flora.logging import FloraLogger

logger = getLogger(__name__)
structured_logger = FloraLogger.get_logger(__name__)

DEFAULT_PAGE_SIZE = 100


@dataclass
class MirrorSummary:
    successes: int = 0
    failures: int = 0

    @property
    def total(self):
        return self.successes + self.failures


def run_batch(store, processor, staging_dir, page_size=DEFAULT_PAGE_SIZE):
    """
    Run the record processor over every plant in the store.

    Records are read ``page_size`` at a time, ordered by primary key, until a
    page comes back empty, and processed one after another. Errors raised by
    the store or the processor are not caught here.

    Returns:
        A MirrorSummary with the number of successful and failed records.
    """
    summary = MirrorSummary()
    offset = 0
    page_number = 1

    while True:
        plants = store.fetch_page(offset, page_size)
        if not plants:
            break

        logger.info(
            "Processing page %s: %s plants from offset %s",
            page_number,
            len(plants),
            offset,
        )
        for plant in plants:
            if processor.process(plant, staging_dir):
                summary.successes += 1
            else:
                summary.failures += 1

        offset += page_size
        page_number += 1

    structured_logger.info(
        "Plant image mirror complete.",
        event_code="plant_mirror_batch_completed",
        summary=summary,
        pages=page_number - 1,
    )
    return summary
