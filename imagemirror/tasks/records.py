import concurrent.futures
import re
from logging import getLogger

from flora.logging import FloraLogger

from .images import fetch_and_publish

logger = getLogger(__name__)
structured_logger = FloraLogger.get_logger(__name__)

DEFAULT_QUOTA = 3
UNKNOWN_SPECIES = "unknown"

LABEL_SEPARATORS = re.compile(r"[\s/\\]+")


def usable_urls(urls):
    """Drop null, empty and non-string entries, keeping order"""
    return [url for url in urls or () if isinstance(url, str) and url.strip()]


def get_name_prefix(record):
    species = LABEL_SEPARATORS.sub("_", record.species or UNKNOWN_SPECIES)
    return f"{record.id}_{species}"


class RecordProcessor:
    """
    Mirrors the images of one plant record at a time.

    Candidates come from the record's original URLs first and its backup URLs
    second. Acquisitions run on the shared ``executor`` but only as many are
    submitted at once as the quota still needs; each slice is awaited before
    deciding whether to submit more.
    """

    def __init__(self, fetcher, gateway, store, executor, quota=DEFAULT_QUOTA):
        self.fetcher = fetcher
        self.gateway = gateway
        self.store = store
        self.executor = executor
        self.quota = quota

    def is_mirrored(self, record):
        published = [
            url
            for url in usable_urls(record.backup_urls)
            if self.gateway.is_published_url(url)
        ]
        return len(published) >= self.quota

    def process(self, record, staging_dir) -> bool:
        """
        Publish up to ``quota`` images for the record and store their URLs.

        Returns:
            True if the record was already mirrored or exactly ``quota``
            images were published, False otherwise. Partial results are
            still saved.
        """
        plant_logger = structured_logger.bind(plant=record)

        if self.is_mirrored(record):
            plant_logger.info(
                "Plant already references mirrored images; skipping.",
                event_code="plant_mirror_skipped",
            )
            return True

        name_prefix = get_name_prefix(record)
        logger.info("Processing %s (ID: %s)", record.species or "Unknown", record.id)

        acquired = []
        self.acquire(
            usable_urls(record.original_urls),
            "original",
            name_prefix,
            staging_dir,
            acquired,
        )
        if len(acquired) < self.quota:
            self.acquire(
                usable_urls(record.backup_urls),
                "backup",
                name_prefix,
                staging_dir,
                acquired,
            )

        if acquired:
            self.store.update_backup_urls(record.id, acquired)

        if len(acquired) == self.quota:
            plant_logger.info(
                "Plant images mirrored.",
                event_code="plant_mirror_succeeded",
                image_count=len(acquired),
            )
            return True

        plant_logger.warning(
            "Plant images not fully mirrored.",
            event_code="plant_mirror_failed",
            reason=f"Uploaded only {len(acquired)} of {self.quota} images.",
            reason_code="quota_not_met",
            image_count=len(acquired),
        )
        return False

    def acquire(self, urls, source_kind, name_prefix, staging_dir, acquired):
        """
        Fetch and publish candidates from ``urls`` until ``acquired`` reaches
        the quota or the candidates run out.

        Published URLs are appended to ``acquired`` in completion order.
        Ordinals in the staged names are the 1-based positions in ``urls``.
        """
        position = 0
        while len(acquired) < self.quota and position < len(urls):
            candidates = urls[position : position + self.quota - len(acquired)]
            futures = [
                self.executor.submit(
                    fetch_and_publish,
                    self.fetcher,
                    self.gateway,
                    url,
                    staging_dir,
                    f"{name_prefix}_{source_kind}{ordinal}",
                )
                for ordinal, url in enumerate(candidates, start=position + 1)
            ]
            position += len(candidates)

            for future in concurrent.futures.as_completed(futures):
                published_url = future.result()
                if published_url:
                    acquired.append(published_url)
