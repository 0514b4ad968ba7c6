import os
import threading

from imagemirror.fetcher import StagedFile
from imagemirror.storage import ObjectStoreGateway, PublishedImage
from imagemirror.stores import PlantRecord

PUBLIC_BASE = "https://media.example.com"


def create_record(
    *, id=1, species="Rosa canina", original_urls=(), backup_urls=(), **kwargs
):
    return PlantRecord(
        id=id,
        species=species,
        original_urls=tuple(original_urls),
        backup_urls=tuple(backup_urls),
        **kwargs,
    )


def mirrored_url(key):
    return f"{PUBLIC_BASE}/plants/{key}"


class FakeFetcher:
    """Stages every URL in ``reachable`` without touching the network"""

    def __init__(self, reachable=()):
        self.reachable = set(reachable)
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, url, staging_dir, name_prefix):
        with self._lock:
            self.calls.append((url, name_prefix))
        if url not in self.reachable:
            return None
        filename = f"{name_prefix}.jpg"
        return StagedFile(os.path.join(staging_dir, filename), "image/jpeg", filename)

    @property
    def prefixes(self):
        return sorted(prefix for url, prefix in self.calls)


class FakeGateway(ObjectStoreGateway):
    """Records publishes in memory instead of uploading them"""

    def __init__(self, failing_keys=()):
        super().__init__(client=None, bucket="plants", public_base=PUBLIC_BASE)
        self.failing_keys = set(failing_keys)
        self.published = []
        self._lock = threading.Lock()

    def publish(self, local_path, object_key, content_type):
        if object_key in self.failing_keys:
            return None
        with self._lock:
            self.published.append((local_path, object_key, content_type))
        return PublishedImage(object_key, content_type, self.public_url(object_key))


class FakeRecordStore:
    def __init__(self, records=()):
        self.records = list(records)
        self.updates = {}
        self.page_reads = []
        self.closed = False

    def fetch_page(self, offset, limit):
        page = self.records[offset : offset + limit]
        self.page_reads.append((offset, limit, len(page)))
        return page

    def update_backup_urls(self, plant_id, urls):
        self.updates[plant_id] = list(urls)

    def close(self):
        self.closed = True


class HeldFetcher(FakeFetcher):
    """
    A FakeFetcher which holds ``held_url`` back until ``release`` is set, so
    it completes after the other candidates submitted with it.
    """

    def __init__(self, held_url, reachable=()):
        super().__init__(reachable)
        self.held_url = held_url
        self.release = threading.Event()

    def fetch(self, url, staging_dir, name_prefix):
        if url == self.held_url and not self.release.wait(timeout=5):
            raise RuntimeError(f"{url} was never released")
        return super().fetch(url, staging_dir, name_prefix)


class ReleasingGateway(FakeGateway):
    """Sets ``release`` once ``release_after`` images have been published"""

    def __init__(self, release, release_after):
        super().__init__()
        self.release = release
        self.release_after = release_after

    def publish(self, local_path, object_key, content_type):
        published = super().publish(local_path, object_key, content_type)
        with self._lock:
            if len(self.published) == self.release_after:
                self.release.set()
        return published
