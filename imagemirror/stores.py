from dataclasses import dataclass, field
from typing import Optional, Sequence

from django.db import connections

from flora.models import PlantInfo


@dataclass(frozen=True)
class PlantRecord:
    """A plant row as seen by the mirror pipeline."""

    id: int
    species: Optional[str] = None
    original_urls: Sequence[Optional[str]] = field(default_factory=tuple)
    backup_urls: Sequence[Optional[str]] = field(default_factory=tuple)


def _as_url_list(value):
    # JSON columns may hold null or a bare string from older imports
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


class DjangoRecordStore:
    """
    Paginated reads and backup URL updates against the PlantInfo table.
    """

    def fetch_page(self, offset: int, limit: int) -> list[PlantRecord]:
        rows = PlantInfo.objects.order_by("pk").values_list(
            "pk", "species", "original_url", "image_backup_url"
        )[offset : offset + limit]
        return [
            PlantRecord(
                id=pk,
                species=species,
                original_urls=_as_url_list(original_url),
                backup_urls=_as_url_list(image_backup_url),
            )
            for pk, species, original_url, image_backup_url in rows
        ]

    def update_backup_urls(self, plant_id: int, urls: Sequence[str]) -> None:
        PlantInfo.objects.filter(pk=plant_id).update(image_backup_url=list(urls))

    def close(self) -> None:
        connections.close_all()
