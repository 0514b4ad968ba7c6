from django.db import models


class PlantInfo(models.Model):
    """
    A plant species entry and the images which illustrate it.

    ``original_url`` lists the images as first catalogued. ``image_backup_url``
    holds fallback copies and is rewritten with mirrored object storage URLs
    by the ``mirror_plant_images`` command.
    """

    species = models.CharField(max_length=255, blank=True, null=True)
    original_url = models.JSONField(default=list, blank=True)
    image_backup_url = models.JSONField(default=list, blank=True)

    class Meta:
        verbose_name = "plant info"
        verbose_name_plural = "plant info"

    def __str__(self):
        return f"{self.species or 'Unknown'} ({self.pk})"
