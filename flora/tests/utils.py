from flora.models import PlantInfo


def create_plant(
    *,
    species="Rosa canina",
    original_url=None,
    image_backup_url=None,
    do_save=True,
    **kwargs,
):
    plant = PlantInfo(
        species=species,
        original_url=original_url if original_url is not None else [],
        image_backup_url=image_backup_url if image_backup_url is not None else [],
        **kwargs,
    )
    if do_save:
        plant.full_clean()
        plant.save()
    return plant
