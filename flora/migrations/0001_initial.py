from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PlantInfo",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "species",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                ("original_url", models.JSONField(blank=True, default=list)),
                ("image_backup_url", models.JSONField(blank=True, default=list)),
            ],
            options={
                "verbose_name": "plant info",
                "verbose_name_plural": "plant info",
            },
        ),
    ]
