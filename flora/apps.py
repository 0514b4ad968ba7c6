from django.apps.config import AppConfig


class FloraAppConfig(AppConfig):
    name = "flora"
    verbose_name = "Flora"
