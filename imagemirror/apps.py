from django.apps.config import AppConfig


class ImageMirrorConfig(AppConfig):
    name = "imagemirror"
    verbose_name = "Image mirror"
