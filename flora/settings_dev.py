from .settings_template import *  # NOQA ignore=F405
from .settings_template import LOGGING

LOGGING["handlers"]["stream"]["level"] = "DEBUG"
LOGGING["handlers"]["structlog_console"]["level"] = "DEBUG"
LOGGING["loggers"]["flora"]["level"] = "DEBUG"
LOGGING["loggers"]["imagemirror"]["level"] = "DEBUG"
LOGGING["loggers"]["structlog"]["level"] = "DEBUG"

DEBUG = True

ALLOWED_HOSTS = ["127.0.0.1", "0.0.0.0", "*"]  # nosec
