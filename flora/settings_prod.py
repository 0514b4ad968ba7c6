import os

from .settings_template import *  # NOQA ignore=F405
from .settings_template import LOGGING, SITE_ROOT_DIR

LOG_DIR = os.getenv("FLORA_LOG_DIR", os.path.join(SITE_ROOT_DIR, "logs"))
os.makedirs(LOG_DIR, exist_ok=True)

LOGGING["handlers"]["file"] = {
    "class": "logging.handlers.TimedRotatingFileHandler",
    "level": "INFO",
    "formatter": "long",
    "filename": os.path.join(LOG_DIR, "flora.log"),
    "when": "H",
    "interval": 3,
    "backupCount": 16,
}
LOGGING["handlers"]["structlog_file"] = {
    "class": "logging.handlers.TimedRotatingFileHandler",
    "level": "INFO",
    "formatter": "structlog_json",
    "filename": os.path.join(LOG_DIR, "flora-json.log"),
    "when": "H",
    "interval": 3,
    "backupCount": 16,
}
LOGGING["loggers"]["flora"]["handlers"] = ["file", "stream"]
LOGGING["loggers"]["imagemirror"]["handlers"] = ["file", "stream"]
LOGGING["loggers"]["structlog"]["handlers"] = ["structlog_file", "structlog_console"]

IMAGE_MIRROR_SECURE = os.getenv("MINIO_SECURE", "true").lower() in ("1", "true", "yes")
