import os

import sentry_sdk
import structlog
from django.core.management.utils import get_random_secret_key
from sentry_sdk.integrations.django import DjangoIntegration

from flora import get_version

DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

# Build paths inside the project like this: os.path.join(SITE_ROOT_DIR, ...)
FLORA_APP_DIR = os.path.abspath(os.path.dirname(__file__))
SITE_ROOT_DIR = os.path.dirname(FLORA_APP_DIR)

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", get_random_secret_key())

FLORA_ENVIRONMENT = os.environ.get("FLORA_ENVIRONMENT", "development")

ALLOWED_HOSTS = []

DEBUG = False

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("POSTGRESQL_DB", "flora"),
        "USER": os.getenv("POSTGRESQL_USER", "flora"),
        "PASSWORD": os.getenv("POSTGRESQL_PW"),
        "HOST": os.getenv("POSTGRESQL_HOST", "localhost"),
        "PORT": os.getenv("POSTGRESQL_PORT", "5432"),
        "CONN_MAX_AGE": 0,
    }
}

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "flags",
    "flora.apps.FloraAppConfig",
    "imagemirror",
]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "long": {
            "format": "[{asctime} {levelname} {name}:{lineno}] {message}",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
            "style": "{",
        },
        "short": {
            "format": "[{levelname} {name}] {message}",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
            "style": "{",
        },
        "structlog_json": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.JSONRenderer(),
        },
        "structlog_console": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.dev.ConsoleRenderer(),
        },
    },
    "handlers": {
        "stream": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "long",
        },
        "null": {"level": "INFO", "class": "logging.NullHandler"},
        "structlog_console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "structlog_console",
        },
    },
    "loggers": {
        "django": {"handlers": ["stream"], "level": "INFO"},
        "flora": {"handlers": ["stream"], "level": "INFO"},
        "imagemirror": {"handlers": ["stream"], "level": "INFO"},
        "structlog": {
            "handlers": ["structlog_console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


################################################################################
# Django-specific settings above
################################################################################

SENTRY_BACKEND_DSN = os.environ.get("SENTRY_BACKEND_DSN", "")

APPLICATION_VERSION = get_version()

sentry_sdk.init(
    dsn=SENTRY_BACKEND_DSN,
    environment=FLORA_ENVIRONMENT,
    release=APPLICATION_VERSION,
    integrations=[DjangoIntegration()],
)

# Feature flags
FLAGS = {
    # Fail an upload when the stored object's ETag does not match the local MD5
    "MIRROR_IMAGE_CHECKSUM": [],
    # Reject downloads which Pillow cannot identify as an image
    "MIRROR_IMAGE_VERIFY": [],
}

# Image mirror settings

#: S3-compatible object storage connection
IMAGE_MIRROR_ENDPOINT = os.getenv("MINIO_ENDPOINT", "")
IMAGE_MIRROR_PORT = os.getenv("MINIO_PORT") or None
IMAGE_MIRROR_SECURE = os.getenv("MINIO_SECURE", "").lower() in ("1", "true", "yes")
IMAGE_MIRROR_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY")
IMAGE_MIRROR_SECRET_KEY = os.getenv("MINIO_SECRET_KEY")
IMAGE_MIRROR_REGION = os.getenv("MINIO_REGION", "us-east-1")

#: Bucket which receives the mirrored images
IMAGE_MIRROR_BUCKET = os.getenv("MINIO_BUCKET", "plants")

#: Externally reachable base URL; public URLs are {base}/{bucket}/{key}
IMAGE_MIRROR_PUBLIC_URL = os.getenv("MINIO_PUBLIC_URL", "")

#: Local directory where downloads are staged before upload
IMAGE_MIRROR_STAGING_DIR = os.getenv(
    "IMAGE_MIRROR_STAGING_DIR", os.path.join(SITE_ROOT_DIR, "downloads")
)

#: Maximum number of fetch-and-publish operations in flight for the whole run
IMAGE_MIRROR_CONCURRENCY = 10

#: Number of plant records read per page
IMAGE_MIRROR_PAGE_SIZE = 100

#: Number of published images a plant needs to count as migrated
IMAGE_MIRROR_QUOTA = 3

#: Seconds before an image request gives up; None waits indefinitely
IMAGE_MIRROR_REQUEST_TIMEOUT = None

IMAGE_MIRROR_USER_AGENT = f"flora-imagemirror/{APPLICATION_VERSION}"
