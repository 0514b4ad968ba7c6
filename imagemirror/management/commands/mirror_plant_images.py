import concurrent.futures
import os
from logging import getLogger

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError
from flags.state import flag_enabled

from imagemirror.fetcher import ContentFetcher, get_http_session
from imagemirror.storage import ObjectStoreGateway, get_storage_client
from imagemirror.stores import DjangoRecordStore
from imagemirror.tasks import RecordProcessor, run_batch

logger = getLogger(__name__)

REQUIRED_SETTINGS = ("IMAGE_MIRROR_ENDPOINT", "IMAGE_MIRROR_PUBLIC_URL")


def check_configuration():
    missing = [name for name in REQUIRED_SETTINGS if not getattr(settings, name, "")]
    if missing:
        raise ImproperlyConfigured(
            "The image mirror requires these settings: %s" % ", ".join(missing)
        )


class Command(BaseCommand):
    help = (
        "Copy plant images into object storage and point image_backup_url "
        "at the mirrored copies"
    )

    def handle(self, **options):
        check_configuration()

        staging_dir = settings.IMAGE_MIRROR_STAGING_DIR
        os.makedirs(staging_dir, exist_ok=True)

        store = DjangoRecordStore()
        try:
            summary = self.mirror(store, staging_dir)
        except Exception as exc:
            logger.exception("Plant image mirror aborted")
            store.close()
            raise CommandError(f"Plant image mirror aborted: {exc}") from exc

        self.stdout.write("Process Summary:")
        self.stdout.write(self.style.SUCCESS(f"Success plants: {summary.successes}"))
        self.stdout.write(self.style.ERROR(f"Failed plants: {summary.failures}"))

    def mirror(self, store, staging_dir):
        # Worker threads must not query the database
        verify_images = flag_enabled("MIRROR_IMAGE_VERIFY")
        verify_checksum = flag_enabled("MIRROR_IMAGE_CHECKSUM")

        gateway = ObjectStoreGateway(
            get_storage_client(),
            settings.IMAGE_MIRROR_BUCKET,
            settings.IMAGE_MIRROR_PUBLIC_URL,
            region=settings.IMAGE_MIRROR_REGION,
            verify_checksum=verify_checksum,
        )

        with (
            get_http_session() as session,
            concurrent.futures.ThreadPoolExecutor(
                max_workers=settings.IMAGE_MIRROR_CONCURRENCY
            ) as executor,
        ):
            fetcher = ContentFetcher(
                session,
                timeout=settings.IMAGE_MIRROR_REQUEST_TIMEOUT,
                verify_images=verify_images,
            )
            processor = RecordProcessor(
                fetcher,
                gateway,
                store,
                executor,
                quota=settings.IMAGE_MIRROR_QUOTA,
            )
            return run_batch(
                store,
                processor,
                staging_dir,
                page_size=settings.IMAGE_MIRROR_PAGE_SIZE,
            )
