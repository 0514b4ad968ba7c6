import os
import tempfile
from io import StringIO
from unittest import mock

from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from flora.tests.utils import create_plant
from imagemirror.tasks import MirrorSummary

COMMAND_MODULE = "imagemirror.management.commands.mirror_plant_images"


class MirrorPlantImagesTests(TestCase):
    def setUp(self):
        temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(temp_dir.cleanup)
        self.staging_dir = os.path.join(temp_dir.name, "downloads")

        settings_override = override_settings(
            IMAGE_MIRROR_STAGING_DIR=self.staging_dir
        )
        settings_override.enable()
        self.addCleanup(settings_override.disable)

    def call(self):
        out = StringIO()
        call_command("mirror_plant_images", stdout=out, no_color=True)
        return out.getvalue()

    @mock.patch(f"{COMMAND_MODULE}.get_storage_client")
    @mock.patch(f"{COMMAND_MODULE}.run_batch")
    def test_summary_output(self, run_batch_mock, client_mock):
        run_batch_mock.return_value = MirrorSummary(successes=12, failures=3)

        output = self.call()

        self.assertEqual(
            output,
            "Process Summary:\nSuccess plants: 12\nFailed plants: 3\n",
        )
        self.assertTrue(os.path.isdir(self.staging_dir))
        args, kwargs = run_batch_mock.call_args
        self.assertEqual(args[2], self.staging_dir)
        self.assertEqual(kwargs["page_size"], 100)

    @mock.patch(f"{COMMAND_MODULE}.DjangoRecordStore.close")
    @mock.patch(f"{COMMAND_MODULE}.get_storage_client")
    @mock.patch(f"{COMMAND_MODULE}.run_batch")
    def test_fatal_error(self, run_batch_mock, client_mock, close_mock):
        run_batch_mock.side_effect = RuntimeError("database went away")

        with self.assertLogs(COMMAND_MODULE, level="ERROR") as log:
            with self.assertRaisesRegex(CommandError, "database went away"):
                self.call()

        self.assertEqual(
            log.output[0].splitlines()[0],
            f"ERROR:{COMMAND_MODULE}:Plant image mirror aborted",
        )
        close_mock.assert_called_once_with()

    @mock.patch(f"{COMMAND_MODULE}.concurrent.futures.ThreadPoolExecutor")
    @mock.patch(f"{COMMAND_MODULE}.get_storage_client")
    @mock.patch(f"{COMMAND_MODULE}.run_batch")
    def test_one_pool_shared_by_the_run(self, run_batch_mock, client_mock, pool_mock):
        run_batch_mock.return_value = MirrorSummary()

        self.call()

        pool_mock.assert_called_once_with(max_workers=10)
        executor = pool_mock.return_value.__enter__.return_value
        store, processor, staging_dir = run_batch_mock.call_args.args
        self.assertIs(processor.executor, executor)
        pool_mock.return_value.__exit__.assert_called_once()

    @override_settings(IMAGE_MIRROR_CONCURRENCY=4)
    @mock.patch(f"{COMMAND_MODULE}.concurrent.futures.ThreadPoolExecutor")
    @mock.patch(f"{COMMAND_MODULE}.get_storage_client")
    @mock.patch(f"{COMMAND_MODULE}.run_batch")
    def test_pool_size_from_settings(self, run_batch_mock, client_mock, pool_mock):
        run_batch_mock.return_value = MirrorSummary()

        self.call()

        pool_mock.assert_called_once_with(max_workers=4)

    @override_settings(IMAGE_MIRROR_ENDPOINT="")
    @mock.patch(f"{COMMAND_MODULE}.run_batch")
    def test_missing_endpoint(self, run_batch_mock):
        with self.assertRaisesRegex(ImproperlyConfigured, "IMAGE_MIRROR_ENDPOINT"):
            self.call()
        run_batch_mock.assert_not_called()

    @override_settings(IMAGE_MIRROR_PUBLIC_URL=None)
    @mock.patch(f"{COMMAND_MODULE}.run_batch")
    def test_missing_public_url(self, run_batch_mock):
        with self.assertRaisesRegex(ImproperlyConfigured, "IMAGE_MIRROR_PUBLIC_URL"):
            self.call()
        run_batch_mock.assert_not_called()

    @mock.patch(f"{COMMAND_MODULE}.get_http_session")
    @mock.patch(f"{COMMAND_MODULE}.get_storage_client")
    def test_mirrors_plants(self, client_mock, session_factory_mock):
        client = client_mock.return_value
        client.head_object.return_value = {"ETag": '"d41d8cd98f00b204e9800998ecf8427e-1"'}

        session = session_factory_mock.return_value
        session.__enter__.return_value = session
        response = mock.MagicMock()
        response.content = b"image-bytes"
        response.headers = {"Content-Type": "image/jpeg"}
        session.get.return_value = response

        complete = create_plant(
            species="Rosa canina",
            original_url=[f"http://origin.example.com/{i}.jpg" for i in range(1, 4)],
        )
        short = create_plant(
            species="Bellis perennis",
            original_url=["http://origin.example.com/single.jpg"],
        )
        mirrored_urls = [
            f"https://media.example.com/plants/old{i}.jpg" for i in range(1, 4)
        ]
        mirrored = create_plant(
            species="Quercus robur",
            original_url=["http://origin.example.com/oak.jpg"],
            image_backup_url=mirrored_urls,
        )

        output = self.call()

        self.assertIn("Success plants: 2", output)
        self.assertIn("Failed plants: 1", output)

        complete.refresh_from_db()
        self.assertCountEqual(
            complete.image_backup_url,
            [
                f"https://media.example.com/plants/{complete.pk}_Rosa_canina_original{i}.jpg"
                for i in range(1, 4)
            ],
        )

        short.refresh_from_db()
        self.assertEqual(
            short.image_backup_url,
            [
                f"https://media.example.com/plants/{short.pk}_Bellis_perennis_original1.jpg"
            ],
        )

        mirrored.refresh_from_db()
        self.assertEqual(mirrored.image_backup_url, mirrored_urls)

        self.assertEqual(session.get.call_count, 4)
        self.assertEqual(client.upload_file.call_count, 4)
        self.assertCountEqual(
            os.listdir(self.staging_dir),
            [
                f"{complete.pk}_Rosa_canina_original1.jpg",
                f"{complete.pk}_Rosa_canina_original2.jpg",
                f"{complete.pk}_Rosa_canina_original3.jpg",
                f"{short.pk}_Bellis_perennis_original1.jpg",
            ],
        )
