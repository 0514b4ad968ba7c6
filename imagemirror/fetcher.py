import mimetypes
import os
from io import BytesIO
from logging import getLogger
from typing import NamedTuple, Optional
from urllib.parse import urlparse

import requests
from django.conf import settings
from PIL import Image

from .exceptions import ImageMirrorFailure

logger = getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
DEFAULT_EXTENSION = ".jpg"


class StagedFile(NamedTuple):
    path: str
    content_type: Optional[str]
    filename: str


def get_http_session() -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = settings.IMAGE_MIRROR_USER_AGENT
    return session


def extension_for_content_type(content_type: Optional[str]) -> str:
    """Map a Content-Type header to a file extension, defaulting to .jpg"""
    media_type = (content_type or "").split(";")[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(media_type, DEFAULT_EXTENSION)


def verify_image_bytes(data: bytes, url: str) -> None:
    try:
        with Image.open(BytesIO(data)) as image:
            image.verify()
    except Exception as exc:
        raise ImageMirrorFailure(
            f"{url} did not return a readable image. The exception raised was "
            f"Type: {type(exc).__name__}, Message: {exc}"
        ) from exc


class ContentFetcher:
    """
    Downloads source images into the local staging directory.

    Staged files are named ``{name_prefix}{extension}``. The extension comes
    from the URL path when it has one; otherwise a HEAD request is made and
    the returned Content-Type decides it. A file which is already staged is
    returned without downloading it again.

    Every network or filesystem error is logged and reported as ``None``.
    """

    def __init__(
        self,
        session: requests.Session,
        timeout: Optional[float] = None,
        verify_images: bool = False,
    ):
        self.session = session
        self.timeout = timeout
        self.verify_images = verify_images

    def fetch(
        self, url: str, staging_dir: str, name_prefix: str
    ) -> Optional[StagedFile]:
        try:
            return self._fetch(url, staging_dir, name_prefix)
        except (requests.RequestException, OSError, ValueError) as exc:
            logger.warning("Failed to download %s: %s", url, exc)
        except ImageMirrorFailure as exc:
            logger.warning("Discarding download of %s: %s", url, exc)
        return None

    def _fetch(self, url, staging_dir, name_prefix):
        extension = os.path.splitext(urlparse(url).path)[1]
        probed_content_type = None

        if not extension:
            # A previous run may already have probed this URL and staged it
            staged = self.find_staged(staging_dir, name_prefix)
            if staged:
                logger.info("File already exists locally: %s", staged.filename)
                return staged

            response = self.session.head(
                url, allow_redirects=True, timeout=self.timeout
            )
            response.raise_for_status()
            probed_content_type = response.headers.get("Content-Type")
            extension = extension_for_content_type(probed_content_type)

        filename = f"{name_prefix}{extension}"
        file_path = os.path.join(staging_dir, filename)

        if os.path.exists(file_path):
            logger.info("File already exists locally: %s", filename)
            return StagedFile(
                file_path,
                probed_content_type or mimetypes.guess_type(filename)[0],
                filename,
            )

        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        data = response.content

        if self.verify_images:
            verify_image_bytes(data, url)

        # Only complete downloads may appear under the staged name
        partial_path = f"{file_path}.part"
        with open(partial_path, "wb") as staged_file:
            staged_file.write(data)
        os.replace(partial_path, file_path)

        logger.debug("Staged %s as %s", url, file_path)
        return StagedFile(file_path, response.headers.get("Content-Type"), filename)

    def find_staged(self, staging_dir: str, name_prefix: str) -> Optional[StagedFile]:
        """
        Return a file staged under ``name_prefix`` with any extension the
        Content-Type probe can produce, or None.
        """
        for content_type, extension in CONTENT_TYPE_EXTENSIONS.items():
            filename = f"{name_prefix}{extension}"
            file_path = os.path.join(staging_dir, filename)
            if os.path.exists(file_path):
                return StagedFile(file_path, content_type, filename)
        return None
