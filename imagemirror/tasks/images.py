from logging import getLogger
from typing import Optional

logger = getLogger(__name__)


def fetch_and_publish(
    fetcher, gateway, url: str, staging_dir: str, name_prefix: str
) -> Optional[str]:
    """
    Stage one image and publish it to object storage.

    The staged filename (the prefix plus the resolved extension) is used as
    the object key.

    Returns:
        The public URL of the published image, or None if either the download
        or the upload failed.
    """
    staged = fetcher.fetch(url, staging_dir, name_prefix)
    if staged is None:
        return None

    published = gateway.publish(staged.path, staged.filename, staged.content_type)
    if published is None:
        return None

    logger.info("Published %s as %s", url, published.url)
    return published.url
