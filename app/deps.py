from functools import lru_cache

from .aws.records import ImageStore
from .aws.storage import MediaHost
from .core.config import settings
from .services.uploads import BatchUploader


@lru_cache(maxsize=None)
def get_media_host() -> MediaHost:
    return MediaHost()


@lru_cache(maxsize=None)
def get_image_store() -> ImageStore:
    store = ImageStore()
    store.connect()
    return store


async def get_uploader() -> BatchUploader:
    # runs on the event loop: the shared host and store are only ever built by that thread
    return BatchUploader(
        get_media_host(),
        get_image_store(),
        min_src_length=settings.min_src_length,
        rollback_orphans=settings.rollback_orphaned_uploads,
    )


def reset() -> None:
    """Forget the shared host and store so the next request builds new ones."""
    if get_image_store.cache_info().currsize:
        get_image_store().close()
    get_media_host.cache_clear()
    get_image_store.cache_clear()
