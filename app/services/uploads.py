"""Per-item upload pipeline for a batch of base64 images.

Each item moves Pending -> Skipped | Uploading -> UploadFailed | Uploaded ->
PersistFailed | Persisted. Only Persisted reports ``uploaded: true``; every
other terminal state becomes an ``uploaded: false`` result carrying the error.
Items run one after another and a failing item never stops the batch.
"""
import logging
import time
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..core.models import HostedFile, ImageDescriptor, ImageMeta, ImageRecord, UploadResult

logger = logging.getLogger(__name__)

FILE_NAME_PREFIX = "photo"
FILE_EXTENSION = ".jpg"


def strip_data_url(src: str) -> str:
    """Return the base64 payload of a data URL, or ``src`` untouched."""
    if src.startswith("data:"):
        return src.partition(",")[2]
    return src


def build_file_name(index: int, now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{FILE_NAME_PREFIX}_{now_ms}_{index}{FILE_EXTENSION}"


def _summarize(error: ValidationError) -> str:
    """One line per bad field instead of pydantic's multi-line report."""
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'response'}: {err['msg']}"
        for err in error.errors()
    )


def to_descriptor(item: Any) -> ImageDescriptor:
    if not isinstance(item, dict):
        return ImageDescriptor()
    src = item.get("src")
    label = item.get("filter")
    return ImageDescriptor(
        src=src if isinstance(src, str) else None,
        filter=label if isinstance(label, str) and label else None,
    )


class BatchUploader:
    """Upload each image to the media host and record it in the image store."""

    def __init__(self, host, store, min_src_length: int = 0, rollback_orphans: bool = True):
        self.host = host
        self.store = store
        self.min_src_length = min_src_length
        self.rollback_orphans = rollback_orphans

    def validate_src(self, index: int, src: Optional[str]) -> Optional[str]:
        """Return why ``src`` cannot be uploaded, or None when it looks usable."""
        if not src:
            return f"Image {index}: src must be a non-empty string"
        if self.min_src_length and len(src) < self.min_src_length:
            return (
                f"Image {index}: src is too short to be an image "
                f"({len(src)} < {self.min_src_length} characters)"
            )
        return None

    async def process(self, images: Sequence[Any]) -> List[UploadResult]:
        results: List[UploadResult] = []
        for index, item in enumerate(images):
            try:
                result = await self.process_one(index, item)
            except Exception as e:
                logger.exception("Image %d: unexpected failure", index)
                result = UploadResult(uploaded=False, error=str(e) or e.__class__.__name__)
            results.append(result)
        return results

    async def process_one(self, index: int, item: Any) -> UploadResult:
        descriptor = to_descriptor(item)
        problem = self.validate_src(index, descriptor.src)
        if problem:
            logger.warning("Image %d skipped: %s", index, problem)
            return UploadResult(uploaded=False, error=problem)

        payload = strip_data_url(descriptor.src)
        file_name = build_file_name(index)

        try:
            raw = await run_in_threadpool(
                self.host.upload,
                file=payload,
                file_name=file_name,
                use_unique_file_name=True,
            )
        except Exception as e:
            logger.warning("Image %d upload failed: %s", index, e)
            return UploadResult(uploaded=False, error=str(e) or e.__class__.__name__)

        try:
            hosted = HostedFile.model_validate(raw)
        except ValidationError as e:
            reason = _summarize(e)
            file_id = raw.get("fileId") if isinstance(raw, dict) else None
            if file_id:
                await self._handle_orphan(index, str(file_id), f"invalid hosting response: {reason}")
            else:
                logger.error("Image %d: hosting response without fileId (%s); upload cannot be traced", index, reason)
            return UploadResult(uploaded=False, error=f"Invalid hosting response: {reason}")

        record = ImageRecord(
            url=hosted.url,
            fileId=hosted.fileId,
            fileName=hosted.name or file_name,
            filter=descriptor.filter,
            meta=ImageMeta(width=hosted.width, height=hosted.height),
        )
        try:
            doc = await run_in_threadpool(self.store.create, record)
        except Exception as e:
            await self._handle_orphan(index, hosted.fileId, e)
            return UploadResult(uploaded=False, error=f"Failed to save image record: {e}")

        logger.info("Image %d persisted as %s (%s)", index, doc["image_id"], hosted.url)
        return UploadResult(uploaded=True, url=hosted.url, id=str(doc["image_id"]))

    async def _handle_orphan(self, index: int, file_id: str, error: Any) -> None:
        if not self.rollback_orphans:
            logger.error(
                "Image %d record not saved (%s); hosted file %s left orphaned",
                index, error, file_id,
            )
            return
        try:
            await run_in_threadpool(self.host.delete, file_id)
        except Exception:
            logger.exception(
                "Image %d record not saved (%s) and hosted file %s could not be removed",
                index, error, file_id,
            )
            return
        logger.warning(
            "Image %d record not saved (%s); hosted file %s removed",
            index, error, file_id,
        )
