from typing import Optional, Dict, Any
import base64
import binascii
import logging
import os
import uuid
from io import BytesIO
from urllib.parse import quote
from PIL import Image
from ..core.config import settings
from ..core.errors import MediaHostError
from .clients import s3 as s3_client_factory

"""Media hosting on top of an S3 bucket.

`MediaHost.upload` mirrors the shape of a hosted-media SDK: it takes a base64
payload and a file name and answers with ``fileId``, ``name``, ``url`` and,
for images, ``width``/``height``.
"""

logger = logging.getLogger(__name__)

FORMAT_CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}


def _extract_image_metadata(data_bytes: bytes) -> Dict[str, Any]:
    """Open the image and read its dimensions and format.

    Fails soft by returning an empty dict if the bytes are not an image.
    """
    try:
        with Image.open(BytesIO(data_bytes)) as img:
            width, height = img.size
            return {"width": width, "height": height, "format": img.format}
    except Exception:
        return {}


def _decode_payload(file: Any) -> bytes:
    if not isinstance(file, str) or not file.strip():
        raise MediaHostError("Missing file parameter for upload")
    compact = "".join(file.split())
    try:
        data_bytes = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        raise MediaHostError("Invalid file parameter: payload is not valid base64")
    if not data_bytes:
        raise MediaHostError("Missing file parameter for upload")
    return data_bytes


def _unique_name(file_name: str) -> str:
    stem, ext = os.path.splitext(file_name)
    return f"{stem}_{uuid.uuid4().hex[:8]}{ext}"


class MediaHost:
    """Upload and delete hosted media files in the configured bucket."""

    def __init__(self, client=None, bucket: Optional[str] = None, url_endpoint: Optional[str] = None):
        self.client = client if client is not None else s3_client_factory()
        self.bucket = bucket or settings.media_bucket
        self.url_endpoint = url_endpoint if url_endpoint is not None else settings.media_url_endpoint

    def _public_url(self, object_key: str) -> str:
        path = quote(object_key)
        if self.url_endpoint:
            return f"{self.url_endpoint.rstrip('/')}/{path}"
        return f"{self.client.meta.endpoint_url.rstrip('/')}/{self.bucket}/{path}"

    def upload(self, file: str, file_name: str, use_unique_file_name: bool = True) -> Dict[str, Any]:
        if not file_name:
            raise MediaHostError("Missing fileName parameter for upload")
        data_bytes = _decode_payload(file)

        name = _unique_name(file_name) if use_unique_file_name else file_name
        file_id = uuid.uuid4().hex
        object_key = f"{file_id}/{name}"
        image_meta = _extract_image_metadata(data_bytes)
        content_type = FORMAT_CONTENT_TYPES.get(image_meta.get("format"), "application/octet-stream")

        self.client.put_object(
            Bucket=self.bucket,
            Key=object_key,
            Body=data_bytes,
            ContentType=content_type,
            Metadata={"file-name": name},
        )
        logger.debug("Stored %s (%d bytes) as %s", file_name, len(data_bytes), object_key)

        response: Dict[str, Any] = {
            "fileId": file_id,
            "name": name,
            "filePath": object_key,
            "url": self._public_url(object_key),
            "size": len(data_bytes),
            "fileType": "image" if image_meta else "non-image",
        }
        if image_meta:
            response["width"] = image_meta["width"]
            response["height"] = image_meta["height"]
        return response

    def delete(self, file_id: str) -> int:
        """Delete every object stored for ``file_id``; returns how many were removed."""
        resp = self.client.list_objects_v2(Bucket=self.bucket, Prefix=f"{file_id}/")
        removed = 0
        for obj in resp.get("Contents", []):
            self.client.delete_object(Bucket=self.bucket, Key=obj["Key"])
            removed += 1
        return removed
