from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool
import json
import logging
import time
from ..core.models import HostedFile, ImageMeta, ImageRecord, UploadResponse, ProbeUploadResponse
from ..deps import get_uploader
from ..services.uploads import BatchUploader

router = APIRouter(prefix="/api", tags=["uploads"])
logger = logging.getLogger(__name__)

# 1x1 PNG used to check hosting and store connectivity
PLACEHOLDER_PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


async def _json_body(request: Request) -> dict:
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


@router.post(
    "/upload",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    summary="Upload a batch of base64 images",
    description=(
        "Body: `{\"images\": [{\"src\": \"data:image/jpeg;base64,...\", \"filter\": \"90s\"}]}`.\n\n"
        "Every image is uploaded and recorded on its own. The response lists one result per image "
        "in request order: `{uploaded: true, url, id}` or `{uploaded: false, error}`.\n"
        "`filter` is stored with the record and never applied to the pixels."
    ),
)
async def upload_images(request: Request, uploader: BatchUploader = Depends(get_uploader)):
    body = await _json_body(request)
    images = body.get("images")
    if not isinstance(images, list) or not images:
        raise HTTPException(status_code=400, detail="No images provided")

    try:
        results = await uploader.process(images)
    except Exception as e:
        logger.exception("Upload error")
        raise HTTPException(status_code=500, detail={"error": "Upload failed", "details": str(e)})

    uploaded = sum(1 for r in results if r.uploaded)
    logger.info("Batch of %d images: %d uploaded, %d failed", len(results), uploaded, len(results) - uploaded)
    return UploadResponse(results=results)


@router.post(
    "/test-upload",
    response_model=ProbeUploadResponse,
    summary="Check hosting and store connectivity",
    description="Uploads a 1x1 placeholder PNG, records it and returns the raw hosting response with the new record id.",
)
async def test_upload(uploader: BatchUploader = Depends(get_uploader)):
    try:
        raw = await run_in_threadpool(
            uploader.host.upload,
            file=PLACEHOLDER_PNG_BASE64,
            file_name=f"test_{int(time.time() * 1000)}.png",
            use_unique_file_name=True,
        )
        hosted = HostedFile.model_validate(raw)
        doc = await run_in_threadpool(
            uploader.store.create,
            ImageRecord(
                url=hosted.url,
                fileId=hosted.fileId,
                fileName=hosted.name,
                meta=ImageMeta(width=hosted.width, height=hosted.height),
            ),
        )
        return ProbeUploadResponse(upload=raw, id=str(doc["image_id"]))
    except Exception as e:
        logger.exception("Test upload failed")
        raise HTTPException(status_code=500, detail={"error": "Test upload failed", "details": str(e)})
