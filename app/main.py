import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.config import settings
from .core.errors import register_exception_handlers
from .core.limits import BodySizeLimitMiddleware
from .deps import get_image_store, get_media_host, reset
from .routers.uploads import router as uploads_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_media_host()
    store = get_image_store()
    if not store.connected:
        logger.warning("Starting without an image store; uploads will not be recorded")
    yield
    reset()


tags_metadata = [
    {
        "name": "uploads",
        "description": (
            "Batch upload of base64 images.\n\n"
            "- Each image goes to the media host and gets a record in the image store.\n"
            "- Results are reported per image, in request order.\n"
            "- `POST /api/test-upload` checks both collaborators with a placeholder image."
        ),
    }
]

app = FastAPI(
    title="Image Batch Upload Gateway",
    description=(
        "How to Use:\n\n"
        "1) POST /api/upload with `{\"images\": [{\"src\": \"data:image/jpeg;base64,...\", \"filter\": \"90s\"}]}`.\n"
        "2) Read `results`: one entry per image, `uploaded: true` with `url` and `id`, or `uploaded: false` with `error`.\n"
        "3) GET / is a liveness probe.\n\n"
        f"Notes: request bodies above {settings.max_body_mb:g}MB are rejected with 413."
    ),
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(BodySizeLimitMiddleware, limit=lambda: settings.max_body_bytes)
register_exception_handlers(app)

app.include_router(uploads_router)


@app.get("/", summary="Liveness probe")
async def root():
    return {"ok": True}
