# videocatalog/app.py
from __future__ import annotations
import logging
from pathlib import Path

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.requests import ClientDisconnect

from videocatalog import catalog
from videocatalog.errors import RangeNotSatisfiable, StorageUnavailable
from videocatalog.pages import render_index_page
from videocatalog.settings import MediaFolderConfig, load_settings
from videocatalog.upload import TRANSPORT_MESSAGE, UploadItem, format_megabytes, oversize_outcome, upload_batch

logger = logging.getLogger("videocatalog.app")

EXPOSE_HEADERS = [
    "Accept-Ranges", "Content-Range", "ETag", "Last-Modified", "Content-Length"
]

# multipart boundaries, part headers and plain form fields on top of the file bytes
MULTIPART_ALLOWANCE = 1024 * 1024


def _content_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


def _declared_length(f: UploadFile) -> int:
    if f.size is not None:
        return f.size
    pos = f.file.tell()
    f.file.seek(0, 2)
    size = f.file.tell()
    f.file.seek(pos)
    return size


def create_app(settings: MediaFolderConfig | None = None) -> FastAPI:
    settings = settings or load_settings()
    media_path: Path = settings.media_path
    media_path.mkdir(parents=True, exist_ok=True)
    logger.info("Serving videos from %s (upload limit %d bytes)", media_path, settings.max_aggregate_upload_bytes)

    app = FastAPI(title="Video Catalog")
    app.state.settings = settings

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=False,
            allow_methods=["GET", "HEAD", "POST", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=EXPOSE_HEADERS,
        )

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable(request: Request, exc: StorageUnavailable):
        # already logged where the folder read failed
        return JSONResponse({"detail": "The media folder could not be read."}, status_code=500)

    @app.exception_handler(RangeNotSatisfiable)
    async def range_not_satisfiable(request: Request, exc: RangeNotSatisfiable):
        return Response(status_code=416, headers={"Content-Range": f"bytes */{exc.size}"})

    # ---------- catalog ----------

    @app.get("/", response_class=HTMLResponse)
    @app.get("/Home", response_class=HTMLResponse)
    @app.get("/Home/Index", response_class=HTMLResponse)
    def index():
        videos = catalog.list_videos(media_path)
        return render_index_page(videos, settings.max_aggregate_upload_bytes)

    @app.get("/Home/GetVideos")
    def get_videos():
        return catalog.descriptors_to_json(catalog.list_videos(media_path))

    @app.get("/Home/Play")
    def play(request: Request, file_name: str | None = Query(None, alias="fileName")):
        p = catalog.resolve_video(media_path, file_name)
        if p is None:
            logger.info("Video not found: %r", file_name)
            return PlainTextResponse("Video not found", status_code=404)

        headers = catalog.headers_for_file(p)
        size = p.stat().st_size
        rng = request.headers.get("range")
        span = catalog.parse_byte_range(rng, size) if rng else None

        # no usable Range header -> whole file
        if span is None:
            headers["Content-Length"] = str(size)
            return StreamingResponse(
                catalog.iter_file(p, 0, size - 1),
                headers=headers,
                media_type=catalog.VIDEO_MEDIA_TYPE,
            )

        start, end = span
        headers["Content-Range"] = f"bytes {start}-{end}/{size}"
        headers["Content-Length"] = str(end - start + 1)
        return StreamingResponse(
            catalog.iter_file(p, start, end),
            status_code=206,
            headers=headers,
            media_type=catalog.VIDEO_MEDIA_TYPE,
        )

    # ---------- upload ----------

    @app.post("/api/upload")
    async def upload(request: Request):
        length = _content_length(request)
        if length is not None and length > settings.max_aggregate_upload_bytes + MULTIPART_ALLOWANCE:
            # refuse before the body is spooled to disk
            logger.warning(
                "Upload body of %d bytes exceeds %s MB. Request rejected.",
                length, format_megabytes(settings.max_aggregate_upload_bytes),
            )
            outcome = oversize_outcome(settings.max_aggregate_upload_bytes)
            return PlainTextResponse(outcome.message, status_code=outcome.status_code)

        try:
            form = await request.form()
        except ClientDisconnect:
            logger.exception("A network error occurred during file upload.")
            return PlainTextResponse(TRANSPORT_MESSAGE, status_code=503)

        try:
            items = [
                UploadItem(file_name=f.filename or "", content=f.file, declared_length=_declared_length(f))
                for f in form.getlist("files")
                if isinstance(f, UploadFile)
            ]
            outcome = await run_in_threadpool(
                upload_batch, items, media_path, settings.max_aggregate_upload_bytes
            )
        finally:
            await form.close()

        if outcome.ok:
            return JSONResponse({"uploaded": outcome.saved})
        return PlainTextResponse(outcome.message, status_code=outcome.status_code)

    # ---------- utility endpoints ----------

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "mediaFolder": str(media_path)}

    return app
