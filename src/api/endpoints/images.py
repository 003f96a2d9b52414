from typing import BinaryIO

import structlog
from fastapi import APIRouter, Request, Response
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from src.core.exceptions import AppError
from src.schemas.images import ClientIdentity
from src.services.label_overlay import resolve_client_ip
from src.services.render import RenderPipeline
from src.services.upload import UploadPipeline

logger = structlog.get_logger()

router = APIRouter()

UPLOAD_FIELD = "image"


def _query(request: Request) -> dict[str, str]:
    # First value wins when a key is repeated.
    return dict(reversed(request.query_params.multi_items()))


def _client_ip(request: Request) -> str:
    peer = request.client.host if request.client else None
    return resolve_client_ip(request.headers.get("X-Forwarded-For"), peer)


async def _read_form(request: Request) -> FormData:
    try:
        return await request.form()
    except Exception as e:
        logger.warning("upload_form_unreadable", error=str(e))
        raise AppError(status_code=400, detail="Error reading uploaded file") from e


async def _upload_stream(form: FormData) -> BinaryIO:
    field = form.get(UPLOAD_FIELD)
    if not isinstance(field, UploadFile):
        raise AppError(status_code=400, detail="Error reading uploaded file")
    await field.seek(0)
    return field.file


@router.post("/save")
async def save_image(request: Request) -> Response:
    pipeline: UploadPipeline = request.app.state.upload_pipeline

    pipeline.authorize(request.headers.get("Authorization"))
    filename = pipeline.check_filename(_query(request).get("filename"))
    form = await _read_form(request)
    try:
        stream = await _upload_stream(form)
        await run_in_threadpool(pipeline.save, filename, stream, _client_ip(request))
    finally:
        await form.close()
    return Response(status_code=200)


@router.get("/scaled")
async def get_scaled_image(request: Request) -> Response:
    pipeline: RenderPipeline = request.app.state.render_pipeline

    identity = ClientIdentity(ip=_client_ip(request), user_agent=request.headers.get("User-Agent", ""))
    data = await run_in_threadpool(pipeline.render, _query(request), identity)
    return Response(content=data, media_type="image/jpeg")
