"""Storefront API router — admin uploads and gated downloads."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import RedirectResponse

from mistore.catalog.router import app_to_response
from mistore.catalog.schemas import AppResponse
from mistore.common.exceptions import (
    GatewayError,
    NotFoundError,
    PaymentRequiredError,
    UploadError,
    ValidationError,
)
from mistore.common.schemas import MessageResponse
from mistore.common.security import Principal, current_principal, require_admin
from mistore.storefront.schemas import DownloadResponse
from mistore.storefront.service import Upload

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])
router = APIRouter(prefix="/api/apps")


def _get_service():
    from mistore.deps import get_storefront_service
    return get_storefront_service()


def _get_db():
    from mistore.deps import get_db
    return get_db()


async def _read_upload(file: Optional[UploadFile], limit: int) -> Optional[Upload]:
    """Read at most ``limit + 1`` bytes so oversize files fail validation."""
    if file is None or not file.filename:
        return None
    content = await file.read(limit + 1)
    return Upload(
        filename=file.filename,
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )


def _form_fields(**fields: Optional[str]) -> dict[str, Optional[str]]:
    """Submitted form fields only; unsent fields stay absent."""
    return {k: v for k, v in fields.items() if v is not None}


def _raise_http(e: Exception) -> None:
    if isinstance(e, ValidationError):
        raise HTTPException(status_code=400, detail=e.message)
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=e.message)
    if isinstance(e, PaymentRequiredError):
        raise HTTPException(status_code=402, detail=e.message)
    if isinstance(e, UploadError):
        raise HTTPException(status_code=500, detail="Storage upload failed")
    if isinstance(e, GatewayError):
        raise HTTPException(status_code=500, detail="Storage service unavailable")
    raise e


# ── Admin ──

@admin_router.post("/upload", response_model=AppResponse)
async def upload_app(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    archivo: Optional[UploadFile] = File(None),
    imagen: Optional[UploadFile] = File(None),
):
    svc = _get_service()
    db = _get_db()
    limit = svc.settings.max_upload_bytes
    artifact = await _read_upload(archivo, limit)
    image = await _read_upload(imagen, limit)
    metadata = _form_fields(
        name=name, description=description, category=category, price=price,
    )
    try:
        async with db.get_session() as session:
            app = await svc.create_app_with_artifacts(session, metadata, artifact, image)
            return app_to_response(app)
    except (ValidationError, GatewayError) as e:
        _raise_http(e)


@admin_router.put("/apps/{app_id}", response_model=AppResponse)
async def update_app(
    app_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    clear_description: bool = Form(False),
    clear_category: bool = Form(False),
    clear_image: bool = Form(False),
    archivo: Optional[UploadFile] = File(None),
    imagen: Optional[UploadFile] = File(None),
):
    svc = _get_service()
    db = _get_db()
    limit = svc.settings.max_upload_bytes
    artifact = await _read_upload(archivo, limit)
    image = await _read_upload(imagen, limit)
    changes: dict[str, Optional[str]] = _form_fields(
        name=name, description=description, category=category, price=price,
    )
    if clear_description:
        changes["description"] = None
    if clear_category:
        changes["category"] = None
    try:
        async with db.get_session() as session:
            app = await svc.update_app_with_artifacts(
                session, app_id, changes,
                artifact=artifact, image=image, clear_image=clear_image,
            )
            return app_to_response(app)
    except (ValidationError, NotFoundError, GatewayError) as e:
        _raise_http(e)


@admin_router.delete("/apps/{app_id}", response_model=MessageResponse)
async def delete_app(app_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            await svc.delete_app(session, app_id)
    except NotFoundError as e:
        _raise_http(e)
    return MessageResponse(message=f"App {app_id} deleted")


# ── Public ──

@router.get("/{app_id}/download", response_model=DownloadResponse)
async def download_app(
    app_id: int,
    session_id: Optional[str] = Query(None),
    principal: Optional[Principal] = Depends(current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            app = await svc.catalog.get_app(session, app_id)
            await svc.check_download_access(
                session, app, checkout_session_id=session_id, principal=principal,
            )
            link = await svc.get_download_link(session, app_id)
    except (NotFoundError, PaymentRequiredError, GatewayError) as e:
        _raise_http(e)
    return DownloadResponse(url=link.url, expires_at=link.expires_at)


@router.get("/{app_id}/image")
async def app_image(app_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            link = await svc.get_image_link(session, app_id)
    except (NotFoundError, GatewayError) as e:
        _raise_http(e)
    return RedirectResponse(link.url, status_code=307)
