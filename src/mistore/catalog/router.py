"""Public catalog API router."""

from fastapi import APIRouter, HTTPException, Query

from mistore.catalog.models import AppModel
from mistore.catalog.schemas import AppResponse
from mistore.common.exceptions import AppNotFoundError

router = APIRouter(prefix="/api/apps")


def _get_service():
    from mistore.deps import get_catalog_service
    return get_catalog_service()


def _get_db():
    from mistore.deps import get_db
    return get_db()


def app_to_response(app: AppModel) -> AppResponse:
    return AppResponse(
        id=app.id,
        name=app.name,
        description=app.description,
        category=app.category,
        price=app.price,
        is_paid=app.is_paid,
        rating=app.rating,
        artifact_key=app.artifact_key,
        image_key=app.image_key,
        image_url=f"/api/apps/{app.id}/image" if app.image_key else None,
        created_at=app.created_at,
        updated_at=app.updated_at,
    )


@router.get("", response_model=list[AppResponse])
async def list_apps(category: str | None = Query(None)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        apps = await svc.list_apps(session, category=category)
        return [app_to_response(a) for a in apps]


@router.get("/{app_id}", response_model=AppResponse)
async def get_app(app_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            app = await svc.get_app(session, app_id)
            return app_to_response(app)
    except AppNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
