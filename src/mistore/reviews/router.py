"""Review API router."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from mistore.common.exceptions import AppNotFoundError, ValidationError
from mistore.common.security import Principal, current_principal
from mistore.reviews.schemas import RatingSummary, ReviewCreate, ReviewResponse

router = APIRouter(prefix="/api/apps")


def _get_service():
    from mistore.deps import get_review_service
    return get_review_service()


def _get_db():
    from mistore.deps import get_db
    return get_db()


@router.get("/{app_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(app_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            reviews = await svc.list_reviews(session, app_id)
            return [ReviewResponse.model_validate(r) for r in reviews]
    except AppNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{app_id}/reviews", response_model=ReviewResponse, status_code=201)
async def add_review(
    app_id: int,
    body: ReviewCreate,
    principal: Optional[Principal] = Depends(current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            review = await svc.add_review(
                session,
                app_id,
                rating=body.rating,
                comment=body.comment,
                username=principal.username if principal else body.username,
                user_id=principal.user_id if principal else None,
            )
            return ReviewResponse.model_validate(review)
    except AppNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.get("/{app_id}/rating", response_model=RatingSummary)
async def get_rating(app_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            await svc.catalog.get_app(session, app_id)
            average, total = await svc.rating_summary(session, app_id)
    except AppNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return RatingSummary(app_id=app_id, average_rating=average, total_ratings=total)
