"""Review service — per-app reviews and the cached average rating."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mistore.catalog.service import CatalogService
from mistore.common.database import upsert
from mistore.common.exceptions import ValidationError
from mistore.common.models import utcnow
from mistore.reviews.models import ReviewModel

ANONYMOUS = "Anonymous"


class ReviewService:
    def __init__(self, catalog: CatalogService):
        self.catalog = catalog

    async def add_review(
        self,
        session: AsyncSession,
        app_id: int,
        rating: int,
        comment: str = "",
        username: str | None = None,
        user_id: int | None = None,
    ) -> ReviewModel:
        """Add a review. A signed-in user's second review replaces the first."""
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        app = await self.catalog.get_app(session, app_id)
        username = (username or "").strip() or ANONYMOUS

        if user_id is None:
            review = ReviewModel(
                app_id=app.id, username=username, rating=rating, comment=comment or "",
            )
            session.add(review)
            await session.flush()
        else:
            await upsert(
                session,
                ReviewModel,
                {
                    "app_id": app.id,
                    "user_id": user_id,
                    "username": username,
                    "rating": rating,
                    "comment": comment or "",
                    "created_at": utcnow(),
                },
                conflict_columns=["app_id", "user_id"],
                update_columns=["username", "rating", "comment", "created_at"],
            )
            result = await session.execute(
                select(ReviewModel)
                .where(ReviewModel.app_id == app.id, ReviewModel.user_id == user_id)
                .execution_options(populate_existing=True)
            )
            review = result.scalar_one()

        average, _ = await self.rating_summary(session, app.id)
        app.rating = average
        await session.flush()
        return review

    async def list_reviews(self, session: AsyncSession, app_id: int) -> list[ReviewModel]:
        await self.catalog.get_app(session, app_id)
        result = await session.execute(
            select(ReviewModel)
            .where(ReviewModel.app_id == app_id)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
        )
        return list(result.scalars().all())

    async def rating_summary(
        self, session: AsyncSession, app_id: int
    ) -> tuple[float, int]:
        """Return (average rounded to one decimal, number of ratings)."""
        result = await session.execute(
            select(func.avg(ReviewModel.rating), func.count(ReviewModel.id))
            .where(ReviewModel.app_id == app_id)
        )
        average, total = result.one()
        return round(float(average or 0), 1), int(total)
