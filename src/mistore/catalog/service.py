"""Catalog service — persistence of app records."""

from typing import Any, Mapping, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mistore.catalog.models import AppModel
from mistore.catalog.schemas import AppCreate, AppUpdate
from mistore.common.exceptions import AppNotFoundError, ValidationError
from mistore.common.models import utcnow

Fields = Union[BaseModel, Mapping[str, Any]]


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ())) or "input"
    return f"Invalid {loc}: {first.get('msg', 'bad value')}"


def _parse(schema: type[BaseModel], fields: Fields) -> BaseModel:
    if isinstance(fields, schema):
        return fields.model_copy()
    if isinstance(fields, BaseModel):
        fields = fields.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(dict(fields))
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc)) from exc


class CatalogService:
    """App record CRUD. Every method is a single-row operation."""

    def validate_fields(
        self,
        fields: Fields,
        partial: bool = False,
        require_artifact: bool = True,
    ) -> BaseModel:
        """Parse and check app fields without touching the database.

        Returns an ``AppUpdate`` when partial, otherwise an ``AppCreate``.
        Raises ValidationError on empty name, negative or non-numeric price,
        or (when required) a missing artifact key.
        """
        model = _parse(AppUpdate if partial else AppCreate, fields)
        values = model.model_dump(exclude_unset=partial)

        if "name" in values:
            name = values["name"]
            if name is None or not name.strip():
                raise ValidationError("App name is required")
            model.name = name.strip()

        if "price" in values:
            price = values["price"]
            if price is None or price < 0:
                raise ValidationError("Price must be a non-negative integer")

        if require_artifact and "artifact_key" in values and not values["artifact_key"]:
            raise ValidationError("Artifact is required")

        return model

    async def create_app(self, session: AsyncSession, fields: Fields) -> AppModel:
        data: AppCreate = self.validate_fields(fields)
        app = AppModel(
            name=data.name,
            description=data.description,
            category=data.category,
            price=data.price,
            artifact_key=data.artifact_key,
            image_key=data.image_key,
        )
        session.add(app)
        await session.flush()
        return app

    async def get_app(self, session: AsyncSession, app_id: int) -> AppModel:
        app = await session.get(AppModel, app_id)
        if app is None:
            raise AppNotFoundError(f"App {app_id} not found")
        return app

    async def list_apps(
        self, session: AsyncSession, category: str | None = None
    ) -> list[AppModel]:
        """Newest first; equal timestamps fall back to id so the order is total."""
        query = select(AppModel)
        if category is not None:
            query = query.where(AppModel.category == category)
        query = query.order_by(AppModel.created_at.desc(), AppModel.id.desc())
        result = await session.execute(query)
        return list(result.scalars().all())

    async def count_apps(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(AppModel))
        return result.scalar_one()

    async def update_app(
        self, session: AsyncSession, app_id: int, changes: Fields
    ) -> AppModel:
        data: AppUpdate = self.validate_fields(changes, partial=True)
        app = await self.get_app(session, app_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(app, field, value)
        app.updated_at = utcnow()
        await session.flush()
        return app

    async def delete_app(self, session: AsyncSession, app_id: int) -> AppModel:
        """Delete the row and return the removed record for object cleanup."""
        app = await self.get_app(session, app_id)
        await session.delete(app)
        await session.flush()
        return app
