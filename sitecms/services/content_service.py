"""
Create/read/update/delete services for the flat content entities.
Galleries and gallery images have their own services.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Iterable, List, Optional
import logging

from sitecms.exceptions import NotFoundError, ValidationError
from sitecms.models import (
    SINGLETON_ID,
    AboutText,
    Partner,
    Piedavajums,
    PiedavajumsHeader,
    TeamMember,
    Testimonial,
    utcnow,
)
from sitecms.utils.ids import parse_id

logger = logging.getLogger(__name__)


class ContentService:
    """CRUD operations over one table, newest records first."""

    def __init__(
        self,
        model,
        label: str,
        required_fields: Iterable[str],
        optional_on_update: Iterable[str] = (),
    ):
        self.model = model
        self.label = label
        self.required_fields = frozenset(required_fields)
        # Required on create, may be cleared on update
        self.optional_on_update = frozenset(optional_on_update)

    async def list(self, db: AsyncSession) -> List[Any]:
        result = await db.execute(
            select(self.model).order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, record_id: str) -> Any:
        record = await db.get(self.model, parse_id(record_id, self.label))
        if record is None:
            raise NotFoundError(f"{self.label.capitalize()} not found")
        return record

    async def create(self, db: AsyncSession, data: Dict[str, Any]) -> Any:
        self._check_required(data, require_all=True)
        record = self.model(**data)
        db.add(record)
        await db.commit()
        await db.refresh(record)
        logger.info(f"Created {self.label}: ID {record.id}")
        return record

    async def update(self, db: AsyncSession, record_id: str, changes: Dict[str, Any]) -> Any:
        """Apply only the fields present in `changes`; always refreshes updated_at."""
        record = await self.get(db, record_id)
        self._check_required(changes, require_all=False)

        for field, value in changes.items():
            if field in self.optional_on_update and isinstance(value, str) and not value.strip():
                value = None
            setattr(record, field, value)
        record.updated_at = utcnow()

        await db.commit()
        await db.refresh(record)
        logger.info(f"Updated {self.label}: ID {record.id} (fields: {sorted(changes)})")
        return record

    async def delete(self, db: AsyncSession, record_id: str) -> None:
        record = await self.get(db, record_id)
        await db.delete(record)
        await db.commit()
        logger.info(f"Deleted {self.label}: ID {record.id}")

    def _check_required(self, data: Dict[str, Any], require_all: bool) -> None:
        fields = self.required_fields if require_all else self.required_fields - self.optional_on_update
        for field in sorted(fields):
            if field not in data:
                if require_all:
                    raise ValidationError(f"{to_camel(field)} is required")
                continue
            value = data[field]
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{to_camel(field)} is required")


class SingletonService:
    """
    Single logical record stored under a fixed key.
    `set` replaces every declared field, creating the record when absent.
    """

    def __init__(self, model, label: str, fields: Iterable[str]):
        self.model = model
        self.label = label
        self.fields = tuple(fields)

    async def get(self, db: AsyncSession) -> Optional[Any]:
        return await db.get(self.model, SINGLETON_ID)

    async def set(self, db: AsyncSession, data: Dict[str, Any]) -> Any:
        for field in self.fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{to_camel(field)} is required")

        record = await self.get(db)
        if record is None:
            record = self.model(id=SINGLETON_ID)
            db.add(record)

        for field in self.fields:
            setattr(record, field, data[field])
        record.updated_at = utcnow()

        await db.commit()
        await db.refresh(record)
        logger.info(f"Saved {self.label}")
        return record


partners = ContentService(Partner, "partner", ["name", "logo"])
piedavajumi = ContentService(
    Piedavajums,
    "piedavajums",
    ["title", "duration", "description", "additional_title", "additional_description", "image"],
    optional_on_update=["duration", "additional_title", "additional_description"],
)
team_members = ContentService(
    TeamMember, "team member", ["name", "description", "small_image", "full_image"]
)
testimonials = ContentService(Testimonial, "testimonial", ["company", "testimonial", "signature"])

about_text = SingletonService(AboutText, "about text", ["text"])
piedavajumi_header = SingletonService(
    PiedavajumsHeader, "piedavajums header", ["header", "intro_paragraph1", "intro_paragraph2"]
)
