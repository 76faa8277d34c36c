"""
Content routes: partners, offerings (piedavajumi), team members, testimonials,
plus the singleton about text and offerings header.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Type
import logging

from sitecms.database import get_db
from sitecms.exceptions import CMSError
from sitecms.schemas import (
    AboutTextResponse,
    AboutTextSet,
    MessageResponse,
    PartnerCreate,
    PartnerResponse,
    PartnerUpdate,
    PiedavajumsCreate,
    PiedavajumsHeaderResponse,
    PiedavajumsHeaderSet,
    PiedavajumsResponse,
    PiedavajumsUpdate,
    TeamMemberCreate,
    TeamMemberResponse,
    TeamMemberUpdate,
    TestimonialCreate,
    TestimonialResponse,
    TestimonialUpdate,
)
from sitecms.services import content_service
from sitecms.services.content_service import ContentService

logger = logging.getLogger(__name__)


def _server_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Failed to {action}: {str(e)}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": f"Failed to {action}", "detail": str(e)},
    )


def build_crud_router(
    prefix: str,
    service: ContentService,
    create_schema: Type,
    update_schema: Type,
    response_schema: Type,
    plural: str,
    delete_message: bool = False,
) -> APIRouter:
    """
    Build list/get/create/update/delete endpoints for one content service.

    Deletes answer 204 with no body, or 200 with a message when `delete_message` is set.
    """
    router = APIRouter(prefix=prefix)
    label = service.label

    @router.get("", response_model=List[response_schema])
    async def list_records(db: AsyncSession = Depends(get_db)):
        try:
            return await service.list(db)
        except CMSError:
            raise
        except Exception as e:
            raise _server_error(f"fetch {plural}", e)

    @router.get("/{record_id}", response_model=response_schema)
    async def get_record(record_id: str, db: AsyncSession = Depends(get_db)):
        try:
            return await service.get(db, record_id)
        except CMSError:
            raise
        except Exception as e:
            raise _server_error(f"fetch {label}", e)

    @router.post("", response_model=response_schema, status_code=status.HTTP_201_CREATED)
    async def create_record(payload: create_schema, db: AsyncSession = Depends(get_db)):
        try:
            return await service.create(db, payload.model_dump())
        except CMSError:
            raise
        except Exception as e:
            raise _server_error(f"create {label}", e)

    @router.put("/{record_id}", response_model=response_schema)
    async def update_record(record_id: str, payload: update_schema, db: AsyncSession = Depends(get_db)):
        try:
            return await service.update(db, record_id, payload.model_dump(exclude_unset=True))
        except CMSError:
            raise
        except Exception as e:
            raise _server_error(f"update {label}", e)

    if delete_message:
        @router.delete("/{record_id}", response_model=MessageResponse)
        async def delete_record(record_id: str, db: AsyncSession = Depends(get_db)):
            try:
                await service.delete(db, record_id)
            except CMSError:
                raise
            except Exception as e:
                raise _server_error(f"delete {label}", e)
            return {"message": f"{label.capitalize()} deleted successfully"}
    else:
        @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
        async def delete_record(record_id: str, db: AsyncSession = Depends(get_db)):
            try:
                await service.delete(db, record_id)
            except CMSError:
                raise
            except Exception as e:
                raise _server_error(f"delete {label}", e)
            return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


# Singletons

singletons_router = APIRouter()


@singletons_router.get("/about-text", response_model=AboutTextResponse)
async def get_about_text(db: AsyncSession = Depends(get_db)):
    """Get the about text; `text` is null until it has been set."""
    try:
        record = await content_service.about_text.get(db)
    except Exception as e:
        raise _server_error("fetch about text", e)
    if record is None:
        return AboutTextResponse()
    return record


@singletons_router.put("/about-text", response_model=AboutTextResponse)
async def set_about_text(payload: AboutTextSet, db: AsyncSession = Depends(get_db)):
    """Create or replace the about text."""
    try:
        return await content_service.about_text.set(db, payload.model_dump())
    except CMSError:
        raise
    except Exception as e:
        raise _server_error("update about text", e)


@singletons_router.get("/piedavajumi/header", response_model=PiedavajumsHeaderResponse)
async def get_piedavajumi_header(db: AsyncSession = Depends(get_db)):
    """Get the offerings header; all fields are empty strings until it has been set."""
    try:
        record = await content_service.piedavajumi_header.get(db)
    except Exception as e:
        raise _server_error("fetch piedavajums header", e)
    if record is None:
        return PiedavajumsHeaderResponse()
    return record


@singletons_router.put("/piedavajumi/header", response_model=PiedavajumsHeaderResponse)
async def set_piedavajumi_header(payload: PiedavajumsHeaderSet, db: AsyncSession = Depends(get_db)):
    """Create or replace the offerings header and intro paragraphs."""
    try:
        return await content_service.piedavajumi_header.set(db, payload.model_dump())
    except CMSError:
        raise
    except Exception as e:
        raise _server_error("update piedavajums header", e)


partners_router = build_crud_router(
    "/partners", content_service.partners,
    PartnerCreate, PartnerUpdate, PartnerResponse, "partners",
)
piedavajumi_router = build_crud_router(
    "/piedavajumi", content_service.piedavajumi,
    PiedavajumsCreate, PiedavajumsUpdate, PiedavajumsResponse, "piedavajumi",
)
team_members_router = build_crud_router(
    "/team-members", content_service.team_members,
    TeamMemberCreate, TeamMemberUpdate, TeamMemberResponse, "team members",
    delete_message=True,
)
testimonials_router = build_crud_router(
    "/testimonials", content_service.testimonials,
    TestimonialCreate, TestimonialUpdate, TestimonialResponse, "testimonials",
)
