"""
Pydantic schemas for request and response data validation.
JSON payloads use camelCase field names; strings are trimmed before validation.
"""
from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Optional, List
from typing_extensions import Annotated

# Required text field: trimmed, must not be empty afterwards
RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,  # Enable conversion from SQLAlchemy models
        str_strip_whitespace=True,
    )


class RecordResponse(CamelModel):
    id: str
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    message: str


# Partners

class PartnerCreate(CamelModel):
    name: RequiredStr
    logo: RequiredStr


class PartnerUpdate(CamelModel):
    name: Optional[RequiredStr] = None
    logo: Optional[RequiredStr] = None


class PartnerResponse(RecordResponse):
    name: str
    logo: str


# Piedavajumi (offerings)

class PiedavajumsCreate(CamelModel):
    title: RequiredStr
    duration: RequiredStr
    description: RequiredStr
    additional_title: RequiredStr
    additional_description: RequiredStr
    image: RequiredStr
    order: int = Field(0, ge=0)


class PiedavajumsUpdate(CamelModel):
    title: Optional[RequiredStr] = None
    duration: Optional[str] = None
    description: Optional[RequiredStr] = None
    additional_title: Optional[str] = None
    additional_description: Optional[str] = None
    image: Optional[RequiredStr] = None
    order: Optional[int] = Field(None, ge=0)


class PiedavajumsResponse(RecordResponse):
    title: str
    duration: Optional[str] = None
    description: str
    additional_title: Optional[str] = None
    additional_description: Optional[str] = None
    image: str
    order: int


class PiedavajumsHeaderSet(CamelModel):
    header: RequiredStr
    intro_paragraph1: RequiredStr
    intro_paragraph2: RequiredStr


class PiedavajumsHeaderResponse(CamelModel):
    """Header content; empty strings until the header has been set."""
    id: Optional[str] = None
    header: str = ""
    intro_paragraph1: str = ""
    intro_paragraph2: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# About text

class AboutTextSet(CamelModel):
    text: RequiredStr


class AboutTextResponse(CamelModel):
    id: Optional[str] = None
    text: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Team members

class TeamMemberCreate(CamelModel):
    name: RequiredStr
    description: RequiredStr
    small_image: RequiredStr
    full_image: RequiredStr


class TeamMemberUpdate(CamelModel):
    name: Optional[RequiredStr] = None
    description: Optional[RequiredStr] = None
    small_image: Optional[RequiredStr] = None
    full_image: Optional[RequiredStr] = None


class TeamMemberResponse(RecordResponse):
    name: str
    description: str
    small_image: str
    full_image: str


# Testimonials

class TestimonialCreate(CamelModel):
    company: RequiredStr
    testimonial: RequiredStr
    signature: RequiredStr


class TestimonialUpdate(CamelModel):
    company: Optional[RequiredStr] = None
    testimonial: Optional[RequiredStr] = None
    signature: Optional[RequiredStr] = None


class TestimonialResponse(RecordResponse):
    company: str
    testimonial: str
    signature: str


# Gallery images

class GalleryImageResponse(CamelModel):
    """Stored gallery image document."""
    id: str
    gallery_id: Optional[str] = Field(None, serialization_alias="gallery")
    cloudinary_id: str
    image_url: str
    cloudinary_data: Optional[dict] = None
    caption: Optional[str] = None
    order: int
    uploaded_at: datetime


class GalleryImageUpdate(CamelModel):
    caption: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)


# Galleries

class GalleryCreate(CamelModel):
    """
    `images` entries may be image ids, Cloudinary URLs,
    {"id" | "image", "titleImage"?} or {"url", "caption"?, "titleImage"?} objects.
    """
    name: RequiredStr
    cover_image: Optional[str] = None
    cover_image_id: Optional[str] = None
    event_date: Optional[datetime] = None
    images: Optional[List[Any]] = None


class GalleryUpdate(CamelModel):
    name: Optional[RequiredStr] = None
    cover_image: Optional[str] = None
    cover_image_id: Optional[str] = None
    event_date: Optional[datetime] = None
    images: Optional[List[Any]] = None


class ExpandedGalleryImage(CamelModel):
    """
    Gallery image joined with its embedded reference.
    `title` and `description` both carry the image caption.
    """
    id: Optional[str] = None
    url: str
    cloudinary_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    cloudinary_data: Optional[dict] = None
    title_image: bool = False


class GalleryResponse(CamelModel):
    id: str
    name: str
    event_date: Optional[datetime] = None
    cover_image: Optional[str] = None
    cover_image_id: Optional[str] = None
    images: List[ExpandedGalleryImage] = []
    created_at: datetime
    updated_at: datetime


class GalleryDeleteResponse(CamelModel):
    message: str
    deleted_images: int
