"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sitecms.database import Base

# Fixed primary key of the single row kept by singleton tables
SINGLETON_ID = "singleton"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Gallery(TimestampMixin, Base):
    """
    Named, dated collection of images.

    `images` is the ordered list of embedded image references. Each entry is a dict:
        {"image": <gallery_images.id or None>, "imageUrl": str | None,
         "cloudinaryId": str | None, "titleImage": bool}
    Entries without "image" are legacy references to externally hosted images.
    """
    __tablename__ = "galleries"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=True)
    cover_image = Column(String, nullable=True)
    cover_image_id = Column(String, nullable=True)
    images = Column(JSON, nullable=False, default=list)


class GalleryImage(Base):
    """
    Uploaded or registered photo.
    Stores the Cloudinary public_id used to delete the binary and the metadata captured at upload.
    """
    __tablename__ = "gallery_images"

    id = Column(String(36), primary_key=True, default=new_id)
    gallery_id = Column(String(36), ForeignKey("galleries.id"), nullable=True, index=True)
    cloudinary_id = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    cloudinary_data = Column(JSON, nullable=True)
    caption = Column(String, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class AboutText(TimestampMixin, Base):
    """Singleton: the row is always stored under SINGLETON_ID."""
    __tablename__ = "about_text"

    id = Column(String(36), primary_key=True, default=SINGLETON_ID)
    text = Column(Text, nullable=False)


class PiedavajumsHeader(TimestampMixin, Base):
    """Singleton header and intro paragraphs of the offerings page."""
    __tablename__ = "piedavajumi_header"

    id = Column(String(36), primary_key=True, default=SINGLETON_ID)
    header = Column(String, nullable=False)
    intro_paragraph1 = Column(Text, nullable=False)
    intro_paragraph2 = Column(Text, nullable=False)


class Partner(TimestampMixin, Base):
    __tablename__ = "partners"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    logo = Column(String, nullable=False)


class Piedavajums(TimestampMixin, Base):
    """Service offering."""
    __tablename__ = "piedavajumi"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    duration = Column(String, nullable=True)
    description = Column(Text, nullable=False)
    additional_title = Column(String, nullable=True)
    additional_description = Column(Text, nullable=True)
    image = Column(String, nullable=False)
    order = Column(Integer, nullable=False, default=0)


class TeamMember(TimestampMixin, Base):
    __tablename__ = "team_members"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    small_image = Column(String, nullable=False)
    full_image = Column(String, nullable=False)


class Testimonial(TimestampMixin, Base):
    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=new_id)
    company = Column(String, nullable=False)
    testimonial = Column(Text, nullable=False)
    signature = Column(String, nullable=False)
