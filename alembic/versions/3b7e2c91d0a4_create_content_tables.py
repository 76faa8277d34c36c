"""create_content_tables

Revision ID: 3b7e2c91d0a4
Revises:
Create Date: 2026-10-19 10:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e2c91d0a4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'galleries',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('event_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cover_image', sa.String(), nullable=True),
        sa.Column('cover_image_id', sa.String(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'gallery_images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('gallery_id', sa.String(length=36), sa.ForeignKey('galleries.id'), nullable=True),
        sa.Column('cloudinary_id', sa.String(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=False),
        sa.Column('cloudinary_data', sa.JSON(), nullable=True),
        sa.Column('caption', sa.String(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'about_text',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('text', sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'piedavajumi_header',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('header', sa.String(), nullable=False),
        sa.Column('intro_paragraph1', sa.Text(), nullable=False),
        sa.Column('intro_paragraph2', sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'partners',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('logo', sa.String(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'piedavajumi',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('duration', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('additional_title', sa.String(), nullable=True),
        sa.Column('additional_description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'team_members',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('small_image', sa.String(), nullable=False),
        sa.Column('full_image', sa.String(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'testimonials',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company', sa.String(), nullable=False),
        sa.Column('testimonial', sa.Text(), nullable=False),
        sa.Column('signature', sa.String(), nullable=False),
        *_timestamps(),
    )

    # Indexes used by the list endpoints (newest first) and gallery lookups
    for table in ('galleries', 'about_text', 'piedavajumi_header', 'partners',
                  'piedavajumi', 'team_members', 'testimonials'):
        op.create_index(op.f(f'ix_{table}_created_at'), table, ['created_at'], unique=False)
    op.create_index(op.f('ix_gallery_images_gallery_id'), 'gallery_images', ['gallery_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_gallery_images_gallery_id'), table_name='gallery_images')
    for table in ('testimonials', 'team_members', 'piedavajumi', 'partners',
                  'piedavajumi_header', 'about_text', 'galleries'):
        op.drop_index(op.f(f'ix_{table}_created_at'), table_name=table)

    op.drop_table('testimonials')
    op.drop_table('team_members')
    op.drop_table('piedavajumi')
    op.drop_table('partners')
    op.drop_table('piedavajumi_header')
    op.drop_table('about_text')
    op.drop_table('gallery_images')
    op.drop_table('galleries')
