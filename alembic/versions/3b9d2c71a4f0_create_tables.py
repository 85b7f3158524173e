"""create users, templates and projects tables

Revision ID: 3b9d2c71a4f0
Revises: 
Create Date: 2026-10-19 09:12:04.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from projecthub.database import Base, DEFAULT_TEMPLATES
from projecthub.models import user  # noqa: F401


# revision identifiers, used by Alembic.
revision: str = '3b9d2c71a4f0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema by creating all tables and loading the template catalog."""
    bind = op.get_bind()
    Base.metadata.create_all(bind)
    templates = sa.table(
        "templates",
        sa.column("id", sa.String),
        sa.column("title", sa.String),
        sa.column("featured", sa.Boolean),
        sa.column("description", sa.String),
        sa.column("category", sa.String),
        sa.column("image_url", sa.String),
        sa.column("position", sa.Integer),
    )
    op.bulk_insert(
        templates,
        [
            {
                "description": None,
                "category": None,
                "image_url": None,
                "position": position,
                **row,
            }
            for position, row in enumerate(DEFAULT_TEMPLATES)
        ],
    )


def downgrade() -> None:
    """Downgrade schema by dropping all tables."""
    bind = op.get_bind()
    Base.metadata.drop_all(bind)
