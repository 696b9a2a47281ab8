"""initial_schema

Revision ID: 3f1c0a7d9b2e
Revises:
Create Date: 2026-10-17 09:12:41.204113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c0a7d9b2e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create namespaces, pages, page_versions and page_props."""
    op.create_table(
        "namespaces",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("default_format", sa.String(16), nullable=False, server_default="wikitext"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_namespaces_name", "namespaces", ["name"], unique=True)

    op.create_table(
        "pages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("namespace_id", sa.String(36),
                  sa.ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("slug", sa.String(512), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("namespace_id", "slug", name="uq_pages_ns_slug"),
    )
    op.create_index("ix_pages_namespace_id", "pages", ["namespace_id"])
    op.create_index("ix_pages_slug", "pages", ["slug"])
    op.create_index("ix_pages_ns_title", "pages", ["namespace_id", "title"])

    op.create_table(
        "page_versions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("page_id", sa.String(36),
                  sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("format", sa.String(16), nullable=False),
        sa.Column("rendered", sa.Text(), nullable=True),
        sa.Column("comment", sa.String(512), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("page_id", "version", name="uq_page_versions_page_ver"),
    )
    op.create_index("ix_page_versions_page_id", "page_versions", ["page_id"])

    op.create_table(
        "page_props",
        sa.Column("page_id", sa.String(36),
                  sa.ForeignKey("pages.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("name", sa.String(64), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False, server_default=""),
    )


def downgrade() -> None:
    op.drop_table("page_props")
    op.drop_index("ix_page_versions_page_id", table_name="page_versions")
    op.drop_table("page_versions")
    op.drop_index("ix_pages_ns_title", table_name="pages")
    op.drop_index("ix_pages_slug", table_name="pages")
    op.drop_index("ix_pages_namespace_id", table_name="pages")
    op.drop_table("pages")
    op.drop_index("ix_namespaces_name", table_name="namespaces")
    op.drop_table("namespaces")
