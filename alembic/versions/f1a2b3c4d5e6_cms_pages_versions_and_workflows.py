"""cms pages, components, versions and publishing workflows

Revision ID: f1a2b3c4d5e6
Revises:
Create Date: 2026-10-17 09:12:04.381920

"""

from alembic import op
import sqlalchemy as sa

revision = "f1a2b3c4d5e6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        sa.Column("template_id", sa.UUID(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("draft", "scheduled", "published", "archived", name="pagestatus"),
            nullable=False,
        ),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("seo_config", sa.JSON(), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revision", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("updated_by", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["parent_id"], ["pages.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pages_parent_id", "pages", ["parent_id"])
    op.create_index("ix_pages_status", "pages", ["status"])
    op.create_index("ix_pages_slug", "pages", ["slug"])
    op.create_index("ix_pages_scheduled_for", "pages", ["scheduled_for"])
    op.create_index(
        "uq_pages_published_slug",
        "pages",
        ["slug"],
        unique=True,
        postgresql_where=sa.text("status = 'published'"),
    )

    op.create_table(
        "page_components",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("page_id", sa.UUID(), nullable=False),
        sa.Column("component_type", sa.String(length=120), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("props", sa.JSON(), nullable=True),
        sa.Column("styles", sa.JSON(), nullable=True),
        sa.Column("responsive_config", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["page_id"], ["pages.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "page_id", "position", name="uq_page_components_page_position"
        ),
    )
    op.create_index("ix_page_components_page_id", "page_components", ["page_id"])

    op.create_table(
        "page_versions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("page_id", sa.UUID(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("components", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("change_description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["page_id"], ["pages.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "page_id", "version_number", name="uq_page_versions_page_version"
        ),
    )
    op.create_index("ix_page_versions_page_id", "page_versions", ["page_id"])

    op.create_table(
        "publishing_workflows",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("page_id", sa.UUID(), nullable=False),
        sa.Column("requires_approval", sa.Boolean(), nullable=True),
        sa.Column(
            "approval_status",
            sa.Enum("none", "pending", "approved", "rejected", name="approvalstatus"),
            nullable=False,
        ),
        sa.Column("requested_by", sa.UUID(), nullable=True),
        sa.Column("approved_by", sa.UUID(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["page_id"], ["pages.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("page_id", name="uq_publishing_workflows_page_id"),
    )
    op.create_index(
        "ix_publishing_workflows_approval_status",
        "publishing_workflows",
        ["approval_status"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_publishing_workflows_approval_status", table_name="publishing_workflows"
    )
    op.drop_table("publishing_workflows")
    op.drop_index("ix_page_versions_page_id", table_name="page_versions")
    op.drop_table("page_versions")
    op.drop_index("ix_page_components_page_id", table_name="page_components")
    op.drop_table("page_components")
    op.drop_index("uq_pages_published_slug", table_name="pages")
    op.drop_index("ix_pages_scheduled_for", table_name="pages")
    op.drop_index("ix_pages_slug", table_name="pages")
    op.drop_index("ix_pages_status", table_name="pages")
    op.drop_index("ix_pages_parent_id", table_name="pages")
    op.drop_table("pages")
    sa.Enum(name="approvalstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="pagestatus").drop(op.get_bind(), checkfirst=True)
