"""create sector mapping tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _audit() -> list[sa.Column]:
    return [
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "economic_sectors",
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("code", name="pk_economic_sectors"),
    )

    op.create_table(
        "sector_groups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        *_audit(),
        sa.PrimaryKeyConstraint("id", name="pk_sector_groups"),
        sa.UniqueConstraint("name", name="uq_sector_groups_name"),
    )
    op.create_index("ix_sector_groups_is_active", "sector_groups", ["is_active"], unique=False)

    op.create_table(
        "sector_group_mappings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("economic_sector_code", sa.String(length=20), nullable=False),
        sa.Column("group_type", sa.String(length=32), nullable=False),
        sa.Column("group_name", sa.String(length=120), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("effective_start", sa.Date(), nullable=False),
        sa.Column("effective_end", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("approved_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        *_audit(),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["sector_groups.id"],
            name="fk_sector_group_mappings_group_id_sector_groups",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["economic_sector_code"],
            ["economic_sectors.code"],
            name="fk_sector_group_mappings_economic_sector_code_economic_sectors",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sector_group_mappings"),
    )
    op.create_index(
        "ix_sector_group_mappings_logical_id",
        "sector_group_mappings",
        ["group_id", "group_name", "effective_start"],
        unique=False,
    )
    op.create_index(
        "ix_sector_group_mappings_sector_active",
        "sector_group_mappings",
        ["economic_sector_code", "is_active"],
        unique=False,
    )
    op.create_index(
        "ix_sector_group_mappings_effective_start",
        "sector_group_mappings",
        ["effective_start"],
        unique=False,
    )
    op.create_index(
        "ix_sector_group_mappings_effective_end",
        "sector_group_mappings",
        ["effective_end"],
        unique=False,
    )
    op.create_index(
        "ix_sector_group_mappings_created_at",
        "sector_group_mappings",
        ["created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_sector_group_mappings_created_at", table_name="sector_group_mappings")
    op.drop_index("ix_sector_group_mappings_effective_end", table_name="sector_group_mappings")
    op.drop_index("ix_sector_group_mappings_effective_start", table_name="sector_group_mappings")
    op.drop_index("ix_sector_group_mappings_sector_active", table_name="sector_group_mappings")
    op.drop_index("ix_sector_group_mappings_logical_id", table_name="sector_group_mappings")
    op.drop_table("sector_group_mappings")
    op.drop_index("ix_sector_groups_is_active", table_name="sector_groups")
    op.drop_table("sector_groups")
    op.drop_table("economic_sectors")
