"""Resource groups and resource group mappings."""

from __future__ import annotations
from typing import Union, Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_resource_groups"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "resource_groups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=50), nullable=True),
        sa.Column("parent_resource_id", sa.Integer(), nullable=False),
        sa.Column("resource_key", sa.String(length=32), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_resource_groups")),
    )
    op.create_index(
        "ix_resource_groups_parent_key",
        "resource_groups",
        ["parent_resource_id", "resource_key"],
        unique=False,
    )
    op.create_index(
        "uq_resource_groups_active_name",
        "resource_groups",
        ["parent_resource_id", "resource_key", "name"],
        unique=True,
        postgresql_where=sa.text("active"),
        sqlite_where=sa.text("active"),
    )
    op.create_table(
        "resource_group_mappings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("resource_group_id", sa.Integer(), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("resource_key", sa.String(length=32), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ["resource_group_id"],
            ["resource_groups.id"],
            name=op.f("fk_resource_group_mappings_resource_group_id_resource_groups"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_resource_group_mappings")),
    )
    op.create_index(
        "ix_resource_group_mappings_group",
        "resource_group_mappings",
        ["resource_group_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_resource_group_mappings_group", table_name="resource_group_mappings")
    op.drop_table("resource_group_mappings")
    op.drop_index("uq_resource_groups_active_name", table_name="resource_groups")
    op.drop_index("ix_resource_groups_parent_key", table_name="resource_groups")
    op.drop_table("resource_groups")
