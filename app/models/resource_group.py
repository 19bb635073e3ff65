"""Resource groups and their resource memberships."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin


class ResourceGroup(TimestampMixin, Base):
    """Named selection of applications or environments under a parent resource."""

    __tablename__ = "resource_groups"
    __table_args__ = (
        Index("ix_resource_groups_parent_key", "parent_resource_id", "resource_key"),
        # Names are unique among active groups of one kind under one parent.
        Index(
            "uq_resource_groups_active_name",
            "parent_resource_id",
            "resource_key",
            "name",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(length=50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(length=50), nullable=True)
    parent_resource_id: Mapped[int] = mapped_column(Integer, nullable=False)
    resource_key: Mapped[str] = mapped_column(String(length=32), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by: Mapped[int] = mapped_column(Integer, nullable=False)

    mappings: Mapped[List["ResourceGroupMapping"]] = relationship(
        "ResourceGroupMapping",
        back_populates="resource_group",
        cascade="all, delete-orphan",
    )

    @property
    def active_resource_ids(self) -> List[int]:
        return sorted(mapping.resource_id for mapping in self.mappings if mapping.active)


class ResourceGroupMapping(TimestampMixin, Base):
    """Membership of a single resource in a resource group."""

    __tablename__ = "resource_group_mappings"
    __table_args__ = (Index("ix_resource_group_mappings_group", "resource_group_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("resource_groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    resource_id: Mapped[int] = mapped_column(Integer, nullable=False)
    resource_key: Mapped[str] = mapped_column(String(length=32), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    resource_group: Mapped["ResourceGroup"] = relationship("ResourceGroup", back_populates="mappings")
