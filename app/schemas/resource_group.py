"""Resource group payloads."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

NAME_PATTERN = r"^[a-z0-9]+(?:[._-][a-z0-9]+)*$"


class GroupType(str, Enum):
    APP_GROUP = "app-group"
    ENV_GROUP = "env-group"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResourceGroupRequest(_CamelModel):
    """Decoded body of the create, update and permission-check calls.

    ``group_type`` stays the raw client token until the dispatcher resolves
    it. ``app_ids`` and ``environment_id`` are the legacy app-group fields.
    """

    id: int = 0
    name: str = ""
    description: str = ""
    group_type: str = ""
    parent_resource_id: int = 0
    resource_ids: List[int] = Field(default_factory=list)
    app_ids: List[int] = Field(default_factory=list)
    environment_id: int = 0
    user_id: int = 0
    active: bool = True

    @field_validator("*", mode="before")
    @classmethod
    def null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        # Older clients send null for fields they do not use.
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class ResourceGroupConstraints(_CamelModel):
    """Constraints a normalized create/update request must satisfy."""

    id: int = Field(default=0, ge=0)
    name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    description: str = Field(default="", max_length=50)
    group_type: GroupType
    parent_resource_id: int = Field(..., gt=0)
    resource_ids: List[int] = Field(..., min_length=1)
    user_id: int = Field(..., gt=0)


class PermissionCheckConstraints(_CamelModel):
    """Constraints a normalized permission-check request must satisfy."""

    group_type: GroupType
    parent_resource_id: int = Field(..., gt=0)
    resource_ids: List[int] = Field(default_factory=list)
    user_id: int = Field(..., gt=0)


class ResourceGroupResponse(_CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    group_type: GroupType
    parent_resource_id: int
    resource_ids: List[int]
    active: bool


PermissionCheckResult = Dict[str, bool]
