"""Business logic service layer."""

from app.services.dispatcher import ResourceGroupDispatcher  # noqa: F401
from app.services.group_types import BatchAuthorizer, resolve_group_type  # noqa: F401
from app.services.resource_groups import SqlResourceGroupService  # noqa: F401
