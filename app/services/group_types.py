"""Group type resolution and scope-bound batch authorization."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Sequence

from app.schemas.resource_group import GroupType
from app.services.enforcer import Enforcer

AuthorizationStrategy = Callable[[str, Sequence[str], str], Dict[str, bool]]

# Empty token predates env groups; old clients omit the field entirely.
_LEGACY_APP_GROUP_TOKENS = frozenset({"", GroupType.APP_GROUP.value})


class AuthorizationScope(str, Enum):
    """Enforcer resource kind a group's members are checked against."""

    APPLICATION = "applications"
    ENVIRONMENT = "environment"


class InvalidGroupTypeError(ValueError):
    """Raised for a group type token that maps to no known group kind."""

    def __init__(self, token: str) -> None:
        super().__init__(f"invalid group type {token}")
        self.token = token


@dataclass(frozen=True)
class GroupTypeResolution:
    group_type: GroupType
    scope: AuthorizationScope


def resolve_group_type(token: str) -> GroupTypeResolution:
    if token == GroupType.ENV_GROUP.value:
        return GroupTypeResolution(GroupType.ENV_GROUP, AuthorizationScope.ENVIRONMENT)
    if token in _LEGACY_APP_GROUP_TOKENS:
        return GroupTypeResolution(GroupType.APP_GROUP, AuthorizationScope.APPLICATION)
    raise InvalidGroupTypeError(token)


class BatchAuthorizer:
    """Runs batch enforcement for whichever scope a request resolved to.

    The returned map only holds identifiers the enforcer evaluated; a missing
    key means "not evaluated", which callers must not read as a denial.
    """

    def __init__(self, enforcer: Enforcer) -> None:
        self._enforcer = enforcer

    def strategy_for(self, scope: AuthorizationScope) -> AuthorizationStrategy:
        def check_batch(token: str, object_ids: Sequence[str], action: str) -> Dict[str, bool]:
            return self.check(scope, token, object_ids, action)

        return check_batch

    def check(
        self,
        scope: AuthorizationScope,
        token: str,
        object_ids: Sequence[str],
        action: str,
    ) -> Dict[str, bool]:
        if not object_ids:
            return {}
        return dict(self._enforcer.enforce_in_batch(token, scope.value, action, list(object_ids)))
