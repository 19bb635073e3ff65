import os
import sys
from pathlib import Path
from typing import Dict, List, Sequence, Set, Tuple

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("RGA_ENVIRONMENT", "test")
os.environ.setdefault("RGA_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RGA_AUTHORIZER_URL", "")
os.environ.setdefault("RGA_LOG_JSON", "false")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_settings

get_settings.cache_clear()

from app.core.database import engine  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models import Base  # noqa: E402
from app.services import cache as cache_module  # noqa: E402
from app.services.enforcer import get_enforcer  # noqa: E402
from app.services.users import UserResolutionError, get_user_service  # noqa: E402

ADMIN_TOKEN = "admin-token"
ADMIN_USER_ID = 1


class RecordingEnforcer:
    """Grants everything except objects listed in `denied`, recording each call."""

    def __init__(self) -> None:
        self.denied: Set[str] = set()
        self.calls: List[Tuple[str, str, str, List[str]]] = []

    def enforce_in_batch(self, token: str, resource: str, action: str, objects: Sequence[str]) -> Dict[str, bool]:
        self.calls.append((token, resource, action, list(objects)))
        return {obj: obj not in self.denied for obj in objects}


class StaticUserService:
    def __init__(self, users: Dict[str, int]) -> None:
        self.users = users

    def get_logged_in_user(self, token: str) -> int:
        if token not in self.users:
            raise UserResolutionError("unknown token")
        return self.users[token]


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    cache_module._shared_cache = cache_module.InMemoryDecisionCache(ttl_seconds=30)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def enforcer() -> RecordingEnforcer:
    return RecordingEnforcer()


@pytest.fixture()
def users() -> StaticUserService:
    return StaticUserService({ADMIN_TOKEN: ADMIN_USER_ID, "zero-token": 0})


@pytest.fixture()
def client(enforcer: RecordingEnforcer, users: StaticUserService) -> TestClient:  # noqa: ANN001
    app = create_app()
    app.dependency_overrides[get_enforcer] = lambda: enforcer
    app.dependency_overrides[get_user_service] = lambda: users
    with TestClient(app) as test_client:
        yield test_client
