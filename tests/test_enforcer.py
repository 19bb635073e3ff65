from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.services import enforcer as enforcer_module
from app.services import users as users_module
from app.services.cache import InMemoryDecisionCache, token_digest
from app.services.enforcer import DenyAllEnforcer, EnforcerError, HttpEnforcer
from app.services.users import RemoteUserService, UnconfiguredUserService, UserResolutionError


def make_enforcer(handler, cache: InMemoryDecisionCache | None = None) -> HttpEnforcer:
    client = httpx.Client(base_url="http://authorizer.test", transport=httpx.MockTransport(handler))
    return HttpEnforcer(client, cache=cache or InMemoryDecisionCache(ttl_seconds=60))


def test_batch_request_shape_and_result() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(200, json={"result": {obj: obj.endswith("1") for obj in body["objects"]}})

    result = make_enforcer(handler).enforce_in_batch("tkn", "applications", "get", ["5/1", "5/2"])

    assert result == {"5/1": True, "5/2": False}
    assert seen[0].url.path == "/api/v1/enforce/batch"
    assert seen[0].headers["token"] == "tkn"
    assert json.loads(seen[0].content) == {"resource": "applications", "action": "get", "objects": ["5/1", "5/2"]}


def test_cached_decisions_skip_the_round_trip() -> None:
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        objects = json.loads(request.content)["objects"]
        requested.append(objects)
        return httpx.Response(200, json={"result": {obj: True for obj in objects}})

    enforcer = make_enforcer(handler)
    enforcer.enforce_in_batch("tkn", "environment", "update", ["1/1"])
    result = enforcer.enforce_in_batch("tkn", "environment", "update", ["1/1", "1/2"])

    assert result == {"1/1": True, "1/2": True}
    assert requested == [["1/1"], ["1/2"]]

    enforcer.enforce_in_batch("other-token", "environment", "update", ["1/1"])
    assert requested[-1] == ["1/1"]


def test_objects_missing_from_response_stay_unevaluated() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": {"1/1": True}})

    result = make_enforcer(handler).enforce_in_batch("tkn", "applications", "get", ["1/1", "1/2"])

    assert result == {"1/1": True}
    assert "1/2" not in result


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, json={"error": "down"}),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"unexpected": True}),
    ],
)
def test_backend_failures_raise(response: httpx.Response) -> None:
    enforcer = make_enforcer(lambda request: response)

    with pytest.raises(EnforcerError):
        enforcer.enforce_in_batch("tkn", "applications", "get", ["1/1"])


def test_transport_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EnforcerError):
        make_enforcer(handler).enforce_in_batch("tkn", "applications", "get", ["1/1"])


def test_cache_expiry() -> None:
    now = [100.0]
    cache = InMemoryDecisionCache(ttl_seconds=10, clock=lambda: now[0])
    key = (token_digest("tkn"), "applications", "get", "1/1")
    cache.set_many({key: True})

    assert cache.get_many([key]) == {key: True}
    now[0] = 111.0
    assert cache.get_many([key]) == {}


def test_cache_purges_expired_entries_of_rotated_tokens() -> None:
    now = [0.0]
    cache = InMemoryDecisionCache(ttl_seconds=10, clock=lambda: now[0])

    for index in range(1000):
        cache.set_many({(token_digest(f"token-{index}"), "applications", "get", "1/1"): True})
        now[0] += 11

    assert cache.size() == 1


def test_cache_keys_do_not_hold_raw_token() -> None:
    assert token_digest("secret") != "secret"
    assert len(token_digest("secret")) == 64


def test_deny_all_enforcer() -> None:
    assert DenyAllEnforcer().enforce_in_batch("tkn", "applications", "get", ["1/1", "1/2"]) == {
        "1/1": False,
        "1/2": False,
    }


def test_unconfigured_collaborators_fail_closed(monkeypatch) -> None:
    monkeypatch.setattr(enforcer_module, "_shared_enforcer", None)
    monkeypatch.setattr(users_module, "_shared_user_service", None)

    assert isinstance(enforcer_module.get_enforcer(), DenyAllEnforcer)
    assert isinstance(users_module.get_user_service(), UnconfiguredUserService)
    with pytest.raises(UserResolutionError):
        users_module.get_user_service().get_logged_in_user("tkn")


def make_user_service(handler) -> RemoteUserService:
    client = httpx.Client(base_url="http://authorizer.test", transport=httpx.MockTransport(handler))
    return RemoteUserService(client)


def test_remote_user_service_resolves_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/users/me"
        assert request.headers["token"] == "tkn"
        return httpx.Response(200, json={"id": 17, "email": "dev@example.com"})

    assert make_user_service(handler).get_logged_in_user("tkn") == 17


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"error": "expired"}),
        httpx.Response(200, json={"id": 0}),
        httpx.Response(200, json={"id": "17"}),
        httpx.Response(200, json=[]),
    ],
)
def test_remote_user_service_rejects_unusable_answers(response: httpx.Response) -> None:
    with pytest.raises(UserResolutionError):
        make_user_service(lambda request: response).get_logged_in_user("tkn")


def test_remote_user_service_requires_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected without a token")

    with pytest.raises(UserResolutionError):
        make_user_service(handler).get_logged_in_user("")


def test_shutdown_closes_shared_http_clients(monkeypatch) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200))
    enforcer_client = httpx.Client(base_url="http://authorizer.test", transport=transport)
    users_client = httpx.Client(base_url="http://authorizer.test", transport=transport)
    monkeypatch.setattr(enforcer_module, "_shared_enforcer", HttpEnforcer(enforcer_client, cache=InMemoryDecisionCache()))
    monkeypatch.setattr(users_module, "_shared_user_service", RemoteUserService(users_client))

    with TestClient(create_app()):
        assert not enforcer_client.is_closed

    assert enforcer_client.is_closed
    assert users_client.is_closed
    assert enforcer_module._shared_enforcer is None
    assert users_module._shared_user_service is None
