"""HTTP-level tests that need no database: health, auth guard, error mapping, rate limiting."""
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from skillswap.api.middleware.error_handler import register_exception_handlers, status_for
from skillswap.api.middleware.rate_limit import SlidingWindowLimiter
from skillswap.domain.errors import (
    InsufficientAnswers,
    InvalidInput,
    InvalidTransition,
    NotFound,
    Unauthorized,
)
from skillswap.main import app
from skillswap.services.llm.base import LLMServiceError


@pytest.fixture
def client():
    # No context manager: lifespan (DB init, sweeper) is not started
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("path", ["/api/swaps", "/api/matches", "/api/skills", "/api/badges"])
def test_protected_routes_require_token(client, path):
    response = client.get(path)
    assert response.status_code == 401
    response = client.get(path, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.parametrize(
    "error,code",
    [
        (InvalidInput("x"), 400),
        (Unauthorized("x"), 403),
        (NotFound("x"), 404),
        (InvalidTransition("x"), 409),
        (InsufficientAnswers("x"), 422),
    ],
)
def test_status_for_domain_errors(error, code):
    assert status_for(error) == code


def _app_raising(exc):
    test_app = FastAPI()
    register_exception_handlers(test_app)

    @test_app.get("/boom")
    async def boom(request: Request):
        raise exc

    return TestClient(test_app)


def test_domain_error_body_carries_code():
    response = _app_raising(InvalidTransition("Cannot accept a request that is declined")).get("/boom")
    assert response.status_code == 409
    assert response.json() == {
        "detail": {"code": "invalid_transition", "message": "Cannot accept a request that is declined"}
    }


def test_llm_failure_is_service_unavailable():
    response = _app_raising(LLMServiceError("timeout")).get("/boom")
    assert response.status_code == 503


def test_sliding_window_limiter():
    limiter = SlidingWindowLimiter("test")
    assert limiter.hit("k", limit=2, window_seconds=60)
    assert limiter.hit("k", limit=2, window_seconds=60)
    assert not limiter.hit("k", limit=2, window_seconds=60)
    assert limiter.hit("other", limit=2, window_seconds=60)
    limiter.reset()
    assert limiter.hit("k", limit=2, window_seconds=60)
