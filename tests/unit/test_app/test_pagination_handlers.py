"""Tests for pagination exception handlers and the query-params dependency."""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from fastapi import FastAPI, Request

from pagekit.app.exception_handlers import PROBLEM_MEDIA_TYPE, configure_exception_handlers
from pagekit.core.dependencies.pagination import QueryParamsDep
from pagekit.core.pagination.store import FetchResult, StoreQuery

pytestmark = pytest.mark.unit


class BrokenStore:
    """Store whose backend is unreachable."""

    async def fetch(self, query: StoreQuery) -> FetchResult:
        raise ConnectionError("database is down")


@pytest.fixture
def app(engine, store) -> FastAPI:
    app = FastAPI()
    configure_exception_handlers(app)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID")
        return await call_next(request)

    @app.get("/articles")
    async def list_articles(params: QueryParamsDep):
        return await engine.paginate(params, store)

    @app.get("/broken")
    async def list_broken(params: QueryParamsDep):
        return await engine.paginate(params, BrokenStore())

    @app.get("/echo")
    async def echo(params: QueryParamsDep) -> dict[str, Any]:
        return params

    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestQueryParamsDependency:
    async def test_repeated_keys_keep_every_value(self, client):
        response = await client.get("/echo?sort=title&sort=id,desc&status[in]=a,b")

        assert response.json() == {"sort": ["title", "id,desc"], "status[in]": ["a,b"]}


class TestSuccessfulPage:
    async def test_cursor_page_uses_camel_case_meta(self, client):
        response = await client.get("/articles?status=active&size=3&mode=cursor")

        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body["data"]] == [1, 4, 7]
        assert body["meta"]["cursor"]["hasNext"] is True
        assert body["meta"]["cursor"]["hasPrevious"] is False
        assert body["meta"]["pagination"] is None
        assert body["meta"]["filters"] == {"status": {"eq": "active"}}

    async def test_next_cursor_round_trips_over_http(self, client):
        first = (await client.get("/articles?status=active&size=3&mode=cursor")).json()

        second = await client.get(
            "/articles", params={"status": "active", "size": "3", "cursor": first["meta"]["cursor"]["next"]}
        )

        assert [item["id"] for item in second.json()["data"]] == [10, 13, 16]

    async def test_offset_page(self, client):
        response = await client.get("/articles?page=2&size=10")

        pagination = response.json()["meta"]["pagination"]
        assert pagination["totalElements"] == 25
        assert pagination["totalPages"] == 3
        assert pagination["hasPrevious"] is True


class TestProblemResponses:
    async def test_client_error_is_problem_json(self, client):
        response = await client.get("/articles?title[like]=x")

        assert response.status_code == 400
        assert response.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
        body = response.json()
        assert body["status"] == 400
        assert body["type"] == "unsupported-operator"
        assert body["instance"] == "/articles"
        assert body["errors"][0]["code"] == "UNSUPPORTED_OPERATOR"

    async def test_garbage_cursor(self, client):
        response = await client.get("/articles?cursor=not-a-cursor")

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "INVALID_CURSOR"
        assert response.json()["errors"][0]["field"] == "cursor"

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/articles?size=abc", headers={"X-Request-ID": "req-42"})

        assert response.status_code == 400
        assert response.json()["request_id"] == "req-42"

    async def test_store_failure_is_retryable(self, client):
        response = await client.get("/broken")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
        body = response.json()
        assert body["status"] == 503
        assert "database is down" not in response.text

    async def test_long_filter_value_is_a_bad_request(self, client):
        response = await client.get("/articles", params={"rating[gte]": "9" * 50 + "x" * 3000})

        assert response.status_code == 400
        body = response.json()
        assert body["errors"][0]["code"] == "INVALID_FILTER_VALUE"
        assert len(body["detail"]) <= 500
