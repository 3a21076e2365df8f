"""Shared fixtures for pagekit tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any, TypeAlias

import pytest

from pagekit.core.pagination import (
    CollectionSchema,
    FieldDef,
    FieldType,
    PageResponse,
    PaginationEngine,
)
from pagekit.core.settings import PaginationSettings, clear_all_caches
from pagekit.infra.stores import InMemoryStore

BASE_TIME = datetime(2025, 1, 1, tzinfo=UTC)

Walker: TypeAlias = Callable[..., Awaitable[list[PageResponse[Any]]]]


# ──────────────────────────────────────────────────────────────
# Settings
# ──────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Drop cached settings so environment changes in one test never leak."""
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def settings() -> PaginationSettings:
    """Default settings without the result cache."""
    return PaginationSettings(result_cache_enabled=False)


# ──────────────────────────────────────────────────────────────
# Collection fixtures
# ──────────────────────────────────────────────────────────────


@pytest.fixture
def article_schema() -> CollectionSchema:
    return CollectionSchema(
        name="articles",
        fields=[
            FieldDef("id", FieldType.INTEGER),
            FieldDef("title", FieldType.STRING),
            FieldDef("status", FieldType.STRING),
            FieldDef("rating", FieldType.INTEGER, nullable=True),
            FieldDef("created_at", FieldType.DATETIME),
            FieldDef("updated_at", FieldType.DATETIME, nullable=True),
            FieldDef("body", FieldType.STRING, sortable=False, filterable=False),
        ],
        id_field="id",
    )


def make_article(i: int) -> dict[str, Any]:
    """Article ``i``: statuses rotate, every fifth rating is NULL, created_at pairs up."""
    return {
        "id": i,
        "title": f"Article {i:02d}",
        "status": ["active", "draft", "archived"][i % 3],
        "rating": None if i % 5 == 0 else i % 4,
        "created_at": BASE_TIME + timedelta(hours=i // 2),
        "updated_at": BASE_TIME + timedelta(hours=i),
        "body": f"Body of article {i}",
    }


@pytest.fixture
def articles() -> list[dict[str, Any]]:
    """25 articles with ids 1..25."""
    return [make_article(i) for i in range(1, 26)]


@pytest.fixture
def store(articles: list[dict[str, Any]]) -> InMemoryStore:
    return InMemoryStore(articles)


@pytest.fixture
def engine(article_schema: CollectionSchema, settings: PaginationSettings) -> PaginationEngine:
    return PaginationEngine(article_schema, settings)


# ──────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────


@pytest.fixture
def walk() -> Walker:
    """Follow ``next`` (or ``previous``) cursors until the last page.

    Usage:
        pages = await walk(engine, store, {"sort": ["title"], "mode": ["cursor"]})
    """

    async def _walk(
        engine: PaginationEngine,
        store: Any,
        params: dict[str, list[str]],
        *,
        backward: bool = False,
        max_pages: int = 100,
    ) -> list[PageResponse[Any]]:
        pages = [await engine.paginate(params, store)]
        base = {k: v for k, v in params.items() if k not in {"cursor", "mode", "page"}}
        while len(pages) < max_pages:
            meta = pages[-1].meta.cursor
            assert meta is not None, "expected cursor metadata"
            token = meta.previous if backward else meta.next
            if token is None:
                return pages
            pages.append(await engine.paginate({**base, "cursor": [token]}, store))
        pytest.fail("pagination did not terminate")

    return _walk
