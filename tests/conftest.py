# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest

from viewbridge.schema import clear_schema_cache


@pytest.fixture(autouse=True)
def fresh_schema_cache() -> Iterator[None]:
    clear_schema_cache()
    yield
    clear_schema_cache()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def httpx_async_client():
    def factory(app) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")

    return factory
