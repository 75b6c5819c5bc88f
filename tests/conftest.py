from __future__ import annotations

import pytest

from helpers import Handler, make_client, offline
from versioncheck.core.cache import MemoryCache
from versioncheck.core.http import FetchContext


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def context_factory(cache):
    def factory(handler: Handler = offline, **kwargs) -> FetchContext:
        return FetchContext(cache=cache, client=make_client(handler), **kwargs)

    return factory
