from functools import lru_cache

from fastapi import Request

from pricing_portal.core.cache import QueryCache
from pricing_portal.core.config import settings
from pricing_portal.integrations.identity_provider import IdentityProvider, build_identity_provider


@lru_cache(maxsize=1)
def _identity_provider() -> IdentityProvider:
    return build_identity_provider()


def get_identity_provider() -> IdentityProvider:
    return _identity_provider()


def get_cache(request: Request) -> QueryCache:
    # normally created on startup; lazy for apps driven without lifespan events
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        cache = request.app.state.cache = QueryCache(settings.CACHE_STALE_SECONDS)
    return cache
