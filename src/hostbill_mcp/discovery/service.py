"""Cached discovery on top of a capability source."""

from __future__ import annotations

from hostbill_mcp.discovery.cache import METHODS_KEY, DiscoveryCache, details_key
from hostbill_mcp.discovery.source import CapabilitySource, MethodDetails
from hostbill_mcp.observability import get_logger

logger = get_logger(__name__)


class Discovery:
    """Reads method names and details through a session's DiscoveryCache.

    Method list failures propagate so the session can fall back. Detail
    failures degrade to ``MethodDetails.generic`` for that method only and
    are not cached, so the next lookup after the failure tries again.
    """

    def __init__(self, source: CapabilitySource, cache: DiscoveryCache) -> None:
        self._source = source
        self._cache = cache

    @property
    def cache(self) -> DiscoveryCache:
        return self._cache

    async def methods(self) -> list[str]:
        """Return discovered method names in source order, without duplicates."""

        async def fetch() -> list[str]:
            names = await self._source.list_methods()
            return list(dict.fromkeys(names))

        return await self._cache.get_or_fetch(METHODS_KEY, fetch)

    async def details(self, method: str) -> MethodDetails:
        """Return details for ``method``; never raises for source failures."""

        async def fetch() -> MethodDetails:
            payload = await self._source.get_method_details(method)
            return MethodDetails.from_payload(method, payload)

        try:
            return await self._cache.get_or_fetch(details_key(method), fetch)
        except Exception as e:
            logger.warning("discovery.details.degraded", method=method, error=str(e))
            return MethodDetails.generic(method)
