from abc import ABC, abstractmethod
from typing import Any

import httpx
from cachetools import TTLCache
from fastapi import HTTPException
from loguru import logger


class JWKSCache(ABC):
    @abstractmethod
    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        """
        Get the cached JWKS for ``jwks_uri``.

        Returns:
            JWKS dictionary, empty when nothing is cached
        """
        raise NotImplementedError

    @abstractmethod
    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        """
        Cache the JWKS fetched from ``jwks_uri``.
        """
        raise NotImplementedError

    @abstractmethod
    def clear_jwks_cache(self) -> None:
        """Clear the JWKS cache."""
        raise NotImplementedError


class JWKSCacheInMemory(JWKSCache):
    _JWKS_CACHE: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=10, ttl=3600)

    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        return self._JWKS_CACHE.get(jwks_uri, {})

    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        self._JWKS_CACHE[jwks_uri] = jwks

    def clear_jwks_cache(self) -> None:
        self._JWKS_CACHE.clear()


class JwksService:
    """Fetches and caches the signing keys published by Clerk."""

    def __init__(self, cache: JWKSCache) -> None:
        self._cache = cache

    async def fetch_jwks(self, jwks_uri: str) -> dict[str, Any]:
        if not jwks_uri:
            raise HTTPException(status_code=401, detail="No JWKS URI configured")

        jwks = self._cache.get_jwks(jwks_uri)
        if jwks:
            return jwks

        try:
            async with httpx.AsyncClient(timeout=5) as client:
                resp = await client.get(jwks_uri)
                resp.raise_for_status()
                jwks = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Failed to fetch JWKS from {}: {}", jwks_uri, exc)
            raise HTTPException(
                status_code=500, detail=f"Failed to fetch JWKS: {exc}"
            ) from exc

        self._cache.set_jwks(jwks_uri, jwks)
        return jwks
