"""Tells the storefront frontend to drop cached pages after admin changes."""

import httpx
from loguru import logger

from src.storefront.runtime.config.config_data import FrontendConfig


class RevalidationService:
    def __init__(
        self, config: FrontendConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._config.revalidate_url)

    async def revalidate(self, paths: list[str]) -> bool:
        """Best effort: failures are logged and reported as ``False``."""
        paths = [path for path in dict.fromkeys(paths) if path]
        if not paths:
            return False
        if not self.enabled:
            logger.debug("Revalidation hook not configured; skipping {}", paths)
            return False

        headers = {}
        if self._config.revalidate_secret:
            headers["x-revalidate-secret"] = self._config.revalidate_secret
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._config.revalidate_url, json={"paths": paths}, headers=headers
                )
                resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("Revalidation of {} failed: {}", paths, exc)
            return False

        logger.info("Revalidated {}", paths)
        return True
