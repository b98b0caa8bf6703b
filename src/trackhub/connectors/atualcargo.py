"""Atualcargo last-position API client.

Endpoints:
  - POST /api/auth/v1/login
  - GET  /api/positions/v1/last
"""

from __future__ import annotations

import logging
import time
from typing import Any

import aiohttp

from trackhub.config import AtualcargoConfig
from trackhub.connectors._http import request_json
from trackhub.exceptions import ProviderError

_logger = logging.getLogger(__name__)

_PROVIDER = "Atualcargo"

#: Tokens live five minutes; renew at 90% of that.
TOKEN_TTL: float = 5 * 60 * 0.9


class AtualcargoConnector:
    """Fetches the latest position of every vehicle and tracker."""

    def __init__(
        self,
        config: AtualcargoConfig,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 120.0,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._token: str | None = None
        self._token_expiry: float = 0.0

    def _url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}{path}"

    def _base_headers(self) -> dict[str, str]:
        return {"access-key": self._config.access_key}

    async def login(self) -> str:
        _logger.info("Authenticating against Atualcargo...")
        data = await request_json(
            self._http,
            "POST",
            self._url("/api/auth/v1/login"),
            provider=_PROVIDER,
            timeout=self._timeout,
            headers=self._base_headers(),
            json_body={"username": self._config.username, "password": self._config.password},
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise ProviderError("Token not received from Atualcargo", provider=_PROVIDER)

        self._token = token
        self._token_expiry = time.monotonic() + TOKEN_TTL
        _logger.info("Atualcargo authentication succeeded.")
        return token

    async def _valid_token(self) -> str:
        if self._token is None or time.monotonic() >= self._token_expiry:
            _logger.debug("Atualcargo token expired or missing. Renewing...")
            return await self.login()
        return self._token

    async def get_last_positions(self) -> list[dict[str, Any]]:
        """Return raw position dicts (``[]`` when the response carries none)."""
        token = await self._valid_token()
        _logger.info("Fetching last positions from Atualcargo...")
        data = await request_json(
            self._http,
            "GET",
            self._url("/api/positions/v1/last"),
            provider=_PROVIDER,
            timeout=self._timeout,
            headers={**self._base_headers(), "authorization": f"Bearer {token}"},
        )
        if isinstance(data, dict) and data.get("code") == 200 and isinstance(data.get("data"), list):
            positions = [p for p in data["data"] if isinstance(p, dict)]
            _logger.info("Received %d positions from Atualcargo.", len(positions))
            return positions

        _logger.warning("Atualcargo response carries no valid data.")
        return []
