"""Sitrax last-position API client.

Endpoint:
  - POST /ultimaposicao
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from trackhub.config import SitraxConfig
from trackhub.connectors._http import request_json

_logger = logging.getLogger(__name__)

_PROVIDER = "Sitrax"


class SitraxConnector:
    def __init__(
        self,
        config: SitraxConfig,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 120.0,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_last_positions(self) -> list[dict[str, Any]]:
        """Return raw ``posicoes`` dicts (``[]`` when the response carries none)."""
        _logger.info("Fetching last positions from Sitrax...")
        data = await request_json(
            self._http,
            "POST",
            f"{self._config.base_url.rstrip('/')}/ultimaposicao",
            provider=_PROVIDER,
            timeout=self._timeout,
            json_body={
                "login": self._config.login,
                "cgruChave": self._config.cgru_chave,
                "cusuChave": self._config.cusu_chave,
                "pktId": 0,
            },
        )
        if isinstance(data, dict) and isinstance(data.get("posicoes"), list):
            positions = [p for p in data["posicoes"] if isinstance(p, dict)]
            _logger.info("Received %d positions from Sitrax.", len(positions))
            return positions

        _logger.warning("Sitrax response carries no valid data.")
        return []
