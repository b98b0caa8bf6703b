"""Shared JSON request helper for provider connectors."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from trackhub._constants import USER_AGENT
from trackhub.exceptions import ProviderError

_logger = logging.getLogger(__name__)


async def request_json(
    http: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    provider: str,
    timeout: aiohttp.ClientTimeout,
    headers: dict[str, str] | None = None,
    json_body: Any = None,
) -> Any:
    """Send one request and return the parsed JSON body.

    Network errors, timeouts, non-200 statuses and non-JSON bodies all
    raise :class:`ProviderError`.
    """
    merged_headers = {"content-type": "application/json", "user-agent": USER_AGENT}
    if headers:
        merged_headers.update(headers)

    _logger.debug("%s %s", method, url)
    try:
        async with http.request(method, url, json=json_body, headers=merged_headers, timeout=timeout) as resp:
            text = await resp.text()
            if resp.status != 200:
                raise ProviderError(
                    f"HTTP {resp.status} from {provider}: {text[:200]}",
                    provider=provider,
                    status_code=resp.status,
                )
            try:
                return await resp.json(content_type=None)
            except ValueError as exc:
                raise ProviderError(f"Invalid JSON from {provider}: {text[:200]}", provider=provider) from exc
    except ProviderError:
        raise
    except TimeoutError as exc:
        raise ProviderError(f"Request to {provider} timed out", provider=provider) from exc
    except aiohttp.ClientError as exc:
        raise ProviderError(f"Request to {provider} failed: {exc}", provider=provider) from exc
