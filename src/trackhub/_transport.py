"""HTTP transport for the service.sbr protocol."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from trackhub._constants import SERVICE_PATH, USER_AGENT
from trackhub.config import SankhyaConfig
from trackhub.exceptions import DecodeError, TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the gateway.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def post_service(
        self,
        service_name: str,
        request_body: Mapping[str, Any],
        *,
        cookie: str | None = None,
    ) -> dict[str, Any]:
        ...


def decode_payload(raw: bytes, *, encoding: str, service: str = "") -> dict[str, Any]:
    """Decode *raw* with *encoding* and parse it as a JSON object."""
    try:
        text = raw.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise DecodeError(f"Response from {service} is not valid {encoding}: {exc}", service=service) from exc

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Response from {service} is not JSON: {text[:200]}", service=service) from exc

    if not isinstance(parsed, dict):
        raise DecodeError(f"Response from {service} is not a JSON object", service=service)
    return parsed


class HttpTransport:
    """aiohttp transport posting ``{serviceName, requestBody}`` envelopes."""

    def __init__(self, config: SankhyaConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _url(self) -> str:
        return f"{self._config.base_url.rstrip('/')}{SERVICE_PATH}"

    async def post_service(
        self,
        service_name: str,
        request_body: Mapping[str, Any],
        *,
        cookie: str | None = None,
    ) -> dict[str, Any]:
        """POST one service call and return the decoded response envelope.

        The body is read as raw bytes and decoded with the configured
        encoding before JSON parsing; the store does not reliably declare
        its charset.
        """
        headers: dict[str, str] = {
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        if cookie:
            headers["cookie"] = cookie

        params = {"serviceName": service_name, "outputType": "json"}
        body = json.dumps({"serviceName": service_name, "requestBody": request_body})

        _logger.debug("POST %s serviceName=%s", self._url(), service_name)

        try:
            async with self._http.post(
                self._url(),
                params=params,
                data=body,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                raw = await resp.read()
                if resp.status != 200:
                    raise TransportError(
                        f"HTTP {resp.status} from {service_name}: {raw[:200]!r}",
                        status_code=resp.status,
                        service=service_name,
                    )
        except TransportError:
            raise
        except TimeoutError as exc:
            raise TransportError(
                f"Request to {service_name} timed out after {self._config.request_timeout}s",
                service=service_name,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(
                f"Request to {service_name} failed: {exc}",
                service=service_name,
            ) from exc

        return decode_payload(raw, encoding=self._config.response_encoding, service=service_name)
