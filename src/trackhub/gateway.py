"""Session-aware async gateway to the Sankhya record store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from trackhub._api.login import build_login_request, parse_login_response
from trackhub._constants import LOGIN_SERVICE, STATUS_SUCCESS, STATUS_UNAUTHORIZED
from trackhub._redact import redact_for_log
from trackhub._transport import HttpTransport, Transport
from trackhub.config import SankhyaConfig
from trackhub.exceptions import RemoteServiceError, SessionExpiredError, TrackHubError
from trackhub.models.service import ServiceResponse
from trackhub.session import Session

_logger = logging.getLogger(__name__)


class SankhyaGateway:
    """Performs service.sbr calls under a valid session.

    One gateway (and therefore one session token) is meant to be shared by
    every sync processor in the process.  Logins are single-flight: callers
    that need a session while a login is in progress await that same login.

    Usage::

        async with SankhyaGateway(config) as gateway:
            body = await gateway.request("DbExplorerSP.executeQuery", {...})
    """

    def __init__(
        self,
        config: SankhyaConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._own_transport = transport is None
        self._session: Session | None = None
        self._login_task: asyncio.Future[Session] | None = None
        self._login_count = 0

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SankhyaGateway:
        if self._own_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._own_transport:
            self._transport = None
        self._session = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        """Current session, if any."""
        return self._session

    @property
    def login_count(self) -> int:
        """Number of login round-trips issued so far."""
        return self._login_count

    async def authenticate(self) -> Session:
        """Log in and store the new session.

        If a login is already in flight, await it instead of issuing a
        second one.  A failed login clears any stale session and the error
        is raised to every waiter.
        """
        task = self._login_task
        if task is None:
            task = asyncio.ensure_future(self._perform_login())
            self._login_task = task
            task.add_done_callback(self._on_login_done)
        else:
            _logger.debug("Waiting for in-flight login...")
        return await asyncio.shield(task)

    def _on_login_done(self, task: asyncio.Future[Session]) -> None:
        if self._login_task is task:
            self._login_task = None
        # Mark the exception retrieved even if every waiter was cancelled.
        if not task.cancelled():
            task.exception()

    async def _perform_login(self) -> Session:
        _logger.info("Authenticating against Sankhya (new session)...")
        transport = self._require_transport()
        self._login_count += 1
        try:
            response = await transport.post_service(LOGIN_SERVICE, build_login_request(self._config))
            session = parse_login_response(response)
        except Exception as exc:
            self._session = None
            _logger.error("Sankhya authentication failed: %s", exc)
            raise

        self._session = session
        _logger.info("Sankhya authentication succeeded. JSessionID: %s", session.short_id)
        return session

    async def ensure_session(self) -> Session:
        """Return the current session, logging in if there is none."""
        if self._session is not None:
            return self._session
        return await self.authenticate()

    def invalidate_session(self, stale: Session | None = None) -> None:
        """Drop the session so the next call re-authenticates.

        When *stale* is given, only drop the current session if it is that
        one; a session refreshed concurrently by another caller is kept.
        """
        if stale is None or self._session is stale:
            self._session = None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TrackHubError("Gateway not initialized. Use 'async with SankhyaGateway(...) as gateway:'")
        return self._transport

    async def _call_service(
        self,
        service_name: str,
        request_body: Mapping[str, Any],
        session: Session,
    ) -> Any:
        transport = self._require_transport()
        raw = await transport.post_service(service_name, request_body, cookie=session.cookie)
        response = ServiceResponse.model_validate(raw)

        if response.status == STATUS_SUCCESS:
            return response.response_body

        message = response.status_message or "unknown error"
        if response.status == STATUS_UNAUTHORIZED:
            raise SessionExpiredError(
                f"{service_name} rejected session: {message}",
                status=response.status,
                service=service_name,
            )
        _logger.debug("%s failed response=%s", service_name, redact_for_log(raw))
        raise RemoteServiceError(
            f"{service_name} failed: status={response.status} message={message}",
            status=response.status,
            service=service_name,
        )

    async def request(self, service_name: str, request_body: Mapping[str, Any]) -> Any:
        """Call *service_name* and return its ``responseBody``.

        On a rejected session the gateway logs in again and repeats the call
        exactly once; a second rejection is raised as
        :class:`SessionExpiredError`.
        """
        try:
            session = await self.ensure_session()
            try:
                return await self._call_service(service_name, request_body, session)
            except SessionExpiredError:
                _logger.warning(
                    "[Sankhya] JSessionID %s expired or invalid after %.0fs. Re-authenticating...",
                    session.short_id,
                    session.age,
                )
                self.invalidate_session(session)
                session = await self.ensure_session()
                _logger.debug("Retrying %s with new session...", service_name)
                result = await self._call_service(service_name, request_body, session)
                _logger.debug("%s succeeded after re-login.", service_name)
                return result
        except TrackHubError as exc:
            _logger.error("Sankhya service call %s failed: %s", service_name, exc)
            raise
