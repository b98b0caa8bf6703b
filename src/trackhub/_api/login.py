"""Login service.

Service:
  - MobileLoginSP.login
"""

from __future__ import annotations

import logging
from typing import Any

from trackhub._constants import LOGIN_SERVICE, STATUS_SUCCESS
from trackhub._redact import redact_for_log
from trackhub.config import SankhyaConfig
from trackhub.exceptions import AuthenticationError
from trackhub.session import Session

_logger = logging.getLogger(__name__)


def build_login_request(config: SankhyaConfig) -> dict[str, Any]:
    """Build the ``requestBody`` for ``MobileLoginSP.login``."""
    return {
        "NOMUSU": {"$": config.username},
        "INTERNO": {"$": config.password},
        "KEEPCONNECTED": {"$": "S"},
    }


def parse_login_response(response: dict[str, Any]) -> Session:
    """Extract the session id from a login response envelope.

    Raises
    ------
    AuthenticationError
        If the store rejected the credentials or the response carries no
        ``jsessionid``.
    """
    _logger.debug("Login response parsed=%s", redact_for_log(response))
    status = str(response.get("status", ""))
    message = str(response.get("statusMessage") or "")

    if status != STATUS_SUCCESS:
        raise AuthenticationError(
            f"Login failed: status={status} message={message or 'invalid response'}",
            status=status,
            service=LOGIN_SERVICE,
        )

    body = response.get("responseBody")
    holder = body.get("jsessionid") if isinstance(body, dict) else None
    jsessionid = holder.get("$") if isinstance(holder, dict) else None
    if not isinstance(jsessionid, str) or not jsessionid.strip():
        raise AuthenticationError(
            "Login response missing jsessionid",
            status=status,
            service=LOGIN_SERVICE,
        )

    return Session(jsessionid=jsessionid)
