"""Session state for authenticated record store calls."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """Authenticated service.sbr session.

    Parameters
    ----------
    jsessionid : str
        Session id returned by ``MobileLoginSP.login``; sent back as the
        ``JSESSIONID`` cookie.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session was
        created.  Defaults to *now* if not provided.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    jsessionid: str = Field(min_length=1)
    created_at: float = Field(default_factory=time.monotonic)

    @property
    def cookie(self) -> str:
        """Value for the ``Cookie`` request header."""
        return f"JSESSIONID={self.jsessionid}"

    @property
    def short_id(self) -> str:
        """Session id prefix safe to log."""
        return f"{self.jsessionid[:10]}..."

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.monotonic() - self.created_at
