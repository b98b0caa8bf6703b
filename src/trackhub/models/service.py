"""service.sbr response envelope and query result models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ServiceResponse(BaseModel):
    """Decoded ``{status, statusMessage, responseBody}`` envelope."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    status: str = ""
    status_message: str = Field(default="", validation_alias=AliasChoices("statusMessage", "status_message"))
    response_body: Any = Field(default=None, validation_alias=AliasChoices("responseBody", "response_body"))

    @field_validator("status", "status_message", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return "" if value is None else str(value)


class QueryResult(BaseModel):
    """Column names plus positional rows of a DbExplorerSP query."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[str, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()
