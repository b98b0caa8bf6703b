from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytest

from trackhub.config import SankhyaConfig, SyncConfig
from trackhub.gateway import SankhyaGateway
from trackhub.models.position import EntityClass, PositionRecord
from trackhub.store import PositionStore

# Captured before the `sleeps` fixture patches asyncio.sleep.
_real_sleep = asyncio.sleep

_LITERAL = re.compile(r"'((?:[^']|'')*)'")
_IN_LIST = re.compile(r"IN \(([^)]*)\)")


def _in_values(sql: str) -> list[str]:
    match = _IN_LIST.search(sql)
    if match is None:
        return []
    return [m.replace("''", "'") for m in _LITERAL.findall(match.group(1))]


@dataclass
class FakeSankhyaBackend:
    """In-memory service.sbr: registries, last history rows and saved batches."""

    vehicles: dict[str, int] = field(default_factory=dict)
    trackers: dict[str, int] = field(default_factory=dict)
    vehicle_history: dict[int, str] = field(default_factory=dict)
    tracker_history: dict[int, str] = field(default_factory=dict)
    login_should_fail: bool = False
    login_delay: float = 0.0
    # DatasetSP.save failures still to emit, per entity name.
    save_failures: dict[str, int] = field(default_factory=dict)
    # DbExplorerSP.executeQuery failures still to emit, per table.
    query_failures: dict[str, int] = field(default_factory=dict)
    query_delay: float = 0.0
    calls: dict[str, int] = field(default_factory=dict)
    sql_log: list[str] = field(default_factory=list)
    completed_queries: list[str] = field(default_factory=list)
    saved: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    cookies_seen: list[str | None] = field(default_factory=list)
    _valid_sessions: set[str] = field(default_factory=set)
    _next_session: int = 0

    def expire_sessions(self) -> None:
        self._valid_sessions.clear()

    def _record_call(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    def queries_on(self, table: str) -> int:
        return sum(1 for sql in self.sql_log if f"FROM {table}" in sql)

    def completed_on(self, table: str) -> int:
        return sum(1 for sql in self.completed_queries if f"FROM {table}" in sql)

    async def _execute(self, sql: str) -> dict[str, Any]:
        self.sql_log.append(sql)
        for table, remaining in self.query_failures.items():
            if remaining and f"FROM {table}" in sql:
                self.query_failures[table] = remaining - 1
                return {"status": "0", "statusMessage": f"Erro ao consultar {table}"}
        if self.query_delay:
            await _real_sleep(self.query_delay)
        response = self._run_query(sql)
        self.completed_queries.append(sql)
        return response

    def _query(self, columns: list[str], rows: list[list[Any]]) -> dict[str, Any]:
        return {
            "status": "1",
            "responseBody": {"fieldsMetadata": [{"name": c} for c in columns], "rows": rows},
        }

    def _run_query(self, sql: str) -> dict[str, Any]:
        if "FROM TGFVEI" in sql:
            rows = [[self.vehicles[p], p] for p in _in_values(sql) if p in self.vehicles]
            return self._query(["CODVEICULO", "PLACA"], rows)
        if "FROM AD_CADISCA" in sql:
            rows = [[self.trackers[n], n] for n in _in_values(sql) if n in self.trackers]
            return self._query(["SEQUENCIA", "NUMISCA"], rows)
        if "FROM AD_LOCATCAR" in sql:
            rows = [[k, v, "PLATE"] for k, v in self.vehicle_history.items()]
            return self._query(["CODVEICULO", "DATHOR", "PLACA"], rows)
        if "FROM AD_LOCATISC" in sql:
            rows = [[k, v, "ISCA"] for k, v in self.tracker_history.items()]
            return self._query(["SEQUENCIA", "DATHOR", "ISCA"], rows)
        raise AssertionError(f"Unexpected SQL in fake backend: {sql}")

    def _save(self, body: Mapping[str, Any]) -> dict[str, Any]:
        entity = body["entityName"]
        remaining = self.save_failures.get(entity, 0)
        if remaining:
            self.save_failures[entity] = remaining - 1
            return {"status": "0", "statusMessage": f"Falha ao salvar {entity}"}

        history = self.vehicle_history if entity == "AD_LOCATCAR" else self.tracker_history
        for record in body["records"]:
            key = int(next(iter(record["foreignKey"].values())))
            inserted = datetime.strptime(record["values"]["3"], "%d/%m/%Y %H:%M:%S")
            history[key] = inserted.strftime("%d%m%Y %H:%M:%S")
        self.saved.setdefault(entity, []).extend(body["records"])
        return {"status": "1", "responseBody": {}}

    async def post_service(
        self,
        service_name: str,
        request_body: Mapping[str, Any],
        *,
        cookie: str | None = None,
    ) -> dict[str, Any]:
        self._record_call(service_name)

        if service_name == "MobileLoginSP.login":
            if self.login_delay:
                await _real_sleep(self.login_delay)
            if self.login_should_fail:
                return {"status": "0", "statusMessage": "Usuário/senha inválido."}
            self._next_session += 1
            session_id = f"SESSION{self._next_session:04d}XYZ"
            self._valid_sessions.add(session_id)
            return {"status": "1", "responseBody": {"jsessionid": {"$": session_id}}}

        self.cookies_seen.append(cookie)
        session_id = (cookie or "").removeprefix("JSESSIONID=")
        if session_id not in self._valid_sessions:
            return {"status": "3", "statusMessage": "Não autorizado."}

        if service_name == "DbExplorerSP.executeQuery":
            return await self._execute(request_body["sql"])
        if service_name == "DatasetSP.save":
            return self._save(request_body)
        raise AssertionError(f"Unexpected service in fake backend: {service_name}")


def make_position(
    entity_class: EntityClass,
    identifier: str,
    observed_at: datetime,
    *,
    insert_identifier: str | None = None,
    latitude: float = -23.55,
    longitude: float = -46.63,
    speed: float = 42.0,
    location: str | None = "Av. Paulista, São Paulo - SP",
) -> PositionRecord:
    return PositionRecord(
        entity_class=entity_class,
        external_identifier=identifier,
        insert_identifier=insert_identifier or identifier,
        observed_at=observed_at,
        latitude=latitude,
        longitude=longitude,
        speed=speed,
        location=location,
    )


@pytest.fixture
def sankhya_config() -> SankhyaConfig:
    return SankhyaConfig(base_url="https://erp.example.com/mge", username="integracao", password="secret")


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(max_attempts=3, retry_delay=60.0)


@pytest.fixture
def backend() -> FakeSankhyaBackend:
    return FakeSankhyaBackend()


@pytest.fixture
def gateway(sankhya_config: SankhyaConfig, backend: FakeSankhyaBackend) -> SankhyaGateway:
    return SankhyaGateway(sankhya_config, transport=backend)


@pytest.fixture
def store(gateway: SankhyaGateway) -> PositionStore:
    return PositionStore(gateway)


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record retry waits of the sync processor instead of sleeping."""
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("trackhub.processor.asyncio.sleep", fake_sleep)
    return delays
