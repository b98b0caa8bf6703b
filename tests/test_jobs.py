from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import aiohttp
import pytest

from trackhub.cli import build_jobs
from trackhub.config import AtualcargoConfig, HubConfig, JobSettings, SankhyaConfig, SitraxConfig, SyncConfig
from trackhub.exceptions import ProviderError
from trackhub.ingestion import map_atualcargo_positions
from trackhub.jobs import ProviderJob
from trackhub.processor import SyncProcessor
from trackhub.scheduler import JobScheduler
from trackhub.store import PositionStore

from conftest import FakeSankhyaBackend


def _feed(*items: dict[str, Any]):
    async def fetch() -> list[dict[str, Any]]:
        return list(items)

    return fetch


def _position(plate: str) -> dict[str, Any]:
    return {
        "plate": plate,
        "date": "2024-05-01 10:05:00",
        "latlong": {"latitude": -23.55, "longitude": -46.63},
        "speed": 12,
        "proximity": "Centro",
    }


def _job(store: PositionStore, sync_config: SyncConfig, fetch, *, name: str = "Atualcargo") -> ProviderJob:
    return ProviderJob(
        name=name,
        fetch=fetch,
        mapper=map_atualcargo_positions,
        processor=SyncProcessor(store, sync_config, source=name),
        interval=0.01,
    )


# ------------------------------------------------------------------
# ProviderJob
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_job_maps_and_syncs_feed(
    store: PositionStore,
    sync_config: SyncConfig,
    backend: FakeSankhyaBackend,
) -> None:
    backend.vehicles = {"ABC1D23": 101}
    backend.trackers = {"0189": 7}
    job = _job(store, sync_config, _feed(_position("ABC1D23"), _position("ISCA0189")))

    result = await job.run()

    assert result is not None and result.success
    assert (result.vehicles_written, result.trackers_written) == (1, 1)
    assert backend.saved["AD_LOCATISC"][0]["values"]["4"] == "ISCA0189"


@pytest.mark.asyncio
async def test_provider_failure_aborts_job_without_touching_store(
    store: PositionStore,
    sync_config: SyncConfig,
    backend: FakeSankhyaBackend,
) -> None:
    async def failing_fetch() -> list[dict[str, Any]]:
        raise ProviderError("HTTP 503 from Atualcargo", provider="Atualcargo", status_code=503)

    assert await _job(store, sync_config, failing_fetch).run() is None
    assert backend.calls == {}


@pytest.mark.asyncio
async def test_empty_feed_finishes_without_sync(
    store: PositionStore,
    sync_config: SyncConfig,
    backend: FakeSankhyaBackend,
) -> None:
    assert await _job(store, sync_config, _feed()).run() is None
    assert backend.calls == {}


# ------------------------------------------------------------------
# JobScheduler
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_run_once_isolates_failing_job(
    store: PositionStore,
    sync_config: SyncConfig,
    backend: FakeSankhyaBackend,
) -> None:
    backend.vehicles = {"ABC1D23": 101}

    async def broken_fetch() -> list[dict[str, Any]]:
        raise RuntimeError("boom")

    scheduler = JobScheduler(
        [
            _job(store, sync_config, broken_fetch, name="Broken"),
            _job(store, sync_config, _feed(_position("ABC1D23"))),
        ]
    )

    await scheduler.run_once()

    assert len(backend.saved["AD_LOCATCAR"]) == 1


@pytest.mark.asyncio
async def test_run_forever_loops_until_stopped(store: PositionStore, sync_config: SyncConfig) -> None:
    runs = 0

    async def counting_fetch() -> list[dict[str, Any]]:
        nonlocal runs
        runs += 1
        return []

    scheduler = JobScheduler([_job(store, sync_config, counting_fetch)])
    task = asyncio.create_task(scheduler.run_forever())
    while runs < 3:
        await asyncio.sleep(0.01)
    scheduler.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert runs >= 3


@pytest.mark.asyncio
async def test_next_run_waits_full_interval_after_cycle_ends(store: PositionStore, sync_config: SyncConfig) -> None:
    loop = asyncio.get_running_loop()
    starts: list[float] = []
    ends: list[float] = []

    async def slow_fetch() -> list[dict[str, Any]]:
        starts.append(loop.time())
        await asyncio.sleep(0.05)
        ends.append(loop.time())
        return []

    job = ProviderJob(
        name="Atualcargo",
        fetch=slow_fetch,
        mapper=map_atualcargo_positions,
        processor=SyncProcessor(store, sync_config, source="Atualcargo"),
        interval=0.05,
    )
    scheduler = JobScheduler([job])
    task = asyncio.create_task(scheduler.run_forever())
    while len(starts) < 2:
        await asyncio.sleep(0.01)
    scheduler.stop()
    await asyncio.wait_for(task, timeout=1.0)

    # A start-anchored schedule would begin run 2 as run 1 finishes.
    assert starts[1] - ends[0] >= 0.04
    assert starts[1] - starts[0] >= 0.09


@pytest.mark.asyncio
async def test_run_forever_without_jobs_returns() -> None:
    await asyncio.wait_for(JobScheduler([]).run_forever(), timeout=1.0)


# ------------------------------------------------------------------
# build_jobs
# ------------------------------------------------------------------


def _hub_config(**jobs: JobSettings) -> HubConfig:
    return HubConfig(
        sankhya=SankhyaConfig(base_url="https://erp.example.com/mge", username="u", password="p"),
        atualcargo=AtualcargoConfig(
            base_url="https://api.atualcargo.example", access_key="k", username="u", password="p"
        ),
        sitrax=SitraxConfig(base_url="https://sitrax.example", login="l", cgru_chave="g", cusu_chave="c"),
        jobs=dict(jobs),
    )


@pytest.mark.asyncio
async def test_build_jobs_gives_each_provider_its_own_processor(store: PositionStore) -> None:
    async with aiohttp.ClientSession() as http:
        jobs = build_jobs(_hub_config(atualcargo=JobSettings(interval=60.0)), store, http)

    assert [job.name for job in jobs] == ["Atualcargo", "Sitrax"]
    assert jobs[0].interval == 60.0
    assert jobs[1].interval == 300.0
    assert jobs[0].processor is not jobs[1].processor


@pytest.mark.asyncio
async def test_build_jobs_honours_disabled_and_only(store: PositionStore) -> None:
    async with aiohttp.ClientSession() as http:
        disabled = build_jobs(_hub_config(sitrax=JobSettings(enabled=False)), store, http)
        only = build_jobs(_hub_config(), store, http, only=["sitrax"])

    assert [job.name for job in disabled] == ["Atualcargo"]
    assert [job.name for job in only] == ["Sitrax"]
