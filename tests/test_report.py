"""Tests for report composition."""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

from machine_state import identity, report
from machine_state.models import MemoryStats, ProcessStats, StorageStats
from machine_state.probes.base import ProcessUsageError
from machine_state.report import TelemetryReportBuilder


class StubOs:
    async def get_os_name(self) -> str:
        return "Debian 12"


class StubCpu:
    def __init__(self, started: list[str]) -> None:
        self._started = started

    async def average_cpu_usage(self) -> float:
        self._started.append("cpu")
        await asyncio.sleep(0)
        return 42.5


class StubMemory:
    def __init__(self, started: list[str]) -> None:
        self._started = started

    async def memory_usage(self) -> MemoryStats:
        self._started.append("memory")
        await asyncio.sleep(0)
        return MemoryStats(total_mb=2048.0, used_mb=1024.0)


class StubStorage:
    def __init__(self, started: list[str]) -> None:
        self._started = started

    async def storage_usage(self) -> StorageStats:
        self._started.append("storage")
        await asyncio.sleep(0)
        return StorageStats.from_totals(1000, 250)


class StubProcess:
    def __init__(self, started: list[str], fail: bool = False) -> None:
        self._started = started
        self._fail = fail

    async def process_usage(self, pid=None) -> ProcessStats:
        self._started.append("process")
        await asyncio.sleep(0)
        if self._fail:
            raise ProcessUsageError("process vanished")
        return ProcessStats(cpu_percent=1.5, memory_mb=30.0)


def _builder(started: list[str], fail_process: bool = False) -> TelemetryReportBuilder:
    return TelemetryReportBuilder(
        os_identifier=StubOs(),
        cpu_sampler=StubCpu(started),
        memory_probe=StubMemory(started),
        storage_probe=StubStorage(started),
        process_probe=StubProcess(started, fail_process),
    )


@pytest.mark.asyncio
async def test_resource_usage_info_assembles_all_probes() -> None:
    started: list[str] = []

    info = await _builder(started).resource_usage_info()

    assert sorted(started) == ["cpu", "memory", "process", "storage"]
    assert info.machine.cpu == 42.5
    assert info.machine.memory == MemoryStats(total_mb=2048.0, used_mb=1024.0)
    assert info.machine.storage.used_percentage == 25.0
    assert info.process == ProcessStats(cpu_percent=1.5, memory_mb=30.0)
    assert info.to_dict() == {
        "machine": {
            "storage": {"total": 1000, "used": 250, "usedPercentage": 25.0, "unit": "B"},
            "memory": {"totalMb": 2048.0, "usedMb": 1024.0},
            "cpu": 42.5,
        },
        "process": {"cpuPercent": 1.5, "memoryMb": 30.0},
    }


@pytest.mark.asyncio
async def test_process_failure_fails_the_report() -> None:
    with pytest.raises(ProcessUsageError):
        await _builder([], fail_process=True).resource_usage_info()


@pytest.mark.asyncio
async def test_general_info_is_stable(monkeypatch: pytest.MonkeyPatch) -> None:
    identity.reset_machine_id()
    monkeypatch.setattr(identity, "first_mac_address", lambda: "A1:B2:C3:D4:E5:F6")
    monkeypatch.setattr(report, "cpu_model", lambda platform_tag=None, timeout=10.0: "Test CPU")
    monkeypatch.setattr(report, "cpu_count", lambda: 8)
    builder = _builder([])

    first = await builder.general_info()
    second = await builder.general_info()
    identity.reset_machine_id()

    assert first.machine_id == second.machine_id == "2n9c"
    assert first.cpu_model == "Test CPU"
    assert first.cpu_count == 8
    assert first.os == "Debian 12"
    assert first.platform == sys.platform
    assert first.to_dict()["machineId"] == "2n9c"
