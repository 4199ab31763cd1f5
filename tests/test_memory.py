"""Tests for the memory usage probe."""
from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

from machine_state.models import MemoryStats
from machine_state.probes.memory import (
    MEMINFO_CMD,
    MemoryUsageProbe,
    parse_meminfo,
    parse_sysctl_memsize,
    parse_vm_stat,
)

MB = 1024 * 1024

MEMINFO = """MemTotal:       16303480 kB
MemFree:         1051788 kB
MemAvailable:    9093244 kB
Buffers:          452808 kB
Cached:          7336800 kB
"""

VM_STAT = """Mach Virtual Memory Statistics: (page size of 4096 bytes)
Pages free:                               1000.
Pages active:                           262144.
Pages inactive:                         131072.
Pages speculative:                        2000.
Pages wired down:                       131072.
Anonymous pages:                          5000.
Pages occupied by compressor:              100.
"""


@pytest.fixture()
def os_memory(monkeypatch: pytest.MonkeyPatch):
    memory = SimpleNamespace(total=2048 * MB, free=512 * MB)
    monkeypatch.setattr(psutil, "virtual_memory", lambda: memory)
    return memory


def test_parse_meminfo() -> None:
    figures = parse_meminfo(MEMINFO)

    assert figures is not None
    assert figures.total_kb == 16303480
    assert figures.effective_free_kb == 1051788 + 452808 + 7336800


def test_parse_meminfo_needs_five_numbers() -> None:
    assert parse_meminfo("MemTotal: 1024 kB\nMemFree: 512 kB\n") is None


def test_parse_sysctl_memsize() -> None:
    assert parse_sysctl_memsize("hw.memsize: 17179869184\n") == 17179869184
    assert parse_sysctl_memsize("hw.memsize:") is None


def test_parse_vm_stat_uses_announced_page_size() -> None:
    stats = parse_vm_stat(VM_STAT.replace("4096", "16384"))

    assert stats["active"] == 262144 * 16384
    assert stats["compressed"] == 100 * 16384
    assert "free" not in stats


@pytest.mark.asyncio
async def test_meminfo_path(fake_commands, os_memory) -> None:
    fake_commands.outputs[MEMINFO_CMD] = MEMINFO

    stats = await MemoryUsageProbe(platform="linux").memory_usage()

    assert stats == MemoryStats(total_mb=15921.37, used_mb=7287.19)


@pytest.mark.asyncio
async def test_short_meminfo_falls_back_to_os_totals(fake_commands, os_memory) -> None:
    fake_commands.outputs[MEMINFO_CMD] = "MemTotal: 1024 kB\nMemFree: 512 kB\n"

    stats = await MemoryUsageProbe(platform="linux").memory_usage()

    assert stats == MemoryStats(total_mb=2048.0, used_mb=1536.0)


@pytest.mark.asyncio
async def test_darwin_uses_vm_stat(fake_commands, os_memory) -> None:
    fake_commands.outputs["sysctl hw.memsize"] = "hw.memsize: 17179869184\n"
    fake_commands.outputs["vm_stat"] = VM_STAT

    stats = await MemoryUsageProbe(platform="darwin").memory_usage()

    assert stats == MemoryStats(total_mb=16384.0, used_mb=2048.0)


@pytest.mark.asyncio
async def test_darwin_without_sysctl_keeps_os_totals(fake_commands, os_memory) -> None:
    stats = await MemoryUsageProbe(platform="darwin").memory_usage()

    assert stats == MemoryStats(total_mb=2048.0, used_mb=1536.0)


@pytest.mark.asyncio
async def test_unexpected_failure_reports_zero(fake_commands, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom():
        raise RuntimeError("psutil unavailable")

    monkeypatch.setattr(psutil, "virtual_memory", boom)

    stats = await MemoryUsageProbe(platform="linux").memory_usage()

    assert stats == MemoryStats(total_mb=0.0, used_mb=0.0)


@pytest.mark.asyncio
async def test_figures_are_rounded_to_two_decimals(fake_commands, monkeypatch: pytest.MonkeyPatch) -> None:
    memory = SimpleNamespace(total=1_000_003_333, free=123_456_789)
    monkeypatch.setattr(psutil, "virtual_memory", lambda: memory)

    stats = await MemoryUsageProbe(platform="win32").memory_usage()

    assert stats.total_mb >= 0 and stats.used_mb >= 0
    assert stats.total_mb == round(stats.total_mb, 2)
    assert stats.used_mb == round(stats.used_mb, 2)


@pytest.mark.asyncio
async def test_exact_halves_round_up(fake_commands, os_memory) -> None:
    # 1152 kB is exactly 1.125 MB
    fake_commands.outputs[MEMINFO_CMD] = (
        "MemTotal: 1152 kB\nMemFree: 0 kB\nMemAvailable: 0 kB\nBuffers: 0 kB\nCached: 0 kB\n"
    )

    stats = await MemoryUsageProbe(platform="linux").memory_usage()

    assert stats == MemoryStats(total_mb=1.13, used_mb=1.13)
