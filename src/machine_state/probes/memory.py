"""Memory usage probe.

Linux hosts are read through ``/proc/meminfo``. Everywhere else, or when that
read fails, the OS-reported totals from psutil are used; on macOS those are
replaced by figures derived from ``sysctl hw.memsize`` and ``vm_stat``.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import psutil

from ..models import MemoryStats, round_half_up
from .base import StrategyTable
from .commands import DEFAULT_TIMEOUT_SEC, run_command

LOGGER = logging.getLogger(__name__)

MEMINFO_CMD = "head -5 /proc/meminfo"
SYSCTL_MEMSIZE_CMD = "sysctl hw.memsize"
VM_STAT_CMD = "vm_stat"

DARWIN_PAGE_SIZE = 4096
KB = 1024
MB = 1024 * 1024

VM_STAT_CATEGORIES = {
    "Anonymous pages": "app",
    "Pages wired down": "wired",
    "Pages active": "active",
    "Pages inactive": "inactive",
    "Pages occupied by compressor": "compressed",
}

_INTEGER = re.compile(r"\d+")
_PAGE_SIZE = re.compile(r"page size of (\d+) bytes")


@dataclass(frozen=True)
class MeminfoFigures:
    """Leading ``/proc/meminfo`` values, in kilobytes."""

    total_kb: int
    free_kb: int
    buffers_kb: int
    cached_kb: int

    @property
    def effective_free_kb(self) -> int:
        return self.free_kb + self.buffers_kb + self.cached_kb


def parse_meminfo(text: str) -> Optional[MeminfoFigures]:
    """Read MemTotal, MemFree, Buffers and Cached from the first lines of meminfo.

    Returns ``None`` when fewer than five numbers are present.
    """
    numbers = [int(token) for token in _INTEGER.findall(text)]
    if len(numbers) < 5:
        return None
    return MeminfoFigures(
        total_kb=numbers[0],
        free_kb=numbers[1],
        buffers_kb=numbers[3],
        cached_kb=numbers[4],
    )


def parse_sysctl_memsize(text: str) -> Optional[int]:
    parts = text.strip().split()
    if len(parts) < 2 or not parts[1].isdigit():
        return None
    return int(parts[1])


def parse_vm_stat(text: str, page_size: int = DARWIN_PAGE_SIZE) -> Dict[str, int]:
    """Map the known ``vm_stat`` categories to bytes.

    The page size announced in the header line wins over ``page_size``.
    """
    announced = _PAGE_SIZE.search(text)
    if announced:
        page_size = int(announced.group(1))

    stats: Dict[str, int] = {}
    for line in text.splitlines():
        if ":" not in line:
            continue
        key, _, raw = line.partition(":")
        name = VM_STAT_CATEGORIES.get(key.strip())
        if name is None:
            continue
        value = raw.strip().rstrip(".")
        if value.isdigit():
            stats[name] = int(value) * page_size
    return stats


OsMemorySource = Callable[["MemoryUsageProbe"], Optional[Tuple[int, int]]]


class MemoryUsageProbe:
    """Resolves total and used memory in megabytes."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SEC, platform: Optional[str] = None) -> None:
        self._timeout = timeout
        self._platform = platform
        self._os_sources: StrategyTable[Optional[OsMemorySource]] = StrategyTable(fallback=None)
        self._os_sources.register("darwin", MemoryUsageProbe._from_darwin)

    async def memory_usage(self) -> MemoryStats:
        try:
            return await asyncio.to_thread(self._collect)
        except Exception:
            LOGGER.warning("Memory probe failed, reporting zero usage", exc_info=True)
            return MemoryStats()

    def _collect(self) -> MemoryStats:
        figures = self._from_meminfo()
        if figures is None:
            figures = self._from_os()
        total_bytes, free_bytes = figures
        return MemoryStats(
            total_mb=round_half_up(total_bytes / MB, 2),
            used_mb=round_half_up((total_bytes - free_bytes) / MB, 2),
        )

    def _from_meminfo(self) -> Optional[Tuple[int, int]]:
        result = run_command(MEMINFO_CMD, self._timeout)
        if not result.success:
            return None
        figures = parse_meminfo(result.output)
        if figures is None:
            LOGGER.debug("Unexpected meminfo content, using OS totals")
            return None
        return figures.total_kb * KB, figures.effective_free_kb * KB

    def _from_os(self) -> Tuple[int, int]:
        memory = psutil.virtual_memory()
        total, free = memory.total, memory.free
        source = self._os_sources.get(self._platform)
        if source is not None:
            figures = source(self)
            if figures is not None:
                total, free = figures
        return total, free

    def _from_darwin(self) -> Optional[Tuple[int, int]]:
        result = run_command(SYSCTL_MEMSIZE_CMD, self._timeout)
        total = parse_sysctl_memsize(result.output) if result.success else None
        if total is None:
            return None
        result = run_command(VM_STAT_CMD, self._timeout)
        if not result.success:
            return None
        stats = parse_vm_stat(result.output)
        used = stats.get("wired", 0) + stats.get("active", 0) + stats.get("inactive", 0)
        return total, total - used
