"""CPU utilisation sampling and CPU description."""
from __future__ import annotations

import asyncio
import logging
import math
import platform
import re
from dataclasses import dataclass
from typing import Optional

import psutil

from ..models import round_half_up
from .base import current_platform
from .commands import DEFAULT_TIMEOUT_SEC, read_text, run_command

LOGGER = logging.getLogger(__name__)

# Tick counters are cumulative since boot; utilisation is the delta over this window.
SAMPLE_WINDOW_SEC = 1.0

# Only these categories make up the tick total. iowait, softirq and steal are
# left out entirely (neither busy nor idle); guest and guest_nice are already
# part of user and nice. "interrupt" is the Windows name for irq.
COUNTED_TIME_FIELDS = frozenset({"user", "nice", "system", "idle", "irq", "interrupt"})

CPUINFO_PATH = "/proc/cpuinfo"
DARWIN_BRAND_CMD = "sysctl -n machdep.cpu.brand_string"
_MODEL_NAME = re.compile(r"^model name\s*:\s*(.+?)\s*$", re.MULTILINE)


@dataclass(frozen=True)
class CpuSample:
    total_idle: float
    total_tick: float
    avg_idle: float
    avg_total: float


def take_sample() -> CpuSample:
    """Sum idle and total ticks over every logical core."""
    total_idle = 0.0
    total_tick = 0.0
    cores = psutil.cpu_times(percpu=True)
    for times in cores:
        fields = times._asdict()
        total_tick += sum(value for name, value in fields.items() if name in COUNTED_TIME_FIELDS)
        total_idle += fields.get("idle", 0.0)
    count = len(cores) or 1
    return CpuSample(
        total_idle=total_idle,
        total_tick=total_tick,
        avg_idle=total_idle / count,
        avg_total=total_tick / count,
    )


def usage_between(start: CpuSample, end: CpuSample) -> float:
    """Percentage of non-idle time between two samples, to 2 decimals."""
    idle_difference = end.avg_idle - start.avg_idle
    total_difference = end.avg_total - start.avg_total
    if total_difference == 0:
        return 0.0
    ratio = 10000 * idle_difference / total_difference
    if not math.isfinite(ratio):
        return 0.0
    return (10000 - round_half_up(ratio)) / 100


class CpuUsageSampler:
    """Measures aggregate CPU utilisation over a fixed one second window."""

    async def average_cpu_usage(self) -> float:
        start = await asyncio.to_thread(take_sample)
        await asyncio.sleep(SAMPLE_WINDOW_SEC)
        end = await asyncio.to_thread(take_sample)
        usage = usage_between(start, end)
        LOGGER.debug("CPU usage over %ss window: %s%%", SAMPLE_WINDOW_SEC, usage)
        return usage


def cpu_model(platform_tag: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT_SEC) -> str:
    tag = platform_tag or current_platform()
    model = None
    if tag == "linux":
        cpuinfo = read_text(CPUINFO_PATH)
        if cpuinfo:
            match = _MODEL_NAME.search(cpuinfo)
            model = match.group(1) if match else None
    elif tag == "darwin":
        result = run_command(DARWIN_BRAND_CMD, timeout)
        model = result.output.strip() if result.success else None
    return model or platform.processor() or "unknown"


def cpu_count() -> int:
    return psutil.cpu_count(logical=True) or 1
