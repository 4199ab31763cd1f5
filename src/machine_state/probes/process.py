"""Per-process CPU and memory usage."""
from __future__ import annotations

import asyncio
import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import psutil

from ..models import ProcessStats
from .base import ProcessUsageError

LOGGER = logging.getLogger(__name__)

BYTES_PER_MB = 1_000_000


@dataclass(frozen=True)
class ProcessSample:
    """Raw collaborator figures: CPU percent and resident memory in bytes."""

    cpu: float
    memory: float


class PsutilProcessUsage:
    """psutil backed collaborator.

    The first call for a pid reports the average CPU load since the process
    started; later calls report the load since the previous call.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._processes: Dict[int, psutil.Process] = {}

    def __call__(self, pid: int) -> ProcessSample:
        with self._lock:
            process = self._processes.get(pid)
            if process is not None and not process.is_running():
                del self._processes[pid]
                process = None
            try:
                if process is None:
                    process = psutil.Process(pid)
                    self._processes[pid] = process
                    cpu = self._lifetime_cpu(process)
                    process.cpu_percent(interval=None)
                else:
                    cpu = process.cpu_percent(interval=None)
                memory = process.memory_info().rss
            except psutil.NoSuchProcess:
                self._processes.pop(pid, None)
                raise
        return ProcessSample(cpu=cpu, memory=memory)

    def _lifetime_cpu(self, process: psutil.Process) -> float:
        times = process.cpu_times()
        elapsed = self._clock() - process.create_time()
        if elapsed <= 0:
            return 0.0
        return (times.user + times.system) / elapsed * 100


ProcessUsageCollector = Callable[[int], ProcessSample]


class ProcessUsageProbe:
    """Converts collaborator output to percent / decimal megabytes."""

    def __init__(self, collector: Optional[ProcessUsageCollector] = None) -> None:
        self._collector = collector or PsutilProcessUsage()

    async def process_usage(self, pid: Optional[int] = None) -> ProcessStats:
        target = os.getpid() if pid is None else pid
        try:
            sample = await asyncio.to_thread(self._collector, target)
        except Exception as exc:
            LOGGER.error("Process usage collection failed for pid %s: %s", target, exc)
            raise ProcessUsageError(f"Cannot collect usage of process {target}: {exc}") from exc
        return ProcessStats(cpu_percent=sample.cpu, memory_mb=sample.memory / BYTES_PER_MB)
