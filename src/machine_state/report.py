"""Composition of the general and resource usage reports."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .config import ProbeConfig
from .identity import get_machine_id
from .models import GeneralInfo, MachineUsage, ResourceUsageInfo
from .probes.base import current_platform
from .probes.cpu import CpuUsageSampler, cpu_count, cpu_model
from .probes.memory import MemoryUsageProbe
from .probes.os_name import OsIdentifier
from .probes.process import ProcessUsageProbe
from .probes.storage import StorageUsageProbe

LOGGER = logging.getLogger(__name__)


class TelemetryReportBuilder:
    """Builds GeneralInfo and ResourceUsageInfo snapshots."""

    def __init__(
        self,
        config: Optional[ProbeConfig] = None,
        *,
        os_identifier: Optional[OsIdentifier] = None,
        cpu_sampler: Optional[CpuUsageSampler] = None,
        memory_probe: Optional[MemoryUsageProbe] = None,
        storage_probe: Optional[StorageUsageProbe] = None,
        process_probe: Optional[ProcessUsageProbe] = None,
    ) -> None:
        self._config = config or ProbeConfig()
        timeout = self._config.commands.timeout_sec
        self._os_identifier = os_identifier or OsIdentifier(timeout)
        self._cpu_sampler = cpu_sampler or CpuUsageSampler()
        self._memory_probe = memory_probe or MemoryUsageProbe(timeout)
        self._storage_probe = storage_probe or StorageUsageProbe(self._config.storage, timeout=timeout)
        self._process_probe = process_probe or ProcessUsageProbe()

    async def general_info(self) -> GeneralInfo:
        timeout = self._config.commands.timeout_sec
        model = await asyncio.to_thread(cpu_model, None, timeout)
        info = GeneralInfo(
            machine_id=get_machine_id(),
            cpu_model=model,
            cpu_count=cpu_count(),
            platform=current_platform(),
            os=await self._os_identifier.get_os_name(),
        )
        LOGGER.debug("General info: %s", info)
        return info

    async def resource_usage_info(self, pid: Optional[int] = None) -> ResourceUsageInfo:
        """Collect all usage figures concurrently.

        Raises:
            ProcessUsageError: if the usage of the process cannot be collected.
        """
        process, storage, cpu, memory = await asyncio.gather(
            self._process_probe.process_usage(pid),
            self._storage_probe.storage_usage(),
            self._cpu_sampler.average_cpu_usage(),
            self._memory_probe.memory_usage(),
        )
        return ResourceUsageInfo(
            machine=MachineUsage(storage=storage, memory=memory, cpu=cpu),
            process=process,
        )
