"""Platform probes feeding the telemetry reports."""
from .base import ProbeError, ProcessUsageError, StrategyTable
from .cpu import CpuUsageSampler
from .memory import MemoryUsageProbe
from .os_name import OsIdentifier
from .process import ProcessUsageProbe
from .storage import DiskFreeStrategy, EnumerateStorageStrategy, StorageUsageProbe

__all__ = [
    "ProbeError",
    "ProcessUsageError",
    "StrategyTable",
    "CpuUsageSampler",
    "MemoryUsageProbe",
    "OsIdentifier",
    "ProcessUsageProbe",
    "DiskFreeStrategy",
    "EnumerateStorageStrategy",
    "StorageUsageProbe",
]
