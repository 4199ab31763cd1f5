"""Machine identity and resource usage probe."""
from .identity import get_machine_id
from .models import (
    DriveSummary,
    GeneralInfo,
    MachineUsage,
    MemoryStats,
    ProcessStats,
    ResourceUsageInfo,
    StorageStats,
)
from .probes.base import ProbeError, ProcessUsageError
from .report import TelemetryReportBuilder

__all__ = [
    "get_machine_id",
    "DriveSummary",
    "GeneralInfo",
    "MachineUsage",
    "MemoryStats",
    "ProcessStats",
    "ResourceUsageInfo",
    "StorageStats",
    "ProbeError",
    "ProcessUsageError",
    "TelemetryReportBuilder",
]
