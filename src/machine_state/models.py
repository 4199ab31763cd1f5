"""Report structures returned by the probes."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` decimals with halves going away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class StorageStats:
    """Aggregated storage totals.

    ``total`` and ``used`` are bytes (``unit == "B"``) or kilobytes
    (``unit == "KB"``) depending on the strategy that produced them.
    """

    total: float = 0
    used: float = 0
    used_percentage: float = 0.0
    unit: str = "B"

    @classmethod
    def from_totals(cls, total: float, used: float, unit: str = "B") -> "StorageStats":
        percentage = round_half_up(used / total * 100, 2) if total > 0 else 0.0
        return cls(total=total, used=used, used_percentage=percentage, unit=unit)

    @classmethod
    def empty(cls, unit: str = "B") -> "StorageStats":
        return cls(total=0, used=0, used_percentage=0.0, unit=unit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "used": self.used,
            "usedPercentage": self.used_percentage,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class DriveSummary:
    """Gigabyte view of the disk holding a mount point."""

    total_gb: float = 0.0
    used_gb: float = 0.0
    used_percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalGb": self.total_gb,
            "usedGb": self.used_gb,
            "usedPercentage": self.used_percentage,
        }


@dataclass(frozen=True)
class MemoryStats:
    total_mb: float = 0.0
    used_mb: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"totalMb": self.total_mb, "usedMb": self.used_mb}


@dataclass(frozen=True)
class ProcessStats:
    cpu_percent: float
    memory_mb: float

    def to_dict(self) -> Dict[str, Any]:
        return {"cpuPercent": self.cpu_percent, "memoryMb": self.memory_mb}


@dataclass(frozen=True)
class MachineUsage:
    storage: StorageStats
    memory: MemoryStats
    cpu: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "storage": self.storage.to_dict(),
            "memory": self.memory.to_dict(),
            "cpu": self.cpu,
        }


@dataclass(frozen=True)
class ResourceUsageInfo:
    """Machine and current-process usage, collected fresh on every request."""

    machine: MachineUsage
    process: ProcessStats

    def to_dict(self) -> Dict[str, Any]:
        return {"machine": self.machine.to_dict(), "process": self.process.to_dict()}


@dataclass(frozen=True)
class GeneralInfo:
    """Static identity of the host."""

    machine_id: str
    cpu_model: str
    cpu_count: int
    platform: str
    os: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machineId": self.machine_id,
            "cpuModel": self.cpu_model,
            "cpuCount": self.cpu_count,
            "platform": self.platform,
            "os": self.os,
        }
