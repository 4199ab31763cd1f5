"""Storage usage probe with interchangeable measurement strategies."""
from __future__ import annotations

import asyncio
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import psutil

from ..config import StorageConfig
from ..models import DriveSummary, StorageStats, round_half_up
from .base import ProbeError, current_platform
from .commands import DEFAULT_TIMEOUT_SEC, run_command

LOGGER = logging.getLogger(__name__)

DF_CMD = "df -kP"
ROOT_MOUNT = "/"
MOUNT_COLUMN = "Mounted on"
BLOCK_COLUMNS = ("1K-blocks", "1024-blocks")
USED_COLUMN = "Used"

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:\\?$")


def parse_df_output(text: str) -> List[Dict[str, str]]:
    """Parse ``df -P`` style output into one mapping per filesystem row.

    The first line is the header. Its last column (``Mounted on``) contains a
    space, so the header and every row are split into six fields. A row whose
    filesystem name is alone on its line is joined with the following line.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    header_tokens = lines[0].split()
    if len(header_tokens) < 6:
        return []
    headers = header_tokens[:5] + [" ".join(header_tokens[5:])]

    rows: List[Dict[str, str]] = []
    pending = ""
    for line in lines[1:]:
        if pending:
            line = f"{pending} {line.strip()}"
            pending = ""
        fields = line.strip().split(None, 5)
        if len(fields) == 1:
            pending = fields[0]
            continue
        if len(fields) < 6:
            LOGGER.debug("Skipping malformed df row: %s", line)
            continue
        rows.append(dict(zip(headers, fields)))
    return rows


def select_df_row(rows: List[Dict[str, str]], path: str = ROOT_MOUNT) -> Optional[Dict[str, str]]:
    """Row mounted at ``path``, else the row mounted at ``/``."""
    root = None
    for row in rows:
        mount = row.get(MOUNT_COLUMN)
        if mount == path:
            return row
        if mount == ROOT_MOUNT:
            root = row
    return root


def _block_kb(row: Dict[str, str]) -> int:
    for column in BLOCK_COLUMNS:
        if column in row:
            return int(row[column])
    raise ProbeError("df output has no 1K-blocks column")


def stats_from_df_row(row: Dict[str, str]) -> StorageStats:
    return StorageStats.from_totals(_block_kb(row), int(row[USED_COLUMN]), unit="KB")


def summary_from_df_row(row: Dict[str, str]) -> DriveSummary:
    total_mb = math.ceil(_block_kb(row) * 1024 / 1024 ** 2)
    used_mb = math.ceil(int(row[USED_COLUMN]) * 1024 / 1024 ** 2)
    total_gb = round_half_up(total_mb / 1024, 1)
    used_gb = round_half_up(used_mb / 1024, 1)
    used_percentage = round_half_up(100 * used_gb / total_gb, 1) if total_gb > 0 else 0.0
    return DriveSummary(total_gb=total_gb, used_gb=used_gb, used_percentage=used_percentage)


class StorageStrategy(ABC):
    """Measures storage totals; may raise, the probe absorbs failures."""

    unit = "B"

    @abstractmethod
    def measure(self) -> StorageStats:
        raise NotImplementedError


class EnumerateStorageStrategy(StorageStrategy):
    """Sums size and free space of the root mount or of every drive letter."""

    unit = "B"

    def __init__(self, config: StorageConfig, platform: Optional[str] = None) -> None:
        self._config = config
        self._platform = platform or current_platform()

    @property
    def default_target(self) -> str:
        if self._platform == "win32":
            return self._config.windows_default_target
        return self._config.posix_default_target

    def targets(self) -> List[str]:
        if self._platform != "win32":
            return [self._config.posix_default_target]
        try:
            drives = [
                partition.mountpoint
                for partition in psutil.disk_partitions(all=False)
                if _DRIVE_LETTER.match(partition.mountpoint)
            ]
        except (OSError, psutil.Error) as exc:
            LOGGER.warning("Drive enumeration failed: %s", exc)
            drives = []
        return drives or [self.default_target]

    def measure(self) -> StorageStats:
        total_size = 0
        total_free = 0
        measured = 0
        for target in self.targets():
            try:
                usage = psutil.disk_usage(target)
            except (OSError, psutil.Error) as exc:
                LOGGER.warning("Cannot read usage of %s: %s", target, exc)
                continue
            total_size += usage.total
            total_free += usage.free
            measured += 1
        if not measured:
            raise ProbeError("no storage target could be measured")
        return StorageStats.from_totals(total_size, total_size - total_free, unit=self.unit)


class DiskFreeStrategy(StorageStrategy):
    """Reads the filesystem holding ``path`` from ``df -kP`` output."""

    unit = "KB"

    def __init__(self, path: str = ROOT_MOUNT, timeout: float = DEFAULT_TIMEOUT_SEC) -> None:
        self._path = path
        self._timeout = timeout

    def row(self) -> Dict[str, str]:
        result = run_command(DF_CMD, self._timeout)
        if not result.success:
            raise ProbeError(f"{DF_CMD} failed: {result.error}")
        row = select_df_row(parse_df_output(result.output), self._path)
        if row is None:
            raise ProbeError(f"mount point {self._path} and / not found")
        return row

    def measure(self) -> StorageStats:
        return stats_from_df_row(self.row())

    def summary(self) -> DriveSummary:
        return summary_from_df_row(self.row())


def build_strategy(config: StorageConfig, timeout: float = DEFAULT_TIMEOUT_SEC) -> StorageStrategy:
    if config.strategy == "disk_free":
        return DiskFreeStrategy(config.path, timeout)
    return EnumerateStorageStrategy(config)


class StorageUsageProbe:
    """Aggregates total and used storage. Never raises."""

    def __init__(
        self,
        config: Optional[StorageConfig] = None,
        *,
        strategy: Optional[StorageStrategy] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self._config = config or StorageConfig()
        self._timeout = timeout
        self._strategy = strategy or build_strategy(self._config, timeout)

    @property
    def strategy(self) -> StorageStrategy:
        return self._strategy

    async def storage_usage(self) -> StorageStats:
        try:
            return await asyncio.to_thread(self._strategy.measure)
        except Exception as exc:
            LOGGER.warning("Storage probe failed, reporting zero usage: %s", exc)
            return StorageStats.empty(self._strategy.unit)

    async def drive_summary(self) -> DriveSummary:
        """Gigabyte summary of the disk mounted at the configured path."""
        disk_free = DiskFreeStrategy(self._config.path, self._timeout)
        try:
            return await asyncio.to_thread(disk_free.summary)
        except Exception as exc:
            LOGGER.warning("Drive summary failed: %s", exc)
            return DriveSummary()
