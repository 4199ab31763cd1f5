"""Probe errors and the platform strategy registry."""
from __future__ import annotations

import logging
import sys
from typing import Dict, Generic, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class ProbeError(Exception):
    """Exception raised when a probe cannot produce a result."""
    pass


class ProcessUsageError(ProbeError):
    """Raised when per-process usage cannot be collected."""
    pass


def current_platform() -> str:
    """Return the platform tag used to select strategies (``linux``, ``darwin``, ``win32``...)."""
    return sys.platform


class StrategyTable(Generic[T]):
    """Registry of per-platform strategies with a generic fallback."""

    def __init__(self, fallback: T) -> None:
        self._strategies: Dict[str, T] = {}
        self._fallback = fallback

    def register(self, platform: str, strategy: T) -> None:
        if platform in self._strategies:
            raise ValueError(f"Strategy already registered for platform: {platform}")
        self._strategies[platform] = strategy
        LOGGER.debug("Registered strategy for %s", platform)

    def get(self, platform: Optional[str] = None) -> T:
        tag = platform or current_platform()
        return self._strategies.get(tag, self._fallback)
