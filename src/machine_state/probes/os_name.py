"""Operating system name detection.

Each platform has its own detection routine; whatever a routine cannot
resolve falls through to the generic ``uname -sr`` probe, which in turn
degrades to ``"Unknown"``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .base import StrategyTable
from .commands import DEFAULT_TIMEOUT_SEC, read_text_async, run_command_async

LOGGER = logging.getLogger(__name__)

UNKNOWN_OS = "Unknown"

ISSUE_PATH = "/etc/issue"
REDHAT_RELEASE_PATH = "/etc/redhat-release"

SW_VERS_CMD = "sw_vers"
WMIC_CAPTION_CMD = "wmic os get Caption /value"
UNAME_CMD = "uname -sr"

_VERSION = re.compile(r"\d+(\.\d\d?)?")
_DISTRIBUTION = re.compile(r"^[A-Za-z]+")
_PRODUCT_NAME = re.compile(r"^\s*ProductName:\s*(.*?)\s*$", re.MULTILINE)
_PRODUCT_VERSION = re.compile(r"^\s*ProductVersion:\s*(.*?)\s*$", re.MULTILINE)
_CAPTION = re.compile(r"^\s*Caption=\s*(.*?)\s*$", re.MULTILINE)


@dataclass(frozen=True)
class IssueInfo:
    distribution: str
    version: Optional[str]


def parse_issue(text: str) -> IssueInfo:
    """Split ``/etc/issue`` content into a leading distribution word and a version."""
    distribution = _DISTRIBUTION.match(text)
    version = _VERSION.search(text)
    return IssueInfo(
        distribution=distribution.group(0) if distribution else "",
        version=version.group(0) if version else None,
    )


def parse_redhat_release(text: str) -> Optional[str]:
    version = _VERSION.search(text)
    return version.group(0) if version else None


def parse_sw_vers(text: str) -> Optional[str]:
    """Return ``"<ProductName> <ProductVersion>"`` or ``None`` if either is absent."""
    name = _PRODUCT_NAME.search(text)
    version = _PRODUCT_VERSION.search(text)
    if not name or not version or not name.group(1) or not version.group(1):
        return None
    return f"{name.group(1)} {version.group(1)}"


def parse_wmic_caption(text: str) -> Optional[str]:
    caption = _CAPTION.search(text)
    if not caption or not caption.group(1):
        return None
    return caption.group(1)


OsDetector = Callable[["OsIdentifier"], Awaitable[Optional[str]]]


class OsIdentifier:
    """Resolves a human readable OS name for the current platform."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SEC) -> None:
        self._timeout = timeout
        self._detectors: StrategyTable[Optional[OsDetector]] = StrategyTable(fallback=None)
        self._detectors.register("linux", OsIdentifier._detect_linux)
        self._detectors.register("darwin", OsIdentifier._detect_darwin)
        self._detectors.register("win32", OsIdentifier._detect_windows)

    async def get_os_name(self, platform: Optional[str] = None) -> str:
        """Detect the OS name. Never raises; ``"Unknown"`` at worst."""
        detector = self._detectors.get(platform)
        if detector is not None:
            try:
                name = await detector(self)
            except Exception:
                LOGGER.warning("OS detection failed, using generic probe", exc_info=True)
                name = None
            if name:
                return name
        return await self._detect_generic()

    async def _detect_linux(self) -> Optional[str]:
        issue = await read_text_async(ISSUE_PATH)
        if issue is None:
            return None
        info = parse_issue(issue)
        if info.distribution and info.version:
            return f"{info.distribution} {info.version}"
        if info.distribution:
            return info.distribution

        release = await read_text_async(REDHAT_RELEASE_PATH)
        if release is None:
            return None
        version = parse_redhat_release(release)
        if version is None:
            LOGGER.debug("No version found in %s", REDHAT_RELEASE_PATH)
            return None
        return f"Red Hat {version}"

    async def _detect_darwin(self) -> Optional[str]:
        result = await run_command_async(SW_VERS_CMD, self._timeout)
        if not result.success:
            return None
        return parse_sw_vers(result.output)

    async def _detect_windows(self) -> Optional[str]:
        result = await run_command_async(WMIC_CAPTION_CMD, self._timeout)
        if not result.success:
            return None
        return parse_wmic_caption(result.output)

    async def _detect_generic(self) -> str:
        result = await run_command_async(UNAME_CMD, self._timeout)
        name = result.output.strip() if result.success else ""
        return name or UNKNOWN_OS


async def get_os_name() -> str:
    return await OsIdentifier().get_os_name()
