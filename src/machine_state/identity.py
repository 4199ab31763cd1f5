"""Machine identity derived from the first hardware network address."""
from __future__ import annotations

import logging
import re
import threading
from typing import Optional

import psutil

LOGGER = logging.getLogger(__name__)

ZERO_MAC = "00:00:00:00:00:00"
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_NON_DIGITS = re.compile(r"\D+")


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def mac_to_machine_id(mac: str) -> str:
    """Keep the decimal digits of ``mac`` in order and re-encode them in base 36.

    ``"A1:B2:C3:D4:E5:F6"`` keeps ``"123456"``. An address without any digit
    yields an empty id.
    """
    digits = _NON_DIGITS.sub("", mac)
    if not digits:
        return ""
    return to_base36(int(digits))


def first_mac_address() -> Optional[str]:
    """Return the first non-zero link-layer address in interface enumeration order."""
    link_family = getattr(psutil, "AF_LINK", None)
    for name, addresses in psutil.net_if_addrs().items():
        for address in addresses:
            if link_family is not None and address.family != link_family:
                continue
            mac = (address.address or "").replace("-", ":")
            if mac and mac != ZERO_MAC:
                LOGGER.debug("Using hardware address of interface %s", name)
                return mac
    return None


class MachineIdentity:
    """Computes the machine id on first access and caches it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._machine_id: Optional[str] = None

    def get(self) -> str:
        if self._machine_id is None:
            with self._lock:
                if self._machine_id is None:
                    self._machine_id = self._compute()
        return self._machine_id

    def reset(self) -> None:
        with self._lock:
            self._machine_id = None

    @staticmethod
    def _compute() -> str:
        try:
            mac = first_mac_address()
        except (OSError, psutil.Error) as exc:
            LOGGER.debug("Network interface enumeration failed: %s", exc)
            return ""
        if mac is None:
            LOGGER.debug("No usable hardware address found")
            return ""
        return mac_to_machine_id(mac)


_IDENTITY = MachineIdentity()


def get_machine_id() -> str:
    """Return the process-wide machine id."""
    return _IDENTITY.get()


def reset_machine_id() -> None:
    _IDENTITY.reset()
