"""Tests for report rounding helpers."""
from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

from machine_state.models import round_half_up


def test_halves_round_up() -> None:
    assert round_half_up(0.25, 1) == 0.3
    assert round_half_up(1.125, 2) == 1.13
    assert round_half_up(2.5) == 3.0
    assert round_half_up(3333.5) == 3334.0


def test_non_halves_round_to_nearest() -> None:
    assert round_half_up(0.24, 1) == 0.2
    assert round_half_up(15921.3671875, 2) == 15921.37
    assert round_half_up(3333.33) == 3333.0
