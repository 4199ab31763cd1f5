from __future__ import annotations

from types import SimpleNamespace

import pytest


class DummyCompletedProcess(SimpleNamespace):
    """Helper to mimic subprocess.CompletedProcess for testing."""

    returncode: int
    stdout: str
    stderr: str


@pytest.fixture()
def fake_commands(monkeypatch: pytest.MonkeyPatch):
    """Route ``subprocess.run`` through a command -> stdout table.

    Commands missing from the table fail with exit status 127.
    """
    import subprocess

    outputs: dict[str, str] = {}
    calls: list[str] = []

    def fake_run(command, shell, check, capture_output, text, timeout):  # type: ignore[no-untyped-def]
        calls.append(command)
        if command in outputs:
            return DummyCompletedProcess(returncode=0, stdout=outputs[command], stderr="")
        return DummyCompletedProcess(returncode=127, stdout="", stderr="not found")

    monkeypatch.setattr(subprocess, "run", fake_run)
    return SimpleNamespace(outputs=outputs, calls=calls)
