"""Configuration utilities for the machine state probe."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("WARNING", description="Root logging level.")
    log_dir: Optional[Path] = Field(
        None,
        description="Directory for rotating log files. Console logging only when omitted.",
    )


class CommandConfig(BaseModel):
    """Settings for external utility invocations."""

    timeout_sec: float = Field(
        10.0,
        gt=0,
        description="Upper bound for a single platform command before it is treated as failed.",
    )


class StorageConfig(BaseModel):
    """Settings for the storage usage probe."""

    strategy: Literal["auto", "enumerate", "disk_free"] = Field(
        "auto",
        description=(
            "How storage usage is measured: enumerate mount points/drives through psutil, "
            "or parse ``df -kP`` output. ``auto`` picks enumeration."
        ),
    )
    path: str = Field("/", description="Mount point looked up in ``df`` output.")
    posix_default_target: str = Field("/", description="Target used when mount enumeration fails on POSIX.")
    windows_default_target: str = Field("C:\\", description="Target used when drive enumeration fails on Windows.")


class ProbeConfig(BaseModel):
    """Top-level configuration object."""

    logging: LoggingConfig = LoggingConfig()
    commands: CommandConfig = CommandConfig()
    storage: StorageConfig = StorageConfig()


def load_config(path: Optional[os.PathLike[str]] = None) -> ProbeConfig:
    """Load configuration from a YAML file.

    Args:
        path: Optional path to a configuration file. If not provided, the default
            configuration bundled with the project is used when present and the
            built-in defaults otherwise.

    Returns:
        ProbeConfig: Parsed configuration model.
    """

    project_root = Path(__file__).resolve().parents[2]
    default_path = project_root / "config" / "default.yaml"

    data: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        data = _read_yaml(config_path)
    elif default_path.exists():
        data = _read_yaml(default_path)

    overrides_path = project_root / "config" / "overrides.yaml"
    if overrides_path.exists():
        data = _deep_update(data, _read_yaml(overrides_path))

    return ProbeConfig(**data)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _deep_update(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge update mapping into base mapping."""

    merged = dict(base)
    for key, value in updates.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = _deep_update(merged[key], value)
        else:
            merged[key] = value
    return merged
