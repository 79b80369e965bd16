"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from datasources.common.fs import read_yaml
from datasources.common.http import HttpConfig, RetryConfig, TimeoutConfig
from datasources.common.schema import validate_datasource_config

CONFIG_FILENAME = "arcgis.yml"


@dataclass(frozen=True)
class ConfigBundle:
    http: HttpConfig
    retry: RetryConfig


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> Any:
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    return _deep_merge(base, overlay)


def _build_bundle(cfg: dict) -> ConfigBundle:
    http = cfg["http"]
    timeout = None
    if http["timeout"] is not None:
        timeout = TimeoutConfig(
            connect=float(http["timeout"]["connect"]),
            read=float(http["timeout"]["read"]),
        )
    retry = http["retry"]
    return ConfigBundle(
        http=HttpConfig(
            verify_tls=http["verify_tls"],
            verify_hostname=http["verify_hostname"],
            follow_redirects=http["follow_redirects"],
            accept_encoding=str(http["accept_encoding"]),
            accept_charset=str(http["accept_charset"]),
            timeout=timeout,
        ),
        retry=RetryConfig(
            max_attempts=int(retry["max_attempts"]),
            multiplier=float(retry["multiplier"]),
            max_wait=float(retry["max_wait"]),
        ),
    )


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    return _build_bundle(validate_datasource_config(cfg, allow_unknown=allow_unknown))
