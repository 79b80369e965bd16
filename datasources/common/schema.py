"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from datasources.common.errors import ConfigError

HTTP_KEYS = {
    "verify_tls",
    "verify_hostname",
    "follow_redirects",
    "accept_encoding",
    "accept_charset",
    "timeout",
    "retry",
}
TIMEOUT_KEYS = {"connect", "read"}
RETRY_KEYS = {"max_attempts", "multiplier", "max_wait"}


def _assert_mapping(obj: object, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_bool(value: object, ctx: str) -> None:
    if not isinstance(value, bool):
        raise ConfigError(f"{ctx} must be a boolean")


def validate_datasource_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "datasource config")
    _assert_required_keys(cfg, {"http"}, "datasource config")
    _assert_no_unknown_keys(cfg, {"http"}, "datasource config", allow_unknown)

    http = cfg["http"]
    _assert_mapping(http, "http")
    _assert_required_keys(http, HTTP_KEYS, "http")
    _assert_no_unknown_keys(http, HTTP_KEYS, "http", allow_unknown)
    for key in ("verify_tls", "verify_hostname", "follow_redirects"):
        _assert_bool(http[key], f"http.{key}")

    if http["timeout"] is not None:
        _assert_mapping(http["timeout"], "http.timeout")
        _assert_required_keys(http["timeout"], TIMEOUT_KEYS, "http.timeout")

    _assert_mapping(http["retry"], "http.retry")
    _assert_required_keys(http["retry"], RETRY_KEYS, "http.retry")
    if int(http["retry"]["max_attempts"]) < 1:
        raise ConfigError("http.retry.max_attempts must be >= 1")

    return cfg
