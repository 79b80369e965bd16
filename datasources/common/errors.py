"""Domain errors and failure typing."""

from __future__ import annotations

from typing import Any, Iterable


class DatasourceError(Exception):
    """Base class for datasource failures."""

    error_code = "DATASOURCE_ERROR"


class ConfigError(DatasourceError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class InvalidInputError(DatasourceError):
    """Raised for malformed identifiers or empty query arguments."""

    error_code = "INVALID_INPUT"

    def __init__(self, message: str, *, argument: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.argument = argument
        self.value = value


class DataDownloadError(DatasourceError):
    """Raised when the upstream answers with a non-success status."""

    error_code = "DATA_DOWNLOAD_ERROR"

    def __init__(self, url: str, status_code: int | None, body: str = "") -> None:
        super().__init__(f"{url} ({status_code}) : {body}")
        self.url = url
        self.status_code = status_code
        self.body = body


class ResponseError(DatasourceError):
    """Raised when a successful response carries an unusable payload."""

    error_code = "RESPONSE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        missing: Iterable[str] = (),
        upstream_error: Any = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.missing = tuple(missing)
        self.upstream_error = upstream_error


class UnsupportedVersionError(DatasourceError):
    """Raised when the service revision is below the supported baseline."""

    error_code = "UNSUPPORTED_VERSION"

    def __init__(self, version: float, minimum_version: float, *, url: str | None = None) -> None:
        super().__init__(f"Unsupported ArcGIS version {version}, must be >= {minimum_version}")
        self.url = url
        self.version = version
        self.minimum_version = minimum_version
