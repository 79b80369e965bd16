"""ArcGIS layer metadata retrieval and normalization."""

from __future__ import annotations

import logging
import math
from typing import Any

from datasources.arcgis.responses import get_response, parse_payload, require_keys
from datasources.arcgis.urls import METADATA_URL, filename_from
from datasources.common.constants import (
    DATASOURCE_NAME,
    DEFAULT_MAX_RECORDS_PER_QUERY,
    MINIMUM_SUPPORTED_VERSION,
)
from datasources.common.errors import ResponseError, UnsupportedVersionError
from datasources.common.models import FieldDescriptor, ResourceDescriptor, ServiceMetadata

REQUIRED_KEYS = [
    "currentVersion",
    "name",
    "description",
    "type",
    "geometryType",
    "copyrightText",
    "fields",
    "supportedQueryFormats",
    "supportsAdvancedQueries",
]


def _parse_fields(raw_fields: Any, url: str) -> tuple[FieldDescriptor, ...]:
    if not isinstance(raw_fields, list) or not raw_fields:
        raise ResponseError("'fields' empty or invalid", url=url)
    fields = []
    for raw in raw_fields:
        if not isinstance(raw, dict) or "name" not in raw:
            raise ResponseError(f"Invalid field descriptor: {raw!r}", url=url)
        fields.append(FieldDescriptor(name=str(raw["name"]), type=raw.get("type")))
    names = [f.name for f in fields]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ResponseError(f"Duplicate field names: {', '.join(duplicates)}", url=url)
    return tuple(fields)


def _parse_formats(raw_formats: Any) -> frozenset[str]:
    if raw_formats is None:
        return frozenset()
    compact = "".join(str(raw_formats).split())
    return frozenset(token for token in compact.split(",") if token)


def _parse_version(raw_version: Any, url: str) -> float:
    try:
        version = float(raw_version)
    except (TypeError, ValueError) as exc:
        raise ResponseError(f"Invalid 'currentVersion': {raw_version!r}", url=url) from exc
    if not math.isfinite(version):
        raise ResponseError(f"Invalid 'currentVersion': {raw_version!r}", url=url)
    return version


def parse_metadata(payload: dict[str, Any], url: str) -> ServiceMetadata:
    if payload.get("fields") is None:
        raise ResponseError("Missing data: 'fields'", url=url, missing=["fields"])
    require_keys(payload, REQUIRED_KEYS, url)

    try:
        max_records = int(payload.get("maxRecordCount", DEFAULT_MAX_RECORDS_PER_QUERY))
    except (TypeError, ValueError) as exc:
        raise ResponseError(f"Invalid 'maxRecordCount': {payload['maxRecordCount']!r}", url=url) from exc

    return ServiceMetadata(
        version=_parse_version(payload["currentVersion"], url),
        name=payload["name"],
        description=payload["description"],
        type=payload["type"],
        geometry_type=payload["geometryType"],
        copyright=payload["copyrightText"],
        fields=_parse_fields(payload["fields"], url),
        max_records_per_query=max_records,
        supported_formats=_parse_formats(payload["supportedQueryFormats"]),
        advanced_queries_supported=bool(payload["supportsAdvancedQueries"]),
    )


def fetch_metadata(client, layer_url: str, *, log: logging.Logger | None = None) -> ServiceMetadata:
    """Fetch ``{layer_url}?f=json`` and return the validated metadata snapshot.

    The version gate runs on the already parsed snapshot so the error can
    report the offending revision.
    """
    url = METADATA_URL.format(layer=layer_url)
    response = get_response(client, url, operation="metadata", log=log)
    metadata = parse_metadata(parse_payload(response), url)

    if metadata.version < MINIMUM_SUPPORTED_VERSION:
        raise UnsupportedVersionError(metadata.version, MINIMUM_SUPPORTED_VERSION, url=url)
    return metadata


def build_resource_descriptor(resource_id: str, metadata: ServiceMetadata) -> ResourceDescriptor:
    return ResourceDescriptor(
        id=resource_id,
        title=metadata.name,
        url=None,
        service=DATASOURCE_NAME,
        checksum=None,
        size=0,
        filename=filename_from(metadata.name or ""),
    )
