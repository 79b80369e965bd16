"""Object ID enumeration for an ArcGIS layer."""

from __future__ import annotations

import logging

from datasources.arcgis.responses import get_response, parse_payload, require_keys
from datasources.arcgis.urls import FEATURE_IDS_URL
from datasources.common.errors import ResponseError


def fetch_ids(client, layer_url: str, *, log: logging.Logger | None = None) -> list[int]:
    url = FEATURE_IDS_URL.format(layer=layer_url)
    response = get_response(client, url, operation="ids", log=log)
    payload = parse_payload(response)
    require_keys(payload, ["objectIds"], url)

    object_ids = payload["objectIds"]
    if object_ids is None:
        raise ResponseError("Missing data: 'objectIds'", url=url, missing=["objectIds"])
    if not isinstance(object_ids, list):
        raise ResponseError(f"Invalid 'objectIds' from {url}: expected a list", url=url)
    try:
        ids = [int(v) for v in object_ids]
    except (TypeError, ValueError) as exc:
        raise ResponseError(f"Invalid 'objectIds' from {url}", url=url) from exc

    if not ids:
        raise ResponseError("Empty ids list", url=url)
    return ids
