"""Feature attribute and geometry retrieval for batches of object IDs."""

from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

from datasources.arcgis.responses import get_response, parse_payload, require_keys
from datasources.arcgis.urls import FEATURE_DATA_URL
from datasources.common.constants import OUTPUT_WKID
from datasources.common.errors import InvalidInputError, ResponseError
from datasources.common.models import FeatureRecord


def _escape_list(values: Sequence[object]) -> str:
    return quote(",".join(str(v) for v in values), safe=",")


def build_feature_data_url(layer_url: str, ids: Sequence[int], fields: Sequence[str]) -> str:
    return FEATURE_DATA_URL.format(
        layer=layer_url,
        ids=_escape_list(ids),
        fields=_escape_list(fields),
        wkid=OUTPUT_WKID,
    )


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def fetch_features(
    client,
    layer_url: str,
    ids: Sequence[int],
    fields: Sequence[str],
    *,
    log: logging.Logger | None = None,
) -> list[FeatureRecord]:
    """Fetch features for ``ids`` restricted to ``fields``.

    Every requested field must come back in the response schema; a layer that
    silently drops renamed or unknown fields fails with ResponseError instead
    of yielding partial attributes.
    """
    if not ids:
        raise InvalidInputError("'ids' empty or invalid", argument="ids", value=ids)
    if not fields:
        raise InvalidInputError("'fields' empty or invalid", argument="fields", value=fields)

    url = build_feature_data_url(layer_url, ids, fields)
    response = get_response(client, url, operation="features", log=log)
    payload = parse_payload(response)
    require_keys(payload, ["fields", "features"], url)

    retrieved_fields = payload["fields"]
    retrieved_items = payload["features"]
    if not _non_empty_list(retrieved_fields):
        raise ResponseError("'fields' empty or invalid", url=url)
    if not _non_empty_list(retrieved_items):
        raise ResponseError("'features' empty or invalid", url=url)

    obtained = {field.get("name") for field in retrieved_fields if isinstance(field, dict)}
    desired = list(dict.fromkeys(fields))
    missing = [name for name in desired if name not in obtained]
    if missing:
        raise ResponseError(
            f"Missing required fields: {', '.join(missing)}",
            url=url,
            missing=missing,
        )

    wanted = set(desired)
    records = []
    for item in retrieved_items:
        if not isinstance(item, dict):
            raise ResponseError(f"Invalid feature payload: {item!r}", url=url)
        attributes = item.get("attributes") or {}
        if not isinstance(attributes, dict):
            raise ResponseError(f"Invalid feature attributes: {attributes!r}", url=url)
        records.append(
            FeatureRecord(
                attributes={k: v for k, v in attributes.items() if k in wanted},
                geometry=item.get("geometry"),
            )
        )
    return records
