"""ArcGIS map-layer URL canonicalization."""

from __future__ import annotations

import re

from datasources.common.errors import InvalidInputError

URL_LIKE_RE = re.compile(r"(http|https)://")
ARCGIS_API_LIKE_URL_RE = re.compile(r"arcgis/rest")
TRAILING_LAYER_INDEX_RE = re.compile(r"([0-9])+$")
NON_WORD_RE = re.compile(r"[^\w]")

MAP_SERVER_SEGMENT = "MapServer/"
# Only the first layer of a map service is ever queried.
LAYER_INDEX = "0"

METADATA_URL = "{layer}?f=json"
FEATURE_IDS_URL = "{layer}/query?where=1%3D1&returnIdsOnly=true&f=json"
FEATURE_DATA_URL = "{layer}/query?objectIds={ids}&outFields={fields}&outSR={wkid}&f=json"


def canonicalize(raw_id: str) -> str:
    if not isinstance(raw_id, str) or not (
        ARCGIS_API_LIKE_URL_RE.search(raw_id) and URL_LIKE_RE.search(raw_id)
    ):
        raise InvalidInputError(
            "Url does not look like an ArcGIS server URL",
            argument="id",
            value=raw_id,
        )

    url = raw_id.split("?", 1)[0]

    match = TRAILING_LAYER_INDEX_RE.search(url)
    if match:
        url = url[: match.start()]

    if not url.endswith("/"):
        url += "/"

    if not url.endswith(f"/{MAP_SERVER_SEGMENT}"):
        url += MAP_SERVER_SEGMENT

    return url + LAYER_INDEX


def filename_from(feature_name: str) -> str:
    return NON_WORD_RE.sub("_", feature_name).lower()
