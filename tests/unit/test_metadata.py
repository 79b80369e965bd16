from __future__ import annotations

import json

import pytest
import requests

from datasources.arcgis.metadata import build_resource_descriptor, fetch_metadata
from datasources.common.errors import DataDownloadError, ResponseError, UnsupportedVersionError
from datasources.common.http import HttpResponse

LAYER_URL = "https://host/arcgis/rest/services/Parks/MapServer/0"


def _metadata_payload(**overrides):
    payload = {
        "currentVersion": 10.81,
        "name": "Parks & Rec",
        "description": "City parks",
        "type": "Feature Layer",
        "geometryType": "esriGeometryPolygon",
        "copyrightText": "City GIS",
        "fields": [
            {"name": "OBJECTID", "type": "esriFieldTypeOID", "alias": "OBJECTID"},
            {"name": "NAME", "type": "esriFieldTypeString"},
        ],
        "maxRecordCount": 1000,
        "supportedQueryFormats": "JSON, geoJSON, PBF",
        "supportsAdvancedQueries": True,
    }
    payload.update(overrides)
    return payload


class FakeHttpClient:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self.calls: list[str] = []

    def get(self, url: str, **_kwargs):
        self.calls.append(url)
        return HttpResponse(url=url, status_code=self.status_code, text=self.text)


def test_fetch_metadata_parses_service_description():
    client = FakeHttpClient(payload=_metadata_payload())

    metadata = fetch_metadata(client, LAYER_URL)

    assert client.calls == [f"{LAYER_URL}?f=json"]
    assert metadata.version == 10.81
    assert metadata.name == "Parks & Rec"
    assert metadata.geometry_type == "esriGeometryPolygon"
    assert metadata.copyright == "City GIS"
    assert metadata.field_names == ["OBJECTID", "NAME"]
    assert metadata.fields[0].type == "esriFieldTypeOID"
    assert metadata.max_records_per_query == 1000
    assert metadata.supported_formats == {"JSON", "geoJSON", "PBF"}
    assert metadata.advanced_queries_supported is True


def test_fetch_metadata_defaults_max_record_count():
    payload = _metadata_payload()
    del payload["maxRecordCount"]

    metadata = fetch_metadata(FakeHttpClient(payload=payload), LAYER_URL)

    assert metadata.max_records_per_query == 500


def test_fetch_metadata_keeps_null_descriptive_fields():
    metadata = fetch_metadata(
        FakeHttpClient(payload=_metadata_payload(description=None, copyrightText="")),
        LAYER_URL,
    )

    assert metadata.description is None
    assert metadata.copyright == ""


def test_fetch_metadata_non_200_raises_download_error_with_context():
    client = FakeHttpClient(status_code=500, text="Internal failure")

    with pytest.raises(DataDownloadError) as excinfo:
        fetch_metadata(client, LAYER_URL)

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "Internal failure"
    assert excinfo.value.url == f"{LAYER_URL}?f=json"
    assert "500" in str(excinfo.value)
    assert "Internal failure" in str(excinfo.value)


def test_fetch_metadata_missing_fields_raises_response_error():
    payload = _metadata_payload()
    del payload["fields"]

    with pytest.raises(ResponseError, match="'fields'"):
        fetch_metadata(FakeHttpClient(payload=payload), LAYER_URL)


def test_fetch_metadata_missing_required_key_is_named():
    payload = _metadata_payload()
    del payload["supportsAdvancedQueries"]

    with pytest.raises(ResponseError, match="supportsAdvancedQueries") as excinfo:
        fetch_metadata(FakeHttpClient(payload=payload), LAYER_URL)

    assert excinfo.value.missing == ("supportsAdvancedQueries",)


def test_fetch_metadata_empty_fields_raises_response_error():
    with pytest.raises(ResponseError, match="'fields' empty or invalid"):
        fetch_metadata(FakeHttpClient(payload=_metadata_payload(fields=[])), LAYER_URL)


def test_fetch_metadata_invalid_json_raises_response_error():
    with pytest.raises(ResponseError, match="Invalid JSON"):
        fetch_metadata(FakeHttpClient(text="<html>maintenance</html>"), LAYER_URL)


def test_fetch_metadata_upstream_error_envelope_raises_response_error():
    client = FakeHttpClient(payload={"error": {"code": 499, "message": "Token Required"}})

    with pytest.raises(ResponseError) as excinfo:
        fetch_metadata(client, LAYER_URL)

    assert excinfo.value.upstream_error["code"] == 499


def test_fetch_metadata_rejects_old_service_version():
    with pytest.raises(UnsupportedVersionError, match="9.3") as excinfo:
        fetch_metadata(FakeHttpClient(payload=_metadata_payload(currentVersion=9.3)), LAYER_URL)

    assert excinfo.value.version == 9.3
    assert excinfo.value.minimum_version == 10.1


def test_fetch_metadata_accepts_minimum_version():
    metadata = fetch_metadata(FakeHttpClient(payload=_metadata_payload(currentVersion=10.1)), LAYER_URL)

    assert metadata.version == 10.1


def test_fetch_metadata_is_deterministic_for_same_response():
    client = FakeHttpClient(payload=_metadata_payload())

    assert fetch_metadata(client, LAYER_URL) == fetch_metadata(client, LAYER_URL)


def test_build_resource_descriptor():
    metadata = fetch_metadata(FakeHttpClient(payload=_metadata_payload()), LAYER_URL)

    descriptor = build_resource_descriptor("https://host/arcgis/rest/services/Parks/MapServer", metadata)

    assert descriptor.to_dict() == {
        "id": "https://host/arcgis/rest/services/Parks/MapServer",
        "title": "Parks & Rec",
        "url": None,
        "service": "arcgis",
        "checksum": None,
        "size": 0,
        "filename": "parks___rec",
    }


@pytest.mark.parametrize("raw_version", ["NaN", "inf", float("nan")])
def test_fetch_metadata_rejects_non_finite_version(raw_version):
    with pytest.raises(ResponseError, match="currentVersion"):
        fetch_metadata(FakeHttpClient(payload=_metadata_payload(currentVersion=raw_version)), LAYER_URL)


def test_fetch_metadata_unsupported_version_names_service_url():
    with pytest.raises(UnsupportedVersionError) as excinfo:
        fetch_metadata(FakeHttpClient(payload=_metadata_payload(currentVersion=10.0)), LAYER_URL)

    assert excinfo.value.url == f"{LAYER_URL}?f=json"


def test_fetch_metadata_rejects_duplicate_field_names():
    fields = [{"name": "NAME", "type": "esriFieldTypeString"}, {"name": "NAME", "type": "esriFieldTypeInteger"}]

    with pytest.raises(ResponseError, match="Duplicate field names: NAME"):
        fetch_metadata(FakeHttpClient(payload=_metadata_payload(fields=fields)), LAYER_URL)


def test_fetch_metadata_transport_failure_raises_download_error():
    class UnreachableClient:
        def get(self, url: str, **_kwargs):
            raise requests.ConnectionError("connection refused")

    with pytest.raises(DataDownloadError) as excinfo:
        fetch_metadata(UnreachableClient(), LAYER_URL)

    assert excinfo.value.status_code is None
    assert excinfo.value.url == f"{LAYER_URL}?f=json"
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)
    assert "connection refused" in excinfo.value.body
