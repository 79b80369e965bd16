import json
import logging
from pathlib import Path

from datasources.common.constants import JSON_LOG_FIELDS
from datasources.common.ids import generate_run_id
from datasources.common.logging import JsonLineFormatter, build_logger, log_event
from datasources.common.models import FeatureRecord, FieldDescriptor, ServiceMetadata


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")


def test_json_line_formatter_emits_stable_fields():
    record = logging.LogRecord("datasources", logging.INFO, __file__, 1, "GET %s", ("u",), None)
    record.event = "HTTP_REQUEST"
    record.status_code = 200

    payload = json.loads(JsonLineFormatter().format(record))

    assert set(payload) == set(JSON_LOG_FIELDS)
    assert payload["message"] == "GET u"
    assert payload["event"] == "HTTP_REQUEST"
    assert payload["status_code"] == 200
    assert payload["error_code"] is None


def test_build_logger_writes_jsonl_file(tmp_path: Path):
    logger = build_logger("run-test", log_dir=tmp_path, level="INFO")

    log_event(logger, "command start", run_id="run-test", event="COMMAND_START", status="ok")
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["event"] == "COMMAND_START"


def test_empty_service_metadata_has_no_field_catalogue():
    metadata = ServiceMetadata.empty()

    assert metadata.fields == ()
    assert metadata.max_records_per_query == 500
    assert metadata.supported_formats == frozenset()
    assert metadata.advanced_queries_supported is False


def test_service_metadata_to_dict_is_json_ready():
    metadata = ServiceMetadata(
        version=10.8,
        name="Parks",
        description="",
        type="Feature Layer",
        geometry_type="esriGeometryPoint",
        copyright=None,
        fields=(FieldDescriptor(name="NAME", type="esriFieldTypeString"),),
        supported_formats=frozenset({"JSON", "PBF"}),
    )

    payload = metadata.to_dict()

    assert payload["fields"] == [{"name": "NAME", "type": "esriFieldTypeString"}]
    assert payload["supported_formats"] == ["JSON", "PBF"]
    json.dumps(payload)


def test_feature_record_to_dict():
    record = FeatureRecord(attributes={"a": 1}, geometry={"x": 1.0, "y": 2.0})

    assert record.to_dict() == {"attributes": {"a": 1}, "geometry": {"x": 1.0, "y": 2.0}}
