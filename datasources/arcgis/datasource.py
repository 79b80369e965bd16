"""ArcGIS map-service datasource."""

from __future__ import annotations

import logging

from datasources.arcgis.feature_ids import fetch_ids
from datasources.arcgis.features import fetch_features
from datasources.arcgis.metadata import build_resource_descriptor, fetch_metadata
from datasources.arcgis.urls import canonicalize
from datasources.base import BaseDatasource
from datasources.common.constants import DATASOURCE_NAME
from datasources.common.errors import DatasourceError, InvalidInputError
from datasources.common.http import HttpClient
from datasources.common.logging import log_event
from datasources.common.models import FeatureRecord, ResourceDescriptor, ServiceMetadata


def _chunked(values: list[int], size: int):
    for i in range(0, len(values), size):
        yield values[i : i + size]


class ArcGISDatasource(BaseDatasource):
    """Reads the first layer of an ArcGIS map service.

    Not safe for concurrent use: the cached metadata snapshot is replaced by
    every successful :meth:`get_resource_metadata` call. Run one instance per
    import job.
    """

    DATASOURCE_NAME = DATASOURCE_NAME

    def __init__(
        self,
        http_client: HttpClient | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.http_client = http_client or HttpClient()
        self.logger = logger or logging.getLogger(__name__)
        self.metadata = ServiceMetadata.empty()

    def providers_download_url(self) -> bool:
        return False

    def get_resources_list(self, filter: list | None = None) -> list:
        return filter if filter is not None else []

    def get_resource_metadata(self, id: str) -> ResourceDescriptor:
        layer_url = canonicalize(id)
        try:
            metadata = fetch_metadata(self.http_client, layer_url, log=self.logger)
        except DatasourceError as exc:
            self._log_failure("metadata", layer_url, exc)
            raise

        # Only a fully validated snapshot replaces the cached one.
        self.metadata = metadata
        log_event(
            self.logger,
            f"metadata fetched for {metadata.name}",
            operation="metadata",
            source=DATASOURCE_NAME,
            event="METADATA_FETCHED",
            status="ok",
            url=layer_url,
        )
        return build_resource_descriptor(id, metadata)

    def get_resource(self, id: str, metadata: ServiceMetadata | None = None) -> list[FeatureRecord]:
        if metadata is None:
            metadata = self.metadata
        if not metadata.fields:
            raise InvalidInputError(
                "No field catalogue available; fetch the resource metadata first",
                argument="metadata",
            )

        layer_url = canonicalize(id)
        field_names = metadata.field_names
        chunk_size = max(int(metadata.max_records_per_query), 1)

        try:
            ids = fetch_ids(self.http_client, layer_url, log=self.logger)
            log_event(
                self.logger,
                f"{len(ids)} object ids listed",
                operation="ids",
                source=DATASOURCE_NAME,
                event="IDS_FETCHED",
                status="ok",
                url=layer_url,
                rows_out=len(ids),
            )

            records: list[FeatureRecord] = []
            for chunk_ids in _chunked(ids, chunk_size):
                chunk = fetch_features(self.http_client, layer_url, chunk_ids, field_names, log=self.logger)
                records.extend(chunk)
                log_event(
                    self.logger,
                    f"fetched {len(chunk)} features",
                    operation="features",
                    source=DATASOURCE_NAME,
                    event="CHUNK_FETCHED",
                    status="ok",
                    url=layer_url,
                    rows_out=len(chunk),
                )
        except DatasourceError as exc:
            self._log_failure("features", layer_url, exc)
            raise

        return records

    @property
    def filter(self) -> dict:
        return {}

    @filter.setter
    def filter(self, filter_data) -> None:
        return None

    def persists_state_via_data_import(self) -> bool:
        return False

    def _log_failure(self, operation: str, layer_url: str, exc: DatasourceError) -> None:
        self.logger.warning(
            f"{operation} failed for {layer_url}: {exc}",
            extra={
                "operation": operation,
                "source": DATASOURCE_NAME,
                "event": f"{operation.upper()}_FAIL",
                "status": "error",
                "url": layer_url,
                "error_code": exc.error_code,
            },
        )
