"""Abstract contract shared by every import datasource."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from datasources.common.models import ResourceDescriptor


class BaseDatasource(ABC):
    """Operations the import pipeline calls on any datasource.

    Sources that cannot hand out a direct download URL return ``False`` from
    :meth:`providers_download_url` and are read through :meth:`get_resource`.
    """

    DATASOURCE_NAME: str = ""

    @classmethod
    def get_new(cls) -> "BaseDatasource":
        return cls()

    @abstractmethod
    def providers_download_url(self) -> bool:
        ...

    @abstractmethod
    def get_resources_list(self, filter: list | None = None) -> list:
        ...

    @abstractmethod
    def get_resource(self, id: str) -> Any:
        ...

    @abstractmethod
    def get_resource_metadata(self, id: str) -> ResourceDescriptor:
        ...

    @property
    @abstractmethod
    def filter(self) -> dict:
        ...

    @filter.setter
    @abstractmethod
    def filter(self, filter_data) -> None:
        ...

    @abstractmethod
    def persists_state_via_data_import(self) -> bool:
        ...

    @property
    def report_component(self) -> None:
        return None

    @report_component.setter
    def report_component(self, component) -> None:
        # Error reporting is left to the caller for every current source.
        return None
