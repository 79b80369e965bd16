"""Data models shared by the datasource components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from datasources.common.constants import DEFAULT_MAX_RECORDS_PER_QUERY


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    type: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ServiceMetadata:
    version: float | None
    name: str | None
    description: str | None
    type: str | None
    geometry_type: str | None
    copyright: str | None
    fields: tuple[FieldDescriptor, ...] = ()
    max_records_per_query: int = DEFAULT_MAX_RECORDS_PER_QUERY
    supported_formats: frozenset[str] = field(default_factory=frozenset)
    advanced_queries_supported: bool = False

    @classmethod
    def empty(cls) -> "ServiceMetadata":
        return cls(
            version=None,
            name=None,
            description=None,
            type=None,
            geometry_type=None,
            copyright=None,
        )

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["fields"] = [f.to_dict() for f in self.fields]
        payload["supported_formats"] = sorted(self.supported_formats)
        return payload


@dataclass(frozen=True)
class FeatureRecord:
    attributes: dict[str, Any]
    geometry: dict[str, Any] | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ResourceDescriptor:
    id: str
    title: str | None
    url: str | None
    service: str
    checksum: str | None
    size: int
    filename: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
