"""
Resource descriptor configuration.

Descriptors map the external resource key used in request paths to the
backing table. They are loaded once at startup into an immutable
``ResourceConfig`` which is passed explicitly to the route guard and the
query-building code.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from .core.errors import ConfigurationError
from .query.context import RelationContext, Relationship
from .utils import get_logger

DESCRIPTORS_ENV_VAR = "RESTABLE_DESCRIPTORS"

logger = get_logger("config")


@dataclass(frozen=True)
class ResourceDescriptor:
    key: str
    table_name: str
    relationships: tuple[Relationship, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ResourceDescriptor":
        """
        Build a descriptor from one ``typeDescriptors`` entry.

        Relationships are read from a top-level ``relationships`` list and from
        ``fields[].relationship`` objects, in that order.
        """

        try:
            key = data["key"]
            table_name = data["tableName"]
        except KeyError as exc:
            raise ConfigurationError(f"Type descriptor is missing {exc.args[0]!r}: {data!r}") from None
        if not key or not table_name:
            raise ConfigurationError(f"Type descriptor has an empty key or tableName: {data!r}")

        raw_relations = list(data.get("relationships") or [])
        for field in data.get("fields") or []:
            if isinstance(field, Mapping) and field.get("relationship"):
                raw_relations.append(field["relationship"])
        try:
            relationships = tuple(Relationship.from_mapping(item) for item in raw_relations)
        except KeyError as exc:
            raise ConfigurationError(
                f"Relationship of '{key}' is missing {exc.args[0]!r}"
            ) from None
        return cls(key=key, table_name=table_name, relationships=relationships)

    def relation_context(self, column_names: Iterable[str] = ()) -> RelationContext:
        return RelationContext.build(self.table_name, column_names, self.relationships)


@dataclass(frozen=True)
class ResourceConfig:
    """
    Ordered, immutable set of resource descriptors with exact-key lookup.
    """

    descriptors: tuple[ResourceDescriptor, ...] = ()

    def __post_init__(self) -> None:
        descriptors = tuple(self.descriptors)
        seen: set[str] = set()
        for descriptor in descriptors:
            if descriptor.key in seen:
                raise ConfigurationError(f"Duplicate resource key '{descriptor.key}'")
            seen.add(descriptor.key)
        object.__setattr__(self, "descriptors", descriptors)

    def __iter__(self) -> Iterator[ResourceDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(descriptor.key for descriptor in self.descriptors)

    def get(self, key: str) -> ResourceDescriptor | None:
        for descriptor in self.descriptors:
            if descriptor.key == key:
                return descriptor
        return None

    def table_for(self, key: str) -> str | None:
        descriptor = self.get(key)
        return descriptor.table_name if descriptor else None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "ResourceConfig":
        """
        Shorthand for tests and small deployments: ``{"invoice": "invoices"}``.
        """

        return cls(tuple(ResourceDescriptor(key, table) for key, table in mapping.items()))

    @classmethod
    def from_json(cls, document: str | Mapping[str, Any]) -> "ResourceConfig":
        if isinstance(document, str):
            try:
                document = json.loads(document)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Descriptor document is not valid JSON: {exc}") from exc
        if not isinstance(document, Mapping):
            raise ConfigurationError("Descriptor document must be a JSON object")
        entries = document.get("typeDescriptors")
        if not isinstance(entries, list):
            raise ConfigurationError("Descriptor document needs a 'typeDescriptors' list")
        return cls(tuple(ResourceDescriptor.from_mapping(entry) for entry in entries))

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "ResourceConfig":
        file_path = Path(path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read descriptor file {file_path}: {exc}") from exc
        config = cls.from_json(text)
        logger.info("Loaded %s resource descriptors from %s", len(config), file_path)
        return config

    @classmethod
    def from_env(cls, env_var: str = DESCRIPTORS_ENV_VAR) -> "ResourceConfig":
        value = os.getenv(env_var)
        if not value:
            raise ConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_file(value)
