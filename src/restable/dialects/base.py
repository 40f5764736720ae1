"""
Dialect strategy interfaces: query catalog, placeholders and type conversion.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Protocol

from ..core.nullable import NullableValue, NullBool, NullFloat64, NullInt64, NullString, NullTime
from ..query.catalog import QueryCatalog

_SIZE_SUFFIX_RE = re.compile(r"\s*\(.*\)\s*$")


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    supports_returning: bool = False
    numbered_placeholders: bool = True


class Dialect(Protocol):
    """
    Strategy interface consumed by the backend bundle and the adapters.
    """

    @property
    def name(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    @property
    def catalog(self) -> QueryCatalog: ...

    def placeholder(self, position: int) -> str: ...

    def convert_type(self, type_name: str) -> NullableValue: ...


def canonical_type_name(type_name: str) -> str:
    """
    Upper-case a reported type name and drop any size suffix: ``varchar(255)`` -> ``VARCHAR``.
    """

    return _SIZE_SUFFIX_RE.sub("", type_name or "").strip().upper()


class TypeMap:
    """
    Closed token table mapping canonical type names to nullable containers.

    Unrecognized tokens fall back to ``NullString`` on purpose: a new or
    exotic column type still scans losslessly as text instead of failing the
    whole row.
    """

    fallback: type[NullableValue] = NullString

    def __init__(
        self,
        *,
        text: Iterable[str] = (),
        integer: Iterable[str] = (),
        floating: Iterable[str] = (),
        temporal: Iterable[str] = (),
        boolean: Iterable[str] = (),
    ) -> None:
        table: dict[str, type[NullableValue]] = {}
        for tokens, container in (
            (text, NullString),
            (integer, NullInt64),
            (floating, NullFloat64),
            (temporal, NullTime),
            (boolean, NullBool),
        ):
            for token in tokens:
                table[token] = container
        self._table: Mapping[str, type[NullableValue]] = table

    @property
    def tokens(self) -> Mapping[str, type[NullableValue]]:
        return dict(self._table)

    def convert(self, type_name: str) -> NullableValue:
        container = self._table.get(canonical_type_name(type_name), self.fallback)
        return container()
