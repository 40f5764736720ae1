"""
Per-dialect query catalog and template rendering.

A catalog maps operation names to either a ``FormatQuery`` (positional ``{}``
slots filled by plain interpolation) or a ``StructuredTemplate`` (jinja2 source
rendered against a ``RelationContext``). Catalog defects are configuration
errors and surface as ``TemplateConfigurationError``.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from jinja2 import BaseLoader, Environment, StrictUndefined, Template, TemplateError

from ..core.errors import TemplateConfigurationError
from ..utils import get_logger
from .context import RelationContext, Relationship

PlaceholderFn = Callable[[int], str]

_PROBE_CONTEXT = RelationContext(
    table_name="probe",
    column_names=("first_column", "second_column"),
    relations=(Relationship(with_table="probe_child", foreign_key="probe_id"),),
)


def head(column_names: Sequence[str]) -> str:
    if not column_names:
        raise TemplateConfigurationError("Template requires at least one column")
    return column_names[0]


def tail(column_names: Sequence[str]) -> list[str]:
    return list(column_names[1:])


def add2(index: int) -> int:
    """
    Placeholder position of the tail column at 0-based ``index``; position 1 belongs to the head.
    """

    return index + 2


def len_plus1(column_names: Sequence[str]) -> int:
    return len(column_names) + 1


@dataclass(frozen=True)
class FormatQuery:
    source: str

    @property
    def slot_count(self) -> int:
        count = 0
        for _, field_name, _, _ in string.Formatter().parse(self.source):
            if field_name is None:
                continue
            if field_name != "":
                raise TemplateConfigurationError(
                    f"Format query uses a named or numbered slot {{{field_name}}}: {self.source!r}"
                )
            count += 1
        return count

    def format(self, *args: Any) -> str:
        expected = self.slot_count
        if len(args) != expected:
            raise TemplateConfigurationError(
                f"Format query expects {expected} arguments, received {len(args)}: {self.source!r}"
            )
        return self.source.format(*args)


@dataclass(frozen=True)
class StructuredTemplate:
    source: str


class TemplateRenderer:
    """
    jinja2 environment carrying the column/placeholder helpers for one dialect.
    """

    def __init__(self, placeholder: PlaceholderFn) -> None:
        self.env = Environment(
            loader=BaseLoader(),
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=False,
        )
        self.env.filters["head"] = head
        self.env.filters["tail"] = tail
        self.env.filters["add2"] = add2
        self.env.filters["len_plus1"] = len_plus1
        self.env.globals["placeholder"] = placeholder

    def compile(self, name: str, template: StructuredTemplate) -> Template:
        try:
            return self.env.from_string(template.source)
        except TemplateError as exc:
            raise TemplateConfigurationError(f"Template '{name}' does not compile: {exc}") from exc

    @staticmethod
    def render(name: str, compiled: Template, context: RelationContext) -> str:
        try:
            return compiled.render(**context.as_template_vars())
        except TemplateConfigurationError:
            raise
        except (TemplateError, TypeError, ValueError, IndexError) as exc:
            raise TemplateConfigurationError(
                f"Template '{name}' failed to render for table '{context.table_name}': {exc}"
            ) from exc


class QueryCatalog:
    """
    Immutable operation-name to query mapping for a dialect.

    Every structured template is compiled and rendered once against a probe
    context on construction, so a broken catalog fails at startup.
    """

    def __init__(
        self,
        dialect_name: str,
        entries: Mapping[str, FormatQuery | StructuredTemplate],
        *,
        placeholder: PlaceholderFn,
    ) -> None:
        self.dialect_name = dialect_name
        self._entries = MappingProxyType(dict(entries))
        self._renderer = TemplateRenderer(placeholder)
        self._compiled: Mapping[str, Template] = MappingProxyType(
            {
                name: self._renderer.compile(name, entry)
                for name, entry in self._entries.items()
                if isinstance(entry, StructuredTemplate)
            }
        )
        self.logger = get_logger("query.catalog")
        self.validate()

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def entry(self, name: str) -> FormatQuery | StructuredTemplate:
        try:
            return self._entries[name]
        except KeyError:
            raise TemplateConfigurationError(
                f"Unknown operation '{name}' for dialect '{self.dialect_name}'"
            ) from None

    def format(self, name: str, *args: Any) -> str:
        entry = self.entry(name)
        if not isinstance(entry, FormatQuery):
            raise TemplateConfigurationError(
                f"Operation '{name}' is a structured template; use render()"
            )
        return entry.format(*args)

    def render(self, name: str, context: RelationContext) -> str:
        entry = self.entry(name)
        if not isinstance(entry, StructuredTemplate):
            raise TemplateConfigurationError(f"Operation '{name}' is a format query; use format()")
        return self._renderer.render(name, self._compiled[name], context)

    def validate(self) -> None:
        for name, entry in self._entries.items():
            if isinstance(entry, FormatQuery):
                # raises on named or numbered slots
                entry.slot_count
            else:
                self._renderer.render(name, self._compiled[name], _PROBE_CONTEXT)
        self.logger.debug(
            "Validated %s catalog entries for %s", len(self._entries), self.dialect_name
        )
