"""
Render context passed to structured query templates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(frozen=True)
class Relationship:
    """
    A foreign-key join from ``with_table`` back to the primary table's ``id``.
    """

    with_table: str
    foreign_key: str

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Relationship":
        return cls(with_table=data["withTable"], foreign_key=data["foreignKey"])


@dataclass(frozen=True)
class RelationContext:
    """
    Table name, ordered column names and relationships for one render call.

    The first column is bound to placeholder 1, the rest follow in order.
    """

    table_name: str
    column_names: tuple[str, ...] = ()
    relations: tuple[Relationship, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "column_names", tuple(self.column_names))
        object.__setattr__(self, "relations", tuple(self.relations))

    @classmethod
    def build(
        cls,
        table_name: str,
        column_names: Iterable[str] = (),
        relations: Iterable[Relationship] = (),
    ) -> "RelationContext":
        return cls(table_name, tuple(column_names), tuple(relations))

    def as_template_vars(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "column_names": self.column_names,
            "relations": self.relations,
        }
