"""
Structured template sources shared by the bundled dialects.

Placeholders are produced by the dialect's ``placeholder(position)`` global,
so the same source yields ``$2``, ``?2`` or ``%s`` depending on the catalog.
"""

from __future__ import annotations

from .catalog import StructuredTemplate

_JOINS = (
    "{% for rel in relations %}"
    " LEFT JOIN {{ rel.with_table }}"
    " ON {{ rel.with_table }}.{{ rel.foreign_key }} = _{{ table_name }}.id"
    "{% endfor %}"
)

TABLE_WITH_RELATIONSHIPS_SCHEMA = StructuredTemplate(
    "SELECT * FROM {{ table_name }} AS _{{ table_name }}" + _JOINS + " LIMIT 1"
)

SINGLE_WITH_RELATIONSHIPS = StructuredTemplate(
    "SELECT * FROM {{ table_name }} AS _{{ table_name }}"
    + _JOINS
    + " WHERE _{{ table_name }}.id = {{ placeholder(1) }}"
)

UPDATE_SINGLE = StructuredTemplate(
    "UPDATE {{ table_name }} SET {{ column_names | head }} = {{ placeholder(1) }}"
    "{% for column in column_names | tail %}"
    ", {{ column }} = {{ placeholder(loop.index0 | add2) }}"
    "{% endfor %}"
    " WHERE id = {{ placeholder(column_names | len_plus1) }}"
)


def create_single(*, returning_id: bool) -> StructuredTemplate:
    source = (
        "INSERT INTO {{ table_name }}({{ column_names | head }}"
        "{% for column in column_names | tail %}, {{ column }}{% endfor %})"
        " VALUES({{ placeholder(1) }}"
        "{% for column in column_names | tail %}, {{ placeholder(loop.index0 | add2) }}{% endfor %})"
    )
    if returning_id:
        source += " RETURNING id"
    return StructuredTemplate(source)


def relation_templates(*, returning_id: bool) -> dict[str, StructuredTemplate]:
    return {
        "GetTableWithRelationshipsSchema": TABLE_WITH_RELATIONSHIPS_SCHEMA,
        "GetSingleWithRelationships": SINGLE_WITH_RELATIONSHIPS,
        "UpdateSingle": UPDATE_SINGLE,
        "CreateSingle": create_single(returning_id=returning_id),
    }
