"""
Query catalog, template rendering and render context.
"""

from .catalog import FormatQuery, QueryCatalog, StructuredTemplate, TemplateRenderer
from .context import RelationContext, Relationship
from .templates import relation_templates

__all__ = [
    "FormatQuery",
    "QueryCatalog",
    "RelationContext",
    "Relationship",
    "StructuredTemplate",
    "TemplateRenderer",
    "relation_templates",
]
