"""
Property resolver.

Builds the ``file`` namespace from a document and its metadata cache, and the
per-document evaluation context with date-like properties coerced to dates.
"""

from typing import Any, Optional

from notebase.config import NotebaseConfig
from notebase.expression.context import EvaluationContext
from notebase.expression.values import coerce_property_value
from notebase.models import Document, FileProperties, MetadataCache


def resolve_file_properties(
    document: Document, metadata: Optional[MetadataCache] = None
) -> FileProperties:
    """
    Resolve file-intrinsic properties. Pure and total.

    Args:
        document: Document handle from the store
        metadata: Metadata cache snapshot, or None when absent

    Returns:
        FileProperties with empty tags/links when metadata is absent
    """
    return FileProperties(
        name=document.name,
        path=document.path,
        folder=document.folder,
        extension=document.extension,
        size=document.size,
        created_at=document.created_at,
        modified_at=document.modified_at,
        tags=list(metadata.tags) if metadata and metadata.tags else [],
        links=list(metadata.links) if metadata and metadata.links else [],
    )


def coerce_properties(properties: dict[str, Any], config: NotebaseConfig) -> dict[str, Any]:
    """Apply the date-coercion heuristic to a raw property map."""
    return {
        name: coerce_property_value(name, value, config.is_date_property)
        for name, value in properties.items()
    }


def build_context(
    document: Document,
    metadata: Optional[MetadataCache] = None,
    config: Optional[NotebaseConfig] = None,
    content: Optional[str] = None,
) -> EvaluationContext:
    """Build the evaluation context for one document.

    The formula namespace is attached afterwards by the formula engine.
    """
    config = config or NotebaseConfig()
    raw = dict(document.properties or {})
    return EvaluationContext(
        path=document.path,
        file=resolve_file_properties(document, metadata),
        frontmatter=raw,
        note=coerce_properties(raw, config),
        content=content,
    )
