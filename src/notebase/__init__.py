"""
notebase - query engine for notes with frontmatter.

Evaluates filter, formula and sort expressions over a collection of documents
and exports the results as CSV, JSON or markdown.
"""

__version__ = "0.1.0"

from notebase.capabilities import (
    CapabilityProvider,
    CapabilityStatus,
    ObsidianPluginCapabilities,
    StaticCapabilities,
)
from notebase.config import NotebaseConfig
from notebase.definition import (
    QueryDefinition,
    SortKey,
    ViewDefinition,
    load_query_definition,
    load_query_file,
)
from notebase.errors import (
    EvaluationError,
    ExpressionSyntaxError,
    NotebaseError,
    ParseError,
    QueryCancelledError,
    ResolutionError,
    StoreError,
)
from notebase.export import ExportFormatter
from notebase.filters import FilterEvaluator
from notebase.formula import FormulaEngine
from notebase.models import (
    Document,
    EvaluatedDocument,
    FileProperties,
    MetadataCache,
    QueryOptions,
    ResultSet,
)
from notebase.pipeline import QueryPipeline
from notebase.resolver import build_context, resolve_file_properties
from notebase.store import DocumentStore, FileSystemDocumentStore, InMemoryDocumentStore

__all__ = [
    "__version__",
    # Capabilities
    "CapabilityProvider",
    "CapabilityStatus",
    "ObsidianPluginCapabilities",
    "StaticCapabilities",
    # Config
    "NotebaseConfig",
    # Definitions
    "QueryDefinition",
    "SortKey",
    "ViewDefinition",
    "load_query_definition",
    "load_query_file",
    # Errors
    "EvaluationError",
    "ExpressionSyntaxError",
    "NotebaseError",
    "ParseError",
    "QueryCancelledError",
    "ResolutionError",
    "StoreError",
    # Engine
    "ExportFormatter",
    "FilterEvaluator",
    "FormulaEngine",
    "QueryPipeline",
    "build_context",
    "resolve_file_properties",
    # Models
    "Document",
    "EvaluatedDocument",
    "FileProperties",
    "MetadataCache",
    "QueryOptions",
    "ResultSet",
    # Stores
    "DocumentStore",
    "FileSystemDocumentStore",
    "InMemoryDocumentStore",
]
