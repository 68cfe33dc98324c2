"""
Data model for documents, evaluation results and result sets.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Optional

from notebase.definition import ViewDefinition


@dataclass(frozen=True)
class Document:
    """A queryable document handle owned by the document store.

    ``properties`` is the frontmatter-equivalent key/value map.
    """

    path: str
    size: int = 0
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """File name without extension."""
        return PurePosixPath(self.path).stem

    @property
    def folder(self) -> str:
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lstrip(".")


@dataclass(frozen=True)
class MetadataCache:
    """Derived metadata snapshot for one document. Tags keep their leading '#'."""

    tags: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FileProperties:
    """File-intrinsic properties exposed under the ``file`` namespace."""

    name: str
    path: str
    folder: str
    extension: str
    size: int
    created_at: Optional[datetime]
    modified_at: Optional[datetime]
    tags: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)

    @property
    def link(self) -> str:
        return f"[[{self.name}]]"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "folder": self.folder,
            "ext": self.extension,
            "size": self.size,
            "ctime": self.created_at,
            "mtime": self.modified_at,
            "tags": list(self.tags),
            "links": list(self.links),
        }


@dataclass(frozen=True)
class EvaluatedDocument:
    """A document after filtering, with its merged property namespace."""

    path: str
    name: str
    properties: dict[str, Any]
    frontmatter: dict[str, Any]
    file: FileProperties
    formulas: dict[str, Any] = field(default_factory=dict)
    content: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "name": self.name,
            "properties": dict(self.properties),
        }
        if self.content is not None:
            data["content"] = self.content
        return data


@dataclass(frozen=True)
class QueryOptions:
    """Per-call options layered on top of a view definition."""

    page: Optional[int] = None
    page_size: Optional[int] = None
    include_content: Optional[bool] = None
    properties: Optional[list[str]] = None

    def __post_init__(self):
        if self.page is not None and self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size is not None and self.page_size < 1:
            raise ValueError("page_size must be >= 1")


@dataclass(frozen=True)
class ResultSet:
    """Result of one query run.

    ``total`` counts every document that passed the filters, before limit and pagination.
    """

    documents: tuple[EvaluatedDocument, ...]
    total: int
    view: Optional[ViewDefinition] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    has_more: bool = False
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.documents)

    def __repr__(self) -> str:
        parts = [f"ResultSet(documents={len(self.documents)}", f"total={self.total}"]
        if self.view:
            parts.append(f"view={self.view.name!r}")
        if self.page:
            parts.append(f"page={self.page}")
        if self.skipped:
            parts.append(f"skipped={self.skipped}")
        return ", ".join(parts) + ")"
