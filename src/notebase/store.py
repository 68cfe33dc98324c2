"""
Document store collaborators.

The query pipeline only talks to the ``DocumentStore`` protocol. Two adapters
ship with the package: an in-memory store for tests and embedding hosts, and a
filesystem store over a vault of markdown files.
"""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol

import aiofiles
import frontmatter
import yaml
from loguru import logger

from notebase.errors import StoreError
from notebase.models import Document, MetadataCache

# Inline #tags; the tag must not be preceded by a word character, '#' or '/'
INLINE_TAG_PATTERN = re.compile(r"(?<![\w#/&])#([^\s#\[\](){},.;:!?\"'`]+)")
# [[target]], [[target|alias]], [[target#heading]]
WIKI_LINK_PATTERN = re.compile(r"\[\[([^\]|#]+)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]")
FENCED_CODE_PATTERN = re.compile(r"```.*?```", re.DOTALL)


class DocumentStore(Protocol):
    """Contract for the external document store."""

    async def list_documents(self) -> list[Document]:
        """Enumerate every document. Raises StoreError when enumeration fails."""
        ...

    async def read(self, document: Document) -> str:
        """Read the body of a document. Raises StoreError if it cannot be read."""
        ...

    async def get_metadata(self, document: Document) -> Optional[MetadataCache]:
        """Return the metadata cache snapshot, or None when absent."""
        ...


def _tag(value: Any) -> str:
    text = str(value).strip()
    return text if text.startswith("#") else f"#{text}"


def frontmatter_tags(properties: dict[str, Any]) -> list[str]:
    """Tags declared in frontmatter (``tags`` or ``tag``), as a list or a comma/space separated string."""
    raw = properties.get("tags", properties.get("tag"))
    if raw is None:
        return []
    if isinstance(raw, str):
        values = [part for part in re.split(r"[,\s]+", raw) if part]
    elif isinstance(raw, list):
        values = [item for item in raw if item is not None and str(item).strip()]
    else:
        values = [raw]
    return [_tag(value) for value in values]


def extract_metadata(properties: dict[str, Any], body: str) -> MetadataCache:
    """Derive tags and links from frontmatter and body text.

    Tags keep their leading '#' and are de-duplicated in order of appearance.
    """
    text = FENCED_CODE_PATTERN.sub("", body or "")

    tags: list[str] = []
    for tag in frontmatter_tags(properties) + [f"#{m}" for m in INLINE_TAG_PATTERN.findall(text)]:
        if tag not in tags:
            tags.append(tag)

    links: list[str] = []
    for match in WIKI_LINK_PATTERN.findall(text):
        target = match.strip()
        if target and target not in links:
            links.append(target)

    return MetadataCache(tags=tags, links=links)


def split_frontmatter(text: str, path: str = "") -> tuple[dict[str, Any], str]:
    """Split a markdown file into frontmatter properties and body.

    Invalid frontmatter is logged and treated as absent.
    """
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError) as e:
        logger.warning(f"Invalid frontmatter in {path}: {e}")
        return {}, text
    metadata = post.metadata
    if not isinstance(metadata, dict):
        return {}, post.content
    return dict(metadata), post.content


class InMemoryDocumentStore:
    """Document store held in memory."""

    def __init__(self):
        self._documents: dict[str, Document] = {}
        self._contents: dict[str, str] = {}
        self._metadata: dict[str, MetadataCache] = {}

    def add(
        self,
        path: str,
        properties: Optional[dict[str, Any]] = None,
        content: str = "",
        tags: Optional[list[str]] = None,
        links: Optional[list[str]] = None,
        size: Optional[int] = None,
        created_at: Optional[datetime] = None,
        modified_at: Optional[datetime] = None,
    ) -> Document:
        """Add or replace a document. Metadata is stored only when tags or links are given."""
        document = Document(
            path=path,
            size=len(content.encode("utf-8")) if size is None else size,
            created_at=created_at,
            modified_at=modified_at,
            properties=dict(properties or {}),
        )
        self._documents[path] = document
        self._contents[path] = content
        if tags is not None or links is not None:
            self._metadata[path] = MetadataCache(tags=list(tags or []), links=list(links or []))
        else:
            self._metadata.pop(path, None)
        return document

    def remove(self, path: str) -> None:
        self._documents.pop(path, None)
        self._contents.pop(path, None)
        self._metadata.pop(path, None)

    async def list_documents(self) -> list[Document]:
        return list(self._documents.values())

    async def read(self, document: Document) -> str:
        if document.path not in self._contents:
            raise StoreError(f"Document not found: {document.path}", path=document.path)
        return self._contents[document.path]

    async def get_metadata(self, document: Document) -> Optional[MetadataCache]:
        return self._metadata.get(document.path)


class FileSystemDocumentStore:
    """Document store over a directory of markdown files.

    Paths are POSIX paths relative to the root. Folders starting with '.' are skipped.
    """

    def __init__(self, root: str | Path, extensions: tuple[str, ...] | list[str] = ("md",)):
        self.root = Path(root).expanduser()
        self.extensions = tuple(ext.lower().lstrip(".") for ext in extensions)
        self._metadata: dict[str, MetadataCache] = {}

    def _absolute(self, document: Document) -> Path:
        return self.root / document.path

    def _scan(self) -> list[Path]:
        if not self.root.is_dir():
            raise StoreError(f"Vault directory not found: {self.root}", path=str(self.root))

        found: list[Path] = []
        try:
            for current, dirs, filenames in os.walk(self.root):
                dirs[:] = sorted(d for d in dirs if not d.startswith("."))
                for filename in sorted(filenames):
                    if filename.startswith("."):
                        continue
                    if filename.rsplit(".", 1)[-1].lower() not in self.extensions:
                        continue
                    found.append(Path(current) / filename)
        except OSError as e:
            raise StoreError(f"Failed to list documents in {self.root}: {e}", path=str(self.root))
        return found

    async def _read_text(self, file_path: Path) -> str:
        async with aiofiles.open(file_path, mode="r", encoding="utf-8") as f:
            return await f.read()

    async def list_documents(self) -> list[Document]:
        documents: list[Document] = []
        self._metadata.clear()

        for file_path in self._scan():
            relative = file_path.relative_to(self.root).as_posix()
            try:
                stat = file_path.stat()
                text = await self._read_text(file_path)
            except (OSError, UnicodeDecodeError) as e:
                # vanished or unreadable between scan and read
                logger.warning(f"Skipping unreadable document {relative}: {e}")
                continue

            properties, body = split_frontmatter(text, relative)
            self._metadata[relative] = extract_metadata(properties, body)
            documents.append(
                Document(
                    path=relative,
                    size=stat.st_size,
                    created_at=datetime.fromtimestamp(stat.st_ctime),
                    modified_at=datetime.fromtimestamp(stat.st_mtime),
                    properties=properties,
                )
            )

        logger.debug(f"Listed {len(documents)} documents in {self.root}")
        return documents

    async def read(self, document: Document) -> str:
        """Read the document body without its frontmatter."""
        try:
            text = await self._read_text(self._absolute(document))
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(f"Failed to read {document.path}: {e}", path=document.path) from e
        _, body = split_frontmatter(text, document.path)
        return body

    async def get_metadata(self, document: Document) -> Optional[MetadataCache]:
        if document.path in self._metadata:
            return self._metadata[document.path]
        try:
            text = await self._read_text(self._absolute(document))
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(f"Failed to read {document.path}: {e}", path=document.path) from e
        properties, body = split_frontmatter(text, document.path)
        metadata = extract_metadata(properties, body)
        self._metadata[document.path] = metadata
        return metadata
