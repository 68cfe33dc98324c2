"""
Evaluation context and the namespaces expressions resolve names against.
"""

from dataclasses import dataclass, field
from typing import Any

from notebase.errors import EvaluationError
from notebase.expression import functions
from notebase.models import FileProperties


class Namespace:
    """A named scope such as ``file``, ``note`` or ``formula``.

    Expressions can only read members through ``get`` and call the methods a
    namespace explicitly offers through ``call``.
    """

    name = "namespace"

    def get(self, member: str) -> Any:
        return None

    def call(self, method: str, args: list[Any]) -> Any:
        raise EvaluationError(f"Unknown function: {self.name}.{method}()")

    def to_dict(self) -> dict[str, Any]:
        return {}


class MappingNamespace(Namespace):
    """Namespace backed by a plain mapping (the note properties)."""

    def __init__(self, name: str, values: dict[str, Any]):
        self.name = name
        self.values = values

    def get(self, member: str) -> Any:
        return self.values.get(member)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)


class FileNamespace(Namespace):
    """The ``file`` namespace: intrinsic file properties plus predicate functions."""

    name = "file"

    def __init__(self, file: FileProperties, raw_properties: dict[str, Any]):
        self.file = file
        self.raw_properties = raw_properties

    def get(self, member: str) -> Any:
        file = self.file
        if member in ("name", "basename"):
            return file.name
        if member == "path":
            return file.path
        if member == "folder":
            return file.folder
        if member in ("ext", "extension"):
            return file.extension
        if member == "size":
            return file.size
        if member in ("ctime", "createdAt", "created_at"):
            return file.created_at
        if member in ("mtime", "modifiedAt", "modified_at"):
            return file.modified_at
        if member == "tags":
            return list(file.tags)
        if member == "links":
            return list(file.links)
        if member == "link":
            return file.link
        return None

    def call(self, method: str, args: list[Any]) -> Any:
        try:
            if method == "hasTag":
                return functions.has_tag(self.file.tags, *args)
            if method == "inFolder":
                return functions.in_folder(self.file.path, *args)
            if method == "hasLink":
                return functions.has_link(self.file.links, *args)
            if method == "hasProperty":
                return functions.has_property(self.raw_properties, *args)
        except TypeError as e:
            raise EvaluationError(f"Invalid arguments for file.{method}(): {e}", cause=e)
        return super().call(method, args)

    def to_dict(self) -> dict[str, Any]:
        return self.file.to_dict()


@dataclass
class EvaluationContext:
    """Per-document evaluation context, built once per document per query.

    ``frontmatter`` is the raw property map; ``note`` is the same map after
    date coercion. ``formulas`` is attached by the formula engine.
    """

    path: str
    file: FileProperties
    frontmatter: dict[str, Any]
    note: dict[str, Any]
    formulas: Namespace = field(default_factory=Namespace)
    content: str | None = None

    def namespace(self, root: str) -> Namespace | None:
        """Return the namespace for a reserved root name, or None."""
        if root == "file":
            return FileNamespace(self.file, self.frontmatter)
        if root == "note":
            return MappingNamespace("note", self.note)
        if root == "formula":
            return self.formulas
        return None
