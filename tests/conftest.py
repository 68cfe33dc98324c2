"""Common test fixtures."""

from datetime import datetime

import pytest

from notebase.config import NotebaseConfig
from notebase.definition import QueryDefinition
from notebase.models import Document, MetadataCache
from notebase.resolver import build_context
from notebase.store import InMemoryDocumentStore


@pytest.fixture
def config() -> NotebaseConfig:
    return NotebaseConfig()


@pytest.fixture
def project_document() -> Document:
    """A project note with typical frontmatter."""
    return Document(
        path="projects/Alpha.md",
        size=120,
        created_at=datetime(2026, 1, 1, 9, 30),
        modified_at=datetime(2026, 1, 10, 18, 0),
        properties={
            "status": "active",
            "priority": 1,
            "progress": "40",
            "tags": ["project", "dev"],
            "due": "2026-01-15",
            "owner": {"name": "Sam", "team": "core"},
            "done": False,
        },
    )


@pytest.fixture
def project_metadata() -> MetadataCache:
    return MetadataCache(tags=["#project", "#dev"], links=["Roadmap", "people/Sam"])


@pytest.fixture
def note_context(project_document, project_metadata, config):
    """Evaluation context for the project note."""
    return build_context(project_document, project_metadata, config)


@pytest.fixture
def empty_context(config):
    """Context for a note without frontmatter or metadata."""
    return build_context(Document(path="Inbox.md"), None, config)


@pytest.fixture
def task_store() -> InMemoryDocumentStore:
    """Three task notes with status and priority."""
    store = InMemoryDocumentStore()
    store.add("tasks/a.md", {"status": "done", "priority": 3}, content="Task A", tags=["#task"])
    store.add("tasks/b.md", {"status": "open", "priority": 1}, content="Task B", tags=["#task"])
    store.add(
        "tasks/c.md",
        {"status": "open", "priority": 5},
        content="Task C",
        tags=["#task", "#urgent"],
    )
    return store


@pytest.fixture
def task_query() -> QueryDefinition:
    return QueryDefinition.from_dict(
        {
            "formulas": {"double": "number(note.priority) * 2"},
            "views": [
                {
                    "type": "table",
                    "name": "Open",
                    "filters": 'status == "open"',
                    "order": ["priority desc"],
                },
                {"type": "table", "name": "All", "order": ["priority"]},
                {"type": "list", "name": "Top", "order": ["priority desc"], "limit": 1},
            ],
        }
    )
