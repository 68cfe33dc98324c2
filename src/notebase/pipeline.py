"""
Query pipeline.

One linear pass per call: enumerate documents, build a context per document,
filter (global, then view), sort, count, limit, paginate, project.
"""

import asyncio
import time
from functools import cmp_to_key
from typing import Any, Optional

from loguru import logger

from notebase.config import NotebaseConfig
from notebase.definition import QueryDefinition, SortKey
from notebase.errors import EvaluationError, QueryCancelledError, StoreError
from notebase.export import ExportFormatter
from notebase.expression.context import EvaluationContext
from notebase.expression.evaluator import ExpressionEvaluator
from notebase.expression.values import compare_for_sort
from notebase.filters import FilterEvaluator
from notebase.formula import FormulaEngine
from notebase.models import Document, EvaluatedDocument, MetadataCache, QueryOptions, ResultSet
from notebase.resolver import build_context
from notebase.store import DocumentStore

DEFAULT_PAGE_SIZE = 50


class QueryPipeline:
    """Runs query definitions against a document store."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[NotebaseConfig] = None,
        formula_engine: Optional[FormulaEngine] = None,
    ):
        self.store = store
        self.config = config or NotebaseConfig()
        self.formula_engine = formula_engine or FormulaEngine()
        self.filter_evaluator = FilterEvaluator()

    async def run(
        self,
        query: QueryDefinition,
        view_name: Optional[str] = None,
        options: Optional[QueryOptions] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ResultSet:
        """
        Run a query.

        Args:
            query: Parsed query definition
            view_name: View to apply; without one only the global filters apply
            options: Pagination, content and projection overrides
            cancel_event: Checked between documents; when set the run is cancelled

        Returns:
            ResultSet with total counted before limit and pagination

        Raises:
            ResolutionError: If the view does not exist
            StoreError: If the documents cannot be enumerated
            QueryCancelledError: If cancel_event was set during the run
        """
        options = options or QueryOptions()
        view = query.get_view(view_name) if view_name is not None else None
        start_time = time.perf_counter()

        if self.config.formula_cache_scope == "query":
            self.formula_engine.clear()

        include_content = options.include_content
        if include_content is None:
            include_content = view.include_content if view else False

        try:
            documents = await self.store.list_documents()
        except StoreError as e:
            logger.error(f"Failed to enumerate documents: {e}")
            raise
        except OSError as e:
            logger.error(f"Failed to enumerate documents: {e}")
            raise StoreError(f"Failed to enumerate documents: {e}") from e

        extensions = {ext.lower().lstrip(".") for ext in self.config.content_extensions}
        matched: list[tuple[Document, EvaluationContext, Optional[str]]] = []
        skipped = 0

        for index, document in enumerate(documents):
            if cancel_event is not None and cancel_event.is_set():
                raise QueryCancelledError(
                    f"Query cancelled after {index} of {len(documents)} documents"
                )
            if index and index % self.config.yield_every == 0:
                await asyncio.sleep(0)

            if document.extension.lower() not in extensions:
                continue

            # A document that vanished since enumeration is skipped, not matched
            try:
                content = await self.store.read(document)
            except StoreError as e:
                logger.warning(f"Skipping document {document.path}: {e}")
                skipped += 1
                continue
            if content is None:
                logger.warning(f"Skipping document {document.path}: no content")
                skipped += 1
                continue
            if not include_content:
                content = None

            metadata = await self._get_metadata(document)
            context = build_context(document, metadata, self.config, content)
            self.formula_engine.attach(query.formulas, context)

            if not self.filter_evaluator.matches(query.filters, context):
                continue
            if view and not self.filter_evaluator.matches(view.filters, context):
                continue
            matched.append((document, context, content))

        if view and view.order:
            matched = self.sort(matched, view.order)

        total = len(matched)
        if view and view.limit is not None:
            matched = matched[: view.limit]

        page = page_size = None
        has_more = False
        if options.page is not None or options.page_size is not None:
            page = options.page or 1
            page_size = options.page_size or DEFAULT_PAGE_SIZE
            start = (page - 1) * page_size
            has_more = start + page_size < len(matched)
            matched = matched[start : start + page_size]

        columns = options.properties or (view.columns if view else None)
        results = tuple(
            self._evaluated_document(document, context, content if include_content else None, columns)
            for document, context, content in matched
        )

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(
            f"Query {view.name if view else '<global>'}: {total} matched, "
            f"{len(results)} returned, {skipped} skipped in {duration_ms}ms"
        )

        return ResultSet(
            documents=results,
            total=total,
            view=view,
            page=page,
            page_size=page_size,
            has_more=has_more,
            skipped=skipped,
        )

    async def export(
        self,
        query: QueryDefinition,
        view_name: Optional[str] = None,
        format: str = "csv",
        options: Optional[QueryOptions] = None,
    ) -> str:
        """Run a query and format the result set."""
        result_set = await self.run(query, view_name, options)
        columns = (options.properties if options else None) or (
            result_set.view.columns if result_set.view else None
        )
        return ExportFormatter.export(result_set, format, columns)

    def invalidate(self, path: str) -> None:
        """Forward a document change to the formula cache."""
        self.formula_engine.clear_for_document(path)

    async def _get_metadata(self, document: Document) -> Optional[MetadataCache]:
        try:
            return await self.store.get_metadata(document)
        except StoreError as e:
            logger.debug(f"Metadata unavailable for {document.path}: {e}")
            return None

    @staticmethod
    def sort(
        items: list[tuple[Document, EvaluationContext, Optional[str]]], order: list[SortKey]
    ) -> list[tuple[Document, EvaluationContext, Optional[str]]]:
        """Stable multi-key sort. Nulls sort last on every key regardless of direction."""
        evaluators = {id(context): ExpressionEvaluator(context) for _, context, _ in items}

        def value_of(item, path: str) -> Any:
            try:
                return evaluators[id(item[1])].resolve_path(path)
            except EvaluationError as e:
                logger.debug(f"Sort key {path!r} failed for {item[0].path}: {e}")
                return None

        result = list(items)
        # last key first, relying on sort stability
        for key in reversed(order):
            keyed = [(value_of(item, key.path), item) for item in result]
            present = [pair for pair in keyed if pair[0] is not None]
            missing = [pair for pair in keyed if pair[0] is None]
            present.sort(
                key=cmp_to_key(lambda a, b: compare_for_sort(a[0], b[0])),
                reverse=key.descending,
            )
            result = [item for _, item in present + missing]
        return result

    def _evaluated_document(
        self,
        document: Document,
        context: EvaluationContext,
        content: Optional[str],
        columns: Optional[list[str]],
    ) -> EvaluatedDocument:
        formulas = context.formulas.to_dict()
        if columns:
            evaluator = ExpressionEvaluator(context)
            properties = {column: self._project(evaluator, column) for column in columns}
        else:
            properties = dict(context.note)
            properties.update({f"file.{key}": value for key, value in context.file.to_dict().items()})
            properties.update({f"formula.{name}": value for name, value in formulas.items()})

        return EvaluatedDocument(
            path=document.path,
            name=document.name,
            properties=properties,
            frontmatter=dict(context.frontmatter),
            file=context.file,
            formulas=formulas,
            content=content,
        )

    @staticmethod
    def _project(evaluator: ExpressionEvaluator, column: str) -> Any:
        try:
            return evaluator.resolve_path(column)
        except EvaluationError as e:
            logger.debug(f"Projection of {column!r} failed for {evaluator.context.path}: {e}")
            return None
