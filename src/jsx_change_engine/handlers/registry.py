"""Operation catalog: maps every operation type to exactly one handler.

The mapping is checked when the catalog is built. A missing or doubly handled
operation type raises immediately instead of surfacing as a runtime lookup
failure on the first payload that uses it.
"""

import logging
from collections.abc import Sequence

from jsx_change_engine.core.exceptions import InvalidOperationError
from jsx_change_engine.core.models import Language
from jsx_change_engine.core.operations import OPERATION_TYPES, Operation
from jsx_change_engine.handlers.base import BaseOperationHandler, EditContext, EditOutcome
from jsx_change_engine.handlers.component import ComponentEditor
from jsx_change_engine.handlers.composite import AuthenticationHandler, TemplateHandler
from jsx_change_engine.handlers.extraction import ExtractionHandler
from jsx_change_engine.handlers.hooks import HookHandler
from jsx_change_engine.handlers.imports import ImportHandler, ImportManager
from jsx_change_engine.handlers.jsx import (
    ClassNameHandler,
    JsxInsertHandler,
    PropHandler,
    WrapHandler,
)
from jsx_change_engine.handlers.textual import TextualHandler

logger = logging.getLogger(__name__)


def default_handlers() -> list[BaseOperationHandler]:
    """Build one instance of every handler, sharing a single ImportManager."""
    imports = ImportManager()
    hooks = HookHandler(ComponentEditor(imports))
    return [
        hooks,
        ImportHandler(imports),
        ClassNameHandler(),
        JsxInsertHandler(),
        PropHandler(),
        WrapHandler(imports),
        TemplateHandler(imports),
        AuthenticationHandler(hooks),
        ExtractionHandler(imports),
        TextualHandler(),
    ]


class OperationCatalog:
    """Dispatch operations to their handlers.

    Example:
        >>> from jsx_change_engine.core.operations import AddState
        >>> catalog = OperationCatalog()
        >>> type(catalog.handler_for(AddState)).__name__
        'HookHandler'
    """

    def __init__(self, handlers: Sequence[BaseOperationHandler] | None = None) -> None:
        """Index ``handlers`` by operation type.

        Raises:
            ValueError: If an operation type has no handler or more than one.
        """
        handlers = list(handlers) if handlers is not None else default_handlers()
        self._by_type: dict[type[Operation], BaseOperationHandler] = {}
        for handler in handlers:
            for op_type in handler.operation_types:
                if op_type in self._by_type:
                    raise ValueError(
                        f"{op_type.__name__} is handled by both "
                        f"{type(self._by_type[op_type]).__name__} and {type(handler).__name__}"
                    )
                self._by_type[op_type] = handler
        missing = [op_type.__name__ for op_type in OPERATION_TYPES if op_type not in self._by_type]
        if missing:
            raise ValueError(f"No handler registered for: {', '.join(missing)}")

    def handler_for(self, op_type: type[Operation]) -> BaseOperationHandler:
        """Return the handler registered for ``op_type``."""
        return self._by_type[op_type]

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Apply one operation to the context's current text.

        Raises:
            InvalidOperationError: If a structural operation targets a plain-text file.
        """
        if operation.structural and context.language is Language.PLAINTEXT:
            raise InvalidOperationError(
                f"{operation.kind} needs a syntax tree; {context.path} is not a TSX/JS/TS file. "
                "Use InsertBefore/InsertAfter/Replace/Delete/Append instead"
            )
        handler = self._by_type[type(operation)]
        logger.debug(f"op {context.op_index}: {operation.describe()} -> {type(handler).__name__}")
        return handler.apply(context, operation)
