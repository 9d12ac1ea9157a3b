"""Test configuration and fixtures."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from jsx_change_engine.config.runtime_config import ENV_PREFIX, RuntimeConfig
from jsx_change_engine.core.engine import ChangeSetApplier
from jsx_change_engine.core.models import Language
from jsx_change_engine.core.operations import parse_operation
from jsx_change_engine.core.pipeline import FilePipeline
from jsx_change_engine.handlers.base import EditContext
from jsx_change_engine.handlers.registry import OperationCatalog
from jsx_change_engine.parsing.source_parser import SourceParser

COUNTER_COMPONENT = """\
import React from 'react';

export default function Counter() {
  return <div className="container">Hello</div>;
}
"""

TODO_COMPONENT = """\
import React, { useState } from 'react';

export default function TodoList({ title }) {
  const [items, setItems] = useState([]);
  const [draft, setDraft] = useState('');

  return (
    <div className="todo">
      <h1>{title}</h1>
      <ul>
        {items.map((item) => (
          <li key={item}>{item}</li>
        ))}
      </ul>
      <button onClick={() => setItems([...items, draft])}>Add</button>
    </div>
  );
}
"""


@pytest.fixture
def parser() -> SourceParser:
    """
    Provide a SourceParser without a tree cache.

    Returns:
        SourceParser: A fresh parser instance.
    """
    return SourceParser()


@pytest.fixture
def catalog() -> OperationCatalog:
    """
    Provide the default operation catalog.

    Returns:
        OperationCatalog: Catalog with every built-in handler registered.
    """
    return OperationCatalog()


@pytest.fixture
def pipeline(catalog: OperationCatalog, parser: SourceParser) -> FilePipeline:
    """
    Provide a FilePipeline with binding validation enabled.

    Args:
        catalog: Operation catalog fixture.
        parser: Source parser fixture.

    Returns:
        FilePipeline: Pipeline ready to run FileChanges.
    """
    return FilePipeline(catalog, parser)


@pytest.fixture
def applier() -> ChangeSetApplier:
    """
    Provide a ChangeSetApplier using default configuration with advice disabled.

    Returns:
        ChangeSetApplier: Applier whose results carry no extraction suggestions.
    """
    return ChangeSetApplier(RuntimeConfig.from_defaults().merge_with_cli(extraction_advice=False))


@pytest.fixture
def counter_source() -> str:
    """
    Provide a minimal TSX component with a default React import and no hooks.

    Returns:
        str: Source text of ``Counter``.
    """
    return COUNTER_COMPONENT


@pytest.fixture
def todo_source() -> str:
    """
    Provide a TSX component with state hooks, a list render, and an inline handler.

    Returns:
        str: Source text of ``TodoList``.
    """
    return TODO_COMPONENT


@pytest.fixture
def apply_op(catalog: OperationCatalog, parser: SourceParser) -> Any:  # noqa: ANN401
    """
    Provide a helper that applies one operation payload to source text.

    The helper signature is ``apply_op(text, payload, path="src/App.tsx")`` and it
    returns the handler's EditOutcome. Engine errors propagate as exceptions.

    Args:
        catalog: Operation catalog fixture.
        parser: Source parser fixture.

    Returns:
        Callable applying a single wire payload.
    """

    def apply(text: str, payload: dict[str, Any], path: str = "src/App.tsx") -> Any:  # noqa: ANN401
        context = EditContext(path, text, Language.for_path(path), parser)
        return catalog.apply(context, parse_operation(payload))

    return apply


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """
    Create a workspace with a React component and a stylesheet.

    Args:
        tmp_path: pytest temporary directory.

    Returns:
        Path: Workspace root containing ``src/App.tsx`` and ``src/styles.css``.
    """
    src = tmp_path / "src"
    src.mkdir()
    (src / "App.tsx").write_text(COUNTER_COMPONENT, encoding="utf-8")
    (src / "styles.css").write_text(".container {\n  margin: 0;\n}\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[pytest.MonkeyPatch, None, None]:
    """
    Remove every JCE_ environment variable for the duration of a test.

    Yields:
        pytest.MonkeyPatch: The monkeypatch instance, for setting variables.
    """
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    yield monkeypatch
