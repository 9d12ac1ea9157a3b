"""Unit tests for import merging in jsx_change_engine.handlers.imports."""

from typing import Any

import pytest

from jsx_change_engine.core.exceptions import InvalidOperationError, StructuralConflict
from jsx_change_engine.core.operations import ImportSpec
from jsx_change_engine.handlers.imports import (
    ImportHandler,
    ImportManager,
    render_import,
    split_specifier,
)
from jsx_change_engine.parsing.source_parser import SourceParser

MULTILINE_IMPORT = """\
import {
  Button,
  Card,
} from './ui';

export const Panel = () => <Card />;
"""


class TestRendering:
    """Test import statement rendering helpers."""

    def test_split_specifier(self) -> None:
        assert split_specifier("useState") == ("useState", None)
        assert split_specifier("  default   as   Button ") == ("default", "Button")
        assert split_specifier("x as x") == ("x", None)

    def test_render_side_effect_import(self) -> None:
        assert render_import(ImportSpec("./styles.css"), '"') == 'import "./styles.css";'

    def test_render_named_only(self) -> None:
        spec = ImportSpec("zustand", named_imports=("create",))
        assert render_import(spec) == "import { create } from 'zustand';"


class TestAddImport:
    """Test AddImport merging into existing import lists."""

    def test_extends_default_only_import(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source, {"type": "AddImport", "source": "react", "namedImports": ["useState"]}
        )
        assert outcome.text.startswith("import React, { useState } from 'react';\n")
        assert outcome.summary == "Imported useState from 'react'"

    def test_is_idempotent(self, apply_op: Any, counter_source: str) -> None:
        payload = {"type": "AddImport", "source": "react", "namedImports": ["useState"]}
        once = apply_op(counter_source, payload).text
        twice = apply_op(once, payload)
        assert twice.text == once
        assert twice.summary == "'react' already imported"

    def test_duplicates_in_request_are_merged(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {"type": "AddImport", "source": "react", "namedImports": ["useRef", "useRef"]},
        )
        assert outcome.text.count("useRef") == 1

    def test_extends_multiline_named_clause(self, apply_op: Any, parser: SourceParser) -> None:
        outcome = apply_op(
            MULTILINE_IMPORT, {"type": "AddImport", "source": "./ui", "namedImports": ["Modal"]}
        )
        assert outcome.text.startswith("import {\n  Button,\n  Card,\n  Modal,\n} from './ui';")
        assert not parser.parse(outcome.text).has_errors

    def test_aliased_specifier(self, apply_op: Any) -> None:
        source = "import { a } from './lib';\n"
        outcome = apply_op(
            source, {"type": "AddImport", "source": "./lib", "namedImports": ["b as c"]}
        )
        assert outcome.text == "import { a, b as c } from './lib';\n"

    def test_new_source_goes_after_last_import(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source, {"type": "AddImport", "source": "clsx", "defaultImport": "clsx"}
        )
        assert outcome.text.startswith("import React from 'react';\nimport clsx from 'clsx';\n")

    def test_follows_double_quote_style(self, apply_op: Any) -> None:
        source = 'import React from "react";\n\nexport const A = () => null;\n'
        outcome = apply_op(
            source, {"type": "AddImport", "source": "zustand", "namedImports": ["create"]}
        )
        assert 'import { create } from "zustand";' in outcome.text

    def test_default_added_to_named_import(self, apply_op: Any) -> None:
        source = "import { useState } from 'react';\n"
        outcome = apply_op(
            source, {"type": "AddImport", "source": "react", "defaultImport": "React"}
        )
        assert outcome.text == "import React, { useState } from 'react';\n"

    def test_namespace_import(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source, {"type": "AddImport", "source": "./utils", "namespaceImport": "utils"}
        )
        assert "import * as utils from './utils';" in outcome.text

    def test_side_effect_import_once(self, apply_op: Any, counter_source: str) -> None:
        payload = {"type": "AddImport", "source": "./styles.css"}
        once = apply_op(counter_source, payload).text
        assert "import './styles.css';" in once
        assert apply_op(once, payload).text == once

    def test_inserted_after_directives(self, apply_op: Any) -> None:
        source = "'use client';\n\nexport default function A() {\n  return null;\n}\n"
        outcome = apply_op(
            source, {"type": "AddImport", "source": "react", "namedImports": ["useState"]}
        )
        assert outcome.text.startswith("'use client';\nimport { useState } from 'react';\n\n")

    def test_empty_module(self, apply_op: Any) -> None:
        outcome = apply_op("", {"type": "AddImport", "source": "react", "defaultImport": "React"})
        assert outcome.text == "import React from 'react';\n"

    def test_raw_statement_content(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {"type": "ADD_IMPORT", "content": "import { useEffect } from 'react';"},
        )
        assert outcome.text.startswith("import React, { useEffect } from 'react';")


class TestImportConflicts:
    """Test refusal to create ambiguous bindings."""

    def test_different_default_name(self, apply_op: Any, counter_source: str) -> None:
        with pytest.raises(StructuralConflict, match="already default-imported as 'React'"):
            apply_op(counter_source, {"type": "AddImport", "source": "react", "defaultImport": "R"})

    def test_name_imported_from_other_source(self, apply_op: Any) -> None:
        source = "import { useState } from 'preact/hooks';\n"
        with pytest.raises(StructuralConflict, match="already imported from 'preact/hooks'"):
            apply_op(source, {"type": "AddImport", "source": "react", "namedImports": ["useState"]})

    def test_name_declared_in_module(self, apply_op: Any) -> None:
        source = "function Button() {\n  return null;\n}\n"
        with pytest.raises(StructuralConflict, match="'Button' is already declared"):
            apply_op(source, {"type": "AddImport", "source": "./Button", "defaultImport": "Button"})


class TestParseStatement:
    """Test raw import statement parsing."""

    def test_parses_all_binding_forms(self, parser: SourceParser) -> None:
        spec = ImportHandler.parse_statement(
            parser, "import React, { useState, useEffect as useFx } from 'react';"
        )
        assert spec.source == "react"
        assert spec.default_import == "React"
        assert spec.named_imports == ("useState", "useEffect as useFx")

    def test_rejects_multiple_statements(self, parser: SourceParser) -> None:
        with pytest.raises(InvalidOperationError, match="single import statement"):
            ImportHandler.parse_statement(parser, "import a from 'a';\nimport b from 'b';")

    def test_rejects_non_import(self, parser: SourceParser) -> None:
        with pytest.raises(InvalidOperationError):
            ImportHandler.parse_statement(parser, "const a = 1;")

    def test_rejects_type_only_import(self, parser: SourceParser) -> None:
        with pytest.raises(InvalidOperationError, match="Type-only"):
            ImportHandler.parse_statement(parser, "import type { User } from './types';")


class TestImportManagerMissing:
    """Test reporting of bindings still to be imported."""

    def test_missing_lists_only_new_names(self, parser: SourceParser) -> None:
        tree = parser.parse("import React, { useState } from 'react';\n")
        spec = ImportSpec("react", default_import="React", named_imports=("useState", "useMemo"))
        assert ImportManager().missing(tree, spec) == ["useMemo"]
