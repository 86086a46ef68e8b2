"""Tests for the import extractor."""

from pathlib import Path

from importsniff.analysis.extractor import extract_imports
from importsniff.models.imports import Binding, ImportKind


def records(source: str, path: str = "app.ts"):
    return extract_imports(source, Path(path)).records


def names(record) -> list[str]:
    return [b.local_name for b in record.bindings]


class TestStaticImports:
    """Tests for ES module import statements."""

    def test_default_import(self):
        """Should extract a default import."""
        (record,) = records("import React from 'react';")

        assert record.kind is ImportKind.DEFAULT
        assert record.specifier == "react"
        assert record.bindings == (Binding("React"),)
        assert record.line == 1
        assert record.statement == "import React from 'react';"

    def test_named_import_with_alias(self):
        """Should keep the imported name and its alias."""
        (record,) = records("import { a, b as c } from './mod'")

        assert record.kind is ImportKind.NAMED
        assert record.bindings == (Binding("a"), Binding("b", "c"))
        assert names(record) == ["a", "c"]

    def test_namespace_import(self):
        """Should extract a namespace import."""
        (record,) = records("import * as utils from './utils';")

        assert record.kind is ImportKind.NAMESPACE
        assert names(record) == ["utils"]

    def test_default_and_named(self):
        """Should combine default and named bindings in one record."""
        (record,) = records("import React, { useState, useEffect } from 'react';")

        assert record.kind is ImportKind.DEFAULT
        assert names(record) == ["React", "useState", "useEffect"]

    def test_multiline_with_comments(self):
        """Multi-line lists and trailing comments should not truncate the record."""
        source = (
            "import {\n"
            "  first, // the first one\n"
            "  second as other, /* block */\n"
            "  third,\n"
            "} from './lib'; // trailing\n"
            "const x = 1;\n"
        )
        (record,) = records(source)

        assert record.specifier == "./lib"
        assert names(record) == ["first", "other", "third"]
        assert record.line == 1
        assert record.statement.endswith("from './lib';")

    def test_side_effect_import(self):
        """Side-effect imports should carry no bindings."""
        (record,) = records("import './styles.css';")

        assert record.kind is ImportKind.SIDE_EFFECT
        assert record.specifier == "./styles.css"
        assert record.bindings == ()
        assert not record.introduces_bindings

    def test_import_attributes(self):
        """Should include import attributes in the statement."""
        (record,) = records("import data from './data.json' with { type: 'json' };")

        assert record.specifier == "./data.json"
        assert record.statement.endswith("};")

    def test_records_in_source_order(self):
        """Should return records ordered by position."""
        source = "import b from './b';\nimport a from './a';\nconst c = require('./c');\n"

        assert [r.specifier for r in records(source, "app.js")] == ["./b", "./a", "./c"]
        assert [r.line for r in records(source, "app.js")] == [1, 2, 3]


class TestTypeImports:
    """Tests for TypeScript type-only imports."""

    def test_import_type(self):
        """Should mark every binding of 'import type' as a type."""
        (record,) = records("import type { Props, State } from './types';")

        assert record.kind is ImportKind.TYPE_ONLY
        assert all(b.is_type for b in record.bindings)
        assert names(record) == ["Props", "State"]

    def test_import_type_default(self):
        """Should handle 'import type X from'."""
        (record,) = records("import type Config from './config';")

        assert record.kind is ImportKind.TYPE_ONLY
        assert names(record) == ["Config"]

    def test_inline_type_modifier(self):
        """Should mark only the bindings carrying an inline 'type'."""
        (record,) = records("import { type Foo, Bar } from './types';")

        assert record.kind is ImportKind.NAMED
        assert record.bindings == (Binding("Foo", is_type=True), Binding("Bar"))

    def test_binding_named_type(self):
        """A default import called 'type' is not a modifier."""
        (record,) = records("import type from './type';")

        assert record.kind is ImportKind.DEFAULT
        assert names(record) == ["type"]


class TestDynamicImports:
    """Tests for dynamic import() calls."""

    def test_literal_dynamic_import(self):
        """Should extract the specifier of import('...')."""
        (record,) = records("const mod = await import('./lazy');")

        assert record.kind is ImportKind.DYNAMIC
        assert record.specifier == "./lazy"
        assert record.bindings == ()

    def test_non_literal_dynamic_import(self):
        """Non-literal arguments should leave the specifier empty."""
        (record,) = records("const mod = await import(pathFor(name));")

        assert record.kind is ImportKind.DYNAMIC
        assert record.specifier is None

    def test_import_meta_ignored(self):
        """import.meta is not an import."""
        assert records("console.log(import.meta.url);") == ()


class TestCommonJS:
    """Tests for require() and import = require()."""

    def test_require_declaration(self):
        """Should extract 'const x = require()' as a default import."""
        (record,) = records("const fs = require('fs');", "app.js")

        assert record.kind is ImportKind.DEFAULT
        assert record.commonjs
        assert record.specifier == "fs"
        assert names(record) == ["fs"]
        assert record.statement == "const fs = require('fs');"

    def test_destructured_require(self):
        """Should extract destructured names and renames."""
        (record,) = records("const { readFile, join: j } = require('path');", "app.js")

        assert record.kind is ImportKind.NAMED
        assert record.bindings == (Binding("readFile"), Binding("join", "j"))

    def test_bare_require(self):
        """A bare require call is a side-effect import."""
        (record,) = records("require('./polyfills');", "app.js")

        assert record.kind is ImportKind.SIDE_EFFECT
        assert record.commonjs

    def test_require_in_expression(self):
        """A require used inline introduces no binding."""
        (record,) = records("app.use(require('cors')());", "app.js")

        assert record.kind is ImportKind.DYNAMIC
        assert record.specifier == "cors"

    def test_import_equals_require(self):
        """Should handle TypeScript 'import x = require()'."""
        (record,) = records("import fs = require('fs');")

        assert record.kind is ImportKind.DEFAULT
        assert record.commonjs
        assert names(record) == ["fs"]

    def test_member_require_ignored(self):
        """obj.require() is not a module import."""
        assert records("loader.require('x');", "app.js") == ()


class TestReExports:
    """Tests for export ... from statements."""

    def test_named_re_export(self):
        """Should extract re-exported names."""
        (record,) = records("export { Button, Card as Tile } from './components';")

        assert record.kind is ImportKind.RE_EXPORT
        assert record.specifier == "./components"
        assert record.bindings == (Binding("Button"), Binding("Card", "Tile"))

    def test_star_re_export(self):
        """Should extract 'export * from'."""
        (record,) = records("export * from './utils';")

        assert record.kind is ImportKind.RE_EXPORT
        assert record.bindings == ()

    def test_namespace_re_export(self):
        """Should extract 'export * as ns from'."""
        (record,) = records("export * as helpers from './helpers';")

        assert names(record) == ["helpers"]

    def test_local_export_is_not_a_record(self):
        """export { x } without 'from' re-exports nothing."""
        assert records("const x = 1;\nexport { x };") == ()

    def test_re_exports_stay_in_token_stream(self):
        """Re-exports should not be cut out of usage scanning."""
        result = extract_imports("export * from './a';", Path("index.ts"))

        assert result.declaration_spans == ()


class TestMalformed:
    """Tests for recovery from malformed statements."""

    def test_partial_record_keeps_specifier(self):
        """Should emit a partial record with the recoverable specifier."""
        source = "import { a, from './broken';\nimport b from './b';\n"
        first, second = records(source)

        assert first.malformed
        assert first.specifier == "./broken"
        assert first.bindings == ()
        assert second.specifier == "./b"
        assert names(second) == ["b"]
        assert not second.malformed

    def test_recovery_stops_at_next_statement(self):
        """A truncated import must not swallow the declaration after it."""
        source = "import foo\nconst label = 'hello';\n"
        result = extract_imports(source, Path("app.ts"))

        (record,) = result.records
        assert record.malformed
        assert record.statement == "import foo"
        assert record.specifier is None
        assert result.declaration_spans == (record.span,)

    def test_recovery_ignores_strings_not_after_from(self):
        """Only a string following 'from' is taken as the specifier."""
        source = "import { a, 'b' }\nrender('hello');\n"
        (record,) = records(source)

        assert record.malformed
        assert record.specifier is None
        assert "render" not in record.statement

    def test_missing_specifier(self):
        """Should emit a partial record without a specifier."""
        source = "import { a } from\nconst b = 2;\nimport c from './c';\n"
        result = records(source)

        assert result[0].malformed
        assert result[-1].specifier == "./c"

    def test_truncated_file(self):
        """A file ending mid-statement should not raise."""
        (record,) = records("import { a, b")

        assert record.malformed
        assert record.specifier is None
