"""Import statement extraction from JavaScript/TypeScript source."""

from __future__ import annotations

from pathlib import Path

from importsniff.analysis.tokenizer import (
    Dialect,
    Token,
    TokenKind,
    find_closing,
    find_opening,
    tokenize,
)
from importsniff.log import get_logger
from importsniff.models.imports import (
    Binding,
    ExtractionResult,
    ImportKind,
    ImportRecord,
)

logger = get_logger(__name__)

_DECLARATION_KEYWORDS = ("const", "let", "var")

# How far a malformed statement is searched for a recoverable specifier
_RECOVERY_WINDOW = 256

# Reserved words that open a statement; a broken import never continues past one
_STATEMENT_KEYWORDS = (
    "import",
    "export",
    "const",
    "let",
    "var",
    "function",
    "class",
    "if",
    "for",
    "while",
    "do",
    "switch",
    "try",
    "throw",
    "return",
)


class _Malformed(Exception):
    """Raised internally when a statement doesn't match the import grammar."""


def extract_imports(
    source: str,
    path: Path,
    tokens: list[Token] | None = None,
) -> ExtractionResult:
    """Extract all import-like statements from a file's source text.

    Args:
        source: Full text of the file.
        path: Path of the file, stored on every record.
        tokens: Pre-computed tokens of ``source``, if already available.

    Returns:
        Records in source order plus the character spans of import
        declarations, which usage detection must not count as references.
    """
    if tokens is None:
        tokens = tokenize(source, jsx=Dialect.from_path(path).supports_jsx)
    return ImportExtractor(source, path, tokens).extract()


class ImportExtractor:
    """Single forward pass over a token stream collecting import statements."""

    def __init__(self, source: str, path: Path, tokens: list[Token]) -> None:
        self.source = source
        self.path = path
        self.tokens = tokens
        self.records: list[ImportRecord] = []
        self.declaration_spans: list[tuple[int, int]] = []

    def extract(self) -> ExtractionResult:
        i = 0
        while i < len(self.tokens):
            tok = self.tokens[i]
            if tok.kind is TokenKind.IDENT and not self._is_member(i):
                if tok.value == "import":
                    i = self._import_statement(i)
                    continue
                if tok.value == "export":
                    i = self._export_statement(i)
                    continue
                if tok.value == "require":
                    i = self._require_call(i)
                    continue
            i += 1

        records = sorted(self.records, key=lambda r: r.span[0])
        return ExtractionResult(
            records=tuple(records),
            declaration_spans=tuple(sorted(self.declaration_spans)),
        )

    # Token helpers

    def _tok(self, index: int) -> Token | None:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def _is_punct(self, index: int, *values: str) -> bool:
        tok = self._tok(index)
        return tok is not None and tok.is_punct(*values)

    def _is_ident(self, index: int, *values: str) -> bool:
        tok = self._tok(index)
        return tok is not None and tok.is_ident(*values)

    def _is_string(self, index: int) -> bool:
        tok = self._tok(index)
        return tok is not None and tok.kind is TokenKind.STRING

    def _is_member(self, index: int) -> bool:
        # obj.import, obj?.require
        return self._is_punct(index - 1, ".", "?.")

    def _statement_end(self, index: int) -> int:
        """Extend a statement ending at ``index`` over import attributes and ``;``."""
        if self._is_ident(index + 1, "with", "assert") and self._is_punct(index + 2, "{"):
            close = find_closing(self.tokens, index + 2, limit=_RECOVERY_WINDOW)
            if close is not None:
                index = close
        if self._is_punct(index + 1, ";"):
            index += 1
        return index

    def _add(
        self,
        kind: ImportKind,
        start: int,
        end: int,
        specifier: str | None,
        bindings: tuple[Binding, ...] = (),
        commonjs: bool = False,
        malformed: bool = False,
        declaration: bool = True,
    ) -> None:
        first, last = self.tokens[start], self.tokens[end]
        span = (first.start, last.end)
        self.records.append(
            ImportRecord(
                file=self.path,
                line=first.line,
                statement=self.source[span[0] : span[1]],
                kind=kind,
                specifier=specifier,
                bindings=bindings,
                commonjs=commonjs,
                malformed=malformed,
                span=span,
            )
        )
        if declaration:
            self.declaration_spans.append(span)

    # import ...

    def _import_statement(self, i: int) -> int:
        nxt = self._tok(i + 1)
        if nxt is None or nxt.is_punct(".", ":", "=", ",", ")", "}"):
            # import.meta, object keys and the like
            return i + 1

        if nxt.is_punct("("):
            return self._dynamic_import(i)

        if nxt.kind is TokenKind.STRING:
            end = self._statement_end(i + 1)
            self._add(ImportKind.SIDE_EFFECT, i, end, nxt.value)
            return end + 1

        try:
            return self._static_import(i)
        except _Malformed:
            return self._recover(i)

    def _dynamic_import(self, i: int) -> int:
        # import('x') or import('x', { with: {...} })
        if self._is_string(i + 2) and self._is_punct(i + 3, ")", ","):
            close = find_closing(self.tokens, i + 1) or i + 3
            self._add(ImportKind.DYNAMIC, i, close, self.tokens[i + 2].value, declaration=False)
        else:
            close = find_closing(self.tokens, i + 1) or i + 1
            self._add(ImportKind.DYNAMIC, i, close, None, declaration=False)
        return i + 2

    def _static_import(self, i: int) -> int:
        j = i + 1
        type_only = False
        if self._is_ident(j, "type", "typeof") and self._import_type_modifier(j):
            type_only = True
            j += 1

        bindings: list[Binding] = []
        kind: ImportKind | None = None

        tok = self._tok(j)
        if tok is None:
            raise _Malformed
        if tok.kind is TokenKind.IDENT and not (tok.value == "from" and self._is_string(j + 1)):
            if self._is_punct(j + 1, "="):
                return self._import_equals(i, j, type_only)
            bindings.append(Binding(tok.value, is_type=type_only))
            kind = ImportKind.DEFAULT
            j += 1
            if self._is_punct(j, ","):
                j += 1
            elif not self._is_ident(j, "from"):
                raise _Malformed

        if self._is_punct(j, "*"):
            alias = self._tok(j + 2)
            if not self._is_ident(j + 1, "as") or alias is None or alias.kind is not TokenKind.IDENT:
                raise _Malformed
            bindings.append(Binding(alias.value, is_type=type_only))
            kind = kind or ImportKind.NAMESPACE
            j += 3
        elif self._is_punct(j, "{"):
            named, j = self._named_list(j, type_only)
            bindings.extend(named)
            kind = kind or ImportKind.NAMED
        elif kind is None:
            raise _Malformed

        if not self._is_ident(j, "from") or not self._is_string(j + 1):
            raise _Malformed

        end = self._statement_end(j + 1)
        if type_only:
            kind = ImportKind.TYPE_ONLY
        self._add(kind, i, end, self.tokens[j + 1].value, tuple(bindings))
        return end + 1

    def _import_type_modifier(self, j: int) -> bool:
        """Whether ``type`` at ``j`` modifies the import rather than naming a binding."""
        nxt = self._tok(j + 1)
        if nxt is None:
            return False
        if nxt.is_punct("{", "*"):
            return True
        if nxt.kind is TokenKind.IDENT:
            # import type from './x' binds a default export called "type"
            return not (nxt.value == "from" and self._is_string(j + 2))
        return False

    def _inline_type_modifier(self, k: int) -> bool:
        """Whether ``type`` at ``k`` inside braces is a per-binding modifier."""
        nxt = self._tok(k + 1)
        if nxt is None or nxt.is_punct(",", "}"):
            return False
        if nxt.is_ident("as"):
            after = self._tok(k + 2)
            # { type as t } renames a binding called "type"
            return after is None or after.is_punct(",", "}") or after.is_ident("as")
        return nxt.kind in (TokenKind.IDENT, TokenKind.STRING)

    def _named_list(self, j: int, type_only: bool) -> tuple[list[Binding], int]:
        """Parse ``{ a, b as c, type D }`` starting at the opening brace."""
        out: list[Binding] = []
        k = j + 1
        while True:
            tok = self._tok(k)
            if tok is None:
                raise _Malformed
            if tok.is_punct("}"):
                return out, k + 1

            inline_type = False
            if tok.is_ident("type") and self._inline_type_modifier(k):
                inline_type = True
                k += 1
                tok = self._tok(k)
            if tok is None or tok.kind not in (TokenKind.IDENT, TokenKind.STRING):
                raise _Malformed

            name = tok.value
            alias = None
            k += 1
            if self._is_ident(k, "as"):
                alias_tok = self._tok(k + 1)
                if alias_tok is None or alias_tok.kind not in (TokenKind.IDENT, TokenKind.STRING):
                    raise _Malformed
                alias = alias_tok.value
                k += 2
            out.append(Binding(name, alias, is_type=type_only or inline_type))

            if self._is_punct(k, ","):
                k += 1
            elif not self._is_punct(k, "}"):
                raise _Malformed

    def _import_equals(self, i: int, j: int, type_only: bool) -> int:
        # import fs = require('fs'); import Alias = Namespace.Member is not a module import
        if (
            self._is_ident(j + 2, "require")
            and self._is_punct(j + 3, "(")
            and self._is_string(j + 4)
            and self._is_punct(j + 5, ")")
        ):
            end = self._statement_end(j + 5)
            kind = ImportKind.TYPE_ONLY if type_only else ImportKind.DEFAULT
            binding = Binding(self.tokens[j].value, is_type=type_only)
            self._add(kind, i, end, self.tokens[j + 4].value, (binding,), commonjs=True)
            return end + 1
        return j + 2

    def _recover(self, i: int) -> int:
        """Record a best-effort partial import for a statement that failed to parse."""
        start = self.tokens[i]
        kind = ImportKind.DEFAULT
        if self._is_punct(i + 1, "{"):
            kind = ImportKind.NAMED
        elif self._is_punct(i + 1, "*"):
            kind = ImportKind.NAMESPACE
        elif self._is_ident(i + 1, "type"):
            kind = ImportKind.TYPE_ONLY

        specifier = None
        end = i
        stop = min(len(self.tokens), i + _RECOVERY_WINDOW)
        depth = 0
        k = i + 1
        while k < stop:
            tok = self.tokens[k]
            if tok.is_punct(";"):
                end = k
                break
            if self._starts_new_statement(k, start.line, depth):
                end = k - 1
                break
            if tok.kind is TokenKind.STRING and (k == i + 1 or self._is_ident(k - 1, "from")):
                specifier = tok.value
                end = self._statement_end(k)
                break
            if tok.is_punct("{"):
                depth += 1
            elif tok.is_punct("}"):
                depth = max(0, depth - 1)
            end = k
            k += 1

        logger.debug("Malformed import statement at %s:%d", self.path, start.line)
        self._add(kind, i, end, specifier, malformed=True)
        return end + 1

    def _starts_new_statement(self, index: int, line: int, depth: int) -> bool:
        """True when the token at ``index`` opens a statement after a broken import."""
        tok = self.tokens[index]
        prev = self.tokens[index - 1]
        if tok.line <= line or self._is_member(index):
            return False
        if tok.is_ident("import", "export"):
            return True
        if prev.line == tok.line:
            return False
        if tok.is_ident(*_STATEMENT_KEYWORDS):
            return True
        # Outside braces a new line only continues the import after a connector
        return (
            depth == 0
            and not tok.is_ident("from")
            and not prev.is_punct(",", "{", "*")
            and not prev.is_ident("import", "from", "as", "type")
        )

    # export ... from

    def _export_statement(self, i: int) -> int:
        j = i + 1
        type_only = False
        if self._is_ident(j, "type") and self._is_punct(j + 1, "{", "*"):
            type_only = True
            j += 1

        if self._is_punct(j, "*"):
            k = j + 1
            bindings: tuple[Binding, ...] = ()
            alias = self._tok(k + 1)
            if self._is_ident(k, "as") and alias is not None and alias.kind in (
                TokenKind.IDENT,
                TokenKind.STRING,
            ):
                bindings = (Binding(alias.value, is_type=type_only),)
                k += 2
            if self._is_ident(k, "from") and self._is_string(k + 1):
                end = self._statement_end(k + 1)
                self._add(
                    ImportKind.RE_EXPORT,
                    i,
                    end,
                    self.tokens[k + 1].value,
                    bindings,
                    declaration=False,
                )
                return end + 1
            return k

        if self._is_punct(j, "{"):
            try:
                names, k = self._named_list(j, type_only)
            except _Malformed:
                return j + 1
            if self._is_ident(k, "from") and self._is_string(k + 1):
                end = self._statement_end(k + 1)
                self._add(
                    ImportKind.RE_EXPORT,
                    i,
                    end,
                    self.tokens[k + 1].value,
                    tuple(names),
                    declaration=False,
                )
                return end + 1

        # Local exports stay in the token stream as usages
        return i + 1

    # require(...)

    def _require_call(self, i: int) -> int:
        if not self._is_punct(i + 1, "("):
            return i + 1

        literal = self._is_string(i + 2) and self._is_punct(i + 3, ")")
        specifier = self.tokens[i + 2].value if literal else None
        close = i + 3 if literal else (find_closing(self.tokens, i + 1) or i + 1)

        declaration = self._require_declaration(i) if literal else None
        if declaration is not None:
            start, kind, bindings = declaration
            end = self._statement_end(close) if self._is_punct(close + 1, ";") else close
            self._add(kind, start, end, specifier, bindings, commonjs=True)
            return close + 1

        prev = self._tok(i - 1)
        if literal and (prev is None or prev.is_punct(";", "{", "}")):
            end = self._statement_end(close)
            self._add(ImportKind.SIDE_EFFECT, i, end, specifier, commonjs=True)
            return end + 1

        self._add(ImportKind.DYNAMIC, i, close, specifier, commonjs=True, declaration=False)
        return i + 2

    def _require_declaration(self, i: int) -> tuple[int, ImportKind, tuple[Binding, ...]] | None:
        """Match ``const x = require(...)`` or ``const { a, b: c } = require(...)``."""
        if not self._is_punct(i - 1, "="):
            return None
        target = self._tok(i - 2)
        if target is None:
            return None

        if target.kind is TokenKind.IDENT:
            if self._is_ident(i - 3, *_DECLARATION_KEYWORDS):
                return i - 3, ImportKind.DEFAULT, (Binding(target.value),)
            return None

        if target.is_punct("}"):
            open_index = find_opening(self.tokens, i - 2, limit=_RECOVERY_WINDOW)
            if open_index is None or not self._is_ident(open_index - 1, *_DECLARATION_KEYWORDS):
                return None
            bindings = self._object_pattern(open_index, i - 2)
            if bindings is None:
                return None
            return open_index - 1, ImportKind.NAMED, bindings

        return None

    def _object_pattern(self, open_index: int, close_index: int) -> tuple[Binding, ...] | None:
        """Parse a flat destructuring pattern; nested patterns return None."""
        out: list[Binding] = []
        k = open_index + 1
        while k < close_index:
            tok = self.tokens[k]
            if tok.is_punct("..."):
                rest = self._tok(k + 1)
                if rest is None or rest.kind is not TokenKind.IDENT:
                    return None
                out.append(Binding(rest.value))
                k += 2
            elif tok.kind in (TokenKind.IDENT, TokenKind.STRING):
                name = tok.value
                alias = None
                k += 1
                if self._is_punct(k, ":"):
                    local = self._tok(k + 1)
                    if local is None or local.kind is not TokenKind.IDENT:
                        return None
                    alias = local.value
                    k += 2
                if self._is_punct(k, "="):
                    k = self._skip_default_value(k + 1, close_index)
                out.append(Binding(name, alias))
            else:
                return None

            if self._is_punct(k, ","):
                k += 1
            elif k != close_index:
                return None
        return tuple(out)

    def _skip_default_value(self, k: int, close_index: int) -> int:
        depth = 0
        while k < close_index:
            tok = self.tokens[k]
            if tok.is_punct("(", "[", "{"):
                depth += 1
            elif tok.is_punct(")", "]", "}"):
                depth -= 1
            elif tok.is_punct(",") and depth == 0:
                return k
            k += 1
        return k
