"""Usage detection for imported bindings.

Each reference to a binding is classified by its syntactic context, and an
ordered tuple of detection passes decides whether (and how) the binding is
used. The first pass that matches wins, so a binding referenced both as a
value and as a type reports the value pass.
"""

from __future__ import annotations

from bisect import bisect_right
from enum import Enum, auto
from typing import Callable

from importsniff.analysis.tokenizer import (
    Dialect,
    Token,
    TokenKind,
    find_closing,
    find_opening,
)
from importsniff.models.imports import ImportRecord, UsagePass, UsageResult

# Built-in and utility types that are never import candidates
BUILTIN_TYPE_NAMES = frozenset(
    {
        "Array",
        "Promise",
        "Record",
        "Partial",
        "Required",
        "Readonly",
        "Pick",
        "Omit",
        "Exclude",
        "Extract",
        "NonNullable",
        "Parameters",
        "ConstructorParameters",
        "ReturnType",
        "InstanceType",
        "ThisParameterType",
        "OmitThisParameter",
        "ThisType",
        "Awaited",
        "Uppercase",
        "Lowercase",
        "Capitalize",
        "Uncapitalize",
        "String",
        "Number",
        "Boolean",
        "Object",
        "Function",
        "Date",
        "RegExp",
        "Error",
        "Map",
        "Set",
        "WeakMap",
        "WeakSet",
        "ArrayBuffer",
        "DataView",
        "Int8Array",
        "Uint8Array",
        "Uint8ClampedArray",
        "Int16Array",
        "Uint16Array",
        "Int32Array",
        "Uint32Array",
        "Float32Array",
        "Float64Array",
        "BigInt64Array",
        "BigUint64Array",
    }
)

_RESERVED = frozenset(
    {
        "break", "case", "catch", "class", "const", "continue", "debugger",
        "default", "delete", "do", "else", "export", "extends", "finally",
        "for", "function", "if", "import", "in", "instanceof", "new", "return",
        "super", "switch", "this", "throw", "try", "typeof", "var", "void",
        "while", "with", "yield", "let", "static", "await", "async", "of",
        "implements", "interface", "package", "private", "protected", "public",
        "as", "satisfies", "is", "keyof", "infer", "readonly", "unique",
        "declare", "abstract", "type", "namespace", "module",
    }
)  # fmt: skip

# Keywords that put the following name in a type position
_TYPE_KEYWORDS = frozenset({"extends", "implements", "as", "satisfies", "is", "keyof"})

# Type operators that can sit between a type keyword and the name
_TYPE_MODIFIERS = frozenset({"typeof", "readonly", "infer", "unique"})

# Punctuation that type expressions are built from
_TYPE_PUNCT = (".", "|", "&", "[", "]", "<", ">", ",")

# Tokens after which "<Name" opens a JSX element
_JSX_LEADING_PUNCT = ("(", "=", ",", "?", ":", "{", "}", "[", ">", ";", "=>", "&", "|")

_DECLARATION_KEYWORDS = ("const", "let", "var")

# Upper bound on tokens inspected when walking back through a type expression
_TYPE_WALK_LIMIT = 64


class Context(Enum):
    """Syntactic context of a single reference."""

    VALUE = auto()
    JSX = auto()
    TYPE = auto()
    DESTRUCTURED_CALL = auto()
    EXPORT = auto()


class TokenView:
    """Tokens of one file with import declarations cut out.

    Built once per file and shared by the usage checks of all its imports.
    """

    def __init__(
        self,
        tokens: list[Token],
        declaration_spans: tuple[tuple[int, int], ...] = (),
        dialect: Dialect = Dialect.TYPESCRIPT,
    ) -> None:
        self.dialect = dialect
        self.tokens = _without_spans(tokens, declaration_spans)
        self.occurrences = self._index_occurrences()
        self.star_exports = self._star_export_specifiers()
        self.generic_arguments = self._generic_argument_names()

    def tok(self, index: int) -> Token | None:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def is_punct(self, index: int, *values: str) -> bool:
        tok = self.tok(index)
        return tok is not None and tok.is_punct(*values)

    def is_ident(self, index: int, *values: str) -> bool:
        tok = self.tok(index)
        return tok is not None and tok.is_ident(*values)

    def _index_occurrences(self) -> dict[str, tuple[int, ...]]:
        found: dict[str, list[int]] = {}
        for i, tok in enumerate(self.tokens):
            if tok.kind is not TokenKind.IDENT:
                continue
            if self.is_punct(i - 1, ".", "?."):
                continue
            if self._is_property_key(i):
                continue
            found.setdefault(tok.value, []).append(i)
        return {name: tuple(idx) for name, idx in found.items()}

    def _is_property_key(self, i: int) -> bool:
        # { key: value }, interface members and optional members
        nxt = i + 1
        if self.is_punct(nxt, "?"):
            nxt += 1
        if not self.is_punct(nxt, ":"):
            return False
        return self.is_punct(i - 1, "{", ",", ";")

    def _star_export_specifiers(self) -> frozenset[str]:
        out: set[str] = set()
        for i, tok in enumerate(self.tokens):
            if (
                tok.is_ident("export")
                and self.is_punct(i + 1, "*")
                and self.is_ident(i + 2, "from")
            ):
                spec = self.tok(i + 3)
                if spec is not None and spec.kind is TokenKind.STRING:
                    out.add(spec.value)
        return frozenset(out)

    def _generic_argument_names(self) -> frozenset[str]:
        if not self.dialect.is_typescript:
            return frozenset()
        names: set[str] = set()
        for i, tok in enumerate(self.tokens):
            if not tok.is_punct("<") or not _is_generic_open(self, i):
                continue
            close = find_closing(self.tokens, i, limit=_TYPE_WALK_LIMIT)
            if close is None:
                continue
            for k in range(i + 1, close):
                inner = self.tokens[k]
                if inner.kind is TokenKind.IDENT and not self.is_punct(k - 1, "."):
                    names.add(inner.value)
        return frozenset(names - BUILTIN_TYPE_NAMES - _RESERVED)


def _without_spans(tokens: list[Token], spans: tuple[tuple[int, int], ...]) -> list[Token]:
    if not spans:
        return list(tokens)
    starts = [s for s, _ in spans]
    kept = []
    for tok in tokens:
        pos = bisect_right(starts, tok.start) - 1
        if pos >= 0 and spans[pos][0] <= tok.start < spans[pos][1]:
            continue
        kept.append(tok)
    return kept


def _is_generic_open(view: TokenView, i: int) -> bool:
    """Whether ``<`` at ``i`` opens a type argument list (``Array<T>``, ``f<T>()``)."""
    prev = view.tok(i - 1)
    if prev is None or prev.kind is not TokenKind.IDENT or prev.value in _RESERVED:
        return False
    # "a < b" is a comparison, "Array<T>" is not
    return prev.end == view.tokens[i].start


def _is_type_open(view: TokenView, i: int) -> bool:
    """Whether ``<`` at ``i`` opens generic arguments or a type assertion."""
    if _is_generic_open(view, i):
        return True
    if view.dialect is not Dialect.TYPESCRIPT:
        return False
    prev = view.tok(i - 1)
    # <Foo>value assertions
    return prev is None or prev.is_punct("(", "=", ",", ":", "?", "[", "{", "=>") or prev.is_ident(
        "return"
    )


def _is_type_alias_assignment(view: TokenView, k: int) -> bool:
    """Whether ``=`` at ``k`` belongs to ``type X = ...`` or a generic default."""
    j = k - 1
    if view.is_punct(j, ">"):
        opening = find_opening(view.tokens, j, limit=_TYPE_WALK_LIMIT)
        if opening is None:
            return False
        j = opening - 1
    elif view.is_ident(j) and view.is_punct(j - 1, "<"):
        # <T = Default>
        return True
    return view.is_ident(j) and view.is_ident(j - 1, "type") and not view.is_punct(j - 2, ".")


# Occurrence classifiers. Each returns True when the occurrence at ``i``
# belongs to its context.


def _is_export(view: TokenView, i: int) -> bool:
    if view.is_ident(i - 1, "default") and view.is_ident(i - 2, "export"):
        return True
    if view.is_punct(i - 1, "=") and view.is_ident(i - 2, "export"):
        return True
    opening = _enclosing_export_brace(view, i)
    return opening is not None


def _enclosing_export_brace(view: TokenView, i: int) -> int | None:
    k = i - 1
    while k >= 0:
        tok = view.tokens[k]
        if tok.is_punct("{"):
            return k if view.is_ident(k - 1, "export") or (
                view.is_ident(k - 1, "type") and view.is_ident(k - 2, "export")
            ) else None
        if not (tok.is_punct(",") or tok.kind in (TokenKind.IDENT, TokenKind.STRING)):
            return None
        k -= 1
    return None


def _is_destructured_call(view: TokenView, i: int) -> bool:
    nxt = i + 1
    if view.is_punct(nxt, "<"):
        close = find_closing(view.tokens, nxt, limit=_TYPE_WALK_LIMIT)
        if close is None:
            return False
        nxt = close + 1
    if not view.is_punct(nxt, "("):
        return False

    k = i - 1
    if view.is_ident(k, "await"):
        k -= 1
    if not view.is_punct(k, "="):
        return False
    k -= 1
    if not view.is_punct(k, "]", "}"):
        return False
    opening = find_opening(view.tokens, k, limit=_TYPE_WALK_LIMIT * 4)
    return opening is not None and view.is_ident(opening - 1, *_DECLARATION_KEYWORDS)


def _is_jsx_tag(view: TokenView, i: int) -> bool:
    name = view.tokens[i].value
    if not view.dialect.supports_jsx or not name[:1].isupper():
        return False
    if view.is_punct(i - 1, "/") and view.is_punct(i - 2, "<"):
        return True
    if not view.is_punct(i - 1, "<"):
        return False
    before = view.tok(i - 2)
    return (
        before is None
        or before.kind is TokenKind.JSX_TEXT
        or before.is_punct(*_JSX_LEADING_PUNCT)
        or before.is_ident("return")
    )


def _is_type_position(view: TokenView, i: int) -> bool:
    typescript = view.dialect.is_typescript
    stop = max(-1, i - _TYPE_WALK_LIMIT)
    k = i - 1
    while k > stop:
        tok = view.tokens[k]
        if tok.kind is TokenKind.IDENT:
            if tok.value in _TYPE_KEYWORDS:
                return typescript or tok.value == "extends"
            if tok.value in _TYPE_MODIFIERS:
                k -= 1
                continue
            if tok.value in _RESERVED:
                return False
        elif tok.kind is TokenKind.PUNCT:
            if tok.value == ":":
                return typescript
            if tok.value == "=":
                return typescript and _is_type_alias_assignment(view, k)
            if tok.value == "<":
                if typescript and _is_type_open(view, k):
                    return True
            elif tok.value not in _TYPE_PUNCT:
                return False
        elif tok.kind not in (TokenKind.STRING, TokenKind.NUMBER):
            return False
        k -= 1
    return False


def classify_occurrence(view: TokenView, i: int) -> Context | None:
    """Classify the reference at token index ``i``.

    Returns None when the identifier names something other than the binding,
    such as the exported name in ``export { x as Name }`` or a name listed in
    ``export { Name } from '...'``.
    """
    opening = _enclosing_export_brace(view, i)
    if opening is not None:
        closing = find_closing(view.tokens, opening)
        if closing is not None and view.is_ident(closing + 1, "from"):
            return None
        if view.is_ident(i - 1, "as"):
            return None
        return Context.EXPORT
    if _is_export(view, i):
        return Context.EXPORT
    if _is_destructured_call(view, i):
        return Context.DESTRUCTURED_CALL
    if _is_jsx_tag(view, i):
        return Context.JSX
    if _is_type_position(view, i):
        return Context.TYPE
    return Context.VALUE


UsagePredicate = Callable[[str, frozenset, ImportRecord, TokenView], bool]


def _identifier_pass(name: str, contexts: frozenset, record: ImportRecord, view: TokenView) -> bool:
    return Context.VALUE in contexts


def _jsx_pass(name: str, contexts: frozenset, record: ImportRecord, view: TokenView) -> bool:
    return Context.JSX in contexts


def _type_pass(name: str, contexts: frozenset, record: ImportRecord, view: TokenView) -> bool:
    return name in view.generic_arguments or Context.TYPE in contexts


def _destructured_call_pass(
    name: str, contexts: frozenset, record: ImportRecord, view: TokenView
) -> bool:
    return Context.DESTRUCTURED_CALL in contexts


def _re_export_pass(name: str, contexts: frozenset, record: ImportRecord, view: TokenView) -> bool:
    if Context.EXPORT in contexts:
        return True
    return record.specifier is not None and record.specifier in view.star_exports


# Evaluated in order; the first match decides the reported pass
USAGE_PASSES: tuple[tuple[UsagePass, UsagePredicate], ...] = (
    (UsagePass.IDENTIFIER, _identifier_pass),
    (UsagePass.JSX, _jsx_pass),
    (UsagePass.TYPE_POSITION, _type_pass),
    (UsagePass.DESTRUCTURED_CALL, _destructured_call_pass),
    (UsagePass.RE_EXPORT, _re_export_pass),
)


def detect_usage(record: ImportRecord, view: TokenView) -> tuple[UsageResult, ...]:
    """Decide for each binding of ``record`` whether the file references it.

    Side-effect, dynamic and re-export records introduce no bindings and
    yield an empty tuple.
    """
    if not record.introduces_bindings:
        return ()

    results = []
    for binding in record.bindings:
        name = binding.local_name
        contexts = frozenset(
            ctx
            for ctx in (classify_occurrence(view, k) for k in view.occurrences.get(name, ()))
            if ctx is not None
        )
        matched = None
        for usage_pass, predicate in USAGE_PASSES:
            if predicate(name, contexts, record, view):
                matched = usage_pass
                break
        results.append(UsageResult(binding, matched is not None, matched))
    return tuple(results)
