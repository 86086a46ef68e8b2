"""Lightweight tokenizer for JavaScript, TypeScript and JSX source.

Only as much lexical structure as import analysis needs is recovered:
identifiers, string/template/regex literals, numbers and punctuation.
Comments are dropped and literal contents never yield identifiers, so
words inside strings or comments can't be mistaken for references.

The tokenizer never raises. Unterminated literals end at the end of the
line (strings) or the end of the file (templates, block comments).

With JSX enabled, text between tags is one opaque token: quotes and
slashes in it start neither a string nor a comment.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path


class TokenKind(Enum):
    """Lexical category of a token."""

    IDENT = auto()
    STRING = auto()  # quoted string or template literal without substitutions
    TEMPLATE = auto()  # chunk of a template literal with substitutions
    NUMBER = auto()
    REGEX = auto()
    PUNCT = auto()
    JSX_TEXT = auto()  # raw text between JSX tags


class Dialect(Enum):
    """Source dialect inferred from a file extension."""

    TYPESCRIPT = auto()
    TSX = auto()
    JAVASCRIPT = auto()
    JSX = auto()

    @classmethod
    def from_path(cls, path: Path) -> Dialect:
        suffix = path.suffix.lower()
        if suffix in (".ts", ".mts", ".cts"):
            return cls.TYPESCRIPT
        if suffix == ".tsx":
            return cls.TSX
        if suffix == ".jsx":
            return cls.JSX
        return cls.JAVASCRIPT

    @property
    def supports_jsx(self) -> bool:
        # Plain .js files routinely carry JSX in React projects
        return self is not Dialect.TYPESCRIPT

    @property
    def is_typescript(self) -> bool:
        return self in (Dialect.TYPESCRIPT, Dialect.TSX)


@dataclass(frozen=True)
class Token:
    """A single lexical token."""

    kind: TokenKind
    value: str
    start: int
    end: int
    line: int

    def is_punct(self, *values: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.value in values

    def is_ident(self, *values: str) -> bool:
        if self.kind is not TokenKind.IDENT:
            return False
        return not values or self.value in values


_IDENT_RE = re.compile(r"[A-Za-z_$\u00aa-\uffff][\w$\u00aa-\uffff]*")
_NUMBER_RE = re.compile(r"(?:\d|\.\d)[\w.]*")
_REGEX_FLAGS_RE = re.compile(r"[a-z]*")
_WHITESPACE = frozenset(" \t\r\n\f\v\ufeff\u00a0\u2028\u2029")
_MULTI_PUNCT = ("...", "=>", "?.")
_DIGITS = "0123456789"

# Identifiers after which a slash starts a regex literal rather than a division
_REGEX_KEYWORDS = frozenset(
    {
        "return",
        "typeof",
        "instanceof",
        "case",
        "do",
        "else",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "throw",
        "yield",
        "await",
    }
)


def tokenize(source: str, jsx: bool = True) -> list[Token]:
    """Split source text into tokens.

    ``jsx`` enables JSX element tracking; turn it off for plain TypeScript,
    where ``<T>expr`` is a type assertion.
    """
    return _Tokenizer(source, jsx).run()


# "<T," and "<T extends" open a generic parameter list in .tsx, not an element
_GENERIC_PARAMS_RE = re.compile(r"<\s*[A-Za-z_$][\w$]*\s*(?:,|extends\b|>\s*\()")


@dataclass
class _JsxFrame:
    """An open JSX tag or element body, at the brace depth it was opened."""

    children: bool
    depth: int
    closing: bool = False


class _Tokenizer:
    def __init__(self, source: str, jsx: bool = True) -> None:
        self.source = source
        self.jsx = jsx
        self.pos = 0
        self.tokens: list[Token] = []
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]
        self._brace_depth = 0
        # Brace depth at which each open template substitution closes
        self._template_depths: list[int] = []
        self._jsx_stack: list[_JsxFrame] = []

    def run(self) -> list[Token]:
        src = self.source
        n = len(src)

        if src.startswith("#!"):
            self._skip_line_comment()

        while self.pos < n:
            ch = src[self.pos]
            nxt = src[self.pos + 1] if self.pos + 1 < n else ""

            if self._in_jsx_text():
                self._read_jsx_text()
            elif ch in _WHITESPACE:
                self.pos += 1
            elif ch == "/" and nxt == "/":
                self._skip_line_comment()
            elif ch == "/" and nxt == "*":
                end = src.find("*/", self.pos + 2)
                self.pos = n if end == -1 else end + 2
            elif ch == "/" and self._regex_allowed() and self._read_regex():
                pass
            elif ch in "'\"":
                self._read_string(ch)
            elif ch == "`":
                self.pos += 1
                self._read_template(self.pos - 1, whole=True)
            elif (
                ch == "}"
                and self._template_depths
                and self._brace_depth == self._template_depths[-1]
            ):
                self._template_depths.pop()
                self.pos += 1
                self._read_template(self.pos - 1, whole=False)
            elif ch in _DIGITS or (ch == "." and nxt in _DIGITS and nxt != ""):
                m = _NUMBER_RE.match(src, self.pos)
                assert m is not None
                self._emit(TokenKind.NUMBER, m.group(), self.pos, m.end())
                self.pos = m.end()
            else:
                m = _IDENT_RE.match(src, self.pos)
                if m:
                    self._emit(TokenKind.IDENT, m.group(), self.pos, m.end())
                    self.pos = m.end()
                else:
                    self._read_punct()

        return self.tokens

    def _emit(self, kind: TokenKind, value: str, start: int, end: int) -> None:
        line = bisect_right(self._line_starts, start)
        self.tokens.append(Token(kind, value, start, end, line))

    def _skip_line_comment(self) -> None:
        end = self.source.find("\n", self.pos)
        self.pos = len(self.source) if end == -1 else end

    def _read_punct(self) -> None:
        src = self.source
        start = self.pos
        for punct in _MULTI_PUNCT:
            if src.startswith(punct, start):
                # "a?.5:b" is a ternary, not optional chaining
                if punct == "?." and start + 2 < len(src) and src[start + 2] in _DIGITS:
                    continue
                self._emit(TokenKind.PUNCT, punct, start, start + len(punct))
                self.pos = start + len(punct)
                return

        ch = src[start]
        if ch == "{":
            self._brace_depth += 1
        elif ch == "}":
            self._brace_depth = max(0, self._brace_depth - 1)
        elif ch == "<" and self.jsx:
            self._open_jsx_tag(start)
        elif ch == ">" and self._jsx_stack:
            self._close_jsx_tag()
        self._emit(TokenKind.PUNCT, ch, start, start + 1)
        self.pos = start + 1

    def _in_jsx_text(self) -> bool:
        if not self._jsx_stack:
            return False
        top = self._jsx_stack[-1]
        return (
            top.children
            and top.depth == self._brace_depth
            and self.source[self.pos] not in "<{"
        )

    def _read_jsx_text(self) -> None:
        src = self.source
        start = self.pos
        end = start
        while end < len(src) and src[end] not in "<{":
            end += 1
        if src[start:end].strip():
            self._emit(TokenKind.JSX_TEXT, src[start:end], start, end)
        self.pos = end

    def _open_jsx_tag(self, start: int) -> None:
        src = self.source
        after = src[start + 1 : start + 2]
        top = self._jsx_stack[-1] if self._jsx_stack else None
        if top is not None and top.children and top.depth == self._brace_depth:
            closing = src[start + 1 :].lstrip().startswith("/")
            self._jsx_stack.append(_JsxFrame(False, self._brace_depth, closing))
            return

        # Outside element bodies "<" opens a tag only where an expression may start
        if not self._regex_allowed():
            return
        if not (after == ">" or _IDENT_RE.match(src, start + 1)):
            return
        if _GENERIC_PARAMS_RE.match(src, start):
            return
        self._jsx_stack.append(_JsxFrame(False, self._brace_depth))

    def _close_jsx_tag(self) -> None:
        tag = self._jsx_stack[-1]
        if tag.children or tag.depth != self._brace_depth:
            return
        self._jsx_stack.pop()
        if tag.closing:
            if self._jsx_stack and self._jsx_stack[-1].children:
                self._jsx_stack.pop()
        elif not (self.tokens and self.tokens[-1].is_punct("/")):
            self._jsx_stack.append(_JsxFrame(True, self._brace_depth))

    def _read_string(self, quote: str) -> None:
        src = self.source
        start = self.pos
        i = start + 1
        while i < len(src):
            c = src[i]
            if c == "\\":
                i += 2
                continue
            if c == quote:
                self._emit(TokenKind.STRING, src[start + 1 : i], start, i + 1)
                self.pos = i + 1
                return
            if c == "\n":
                break
            i += 1
        i = min(i, len(src))
        self._emit(TokenKind.STRING, src[start + 1 : i], start, i)
        self.pos = i

    def _read_template(self, start: int, whole: bool) -> None:
        """Read a template chunk starting after a backtick or a closing brace."""
        src = self.source
        i = self.pos
        while i < len(src):
            c = src[i]
            if c == "\\":
                i += 2
                continue
            if c == "`":
                kind = TokenKind.STRING if whole else TokenKind.TEMPLATE
                self._emit(kind, src[self.pos : i], start, i + 1)
                self.pos = i + 1
                return
            if c == "$" and i + 1 < len(src) and src[i + 1] == "{":
                self._emit(TokenKind.TEMPLATE, src[self.pos : i], start, i + 2)
                self._template_depths.append(self._brace_depth)
                self.pos = i + 2
                return
            i += 1
        kind = TokenKind.STRING if whole else TokenKind.TEMPLATE
        self._emit(kind, src[self.pos :], start, len(src))
        self.pos = len(src)

    def _regex_allowed(self) -> bool:
        if not self.tokens:
            return True
        prev = self.tokens[-1]
        if prev.kind is TokenKind.PUNCT:
            # "</" closes a JSX element
            return prev.value not in (")", "]", "}", "<")
        if prev.kind is TokenKind.IDENT:
            return prev.value in _REGEX_KEYWORDS
        return False

    def _read_regex(self) -> bool:
        src = self.source
        start = self.pos
        i = start + 1
        in_class = False
        while i < len(src):
            c = src[i]
            if c == "\\":
                i += 2
                continue
            if c == "\n":
                return False
            if in_class:
                if c == "]":
                    in_class = False
            elif c == "[":
                in_class = True
            elif c == "/":
                flags = _REGEX_FLAGS_RE.match(src, i + 1)
                end = flags.end() if flags else i + 1
                self._emit(TokenKind.REGEX, src[start:end], start, end)
                self.pos = end
                return True
            i += 1
        return False


_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_REVERSE_PAIRS = {close: open_ for open_, close in _PAIRS.items()}


def find_closing(tokens: list[Token], index: int, limit: int | None = None) -> int | None:
    """Index of the bracket closing the one at ``index``, or None."""
    opener = tokens[index].value
    closer = _PAIRS[opener]
    stop = len(tokens) if limit is None else min(len(tokens), index + limit)
    depth = 0
    for k in range(index, stop):
        tok = tokens[k]
        if tok.is_punct(opener):
            depth += 1
        elif tok.is_punct(closer):
            depth -= 1
            if depth == 0:
                return k
    return None


def find_opening(tokens: list[Token], index: int, limit: int | None = None) -> int | None:
    """Index of the bracket opening the one at ``index``, or None."""
    closer = tokens[index].value
    opener = _REVERSE_PAIRS[closer]
    stop = -1 if limit is None else max(-1, index - limit)
    depth = 0
    for k in range(index, stop, -1):
        tok = tokens[k]
        if tok.is_punct(closer):
            depth += 1
        elif tok.is_punct(opener):
            depth -= 1
            if depth == 0:
                return k
    return None
