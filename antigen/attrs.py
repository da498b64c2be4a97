"""Parsers for the argument lists of antigen-related attributes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .lexer import Group, LexError, Token, TokenKind, TokenTree, render, tokenize

# Keywords that cannot be used as plain identifiers.
_RESERVED = frozenset(
    {
        "_", "abstract", "as", "async", "await", "become", "box", "break",
        "const", "continue", "crate", "do", "dyn", "else", "enum", "extern",
        "false", "final", "fn", "for", "if", "impl", "in", "let", "loop",
        "macro", "match", "mod", "move", "mut", "override", "priv", "pub",
        "ref", "return", "Self", "self", "static", "struct", "super", "trait",
        "true", "try", "type", "typeof", "unsafe", "unsized", "use", "virtual",
        "where", "while", "yield",
    }
)

# Keywords that may nevertheless appear as a path segment.
_PATH_KEYWORDS = frozenset({"self", "super", "crate", "Self", "try"})

_STRING_FIELDS = ("name", "fingerprint", "family", "summary")


class AttributeArgsError(ValueError):
    """Raised when an attribute's arguments do not follow the expected grammar."""


@dataclass(frozen=True)
class AntigenArgs:
    """Fields read from ``#[antigen(...)]``; missing ones stay empty."""

    name: str = ""
    fingerprint: Optional[str] = None
    family: Optional[str] = None
    summary: Optional[str] = None


@dataclass(frozen=True)
class ImmuneArgs:
    """Fields read from ``#[immune(Antigen, witness = ...)]``."""

    antigen_type: str
    witness: str = ""


Source = Union[str, Iterable[TokenTree]]


def _trees(source: Source) -> list:
    if isinstance(source, str):
        try:
            return tokenize(source)
        except LexError as exc:
            raise AttributeArgsError(str(exc)) from exc
    return list(source)


class _Cursor:
    def __init__(self, trees: list) -> None:
        self._trees = trees
        self._pos = 0

    @property
    def empty(self) -> bool:
        return self._pos >= len(self._trees)

    def peek(self, offset: int = 0) -> Optional[TokenTree]:
        index = self._pos + offset
        return self._trees[index] if index < len(self._trees) else None

    def skip(self, count: int = 1) -> None:
        self._pos += count

    def advance(self) -> TokenTree:
        tree = self.peek()
        if tree is None:
            raise AttributeArgsError("unexpected end of input")
        self._pos += 1
        return tree

    def peek_punct(self, char: str, offset: int = 0) -> bool:
        tree = self.peek(offset)
        return isinstance(tree, Token) and tree.is_punct(char)

    def peek_path_sep(self, offset: int = 0) -> bool:
        first = self.peek(offset)
        return (
            self.peek_punct(":", offset)
            and first.joint
            and self.peek_punct(":", offset + 1)
        )

    def _describe(self) -> str:
        tree = self.peek()
        return "end of input" if tree is None else f"`{render([tree])}`"

    def expect_punct(self, char: str) -> None:
        if not self.peek_punct(char):
            raise AttributeArgsError(f"expected `{char}`, found {self._describe()}")
        self._pos += 1

    def expect_ident(self) -> str:
        tree = self.peek()
        if not (isinstance(tree, Token) and tree.kind is TokenKind.IDENT) or tree.text in _RESERVED:
            raise AttributeArgsError(f"expected identifier, found {self._describe()}")
        self._pos += 1
        return tree.text

    def expect_str(self) -> str:
        tree = self.peek()
        if not (isinstance(tree, Token) and tree.kind is TokenKind.STRING):
            raise AttributeArgsError(f"expected string literal, found {self._describe()}")
        self._pos += 1
        return tree.value or ""

    def expect_array(self) -> Group:
        tree = self.peek()
        if not (isinstance(tree, Group) and tree.delimiter == "["):
            raise AttributeArgsError(f"expected array, found {self._describe()}")
        self._pos += 1
        return tree

    def _closes_angle(self) -> bool:
        if not self.peek_punct(">"):
            return False
        previous = self._trees[self._pos - 1] if self._pos > 0 else None
        return not (isinstance(previous, Token) and previous.is_punct("-") and previous.joint)

    def skip_generic_args(self) -> None:
        self.expect_punct("<")
        depth = 1
        while depth:
            if self.empty:
                raise AttributeArgsError("unclosed generic arguments")
            if self.peek_punct("<"):
                depth += 1
            elif self._closes_angle():
                depth -= 1
            self._pos += 1

    def take_expr(self) -> list:
        start = self._pos
        depth = 0
        while not self.empty:
            if depth == 0 and self.peek_punct(","):
                break
            if self.peek_path_sep() and self.peek_punct("<", 2):
                self._pos += 3
                depth += 1
                continue
            if depth:
                if self.peek_punct("<"):
                    depth += 1
                elif self._closes_angle():
                    depth -= 1
            self._pos += 1
        taken = self._trees[start : self._pos]
        if not taken:
            raise AttributeArgsError(f"expected expression, found {self._describe()}")
        return taken


def _path_segment(cursor: _Cursor) -> str:
    tree = cursor.peek()
    if isinstance(tree, Token) and tree.kind is TokenKind.IDENT and tree.text in _PATH_KEYWORDS:
        cursor.skip()
        name = tree.text
    else:
        name = cursor.expect_ident()
    head = cursor.peek()
    if cursor.peek_punct("<") and not (head.joint and cursor.peek_punct("=", 1)):
        cursor.skip_generic_args()
    return name


def _parse_path(cursor: _Cursor) -> str:
    """Consume a path and return the identifier of its last segment."""
    if cursor.peek_path_sep():
        cursor.skip(2)
    last = _path_segment(cursor)
    while cursor.peek_path_sep():
        if cursor.peek_punct("<", 2):
            cursor.skip(2)
            cursor.skip_generic_args()
            continue
        cursor.skip(2)
        last = _path_segment(cursor)
    return last


def parse_antigen_args(source: Source) -> AntigenArgs:
    """Parse ``name = "...", fingerprint = "...", ...``.

    Unknown fields are consumed and ignored; missing fields stay empty.
    """
    cursor = _Cursor(_trees(source))
    fields: dict = {}
    while not cursor.empty:
        key = cursor.expect_ident()
        cursor.expect_punct("=")
        if key in _STRING_FIELDS:
            fields[key] = cursor.expect_str()
        elif key == "references":
            cursor.expect_array()
        else:
            cursor.take_expr()
        if cursor.peek_punct(","):
            cursor.skip()
    name = fields.pop("name", "")
    return AntigenArgs(name=name, **fields)


def parse_immune_args(source: Source) -> ImmuneArgs:
    """Parse ``AntigenPath, witness = expr, ...``.

    The antigen type is the last path segment; the witness is the
    canonical rendering of its expression. Other fields are ignored.
    """
    cursor = _Cursor(_trees(source))
    antigen_type = _parse_path(cursor)
    witness = ""
    while not cursor.empty:
        cursor.expect_punct(",")
        if cursor.empty:
            break
        key = cursor.expect_ident()
        cursor.expect_punct("=")
        value = cursor.take_expr()
        if key == "witness":
            witness = render(value)
    return ImmuneArgs(antigen_type=antigen_type, witness=witness)


def parse_path_last_segment(source: Source) -> str:
    """Parse input that must be exactly one path; return its last segment."""
    cursor = _Cursor(_trees(source))
    last = _parse_path(cursor)
    if not cursor.empty:
        raise AttributeArgsError(f"unexpected token {cursor._describe()}")
    return last