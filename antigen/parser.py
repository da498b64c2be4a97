"""A lightweight parser that finds Rust items and the outer attributes on them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from .lexer import Group, LexError, Token, TokenKind, render, tokenize


class RustParseError(ValueError):
    """Raised when source text is not a well-formed sequence of Rust items."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


class ItemKind(enum.Enum):
    """The kind of a Rust item."""

    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"
    TRAIT = "trait"
    FN = "fn"
    IMPL = "impl"
    TYPE_ALIAS = "type"
    MOD = "mod"
    CONST = "const"
    STATIC = "static"
    USE = "use"
    MACRO = "macro"
    EXTERN_CRATE = "extern_crate"
    FOREIGN = "foreign"


@dataclass
class Attribute:
    """An outer attribute ``#[path ...]``.

    ``args`` holds the token trees inside the delimiter when the attribute
    has the list form ``#[path(...)]``; otherwise it is ``None``.
    """

    path: tuple
    line: int
    args: Optional[list] = None
    delimiter: Optional[str] = None

    def is_named(self, name: str) -> bool:
        """True when the path's last segment is ``name`` (bare or qualified)."""
        return bool(self.path) and self.path[-1] == name


@dataclass
class Item:
    """A parsed item with its attributes and, for containers, nested items."""

    kind: ItemKind
    name: Optional[str]
    line: int
    attrs: list = field(default_factory=list)
    trait_path: Optional[str] = None
    self_type: Optional[str] = None
    children: list = field(default_factory=list)


_QUALIFIED_STARTERS = frozenset(
    {"fn", "impl", "type", "const", "unsafe", "async", "extern", "trait", "mod", "auto"}
)


def _is_punct(tree, char: str) -> bool:
    return isinstance(tree, Token) and tree.is_punct(char)


def _ident(tree) -> Optional[str]:
    if isinstance(tree, Token) and tree.kind is TokenKind.IDENT:
        return tree.text
    return None


def _angle_delta(tree, previous) -> int:
    if _is_punct(tree, "<"):
        return 1
    if _is_punct(tree, ">") and not (_is_punct(previous, "-") and previous.joint):
        return -1
    return 0


class _ItemParser:
    def __init__(self, trees: list, line: int = 1) -> None:
        self.trees = trees
        self.pos = 0
        self.last_line = line

    def peek(self, offset: int = 0):
        index = self.pos + offset
        return self.trees[index] if index < len(self.trees) else None

    def advance(self):
        tree = self.peek()
        if tree is None:
            self.fail("unexpected end of input")
        self.pos += 1
        self.last_line = tree.line
        return tree

    def fail(self, message: str):
        tree = self.peek()
        line = tree.line if tree is not None else self.last_line
        raise RustParseError(message, line)

    def parse_all(self) -> list:
        items = []
        while self.peek() is not None:
            if _is_punct(self.peek(), ";"):
                self.advance()
                continue
            if (
                _is_punct(self.peek(), "#")
                and _is_punct(self.peek(1), "!")
                and isinstance(self.peek(2), Group)
                and self.peek(2).delimiter == "["
            ):
                self.pos += 3
                continue
            attrs = self._outer_attrs()
            if self.peek() is None:
                self.fail("expected item after attributes")
            items.append(self._item(attrs))
        return items

    def _outer_attrs(self) -> list:
        attrs = []
        while _is_punct(self.peek(), "#") and not _is_punct(self.peek(1), "!"):
            hash_token = self.advance()
            group = self.peek()
            if not (isinstance(group, Group) and group.delimiter == "["):
                self.fail("expected `[` after `#`")
            self.advance()
            attrs.append(self._attribute(group, hash_token.line))
        return attrs

    def _attribute(self, group: Group, line: int) -> Attribute:
        trees = group.trees
        index = 0
        segments = []
        if _is_punct(trees[0] if trees else None, ":"):
            index = 2
        while True:
            name = _ident(trees[index] if index < len(trees) else None)
            if name is None:
                raise RustParseError("expected attribute path", line)
            segments.append(name)
            index += 1
            if (
                index + 1 < len(trees)
                and _is_punct(trees[index], ":")
                and trees[index].joint
                and _is_punct(trees[index + 1], ":")
            ):
                index += 2
                continue
            break
        rest = trees[index:]
        if not rest:
            return Attribute(tuple(segments), line)
        if len(rest) == 1 and isinstance(rest[0], Group):
            return Attribute(tuple(segments), line, list(rest[0].trees), rest[0].delimiter)
        if _is_punct(rest[0], "="):
            return Attribute(tuple(segments), line)
        raise RustParseError("malformed attribute", line)

    def _skip_visibility(self) -> None:
        if _ident(self.peek()) == "pub":
            self.advance()
            tree = self.peek()
            if isinstance(tree, Group) and tree.delimiter == "(":
                self.advance()

    def _expect_name(self) -> str:
        name = _ident(self.peek())
        if name is None:
            self.fail("expected identifier")
        self.advance()
        return name

    def _skip_to_end(self) -> Optional[Group]:
        while True:
            tree = self.advance()
            if _is_punct(tree, ";"):
                return None
            if isinstance(tree, Group) and tree.delimiter == "{":
                return tree

    def _skip_until_semicolon(self) -> None:
        while not _is_punct(self.advance(), ";"):
            pass

    def _children(self, body: Optional[Group]) -> list:
        if body is None:
            return []
        return _ItemParser(body.trees, body.line).parse_all()

    def _item(self, attrs: list) -> Item:
        self._skip_visibility()
        while True:
            word, following = _ident(self.peek()), _ident(self.peek(1))
            if word in ("async", "default", "safe") and following in _QUALIFIED_STARTERS:
                self.advance()
            elif word == "const" and following in ("fn", "unsafe", "async", "extern"):
                self.advance()
            elif word == "unsafe" and following in ("fn", "impl", "trait", "extern", "auto", "mod"):
                self.advance()
            elif word == "auto" and following == "trait":
                self.advance()
            elif word == "extern":
                keyword = self.advance()
                if _ident(self.peek()) == "crate":
                    self.advance()
                    name = self._expect_name()
                    self._skip_until_semicolon()
                    return Item(ItemKind.EXTERN_CRATE, name, keyword.line, attrs)
                tree = self.peek()
                if isinstance(tree, Token) and tree.kind is TokenKind.STRING:
                    self.advance()
                tree = self.peek()
                if isinstance(tree, Group) and tree.delimiter == "{":
                    self.advance()
                    return Item(ItemKind.FOREIGN, None, keyword.line, attrs)
            else:
                break

        tree = self.peek()
        if tree is None:
            self.fail("expected item")
        word = _ident(tree)
        line = tree.line
        if word in ("struct", "enum") or (word == "union" and _ident(self.peek(1))):
            kind = {"struct": ItemKind.STRUCT, "enum": ItemKind.ENUM, "union": ItemKind.UNION}[word]
            self.advance()
            name = self._expect_name()
            self._skip_to_end()
            return Item(kind, name, line, attrs)
        if word == "fn":
            self.advance()
            name = self._expect_name()
            self._skip_to_end()
            return Item(ItemKind.FN, name, line, attrs)
        if word in ("trait", "mod"):
            self.advance()
            name = self._expect_name()
            body = self._skip_to_end()
            kind = ItemKind.TRAIT if word == "trait" else ItemKind.MOD
            return Item(kind, name, line, attrs, children=self._children(body))
        if word == "impl":
            return self._impl(attrs, line)
        if word == "type":
            self.advance()
            name = self._expect_name()
            self._skip_until_semicolon()
            return Item(ItemKind.TYPE_ALIAS, name, line, attrs)
        if word in ("const", "static"):
            self.advance()
            if word == "static" and _ident(self.peek()) == "mut":
                self.advance()
            name = self._expect_name()
            self._skip_until_semicolon()
            kind = ItemKind.CONST if word == "const" else ItemKind.STATIC
            return Item(kind, name, line, attrs)
        if word == "use":
            self._skip_until_semicolon()
            return Item(ItemKind.USE, None, line, attrs)
        if word is not None or _is_punct(tree, ":"):
            return self._macro(attrs, line)
        self.fail(f"expected item, found `{render([tree])}`")

    def _macro(self, attrs: list, line: int) -> Item:
        name = None
        while True:
            if _is_punct(self.peek(), ":") and _is_punct(self.peek(1), ":"):
                self.pos += 2
                continue
            segment = _ident(self.peek())
            if segment is None:
                break
            name = segment
            self.advance()
        if name is None or not _is_punct(self.peek(), "!"):
            self.fail("expected item")
        self.advance()
        declared = _ident(self.peek())
        if declared is not None:
            self.advance()
            name = declared
        body = self.peek()
        if not isinstance(body, Group):
            self.fail("expected macro body")
        self.advance()
        if body.delimiter != "{":
            if not _is_punct(self.peek(), ";"):
                self.fail("expected `;` after macro invocation")
            self.advance()
        return Item(ItemKind.MACRO, name, line, attrs)

    def _skip_angles(self) -> None:
        depth, previous = 0, None
        while True:
            tree = self.advance()
            depth += _angle_delta(tree, previous)
            previous = tree
            if depth == 0:
                return

    def _impl(self, attrs: list, line: int) -> Item:
        self.advance()
        if _is_punct(self.peek(), "<"):
            self._skip_angles()
        if _ident(self.peek()) == "const":
            self.advance()
        header, depth, previous = [], 0, None
        while True:
            tree = self.peek()
            if tree is None:
                self.fail("expected impl body")
            if depth == 0 and isinstance(tree, Group) and tree.delimiter == "{":
                break
            if depth == 0 and _ident(tree) == "where":
                while not (isinstance(self.peek(), Group) and self.peek().delimiter == "{"):
                    self.advance()
                break
            depth += _angle_delta(tree, previous)
            previous = tree
            header.append(tree)
            self.advance()
        body = self.advance()

        split, depth, previous = None, 0, None
        for index, tree in enumerate(header):
            depth += _angle_delta(tree, previous)
            previous = tree
            if (
                depth == 0
                and index > 0
                and _ident(tree) == "for"
                and not _is_punct(header[index + 1] if index + 1 < len(header) else None, "<")
            ):
                split = index
                break
        trait_path = None
        type_trees = header
        if split is not None:
            trait_trees = header[:split]
            if trait_trees and _is_punct(trait_trees[0], "!"):
                trait_trees = trait_trees[1:]
            trait_path = render(trait_trees)
            type_trees = header[split + 1 :]
        if not type_trees:
            raise RustParseError("impl without a self type", line)
        return Item(
            ItemKind.IMPL,
            None,
            line,
            attrs,
            trait_path=trait_path,
            self_type=render(type_trees),
            children=self._children(body),
        )


def parse_items(source: str) -> list:
    """Parse Rust source into its top-level items."""
    try:
        trees = tokenize(source)
    except LexError as exc:
        raise RustParseError(str(exc).split(": ", 1)[-1], exc.line) from exc
    return _ItemParser(trees).parse_all()